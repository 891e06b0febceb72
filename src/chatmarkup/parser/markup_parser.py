"""Line-cursor parser turning chat markdown into content blocks."""

from __future__ import annotations

import json
import re
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .base import (
    CodeBlock,
    ContentBlock,
    DividerBlock,
    HeadingBlock,
    ListBlock,
    ParagraphBlock,
    QuoteBlock,
    ReportBlock,
    TableBlock,
    TableCitationBlock,
    TableData,
    TablePresentation,
)

_HEADING_RE = re.compile(r"^(#{1,6})\s+(.*)$")
_ORDERED_LIST_RE = re.compile(r"^\s*([0-9]+)\.\s+(.*)$")
_UNORDERED_LIST_RE = re.compile(r"^\s*[-*+]\s+(.*)$")
_DIVIDER_RE = re.compile(r"^\s*(-{3,}|_{3,}|\*{3,})\s*$")
_TABLE_DIVIDER_RE = re.compile(r"^\s*\|?(?:\s*:?-{3,}:?\s*\|)+\s*$")
_TABLE_CAPTION_RE = re.compile(r"^(?:table|טבלה)\s*[:\-]\s*(.+)$", re.IGNORECASE)
_TABLE_CITATION_RE = re.compile(r"\[table-(\w+)\]", re.IGNORECASE | re.ASCII)
_TABLE_CITATION_DEF_RE = re.compile(r"^table-citation:\s*(\w+)", re.IGNORECASE | re.ASCII)
_REPORT_RE = re.compile(r"^report\s*[:\-]\s*(\{.*\})$", re.IGNORECASE | re.DOTALL)
_CELL_SEPARATOR_RE = re.compile(r"(?<!\\)\|")


@dataclass(slots=True, frozen=True)
class _CitationDefinition:
    table_data: TableData
    caption: str | None = None


class MarkupParser:
    """Parse chat markdown into the content-block IR.

    Parsing is total: anything that is not recognised as a richer block
    degrades to :class:`ParagraphBlock`. The parser holds no state between
    calls, so one instance may be shared freely.
    """

    def __init__(self, report_id_factory: Callable[[], str] | None = None) -> None:
        self.report_id_factory = report_id_factory or _default_report_id

    def parse(self, markdown: str) -> list[ContentBlock]:
        lines = _normalize_line_endings(markdown or "").split("\n")
        citations = _collect_table_citations(lines)
        return _parse_blocks(lines, citations, self.report_id_factory)


def parse_markdown_to_blocks(markdown: str) -> list[ContentBlock]:
    """Parse *markdown* with a default :class:`MarkupParser`."""
    return MarkupParser().parse(markdown)


def _default_report_id() -> str:
    return f"report-{int(time.time() * 1000)}"


def _normalize_line_endings(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


# ---------------------------------------------------------------------------
# Line predicates
# ---------------------------------------------------------------------------

def _extract_heading(line: str) -> tuple[int, str] | None:
    m = _HEADING_RE.match(line)
    if m is None:
        return None
    return len(m.group(1)), m.group(2).strip()


def _extract_list_item(line: str) -> tuple[bool, str] | None:
    """Return ``(ordered, text)`` for a list item line."""
    m = _ORDERED_LIST_RE.match(line)
    if m:
        return True, m.group(2).strip()
    m = _UNORDERED_LIST_RE.match(line)
    if m:
        return False, m.group(1).strip()
    return None


def _is_divider(line: str) -> bool:
    return _DIVIDER_RE.match(line.strip()) is not None


def _is_code_fence(line: str) -> bool:
    return line.strip().startswith("```")


def _is_quote_line(line: str) -> bool:
    return line.strip().startswith(">")


def _is_paragraph_boundary(line: str) -> bool:
    stripped = line.strip()
    if not stripped:
        return True
    return (
        _is_divider(stripped)
        or _extract_heading(stripped) is not None
        or _extract_list_item(stripped) is not None
        or _is_code_fence(stripped)
        or _is_quote_line(stripped)
    )


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------

def _split_table_row(line: str) -> list[str]:
    cleaned = re.sub(r"^\s*\|", "", line.strip())
    cleaned = re.sub(r"(?<!\\)\|\s*$", "", cleaned)
    return [cell.replace("\\|", "|").strip() for cell in _CELL_SEPARATOR_RE.split(cleaned)]


def _try_parse_table(lines: list[str], start: int) -> tuple[list[str], list[list[str]], int] | None:
    """Detect a pipe table at *start*; return ``(headers, rows, next_index)``.

    A header and divider row without any data row is not a table yet.
    """
    if start + 1 >= len(lines):
        return None

    header_line = lines[start]
    if "|" not in header_line or not _TABLE_DIVIDER_RE.match(lines[start + 1]):
        return None

    headers = _split_table_row(header_line)
    rows: list[list[str]] = []
    index = start + 2
    while index < len(lines):
        candidate = lines[index]
        if not candidate.strip() or "|" not in candidate:
            break
        rows.append(_split_table_row(candidate))
        index += 1

    if not headers or not rows:
        return None
    return headers, rows, index


# ---------------------------------------------------------------------------
# Table-citation definitions
# ---------------------------------------------------------------------------

def _read_citation_definition(
    lines: list[str], index: int
) -> tuple[str, _CitationDefinition | None, int] | None:
    """Read a ``table-citation: <id>`` definition starting at *index*.

    The table must start on the next line. Its caption is read from the line
    just above the table, which is the definition line itself: an unindented
    ``table-citation: 1`` reads as caption ``citation: 1``. Returns
    ``(citation_id, definition, next_index)``; *definition* is ``None`` when
    no table follows, in which case only the definition line is consumed.
    """
    m = _TABLE_CITATION_DEF_RE.match(lines[index].strip())
    if m is None:
        return None

    citation_id = m.group(1)
    table = _try_parse_table(lines, index + 1)
    if table is None:
        return citation_id, None, index + 1

    caption_match = _TABLE_CAPTION_RE.match(lines[index])
    caption = caption_match.group(1).strip() if caption_match else None

    headers, rows, next_index = table
    definition = _CitationDefinition(table_data=TableData(headers=headers, rows=rows), caption=caption)
    return citation_id, definition, next_index


def _collect_table_citations(lines: list[str]) -> dict[str, _CitationDefinition]:
    citations: dict[str, _CitationDefinition] = {}
    index = 0
    while index < len(lines):
        result = _read_citation_definition(lines, index)
        if result is None:
            index += 1
            continue
        citation_id, definition, index = result
        if definition is not None:
            citations[citation_id] = definition
    return citations


def _split_citations(text: str, citations: dict[str, _CitationDefinition]) -> list[ContentBlock] | None:
    """Split *text* at registered ``[table-<id>]`` markers.

    Returns ``None`` when the text holds no registered marker.
    """
    blocks: list[ContentBlock] = []
    last = 0
    for m in _TABLE_CITATION_RE.finditer(text):
        definition = citations.get(m.group(1))
        if definition is None:
            continue
        before = text[last:m.start()].strip()
        if before:
            blocks.append(ParagraphBlock(text=before))
        blocks.append(
            TableCitationBlock(
                citation_id=m.group(1),
                table_data=definition.table_data,
                caption=definition.caption,
            )
        )
        last = m.end()

    if not blocks:
        return None

    tail = text[last:].strip()
    if tail:
        blocks.append(ParagraphBlock(text=tail))
    return blocks


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------

def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else json.dumps(value, ensure_ascii=False)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def _parse_report(text: str, report_id_factory: Callable[[], str]) -> ReportBlock | None:
    m = _REPORT_RE.match(text)
    if m is None:
        return None
    try:
        payload = json.loads(m.group(1), parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        return None
    if not isinstance(payload, dict):
        return None

    report_id = payload.get("id")
    if report_id is None:
        report_id = payload.get("reportId")
    report_id = _as_text(report_id) if report_id is not None else report_id_factory()

    title = payload.get("title")
    title = _as_text(title) if title is not None else f"Report {report_id}"

    summary = payload.get("summary")
    if summary is None:
        summary = payload.get("description")

    metadata = {key: value for key, value in payload.items() if key not in ("summary", "metadata")}
    if "metadata" in payload:
        metadata["metadata"] = payload["metadata"]

    return ReportBlock(
        report_id=report_id,
        title=title,
        summary=_as_text(summary) if summary is not None else None,
        metadata=metadata,
    )


# ---------------------------------------------------------------------------
# Block parsing
# ---------------------------------------------------------------------------

def _parse_blocks(
    lines: list[str],
    citations: dict[str, _CitationDefinition],
    report_id_factory: Callable[[], str],
) -> list[ContentBlock]:
    blocks: list[ContentBlock] = []
    index = 0

    while index < len(lines):
        line = lines[index]
        stripped = line.strip()

        if not stripped:
            index += 1
            continue

        # Definitions were registered up front; drop them from the output.
        definition = _read_citation_definition(lines, index)
        if definition is not None:
            index = definition[2]
            continue

        table = _try_parse_table(lines, index)
        if table is not None:
            headers, rows, index = table
            presentation: TablePresentation = "inline"
            caption: str | None = None
            previous = blocks[-1] if blocks else None
            if isinstance(previous, ParagraphBlock):
                caption_match = _TABLE_CAPTION_RE.match(previous.text)
                if caption_match:
                    presentation = "citation"
                    caption = caption_match.group(1).strip()
                    blocks.pop()
            blocks.append(TableBlock(headers=headers, rows=rows, presentation=presentation, caption=caption))
            continue

        if _is_code_fence(line):
            language = stripped[3:].strip() or None
            index += 1
            code_lines: list[str] = []
            while index < len(lines):
                candidate = lines[index]
                index += 1
                if _is_code_fence(candidate):
                    break
                code_lines.append(candidate)
            blocks.append(CodeBlock(code="\n".join(code_lines), language=language))
            continue

        heading = _extract_heading(line)
        if heading is not None:
            level, text = heading
            blocks.append(HeadingBlock(level=level, text=text))
            index += 1
            continue

        if _is_divider(line):
            blocks.append(DividerBlock())
            index += 1
            continue

        if _is_quote_line(line):
            quote_lines: list[str] = []
            while index < len(lines) and _is_quote_line(lines[index]):
                quote_lines.append(re.sub(r"^>\s?", "", lines[index].strip()))
                index += 1
            blocks.append(QuoteBlock(text=" ".join(quote_lines)))
            continue

        item = _extract_list_item(line)
        if item is not None:
            ordered, text = item
            items = [text]
            index += 1
            while index < len(lines):
                following = _extract_list_item(lines[index])
                if following is None or following[0] != ordered:
                    break
                items.append(following[1])
                index += 1
            blocks.append(ListBlock(ordered=ordered, items=items))
            continue

        paragraph_lines = [stripped]
        index += 1
        while index < len(lines) and not _is_paragraph_boundary(lines[index]):
            paragraph_lines.append(lines[index].strip())
            index += 1
        paragraph_text = " ".join(paragraph_lines)

        report = _parse_report(paragraph_text, report_id_factory)
        if report is not None:
            blocks.append(report)
            continue

        if citations:
            cited = _split_citations(paragraph_text, citations)
            if cited is not None:
                blocks.extend(cited)
                continue

        blocks.append(ParagraphBlock(text=paragraph_text))

    return blocks
