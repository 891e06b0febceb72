"""Translate content blocks into custom elements and plain text."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from chatmarkup.codec import encode_base64_json, encode_base64_text
from chatmarkup.parser.base import (
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
)

# Tag names are shared with the rendering layer; "catation" is intentional.
QUOTE_TAG = "app-catation"
INLINE_TABLE_TAG = "app-inline-table"
CITATION_TABLE_TAG = "app-table-catation"
TABLE_CITATION_TAG = "app-table-citation"
REPORT_TAG = "app-report"


@dataclass(slots=True)
class CustomElementNode:
    tag: str
    attributes: dict[str, str] = field(default_factory=dict)
    children: list[CustomElementChild] = field(default_factory=list)


CustomElementChild = Union[CustomElementNode, str]


def blocks_to_custom_elements(blocks: list[ContentBlock]) -> list[CustomElementNode]:
    """Build elements for quote, table, table-citation and report blocks.

    Structural blocks (headings, paragraphs, code, lists, dividers) carry no
    rich payload and produce no element.
    """
    elements: list[CustomElementNode] = []
    for block in blocks:
        element = _block_to_element(block)
        if element is not None:
            elements.append(element)
    return elements


def _block_to_element(block: ContentBlock) -> CustomElementNode | None:
    if isinstance(block, QuoteBlock):
        return CustomElementNode(tag=QUOTE_TAG, attributes={"text": encode_base64_text(block.text)})

    if isinstance(block, TableBlock):
        attributes = {"data": encode_base64_json({"headers": block.headers, "rows": block.rows})}
        if block.presentation == "citation":
            if block.caption:
                attributes["name"] = encode_base64_text(block.caption)
            return CustomElementNode(tag=CITATION_TABLE_TAG, attributes=attributes)
        if block.caption:
            attributes["caption"] = encode_base64_text(block.caption)
        return CustomElementNode(tag=INLINE_TABLE_TAG, attributes=attributes)

    if isinstance(block, TableCitationBlock):
        attributes = {
            "citationId": block.citation_id,
            "data": encode_base64_json({"headers": block.table_data.headers, "rows": block.table_data.rows}),
        }
        if block.caption:
            attributes["caption"] = encode_base64_text(block.caption)
        return CustomElementNode(tag=TABLE_CITATION_TAG, attributes=attributes)

    if isinstance(block, ReportBlock):
        payload: dict[str, Any] = {"reportId": block.report_id, "title": block.title}
        if block.summary is not None:
            payload["summary"] = block.summary
        if block.metadata is not None:
            payload["metadata"] = block.metadata
        return CustomElementNode(tag=REPORT_TAG, attributes={"data": encode_base64_json(payload)})

    return None


def serialize_attributes(attributes: dict[str, str]) -> str:
    return " ".join(f'{key}="{_escape_quotes(value)}"' for key, value in attributes.items())


def _escape_quotes(value: str) -> str:
    return value.replace('"', "&quot;")


def serialize_custom_element(node: CustomElementNode) -> str:
    attrs = serialize_attributes(node.attributes)
    open_tag = f"<{node.tag} {attrs}>" if attrs else f"<{node.tag}>"
    inner = "".join(
        child if isinstance(child, str) else serialize_custom_element(child) for child in node.children
    )
    return f"{open_tag}{inner}</{node.tag}>"


def serialize_custom_elements(nodes: list[CustomElementNode]) -> str:
    return "".join(serialize_custom_element(node) for node in nodes)


# ---------------------------------------------------------------------------
# Plain text
# ---------------------------------------------------------------------------

def blocks_to_plain_text(blocks: list[ContentBlock]) -> str:
    parts = [_block_to_text(block) for block in blocks]
    return "\n".join(part for part in parts if part.strip()).strip()


def _block_to_text(block: ContentBlock) -> str:
    if isinstance(block, (HeadingBlock, ParagraphBlock, QuoteBlock)):
        return block.text
    if isinstance(block, CodeBlock):
        return block.code
    if isinstance(block, ListBlock):
        return "\n".join(f"- {item}" for item in block.items)
    if isinstance(block, DividerBlock):
        return ""
    if isinstance(block, TableBlock):
        prefix = f"{block.caption}\n" if block.caption else ""
        header = " | ".join(block.headers)
        rows = "\n".join(" | ".join(row) for row in block.rows)
        return f"{prefix}{header}\n{rows}"
    if isinstance(block, ReportBlock):
        return f"{block.title} - {block.summary}" if block.summary else block.title
    if isinstance(block, TableCitationBlock):
        return f"[table-{block.citation_id}]"
    return ""
