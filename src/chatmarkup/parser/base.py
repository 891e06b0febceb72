"""Core intermediate representation (IR) for parsed chat messages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Literal, Protocol

TablePresentation = Literal["inline", "citation"]


@dataclass(slots=True, frozen=True)
class HeadingBlock:
    type: ClassVar[str] = "heading"

    level: int
    text: str


@dataclass(slots=True, frozen=True)
class ParagraphBlock:
    type: ClassVar[str] = "paragraph"

    text: str


@dataclass(slots=True, frozen=True)
class CodeBlock:
    type: ClassVar[str] = "code"

    code: str
    language: str | None = None


@dataclass(slots=True, frozen=True)
class ListBlock:
    type: ClassVar[str] = "list"

    ordered: bool
    items: list[str] = field(default_factory=list)


@dataclass(slots=True, frozen=True)
class QuoteBlock:
    type: ClassVar[str] = "quote"

    text: str


@dataclass(slots=True, frozen=True)
class DividerBlock:
    type: ClassVar[str] = "divider"


@dataclass(slots=True, frozen=True)
class TableBlock:
    """A pipe table. Rows may be ragged relative to ``headers``."""

    type: ClassVar[str] = "table"

    headers: list[str] = field(default_factory=list)
    rows: list[list[str]] = field(default_factory=list)
    presentation: TablePresentation = "inline"
    caption: str | None = None


@dataclass(slots=True, frozen=True)
class ReportBlock:
    type: ClassVar[str] = "report"

    report_id: str
    title: str
    summary: str | None = None
    metadata: dict[str, Any] | None = None


@dataclass(slots=True, frozen=True)
class TableData:
    headers: list[str] = field(default_factory=list)
    rows: list[list[str]] = field(default_factory=list)


@dataclass(slots=True, frozen=True)
class TableCitationBlock:
    type: ClassVar[str] = "table-citation"

    citation_id: str
    table_data: TableData
    caption: str | None = None


ContentBlock = (
    HeadingBlock
    | ParagraphBlock
    | CodeBlock
    | ListBlock
    | QuoteBlock
    | DividerBlock
    | TableBlock
    | ReportBlock
    | TableCitationBlock
)


class Parser(Protocol):
    def parse(self, markdown: str) -> list[ContentBlock]:  # pragma: no cover - structural protocol
        """Parse message text into content blocks."""
