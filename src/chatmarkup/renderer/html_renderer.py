"""Render a parsed message into a standalone HTML preview page."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from chatmarkup.content import ParsedMessageContent
from chatmarkup.parser.base import (
    CodeBlock,
    ContentBlock,
    DividerBlock,
    HeadingBlock,
    ListBlock,
    ParagraphBlock,
)
from chatmarkup.renderer.element_renderer import blocks_to_custom_elements, serialize_custom_element


@dataclass(slots=True)
class RenderedBlock:
    kind: str
    text: str = ""
    level: int = 0
    language: str | None = None
    ordered: bool = False
    items: tuple[str, ...] = ()
    markup: str = ""


class HTMLRenderer:
    """Render parsed content into the preview template.

    Structural blocks become plain HTML. Rich blocks are embedded as their
    custom-element markup, left for the page's rendering layer to upgrade.
    """

    def __init__(self, template_path: Path | None = None) -> None:
        if template_path is None:
            template_path = Path(__file__).resolve().parent.parent / "template" / "preview.html"

        loader = FileSystemLoader(str(template_path.parent))
        self._env = Environment(loader=loader, autoescape=True, trim_blocks=True, lstrip_blocks=True)
        self._template_name = template_path.name

    def render(
        self,
        parsed: ParsedMessageContent,
        *,
        title: str | None = None,
        dark_mode: bool = False,
    ) -> str:
        blocks = [self._render_block(block) for block in parsed.blocks]

        template = self._env.get_template(self._template_name)
        return template.render(
            page_title=title or "Message preview",
            blocks=[asdict(block) for block in blocks],
            plain_text=parsed.plain_text,
            dark_mode=dark_mode,
        )

    def _render_block(self, block: ContentBlock) -> RenderedBlock:
        if isinstance(block, HeadingBlock):
            return RenderedBlock(kind="heading", text=block.text, level=block.level)

        if isinstance(block, ParagraphBlock):
            return RenderedBlock(kind="paragraph", text=block.text)

        if isinstance(block, CodeBlock):
            return RenderedBlock(kind="code", text=block.code, language=block.language)

        if isinstance(block, ListBlock):
            return RenderedBlock(kind="list", ordered=block.ordered, items=tuple(block.items))

        if isinstance(block, DividerBlock):
            return RenderedBlock(kind="divider")

        elements = blocks_to_custom_elements([block])
        return RenderedBlock(kind="element", markup=serialize_custom_element(elements[0]) if elements else "")
