from __future__ import annotations

from chatmarkup.codec import decode_base64_json, decode_base64_text, encode_base64_json, encode_base64_text
from chatmarkup.content import build_parsed_message_content
from chatmarkup.parser.base import (
    ParagraphBlock,
    QuoteBlock,
    ReportBlock,
    TableBlock,
    TableCitationBlock,
    TableData,
)
from chatmarkup.renderer.element_renderer import (
    CustomElementNode,
    blocks_to_custom_elements,
    blocks_to_plain_text,
    serialize_custom_element,
)


def test_quote_element_round_trip() -> None:
    parsed = build_parsed_message_content("> Remember to review")

    assert parsed.blocks == [QuoteBlock(text="Remember to review")]
    [element] = parsed.elements
    assert element.tag == "app-catation"
    assert decode_base64_text(element.attributes["text"]) == "Remember to review"
    assert parsed.custom_markup == f'<app-catation text="{encode_base64_text("Remember to review")}"></app-catation>'


def test_caption_and_quote_document() -> None:
    md = "Table: Weekly Status\n\n| Task | Status |\n| --- | --- |\n| Build | Complete |\n\n> Remember to review"

    parsed = build_parsed_message_content(md)

    table_element, quote_element = parsed.elements
    assert table_element.tag == "app-table-catation"
    assert table_element.attributes["data"] == encode_base64_json(
        {"headers": ["Task", "Status"], "rows": [["Build", "Complete"]]}
    )
    assert decode_base64_text(table_element.attributes["name"]) == "Weekly Status"
    assert quote_element.tag == "app-catation"
    assert parsed.plain_text == "Weekly Status\nTask | Status\nBuild | Complete\nRemember to review"


def test_table_data_attribute_decodes_to_block_contents() -> None:
    md = "| a | b |\n| --- | --- |\n| 1 |\n| 2 | 3 | 4 |\n\nTable: Named\n\n| ש | x |\n| --- | --- |\n| ט | y |"

    parsed = build_parsed_message_content(md)

    tables = [b for b in parsed.blocks if isinstance(b, TableBlock)]
    assert len(tables) == len(parsed.elements) == 2
    for block, element in zip(tables, parsed.elements):
        assert decode_base64_json(element.attributes["data"]) == {"headers": block.headers, "rows": block.rows}


def test_inline_table_caption_attribute() -> None:
    block = TableBlock(headers=["a"], rows=[["1"]], presentation="inline", caption="Totals")

    [element] = blocks_to_custom_elements([block])

    assert element.tag == "app-inline-table"
    assert list(element.attributes) == ["data", "caption"]
    assert decode_base64_text(element.attributes["caption"]) == "Totals"


def test_inline_table_without_caption_has_only_data() -> None:
    [element] = blocks_to_custom_elements([TableBlock(headers=["a"], rows=[["1"]])])

    assert element.attributes.keys() == {"data"}


def test_table_citation_element() -> None:
    block = TableCitationBlock(
        citation_id="3",
        table_data=TableData(headers=["h"], rows=[["v"]]),
        caption="Cap",
    )

    [element] = blocks_to_custom_elements([block])

    assert element.tag == "app-table-citation"
    assert list(element.attributes) == ["citationId", "data", "caption"]
    assert element.attributes["citationId"] == "3"
    assert decode_base64_json(element.attributes["data"]) == {"headers": ["h"], "rows": [["v"]]}
    assert decode_base64_text(element.attributes["caption"]) == "Cap"


def test_report_element_payload() -> None:
    block = ReportBlock(report_id="r1", title="Q3", summary="Up", metadata={"owner": "ops"})

    [element] = blocks_to_custom_elements([block])

    assert element.tag == "app-report"
    assert decode_base64_json(element.attributes["data"]) == {
        "reportId": "r1",
        "title": "Q3",
        "summary": "Up",
        "metadata": {"owner": "ops"},
    }


def test_report_payload_omits_missing_summary() -> None:
    [element] = blocks_to_custom_elements([ReportBlock(report_id="r2", title="T")])

    assert decode_base64_json(element.attributes["data"]) == {"reportId": "r2", "title": "T"}


def test_structural_blocks_produce_no_elements() -> None:
    md = "# Title\n\nSome text\n\n```py\nprint(1)\n```\n\n- a\n- b\n\n---"

    parsed = build_parsed_message_content(md)

    assert parsed.elements == []
    assert parsed.custom_markup == ""
    assert parsed.plain_text == "Title\nSome text\nprint(1)\n- a\n- b"


def test_plain_text_for_reports_and_citations() -> None:
    blocks = [
        ReportBlock(report_id="r", title="Q3", summary="Up"),
        ReportBlock(report_id="s", title="Bare"),
        TableCitationBlock(citation_id="4", table_data=TableData()),
        ParagraphBlock(text="   "),
    ]

    assert blocks_to_plain_text(blocks) == "Q3 - Up\nBare\n[table-4]"


def test_serializer_escapes_quotes_and_renders_children() -> None:
    node = CustomElementNode(
        tag="x-wrap",
        attributes={"label": 'say "hi"', "id": "a"},
        children=["text", CustomElementNode(tag="x-leaf")],
    )

    assert serialize_custom_element(node) == '<x-wrap label="say &quot;hi&quot;" id="a">text<x-leaf></x-leaf></x-wrap>'


def test_serializer_without_attributes() -> None:
    assert serialize_custom_element(CustomElementNode(tag="app-report")) == "<app-report></app-report>"


def test_parsed_report_without_metadata_key() -> None:
    parsed = build_parsed_message_content('report: {"id": "r3", "title": "T", "owner": "ops"}')

    [element] = parsed.elements
    assert decode_base64_json(element.attributes["data"]) == {
        "reportId": "r3",
        "title": "T",
        "metadata": {"id": "r3", "title": "T", "owner": "ops"},
    }
