from typing import Any, Mapping

import pytest

from blockdoc.errors import SchemaError, StructuralError
from blockdoc.html.exporter import HTMLExporter
from blockdoc.html.parser import parse_html
from blockdoc.model.blocks import Block, Style, StyledText, TableContent
from blockdoc.schema.defaults import default_block_specs, default_props, default_style_specs
from blockdoc.schema.registry import BlockSpec, PropSpec, Schema
from blockdoc.schema.templates import BlockTemplate
from blockdoc.utils.logging import NullLogger

from builders import styled


class QuoteTemplate(BlockTemplate):
    tags = ("blockquote",)

    def render(self, props: Mapping[str, Any], inner_html: str, children_html: str = "") -> str:
        return f"<blockquote{self.presentation(props)}>{inner_html}</blockquote>"


def test_duplicate_block_type_is_rejected() -> None:
    specs = default_block_specs()

    with pytest.raises(SchemaError):
        Schema([*specs, specs[0]], default_style_specs())


def test_unknown_block_type_raises_schema_error(schema: Schema) -> None:
    with pytest.raises(SchemaError):
        schema.create_block("callout", "Hi")


def test_create_block_fills_default_props(schema: Schema) -> None:
    heading = schema.create_block("heading", "Title", level="3")

    assert heading.props == {
        "backgroundColor": "default",
        "textColor": "default",
        "textAlignment": "left",
        "level": 3,
    }
    assert heading.content == (StyledText("Title"),)


def test_invalid_prop_values_raise_structural_error(schema: Schema) -> None:
    with pytest.raises(StructuralError):
        schema.create_block("heading", "Title", level=9)
    with pytest.raises(StructuralError):
        schema.create_block("paragraph", "Text", textAlignment="diagonal")
    with pytest.raises(StructuralError):
        schema.create_block("paragraph", "Text", mood="happy")


def test_content_shape_must_match_block_type(schema: Schema) -> None:
    with pytest.raises(StructuralError):
        schema.create_block("image", "caption text")
    with pytest.raises(StructuralError):
        schema.validate(Block(type="paragraph", props=schema.normalize_props("paragraph"), content=TableContent()))
    with pytest.raises(StructuralError):
        schema.validate(
            Block(
                type="table",
                props=schema.normalize_props("table"),
                content=TableContent(rows=(((styled("a"),), (styled("b"),)), ((styled("c"),),))),
            )
        )


def test_unknown_style_is_a_structural_error(schema: Schema) -> None:
    run = StyledText("x", frozenset({Style.create("sparkle")}))

    with pytest.raises(StructuralError):
        schema.create_block("paragraph", [run])


def test_valued_style_requires_a_value(schema: Schema) -> None:
    run = StyledText("x", frozenset({Style.create("textColor")}))

    with pytest.raises(StructuralError):
        schema.create_block("paragraph", [run])


def test_table_from_cell_strings(schema: Schema) -> None:
    table = schema.create_block("table", [["a", "b"], ["c", "d"]])

    assert isinstance(table.content, TableContent)
    assert table.content.width == 2
    assert table.content.rows[1][0] == (StyledText("c"),)


def test_block_from_dict_round_trips(schema: Schema) -> None:
    original = schema.create_block(
        "checkListItem",
        [styled("Done", "bold")],
        checked=True,
        children=[schema.create_block("paragraph", "Note")],
    )

    restored = schema.block_from_dict(original.to_dict())

    assert restored == original


def test_registered_block_type_flows_through_export_and_import() -> None:
    quote = BlockSpec("quote", "inline", QuoteTemplate(), default_props())
    schema = Schema([*default_block_specs(), quote], default_style_specs())
    block = schema.create_block("quote", "Wise words", textColor="blue")

    external = HTMLExporter(schema).export_blocks([block])
    internal = HTMLExporter(schema).export_blocks([block], simplify_blocks=False)

    assert external == '<blockquote data-text-color="blue">Wise words</blockquote>'
    assert parse_html(external, schema)[0].type == "quote"
    assert parse_html(internal, schema) == [block]


def test_prop_spec_parses_attribute_strings() -> None:
    assert PropSpec(False).parse("true") is True
    assert PropSpec(False).parse("false") is False
    assert PropSpec(512).parse("320") == 320
    with pytest.raises(StructuralError):
        PropSpec(512).parse("wide")


def test_default_schema_registers_built_in_types(schema: Schema) -> None:
    assert schema.block_types == (
        "paragraph",
        "heading",
        "bulletListItem",
        "numberedListItem",
        "checkListItem",
        "image",
        "table",
    )
    assert [style.type for style in schema.styles][:2] == ["bold", "italic"]


def test_list_markup_without_list_item_types_becomes_paragraphs() -> None:
    paragraph_only = Schema(
        [spec for spec in default_block_specs() if spec.type == "paragraph"],
        default_style_specs(),
    )
    logger = NullLogger()

    blocks = parse_html("<ul><li>x</li></ul>", paragraph_only, logger=logger)

    assert [(b.type, b.content) for b in blocks] == [("paragraph", (StyledText("x"),))]
    assert logger.codes() == {"W001"}


def test_contentless_block_must_hold_none(schema: Schema) -> None:
    props = schema.normalize_props("image", {"url": "a.png"})

    with pytest.raises(StructuralError):
        schema.validate(Block(type="image", props=props))

    image = schema.validate(Block(type="image", props=props, content=None))
    internal = HTMLExporter(schema).export_blocks([image], simplify_blocks=False)
    assert parse_html(internal, schema) == [image]
