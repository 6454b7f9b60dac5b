"""Built-in block types and styles."""

from __future__ import annotations

from functools import lru_cache

from blockdoc.schema.registry import BlockSpec, PropSpec, Schema, StyleSpec
from blockdoc.schema.templates import (
    HeadingTemplate,
    ImageTemplate,
    ListItemTemplate,
    ParagraphTemplate,
    TableTemplate,
)

TEXT_ALIGNMENTS = ("left", "center", "right", "justify")


def default_props() -> dict[str, PropSpec]:
    """Props every text-bearing block carries."""

    return {
        "backgroundColor": PropSpec("default"),
        "textColor": PropSpec("default"),
        "textAlignment": PropSpec("left", values=TEXT_ALIGNMENTS),
    }


def default_block_specs() -> list[BlockSpec]:
    return [
        BlockSpec("paragraph", "inline", ParagraphTemplate(), default_props()),
        BlockSpec(
            "heading",
            "inline",
            HeadingTemplate(),
            {**default_props(), "level": PropSpec(1, values=(1, 2, 3, 4, 5, 6))},
        ),
        BlockSpec("bulletListItem", "inline", ListItemTemplate("ul"), default_props()),
        BlockSpec("numberedListItem", "inline", ListItemTemplate("ol"), default_props()),
        BlockSpec(
            "checkListItem",
            "inline",
            ListItemTemplate("ul", checkable=True),
            {**default_props(), "checked": PropSpec(False)},
        ),
        BlockSpec(
            "image",
            "none",
            ImageTemplate(),
            {
                "backgroundColor": PropSpec("default"),
                "textAlignment": PropSpec("left", values=TEXT_ALIGNMENTS),
                "url": PropSpec(""),
                "caption": PropSpec(""),
                "width": PropSpec(512),
            },
        ),
        BlockSpec(
            "table",
            "table",
            TableTemplate(),
            {
                "backgroundColor": PropSpec("default"),
                "textColor": PropSpec("default"),
            },
        ),
    ]


def default_style_specs() -> list[StyleSpec]:
    """Styles in canonical nesting order, outermost first."""

    return [
        StyleSpec("bold", "strong", parse_tags=("strong", "b")),
        StyleSpec("italic", "em", parse_tags=("em", "i")),
        StyleSpec("underline", "u", parse_tags=("u", "ins")),
        StyleSpec("strike", "s", parse_tags=("s", "del", "strike")),
        StyleSpec("code", "code", parse_tags=("code",)),
        StyleSpec(
            "textColor",
            "span",
            attribute="data-text-color",
            prop="color",
            css_property="color",
        ),
        StyleSpec(
            "backgroundColor",
            "span",
            attribute="data-background-color",
            prop="color",
            css_property="background-color",
        ),
    ]


@lru_cache(maxsize=1)
def default_schema() -> Schema:
    """Return the shared, immutable default schema."""

    return Schema(default_block_specs(), default_style_specs())


__all__ = ["default_block_specs", "default_props", "default_schema", "default_style_specs"]
