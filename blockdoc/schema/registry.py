"""Block schema registry.

The schema is the only place that knows which block types, props and styles
exist. Mapper, exporter and importer resolve everything through it, so a new
block type only needs a ``BlockSpec`` with a template.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Literal, Mapping, Sequence

from bs4 import Tag

from blockdoc.errors import SchemaError, StructuralError
from blockdoc.model.blocks import (
    Block,
    BlockContent,
    InlineContent,
    Link,
    Style,
    StyledText,
    TableContent,
    merge_runs,
    new_block_id,
)
from blockdoc.schema.templates import BlockTemplate, escape_attr

ContentKind = Literal["inline", "table", "none"]

_TRUE_VALUES = {"true", "1", "yes", "on"}
_FALSE_VALUES = {"false", "0", "no", "off", ""}


@dataclass(frozen=True)
class PropSpec:
    """Declared prop with a default; the default's type is the prop's type."""

    default: str | int | bool
    values: tuple[Any, ...] | None = None

    def parse(self, raw: Any) -> Any:
        """Convert ``raw`` (often an HTML attribute string) to the prop type."""

        value: Any = raw
        if isinstance(self.default, bool):
            if isinstance(raw, str):
                lowered = raw.strip().lower()
                if lowered in _TRUE_VALUES:
                    value = True
                elif lowered in _FALSE_VALUES:
                    value = False
                else:
                    raise StructuralError(f"invalid boolean value {raw!r}")
            elif not isinstance(raw, bool):
                raise StructuralError(f"invalid boolean value {raw!r}")
        elif isinstance(self.default, int):
            if isinstance(raw, bool):
                raise StructuralError(f"invalid integer value {raw!r}")
            try:
                value = int(raw)
            except (TypeError, ValueError) as exc:
                raise StructuralError(f"invalid integer value {raw!r}") from exc
        elif not isinstance(raw, str):
            raise StructuralError(f"invalid string value {raw!r}")

        if self.values is not None and value not in self.values:
            raise StructuralError(
                f"value {value!r} is not one of {', '.join(map(str, self.values))}"
            )
        return value


@dataclass(frozen=True)
class StyleSpec:
    """Inline style and its HTML mapping.

    Boolean styles (``prop is None``) render as ``<tag>``; valued styles
    render as ``<span attribute="value">``.
    """

    type: str
    tag: str
    attribute: str | None = None
    prop: str | None = None
    parse_tags: tuple[str, ...] = ()
    css_property: str | None = None

    @property
    def is_boolean(self) -> bool:
        return self.prop is None

    def opening_tag(self, style: Style) -> str:
        if self.attribute is None:
            return f"<{self.tag}>"
        return f'<{self.tag} {self.attribute}="{escape_attr(style.value or "")}">'

    def closing_tag(self) -> str:
        return f"</{self.tag}>"


@dataclass(frozen=True)
class BlockSpec:
    """Registered block type."""

    type: str
    content: ContentKind
    template: BlockTemplate
    props: Mapping[str, PropSpec] = field(default_factory=dict)

    @property
    def is_list_item(self) -> bool:
        return self.template.list_tag is not None

    def default_props(self) -> dict[str, Any]:
        return {name: spec.default for name, spec in self.props.items()}


class Schema:
    """Resolved registry of block and style specs."""

    def __init__(self, blocks: Iterable[BlockSpec], styles: Iterable[StyleSpec]) -> None:
        self._blocks: dict[str, BlockSpec] = {}
        for spec in blocks:
            if spec.type in self._blocks:
                raise SchemaError(f"block type {spec.type!r} registered twice")
            self._blocks[spec.type] = spec

        self._styles: dict[str, StyleSpec] = {}
        for style in styles:
            if style.type in self._styles:
                raise SchemaError(f"style {style.type!r} registered twice")
            self._styles[style.type] = style
        self._style_order = {name: index for index, name in enumerate(self._styles)}

        self._tag_index: dict[str, list[BlockSpec]] = {}
        self._list_index: dict[str, list[BlockSpec]] = {}
        for spec in self._blocks.values():
            list_tag = spec.template.list_tag
            if list_tag is not None:
                self._list_index.setdefault(list_tag, []).append(spec)
                continue
            for tag in spec.template.tags:
                self._tag_index.setdefault(tag, []).append(spec)

        self._style_tags: dict[str, list[StyleSpec]] = {}
        for style in self._styles.values():
            for tag in style.parse_tags or (style.tag,):
                self._style_tags.setdefault(tag, []).append(style)

    @property
    def block_types(self) -> tuple[str, ...]:
        return tuple(self._blocks)

    @property
    def styles(self) -> tuple[StyleSpec, ...]:
        return tuple(self._styles.values())

    @property
    def list_tags(self) -> tuple[str, ...]:
        return tuple(self._list_index)

    def has_block(self, type: str) -> bool:
        return type in self._blocks

    def spec(self, type: str) -> BlockSpec:
        try:
            return self._blocks[type]
        except KeyError as exc:
            raise SchemaError(f"unknown block type {type!r}") from exc

    def style_spec(self, type: str) -> StyleSpec:
        try:
            return self._styles[type]
        except KeyError as exc:
            raise StructuralError(f"unknown style {type!r}") from exc

    def style_rank(self, style: Style) -> int:
        return self._style_order.get(style.type, len(self._style_order))

    def sorted_styles(self, styles: Iterable[Style]) -> list[Style]:
        """Return styles in canonical nesting order, outermost first."""

        return sorted(styles, key=lambda style: (self.style_rank(style), style.props))

    # HTML lookups -----------------------------------------------------

    def match_element(self, element: Tag) -> BlockSpec | None:
        for spec in self._tag_index.get(element.name, ()):
            if spec.template.matches(element):
                return spec
        return None

    def match_list_item(self, list_tag: str, item: Tag) -> BlockSpec | None:
        candidates = self._list_index.get(list_tag, ())
        for spec in candidates:
            if spec.template.matches(item):
                return spec
        return candidates[0] if candidates else None

    def styles_for_element(self, element: Tag) -> list[Style]:
        """Return the styles an inline element applies, possibly none."""

        found: list[Style] = []
        for style in self._style_tags.get(element.name, ()):
            if style.is_boolean:
                found.append(Style.create(style.type))
                continue
            value = element.get(style.attribute) if style.attribute else None
            if not value and style.css_property:
                value = _css_value(str(element.get("style") or ""), style.css_property)
            if value:
                found.append(Style.create(style.type, **{style.prop: str(value)}))
        return found

    # Validation -------------------------------------------------------

    def normalize_props(self, type: str, props: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """Fill defaults and parse values; unknown props raise ``StructuralError``."""

        spec = self.spec(type)
        normalized = spec.default_props()
        for name, raw in (props or {}).items():
            prop = spec.props.get(name)
            if prop is None:
                raise StructuralError(f"{type!r} blocks have no prop {name!r}")
            try:
                normalized[name] = prop.parse(raw)
            except StructuralError as exc:
                raise StructuralError(f"{type!r} prop {name!r}: {exc}") from exc
        return normalized

    def validate(self, block: Block) -> Block:
        """Check ``block`` and its subtree against the schema and return it."""

        spec = self.spec(block.type)
        self.normalize_props(block.type, block.props)
        missing = set(spec.props) - set(block.props)
        if missing:
            raise StructuralError(
                f"{block.type!r} block is missing props {', '.join(sorted(missing))}"
            )
        self._check_content(spec, block.content)
        for child in block.children:
            self.validate(child)
        return block

    def _check_content(self, spec: BlockSpec, content: BlockContent) -> None:
        if spec.content == "none":
            if content is not None:
                raise StructuralError(f"{spec.type!r} blocks have no content")
            return
        if spec.content == "table":
            if not isinstance(content, TableContent):
                raise StructuralError(f"{spec.type!r} blocks need table content")
            if not content.is_rectangular():
                raise StructuralError(f"{spec.type!r} rows must have equal cell counts")
            for row in content.rows:
                for cell in row:
                    self.check_inline_content(cell)
            return
        if not isinstance(content, tuple):
            raise StructuralError(f"{spec.type!r} blocks need inline content")
        self.check_inline_content(content)

    def check_inline_content(self, content: Sequence[InlineContent]) -> None:
        for item in content:
            runs = item.content if isinstance(item, Link) else (item,)
            if not isinstance(item, (Link, StyledText)):
                raise StructuralError(f"unexpected inline content {item!r}")
            for run in runs:
                for style in run.styles:
                    style_spec = self.style_spec(style.type)
                    if style_spec.is_boolean and style.props:
                        raise StructuralError(f"style {style.type!r} takes no props")
                    if not style_spec.is_boolean and not style.value:
                        raise StructuralError(f"style {style.type!r} needs a value")

    # Construction -----------------------------------------------------

    def create_block(
        self,
        type: str,
        content: Any = None,
        *,
        props: Mapping[str, Any] | None = None,
        children: Iterable[Block] = (),
        id: str | None = None,
        **prop_values: Any,
    ) -> Block:
        """Build a validated block, filling default props.

        ``content`` may be a plain string, a sequence of inline content, a
        ``TableContent`` or a list of rows of cell strings.
        """

        spec = self.spec(type)
        merged_props = {**(props or {}), **prop_values}
        block = Block(
            id=id or new_block_id(),
            type=type,
            props=self.normalize_props(type, merged_props),
            content=self._coerce_content(spec, content),
            children=tuple(children),
        )
        return self.validate(block)

    def _coerce_content(self, spec: BlockSpec, content: Any) -> BlockContent:
        if spec.content == "none":
            if content:
                raise StructuralError(f"{spec.type!r} blocks have no content")
            return None
        if spec.content == "table":
            if content is None:
                return TableContent()
            if isinstance(content, TableContent):
                return content
            return TableContent(
                rows=tuple(
                    tuple(_inline_from_value(cell) for cell in row) for row in content
                )
            )
        if isinstance(content, TableContent):
            raise StructuralError(f"{spec.type!r} blocks need inline content")
        return _inline_from_value(content)

    def block_from_dict(self, payload: Mapping[str, Any]) -> Block:
        """Build a block from its ``Block.to_dict`` form."""

        try:
            type = payload["type"]
        except KeyError as exc:
            raise StructuralError("block payload needs a type") from exc
        spec = self.spec(type)
        raw_content = payload.get("content")
        content: Any
        if spec.content == "table" and isinstance(raw_content, Mapping):
            content = TableContent(
                rows=tuple(
                    tuple(_inline_from_value(cell) for cell in row.get("cells", ()))
                    for row in raw_content.get("rows", ())
                )
            )
        else:
            content = raw_content
        return self.create_block(
            type,
            content,
            props=payload.get("props") or {},
            children=[self.block_from_dict(child) for child in payload.get("children") or ()],
            id=payload.get("id") or None,
        )

    def blocks_from_dicts(self, payloads: Iterable[Mapping[str, Any]]) -> list[Block]:
        return [self.block_from_dict(payload) for payload in payloads]


def _inline_from_value(value: Any) -> tuple[InlineContent, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return merge_runs((StyledText(text=value),))
    items: list[InlineContent] = []
    for item in value:
        if isinstance(item, (StyledText, Link)):
            items.append(item)
        elif isinstance(item, str):
            items.append(StyledText(text=item))
        elif isinstance(item, Mapping):
            items.append(_inline_from_dict(item))
        else:
            raise StructuralError(f"unexpected inline content {item!r}")
    return merge_runs(items)


def _inline_from_dict(payload: Mapping[str, Any]) -> InlineContent:
    kind = payload.get("type", "text")
    if kind == "link":
        runs = _inline_from_value(payload.get("content") or ())
        return Link(
            href=str(payload.get("href", "")),
            content=tuple(run for run in runs if isinstance(run, StyledText)),
        )
    if kind != "text":
        raise StructuralError(f"unknown inline content type {kind!r}")
    styles = frozenset(
        Style.create(style["type"], **dict(style.get("props") or {}))
        for style in payload.get("styles") or ()
    )
    return StyledText(text=str(payload.get("text", "")), styles=styles)


def _css_value(style: str, name: str) -> str | None:
    for declaration in style.split(";"):
        key, _, value = declaration.partition(":")
        if key.strip().lower() == name and value.strip():
            return value.strip()
    return None


__all__ = ["BlockSpec", "ContentKind", "PropSpec", "Schema", "StyleSpec"]
