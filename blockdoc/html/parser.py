"""HTML importer producing block trees.

Import is total: internal markup (the exporter's wrapper divs) is read
exactly, known semantic tags resolve through the schema's templates and
anything else degrades to paragraphs. Only schema misuse raises.
"""

from __future__ import annotations

import re
from dataclasses import replace
from typing import Any, Iterable, List

from bs4 import BeautifulSoup
from bs4.element import (
    CData,
    Comment,
    Declaration,
    Doctype,
    NavigableString,
    ProcessingInstruction,
    Tag,
)

from blockdoc.errors import StructuralError
from blockdoc.html.exporter import INLINE_CLASS
from blockdoc.model.blocks import (
    Block,
    InlineContent,
    Link,
    Style,
    StyledText,
    TableContent,
    merge_runs,
    new_block_id,
)
from blockdoc.schema.defaults import default_schema
from blockdoc.schema.registry import BlockSpec, Schema
from blockdoc.schema.templates import data_attribute
from blockdoc.utils.logging import NullLogger, WarningLogger

DEFAULT_BLOCK = "paragraph"

SKIP_TAGS = frozenset(
    {"head", "script", "style", "title", "meta", "link", "template", "noscript", "input"}
)
BLOCK_TAGS = frozenset(
    {
        "address", "article", "aside", "blockquote", "body", "dd", "details", "dialog",
        "div", "dl", "dt", "fieldset", "figcaption", "figure", "footer", "form", "h1",
        "h2", "h3", "h4", "h5", "h6", "header", "hr", "html", "li", "main", "nav", "ol",
        "p", "pre", "section", "summary", "table", "tbody", "td", "tfoot", "th", "thead",
        "tr", "ul",
    }
)
# Structural wrappers that are expected and not worth a warning.
TRANSPARENT_TAGS = frozenset(
    {"html", "body", "div", "section", "article", "main", "header", "footer", "span"}
)
IGNORED_STRINGS = (Comment, Declaration, Doctype, CData, ProcessingInstruction)
_WHITESPACE_RE = re.compile(r"[ \t\r\n\f]+")


def parse_html(
    html: str,
    schema: Schema | None = None,
    *,
    logger: WarningLogger | None = None,
    source: str = "html",
    features: str = "html.parser",
) -> list[Block]:
    """Parse HTML (internal or external) into a list of blocks."""

    soup = BeautifulSoup(html, features)
    importer = _Importer(schema or default_schema(), logger or NullLogger(), source)
    root = soup.body if soup.body is not None else soup
    return importer.blocks(root.children)


class _Importer:
    def __init__(self, schema: Schema, logger: WarningLogger, source: str) -> None:
        self.schema = schema
        self.logger = logger
        self.source = source

    # Block level --------------------------------------------------------

    def blocks(self, nodes: Iterable[Any]) -> list[Block]:
        blocks: List[Block] = []
        pending: list[Any] = []
        for node in nodes:
            if isinstance(node, IGNORED_STRINGS):
                continue
            if isinstance(node, NavigableString):
                pending.append(node)
                continue
            if not isinstance(node, Tag) or node.name in SKIP_TAGS:
                continue
            if self._is_block(node):
                blocks.extend(self._paragraph_from(pending))
                pending = []
                blocks.extend(self.block(node))
            else:
                pending.append(node)
        blocks.extend(self._paragraph_from(pending))
        return blocks

    def block(self, tag: Tag) -> list[Block]:
        node_type = tag.get("data-node-type")
        if node_type == "blockGroup":
            return self.internal_group(tag)
        if node_type == "blockContainer":
            return self.internal_container(tag)
        if node_type == "blockOuter":
            return self.internal_group(tag)

        if tag.name in self.schema.list_tags:
            return self.list_items(tag)
        if tag.name == "li" and self.schema.list_tags:
            spec = self.schema.match_list_item(self.schema.list_tags[0], tag)
            if spec is not None:
                return [self.list_item(spec, tag)]

        spec = self.schema.match_element(tag)
        if spec is not None:
            return self.external_block(spec, tag)

        if any(isinstance(child, Tag) and self._is_block(child) for child in tag.children):
            return self.blocks(tag.children)

        if tag.name not in TRANSPARENT_TAGS:
            self.logger.warn(
                source=self.source,
                element_type=tag.name,
                message=f"unsupported <{tag.name}> imported as a paragraph",
                code="unknown-markup",
            )
        content = self.inline(tag.children, preserve=tag.name == "pre")
        if not content:
            return []
        return [self._block(DEFAULT_BLOCK, {}, content)]

    def external_block(self, spec: BlockSpec, tag: Tag) -> list[Block]:
        props = self._props(spec, spec.template.parse(tag))
        extra: list[Block] = []
        content: Any = None
        if spec.content == "inline":
            element = spec.template.content_element(tag)
            content = self.inline(element.children if element is not None else ())
            if element is not None:
                extra = self._images_in(element)
            if extra and not content:
                return extra
        elif spec.content == "table":
            content = self.table(tag)
        return [self._block(spec.type, props, content), *extra]

    def list_items(self, tag: Tag) -> list[Block]:
        items: list[Block] = []
        for child in tag.children:
            if isinstance(child, IGNORED_STRINGS):
                continue
            if isinstance(child, NavigableString):
                if str(child).strip():
                    items.extend(self.blocks([child]))
                continue
            if not isinstance(child, Tag):
                continue
            if child.name == "li":
                spec = self.schema.match_list_item(tag.name, child)
                if spec is not None:
                    items.append(self.list_item(spec, child))
                    continue
            if child.name in self.schema.list_tags and items:
                # A list nested directly in a list belongs to the previous item.
                previous = items[-1]
                items[-1] = replace(
                    previous, children=previous.children + tuple(self.list_items(child))
                )
                continue
            items.extend(self.block(child))
        return items

    def list_item(self, spec: BlockSpec, tag: Tag) -> Block:
        props = self._props(spec, spec.template.parse(tag))
        element = spec.template.content_element(tag)
        if element is not None:
            content = self.inline(element.children)
            rest = [child for child in tag.children if child is not element]
            extra = self._images_in(element)
        else:
            inline_nodes: list[Any] = []
            rest = []
            for child in tag.children:
                if not rest and not (isinstance(child, Tag) and self._is_block(child)):
                    inline_nodes.append(child)
                else:
                    rest.append(child)
            content = self.inline(inline_nodes)
            extra = []
        children = extra + self.blocks(rest)
        return self._block(spec.type, props, content, children)

    # Internal markup ----------------------------------------------------

    def internal_group(self, tag: Tag) -> list[Block]:
        blocks: list[Block] = []
        for child in tag.children:
            if isinstance(child, Tag):
                blocks.extend(self.block(child))
        return blocks

    def internal_container(self, tag: Tag) -> list[Block]:
        content_div: Tag | None = None
        group_div: Tag | None = None
        for child in tag.children:
            if not isinstance(child, Tag):
                continue
            if content_div is None and child.has_attr("data-content-type"):
                content_div = child
            elif child.get("data-node-type") == "blockGroup":
                group_div = child

        if content_div is None:
            # A container without content only wraps nested blocks.
            return self.internal_group(group_div) if group_div is not None else []

        block_type = str(content_div["data-content-type"])
        children = self.internal_group(group_div) if group_div is not None else []
        if not self.schema.has_block(block_type):
            self.logger.warn(
                source=self.source,
                element_type=block_type,
                message=f"unknown block type {block_type!r} imported as a paragraph",
                code="unknown-markup",
            )
            content = self.inline(content_div.children, preserve=True)
            return [self._block(DEFAULT_BLOCK, {}, content, children)]

        spec = self.schema.spec(block_type)
        raw = {
            name: content_div[data_attribute(name)]
            for name in spec.props
            if content_div.has_attr(data_attribute(name))
        }
        props = self._props(spec, raw)
        content: Any = None
        if spec.content == "inline":
            element = content_div.find(class_=INLINE_CLASS) or content_div
            content = self.inline(element.children, preserve=True)
        elif spec.content == "table":
            table = content_div.find("table")
            content = self.table(table, preserve=True) if isinstance(table, Tag) else TableContent()
        block = self._block(spec.type, props, content, children)
        return [replace(block, id=str(tag.get("data-id") or block.id))]

    # Content --------------------------------------------------------------

    def table(self, tag: Tag, *, preserve: bool = False) -> TableContent:
        rows: list[tuple[tuple[InlineContent, ...], ...]] = []
        for row in tag.find_all("tr"):
            cells = row.find_all(["td", "th"], recursive=False)
            rows.append(tuple(self.inline(cell.children, preserve=preserve) for cell in cells))
        table = TableContent(rows=tuple(rows))
        if not table.is_rectangular():
            self.logger.warn(
                source=self.source,
                element_type="table",
                message="table rows have different lengths; padding short rows",
                code="table-padded",
            )
            table = table.padded()
        return table

    def inline(self, nodes: Iterable[Any], *, preserve: bool = False) -> tuple[InlineContent, ...]:
        collector = _InlineCollector(self.schema, preserve)
        collector.collect(nodes, frozenset(), None)
        return collector.result()

    def _images_in(self, element: Tag) -> list[Block]:
        images: list[Block] = []
        for image in element.find_all("img"):
            spec = self.schema.match_element(image)
            if spec is not None:
                images.extend(self.external_block(spec, image))
        return images

    def _paragraph_from(self, nodes: list[Any]) -> list[Block]:
        if not nodes:
            return []
        content = self.inline(nodes)
        images: list[Block] = []
        for node in nodes:
            if not isinstance(node, Tag):
                continue
            spec = self.schema.match_element(node) if node.name == "img" else None
            if spec is not None:
                images.extend(self.external_block(spec, node))
            else:
                images.extend(self._images_in(node))
        blocks = [self._block(DEFAULT_BLOCK, {}, content)] if content else []
        return blocks + images

    # Helpers ----------------------------------------------------------------

    def _props(self, spec: BlockSpec, raw: dict[str, Any]) -> dict[str, Any]:
        valid: dict[str, Any] = {}
        for name, value in raw.items():
            prop = spec.props.get(name)
            if prop is None:
                continue
            try:
                valid[name] = prop.parse(value)
            except StructuralError as exc:
                self.logger.warn(
                    source=self.source,
                    element_type=spec.type,
                    message=f"ignoring prop {name!r}: {exc}",
                    code="structural-error",
                )
        return self.schema.normalize_props(spec.type, valid)

    def _block(
        self,
        type: str,
        props: dict[str, Any],
        content: Any,
        children: Iterable[Block] = (),
    ) -> Block:
        spec = self.schema.spec(type)
        if spec.content == "none":
            content = None
        block = Block(
            id=new_block_id(),
            type=type,
            props=self.schema.normalize_props(type, props),
            content=content,
            children=tuple(children),
        )
        return self.schema.validate(block)

    def _is_block(self, tag: Tag) -> bool:
        if tag.has_attr("data-node-type") or tag.has_attr("data-content-type"):
            return True
        if tag.name == "img":
            return False
        return tag.name in BLOCK_TAGS or self.schema.match_element(tag) is not None


class _InlineCollector:
    """Accumulates styled runs while walking inline markup."""

    def __init__(self, schema: Schema, preserve: bool) -> None:
        self.schema = schema
        self.preserve = preserve
        self.items: list[InlineContent] = []
        self._last = ""

    def collect(self, nodes: Iterable[Any], styles: frozenset[Style], href: str | None) -> None:
        for node in nodes:
            if isinstance(node, IGNORED_STRINGS):
                continue
            if isinstance(node, NavigableString):
                self.text(str(node), styles, href)
                continue
            if not isinstance(node, Tag) or node.name in SKIP_TAGS or node.name == "img":
                continue
            if node.name == "br":
                self.text("\n", styles, href, literal=True)
                continue
            if node.name == "a" and node.has_attr("href"):
                self.collect(node.children, styles, str(node["href"]))
                continue
            self.collect(node.children, _apply(styles, self.schema.styles_for_element(node)), href)

    def text(
        self, text: str, styles: frozenset[Style], href: str | None, *, literal: bool = False
    ) -> None:
        if not self.preserve and not literal:
            text = _WHITESPACE_RE.sub(" ", text)
            if text.startswith(" ") and self._last in ("", " ", "\n"):
                text = text[1:]
        if not text:
            return
        self._last = text[-1]
        run = StyledText(text=text, styles=styles)
        self.items.append(Link(href=href, content=(run,)) if href is not None else run)

    def result(self) -> tuple[InlineContent, ...]:
        items = list(merge_runs(self.items))
        if self.preserve or not items:
            return tuple(items)
        items[-1] = _rstrip(items[-1])
        return merge_runs(items)


def _apply(styles: frozenset[Style], extra: list[Style]) -> frozenset[Style]:
    if not extra:
        return styles
    replaced = {style.type for style in extra}
    return frozenset({style for style in styles if style.type not in replaced} | set(extra))


def _rstrip(item: InlineContent) -> InlineContent:
    if isinstance(item, Link):
        if not item.content:
            return item
        last = item.content[-1]
        return Link(
            href=item.href,
            content=item.content[:-1] + (StyledText(last.text.rstrip(" "), last.styles),),
        )
    return StyledText(item.text.rstrip(" "), item.styles)


__all__ = ["BLOCK_TAGS", "IGNORED_STRINGS", "SKIP_TAGS", "parse_html"]
