"""Translate between the canonical block tree and the document tree.

The document tree wraps every block in a ``blockContainer`` holding one
block-content node optionally followed by a ``blockGroup`` of nested
containers. This module is the only place that knows about that wrapping.
"""

from __future__ import annotations

from typing import Iterable, Sequence, Union

from blockdoc.errors import StructuralError
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
from blockdoc.model.document import (
    BLOCK_CONTAINER,
    BLOCK_GROUP,
    DOC,
    HARD_BREAK,
    TABLE_CELL,
    TABLE_PARAGRAPH,
    TABLE_ROW,
    DocNode,
    Fragment,
    Mark,
)
from blockdoc.schema.registry import Schema

LINK_MARK = "link"

NodeSource = Union[DocNode, Fragment, Sequence[DocNode]]


def _nodes_of(source: NodeSource) -> tuple[DocNode, ...]:
    if isinstance(source, DocNode):
        return source.content
    if isinstance(source, Fragment):
        return source.nodes
    return tuple(source)


def is_nesting_wrapper(node: DocNode) -> bool:
    """True for a container whose first child is a group.

    Such containers appear when a selection starts inside a nested group;
    they carry no content of their own.
    """

    first = node.first_child
    return node.type == BLOCK_CONTAINER and first is not None and first.type == BLOCK_GROUP


# Document tree -> blocks -------------------------------------------------


def node_to_block(node: DocNode, schema: Schema) -> Block:
    """Map a ``blockContainer`` node (and its nested group) to a block."""

    if node.type != BLOCK_CONTAINER:
        raise StructuralError(f"expected a {BLOCK_CONTAINER} node, got {node.type!r}")
    content_node = node.first_child
    if content_node is None:
        raise StructuralError("block container has no content node")
    if content_node.type == BLOCK_GROUP:
        raise StructuralError(
            "block container starts with a group; map the group's children instead"
        )
    if not schema.has_block(content_node.type):
        raise StructuralError(f"unknown block content node {content_node.type!r}")

    spec = schema.spec(content_node.type)
    if spec.content == "inline":
        content = content_node_to_inline_content(content_node, schema)
    elif spec.content == "table":
        content = content_node_to_table_content(content_node, schema)
    else:
        if content_node.content:
            raise StructuralError(f"{spec.type!r} content node must be empty")
        content = None

    rest = node.content[1:]
    if len(rest) > 1 or (rest and rest[0].type != BLOCK_GROUP):
        raise StructuralError(
            "block container may only hold a content node and one block group"
        )
    children = tuple(node_to_block(child, schema) for child in rest[0].content) if rest else ()

    block = Block(
        id=str(node.attrs.get("id") or new_block_id()),
        type=spec.type,
        props=schema.normalize_props(spec.type, content_node.attrs),
        content=content,
        children=children,
    )
    return schema.validate(block)


def doc_to_blocks(doc: DocNode, schema: Schema) -> list[Block]:
    """Map a whole document to its top-level blocks."""

    blocks: list[Block] = []
    for group in doc.content:
        if group.type != BLOCK_GROUP:
            raise StructuralError(f"document children must be {BLOCK_GROUP} nodes")
        blocks.extend(node_to_block(container, schema) for container in group.content)
    return blocks


def content_node_to_inline_content(source: NodeSource, schema: Schema) -> tuple[InlineContent, ...]:
    """Convert a flat run of inline nodes into inline content.

    Marks become styles, ``link`` marks group runs into ``Link`` elements and
    hard breaks become newlines in the current run. Run order is kept.
    """

    items: list[InlineContent] = []
    for node in _nodes_of(source):
        if node.type == HARD_BREAK:
            _append_text(items, "\n", None, None)
            continue
        if not node.is_text:
            raise StructuralError(f"unexpected {node.type!r} node in inline content")

        href: str | None = None
        styles: set[Style] = set()
        for mark in node.marks:
            if mark.type == LINK_MARK:
                href = mark.attr("href", "") or ""
                continue
            schema.style_spec(mark.type)
            styles.add(Style(type=mark.type, props=mark.attrs))
        _append_text(items, node.text or "", frozenset(styles), href)
    return merge_runs(items)


def _append_text(
    items: list[InlineContent],
    text: str,
    styles: frozenset[Style] | None,
    href: str | None,
) -> None:
    # A hard break (styles is None) extends whatever run came before it.
    previous = items[-1] if items else None
    if styles is None:
        if isinstance(previous, Link) and previous.content:
            last = previous.content[-1]
            items[-1] = Link(
                href=previous.href,
                content=previous.content[:-1] + (StyledText(last.text + text, last.styles),),
            )
        elif isinstance(previous, StyledText):
            items[-1] = StyledText(previous.text + text, previous.styles)
        else:
            items.append(StyledText(text=text))
        return

    run = StyledText(text=text, styles=styles)
    if href is None:
        items.append(run)
    elif isinstance(previous, Link) and previous.href == href:
        items[-1] = Link(href=href, content=previous.content + (run,))
    else:
        items.append(Link(href=href, content=(run,)))


def content_node_to_table_content(source: NodeSource, schema: Schema) -> TableContent:
    """Convert table rows into table content.

    ``source`` must be the content of a table (its rows), not the table node
    itself; callers holding a whole table pass ``table.content``.
    """

    rows: list[tuple[tuple[InlineContent, ...], ...]] = []
    for row in _nodes_of(source):
        if row.type != TABLE_ROW:
            raise StructuralError(f"expected {TABLE_ROW} nodes, got {row.type!r}")
        cells: list[tuple[InlineContent, ...]] = []
        for cell in row.content:
            if cell.type != TABLE_CELL:
                raise StructuralError(f"expected {TABLE_CELL} nodes, got {cell.type!r}")
            inline: list[InlineContent] = []
            for paragraph in cell.content:
                if inline:
                    inline.append(StyledText(text="\n"))
                inline.extend(content_node_to_inline_content(paragraph, schema))
            cells.append(merge_runs(inline))
        rows.append(tuple(cells))
    return TableContent(rows=tuple(rows)).padded()


# Blocks -> document tree -------------------------------------------------


def block_to_node(block: Block, schema: Schema) -> DocNode:
    """Wrap a validated block in its container/content/group nodes."""

    spec = schema.spec(block.type)
    schema.validate(block)
    if spec.content == "inline":
        inner = inline_content_to_nodes(block.content or ())  # type: ignore[arg-type]
    elif spec.content == "table":
        inner = table_content_to_nodes(block.content)  # type: ignore[arg-type]
    else:
        inner = ()
    nodes: list[DocNode] = [DocNode(type=block.type, attrs=dict(block.props), content=inner)]
    if block.children:
        nodes.append(
            DocNode(
                type=BLOCK_GROUP,
                content=tuple(block_to_node(child, schema) for child in block.children),
            )
        )
    return DocNode(type=BLOCK_CONTAINER, attrs={"id": block.id}, content=tuple(nodes))


def blocks_to_doc(blocks: Iterable[Block], schema: Schema) -> DocNode:
    group = DocNode(
        type=BLOCK_GROUP, content=tuple(block_to_node(block, schema) for block in blocks)
    )
    return DocNode(type=DOC, content=(group,))


def inline_content_to_nodes(content: Iterable[InlineContent]) -> tuple[DocNode, ...]:
    nodes: list[DocNode] = []
    for item in merge_runs(content):
        if isinstance(item, Link):
            link = Mark.create(LINK_MARK, href=item.href)
            for run in item.content:
                nodes.extend(_text_nodes(run, (link,)))
        else:
            nodes.extend(_text_nodes(item, ()))
    return tuple(nodes)


def _text_nodes(run: StyledText, extra: tuple[Mark, ...]) -> list[DocNode]:
    marks = tuple(Mark(type=style.type, attrs=style.props) for style in sorted(run.styles))
    marks += extra
    nodes: list[DocNode] = []
    for index, part in enumerate(run.text.split("\n")):
        if index:
            nodes.append(DocNode(type=HARD_BREAK))
        if part:
            nodes.append(DocNode.text_node(part, marks))
    return nodes


def table_content_to_nodes(table: TableContent) -> tuple[DocNode, ...]:
    return tuple(
        DocNode(
            type=TABLE_ROW,
            content=tuple(
                DocNode(
                    type=TABLE_CELL,
                    content=(
                        DocNode(type=TABLE_PARAGRAPH, content=inline_content_to_nodes(cell)),
                    ),
                )
                for cell in row
            ),
        )
        for row in table.rows
    )


__all__ = [
    "LINK_MARK",
    "block_to_node",
    "blocks_to_doc",
    "content_node_to_inline_content",
    "content_node_to_table_content",
    "doc_to_blocks",
    "inline_content_to_nodes",
    "is_nesting_wrapper",
    "node_to_block",
    "table_content_to_nodes",
]
