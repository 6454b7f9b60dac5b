"""Export an editor selection as clipboard payloads.

A selection is exported at one of three granularities, most specific
first: table cells, inline content within a single block, or whole block
subtrees. Each export produces the exact internal HTML, the simplified
external HTML and Markdown derived from the external HTML.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from blockdoc.convert.mapper import (
    content_node_to_inline_content,
    content_node_to_table_content,
    is_nesting_wrapper,
    node_to_block,
)
from blockdoc.dependencies import FormattingDependencies
from blockdoc.html.exporter import HTMLExporter
from blockdoc.markdown.exporter import html_to_markdown
from blockdoc.model.blocks import Block, TableContent, new_block_id
from blockdoc.model.document import (
    BLOCK_CONTAINER,
    BLOCK_GROUP,
    HARD_BREAK,
    DocNode,
    Fragment,
)
from blockdoc.model.selection import CellSelection, NodeSelection, Selection
from blockdoc.schema.defaults import default_schema
from blockdoc.schema.registry import Schema
from blockdoc.utils.logging import NullLogger, WarningLogger

INTERNAL_MIME = "internal-html"
EXTERNAL_MIME = "text/html"
MARKDOWN_MIME = "text/plain"


class ExportGranularity(Enum):
    TABLE = "table"
    INLINE = "inline"
    BLOCKS = "blocks"


@dataclass(frozen=True)
class ClipboardPayload:
    """The three clipboard representations of one selection."""

    internal_html: str
    external_html: str
    markdown: str

    def as_mime_dict(self) -> dict[str, str]:
        return {
            INTERNAL_MIME: self.internal_html,
            EXTERNAL_MIME: self.external_html,
            MARKDOWN_MIME: self.markdown,
        }


class SelectionExporter:
    """Builds clipboard payloads from selections over a document tree.

    The document is only read; deleting a cut range is the caller's job.
    """

    def __init__(
        self,
        schema: Schema | None = None,
        dependencies: FormattingDependencies | None = None,
        logger: WarningLogger | None = None,
    ) -> None:
        self.schema = schema or default_schema()
        self.dependencies = dependencies or FormattingDependencies()
        self.logger = logger or NullLogger()
        self.exporter = HTMLExporter(self.schema)

    def classify(self, selection: Selection) -> ExportGranularity:
        """Return the granularity ``export`` will use for ``selection``."""

        selection = self.expand(selection)
        if isinstance(selection, CellSelection):
            return ExportGranularity.TABLE
        fragment = selection.doc.slice(selection.start, selection.end).content
        for node in fragment:
            if node.type in (BLOCK_CONTAINER, BLOCK_GROUP) or self.schema.has_block(node.type):
                return ExportGranularity.BLOCKS
        return ExportGranularity.INLINE

    def expand(self, selection: Selection) -> Selection:
        """Widen a node selection on block content to its container."""

        if isinstance(selection, NodeSelection) and self.schema.has_block(selection.node.type):
            return NodeSelection(selection.doc, selection.pos - 1)
        return selection

    def export(self, selection: Selection) -> ClipboardPayload:
        """Export ``selection`` as internal HTML, external HTML and Markdown.

        The formatting dependencies are initialized before anything is
        rendered. None of the three writers reads them; the gate only makes a
        failed initialization surface here, ahead of any output, and retry on
        the next export.

        Raises:
            DependencyInitError: If the formatting dependencies cannot be built.
            StructuralError: If the selected nodes do not map to valid blocks.
        """

        self.dependencies.ensure_initialized()
        selection = self.expand(selection)
        granularity = self.classify(selection)

        if granularity is ExportGranularity.TABLE:
            assert isinstance(selection, CellSelection)
            table = self._table_content(selection)
            external_html = self.exporter.export_table_content(table)
            internal_html = self.exporter.export_blocks(
                [self._table_block(selection, table)], simplify_blocks=False
            )
        elif granularity is ExportGranularity.INLINE:
            fragment = selection.doc.slice(selection.start, selection.end).content
            content = content_node_to_inline_content(_inline_nodes(fragment), self.schema)
            external_html = self.exporter.export_inline_content(content)
            internal_html = self.exporter.export_blocks(
                self.fragment_to_blocks(selection.content()), simplify_blocks=False
            )
        else:
            blocks = self.fragment_to_blocks(selection.content())
            external_html = self.exporter.export_blocks(blocks, simplify_blocks=True)
            internal_html = self.exporter.export_blocks(blocks, simplify_blocks=False)

        markdown = html_to_markdown(external_html, logger=self.logger, source="clipboard")
        return ClipboardPayload(
            internal_html=internal_html, external_html=external_html, markdown=markdown
        )

    def fragment_to_blocks(self, fragment: Fragment) -> list[Block]:
        """Map every outermost container of ``fragment`` to a block.

        A container whose first child is a group only exists because the
        selection started inside a nested group; its group's children are
        visited instead.
        """

        blocks: list[Block] = []

        def visit(node: DocNode, _pos: int, _parent: DocNode | None) -> bool:
            if node.type != BLOCK_CONTAINER:
                return True
            if is_nesting_wrapper(node):
                return True
            if node.first_child is not None:
                blocks.append(node_to_block(node, self.schema))
            return False

        fragment.descendants(visit)
        return blocks

    def _table_content(self, selection: CellSelection) -> TableContent:
        fragment = selection.content()
        first = fragment.first_child
        # A fully selected table arrives as the table node itself.
        rows = first.content if first is not None and first.type == "table" else fragment
        return content_node_to_table_content(rows, self.schema)

    def _table_block(self, selection: CellSelection, table: TableContent) -> Block:
        node = selection.table
        container = selection.doc.resolve(selection.table_pos).parent
        return self.schema.validate(
            Block(
                id=str(container.attrs.get("id") or new_block_id()),
                type=node.type,
                props=self.schema.normalize_props(node.type, node.attrs),
                content=table,
            )
        )


def _inline_nodes(fragment: Fragment) -> list[DocNode]:
    """Flatten a fragment to its inline leaves, breaking between textblocks."""

    nodes: list[DocNode] = []
    for node in fragment:
        if node.is_leaf:
            nodes.append(node)
            continue
        leaves: list[DocNode] = []

        def visit(child: DocNode, _pos: int, _parent: DocNode | None) -> bool:
            if child.is_leaf:
                leaves.append(child)
            return True

        node.descendants(visit)
        if nodes and leaves:
            nodes.append(DocNode(type=HARD_BREAK))
        nodes.extend(leaves)
    return nodes


def selection_to_clipboard(
    selection: Selection,
    schema: Schema | None = None,
    *,
    dependencies: FormattingDependencies | None = None,
    logger: WarningLogger | None = None,
) -> ClipboardPayload:
    return SelectionExporter(schema, dependencies, logger).export(selection)


__all__ = [
    "ClipboardPayload",
    "ExportGranularity",
    "SelectionExporter",
    "selection_to_clipboard",
]
