"""Selections over a ``DocNode`` document.

The editing surface owns selections; the conversion core only reads them.
``content()`` returns the fragment the surface would put on the clipboard.
"""

from __future__ import annotations

from dataclasses import dataclass

from blockdoc.errors import StructuralError
from blockdoc.model.document import TABLE_ROW, DocNode, Fragment


@dataclass(frozen=True)
class TextSelection:
    """Range between two positions, which may cross block boundaries."""

    doc: DocNode
    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start > self.end:
            start, end = self.end, self.start
            object.__setattr__(self, "start", start)
            object.__setattr__(self, "end", end)

    @property
    def empty(self) -> bool:
        return self.start == self.end

    def content(self) -> Fragment:
        return self.doc.slice(self.start, self.end, include_parents=True).content


@dataclass(frozen=True)
class NodeSelection:
    """Selection of the single node starting at ``pos``."""

    doc: DocNode
    pos: int

    @property
    def node(self) -> DocNode:
        node = self.doc.node_at(self.pos)
        if node is None:
            raise StructuralError(f"no node starts at position {self.pos}")
        return node

    @property
    def start(self) -> int:
        return self.pos

    @property
    def end(self) -> int:
        return self.pos + self.node.node_size

    def content(self) -> Fragment:
        return self.doc.slice(self.start, self.end, include_parents=True).content


@dataclass(frozen=True)
class CellSelection:
    """Rectangular range of table cells.

    ``anchor`` and ``head`` are ``(row, column)`` pairs of opposite corners
    inside the table node starting at ``table_pos``.
    """

    doc: DocNode
    table_pos: int
    anchor: tuple[int, int]
    head: tuple[int, int]

    @property
    def table(self) -> DocNode:
        node = self.doc.node_at(self.table_pos)
        if node is None or node.type != "table":
            raise StructuralError(f"no table starts at position {self.table_pos}")
        return node

    @property
    def start(self) -> int:
        return self.table_pos

    @property
    def end(self) -> int:
        return self.table_pos + self.table.node_size

    def bounds(self) -> tuple[range, range]:
        rows = range(min(self.anchor[0], self.head[0]), max(self.anchor[0], self.head[0]) + 1)
        columns = range(
            min(self.anchor[1], self.head[1]), max(self.anchor[1], self.head[1]) + 1
        )
        return rows, columns

    def covers_table(self) -> bool:
        table = self.table
        rows, columns = self.bounds()
        width = max((row.child_count for row in table.content), default=0)
        return (
            rows.start == 0
            and rows.stop >= table.child_count
            and columns.start == 0
            and columns.stop >= width
        )

    def content(self) -> Fragment:
        """Return the selected rows, or the whole table when fully selected."""

        table = self.table
        if self.covers_table():
            return Fragment((table,))
        rows, columns = self.bounds()
        selected: list[DocNode] = []
        for index, row in enumerate(table.content):
            if index not in rows or row.type != TABLE_ROW:
                continue
            cells = tuple(cell for column, cell in enumerate(row.content) if column in columns)
            selected.append(row.copy(cells))
        return Fragment(tuple(selected))


Selection = TextSelection | NodeSelection | CellSelection


__all__ = ["CellSelection", "NodeSelection", "Selection", "TextSelection"]
