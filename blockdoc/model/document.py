"""Position-addressed rich-document tree used by the editing surface.

Every block lives in a ``blockContainer`` holding one block-content node
and, optionally, a ``blockGroup`` with the nested containers. Positions
count the tokens between nodes: entering or leaving a node costs one
position, each character of text costs one, and leaf inline nodes count as
one.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Iterator, Mapping

DOC = "doc"
BLOCK_GROUP = "blockGroup"
BLOCK_CONTAINER = "blockContainer"
TEXT = "text"
HARD_BREAK = "hardBreak"
TABLE_ROW = "tableRow"
TABLE_CELL = "tableCell"
TABLE_PARAGRAPH = "tableParagraph"

LEAF_TYPES = frozenset({HARD_BREAK})

# Returning False from a descendants callback skips the node's subtree.
Visitor = Callable[["DocNode", int, "DocNode | None"], "bool | None"]


@dataclass(frozen=True)
class Mark:
    """Inline mark applied to a text node (styles and links)."""

    type: str
    attrs: tuple[tuple[str, str], ...] = ()

    @classmethod
    def create(cls, type: str, **attrs: str) -> "Mark":
        return cls(type=type, attrs=tuple(sorted(attrs.items())))

    def attr(self, name: str, default: str | None = None) -> str | None:
        return dict(self.attrs).get(name, default)


@dataclass(frozen=True)
class DocNode:
    type: str
    attrs: Mapping[str, Any] = field(default_factory=dict)
    content: tuple["DocNode", ...] = field(default_factory=tuple)
    text: str | None = None
    marks: tuple[Mark, ...] = field(default_factory=tuple)

    @classmethod
    def text_node(cls, text: str, marks: tuple[Mark, ...] = ()) -> "DocNode":
        return cls(type=TEXT, text=text, marks=marks)

    @property
    def is_text(self) -> bool:
        return self.type == TEXT

    @property
    def is_leaf(self) -> bool:
        return self.is_text or self.type in LEAF_TYPES

    @property
    def node_size(self) -> int:
        if self.is_text:
            return len(self.text or "")
        if self.type in LEAF_TYPES:
            return 1
        return self.content_size + 2

    @property
    def content_size(self) -> int:
        return sum(child.node_size for child in self.content)

    @property
    def first_child(self) -> "DocNode | None":
        return self.content[0] if self.content else None

    @property
    def child_count(self) -> int:
        return len(self.content)

    @property
    def text_content(self) -> str:
        if self.is_text:
            return self.text or ""
        return "".join(child.text_content for child in self.content)

    def copy(self, content: tuple["DocNode", ...]) -> "DocNode":
        return replace(self, content=content)

    def cut(self, start: int, end: int | None = None) -> "DocNode":
        """Return a copy limited to ``start``..``end``, relative to this node.

        For text nodes offsets count characters; for other nodes they count
        positions inside the content.
        """

        if self.is_text:
            text = self.text or ""
            return replace(self, text=text[start : len(text) if end is None else end])
        if end is None:
            end = self.content_size
        return self.copy(cut_nodes(self.content, start, end))

    def descendants(self, visit: Visitor) -> None:
        """Call ``visit(node, pos, parent)`` for every descendant."""

        walk_nodes(self.content, visit, 0, self)

    def find_all(self, predicate: Callable[["DocNode"], bool]) -> list[tuple["DocNode", int]]:
        """Return ``(node, pos)`` for every descendant matching ``predicate``."""

        found: list[tuple[DocNode, int]] = []

        def _visit(node: DocNode, pos: int, _parent: DocNode | None) -> bool:
            if predicate(node):
                found.append((node, pos))
            return True

        self.descendants(_visit)
        return found

    def node_at(self, pos: int) -> "DocNode | None":
        """Return the node starting exactly at ``pos``, if any."""

        node = self
        offset = 0
        while True:
            for child in node.content:
                end = offset + child.node_size
                if offset == pos:
                    return child
                if offset < pos < end and not child.is_leaf:
                    node = child
                    offset += 1
                    break
                offset = end
            else:
                return None

    def resolve(self, pos: int) -> "ResolvedPos":
        if pos < 0 or pos > self.content_size:
            raise ValueError(f"position {pos} out of range")
        path: list[tuple[DocNode, int]] = [(self, 0)]
        node = self
        start = 0
        while True:
            offset = start
            for child in node.content:
                end = offset + child.node_size
                if offset < pos < end and not child.is_leaf:
                    node = child
                    start = offset + 1
                    path.append((node, start))
                    break
                offset = end
            else:
                return ResolvedPos(pos=pos, path=tuple(path))

    def slice(self, start: int, end: int, include_parents: bool = False) -> "Slice":
        """Return the content between two positions.

        With ``include_parents`` the slice is cut from this node's own content,
        so every ancestor of the range is kept (open on the cut sides).
        Otherwise it is cut from the deepest node containing both positions.
        """

        if start > end:
            start, end = end, start
        resolved_start = self.resolve(start)
        resolved_end = self.resolve(end)
        depth = 0 if include_parents else resolved_start.shared_depth(end)
        node, content_start = resolved_start.path[depth]
        nodes = cut_nodes(node.content, start - content_start, end - content_start)
        return Slice(
            content=Fragment(nodes),
            open_start=resolved_start.depth - depth,
            open_end=resolved_end.depth - depth,
        )


@dataclass(frozen=True)
class ResolvedPos:
    """A position together with its ancestors and their content starts."""

    pos: int
    path: tuple[tuple[DocNode, int], ...]

    @property
    def depth(self) -> int:
        return len(self.path) - 1

    @property
    def parent(self) -> DocNode:
        return self.path[-1][0]

    def node(self, depth: int) -> DocNode:
        return self.path[depth][0]

    def start(self, depth: int) -> int:
        return self.path[depth][1]

    def end(self, depth: int) -> int:
        node, start = self.path[depth]
        return start + node.content_size

    def shared_depth(self, pos: int) -> int:
        for depth in range(self.depth, -1, -1):
            if self.start(depth) <= pos <= self.end(depth):
                return depth
        return 0


@dataclass(frozen=True)
class Fragment:
    """Ordered sequence of sibling nodes, e.g. the content of a slice."""

    nodes: tuple[DocNode, ...] = field(default_factory=tuple)

    def __iter__(self) -> Iterator[DocNode]:
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)

    @property
    def first_child(self) -> DocNode | None:
        return self.nodes[0] if self.nodes else None

    @property
    def child_count(self) -> int:
        return len(self.nodes)

    @property
    def size(self) -> int:
        return sum(node.node_size for node in self.nodes)

    def descendants(self, visit: Visitor) -> None:
        walk_nodes(self.nodes, visit, 0, None)


@dataclass(frozen=True)
class Slice:
    content: Fragment
    open_start: int = 0
    open_end: int = 0


def cut_nodes(nodes: tuple[DocNode, ...], start: int, end: int) -> tuple[DocNode, ...]:
    """Cut a node sequence to the positions ``start``..``end``."""

    result: list[DocNode] = []
    offset = 0
    for child in nodes:
        if offset >= end:
            break
        child_end = offset + child.node_size
        if child_end > start:
            if child.is_text:
                child = child.cut(max(0, start - offset), min(len(child.text or ""), end - offset))
            elif not child.is_leaf:
                child = child.cut(
                    max(0, start - offset - 1), min(child.content_size, end - offset - 1)
                )
            result.append(child)
        offset = child_end
    return tuple(result)


def walk_nodes(
    nodes: tuple[DocNode, ...], visit: Visitor, start: int, parent: DocNode | None
) -> None:
    offset = start
    for child in nodes:
        if visit(child, offset, parent) is not False and child.content:
            walk_nodes(child.content, visit, offset + 1, child)
        offset += child.node_size


__all__ = [
    "BLOCK_CONTAINER",
    "BLOCK_GROUP",
    "DOC",
    "DocNode",
    "Fragment",
    "HARD_BREAK",
    "Mark",
    "ResolvedPos",
    "Slice",
    "TABLE_CELL",
    "TABLE_PARAGRAPH",
    "TABLE_ROW",
    "TEXT",
    "cut_nodes",
    "walk_nodes",
]
