"""Canonical block tree.

Blocks are immutable snapshots: a type tag resolved through the schema,
typed props, content whose shape is fixed by the block type, and an ordered
tuple of child blocks. The wrapper nodes used by the editing surface never
appear here; see ``blockdoc.convert.mapper`` for that translation.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence, Union


@dataclass(frozen=True, order=True)
class Style:
    """A single style application such as bold or a text color.

    Styles without props are boolean toggles. ``props`` is kept as a sorted
    tuple of pairs so styles can live in a frozenset.
    """

    type: str
    props: tuple[tuple[str, str], ...] = ()

    @classmethod
    def create(cls, type: str, **props: str) -> "Style":
        return cls(type=type, props=tuple(sorted(props.items())))

    @property
    def value(self) -> str | None:
        """Return the single prop value of a valued style, if any."""

        if not self.props:
            return None
        return self.props[0][1]

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "props": dict(self.props)}


@dataclass(frozen=True)
class StyledText:
    """Text run carrying an unordered set of styles."""

    text: str
    styles: frozenset[Style] = field(default_factory=frozenset)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "text",
            "text": self.text,
            "styles": [style.to_dict() for style in sorted(self.styles)],
        }


@dataclass(frozen=True)
class Link:
    """Inline link wrapping its own styled runs."""

    href: str
    content: tuple[StyledText, ...] = field(default_factory=tuple)

    @property
    def text(self) -> str:
        return "".join(run.text for run in self.content)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "link",
            "href": self.href,
            "content": [run.to_dict() for run in self.content],
        }


InlineContent = Union[StyledText, Link]


@dataclass(frozen=True)
class TableContent:
    """Rows of cells, each cell holding inline content."""

    rows: tuple[tuple[tuple[InlineContent, ...], ...], ...] = field(default_factory=tuple)

    @property
    def width(self) -> int:
        return max((len(row) for row in self.rows), default=0)

    def is_rectangular(self) -> bool:
        width = self.width
        return all(len(row) == width for row in self.rows)

    def padded(self) -> "TableContent":
        """Return a copy where short rows are padded with empty cells."""

        width = self.width
        return TableContent(
            rows=tuple(tuple(row) + ((),) * (width - len(row)) for row in self.rows)
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "tableContent",
            "rows": [
                {"cells": [[item.to_dict() for item in cell] for cell in row]}
                for row in self.rows
            ],
        }


BlockContent = Union[tuple[InlineContent, ...], TableContent, None]


def new_block_id() -> str:
    """Return a fresh block id; ids are random and never reused."""

    return uuid.uuid4().hex


@dataclass(frozen=True, kw_only=True)
class Block:
    """A node of the canonical document tree.

    ``content`` is a tuple of inline content for text-bearing blocks, a
    ``TableContent`` for tables and ``None`` for blocks without content.
    Leaf blocks have no children; use ``is_leaf`` rather than inspecting the
    tuple when the distinction matters.
    """

    type: str
    id: str = field(default_factory=new_block_id)
    props: Mapping[str, Any] = field(default_factory=dict)
    content: BlockContent = ()
    children: tuple["Block", ...] = field(default_factory=tuple)

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def to_dict(self) -> dict[str, Any]:
        """Serialize the block into a JSON-friendly dictionary."""

        content: Any
        if self.content is None:
            content = None
        elif isinstance(self.content, TableContent):
            content = self.content.to_dict()
        else:
            content = [item.to_dict() for item in self.content]
        return {
            "id": self.id,
            "type": self.type,
            "props": dict(self.props),
            "content": content,
            "children": [child.to_dict() for child in self.children],
        }


def text_of(content: Iterable[InlineContent]) -> str:
    """Return the plain text of inline content."""

    return "".join(item.text for item in content)


def merge_runs(content: Iterable[InlineContent]) -> tuple[InlineContent, ...]:
    """Merge adjacent runs whose style sets are identical.

    Empty runs are dropped and links are merged recursively. Two adjacent
    links pointing at the same target are merged as well, which keeps
    exported HTML identical for equivalent inputs.
    """

    merged: list[InlineContent] = []
    for item in content:
        if isinstance(item, Link):
            runs = tuple(
                run for run in merge_runs(item.content) if isinstance(run, StyledText)
            )
            if not runs:
                continue
            previous = merged[-1] if merged else None
            if isinstance(previous, Link) and previous.href == item.href:
                merged[-1] = Link(
                    href=item.href,
                    content=tuple(
                        run
                        for run in merge_runs(previous.content + runs)
                        if isinstance(run, StyledText)
                    ),
                )
            else:
                merged.append(Link(href=item.href, content=runs))
            continue

        if not item.text:
            continue
        previous = merged[-1] if merged else None
        if isinstance(previous, StyledText) and previous.styles == item.styles:
            merged[-1] = StyledText(text=previous.text + item.text, styles=item.styles)
        else:
            merged.append(item)
    return tuple(merged)


def strip_ids(blocks: Sequence[Block]) -> list[dict[str, Any]]:
    """Return dict forms of ``blocks`` with ids removed, for id-blind comparison."""

    def _strip(payload: dict[str, Any]) -> dict[str, Any]:
        payload.pop("id", None)
        payload["children"] = [_strip(child) for child in payload["children"]]
        return payload

    return [_strip(block.to_dict()) for block in blocks]


__all__ = [
    "Block",
    "BlockContent",
    "InlineContent",
    "Link",
    "Style",
    "StyledText",
    "TableContent",
    "merge_runs",
    "new_block_id",
    "strip_ids",
    "text_of",
]
