import pytest

from blockdoc.convert.mapper import blocks_to_doc
from blockdoc.errors import StructuralError
from blockdoc.model.document import BLOCK_CONTAINER, HARD_BREAK, DocNode
from blockdoc.model.selection import CellSelection, NodeSelection, TextSelection
from blockdoc.schema.registry import Schema

from builders import block


def _two_paragraphs(schema: Schema) -> DocNode:
    # "Hello world" spans 3..14 and "Second" spans 18..24.
    return blocks_to_doc([block("paragraph", "Hello world"), block("paragraph", "Second")], schema)


def test_node_sizes() -> None:
    text = DocNode.text_node("abc")
    paragraph = DocNode(type="paragraph", content=(text, DocNode(type=HARD_BREAK)))

    assert text.node_size == 3
    assert DocNode(type=HARD_BREAK).node_size == 1
    assert paragraph.node_size == 6


def test_resolve_and_node_at(schema: Schema) -> None:
    doc = _two_paragraphs(schema)

    resolved = doc.resolve(5)
    assert resolved.depth == 3
    assert resolved.parent.type == "paragraph"
    assert resolved.node(2).type == BLOCK_CONTAINER
    assert doc.node_at(1).type == BLOCK_CONTAINER
    assert doc.node_at(2).type == "paragraph"
    assert doc.node_at(16).type == BLOCK_CONTAINER
    assert doc.node_at(4) is None


def test_resolve_rejects_out_of_range_positions(schema: Schema) -> None:
    doc = _two_paragraphs(schema)

    with pytest.raises(ValueError):
        doc.resolve(doc.content_size + 1)


def test_slice_without_parents_uses_deepest_shared_node(schema: Schema) -> None:
    doc = _two_paragraphs(schema)

    inline = doc.slice(3, 8)
    spanning = doc.slice(9, 21)

    assert [node.text for node in inline.content] == ["Hello"]
    assert [node.type for node in spanning.content] == [BLOCK_CONTAINER, BLOCK_CONTAINER]
    assert spanning.content.nodes[0].text_content == "world"
    assert spanning.content.nodes[1].text_content == "Sec"


def test_slice_with_parents_keeps_ancestors(schema: Schema) -> None:
    doc = _two_paragraphs(schema)

    content = doc.slice(3, 8, include_parents=True).content

    group = content.first_child
    assert group is not None and group.type == "blockGroup"
    container = group.first_child
    assert container is not None and container.type == BLOCK_CONTAINER
    assert container.text_content == "Hello"


def test_descendants_can_skip_subtrees(schema: Schema) -> None:
    doc = blocks_to_doc(
        [block("bulletListItem", "Parent", block("bulletListItem", "Child"))], schema
    )
    seen: list[str] = []

    def visit(node: DocNode, _pos: int, _parent: DocNode | None) -> bool:
        seen.append(node.type)
        return node.type != BLOCK_CONTAINER

    doc.descendants(visit)

    assert seen == ["blockGroup", BLOCK_CONTAINER]


def test_find_all_reports_positions(schema: Schema) -> None:
    doc = _two_paragraphs(schema)

    found = doc.find_all(lambda node: node.type == "paragraph")

    assert [pos for _node, pos in found] == [2, 17]


def test_text_selection_normalizes_direction(schema: Schema) -> None:
    doc = _two_paragraphs(schema)

    selection = TextSelection(doc, 8, 3)

    assert (selection.start, selection.end) == (3, 8)
    assert not selection.empty


def test_node_selection_requires_a_node_at_position(schema: Schema) -> None:
    doc = _two_paragraphs(schema)

    assert NodeSelection(doc, 16).end == 26
    with pytest.raises(StructuralError):
        NodeSelection(doc, 4).node


def test_cell_selection_returns_whole_table_when_fully_covered(schema: Schema) -> None:
    doc = blocks_to_doc([block("table", [["a", "b"], ["c", "d"]])], schema)

    full = CellSelection(doc, 2, (0, 0), (1, 1))
    column = CellSelection(doc, 2, (1, 0), (0, 0))

    assert full.covers_table()
    assert [node.type for node in full.content()] == ["table"]
    rows = list(column.content())
    assert [row.child_count for row in rows] == [1, 1]
    assert [row.text_content for row in rows] == ["a", "c"]


def test_fragment_size_matches_sliced_range(schema: Schema) -> None:
    doc = _two_paragraphs(schema)

    fragment = doc.slice(3, 8).content

    assert len(fragment) == fragment.child_count == 1
    assert fragment.size == 5
