from blockdoc.model.blocks import (
    Block,
    Link,
    Style,
    StyledText,
    TableContent,
    merge_runs,
    strip_ids,
    text_of,
)

from builders import block, styled


def test_merge_runs_joins_equal_styles_and_drops_empty_runs() -> None:
    merged = merge_runs(
        [
            styled("Hel", "bold"),
            styled("", "italic"),
            styled("lo", "bold"),
            styled(" world"),
        ]
    )

    assert merged == (styled("Hello", "bold"), styled(" world"))


def test_merge_runs_is_idempotent() -> None:
    content = [
        styled("a", "bold"),
        styled("b", "bold"),
        Link(href="https://example.com", content=(styled("x"), styled("y"))),
        Link(href="https://example.com", content=(styled("z"),)),
        styled("c", textColor="red"),
        styled("d", textColor="red"),
    ]

    once = merge_runs(content)

    assert merge_runs(once) == once
    assert once == (
        styled("ab", "bold"),
        Link(href="https://example.com", content=(styled("xyz"),)),
        styled("cd", textColor="red"),
    )


def test_merge_runs_keeps_links_with_different_targets_apart() -> None:
    merged = merge_runs(
        [
            Link(href="https://a.example", content=(styled("a"),)),
            Link(href="https://b.example", content=(styled("b"),)),
        ]
    )

    assert [item.href for item in merged if isinstance(item, Link)] == [
        "https://a.example",
        "https://b.example",
    ]


def test_style_order_does_not_affect_equality() -> None:
    first = StyledText("x", frozenset({Style.create("bold"), Style.create("italic")}))
    second = StyledText("x", frozenset({Style.create("italic"), Style.create("bold")}))

    assert first == second
    assert merge_runs([first, second]) == (StyledText("xx", first.styles),)


def test_table_content_padding() -> None:
    table = TableContent(rows=(((styled("a"),), (styled("b"),)), ((styled("c"),),)))

    assert not table.is_rectangular()
    padded = table.padded()
    assert padded.is_rectangular()
    assert padded.rows[1] == ((styled("c"),), ())


def test_block_to_dict_and_strip_ids() -> None:
    parent = block("bulletListItem", [styled("Item", "bold")], block("paragraph", "Child"))

    payload = parent.to_dict()

    assert payload["type"] == "bulletListItem"
    assert payload["content"] == [
        {"type": "text", "text": "Item", "styles": [{"type": "bold", "props": {}}]}
    ]
    assert payload["children"][0]["content"][0]["text"] == "Child"
    stripped = strip_ids([parent])
    assert "id" not in stripped[0]
    assert "id" not in stripped[0]["children"][0]


def test_new_blocks_get_unique_ids() -> None:
    first = Block(type="paragraph")
    second = Block(type="paragraph")

    assert first.id != second.id
    assert first.is_leaf


def test_text_of_flattens_links() -> None:
    content = (styled("Go "), Link(href="/x", content=(styled("here", "bold"),)))

    assert text_of(content) == "Go here"
