from blockdoc.html.parser import parse_html
from blockdoc.markdown.exporter import blocks_to_markdown, html_to_markdown
from blockdoc.markdown.importer import markdown_to_html, parse_markdown
from blockdoc.model.blocks import Link, strip_ids
from blockdoc.utils.logging import NullLogger

from builders import (
    COMPLEX_HTML,
    COMPLEX_MARKDOWN,
    NESTED_MARKDOWN,
    NON_NESTED_MARKDOWN,
    STYLED_MARKDOWN,
    block,
    nested_blocks,
    non_nested_blocks,
    styled,
    styled_blocks,
)


def test_non_nested_blocks_to_markdown() -> None:
    assert blocks_to_markdown(non_nested_blocks()) == NON_NESTED_MARKDOWN


def test_nested_list_is_indented_under_its_item() -> None:
    assert blocks_to_markdown(nested_blocks()) == NESTED_MARKDOWN


def test_styled_blocks_degrade_underline_and_colors() -> None:
    logger = NullLogger()

    markdown = blocks_to_markdown(styled_blocks(), logger=logger)

    assert markdown == STYLED_MARKDOWN + "\n"
    assert logger.codes() == {"W002"}
    assert len(logger.warnings) == 3


def test_complex_document_to_markdown() -> None:
    blocks = parse_html(COMPLEX_HTML)

    assert blocks_to_markdown(blocks) == COMPLEX_MARKDOWN


def test_empty_input_gives_empty_markdown() -> None:
    assert html_to_markdown("") == ""
    assert blocks_to_markdown([]) == ""


def test_check_items_and_adjacent_lists() -> None:
    blocks = [
        block("checkListItem", "Done", checked=True),
        block("checkListItem", "Todo"),
        block("bulletListItem", "Plain"),
    ]

    assert blocks_to_markdown(blocks) == "*   [x] Done\n\n*   [ ] Todo\n\n-   Plain\n"


def test_adjacent_ordered_lists_switch_delimiters() -> None:
    html = "<ol><li>One</li></ol><ol start=\"3\"><li>Three</li></ol>"

    assert html_to_markdown(html) == "1.  One\n\n3)  Three\n"


def test_escaping_and_hard_breaks() -> None:
    blocks = [
        block("paragraph", "a*b_c [x]\nnext"),
        block("paragraph", "# not a heading"),
        block("paragraph", "1. not a list"),
    ]

    assert blocks_to_markdown(blocks) == (
        "a\\*b\\_c \\[x\\]\\\nnext\n\n\\# not a heading\n\n1\\. not a list\n"
    )


def test_links_code_and_images() -> None:
    blocks = [
        block(
            "paragraph",
            [styled("See "), Link(href="/docs", content=(styled("docs", "bold"),)), styled("!")],
        ),
        block("paragraph", [styled("x = 1", "code")]),
        block("image", None, url="a.png"),
        block("image", None, url="b c.png", caption="Bee"),
    ]

    assert blocks_to_markdown(blocks) == (
        "See [**docs**](/docs)!\n\n`x = 1`\n\n![](a.png)\n\n![Bee](<b c.png>)\n"
    )


def test_table_to_markdown_escapes_pipes_and_breaks() -> None:
    blocks = [block("table", [["a|b", "line\nbreak"], ["c", ""]])]

    assert blocks_to_markdown(blocks) == (
        "| a\\|b | line<br>break |\n| --- | --- |\n| c |  |\n"
    )


def test_blockquote_rule_and_code_block() -> None:
    html = "<blockquote><p>Quote</p></blockquote><hr><pre><code>x = `1`\n</code></pre>"

    assert html_to_markdown(html) == "> Quote\n\n***\n\n```\nx = `1`\n```\n"


def test_markdown_to_html_renders_gfm_extensions() -> None:
    html = markdown_to_html("~~gone~~\n\n| a |\n| --- |\n| b |\n")

    assert "<s>gone</s>" in html
    assert "<table>" in html


def test_non_nested_markdown_to_blocks() -> None:
    blocks = parse_markdown(NON_NESTED_MARKDOWN)

    assert strip_ids(blocks) == strip_ids(non_nested_blocks())


def test_nested_markdown_keeps_list_nesting() -> None:
    blocks = parse_markdown(NESTED_MARKDOWN)

    expected = [
        block("heading", "Heading"),
        block("paragraph", "Paragraph"),
        block(
            "bulletListItem",
            "Bullet List Item",
            block("numberedListItem", "Numbered List Item"),
        ),
    ]
    assert strip_ids(blocks) == strip_ids(expected)


def test_styled_markdown_to_blocks() -> None:
    blocks = parse_markdown(STYLED_MARKDOWN)

    expected = block(
        "paragraph",
        [
            styled("Bold", "bold"),
            styled("Italic", "italic"),
            styled("Underline"),
            styled("Strikethrough", "strike"),
            styled("TextColorBackgroundColor"),
            styled("Multiple", "bold", "italic"),
        ],
    )
    assert strip_ids(blocks) == strip_ids([expected])


def test_task_items_import_as_check_items() -> None:
    blocks = parse_markdown("*   [x] Done\n\n*   [ ] Todo\n")

    assert [(b.type, b.props["checked"]) for b in blocks] == [
        ("checkListItem", True),
        ("checkListItem", False),
    ]
    assert strip_ids(blocks)[0]["content"] == [
        {"type": "text", "text": "Done", "styles": []}
    ]


def test_markdown_table_and_lone_image() -> None:
    blocks = parse_markdown("| a | b |\n| --- | --- |\n| c | d |\n\n![Cap](b.png)\n")

    assert strip_ids(blocks) == strip_ids(
        [
            block("table", [["a", "b"], ["c", "d"]]),
            block("image", None, url="b.png", caption="Cap"),
        ]
    )


def test_hard_breaks_and_escapes_round_trip() -> None:
    original = [block("paragraph", "a*b\nc"), block("paragraph", "# plain")]

    blocks = parse_markdown(blocks_to_markdown(original))

    assert strip_ids(blocks) == strip_ids(original)
