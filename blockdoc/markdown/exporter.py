"""Serialize external HTML to Markdown.

Markdown is a lossy projection of the external HTML. Headings, lists,
check items, tables, images, links and the styles Markdown can express are
kept; underline and colors fall back to plain text and are logged.
"""

from __future__ import annotations

import re
from typing import Any, Iterable, Sequence

from bs4 import BeautifulSoup
from bs4.element import NavigableString, Tag

from blockdoc.html.exporter import HTMLExporter
from blockdoc.html.parser import BLOCK_TAGS, IGNORED_STRINGS, SKIP_TAGS
from blockdoc.model.blocks import Block
from blockdoc.schema.registry import Schema
from blockdoc.schema.templates import PRESENTATION_ATTRIBUTES, find_checkbox
from blockdoc.utils.logging import NullLogger, WarningLogger

LIST_TAGS = ("ul", "ol")
# Adjacent lists of the same kind alternate markers so they stay separate.
BULLET_MARKERS = ("*", "-")
ORDERED_DELIMITERS = (".", ")")
MARKER_WIDTH = 4
HARD_BREAK = "\\\n"

EMPHASIS = {
    "strong": "**",
    "b": "**",
    "em": "*",
    "i": "*",
    "s": "~~",
    "del": "~~",
    "strike": "~~",
}
UNDERLINE_TAGS = ("u", "ins")

_WHITESPACE_RE = re.compile(r"[ \t\r\n\f]+")
_ESCAPE_RE = re.compile(r"([\\`*_\[\]<~])")
_LINE_START_RE = re.compile(r"^(?:[#>+=-]|\d+[.)])")
_COLOR_CSS_RE = re.compile(r"(?:^|;)\s*(?:background-)?color\s*:", re.IGNORECASE)


def html_to_markdown(
    html: str,
    *,
    logger: WarningLogger | None = None,
    source: str = "html",
    features: str = "html.parser",
) -> str:
    """Return Markdown for external HTML.

    Blocks are separated by one blank line and the result ends with a
    newline; empty input yields an empty string.
    """

    soup = BeautifulSoup(html, features)
    root = soup.body if soup.body is not None else soup
    parts = _MarkdownWriter(logger or NullLogger(), source).blocks(root.children)
    if not parts:
        return ""
    return "\n\n".join(parts) + "\n"


def blocks_to_markdown(
    blocks: Sequence[Block],
    schema: Schema | None = None,
    *,
    logger: WarningLogger | None = None,
) -> str:
    """Render blocks to external HTML, then to Markdown."""

    html = HTMLExporter(schema).export_blocks(blocks, simplify_blocks=True)
    return html_to_markdown(html, logger=logger, source="blocks")


class _MarkdownWriter:
    def __init__(self, logger: WarningLogger, source: str) -> None:
        self.logger = logger
        self.source = source

    # Blocks -----------------------------------------------------------------

    def blocks(self, nodes: Iterable[Any]) -> list[str]:
        parts: list[str] = []
        pending: list[Any] = []
        last_list: str | None = None
        alternate = False
        for node in nodes:
            if isinstance(node, IGNORED_STRINGS):
                continue
            if isinstance(node, Tag) and node.name in SKIP_TAGS:
                continue
            if not (isinstance(node, Tag) and node.name in BLOCK_TAGS):
                pending.append(node)
                continue

            paragraph = self.paragraph(pending)
            pending = []
            if paragraph:
                parts.append(paragraph)
                last_list = None
            if node.name in LIST_TAGS:
                alternate = last_list == node.name and not alternate
                last_list = node.name
                rendered = self.list_block(node, alternate=alternate)
                if rendered:
                    parts.append(rendered)
                continue
            last_list = None
            parts.extend(self.block(node))

        paragraph = self.paragraph(pending)
        if paragraph:
            parts.append(paragraph)
        return parts

    def block(self, tag: Tag) -> list[str]:
        name = tag.name
        if name in ("h1", "h2", "h3", "h4", "h5", "h6"):
            return [f"{'#' * int(name[1])} {self.inline(tag.children)}".rstrip()]
        if name == "p":
            paragraph = self.paragraph(tag.children)
            return [paragraph] if paragraph else []
        if name == "li":
            return [self.list_item(tag, BULLET_MARKERS[0])]
        if name == "table":
            table = self.table(tag)
            return [table] if table else []
        if name == "figure":
            image = tag.find("img")
            if not isinstance(image, Tag):
                return self.blocks(tag.children)
            caption = tag.find("figcaption")
            alt = caption.get_text().strip() if isinstance(caption, Tag) else image.get("alt")
            return [_image(str(alt or ""), str(image.get("src") or ""))]
        if name == "pre":
            code = tag.get_text().rstrip("\n")
            fence = _fence(code)
            return [f"{fence}\n{code}\n{fence}"]
        if name == "blockquote":
            inner = "\n\n".join(self.blocks(tag.children))
            return ["\n".join(f"> {line}".rstrip() for line in inner.split("\n"))]
        if name == "hr":
            return ["***"]
        return self.blocks(tag.children)

    def paragraph(self, nodes: Iterable[Any]) -> str:
        text = self.inline(nodes)
        return "\n".join(_escape_line_start(line) for line in text.split("\n"))

    def list_block(self, tag: Tag, *, alternate: bool = False) -> str:
        ordered = tag.name == "ol"
        number = _start(tag)
        items: list[str] = []
        for child in tag.children:
            if not isinstance(child, Tag):
                continue
            if child.name == "li":
                if ordered:
                    marker = f"{number}{ORDERED_DELIMITERS[alternate]}"
                    number += 1
                else:
                    marker = BULLET_MARKERS[alternate]
                items.append(self.list_item(child, marker))
            elif child.name in LIST_TAGS and items:
                # A list nested directly in a list belongs to the previous item.
                nested = self.list_block(child)
                if nested:
                    items[-1] = f"{items[-1]}\n\n{_indent(nested, ' ' * MARKER_WIDTH)}"
        return "\n\n".join(items)

    def list_item(self, tag: Tag, marker: str) -> str:
        parts = self.blocks(tag.children)
        first = _first_content(tag)
        if first is None or (isinstance(first, Tag) and first.name in LIST_TAGS):
            parts.insert(0, "")
        checkbox = find_checkbox(tag)
        if checkbox is not None:
            parts[0] = ("[x] " if checkbox.has_attr("checked") else "[ ] ") + parts[0]

        lead = marker.ljust(max(len(marker) + 1, MARKER_WIDTH))
        body = "\n\n".join(parts)
        head, _, rest = body.partition("\n")
        item = (lead + head).rstrip()
        if rest:
            item += "\n" + _indent(rest, " " * len(lead))
        return item

    def table(self, tag: Tag) -> str:
        rows: list[list[str]] = []
        for row in tag.find_all("tr"):
            cells = row.find_all(["td", "th"], recursive=False)
            rows.append([self.inline(cell.children, in_table=True) for cell in cells])
        width = max((len(row) for row in rows), default=0)
        if not width:
            return ""
        rows = [row + [""] * (width - len(row)) for row in rows]
        lines = [_table_row(rows[0]), _table_row(["---"] * width)]
        lines.extend(_table_row(row) for row in rows[1:])
        return "\n".join(lines)

    # Inline -----------------------------------------------------------------

    def inline(self, nodes: Iterable[Any], *, in_table: bool = False) -> str:
        text = "".join(self._inline_node(node, in_table) for node in nodes)
        while text.rstrip(" ").endswith(HARD_BREAK):
            text = text.rstrip(" ")[: -len(HARD_BREAK)]
        return "\n".join(line.strip(" ") for line in text.split("\n")).strip()

    def _inline_node(self, node: Any, in_table: bool) -> str:
        if isinstance(node, IGNORED_STRINGS):
            return ""
        if isinstance(node, NavigableString):
            text = _escape(_WHITESPACE_RE.sub(" ", str(node)))
            return text.replace("|", "\\|") if in_table else text
        if not isinstance(node, Tag) or node.name in SKIP_TAGS:
            return ""

        name = node.name
        if name == "br":
            return "<br>" if in_table else HARD_BREAK
        if name == "img":
            return _image(str(node.get("alt") or ""), str(node.get("src") or ""))
        if name == "code":
            return _code_span(node.get_text())

        inner = "".join(self._inline_node(child, in_table) for child in node.children)
        if name == "a" and node.get("href"):
            return f"[{inner}]({_destination(str(node['href']))})"
        if name in EMPHASIS:
            return _wrap(inner, EMPHASIS[name])
        if name in UNDERLINE_TAGS:
            self._lossy(name, "underline")
        elif _has_color(node):
            self._lossy(name, "text and background colors")
        return inner

    def _lossy(self, element_type: str, what: str) -> None:
        self.logger.warn(
            source=self.source,
            element_type=element_type,
            message=f"{what} cannot be expressed in Markdown; kept as plain text",
            code="lossy-style",
        )


def _escape(text: str) -> str:
    return _ESCAPE_RE.sub(r"\\\1", text)


def _escape_line_start(line: str) -> str:
    match = _LINE_START_RE.match(line)
    if not match:
        return line
    marker = match.group(0)
    if marker[0].isdigit():
        return f"{marker[:-1]}\\{marker[-1]}{line[len(marker):]}"
    return "\\" + line


def _wrap(inner: str, delimiter: str) -> str:
    """Wrap ``inner`` in emphasis, keeping edge whitespace outside."""

    core = inner.strip(" ")
    if not core:
        return inner
    leading = inner[: len(inner) - len(inner.lstrip(" "))]
    trailing = inner[len(inner.rstrip(" ")) :]
    return f"{leading}{delimiter}{core}{delimiter}{trailing}"


def _code_span(code: str) -> str:
    if not code:
        return ""
    longest = max((len(run) for run in re.findall(r"`+", code)), default=0)
    ticks = "`" * (longest + 1)
    if code.startswith("`") or code.endswith("`"):
        code = f" {code} "
    return f"{ticks}{code}{ticks}"


def _fence(code: str) -> str:
    longest = max((len(run) for run in re.findall(r"`{3,}", code)), default=2)
    return "`" * (longest + 1)


def _destination(url: str) -> str:
    if re.search(r"[\s()<>]", url):
        return "<" + url.replace("<", "%3C").replace(">", "%3E") + ">"
    return url


def _image(alt: str, src: str) -> str:
    return f"![{_escape(alt)}]({_destination(src)})"


def _table_row(cells: list[str]) -> str:
    return "| " + " | ".join(cells) + " |"


def _indent(text: str, prefix: str) -> str:
    return "\n".join(prefix + line if line else line for line in text.split("\n"))


def _start(tag: Tag) -> int:
    start = str(tag.get("start") or "1")
    return int(start) if start.isdigit() else 1


def _first_content(tag: Tag) -> Any:
    for child in tag.children:
        if isinstance(child, IGNORED_STRINGS):
            continue
        if isinstance(child, NavigableString):
            if str(child).strip():
                return child
            continue
        if isinstance(child, Tag) and child.name != "input":
            return child
    return None


def _has_color(tag: Tag) -> bool:
    for name in ("textColor", "backgroundColor"):
        attribute, default = PRESENTATION_ATTRIBUTES[name]
        value = tag.get(attribute)
        if value and value != default:
            return True
    return bool(_COLOR_CSS_RE.search(str(tag.get("style") or "")))


__all__ = ["blocks_to_markdown", "html_to_markdown"]
