"""Markdown import: render to HTML with markdown-it, then parse the HTML."""

from __future__ import annotations

from blockdoc.dependencies import FormattingDependencies
from blockdoc.html.parser import parse_html
from blockdoc.model.blocks import Block
from blockdoc.schema.registry import Schema
from blockdoc.utils.logging import WarningLogger


def markdown_to_html(markdown: str, dependencies: FormattingDependencies | None = None) -> str:
    """Render Markdown to HTML using the shared markdown-it parser."""

    parser = (dependencies or FormattingDependencies()).markdown_parser()
    return parser.render(markdown)


def parse_markdown(
    markdown: str,
    schema: Schema | None = None,
    *,
    dependencies: FormattingDependencies | None = None,
    logger: WarningLogger | None = None,
    source: str = "markdown",
    features: str = "html.parser",
) -> list[Block]:
    """Parse Markdown into blocks by way of HTML.

    Raises:
        DependencyInitError: If the Markdown parser cannot be built.
    """

    html = markdown_to_html(markdown, dependencies)
    return parse_html(html, schema, logger=logger, source=source, features=features)


__all__ = ["markdown_to_html", "parse_markdown"]
