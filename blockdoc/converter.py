"""Facade bundling a schema, formatting dependencies and a warning logger."""

from __future__ import annotations

from typing import Iterable, Sequence

from blockdoc.clipboard import ClipboardPayload, SelectionExporter
from blockdoc.dependencies import FormattingDependencies
from blockdoc.html.exporter import HTMLExporter
from blockdoc.html.parser import parse_html
from blockdoc.markdown.exporter import html_to_markdown
from blockdoc.markdown.importer import parse_markdown
from blockdoc.model.blocks import Block, InlineContent
from blockdoc.model.selection import Selection
from blockdoc.schema.defaults import default_schema
from blockdoc.schema.registry import Schema
from blockdoc.utils.logging import NullLogger, WarningLogger


class BlockConverter:
    """Convert between blocks, HTML and Markdown for one schema.

    Every call works on its input only and returns a new value, so a single
    converter can be shared between threads. The Markdown parser is built
    on first use through ``dependencies``.
    """

    def __init__(
        self,
        schema: Schema | None = None,
        dependencies: FormattingDependencies | None = None,
        logger: WarningLogger | None = None,
        *,
        html_parser: str = "html.parser",
    ) -> None:
        self.schema = schema or default_schema()
        self.logger = logger or NullLogger()
        self.dependencies = dependencies or FormattingDependencies(logger=self.logger)
        self.html_parser = html_parser
        self._exporter = HTMLExporter(self.schema)

    def blocks_to_html(self, blocks: Sequence[Block]) -> str:
        """External HTML for other applications."""

        return self._exporter.export_blocks(blocks, simplify_blocks=True)

    def blocks_to_internal_html(self, blocks: Sequence[Block]) -> str:
        """Internal HTML that ``html_to_blocks`` restores exactly."""

        return self._exporter.export_blocks(blocks, simplify_blocks=False)

    def blocks_to_markdown(self, blocks: Sequence[Block]) -> str:
        """Markdown for other applications.

        The Markdown writer itself does not use the dependency handle. The
        handle is initialized first so a failed or retried initialization is
        reported the same way for import and export, before any output.
        """

        self.dependencies.ensure_initialized()
        return html_to_markdown(
            self.blocks_to_html(blocks),
            logger=self.logger,
            source="blocks",
            features=self.html_parser,
        )

    def html_to_blocks(self, html: str, *, source: str = "html") -> list[Block]:
        return parse_html(
            html, self.schema, logger=self.logger, source=source, features=self.html_parser
        )

    def markdown_to_blocks(self, markdown: str, *, source: str = "markdown") -> list[Block]:
        return parse_markdown(
            markdown,
            self.schema,
            dependencies=self.dependencies,
            logger=self.logger,
            source=source,
            features=self.html_parser,
        )

    def inline_content_to_html(self, content: Iterable[InlineContent]) -> str:
        return self._exporter.export_inline_content(content)

    def selection_to_clipboard(self, selection: Selection) -> ClipboardPayload:
        exporter = SelectionExporter(self.schema, self.dependencies, self.logger)
        return exporter.export(selection)


__all__ = ["BlockConverter"]
