"""Initialize-once handle for optional formatting dependencies.

The Markdown parser is built lazily the first time a conversion needs it.
Concurrent callers wait for the same initialization; a failure is reported
to the caller that triggered it and retried on the next call instead of
being cached.
"""

from __future__ import annotations

import threading
from typing import Callable

from markdown_it import MarkdownIt
from mdit_py_plugins.tasklists import tasklists_plugin

from blockdoc.errors import DependencyInitError
from blockdoc.utils.logging import NullLogger, WarningLogger

MarkdownFactory = Callable[[], MarkdownIt]


def build_markdown_parser() -> MarkdownIt:
    """Create a CommonMark parser with GFM tables, strikethrough and task items."""
    md = MarkdownIt("commonmark", {"html": True})
    md.enable("table")
    md.enable("strikethrough")
    tasklists_plugin(md)
    return md


class FormattingDependencies:
    """Lazily built, shared-per-instance formatting dependencies."""

    def __init__(
        self,
        markdown_factory: MarkdownFactory | None = None,
        *,
        logger: WarningLogger | None = None,
    ) -> None:
        self._markdown_factory = markdown_factory or build_markdown_parser
        self._markdown: MarkdownIt | None = None
        self._lock = threading.Lock()
        self.logger = logger or NullLogger()
        self.attempts = 0

    @property
    def initialized(self) -> bool:
        return self._markdown is not None

    def ensure_initialized(self) -> None:
        """Build the dependencies if needed.

        Raises:
            DependencyInitError: If the factory fails. The next call retries.
        """

        if self._markdown is not None:
            return
        with self._lock:
            if self._markdown is not None:
                return
            self.attempts += 1
            try:
                self._markdown = self._markdown_factory()
            except Exception as exc:
                self.logger.warn(
                    source="dependencies",
                    element_type="markdown",
                    message=f"initialization failed (attempt {self.attempts}): {exc}",
                    code="dependency-retry",
                )
                raise DependencyInitError(
                    f"could not initialize the Markdown parser: {exc}"
                ) from exc

    def markdown_parser(self) -> MarkdownIt:
        self.ensure_initialized()
        assert self._markdown is not None
        return self._markdown


__all__ = ["FormattingDependencies", "MarkdownFactory", "build_markdown_parser"]
