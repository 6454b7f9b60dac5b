"""Discover HTML, Markdown and JSON block documents on disk."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

HIDDEN_PREFIX = "."

SUFFIX_FORMATS = {
    ".html": "html",
    ".htm": "html",
    ".md": "markdown",
    ".markdown": "markdown",
    ".json": "json",
}


@dataclass
class SourceDocument:
    """A single convertible document discovered on disk."""

    path: Path
    relative_path: str
    format: str
    content: str
    read_error: bool = False


@dataclass
class SourceTree:
    """Documents found under one root directory, sorted by path."""

    root: Path
    documents: list[SourceDocument]

    def find_by_path(self, relative_path: str) -> SourceDocument | None:
        normalized = _normalize_path(relative_path)
        for doc in self.documents:
            if doc.relative_path == normalized:
                return doc
        return None

    def paths(self) -> set[str]:
        return {doc.relative_path for doc in self.documents}


def detect_format(path: Path) -> str | None:
    """Return ``html``, ``markdown`` or ``json`` for a known suffix."""

    return SUFFIX_FORMATS.get(path.suffix.lower())


def load_source(path: Path, root: Path | None = None, source_format: str | None = None) -> SourceDocument:
    """Read one document, recording unreadable files instead of raising."""

    content = ""
    read_error = False
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        read_error = True
    relative = path.relative_to(root) if root is not None else Path(path.name)
    return SourceDocument(
        path=path,
        relative_path=_normalize_path(relative),
        format=source_format or detect_format(path) or "html",
        content=content,
        read_error=read_error,
    )


def load_sources(root_path: Path, formats: set[str] | None = None) -> SourceTree:
    """Recursively load documents with a known suffix from ``root_path``.

    Args:
        root_path: Base directory to scan. Hidden files and folders are skipped.
        formats: Optional subset of formats to keep.

    Returns:
        SourceTree: Populated with all discovered documents.
    """

    documents: list[SourceDocument] = []
    for dirpath, dirnames, filenames in os.walk(root_path):
        dirnames[:] = [d for d in dirnames if not d.startswith(HIDDEN_PREFIX)]
        for filename in filenames:
            full_path = Path(dirpath) / filename
            source_format = detect_format(full_path)
            if filename.startswith(HIDDEN_PREFIX) or source_format is None:
                continue
            if formats is not None and source_format not in formats:
                continue
            documents.append(load_source(full_path, root_path, source_format))

    documents.sort(key=lambda d: d.relative_path)
    return SourceTree(root=root_path, documents=documents)


def _normalize_path(path: Path | str) -> str:
    return PurePosixPath(path).as_posix()


__all__ = ["SourceDocument", "SourceTree", "detect_format", "load_source", "load_sources"]
