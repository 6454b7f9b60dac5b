"""Entry points for running blockdoc conversions."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional, Protocol

from .config import ConverterConfig
from .converter import BlockConverter
from .errors import BlockDocError
from .loaders.sources import SourceDocument, detect_format, load_source, load_sources
from .model.blocks import Block
from .utils.logging import WarningLogger

SOURCE_FORMATS = ("auto", "html", "markdown", "json")
TARGET_FORMATS = ("html", "internal-html", "markdown", "json")
TARGET_SUFFIXES = {
    "html": ".html",
    "internal-html": ".html",
    "markdown": ".md",
    "json": ".json",
}


class ConvertProgress(Protocol):
    """Reporting hook for directory conversions."""

    def start(self, total: int) -> None:
        """Begin tracking conversion progress.

        Args:
            total: Total number of documents that will be converted.
        """

    def advance(self, document: SourceDocument) -> None:
        """Advance the progress tracker when a document is converted.

        Args:
            document: Document that has just been converted.
        """

    def finish(self) -> None:
        """Finalize progress tracking."""


def parse_source(converter: BlockConverter, text: str, source_format: str, *, source: str) -> list[Block]:
    """Parse ``text`` in ``source_format`` into blocks.

    Raises:
        BlockDocError: If the text cannot be mapped to valid blocks.
        ValueError: For malformed JSON or an unknown format.
    """

    if source_format == "html":
        return converter.html_to_blocks(text, source=source)
    if source_format == "markdown":
        return converter.markdown_to_blocks(text, source=source)
    if source_format == "json":
        payload = json.loads(text)
        if isinstance(payload, dict):
            payload = payload.get("blocks", [])
        return converter.schema.blocks_from_dicts(payload)
    raise ValueError(f"unknown source format {source_format!r}")


def render_blocks(converter: BlockConverter, blocks: list[Block], target: str) -> str:
    """Render blocks in one of ``TARGET_FORMATS``."""

    if target == "html":
        return converter.blocks_to_html(blocks)
    if target == "internal-html":
        return converter.blocks_to_internal_html(blocks)
    if target == "markdown":
        return converter.blocks_to_markdown(blocks)
    if target == "json":
        return json.dumps([block.to_dict() for block in blocks], indent=2) + "\n"
    raise ValueError(f"unknown target format {target!r}")


def run_convert(
    source: Path,
    target: str,
    *,
    source_format: str = "auto",
    output: Optional[Path] = None,
    strict: bool = False,
    progress: ConvertProgress | None = None,
    config: ConverterConfig | None = None,
    logger: WarningLogger | None = None,
) -> int:
    """Convert a file or a directory of files.

    Args:
        source: File or directory to convert.
        target: One of ``TARGET_FORMATS``.
        source_format: ``auto`` detects the format from each file suffix.
        output: Output file, or output directory for a directory source.
            A single file without ``output`` is written to stdout.
        strict: When True, return a non-zero code if warnings were logged.
        progress: Optional reporter for directory conversions.
        config: Settings for log location and HTML tree builder.
        logger: Optional warning logger to reuse.

    Returns:
        int: 0 on success; 1 on conversion errors or strict warnings; 2 on
        invalid arguments.
    """

    active_config = config or ConverterConfig.from_env()
    strict = strict or active_config.strict
    active_logger = logger or WarningLogger(source.stem or source.name, log_dir=active_config.log_dir)
    converter = BlockConverter(logger=active_logger, html_parser=active_config.html_parser)

    if source.is_dir():
        if output is None:
            print("❌ Converting a directory requires --output <directory>.")
            return 2
        formats = None if source_format == "auto" else {source_format}
        documents = load_sources(source, formats).documents
    else:
        detected = detect_format(source) if source_format == "auto" else source_format
        if detected is None:
            print(f"❌ Cannot detect the format of {source}; pass --from.")
            return 2
        documents = [load_source(source, source.parent, detected)]

    errors: list[str] = []
    if progress:
        progress.start(len(documents))
    try:
        for document in documents:
            if document.read_error:
                errors.append(f"{document.relative_path}: unreadable file")
                continue
            try:
                blocks = parse_source(
                    converter, document.content, document.format, source=document.relative_path
                )
                rendered = render_blocks(converter, blocks, target)
            except (BlockDocError, ValueError) as exc:
                errors.append(f"{document.relative_path}: {exc}")
                continue

            if source.is_dir():
                assert output is not None
                destination = (output / document.relative_path).with_suffix(TARGET_SUFFIXES[target])
                destination.parent.mkdir(parents=True, exist_ok=True)
                destination.write_text(rendered, encoding="utf-8")
            elif output is not None:
                output.parent.mkdir(parents=True, exist_ok=True)
                output.write_text(rendered, encoding="utf-8")
            else:
                print(rendered, end="" if rendered.endswith("\n") else "\n")

            if progress:
                progress.advance(document)
    finally:
        if progress:
            progress.finish()

    if active_logger.has_warnings():
        print(active_logger.summary())
    if errors:
        print("❌ Conversion errors:")
        for error in errors:
            print(f" - {error}")
        return 1
    if strict and active_logger.has_warnings():
        return 1
    return 0


def run_roundtrip(
    source: Path,
    *,
    source_format: str = "auto",
    config: ConverterConfig | None = None,
    logger: WarningLogger | None = None,
) -> int:
    """Check that a document survives export to internal HTML and back.

    Returns:
        int: 0 when the re-imported block tree matches; 1 otherwise.
    """

    active_config = config or ConverterConfig.from_env()
    active_logger = logger or WarningLogger(source.stem or source.name, log_dir=active_config.log_dir)
    converter = BlockConverter(logger=active_logger, html_parser=active_config.html_parser)

    detected = detect_format(source) if source_format == "auto" else source_format
    if detected is None:
        print(f"❌ Cannot detect the format of {source}; pass --from.")
        return 2
    document = load_source(source, source.parent, detected)
    if document.read_error:
        print(f"❌ {document.relative_path}: unreadable file")
        return 1

    try:
        blocks = parse_source(converter, document.content, detected, source=document.relative_path)
        internal = converter.blocks_to_internal_html(blocks)
        restored = converter.html_to_blocks(internal, source=f"{document.relative_path} (internal)")
    except (BlockDocError, ValueError) as exc:
        print(f"❌ {document.relative_path}: {exc}")
        return 1

    if [block.to_dict() for block in blocks] != [block.to_dict() for block in restored]:
        print(f"❌ {document.relative_path}: block tree changed after internal HTML round trip.")
        return 1
    print(f"✅ {document.relative_path}: {len(blocks)} top-level blocks round-trip exactly.")
    return 0


__all__ = [
    "ConvertProgress",
    "SOURCE_FORMATS",
    "TARGET_FORMATS",
    "parse_source",
    "render_blocks",
    "run_convert",
    "run_roundtrip",
]
