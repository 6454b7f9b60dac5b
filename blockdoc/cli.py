from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Optional

import typer
from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from .config import ConverterConfig, load_env_file
from .runner import SOURCE_FORMATS, TARGET_FORMATS, ConvertProgress, run_convert, run_roundtrip

if TYPE_CHECKING:
    from .loaders.sources import SourceDocument

app = typer.Typer(
    name="blockdoc",
    help="Convert block documents between HTML, Markdown and JSON.",
    add_completion=True,
)

console = Console()


class RichConvertProgress(ConvertProgress):
    """Render an animated progress bar while converting documents."""

    def __init__(self, console: Console) -> None:
        """Initialize the progress renderer.

        Args:
            console: Console used to display progress output.
        """
        self.console = console
        self._progress: Optional[Progress] = None
        self._task_id: Optional[TaskID] = None

    def start(self, total: int) -> None:
        """Start the animated progress bar.

        Args:
            total: Total number of documents to convert.
        """
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("{task.completed}/{task.total} documents"),
            TimeElapsedColumn(),
            console=self.console,
            transient=False,
        )
        self._progress.start()
        self._task_id = self._progress.add_task("Converting", total=total)

    def advance(self, document: "SourceDocument") -> None:
        """Advance the bar for a converted document.

        Args:
            document: Document that has just been converted.
        """
        if not self._progress or self._task_id is None:
            return

        self._progress.update(
            self._task_id, description=f"Converting {document.relative_path}"
        )
        self._progress.advance(self._task_id)

    def finish(self) -> None:
        """Stop rendering the progress bar."""
        if not self._progress:
            return

        self._progress.stop()
        self._progress = None
        self._task_id = None


def _check_choice(value: str, choices: tuple[str, ...], option: str) -> str:
    if value not in choices:
        raise typer.BadParameter(f"expected one of {', '.join(choices)}", param_hint=option)
    return value


@app.command("convert")
def convert(
    source: Path = typer.Argument(
        ...,
        exists=True,
        file_okay=True,
        dir_okay=True,
        help="HTML, Markdown or JSON file, or a directory of them.",
    ),
    to: str = typer.Option(
        ...,
        "--to",
        "-t",
        help="Target format: html, internal-html, markdown or json.",
    ),
    source_format: str = typer.Option(
        "auto",
        "--from",
        "-f",
        help="Source format: auto (by file suffix), html, markdown or json.",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Output file, or output directory when SOURCE is a directory.",
    ),
    strict: bool = typer.Option(
        False,
        "--strict",
        help="Exit with code 1 when conversion warnings are logged.",
    ),
) -> None:
    """
    Convert documents between formats.

    A single file without ``--output`` is written to stdout. Directories are
    converted file by file into the ``--output`` directory with a progress bar.

    Examples:
        blockdoc convert page.html --to markdown
        blockdoc convert notes.md --to internal-html -o notes.html
        blockdoc convert docs/ --to json -o build/
        blockdoc convert page.html --to markdown --strict
    """
    _check_choice(to, TARGET_FORMATS, "--to")
    _check_choice(source_format, SOURCE_FORMATS, "--from")
    config = ConverterConfig.from_env()
    progress = RichConvertProgress(console) if source.is_dir() else None
    exit_code = run_convert(
        source,
        to,
        source_format=source_format,
        output=output,
        strict=strict,
        progress=progress,
        config=config,
    )
    if exit_code:
        raise typer.Exit(code=exit_code)


@app.command("roundtrip")
def roundtrip(
    source: Path = typer.Argument(
        ...,
        exists=True,
        file_okay=True,
        dir_okay=False,
        help="HTML, Markdown or JSON file to check.",
    ),
    source_format: str = typer.Option(
        "auto",
        "--from",
        "-f",
        help="Source format: auto (by file suffix), html, markdown or json.",
    ),
) -> None:
    """
    Check that a document survives export to internal HTML and back.

    Exits with code 1 when the re-imported block tree differs.

    Example:
        blockdoc roundtrip page.html
    """
    _check_choice(source_format, SOURCE_FORMATS, "--from")
    exit_code = run_roundtrip(
        source, source_format=source_format, config=ConverterConfig.from_env()
    )
    if exit_code:
        raise typer.Exit(code=exit_code)


def main() -> None:
    """Entry point for Python -m execution."""
    load_env_file(Path.cwd() / ".env")
    app()


if __name__ == "__main__":
    main()
