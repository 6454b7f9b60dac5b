from pathlib import Path

from blockdoc.html.parser import parse_html
from blockdoc.utils.logging import NullLogger, WarningLogger


def test_logger_writes_compiler_style_lines(tmp_path: Path) -> None:
    logger = WarningLogger("my docs", log_dir=tmp_path / "logs")

    parse_html("<blockquote>Quote</blockquote>", logger=logger, source="guide/page.html")

    assert logger.log_path.parent == tmp_path / "logs"
    assert logger.log_path.name.startswith("my_docs_")
    assert logger.has_warnings()
    entry = logger.warnings[0]
    assert entry.code == "W001"
    assert entry.format() == (
        "guide/page.html [W001][blockquote] unsupported <blockquote> imported as a paragraph"
    )
    assert logger.log_path.read_text(encoding="utf-8") == entry.format() + "\n"
    assert logger.summary() == f"Found 1 warnings. See {logger.log_path.name}"


def test_line_numbers_and_unknown_codes(tmp_path: Path) -> None:
    logger = WarningLogger("docs", log_dir=tmp_path)

    logger.warn(source="page.md", line=3, element_type="table", message="odd", code="table-padded")
    logger.warn(source="page.md", element_type="p", message="custom", code="X100")

    assert [entry.format() for entry in logger.warnings] == [
        "page.md:3 [W003][table] odd",
        "page.md [X100][p] custom",
    ]
    assert logger.codes() == {"W003", "X100"}


def test_null_logger_keeps_warnings_in_memory(tmp_path: Path) -> None:
    logger = NullLogger()

    logger.warn(source="clipboard", element_type="u", message="lossy", code="lossy-style")

    assert logger.codes() == {"W002"}
    assert logger.summary() == "Found 1 warnings."
    assert not list(tmp_path.iterdir())
