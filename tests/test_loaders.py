from pathlib import Path

from blockdoc.loaders.sources import detect_format, load_source, load_sources


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def test_load_sources_finds_known_formats(tmp_path: Path) -> None:
    _write(tmp_path / "index.html", "<p>Home</p>")
    _write(tmp_path / "notes" / "a.md", "# A")
    _write(tmp_path / "data.json", "[]")
    _write(tmp_path / "readme.txt", "skip")
    _write(tmp_path / ".hidden" / "x.md", "skip")
    _write(tmp_path / ".secret.md", "skip")

    tree = load_sources(tmp_path)

    assert [doc.relative_path for doc in tree.documents] == ["data.json", "index.html", "notes/a.md"]
    assert [doc.format for doc in tree.documents] == ["json", "html", "markdown"]
    found = tree.find_by_path("./notes/a.md")
    assert found is not None and found.content == "# A"


def test_load_sources_filters_formats(tmp_path: Path) -> None:
    _write(tmp_path / "index.html", "<p>Home</p>")
    _write(tmp_path / "page.markdown", "text")

    tree = load_sources(tmp_path, {"markdown"})

    assert tree.paths() == {"page.markdown"}


def test_unreadable_source_is_flagged(tmp_path: Path) -> None:
    folder = tmp_path / "folder.html"
    folder.mkdir()

    document = load_source(folder, tmp_path)

    assert document.read_error
    assert document.format == "html"
    assert document.relative_path == "folder.html"


def test_source_with_invalid_utf8_is_flagged(tmp_path: Path) -> None:
    source = tmp_path / "latin.html"
    source.write_bytes(b"<p>caf\xe9</p>")

    document = load_source(source, tmp_path)

    assert document.read_error
    assert document.content == ""


def test_detect_format_ignores_case() -> None:
    assert detect_format(Path("README.MD")) == "markdown"
    assert detect_format(Path("page.HTM")) == "html"
    assert detect_format(Path("notes.txt")) is None
