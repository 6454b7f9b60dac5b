import os
from pathlib import Path

import pytest

from blockdoc.config import ConverterConfig, load_env_file


def test_defaults_when_environment_is_empty() -> None:
    config = ConverterConfig.from_env({})

    assert config == ConverterConfig(log_dir=Path("logs"), html_parser="html.parser", strict=False)


def test_values_are_read_from_environment() -> None:
    config = ConverterConfig.from_env(
        {"BLOCKDOC_LOG_DIR": "out/logs", "BLOCKDOC_HTML_PARSER": "lxml", "BLOCKDOC_STRICT": "Yes"}
    )

    assert config.log_dir == Path("out/logs")
    assert config.html_parser == "lxml"
    assert config.strict is True
    assert ConverterConfig.from_env({"BLOCKDOC_STRICT": "nope"}).strict is False


def test_load_env_file_sets_missing_keys_only(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text(
        "# settings\nBLOCKDOC_STRICT='true'\nBLOCKDOC_HTML_PARSER = \"lxml\"\nnot a pair\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("BLOCKDOC_STRICT", "placeholder")
    monkeypatch.delenv("BLOCKDOC_STRICT")
    monkeypatch.setenv("BLOCKDOC_HTML_PARSER", "html.parser")

    load_env_file(env_file)

    assert os.environ["BLOCKDOC_STRICT"] == "true"
    assert os.environ["BLOCKDOC_HTML_PARSER"] == "html.parser"
    assert ConverterConfig.from_env().strict is True


def test_missing_env_file_is_ignored(tmp_path: Path) -> None:
    load_env_file(tmp_path / "missing.env")
