from pathlib import Path
import sys

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from blockdoc.converter import BlockConverter  # noqa: E402
from blockdoc.schema.defaults import default_schema  # noqa: E402
from blockdoc.schema.registry import Schema  # noqa: E402
from blockdoc.utils.logging import NullLogger  # noqa: E402


@pytest.fixture
def schema() -> Schema:
    return default_schema()


@pytest.fixture
def logger() -> NullLogger:
    return NullLogger()


@pytest.fixture
def converter(logger: NullLogger) -> BlockConverter:
    return BlockConverter(logger=logger)


@pytest.fixture(autouse=True)
def _isolated_log_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BLOCKDOC_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.delenv("BLOCKDOC_STRICT", raising=False)
    monkeypatch.delenv("BLOCKDOC_HTML_PARSER", raising=False)
