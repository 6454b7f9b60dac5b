"""Environment-driven configuration for the command line tools."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

DEFAULT_LOG_DIR = "logs"
DEFAULT_HTML_PARSER = "html.parser"
TRUTHY = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True)
class ConverterConfig:
    """Settings shared by the CLI and runner.

    Attributes:
        log_dir: Directory receiving warning log files.
        html_parser: BeautifulSoup tree builder, e.g. ``html.parser`` or ``lxml``.
        strict: Treat conversion warnings as failures.
    """

    log_dir: Path = Path(DEFAULT_LOG_DIR)
    html_parser: str = DEFAULT_HTML_PARSER
    strict: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ConverterConfig":
        env = os.environ if environ is None else environ
        return cls(
            log_dir=Path(env.get("BLOCKDOC_LOG_DIR") or DEFAULT_LOG_DIR),
            html_parser=env.get("BLOCKDOC_HTML_PARSER") or DEFAULT_HTML_PARSER,
            strict=env.get("BLOCKDOC_STRICT", "").strip().lower() in TRUTHY,
        )


def load_env_file(path: Path) -> None:
    """Populate os.environ from a simple KEY=VALUE .env file without extra deps."""
    if not path.exists():
        return

    for raw_line in path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        os.environ.setdefault(key, value)


__all__ = ["ConverterConfig", "load_env_file"]
