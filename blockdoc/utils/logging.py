"""Lightweight logging utilities for compiler-style conversion warnings."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List

WARN_CODES = {
    "unknown-markup": "W001",
    "lossy-style": "W002",
    "table-padded": "W003",
    "structural-error": "W004",
    "dependency-retry": "W005",
}


@dataclass(frozen=True)
class WarningEntry:
    """Captured warning with minimal metadata."""

    source: str
    line: int | None
    element_type: str
    message: str
    code: str

    def format(self) -> str:
        location = f"{self.source}:{self.line}" if self.line is not None else self.source
        return f"{location} [{self.code}][{self.element_type}] {self.message}"


class WarningLogger:
    """Collect conversion warnings and append them to a timestamped log file."""

    def __init__(self, root_name: str, *, log_dir: Path | str = "logs") -> None:
        sanitized = re.sub(r"[^A-Za-z0-9_-]", "_", root_name) or "blockdoc"
        timestamp = datetime.now().strftime("%Y-%m-%d-%H%M")
        self.log_path = Path(log_dir) / f"{sanitized}_{timestamp}.log"
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        self._warnings: List[WarningEntry] = []

    @property
    def warnings(self) -> list[WarningEntry]:
        return list(self._warnings)

    def warn(
        self,
        *,
        source: str,
        line: int | None = None,
        element_type: str,
        message: str,
        code: str,
    ) -> None:
        entry = self._record(source, line, element_type, message, code)
        with self.log_path.open("a", encoding="utf-8") as handle:
            handle.write(f"{entry.format()}\n")

    def summary(self) -> str:
        return f"Found {len(self._warnings)} warnings. See {self.log_path.name}"

    def has_warnings(self) -> bool:
        return bool(self._warnings)

    def codes(self) -> set[str]:
        return {entry.code for entry in self._warnings}

    def _record(
        self, source: str, line: int | None, element_type: str, message: str, code: str
    ) -> WarningEntry:
        entry = WarningEntry(
            source=source,
            line=line,
            element_type=element_type,
            message=message,
            code=WARN_CODES.get(code, code),
        )
        self._warnings.append(entry)
        return entry


class NullLogger(WarningLogger):
    """Logger that keeps warnings in memory and never touches the filesystem."""

    def __init__(self) -> None:
        self.log_path = Path("/dev/null")
        self._warnings: list[WarningEntry] = []

    def warn(
        self,
        *,
        source: str,
        line: int | None = None,
        element_type: str,
        message: str,
        code: str,
    ) -> None:
        self._record(source, line, element_type, message, code)

    def summary(self) -> str:
        return f"Found {len(self._warnings)} warnings."


__all__ = ["WarningLogger", "WarningEntry", "NullLogger", "WARN_CODES"]
