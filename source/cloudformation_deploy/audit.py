# ABOUTME: Append-only audit log for deployment decisions
# ABOUTME: Writes narrative lines to audit.txt and mirrors them to the module logger

"""Audit log."""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class AuditLog:
    """Human-readable record of every decision taken during a run."""

    FILE_NAME = "audit.txt"

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)
        self.path = self.directory / self.FILE_NAME
        self._file = None

    def open(self) -> "AuditLog":
        self.directory.mkdir(parents=True, exist_ok=True)
        self._file = open(self.path, "a", encoding="utf-8")
        return self

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self) -> "AuditLog":
        return self.open()

    def __exit__(self, *exc_info) -> None:
        self.close()

    def write(self, line: str) -> None:
        """Append one line to the audit file."""
        logger.info(line)
        if self._file is None:
            return
        self._file.write(line.rstrip("\n") + "\n")
        self._file.flush()


class MemoryAuditLog(AuditLog):
    """Audit log kept in memory, for dry runs and tests."""

    def __init__(self):
        super().__init__(Path("."))
        self.lines: list[str] = []

    def open(self) -> "MemoryAuditLog":
        return self

    def write(self, line: str) -> None:
        logger.info(line)
        self.lines.append(line.rstrip("\n"))
