"""Diagnostic reporting for the documentation generator.

Diagnostics point at a source line. The default reporter writes them
through the package logger together with the offending line::

    app/routes.py:42 - error HDOC: Response code 'abc' should be a number.
       42 | # @response abc 200
"""

from enum import StrEnum
from pathlib import Path
from typing import Protocol

from blueprint_docs.logging import get_docs_logger

logger = get_docs_logger(__name__)

DIAGNOSTIC_CODE = "HDOC"


class Severity(StrEnum):
    """Diagnostic severity."""

    ERROR = "error"
    WARNING = "warning"
    MESSAGE = "message"


class DiagnosticReporter(Protocol):
    """Receives diagnostics. ``line`` is 0-based."""

    def report(self, severity: Severity, source_file: Path, line: int, message: str) -> None: ...


def format_diagnostic(severity: Severity, source_file: Path, line: int, message: str, source_line: str | None = None) -> str:
    """Render a diagnostic with an optional line of source context."""
    text = f"{source_file}:{line + 1} - {severity} {DIAGNOSTIC_CODE}: {message}"
    if source_line is not None:
        text += f"\n{line + 1:>6} | {source_line.rstrip()}"
    return text


class LoggingReporter:
    """Writes diagnostics to the blueprint_docs logger."""

    def __init__(self, sources: dict[Path, list[str]] | None = None):
        self._sources = sources if sources is not None else {}

    def report(self, severity: Severity, source_file: Path, line: int, message: str) -> None:
        lines = self._sources.get(source_file)
        source_line = lines[line] if lines is not None and 0 <= line < len(lines) else None
        text = format_diagnostic(severity, source_file, line, message, source_line)
        if severity == Severity.ERROR:
            logger.error(text)
        elif severity == Severity.WARNING:
            logger.warning(text)
        else:
            logger.info(text)

    def add_source(self, source_file: Path, lines: list[str]) -> None:
        """Register file contents so diagnostics can show the offending line."""
        self._sources[source_file] = lines
