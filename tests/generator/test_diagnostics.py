"""Tests for diagnostic formatting and the logging reporter."""

from pathlib import Path
from unittest.mock import Mock, patch

from blueprint_docs.generator.diagnostics import LoggingReporter, Severity, format_diagnostic


def test_format_without_source_line():
    text = format_diagnostic(Severity.ERROR, Path("app/routes.py"), 41, "Error: Response code 'abc' should be a number.")
    assert text == "app/routes.py:42 - error HDOC: Error: Response code 'abc' should be a number."


def test_format_with_source_line():
    text = format_diagnostic(Severity.WARNING, Path("routes.py"), 0, "Ignoring undocumented route GET /", "router.get('/', h)  ")
    assert text.splitlines() == [
        "routes.py:1 - warning HDOC: Ignoring undocumented route GET /",
        "     1 | router.get('/', h)",
    ]


class TestLoggingReporter:
    @patch("blueprint_docs.generator.diagnostics.logger")
    def test_severity_selects_log_level(self, mock_logger: Mock) -> None:
        reporter = LoggingReporter()
        reporter.report(Severity.ERROR, Path("a.py"), 0, "bad")
        reporter.report(Severity.WARNING, Path("a.py"), 0, "odd")
        reporter.report(Severity.MESSAGE, Path("a.py"), 0, "note")

        mock_logger.error.assert_called_once_with("a.py:1 - error HDOC: bad")
        mock_logger.warning.assert_called_once_with("a.py:1 - warning HDOC: odd")
        mock_logger.info.assert_called_once_with("a.py:1 - message HDOC: note")

    @patch("blueprint_docs.generator.diagnostics.logger")
    def test_source_line_included(self, mock_logger: Mock) -> None:
        reporter = LoggingReporter({Path("a.py"): ["x = 1", "# @response abc"]})
        reporter.report(Severity.ERROR, Path("a.py"), 1, "bad")

        logged = mock_logger.error.call_args[0][0]
        assert logged.endswith("     2 | # @response abc")

    @patch("blueprint_docs.generator.diagnostics.logger")
    def test_add_source_and_out_of_range_line(self, mock_logger: Mock) -> None:
        reporter = LoggingReporter()
        reporter.add_source(Path("b.py"), ["only line"])
        reporter.report(Severity.ERROR, Path("b.py"), 5, "bad")

        mock_logger.error.assert_called_once_with("b.py:6 - error HDOC: bad")
