"""Tests for documentation passes and watch mode."""

import json
import os
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from blueprint_docs.config import DocConfig
from blueprint_docs.exceptions import GeneratorError
from blueprint_docs.generator.diagnostics import Severity
from blueprint_docs.runner import PassResult, run_after_hook, run_pass, watch_sources
from tests.support.helpers import GREETER_APP, RecordingReporter


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A source tree with the greeter application and a config file."""
    src = tmp_path / "src"
    src.mkdir()
    (src / "app.py").write_text(GREETER_APP)
    (tmp_path / "docconfig.json").write_text(json.dumps({"output": str(tmp_path / "docs" / "api.apib"), "title": "Greeter"}))
    return tmp_path


class StopWatching(Exception):
    pass


# ---------------------------------------------------------------------------
# run_pass
# ---------------------------------------------------------------------------


class TestRunPass:
    def test_writes_documentation(self, project: Path, reporter: RecordingReporter):
        config = DocConfig(output=str(project / "docs" / "api.apib"), title="Greeter")

        result = run_pass(config, [project / "src"], reporter)

        assert result == PassResult(output=project / "docs" / "api.apib", files=1, routers=1)
        text = result.output.read_text()
        assert text.startswith("FORMAT: 1A\n\n# Greeter\n\n")
        assert "\n# Group Greetings\n" in text
        assert "\n## /greet/:name [/greet/{name}]\n" in text
        assert "\n## /parse [/parse{?name}]\n" in text
        assert "\n### Take in some data [POST]\n" in text
        assert "/incorrect" not in text
        assert reporter.messages(Severity.ERROR) == ["Error: Response code 'uh' should be a number."]

    def test_identical_input_identical_output(self, project: Path, reporter: RecordingReporter):
        config = DocConfig(output=str(project / "api.apib"))
        first = run_pass(config, [project / "src"], reporter).output.read_text()
        second = run_pass(config, [project / "src"], reporter).output.read_text()
        assert first == second

    def test_excluded_directories_skipped(self, project: Path, reporter: RecordingReporter):
        vendor = project / "src" / "vendor"
        vendor.mkdir()
        (vendor / "copy.py").write_text(GREETER_APP)
        config = DocConfig(output=str(project / "api.apib"), exclude=["vendor"])

        result = run_pass(config, [project / "src"], reporter)

        assert (result.files, result.routers) == (1, 1)

    def test_no_sources_is_fatal(self, tmp_path: Path, config: DocConfig):
        (tmp_path / "empty").mkdir()
        with pytest.raises(GeneratorError):
            run_pass(config, [tmp_path / "empty"])
        assert not Path(config.output).exists()

    def test_unparseable_source_is_fatal(self, tmp_path: Path, config: DocConfig):
        (tmp_path / "broken.py").write_text("def broken(:\n")
        with pytest.raises(GeneratorError):
            run_pass(config, [tmp_path / "broken.py"])

    def test_after_hook_runs_after_output_is_closed(self, project: Path, reporter: RecordingReporter):
        output = project / "api.apib"
        config = DocConfig(output=str(output), afterHook="aglio -i api.apib -o api.html")
        seen: list[str] = []

        def fake_run(command, **kwargs):
            seen.append(output.read_text())
            return Mock(returncode=0, stdout="", stderr="")

        with patch("blueprint_docs.runner.subprocess.run", side_effect=fake_run) as mock_run:
            result = run_pass(config, [project / "src"], reporter)

        assert result.hook_returncode == 0
        assert mock_run.call_args[0][0] == "aglio -i api.apib -o api.html"
        assert mock_run.call_args[1]["shell"] is True
        assert seen == [output.read_text()]
        assert "# Group Greetings" in seen[0]

    def test_no_hook_configured(self, project: Path, reporter: RecordingReporter):
        with patch("blueprint_docs.runner.subprocess.run") as mock_run:
            result = run_pass(DocConfig(output=str(project / "api.apib")), [project / "src"], reporter)
        mock_run.assert_not_called()
        assert result.hook_returncode is None


class TestAfterHook:
    @patch("blueprint_docs.runner.subprocess.run")
    def test_returns_exit_code(self, mock_run: Mock) -> None:
        mock_run.return_value = Mock(returncode=3, stdout="out", stderr="err")
        assert run_after_hook("false") == 3

    @patch("blueprint_docs.runner.logger")
    @patch("blueprint_docs.runner.subprocess.run")
    def test_failure_logged(self, mock_run: Mock, mock_logger: Mock) -> None:
        mock_run.return_value = Mock(returncode=2, stdout="", stderr="boom")
        run_after_hook("make docs")
        mock_logger.error.assert_called_once()
        assert "boom" in mock_logger.error.call_args[0]


# ---------------------------------------------------------------------------
# watch_sources
# ---------------------------------------------------------------------------


class TestWatchSources:
    @patch("blueprint_docs.runner.run_pass")
    def test_reruns_when_source_changes(self, mock_run_pass: Mock, project: Path) -> None:
        source = project / "src" / "app.py"
        mtime = source.stat().st_mtime

        def touch(_interval: float) -> None:
            os.utime(source, (mtime + 10, mtime + 10))

        passes = watch_sources(project / "docconfig.json", [project / "src"], 0.0, max_passes=2, sleep=touch)

        assert passes == 2
        assert mock_run_pass.call_count == 2

    @patch("blueprint_docs.runner.run_pass")
    def test_idle_without_changes(self, mock_run_pass: Mock, project: Path) -> None:
        sleeps: list[float] = []

        def sleep(interval: float) -> None:
            sleeps.append(interval)
            if len(sleeps) == 3:
                raise StopWatching

        with pytest.raises(StopWatching):
            watch_sources(project / "docconfig.json", [project / "src"], 0.5, sleep=sleep)

        assert mock_run_pass.call_count == 1
        assert sleeps == [0.5, 0.5, 0.5]

    @patch("blueprint_docs.runner.run_pass")
    def test_config_change_triggers_pass_with_new_config(self, mock_run_pass: Mock, project: Path) -> None:
        config_file = project / "docconfig.json"
        mtime = config_file.stat().st_mtime

        def edit_config(_interval: float) -> None:
            config_file.write_text(json.dumps({"output": "other.apib"}))
            os.utime(config_file, (mtime + 10, mtime + 10))

        watch_sources(config_file, [project / "src"], 0.0, max_passes=2, sleep=edit_config)

        assert mock_run_pass.call_args_list[1][0][0].output == "other.apib"

    @patch("blueprint_docs.runner.run_pass")
    def test_invalid_config_waits_for_next_change(self, mock_run_pass: Mock, project: Path) -> None:
        (project / "docconfig.json").write_text("{ broken")

        passes = watch_sources(project / "docconfig.json", [project / "src"], 0.0, max_passes=1, sleep=Mock())

        assert passes == 1
        mock_run_pass.assert_not_called()

    @patch("blueprint_docs.runner.run_pass", side_effect=GeneratorError("Program has errors"))
    def test_fatal_errors_do_not_stop_watching(self, mock_run_pass: Mock, project: Path) -> None:
        source = project / "src" / "app.py"
        mtime = source.stat().st_mtime

        def touch(_interval: float) -> None:
            os.utime(source, (mtime + 10, mtime + 10))

        passes = watch_sources(project / "docconfig.json", [project / "src"], 0.0, max_passes=2, sleep=touch)

        assert passes == 2
        assert mock_run_pass.call_count == 2

    @patch("blueprint_docs.runner.run_pass", side_effect=PermissionError("Permission denied: 'docs/api.apib'"))
    def test_output_write_errors_do_not_stop_watching(self, mock_run_pass: Mock, project: Path) -> None:
        source = project / "src" / "app.py"
        mtime = source.stat().st_mtime

        def touch(_interval: float) -> None:
            os.utime(source, (mtime + 10, mtime + 10))

        passes = watch_sources(project / "docconfig.json", [project / "src"], 0.0, max_passes=2, sleep=touch)

        assert passes == 2
        assert mock_run_pass.call_count == 2
