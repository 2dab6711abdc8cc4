"""Documentation passes: one-shot and watch mode.

A pass parses the program, scans every file and writes the output file.
The output is opened at the start of the pass and always closed before the
pass ends; the after hook only runs once the file is closed. Passes never
overlap: watch mode runs them one after another and ``run_pass`` holds a
lock for its whole duration.
"""

import subprocess
import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from blueprint_docs.config import DocConfig, parse_config
from blueprint_docs.exceptions import ConfigError, DocumentationFatalError
from blueprint_docs.generator.diagnostics import DiagnosticReporter, LoggingReporter
from blueprint_docs.generator.emitter import DocumentationEmitter
from blueprint_docs.generator.program import discover_sources, load_program
from blueprint_docs.generator.scanner import create_documentation
from blueprint_docs.generator.schema import build_schema_generator
from blueprint_docs.logging import get_docs_logger

logger = get_docs_logger(__name__)

_pass_lock = threading.Lock()


@dataclass(frozen=True)
class PassResult:
    """Outcome of one documentation pass."""

    output: Path
    files: int
    routers: int
    hook_returncode: int | None = None


def run_pass(config: DocConfig, paths: Sequence[Path], reporter: DiagnosticReporter | None = None) -> PassResult:
    """Run one complete documentation pass.

    Raises:
        DocumentationFatalError: If the pass had to be aborted.
    """
    with _pass_lock:
        sources = discover_sources(paths, config.exclude)
        program = load_program(sources)
        generator = build_schema_generator(program)
        if reporter is None:
            reporter = LoggingReporter({source.path: source.lines for source in program.files})

        output = Path(config.output)
        output.parent.mkdir(parents=True, exist_ok=True)
        with open(output, "w", encoding="utf-8") as stream:
            emitter = DocumentationEmitter(config, stream)
            routers = create_documentation(program, generator, config, emitter, reporter)
            emitter.flush()
        logger.info("Wrote %d routers from %d files to %s", routers, len(program.files), output)

        returncode = run_after_hook(config.after_hook) if config.after_hook else None
        return PassResult(output=output, files=len(program.files), routers=routers, hook_returncode=returncode)


def run_after_hook(command: str) -> int:
    """Run the post-processing shell command and return its exit code."""
    logger.info("Running after hook: %s", command)
    result = subprocess.run(command, shell=True, capture_output=True, text=True, check=False)
    if result.returncode != 0:
        output = (result.stdout + result.stderr).strip()
        logger.error("After hook failed with exit code %d: %s\n%s", result.returncode, command, output)
    return result.returncode


def _snapshot(config_path: Path, sources: Sequence[Path]) -> dict[str, float]:
    mtimes: dict[str, float] = {}
    for path in (config_path, *sources):
        try:
            mtimes[str(path)] = path.stat().st_mtime
        except OSError:
            continue
    return mtimes


def watch_sources(
    config_path: Path,
    paths: Sequence[Path],
    poll_interval: float = 1.0,
    reporter: DiagnosticReporter | None = None,
    *,
    max_passes: int | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Re-run the documentation pass whenever a source or the config file changes.

    The config file is re-read before every pass. Config and fatal errors are
    logged and the watcher waits for the next change. Returns the number of
    passes started (only bounded when ``max_passes`` is given).
    """
    last: dict[str, float] | None = None
    passes = 0
    while max_passes is None or passes < max_passes:
        config: DocConfig | None = None
        config_error: ConfigError | None = None
        try:
            config = parse_config(config_path)
        except ConfigError as e:
            config_error = e
        exclude = config.exclude if config is not None else ()
        current = _snapshot(config_path, discover_sources(paths, exclude))
        if current != last:
            last = current
            passes += 1
            logger.info("Starting documentation pass")
            if config is None:
                logger.error("%s", config_error)
            else:
                try:
                    run_pass(config, paths, reporter)
                except (DocumentationFatalError, OSError) as e:
                    logger.error("%s", e)
            logger.info("Documentation pass complete. Watching for file changes.")
        if max_passes is not None and passes >= max_passes:
            break
        sleep(poll_interval)
    return passes
