"""Command line entry point: ``blueprint-docs [-p docconfig.json] [-w] [paths...]``."""

import argparse
import sys
from pathlib import Path

from blueprint_docs.config import parse_config
from blueprint_docs.exceptions import ConfigError, DocumentationFatalError
from blueprint_docs.logging import setup_logging
from blueprint_docs.runner import run_pass, watch_sources
from blueprint_docs.settings import settings


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="blueprint-docs",
        description="Generate API Blueprint documentation from commented route registrations",
        epilog="Example: blueprint-docs -p docconfig.json app/",
    )
    parser.add_argument("paths", nargs="*", type=Path, help="Source files or directories (default: current directory)")
    parser.add_argument("-p", "--project", type=Path, help="Path to a docconfig.json file describing documentation compilation parameters")
    parser.add_argument("-w", "--watch", action="store_true", help="Watch input files")
    parser.add_argument("--log-level", help="Override the log level (DEBUG, INFO, ...)")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run one documentation pass, or keep running them with ``--watch``."""
    args = _build_parser().parse_args(argv)
    if args.log_level:
        setup_logging(level=args.log_level)

    config_path = args.project or Path(settings.config_path)
    paths = args.paths or [Path(settings.source_root)]

    try:
        if args.watch:
            watch_sources(config_path, paths, settings.poll_interval)
            return 0
        result = run_pass(parse_config(config_path), paths)
    except (ConfigError, DocumentationFatalError) as e:
        print(str(e), file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130

    print(f"Wrote {result.routers} routers from {result.files} files to {result.output}")
    if result.hook_returncode:
        return result.hook_returncode
    return 0


if __name__ == "__main__":
    sys.exit(main())
