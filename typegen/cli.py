"""CLI entrypoint for typegen."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from . import __version__
from .config import ConfigError, load_config
from .logging import configure_logging
from .orchestrator import Orchestrator


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="typegen",
        description="Generate code for types annotated with codegen directives.",
    )
    parser.add_argument(
        "paths",
        nargs="*",
        metavar="PATH",
        help="Schema files (*.types.yml) to parse and generate code for.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Increase log verbosity for troubleshooting.",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        default=False,
        help="Only log warnings and errors.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to .typegen.yml or its directory (defaults to the current directory).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Render artifacts without writing them.",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Also write debug logs to this file.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for typegen."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not args.paths:
        parser.error("expected one or more schema files as arguments")

    configure_logging(
        verbose=bool(args.verbose),
        quiet=bool(args.quiet),
        log_file=Path(args.log_file) if args.log_file else None,
    )

    try:
        config = load_config(Path(args.config) if args.config else Path.cwd())
    except ConfigError as exc:
        parser.exit(1, f"typegen: {exc}\n")

    orchestrator = Orchestrator(config)
    paths = [Path(raw).expanduser().resolve() for raw in args.paths]
    report = orchestrator.run(paths, dry_run=bool(args.dry_run))

    for outcome in report.succeeded:
        result = outcome.result
        if result is None:  # pragma: no cover - succeeded implies a result
            continue
        if args.dry_run:
            print(f"--- {_relativize(result.artifact.path)} (dry-run)")
            print(result.artifact.content, end="")
        else:
            print(f"Generated {_relativize(result.artifact.path)}")

    for outcome in report.failed:
        print(f"typegen: {_relativize(outcome.source)}: {outcome.error}", file=sys.stderr)

    if report.failed:
        parser.exit(1, "Run with --verbose for more details.\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
