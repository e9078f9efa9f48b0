"""CLI entrypoints for baselinegen commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Tuple

from .config import load_config
from .errors import BaselineError, ConfigError, PoolFault, RejectedSource
from .logging import configure_logging
from .models import Dialect, SourceKind
from .orchestrator import Pipeline
from .toolchain.formatter import Formatter
from .validators import check_typed, check_untyped, read_source
from .walker import classify_path


def _logging_options(*, with_defaults: bool) -> argparse.ArgumentParser:
    """Parent parser for logging flags accepted before and after the subcommand.

    Subcommand copies default to SUPPRESS so they never overwrite a flag given
    before the subcommand name.
    """
    options = argparse.ArgumentParser(add_help=False)
    options.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False if with_defaults else argparse.SUPPRESS,
        help="Log debug details, including from worker processes.",
    )
    options.add_argument(
        "--log-file",
        default=None if with_defaults else argparse.SUPPRESS,
        help="Also write the log to this file.",
    )
    return options


def _add_kind_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--kind",
        choices=[kind.value for kind in SourceKind],
        default=None,
        help="Force module or script kind instead of inferring it.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="baselinegen",
        description="Generate a reference corpus of type-erased JavaScript baselines.",
        parents=[_logging_options(with_defaults=True)],
    )
    subcommand_options = _logging_options(with_defaults=False)
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        "generate",
        help="Walk a corpus and write the manifest and artifacts to the staging directory.",
        parents=[subcommand_options],
    )
    generate_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the corpus root (defaults to current directory).",
    )
    generate_parser.add_argument(
        "--staging",
        default=None,
        help="Staging directory; wiped before every run.",
    )
    generate_parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Worker processes (0 runs tasks in-process).",
    )
    generate_parser.add_argument(
        "--config",
        default=None,
        help="Path to a .baselinegen.yml file (defaults to the corpus root).",
    )
    generate_parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Ignore the result cache for this run.",
    )

    check_parser = subparsers.add_parser(
        "check",
        help="Report whether one file would be accepted and with which kind.",
        parents=[subcommand_options],
    )
    check_parser.add_argument("file", help="Source file to check.")
    _add_kind_option(check_parser)

    erase_parser = subparsers.add_parser(
        "erase",
        help="Print the erased output of one typed file.",
        parents=[subcommand_options],
    )
    erase_parser.add_argument("file", help="Typed source file to erase.")
    _add_kind_option(erase_parser)
    erase_parser.add_argument(
        "--typed",
        action="store_true",
        help="Print the codegen-stripped typed source instead of the formatted output.",
    )
    erase_parser.add_argument(
        "--indent-size",
        type=int,
        default=4,
        help="Indentation width used by the formatter.",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for baselinegen commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    log_file = Path(args.log_file).expanduser() if args.log_file else None
    configure_logging(verbose=bool(args.verbose), log_file=log_file)

    if args.command == "generate":
        _run_generate(parser, args)
    elif args.command == "check":
        _run_check(parser, args)
    elif args.command == "erase":
        _run_erase(parser, args)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _run_generate(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    root = Path(args.path).expanduser().resolve()
    config_path = Path(args.config).expanduser() if args.config else root
    try:
        config = load_config(config_path)
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    if args.staging:
        config.staging_dir = Path(args.staging).expanduser().resolve()
    if args.workers is not None:
        if args.workers < 0:
            parser.exit(1, "--workers must be zero or a positive integer\n")
        config.workers = args.workers

    pipeline = Pipeline(config, use_cache=not args.no_cache)
    try:
        outcome = pipeline.run(root)
    except (FileNotFoundError, NotADirectoryError) as exc:
        parser.exit(1, f"{exc}\n")
    except (ConfigError, PoolFault) as exc:
        parser.exit(1, f"baselinegen generate failed: {exc}\n")
    except BaselineError as exc:
        parser.exit(1, f"baselinegen generate failed: {exc}\nRun with --verbose for more details.\n")

    summary = outcome.summary
    print(
        f"Accepted {summary.accepted} of {summary.total} files "
        f"({summary.untyped_accepted} untyped, {summary.typed_accepted} typed) "
        f"into {_display_path(outcome.staging_dir)}"
    )


def _resolve_file(
    parser: argparse.ArgumentParser, args: argparse.Namespace
) -> Tuple[Path, Dialect, Optional[SourceKind]]:
    path = Path(args.file).expanduser()
    classification = classify_path(path.name)
    if classification is None:
        parser.exit(1, f"{path} is not a supported source file\n")
    dialect, forced = classification
    requested = SourceKind(args.kind) if args.kind else SourceKind.from_flag(forced)
    return path, dialect, requested


def _run_check(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    path, dialect, requested = _resolve_file(parser, args)
    try:
        text = read_source(path)
        if dialect is Dialect.UNTYPED:
            kind = check_untyped(text, requested)
        else:
            kind = check_typed(text, requested).kind
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")
    except RejectedSource as exc:
        parser.exit(1, f"rejected: {exc}\n")
    print(f"{dialect.value} {kind.value}")


def _run_erase(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    path, dialect, requested = _resolve_file(parser, args)
    if dialect is not Dialect.TYPED:
        parser.exit(1, f"{path} is not a typed source file\n")
    formatter = Formatter(indent_size=args.indent_size)
    try:
        output = check_typed(read_source(path), requested, formatter=formatter)
    except RejectedSource as exc:
        parser.exit(1, f"rejected: {exc}\n")
    text = output.typed_source if args.typed else output.untyped_output
    sys.stdout.write(text)


def _display_path(path: Path) -> str:
    cwd = Path.cwd()
    return str(path.relative_to(cwd)) if path.is_relative_to(cwd) else str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
