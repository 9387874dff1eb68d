"""CLI entrypoints for twscan commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .compiler import FileClassesExtractor, OutputWriter, Runner, TailwindCompiler, WatchSession
from .config import ConfigError, load_config
from .logging import configure_logging


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Project directory or .twscan.yml file (defaults to current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="twscan",
        description="Extract Tailwind classes from Python and Jinja sources and compile CSS.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser(
        "run",
        help="Scan all content roots once and compile the stylesheet.",
    )
    _add_verbose_option(run_parser, suppress_default=True)
    _add_path_argument(run_parser)

    watch_parser = subparsers.add_parser(
        "watch",
        help="Scan, compile, then recompile whenever content files change.",
    )
    _add_verbose_option(watch_parser, suppress_default=True)
    _add_path_argument(watch_parser)

    extract_parser = subparsers.add_parser(
        "extract",
        help="Print the classes extracted from the given files.",
    )
    _add_verbose_option(extract_parser, suppress_default=True)
    extract_parser.add_argument("files", nargs="+", help="Source files to inspect.")
    extract_parser.add_argument(
        "--config",
        default=".",
        help="Project directory or .twscan.yml file (defaults to current directory).",
    )

    clear_parser = subparsers.add_parser(
        "clear-cache",
        help="Delete the extraction cache and all .classes artifacts.",
    )
    _add_verbose_option(clear_parser, suppress_default=True)
    _add_path_argument(clear_parser)

    config_parser = subparsers.add_parser(
        "config",
        help="Write the generated tailwind.config.js without compiling.",
    )
    _add_verbose_option(config_parser, suppress_default=True)
    _add_path_argument(config_parser)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for twscan commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(getattr(args, "verbose", False)),
        timestamps=args.command == "watch",
    )

    location = args.config if args.command == "extract" else args.path
    try:
        config = load_config(Path(location))
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    if args.command == "run":
        runner = Runner(config)
        session = runner.run()
        if session is not None:
            _wait(session)
            return
        if runner.last_result is None or not runner.last_result.compiled:
            parser.exit(1, "twscan run failed to compile CSS.\nRun with --verbose for more details.\n")
        print(f"CSS written to {_relativize(config.output_path)}")
    elif args.command == "watch":
        session = Runner(config).run(watch=True)
        if session is not None:
            _wait(session)
    elif args.command == "extract":
        extractor = FileClassesExtractor.from_config(config)
        for file_path in args.files:
            classes = extractor.extract(file_path)
            if len(args.files) == 1:
                print(" ".join(classes))
            else:
                print(f"{file_path}: {' '.join(classes)}")
    elif args.command == "clear-cache":
        FileClassesExtractor.from_config(config).clear_cache()
        removed = OutputWriter(config.scratch_dir, config.content_roots).clear()
        print(f"Cleared extraction cache and {removed} artifact(s)")
    elif args.command == "config":
        path = TailwindCompiler(config).write_config()
        print(f"Tailwind config written to {_relativize(path)}")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _wait(session: WatchSession) -> None:
    try:
        while True:
            session.join(timeout=0.5)
    except KeyboardInterrupt:
        print("Stopping watcher...")
    finally:
        session.stop(timeout=5)


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
