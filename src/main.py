# src/main.py — v2
"""CLI entry point: batch commands plus find, match and stats.

Usage:
    textflow replace <files...> -p <pattern> -r <replacement> -o <dir>
    textflow extract <files...> -p <pattern> -o <dir>
    textflow merge <files...> -o <file> [--no-separators]
    textflow split <file> -n <lines> -o <dir>
    textflow find <directory> [-g <glob>] [--no-recursive]
    textflow match <file> -p <pattern> [--replace <text> [--first]]
    textflow stats <file> [-p <pattern>]
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from textflow.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        from textflow.config.settings import load_settings

        settings = load_settings()
        _setup_logging(settings, args.verbose)
        return args.func(args, settings)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="textflow",
        description=f"textflow v{__version__}: batch pattern-based text processing",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- replace ---
    p_replace = subparsers.add_parser(
        "replace", help="Find and replace a pattern in every file",
    )
    p_replace.add_argument("files", type=Path, nargs="+", help="Input files")
    p_replace.add_argument("-p", "--pattern", required=True, help="Regular expression")
    p_replace.add_argument(
        "-r", "--replacement", default="",
        help="Replacement text; \\1 or $1 refer to groups (default: empty)",
    )
    _add_output_dir(p_replace)
    _add_workers(p_replace)
    p_replace.set_defaults(func=_cmd_replace)

    # --- extract ---
    p_extract = subparsers.add_parser(
        "extract", help="Write every match of a pattern, one per line",
    )
    p_extract.add_argument("files", type=Path, nargs="+", help="Input files")
    p_extract.add_argument("-p", "--pattern", required=True, help="Regular expression")
    _add_output_dir(p_extract)
    _add_workers(p_extract)
    p_extract.set_defaults(func=_cmd_extract)

    # --- merge ---
    p_merge = subparsers.add_parser(
        "merge", help="Concatenate files into one output file",
    )
    p_merge.add_argument("files", type=Path, nargs="+", help="Input files, in order")
    p_merge.add_argument(
        "-o", "--output", type=Path, required=True, help="Output file",
    )
    p_merge.add_argument(
        "--no-separators", action="store_true",
        help="Do not insert a header block between files",
    )
    p_merge.set_defaults(func=_cmd_merge)

    # --- split ---
    p_split = subparsers.add_parser(
        "split", help="Split a file into numbered parts",
    )
    p_split.add_argument("file", type=Path, help="Input file")
    p_split.add_argument(
        "-n", "--lines", type=int, default=None,
        help="Lines per part (default: TEXTFLOW_SPLIT_LINES_PER_CHUNK)",
    )
    _add_output_dir(p_split)
    p_split.set_defaults(func=_cmd_split)

    # --- find ---
    p_find = subparsers.add_parser(
        "find", help="List files whose name matches a wildcard",
    )
    p_find.add_argument("directory", type=Path, help="Directory to scan")
    p_find.add_argument(
        "-g", "--glob", default="*", help="File name wildcard (default: *)",
    )
    p_find.add_argument(
        "--no-recursive", action="store_true",
        help="Disable recursive scanning",
    )
    p_find.set_defaults(func=_cmd_find)

    # --- match ---
    p_match = subparsers.add_parser(
        "match", help="Show pattern matches in a file",
    )
    p_match.add_argument("file", type=Path, help="Input file")
    p_match.add_argument("-p", "--pattern", required=True, help="Regular expression")
    p_match.add_argument(
        "--replace", default=None,
        help="Print the file with matches replaced instead of listing them",
    )
    p_match.add_argument(
        "--first", action="store_true",
        help="With --replace, replace only the first match",
    )
    p_match.set_defaults(func=_cmd_match)

    # --- stats ---
    p_stats = subparsers.add_parser(
        "stats", help="Show text statistics for a file",
    )
    p_stats.add_argument("file", type=Path, help="Input file")
    p_stats.add_argument(
        "-p", "--pattern", default=None,
        help="Report on this pattern instead of the common patterns",
    )
    p_stats.set_defaults(func=_cmd_stats)

    return parser


def _add_output_dir(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-o", "--output", type=Path, default=Path("./output"),
        help="Output directory (default: ./output)",
    )


def _add_workers(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-w", "--workers", type=int, default=None,
        help="Worker threads (default: TEXTFLOW_BATCH_MAX_WORKERS or CPU count)",
    )


# --- Batch commands ---


def _run_batch(args, settings, operation: str, files: list[Path], target: Path, params: dict) -> int:
    from textflow.api.facade import submit_batch
    from textflow.batch.delivery import BackgroundDelivery

    with BackgroundDelivery() as delivery:
        result = submit_batch(
            operation,
            files,
            target,
            params,
            on_progress=_print_progress,
            settings=settings,
            max_workers=getattr(args, "workers", None),
            delivery=delivery,
        )

    print(f"\n{result}")
    print(f"  Succeeded:  {result.success_count}")
    print(f"  Errors:     {result.errors}")
    print(f"  Duration:   {result.duration_seconds:.2f}s")
    for failure in result.failures:
        print(f"  ! {failure.input_path}: {failure.error}")
    return 1 if result.errors else 0


def _cmd_replace(args: argparse.Namespace, settings) -> int:
    """Execute batch find-and-replace."""
    return _run_batch(
        args, settings, "find_replace", args.files, args.output,
        {"pattern": args.pattern, "replacement": args.replacement},
    )


def _cmd_extract(args: argparse.Namespace, settings) -> int:
    """Execute batch extraction."""
    return _run_batch(
        args, settings, "extract", args.files, args.output, {"pattern": args.pattern},
    )


def _cmd_merge(args: argparse.Namespace, settings) -> int:
    """Execute file merge."""
    add_separators = settings.merge_add_separators and not args.no_separators
    return _run_batch(
        args, settings, "merge", args.files, args.output,
        {"add_separators": add_separators},
    )


def _cmd_split(args: argparse.Namespace, settings) -> int:
    """Execute file split."""
    return _run_batch(
        args, settings, "split", [args.file], args.output,
        {"lines_per_chunk": args.lines},
    )


def _print_progress(snapshot) -> None:
    print(
        f"[{snapshot.completed}/{snapshot.total}] {snapshot.message}",
        file=sys.stderr,
    )


# --- Inspection commands ---


def _cmd_find(args: argparse.Namespace, settings) -> int:
    """List matching files."""
    from textflow.batch.scanner import find_matching_files

    directory: Path = args.directory
    if not directory.is_dir():
        logger.error("Not a directory: %s", directory)
        return 1

    for path in find_matching_files(directory, args.glob, recursive=not args.no_recursive):
        print(path)
    return 0


def _cmd_match(args: argparse.Namespace, settings) -> int:
    """List matches of a pattern, or print the file with replacements applied."""
    from textflow.patterns import matcher
    from textflow.storage.local_store import LocalFileStore

    text = _read_input(args.file, LocalFileStore(settings.file_encoding))
    if text is None:
        return 1

    if args.replace is not None:
        if args.first:
            print(matcher.replace_first(text, args.pattern, args.replace), end="")
        else:
            print(matcher.replace_all(text, args.pattern, args.replace), end="")
        return 0

    found = matcher.find_all(text, args.pattern)
    for m in found:
        print(m)
        for i, group in enumerate(m.groups, start=1):
            print(f"    group {i}: {group}")
    print(f"\n{len(found)} matches")
    return 0


def _cmd_stats(args: argparse.Namespace, settings) -> int:
    """Display text statistics for a file."""
    from textflow.patterns import statistics
    from textflow.storage.local_store import LocalFileStore

    text = _read_input(args.file, LocalFileStore(settings.file_encoding))
    if text is None:
        return 1

    print(statistics.analyze_line_length(text))
    if args.pattern:
        print(f"\nPattern {args.pattern!r}:")
        print(statistics.analyze_pattern_occurrence(text, args.pattern))
        return 0

    for name, stats in statistics.analyze_common_patterns(text).items():
        if stats.total_occurrences:
            print(f"\n{name}:")
            print(stats)

    top_words = list(statistics.analyze_word_frequency(text).items())[:10]
    if top_words:
        print("\nTop words:")
        for word, count in top_words:
            print(f"  {word}: {count}")
    return 0


def _read_input(path: Path, store) -> str | None:
    if not path.is_file():
        logger.error("File not found: %s", path)
        return None
    return store.read_text(path)


def _setup_logging(settings, verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from textflow.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )


if __name__ == "__main__":
    sys.exit(main())
