"""CLI with subcommands: sort, inspect."""
from __future__ import annotations

import argparse
import signal
import sys
from pathlib import Path
from typing import Optional

from pydantic import ValidationError
from rich.prompt import Prompt
from rich.table import Table

from .core.config import DupeFileOption, MonthFormat, SortOptions, TypeScope
from .core.errors import OperationCancelled, SortError
from .logging.rich_logger import QuietProgressReporter, RichProgressReporter, setup_logging

MONTH_FORMAT_CHOICES = {
    "numeric": MonthFormat.NUMERIC,
    "zero-padded": MonthFormat.ZERO_PADDED,
    "abbreviated": MonthFormat.ABBREVIATED,
    "full": MonthFormat.FULL_NAME,
    "narrow": MonthFormat.NARROW,
}

TYPE_CHOICES = {
    "photos": TypeScope.PHOTOS,
    "videos": TypeScope.VIDEOS,
    "both": TypeScope.BOTH,
}

DUPLICATE_CHOICES = {
    "keep-both": DupeFileOption.KEEP_BOTH,
    "skip": DupeFileOption.SKIP,
    "replace": DupeFileOption.REPLACE,
}

# Answers accepted by the interactive prompt; "-all" applies to every remaining duplicate
PROMPT_CHOICES = [
    "keep-both", "skip", "replace",
    "keep-both-all", "skip-all", "replace-all",
]

EXIT_CANCELLED = 130


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="photo-sort",
        description="Sort photos and videos into folders by capture date.",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress non-essential output",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # ============ SORT command ============
    sort_parser = subparsers.add_parser(
        "sort",
        help="Sort a directory tree into year/month/day folders",
    )
    sort_parser.add_argument(
        "input_dir",
        type=Path,
        help="Directory containing photos and videos",
    )
    sort_parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Directory to sort into (default: sort within the input directory)",
    )
    sort_parser.add_argument(
        "--no-year",
        dest="year",
        action="store_false",
        help="Do not create year folders",
    )
    sort_parser.add_argument(
        "--no-month",
        dest="month",
        action="store_false",
        help="Do not create month folders",
    )
    sort_parser.add_argument(
        "--no-day",
        dest="day",
        action="store_false",
        help="Do not create day folders",
    )
    sort_parser.add_argument(
        "--month-format",
        choices=list(MONTH_FORMAT_CHOICES),
        default="full",
        help="How month folders are named (default: full)",
    )
    sort_parser.add_argument(
        "--move",
        action="store_true",
        help="Move files instead of copying them",
    )
    sort_parser.add_argument(
        "--no-sync-creation",
        dest="sync_creation",
        action="store_false",
        help="Leave the creation date at the time of sorting",
    )
    sort_parser.add_argument(
        "--no-sync-modification",
        dest="sync_modification",
        action="store_false",
        help="Leave the modification date at the time of sorting",
    )
    sort_parser.add_argument(
        "--rename",
        nargs="?",
        const="yyyy-MM-dd",
        default=None,
        metavar="PATTERN",
        help="Rename files to PATTERN_001.ext from their capture date (default pattern: yyyy-MM-dd)",
    )
    sort_parser.add_argument(
        "--types",
        choices=list(TYPE_CHOICES),
        default="both",
        help="Which media to sort (default: both)",
    )
    sort_parser.add_argument(
        "--on-duplicate",
        choices=["ask", *DUPLICATE_CHOICES],
        default="ask",
        help="How to resolve duplicate destinations (default: ask)",
    )

    # ============ INSPECT command ============
    inspect_parser = subparsers.add_parser(
        "inspect",
        help="Show the media kind and capture date of files",
    )
    inspect_parser.add_argument(
        "files",
        nargs="+",
        type=Path,
        help="Files to inspect",
    )

    return parser


def build_options(args: argparse.Namespace) -> SortOptions:
    """Turn parsed sort arguments into SortOptions."""
    return SortOptions(
        include_year=args.year,
        include_month=args.month,
        include_day=args.day,
        month_format=MONTH_FORMAT_CHOICES[args.month_format],
        copy_not_move=not args.move,
        sync_creation_date=args.sync_creation,
        sync_modification_date=args.sync_modification,
        rename_enabled=args.rename is not None,
        rename_date_format=args.rename or "yyyy-MM-dd",
        type_scope=TYPE_CHOICES[args.types],
    )


# ============ Command Handlers ============

def resolve_interactively(sorter, reporter) -> int:
    """Ask about each duplicate until none are left.

    Returns:
        Number of duplicates resolved.
    """
    resolved = 0
    while True:
        record = sorter.current_duplicate()
        if record is None:
            return resolved

        reporter.print_duplicate(record, sorter.duplicate_count())
        answer = Prompt.ask(
            "What should happen to the source file?",
            choices=PROMPT_CHOICES,
            default="skip",
            console=reporter.console,
        )
        if answer.endswith("-all"):
            option = DUPLICATE_CHOICES[answer[: -len("-all")]]
            resolved += len(sorter.resolve_all_duplicates(option))
            return resolved

        sorter.resolve_duplicate(record, DUPLICATE_CHOICES[answer])
        resolved += 1


def cmd_sort(args: argparse.Namespace, reporter) -> int:
    """Handle the sort command."""
    from .services.sorter import ImageSorter

    try:
        options = build_options(args)
    except ValidationError as e:
        reporter.error(f"Invalid options: {e}")
        return 2

    output_dir = args.output or args.input_dir

    reporter.print_header("photo-sort")
    reporter.print_config({
        "Input Directory": str(args.input_dir),
        "Output Directory": "same as input" if args.output is None else str(output_dir),
        "Folders": "/".join(
            name for name, on in (("year", options.include_year), ("month", options.include_month), ("day", options.include_day)) if on
        ) or "(none)",
        "Month Format": args.month_format,
        "Mode": "copy" if options.copy_not_move else "move",
        "Rename": options.rename_date_format if options.rename_enabled else "off",
        "Types": options.type_scope.value,
        "Duplicates": args.on_duplicate,
    })

    sorter = ImageSorter(
        input_root=args.input_dir.expanduser().resolve(),
        output_root=output_dir.expanduser().resolve(),
        options=options,
        progress=reporter,
    )

    def on_interrupt(signum, frame):
        sorter.cancel()

    previous_handler = signal.signal(signal.SIGINT, on_interrupt)
    try:
        try:
            duplicates = sorter.run()
        finally:
            reporter.stop()

        resolved = 0
        if duplicates:
            reporter.warning(f"{len(duplicates)} duplicate destination(s) found")
            if args.on_duplicate == "ask":
                # Let Ctrl+C interrupt the prompt normally
                signal.signal(signal.SIGINT, previous_handler)
                resolved = resolve_interactively(sorter, reporter)
            else:
                resolved = len(sorter.resolve_all_duplicates(DUPLICATE_CHOICES[args.on_duplicate]))

        reporter.print_summary(sorter.last_summary, resolved=resolved)
        reporter.success("Success Sorting Photos")
        return 0
    except OperationCancelled as e:
        reporter.warning(f"{e} after {e.progress.completed} of {e.progress.total} files")
        return EXIT_CANCELLED
    except SortError as e:
        reporter.error(str(e))
        return 1
    finally:
        signal.signal(signal.SIGINT, previous_handler)


def cmd_inspect(args: argparse.Namespace, reporter) -> int:
    """Handle the inspect command."""
    from .engines.classifier import classify
    from .engines.metadata import DateResolver

    resolver = DateResolver()
    table = Table(title="Capture Dates", show_header=True, header_style="bold")
    table.add_column("File", style="cyan")
    table.add_column("Kind")
    table.add_column("Capture Date", style="green")
    table.add_column("Source", style="magenta")

    missing = 0
    for path in args.files:
        if not path.is_file():
            reporter.error(f"Not a file: {path}")
            missing += 1
            continue
        kind = classify(path)
        found, source = resolver.resolve_with_source(path, kind)
        table.add_row(
            str(path),
            kind.value,
            found.isoformat(sep=" ") if found else "-",
            source or "-",
        )

    reporter.console.print(table)
    return 0 if missing == 0 else 1


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(verbose=args.verbose)
    if args.quiet:
        reporter = QuietProgressReporter()
    else:
        reporter = RichProgressReporter(verbose=args.verbose)

    if not args.command:
        parser.print_help()
        return 0

    try:
        if args.command == "sort":
            return cmd_sort(args, reporter)
        elif args.command == "inspect":
            return cmd_inspect(args, reporter)
        else:
            reporter.error(f"Unknown command: {args.command}")
            return 1

    except KeyboardInterrupt:
        return EXIT_CANCELLED


if __name__ == "__main__":
    sys.exit(main())
