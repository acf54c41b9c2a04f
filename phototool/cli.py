"""
Command-line interface for phototool.
"""

import argparse
import logging
import sys
import zoneinfo
from datetime import tzinfo
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from .config import Config
from .constants import (DEFAULT_COMMAND, DEFAULT_CONCURRENCY, DEFAULT_DEST_PATTERN,
                        DEFAULT_EXPRESSION, DEFAULT_SOURCE_PATTERN, PROGRAM, get_console,
                        get_error_console, get_logger)
from .conversion import ConversionPipeline
from .core import PhotoGrouper
from .errors import ConfigurationError, PhototoolError
from .expression import compile_expression
from .history import HistoryManager
from .scanner import enumerate_files
from .stats import StatsManager
from .timestamps import DateResolver, local_timezone


def configure_logging(verbose: bool = False) -> logging.Logger:
    """Route program log records to stderr through rich."""
    logger = get_logger()
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    console_handler = RichHandler(console=get_error_console(), show_time=False,
                                  show_path=False, rich_tracebacks=True)
    console_handler.setLevel(logging.INFO if verbose else logging.WARNING)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)
    logger.setLevel(logging.DEBUG)
    return logger


def resolve_timezone(name: Optional[str]) -> tzinfo:
    """Return the named IANA timezone, or the host timezone when no name is given."""
    if not name:
        return local_timezone()
    try:
        return zoneinfo.ZoneInfo(name)
    except (zoneinfo.ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigurationError(f"Unknown timezone: {name}") from e


def positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Not an integer: {value}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"Must be at least 1: {value}")
    return number


def create_parser(config: Config) -> argparse.ArgumentParser:
    """Create argument parser with dynamic defaults from config."""
    expression = config.get_group_expression() or DEFAULT_EXPRESSION
    timezone = config.get_timezone()
    source_pattern = config.get_convert_source_pattern() or DEFAULT_SOURCE_PATTERN
    dest_pattern = config.get_convert_dest_pattern() or DEFAULT_DEST_PATTERN
    command = config.get_convert_command() or DEFAULT_COMMAND
    concurrency = config.get_convert_concurrency() or DEFAULT_CONCURRENCY

    timezone_help = "Timezone for capture dates and modification times"
    timezone_help += f" (default: {timezone})" if timezone else " (default: host timezone)"

    parser = argparse.ArgumentParser(
        prog=PROGRAM,
        description="Group photos into dated folders and batch-convert images",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  {PROGRAM} group -s ~/DCIM '*.jpg' '*.arw'
  {PROGRAM} group -s ~/DCIM -d ~/Pictures -r -e '{{yyyy}}/{{MM}}/{{name|lower}}.{{ext}}' '*.jpg'
  {PROGRAM} convert -s ~/DCIM -d ~/jpg -c 4
        """
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Enable verbose logging"
    )
    parser.add_argument(
        "--version", "-V", action="store_true",
        help=f"Display the version number of {PROGRAM} and exit"
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    group = subparsers.add_parser(
        "group", help="Rename and move files into a layout derived from capture dates"
    )
    group.add_argument(
        "--source", "-s", dest="source", required=True,
        help="Source directory"
    )
    group.add_argument(
        "--dest", "-d", dest="dest",
        help="Destination directory (default: source directory)"
    )
    group.add_argument(
        "--recursive", "-r", action="store_true",
        help="Descend into subdirectories of the source"
    )
    group.add_argument(
        "--overwrite", "-o", action="store_true",
        help="Replace existing destination files"
    )
    group.add_argument(
        "--expression", "-e", "--group-pattern", dest="expression", default=expression,
        help=f"Classification expression (default: {escape_percent(expression)})"
    )
    group.add_argument(
        "--timezone", "--tz", type=str, metavar="TIMEZONE",
        help=timezone_help
    )
    group.add_argument(
        "--dry-run", "-n", action="store_true",
        help="Preview moves without making changes"
    )
    group.add_argument(
        "patterns", nargs="*", metavar="PATTERN",
        help="Case-insensitive wildcard file name pattern, e.g. '*.jpg'"
    )

    convert = subparsers.add_parser(
        "convert", aliases=["hifconv"],
        help="Run an external conversion command over matching files"
    )
    convert.add_argument(
        "--source", "-s", dest="source", default=".",
        help="Source directory (default: current directory)"
    )
    convert.add_argument(
        "--dest", "-d", dest="dest", default=".",
        help="Destination directory (default: current directory)"
    )
    convert.add_argument(
        "--pattern", "-p", dest="source_pattern", default=source_pattern,
        help=f"Source file pattern (default: {source_pattern})"
    )
    convert.add_argument(
        "--output", "-o", dest="dest_pattern", default=dest_pattern,
        help=f"Destination file name pattern with one %%s for the base name "
             f"(default: {escape_percent(dest_pattern)})"
    )
    convert.add_argument(
        "--concurrency", "-c", type=positive_int, default=concurrency,
        help=f"Number of conversions to run at once (default: {concurrency})"
    )
    convert.add_argument(
        "--command", "-x", dest="command_template", default=command,
        help=f"Command template using $SRC and $DST (default: {escape_percent(command)})"
    )
    convert.add_argument(
        "--dry-run", "-n", action="store_true",
        help="Print commands without running them"
    )

    return parser


def escape_percent(text: str) -> str:
    """Escape text for use inside argparse help strings."""
    return text.replace("%", "%%")


def run_group(args: argparse.Namespace, config: Config, console: Console) -> int:
    """Validate options, then classify and move every matching file."""
    source = Path(args.source).expanduser().absolute()
    if not source.is_dir():
        raise ConfigurationError(f"Not a directory: {args.source}")

    dest = Path(args.dest).expanduser().absolute() if args.dest else source
    if not dest.is_dir():
        raise ConfigurationError(f"Not a directory: {args.dest}")

    if not args.patterns:
        raise ConfigurationError("No pattern specified")

    tz = resolve_timezone(args.timezone or config.get_timezone())
    expression = compile_expression(args.expression)

    if args.timezone:
        config.update_timezone(args.timezone)

    history = HistoryManager(config.program_root, "group", dest, dry_run=args.dry_run)
    logger = get_logger()
    history.attach(logger)
    try:
        sorter = PhotoGrouper(
            source=source,
            dest=dest,
            patterns=args.patterns,
            expression=expression,
            recursive=args.recursive,
            overwrite=args.overwrite,
            dry_run=args.dry_run,
            resolver=DateResolver(tz=tz),
            console=console
        )
        completed = False
        try:
            sorter.process_files()
            completed = True
        finally:
            history.log_run_summary(source, sorter.stats_manager, completed)

        if sorter.stats_manager.get_matched() == 0:
            console.print("[yellow]No matching files found in source directory[/yellow]")
            return 0

        sorter.print_summary()
        return 0
    finally:
        history.detach(logger)


def run_convert(args: argparse.Namespace, config: Config, console: Console) -> int:
    """Convert every file matching the source pattern with the external command."""
    error_console = get_error_console()
    source = Path(args.source).expanduser().absolute()
    dest = Path(args.dest).expanduser().absolute()

    pipeline = ConversionPipeline(
        command_template=args.command_template,
        dest_pattern=args.dest_pattern,
        concurrency=args.concurrency,
        dry_run=args.dry_run,
        console=console
    )

    files = list(enumerate_files(source, [args.source_pattern]))
    if not files:
        error_console.print(f"No files found in {escape(str(source))} "
                            f"matching {escape(args.source_pattern)}")
        return 1

    if dest.exists() and not dest.is_dir():
        raise ConfigurationError(f"Not a directory: {args.dest}")
    if not args.dry_run:
        try:
            dest.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(f"Cannot create destination {dest}: {e}") from e

    history = HistoryManager(config.program_root, "convert", dest, dry_run=args.dry_run)
    logger = get_logger()
    history.attach(logger)
    try:
        stats_manager = StatsManager()
        results = pipeline.run(files, dest)
        for result in results:
            stats_manager.increment_matched()
            stats_manager.record_conversion(result.success)
        history.log_run_summary(source, stats_manager, completed=True)
    finally:
        history.detach(logger)

    console.print("all done")
    return 0


def main(config_path: Optional[Path] = None) -> int:
    """Main entry point.

    Args:
        config_path: Optional path to config file (for testing)
    """
    config = Config(config_path=config_path)
    parser = create_parser(config)
    args = parser.parse_args()

    if args.version:
        from . import __version__
        print(__version__)
        return 0

    if not args.command:
        parser.print_help()
        return 1

    configure_logging(args.verbose)
    console = get_console()
    error_console = get_error_console()

    try:
        if args.command == "group":
            return run_group(args, config, console)
        return run_convert(args, config, console)

    except PhototoolError as e:
        error_console.print(f"[red]Error:[/red] {escape(str(e))}")
        return 1
    except KeyboardInterrupt:
        error_console.print("\n[red]Operation cancelled by user[/red]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
