"""
Core grouping functionality: classify each matched file and move it into place.
"""

from pathlib import Path
from typing import Iterator, Optional, Sequence

from rich.console import Console
from rich.table import Table

from .constants import get_console, get_logger
from .expression import CompiledExpression, evaluate
from .file_operations import PlaceResult, Relocator
from .records import FileRecord
from .scanner import enumerate_files
from .stats import StatsManager
from .timestamps import DateResolver


class PhotoGrouper:
    """Renames and relocates files according to a classification expression.

    Files are processed strictly one at a time. An evaluation error or a
    directory creation failure aborts the run; files already moved stay moved.
    """

    def __init__(self, source: Path, dest: Path, patterns: Sequence[str],
                 expression: CompiledExpression, recursive: bool = False,
                 overwrite: bool = False, dry_run: bool = False,
                 resolver: Optional[DateResolver] = None, console: Optional[Console] = None):
        self.source = source
        self.dest = dest
        self.patterns = list(patterns)
        self.expression = expression
        self.recursive = recursive
        self.dry_run = dry_run
        self.resolver = resolver or DateResolver()
        self.relocator = Relocator(dest, overwrite=overwrite, dry_run=dry_run)
        self.stats_manager = StatsManager()
        self.console = console or get_console()
        self.logger = get_logger()

        self.logger.info(f"Starting group run: {self.source} -> {self.dest}")
        self.logger.info(f"Mode: {'DRY RUN' if dry_run else 'MOVE'}, "
                         f"overwrite={'on' if overwrite else 'off'}, "
                         f"expression={expression.source!r}")

    def find_source_files(self) -> Iterator[Path]:
        return enumerate_files(self.source, self.patterns, recursive=self.recursive)

    def process_files(self) -> StatsManager:
        """Process every matched file in enumeration order."""
        for file_path in self.find_source_files():
            self.stats_manager.increment_matched()
            result = self._process_single_file(file_path)
            self.stats_manager.record_outcome(result.outcome)
            self.console.print(f"{result.source} -> {result.destination}: {result.outcome.value}",
                               markup=False, highlight=False)

        return self.stats_manager

    def _process_single_file(self, file_path: Path) -> PlaceResult:
        record = FileRecord(file_path, self.resolver)
        relative_path = evaluate(self.expression, record)
        return self.relocator.place(record.path, relative_path)

    def print_summary(self) -> None:
        """Print processing summary."""
        table = Table(title="Processing Summary")
        table.add_column("Category", style="cyan")
        table.add_column("Count", style="green")

        table.add_row("Matched", str(self.stats_manager.get_matched()))
        if self.dry_run:
            table.add_row("Planned", str(self.stats_manager.get_planned()))
        else:
            table.add_row("Moved", str(self.stats_manager.get_moved()))
        table.add_row("Skipped", str(self.stats_manager.get_skipped()))
        table.add_row("Failed", str(self.stats_manager.get_failed()))

        self.console.print(table)

        if self.stats_manager.get_failed():
            self.console.print(f"\n[red]{self.stats_manager.get_failed()} file(s) could not be moved[/red]")
