"""
Bounded-concurrency conversion of files through an external command.
"""

import shlex
import subprocess
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from rich.console import Console

from .constants import (DEFAULT_COMMAND, DEFAULT_DEST_PATTERN, DST_PLACEHOLDER,
                        SRC_PLACEHOLDER, get_console, get_logger)
from .errors import ConfigurationError
from .progress import ProgressCounter


@dataclass(frozen=True)
class ConversionTask:
    """One source file, its destination, and the exact command to run."""
    source: Path
    destination: Path
    command: Tuple[str, ...]


@dataclass
class ConversionResult:
    """Result of running one conversion task."""
    task: ConversionTask
    returncode: Optional[int]
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.returncode == 0


CommandRunner = Callable[[Sequence[str]], subprocess.CompletedProcess]


def run_command(command: Sequence[str]) -> subprocess.CompletedProcess:
    """Run a command to completion without a timeout.

    Output is decoded leniently; tools may write arbitrary bytes to stderr.
    """
    return subprocess.run(list(command), capture_output=True, text=True,
                          errors="replace", check=False)


def parse_command_template(template: str) -> List[str]:
    """Split a command template into argument tokens using shell quoting rules."""
    try:
        tokens = shlex.split(template)
    except ValueError as e:
        raise ConfigurationError(f"Invalid command template {template!r}: {e}") from e
    if not tokens:
        raise ConfigurationError("Command template is empty")
    return tokens


def format_destination_name(dest_pattern: str, base_name: str) -> str:
    """Substitute the base name into a ``%s``-style destination name pattern."""
    try:
        return dest_pattern % base_name
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            f"Destination pattern {dest_pattern!r} must contain exactly one %s placeholder: {e}"
        ) from e


class ConversionPipeline:
    """Runs one external command per source file on a fixed-size worker pool."""

    def __init__(self, command_template: str = DEFAULT_COMMAND,
                 dest_pattern: str = DEFAULT_DEST_PATTERN, concurrency: int = 1,
                 dry_run: bool = False, runner: Optional[CommandRunner] = None,
                 console: Optional[Console] = None):
        if concurrency < 1:
            raise ConfigurationError(f"Concurrency must be at least 1, got {concurrency}")
        self.command_tokens = parse_command_template(command_template)
        self.dest_pattern = dest_pattern
        self.concurrency = concurrency
        self.dry_run = dry_run
        self.runner = runner or run_command
        self.console = console or get_console()
        self.logger = get_logger("phototool.conversion")

        # Validate the pattern before any task is built
        format_destination_name(dest_pattern, "x")

    def build_task(self, source: Path, dest_dir: Path) -> ConversionTask:
        source = Path(source).absolute()
        destination = (Path(dest_dir) / format_destination_name(self.dest_pattern, source.stem)).absolute()
        command = tuple(
            token.replace(SRC_PLACEHOLDER, str(source)).replace(DST_PLACEHOLDER, str(destination))
            for token in self.command_tokens
        )
        return ConversionTask(source=source, destination=destination, command=command)

    def build_tasks(self, files: Sequence[Path], dest_dir: Path) -> List[ConversionTask]:
        return [self.build_task(source, dest_dir) for source in files]

    def run(self, files: Sequence[Path], dest_dir: Path) -> List[ConversionResult]:
        """Convert every file, blocking until all tasks have finished.

        A nonzero exit status is logged and returned but does not stop the run.
        """
        tasks = self.build_tasks(files, dest_dir)
        counter = ProgressCounter(len(tasks), on_advance=self._report)

        if self.dry_run:
            results = []
            for task in tasks:
                self.console.print(f"DRY RUN: {shlex.join(task.command)}", markup=False, highlight=False)
                results.append(ConversionResult(task=task, returncode=0))
                counter.advance()
            return results

        results = []
        with ThreadPoolExecutor(max_workers=self.concurrency) as executor:
            futures = [executor.submit(self._execute, task, counter) for task in tasks]
            for future in as_completed(futures):
                results.append(future.result())

        self.logger.info(f"Completed {counter.value}/{counter.total} conversions")
        return results

    def _execute(self, task: ConversionTask, counter: ProgressCounter) -> ConversionResult:
        try:
            completed = self.runner(task.command)
            result = ConversionResult(task=task, returncode=completed.returncode,
                                      stderr=completed.stderr or "")
        except OSError as e:
            self.logger.error(f"Could not run {task.command[0]} for {task.source}: {e}")
            result = ConversionResult(task=task, returncode=None, stderr=str(e))
        except Exception as e:
            self.logger.error(f"Conversion error for {task.source}: {type(e).__name__}: {e}")
            result = ConversionResult(task=task, returncode=None, stderr=str(e))
        finally:
            counter.advance()

        if result.returncode not in (0, None):
            self.logger.warning(
                f"Command exited with status {result.returncode} for {task.source}: "
                f"{result.stderr.strip()}"
            )
        elif result.success:
            self.logger.debug(f"{task.source} -> {task.destination}")

        return result

    def _report(self, completed: int, total: int) -> None:
        self.console.print(f"{completed}/{total}", markup=False, highlight=False)
