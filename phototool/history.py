"""
Run history: per-run log files and the global run audit log.
"""

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .stats import StatsManager


class HistoryManager:
    """Manages per-run logging under the program root directory."""

    def __init__(self, root_dir: Path, command: str, dest_path: Path, dry_run: bool = False):
        self.root_dir = root_dir
        self.command = command
        self.dest_path = dest_path
        self.dry_run = dry_run
        self.history_dir = self.root_dir / "history"
        self.runs_audit_log = self.root_dir / "runs.log"
        self.run_log = self._run_log_path()
        self._file_handler: Optional[logging.FileHandler] = None

    def _run_log_path(self) -> Path:
        """Pick a fresh log file name for this run."""
        timestamp = datetime.now().strftime("%Y-%m-%d")
        base_name = f"{timestamp}+{self.command}-{self._sanitize_dest_name(self.dest_path)}"

        path = self.history_dir / f"{base_name}.log"
        counter = 1
        while path.exists():
            path = self.history_dir / f"{base_name}-{counter:02d}.log"
            counter += 1
        return path

    @staticmethod
    def _sanitize_dest_name(dest_path: Path) -> str:
        """Convert destination path to safe file name."""
        name = dest_path.name
        sanitized = re.sub(r'[^\w\-_]', '-', name)
        sanitized = re.sub(r'-+', '-', sanitized)
        return sanitized.strip('-') or "root"

    def attach(self, logger: logging.Logger) -> None:
        """Configure logger to also write to this run's log file."""
        if self.dry_run:
            return

        self.history_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(self.run_log, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s [%(name)s] %(levelname)s: %(message)s'
        ))
        logger.addHandler(file_handler)
        self._file_handler = file_handler

        # Ensure logger level allows DEBUG messages to reach the file handler
        logger.setLevel(logging.DEBUG)

    def detach(self, logger: logging.Logger) -> None:
        if self._file_handler is None:
            return
        logger.removeHandler(self._file_handler)
        self._file_handler.close()
        self._file_handler = None

    def log_run_summary(self, source: Path, stats_manager: "StatsManager",
                        completed: bool = True) -> None:
        """Append a one-line run summary to the global runs.log."""
        if self.dry_run:
            return

        self.root_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        if not completed:
            status = "ABORTED"
        elif stats_manager.has_errors():
            status = "PARTIAL"
        else:
            status = "SUCCESS"
        stats = stats_manager.get_stats()
        if self.command == "group":
            counts = (f"Matched: {stats['matched']} | Moved: {stats['moved']} | "
                      f"Skipped: {stats['skipped']} | Failed: {stats['failed']}")
        else:
            counts = (f"Matched: {stats['matched']} | Converted: {stats['converted']} | "
                      f"Failed: {stats['conversion_failures']}")

        summary = (
            f"{timestamp} | {self.command} | {status} | "
            f"Source: {source} | Dest: {self.dest_path} | {counts} | Log: {self.run_log.name}\n"
        )

        with open(self.runs_audit_log, 'a', encoding='utf-8') as f:
            f.write(summary)
