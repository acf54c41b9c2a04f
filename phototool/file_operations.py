"""
File relocation with lazy, cached destination directory creation.
"""

import shutil
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Set

from .constants import get_logger
from .errors import DirectoryCreationError


class PlaceOutcome(Enum):
    MOVED = "success"
    FAILED = "fail"
    SKIPPED = "skipped"
    PLANNED = "dry run"


@dataclass
class PlaceResult:
    """Result of placing one file at its computed destination."""
    source: Path
    destination: Path
    outcome: PlaceOutcome
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome is not PlaceOutcome.FAILED


class Relocator:
    """Moves files under a destination root for a single group run.

    Parent directories are created on first need and remembered, so a
    directory is checked or created at most once per run.
    """

    def __init__(self, dest_root: Path, overwrite: bool = False, dry_run: bool = False):
        self.dest_root = Path(dest_root)
        self.overwrite = overwrite
        self.dry_run = dry_run
        self.known_directories: Set[str] = set()
        self.logger = get_logger("phototool.file_operations")

    def resolve(self, relative_path: str) -> Path:
        return (self.dest_root / relative_path).absolute()

    def place(self, source: Path, relative_path: str) -> PlaceResult:
        """Move ``source`` to ``dest_root/relative_path`` subject to the overwrite policy.

        Raises DirectoryCreationError if the destination directory cannot be
        created; move failures are reported in the result instead.
        """
        source = Path(source).absolute()
        dest = self.resolve(relative_path)

        if dest == source:
            self.logger.debug(f"Already in place: {source}")
            return PlaceResult(source, dest, PlaceOutcome.SKIPPED)

        if dest.exists() and not self.overwrite:
            self.logger.info(f"Destination exists, skipping: {source} -> {dest}")
            return PlaceResult(source, dest, PlaceOutcome.SKIPPED)

        if self.dry_run:
            self.logger.info(f"DRY RUN: Would move {source} -> {dest}")
            return PlaceResult(source, dest, PlaceOutcome.PLANNED)

        self.ensure_directory(dest.parent)
        return self.move_file_safely(source, dest)

    def ensure_directory(self, directory: Path) -> None:
        """Create ``directory`` and parents unless already handled this run."""
        key = str(directory)
        if key in self.known_directories:
            return
        self.known_directories.add(key)

        if directory.is_dir():
            return
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DirectoryCreationError(directory, str(e)) from e
        self.logger.debug(f"Created directory {directory}")

    def move_file_safely(self, source: Path, dest: Path) -> PlaceResult:
        """Move a file, reporting failure instead of raising."""
        try:
            if dest.is_dir():
                raise IsADirectoryError(f"Destination is a directory: {dest}")

            shutil.move(str(source), str(dest))

            if not dest.exists():
                raise FileNotFoundError(f"File not found after move: {dest}")

            self.logger.info(f"{source} -> {dest}")
            return PlaceResult(source, dest, PlaceOutcome.MOVED)

        except Exception as e:
            self.logger.error(f"Failed to move {source} -> {dest}: {e}")
            return PlaceResult(source, dest, PlaceOutcome.FAILED, error=str(e))
