"""
Exception types raised by phototool.
"""

from pathlib import Path
from typing import Optional


class PhototoolError(Exception):
    """Base class for fatal phototool errors."""


class ConfigurationError(PhototoolError):
    """Invalid directories, options or settings, detected before any file is touched."""


class ExpressionCompileError(PhototoolError):
    """The classification expression could not be compiled."""


class ExpressionEvaluationError(PhototoolError):
    """The classification expression failed for a specific file."""

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path


class DirectoryCreationError(PhototoolError):
    """A destination directory could not be created."""

    def __init__(self, directory: Path, reason: str):
        super().__init__(f"Failed to create directory {directory}: {reason}")
        self.directory = directory
