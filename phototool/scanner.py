"""
Source directory walking with case-insensitive wildcard name matching.
"""

import os
import re
from pathlib import Path
from typing import Iterable, Iterator, List

from .constants import get_logger

logger = get_logger("phototool.scanner")


class WildcardMatcher:
    """Matches file names against ``*``/``?`` patterns, ignoring case."""

    def __init__(self, patterns: Iterable[str]):
        self.patterns = list(patterns)
        if not self.patterns:
            raise ValueError("At least one pattern is required")
        self._regexes = [self._compile(pattern) for pattern in self.patterns]

    @staticmethod
    def _compile(pattern: str) -> "re.Pattern":
        parts = []
        for char in pattern:
            if char == '*':
                parts.append('.*')
            elif char == '?':
                parts.append('.')
            else:
                parts.append(re.escape(char))
        return re.compile(''.join(parts), re.IGNORECASE | re.DOTALL)

    def matches(self, name: str) -> bool:
        return any(regex.fullmatch(name) for regex in self._regexes)


def _is_readable(path: Path) -> bool:
    return os.access(path, os.R_OK)


def _is_traversable(path: Path) -> bool:
    return os.access(path, os.X_OK)


def _list_directory(directory: Path) -> List[os.DirEntry]:
    """Sorted directory entries, or nothing if the directory cannot be listed."""
    try:
        with os.scandir(directory) as entries:
            return sorted(entries, key=lambda entry: entry.name)
    except OSError as e:
        logger.debug(f"Skipping unlistable directory {directory}: {e}")
        return []


def _is_file(entry: os.DirEntry) -> bool:
    try:
        return entry.is_file()
    except OSError:
        return False


def _is_dir(entry: os.DirEntry) -> bool:
    try:
        return entry.is_dir(follow_symlinks=False)
    except OSError:
        return False


def enumerate_files(root: Path, patterns: Iterable[str], recursive: bool = False) -> Iterator[Path]:
    """Lazily yield readable files under ``root`` whose names match any pattern.

    Recursive mode descends depth-first into traversable subdirectories,
    silently skipping ones that cannot be entered. A missing root yields nothing.
    """
    matcher = WildcardMatcher(patterns)
    root = Path(root)
    if not root.is_dir():
        return

    if recursive:
        yield from _walk(root, matcher)
        return

    for entry in _list_directory(root):
        path = Path(entry.path)
        if _is_file(entry) and _is_readable(path) and matcher.matches(entry.name):
            yield path


def _walk(directory: Path, matcher: WildcardMatcher) -> Iterator[Path]:
    for entry in _list_directory(directory):
        path = Path(entry.path)
        if _is_dir(entry):
            if not _is_traversable(path):
                logger.debug(f"Skipping non-traversable directory {path}")
                continue
            yield from _walk(path, matcher)
        elif _is_file(entry):
            if not _is_readable(path):
                logger.debug(f"Skipping unreadable file {path}")
                continue
            if matcher.matches(entry.name):
                yield path
