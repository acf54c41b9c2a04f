"""
Outcome counters for group and convert runs.
"""

from typing import Dict

from .file_operations import PlaceOutcome


class StatsManager:
    """Encapsulates per-run outcome counts."""

    def __init__(self):
        self._stats = {
            'matched': 0,
            'moved': 0,
            'skipped': 0,
            'failed': 0,
            'planned': 0,
            'converted': 0,
            'conversion_failures': 0,
        }

    def increment_matched(self) -> None:
        """Increment count of files matched by the enumeration."""
        self._stats['matched'] += 1

    def record_outcome(self, outcome: PlaceOutcome) -> None:
        """Record the outcome of placing one file."""
        key = {
            PlaceOutcome.MOVED: 'moved',
            PlaceOutcome.SKIPPED: 'skipped',
            PlaceOutcome.FAILED: 'failed',
            PlaceOutcome.PLANNED: 'planned',
        }[outcome]
        self._stats[key] += 1

    def record_conversion(self, success: bool) -> None:
        if success:
            self._stats['converted'] += 1
        else:
            self._stats['conversion_failures'] += 1

    def get_stats(self) -> Dict[str, int]:
        """Get a copy of current statistics."""
        return self._stats.copy()

    def has_errors(self) -> bool:
        """Check if any file failed to move or convert."""
        return self._stats['failed'] > 0 or self._stats['conversion_failures'] > 0

    # Individual stat getters for reporting
    def get_matched(self) -> int:
        return self._stats['matched']

    def get_moved(self) -> int:
        return self._stats['moved']

    def get_skipped(self) -> int:
        return self._stats['skipped']

    def get_failed(self) -> int:
        return self._stats['failed']

    def get_planned(self) -> int:
        return self._stats['planned']

    def get_converted(self) -> int:
        return self._stats['converted']

    def get_conversion_failures(self) -> int:
        return self._stats['conversion_failures']
