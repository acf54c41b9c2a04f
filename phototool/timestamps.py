"""Capture-date resolution with per-path caching."""

import json
import re
import subprocess
import threading
from datetime import datetime, timedelta, timezone, tzinfo
from pathlib import Path
from typing import Callable, Dict, Optional

from .constants import EXIF_DATE_TAGS, check_tool_availability, get_logger


logger = get_logger("phototool.timestamps")

MetadataReader = Callable[[Path], Dict[str, str]]

_DATE_PATTERN = re.compile(
    r'(\d{4}[-:]\d{2}[-:]\d{2})[T ](\d{2}:\d{2}:\d{2})(?:\.(\d+))?(Z|[+-]\d{2}:?\d{2})?'
)


def local_timezone() -> tzinfo:
    """Host timezone as of now."""
    return datetime.now().astimezone().tzinfo


def read_exif_dates(image_path: Path) -> Dict[str, str]:
    """Read creation date tags from an image using exiftool.

    Returns an empty dict when exiftool is unavailable or reports nothing.
    """
    if not check_tool_availability("exiftool", "-ver"):
        return {}

    result = subprocess.run(
        ["exiftool", "-q", "-json", *(f"-{tag}" for tag in EXIF_DATE_TAGS), str(image_path)],
        capture_output=True, text=True, errors="replace", check=True
    )

    try:
        return json.loads(result.stdout)[0]
    except (IndexError, json.JSONDecodeError):
        return {}


def canonical_exif_date(dates: Dict[str, str], tz: tzinfo) -> Optional[datetime]:
    """Parse the highest-priority usable date tag, if any."""
    for date_field in EXIF_DATE_TAGS:
        value = dates.get(date_field)
        if not isinstance(value, str):
            continue

        try:
            parsed = parse_exif_datetime(value, tz)
        except ValueError:
            continue
        if parsed is not None:
            return parsed

    return None


def parse_exif_datetime(timestamp_str: str, tz: tzinfo) -> Optional[datetime]:
    """Parse ISO 8601 or EXIF date-time string into an aware datetime in ``tz``.

    Handles both ISO 8601 (2025-05-06T19:41:34-0400) and raw EXIF
    (2025:05:06 19:41:34.745-04:00) date formats. Strings without an offset
    are taken as wall-clock time in ``tz``.
    """
    match = _DATE_PATTERN.match(timestamp_str)
    if not match:
        return None

    # Normalize colon-separated dates (EXIF format) to dash-separated
    date_part = match.group(1).replace(':', '-')
    time_part = match.group(2)
    fractional_part = match.group(3)
    timezone_part = match.group(4)

    datetime_str = f"{date_part} {time_part}"
    if fractional_part:
        milliseconds = fractional_part.ljust(3, '0')[:3]
        base_dt = datetime.strptime(f"{datetime_str}.{milliseconds}", "%Y-%m-%d %H:%M:%S.%f")
    else:
        base_dt = datetime.strptime(datetime_str, "%Y-%m-%d %H:%M:%S")

    if not timezone_part:
        return base_dt.replace(tzinfo=tz)

    if timezone_part == 'Z':
        offset = timezone.utc
    else:
        # Normalize "-0400" to "-04:00"
        tz_str = timezone_part
        if ':' not in tz_str:
            tz_str = f"{tz_str[:-2]}:{tz_str[-2:]}"
        sign = 1 if tz_str[0] == '+' else -1
        minutes = sign * (int(tz_str[1:3]) * 60 + int(tz_str[4:6]))
        offset = timezone(timedelta(minutes=minutes))

    return base_dt.replace(tzinfo=offset).astimezone(tz)


class TimestampCache:
    """Write-once mapping from absolute path to resolved timestamp."""

    def __init__(self):
        self._entries: Dict[str, datetime] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[datetime]:
        with self._lock:
            return self._entries.get(key)

    def set_once(self, key: str, value: datetime) -> datetime:
        """Store ``value`` unless the key is already present; return the stored value."""
        with self._lock:
            return self._entries.setdefault(key, value)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class DateResolver:
    """Resolves the effective timestamp of a file.

    Embedded capture metadata wins; the modification time is the fallback.
    Results are cached per absolute path for the lifetime of the resolver,
    so a file touched again later in the run keeps its first timestamp.
    """

    def __init__(self, tz: Optional[tzinfo] = None, reader: Optional[MetadataReader] = None,
                 cache: Optional[TimestampCache] = None):
        self.tz = tz or local_timezone()
        self.reader = reader or read_exif_dates
        self.cache = cache if cache is not None else TimestampCache()

    def resolve(self, file_path: Path) -> datetime:
        """Return the effective timestamp for ``file_path``. Never raises for metadata problems."""
        key = str(Path(file_path).absolute())
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        return self.cache.set_once(key, self._effective_date(Path(key)))

    def _effective_date(self, file_path: Path) -> datetime:
        try:
            capture_date = canonical_exif_date(self.reader(file_path) or {}, self.tz)
        except Exception as e:
            logger.debug(f"Metadata read failed for {file_path}: {e}")
            capture_date = None

        if capture_date is not None:
            logger.debug(f"Capture date: {file_path} = {capture_date}")
            return capture_date

        return self._modification_date(file_path)

    def _modification_date(self, file_path: Path) -> datetime:
        try:
            mtime = file_path.stat().st_mtime
        except OSError as e:
            logger.warning(f"Cannot stat {file_path}, using epoch: {e}")
            mtime = 0
        logger.debug(f"Using modification time for {file_path}")
        return datetime.fromtimestamp(mtime, tz=self.tz)
