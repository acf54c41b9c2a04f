"""
Per-file derived attributes used as the expression evaluation context.
"""

import re
from collections.abc import Mapping
from datetime import datetime
from functools import cached_property
from pathlib import Path
from typing import Callable, Dict, Iterator, Optional

from .timestamps import DateResolver

DSC_PATTERN = re.compile(r"DSC\d{4,}")


class FileRecord(Mapping):
    """One candidate file and its lazily derived fields.

    Every time field is taken from a single ``timestamp`` snapshot, resolved
    on first use. The record is also a read-only mapping of field name to
    value, which is how expressions see it.
    """

    def __init__(self, path: Path, resolver: DateResolver):
        self.path = Path(path).absolute()
        self.resolver = resolver

    def __repr__(self) -> str:
        return f"FileRecord({str(self.path)!r})"

    @cached_property
    def timestamp(self) -> datetime:
        return self.resolver.resolve(self.path)

    @property
    def year(self) -> str:
        return f"{self.timestamp.year:04d}"

    @property
    def year2(self) -> str:
        return f"{self.timestamp.year % 100:02d}"

    @property
    def month(self) -> str:
        return f"{self.timestamp.month:02d}"

    @property
    def day(self) -> str:
        return f"{self.timestamp.day:02d}"

    @property
    def hour(self) -> str:
        return f"{self.timestamp.hour:02d}"

    @property
    def minute(self) -> str:
        return f"{self.timestamp.minute:02d}"

    @property
    def second(self) -> str:
        return f"{self.timestamp.second:02d}"

    @property
    def filename(self) -> str:
        return self.path.name

    @property
    def name(self) -> str:
        """Base name without the final extension."""
        return self.path.stem

    @property
    def extension(self) -> str:
        """Final extension without the leading dot, or empty."""
        return self.path.suffix[1:]

    @property
    def parent(self) -> str:
        return self.path.parent.name

    @property
    def dsc(self) -> Optional[str]:
        """Camera "DSC" + 4 or more digits code from the base name, if present."""
        match = DSC_PATTERN.search(self.name)
        return match.group(0) if match else None

    # Mapping protocol: field name -> value

    def __getitem__(self, key: str) -> Optional[str]:
        getter = FIELDS.get(key)
        if getter is None:
            raise KeyError(key)
        return getter(self)

    def __iter__(self) -> Iterator[str]:
        return iter(FIELDS)

    def __len__(self) -> int:
        return len(FIELDS)


FIELDS: Dict[str, Callable[[FileRecord], Optional[str]]] = {
    "yy": lambda r: r.year2,
    "year2": lambda r: r.year2,
    "yyyy": lambda r: r.year,
    "year": lambda r: r.year,
    "MM": lambda r: r.month,
    "month": lambda r: r.month,
    "dd": lambda r: r.day,
    "day": lambda r: r.day,
    "HH": lambda r: r.hour,
    "hour": lambda r: r.hour,
    "mm": lambda r: r.minute,
    "minute": lambda r: r.minute,
    "ss": lambda r: r.second,
    "second": lambda r: r.second,
    "name": lambda r: r.name,
    "ext": lambda r: r.extension,
    "extension": lambda r: r.extension,
    "filename": lambda r: r.filename,
    "parent": lambda r: r.parent,
    "dsc": lambda r: r.dsc,
}
