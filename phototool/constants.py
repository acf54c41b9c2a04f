"""
Program-wide constants, defaults and shared console/logger accessors.
"""

import logging
import subprocess
from functools import lru_cache

from rich.console import Console

PROGRAM = "phototool"

# Default classification expression for the group command
DEFAULT_EXPRESSION = "{yy}-{MM}-{dd}/{yy}{MM}{dd}{HH}{mm}_{name}.{ext}"

# Defaults for the convert command
DEFAULT_SOURCE_PATTERN = "*.HIF"
DEFAULT_DEST_PATTERN = "%s.JPG"
DEFAULT_COMMAND = "magick $SRC $DST"
DEFAULT_CONCURRENCY = 1

# Placeholder tokens in conversion command templates
SRC_PLACEHOLDER = "$SRC"
DST_PLACEHOLDER = "$DST"

# EXIF date tags in priority order
EXIF_DATE_TAGS = (
    "SubSecCreateDate",
    "CreationDate",
    "CreateDate",
    "CreationTime",
    "CreateTime",
    "ProfileDateTime",
    "DateTimeOriginal",
)

_console = Console(soft_wrap=True)
_error_console = Console(stderr=True, soft_wrap=True)


def get_console() -> Console:
    """Shared console for user-facing output."""
    return _console


def get_error_console() -> Console:
    """Shared console for errors and log records."""
    return _error_console


def get_logger(name: str = PROGRAM) -> logging.Logger:
    return logging.getLogger(name)


@lru_cache(maxsize=None)
def check_tool_availability(cmd: str, version_flag: str = "-ver") -> bool:
    """Check whether an external tool can be launched."""
    try:
        subprocess.run([cmd, version_flag], capture_output=True, check=False, timeout=10)
        return True
    except (OSError, subprocess.TimeoutExpired):
        return False
