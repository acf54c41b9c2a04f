"""
pytest configuration and fixtures for phototool tests.
"""

import io
import os
import shlex
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List

import pytest


@dataclass
class CliResult:
    """Result from running CLI command."""
    exit_code: int
    output: str
    error: str


@pytest.fixture(scope="session")
def test_config_base(tmp_path_factory):
    """Shared test config directory for all tests."""
    return tmp_path_factory.mktemp("phototool_test_config")


@pytest.fixture
def test_config_path(test_config_base):
    """Test-specific config path with clean state guarantee."""
    config_path = test_config_base / "config.yml"

    # Ensure clean state - remove config if it exists
    if config_path.exists():
        config_path.unlink()

    return config_path


@pytest.fixture
def cli_runner():
    """Create a CLI runner that captures output and uses test config."""

    def run_cli(*args, config_path=None):
        """Run phototool CLI with given arguments.

        Args:
            *args: Command line arguments (subcommand, --flags, patterns)
            config_path: Optional config path for test isolation

        Returns:
            CliResult with exit_code, output, and error
        """
        from phototool.cli import main

        # Capture stdout/stderr
        old_stdout = sys.stdout
        old_stderr = sys.stderr
        stdout = io.StringIO()
        stderr = io.StringIO()

        # Store original argv
        old_argv = sys.argv

        try:
            sys.stdout = stdout
            sys.stderr = stderr
            sys.argv = ['phototool'] + [str(a) for a in args]

            exit_code = main(config_path=config_path)

            return CliResult(
                exit_code=exit_code,
                output=stdout.getvalue(),
                error=stderr.getvalue()
            )
        except SystemExit as e:
            # Handle sys.exit() calls from argparse
            return CliResult(
                exit_code=e.code if e.code is not None else 0,
                output=stdout.getvalue(),
                error=stderr.getvalue()
            )
        finally:
            sys.stdout = old_stdout
            sys.stderr = old_stderr
            sys.argv = old_argv

    return run_cli


@pytest.fixture
def create_test_files(tmp_path):
    """Helper to create test files with specific properties."""

    def create_files(file_specs: List[dict], folder: str = "test_files") -> Path:
        """Create test files based on specifications.

        Args:
            file_specs: List of dicts with keys:
                - name: filename, may include subdirectories
                - content: file content (optional)
                - mtime: modification time as datetime (optional)
            folder: name of the directory to create under tmp_path

        Returns:
            Path to directory containing created files
        """
        test_dir = tmp_path / folder
        test_dir.mkdir(exist_ok=True)

        for spec in file_specs:
            file_path = test_dir / spec['name']

            # Ensure parent directory exists
            file_path.parent.mkdir(parents=True, exist_ok=True)

            content = spec.get('content', b'test file content')
            if isinstance(content, str):
                file_path.write_text(content)
            else:
                file_path.write_bytes(content)

            if 'mtime' in spec:
                mtime = spec['mtime'].timestamp()
                os.utime(file_path, (mtime, mtime))

        return test_dir

    return create_files


@pytest.fixture
def fake_exif(monkeypatch):
    """Replace exiftool with an in-memory table of capture dates keyed by file name."""

    def install(dates_by_name: Dict[str, str], tag: str = "DateTimeOriginal") -> Dict[str, int]:
        calls: Dict[str, int] = {}

        def read_exif_dates(path: Path) -> Dict[str, str]:
            calls[path.name] = calls.get(path.name, 0) + 1
            if path.name in dates_by_name:
                return {tag: dates_by_name[path.name]}
            return {}

        monkeypatch.setattr("phototool.timestamps.read_exif_dates", read_exif_dates)
        return calls

    return install


@pytest.fixture
def utc_datetime():
    """Build a UTC-aware datetime."""

    def make(*args) -> datetime:
        return datetime(*args, tzinfo=timezone.utc)

    return make


@pytest.fixture
def copy_command():
    """Conversion command template that copies $SRC to $DST with the current
    interpreter, failing for sources whose name starts with 'bad'."""
    script = (
        "import os, shutil, sys; src, dst = sys.argv[1:3]; "
        "sys.exit(1) if os.path.basename(src).startswith('bad') else shutil.copyfile(src, dst)"
    )
    return f"{shlex.quote(sys.executable)} -c {shlex.quote(script)} $SRC $DST"


@pytest.fixture
def assert_file_structure():
    """Helper to assert expected file structure."""

    def check_structure(base_path: Path, expected_structure: dict):
        """Assert that directory has expected structure.

        Args:
            base_path: Root directory to check
            expected_structure: Dict describing expected structure
                e.g., {
                    "23-05-01": ["2305011430_a.jpg"],
                    "22-01-02": ["2201020000_b.jpg"]
                }
        """
        def check_level(path: Path, structure: dict):
            for name, value in structure.items():
                item_path = path / name
                assert item_path.exists(), f"Expected {item_path} to exist"

                if isinstance(value, dict):
                    assert item_path.is_dir(), f"Expected {item_path} to be a directory"
                    check_level(item_path, value)
                elif isinstance(value, list):
                    assert item_path.is_dir(), f"Expected {item_path} to be a directory"
                    actual_files = sorted([f.name for f in item_path.iterdir() if f.is_file()])
                    expected_files = sorted(value)
                    assert actual_files == expected_files, \
                        f"Expected files {expected_files} in {item_path}, got {actual_files}"

        check_level(base_path, expected_structure)

    return check_structure
