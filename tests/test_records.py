"""
Test per-file derived fields.
"""

from datetime import datetime, timezone

import pytest

from phototool.records import FIELDS, FileRecord


UTC = timezone.utc


class StubResolver:
    """Resolver returning a fixed timestamp and counting calls."""

    def __init__(self, timestamp):
        self.timestamp = timestamp
        self.calls = 0

    def resolve(self, path):
        self.calls += 1
        return self.timestamp


class TestFileRecord:
    """Test FileRecord field derivation."""

    def test_time_fields_zero_padded(self, tmp_path):
        resolver = StubResolver(datetime(2003, 4, 5, 6, 7, 8, tzinfo=UTC))
        record = FileRecord(tmp_path / "IMG_1.JPG", resolver)

        assert record.year2 == "03"
        assert record.year == "2003"
        assert record.month == "04"
        assert record.day == "05"
        assert record.hour == "06"
        assert record.minute == "07"
        assert record.second == "08"

    def test_timestamp_resolved_once(self, tmp_path):
        resolver = StubResolver(datetime(2023, 5, 1, 14, 30, tzinfo=UTC))
        record = FileRecord(tmp_path / "a.jpg", resolver)

        values = [record["yy"], record["MM"], record["dd"], record["HH"], record["mm"], record["ss"]]

        assert values == ["23", "05", "01", "14", "30", "00"]
        assert resolver.calls == 1

    def test_name_fields_do_not_resolve_timestamp(self, tmp_path):
        resolver = StubResolver(datetime(2023, 5, 1, tzinfo=UTC))
        record = FileRecord(tmp_path / "holiday.photo.jpeg", resolver)

        assert record["name"] == "holiday.photo"
        assert record["ext"] == "jpeg"
        assert record["filename"] == "holiday.photo.jpeg"
        assert record["parent"] == tmp_path.name
        assert resolver.calls == 0

    def test_missing_extension(self, tmp_path):
        record = FileRecord(tmp_path / "README", StubResolver(None))
        assert record.extension == ""
        assert record.name == "README"

    @pytest.mark.parametrize("name,expected", [
        ("DSC01234.ARW", "DSC01234"),
        ("_DSC0001_edit.jpg", "DSC0001"),
        ("DSC123456789.jpg", "DSC123456789"),
        ("DSC123.jpg", None),
        ("dsc01234.jpg", None),
        ("IMG_0001.jpg", None),
    ])
    def test_dsc_token(self, tmp_path, name, expected):
        record = FileRecord(tmp_path / name, StubResolver(None))
        assert record.dsc == expected
        assert record["dsc"] == expected

    def test_mapping_protocol(self, tmp_path):
        record = FileRecord(tmp_path / "a.jpg", StubResolver(None))

        assert set(record) == set(FIELDS)
        assert len(record) == len(FIELDS)
        assert "yy" in record
        assert "nope" not in record
        with pytest.raises(KeyError):
            record["nope"]

    def test_path_is_absolute(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        record = FileRecord("a.jpg", StubResolver(None))
        assert record.path.is_absolute()
