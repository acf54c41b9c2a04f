"""
Test file enumeration and wildcard matching.
"""

import pytest

from phototool import scanner
from phototool.scanner import WildcardMatcher, enumerate_files


@pytest.fixture
def photo_tree(create_test_files):
    return create_test_files([
        {"name": "a.jpg"},
        {"name": "B.JPG"},
        {"name": "c.png"},
        {"name": "notes.txt"},
        {"name": "sub/d.jpg"},
        {"name": "sub/deeper/e.Jpg"},
        {"name": "sub/deeper/f.txt"},
        {"name": "locked/g.jpg"},
    ])


def names(paths):
    return sorted(p.name for p in paths)


class TestWildcardMatcher:
    """Test case-insensitive wildcard matching."""

    def test_star_and_question_mark(self):
        matcher = WildcardMatcher(["*.jpg", "IMG_????.png"])

        assert matcher.matches("photo.JPG")
        assert matcher.matches("img_0001.PNG")
        assert not matcher.matches("img_01.png")
        assert not matcher.matches("photo.jpeg")

    def test_other_characters_are_literal(self):
        matcher = WildcardMatcher(["[ab].jpg", "a+b.jpg"])

        assert matcher.matches("[AB].jpg")
        assert not matcher.matches("a.jpg")
        assert matcher.matches("a+b.jpg")
        assert not matcher.matches("aab.jpg")

    def test_requires_pattern(self):
        with pytest.raises(ValueError):
            WildcardMatcher([])


class TestEnumerateFiles:
    """Test flat and recursive enumeration."""

    def test_flat_lists_direct_children_only(self, photo_tree):
        found = list(enumerate_files(photo_tree, ["*.jpg"]))
        assert names(found) == ["B.JPG", "a.jpg"]

    def test_any_pattern_matches(self, photo_tree):
        found = list(enumerate_files(photo_tree, ["*.png", "*.txt"]))
        assert names(found) == ["c.png", "notes.txt"]

    def test_recursive_finds_all_depths(self, photo_tree):
        found = list(enumerate_files(photo_tree, ["*.jpg"], recursive=True))
        assert names(found) == ["B.JPG", "a.jpg", "d.jpg", "e.Jpg", "g.jpg"]

    def test_is_lazy(self, photo_tree):
        iterator = enumerate_files(photo_tree, ["*.jpg"], recursive=True)
        first = next(iterator)
        assert first.is_file()

    def test_recursive_skips_non_traversable_directories(self, photo_tree, monkeypatch):
        monkeypatch.setattr(scanner, "_is_traversable", lambda path: path.name != "locked")

        found = list(enumerate_files(photo_tree, ["*.jpg"], recursive=True))
        assert "g.jpg" not in names(found)
        assert "d.jpg" in names(found)

    def test_unreadable_files_skipped(self, photo_tree, monkeypatch):
        monkeypatch.setattr(scanner, "_is_readable", lambda path: path.name != "a.jpg")

        assert names(enumerate_files(photo_tree, ["*.jpg"])) == ["B.JPG"]
        assert "a.jpg" not in names(enumerate_files(photo_tree, ["*.jpg"], recursive=True))

    def test_missing_root_yields_nothing(self, tmp_path):
        assert list(enumerate_files(tmp_path / "missing", ["*"])) == []
        assert list(enumerate_files(tmp_path / "missing", ["*"], recursive=True)) == []

    def test_empty_root_yields_nothing(self, tmp_path):
        assert list(enumerate_files(tmp_path, ["*"], recursive=True)) == []

    def test_directories_never_yielded(self, photo_tree):
        found = list(enumerate_files(photo_tree, ["*"]))
        assert all(path.is_file() for path in found)
        assert "sub" not in names(found)
