"""Unit tests for grouping flat object keys into directory listings."""

from datetime import UTC, datetime

from artstore.repository.base import FileInfo
from artstore.repository.listing import ObjectRecord, group_children

KEYS = ["dir/0", "dir/1", "dir/2", "dir/3/0", "dir/3/1", "dir/3/2"]


def _names(infos: list[FileInfo]) -> list[tuple[str, bool]]:
    return [(info.name, info.is_dir) for info in infos]


class TestGroupChildren:
    """Tests for group_children."""

    def test_files_and_one_subdirectory(self) -> None:
        """Verify nested keys collapse into a single directory entry."""
        result = group_children(KEYS, "dir")

        assert _names(result) == [("0", False), ("1", False), ("2", False), ("3", True)]

    def test_subdirectory_listing(self) -> None:
        """Verify listing the nested directory returns its three files."""
        result = group_children(KEYS, "dir/3")

        assert _names(result) == [("0", False), ("1", False), ("2", False)]

    def test_missing_prefix_is_empty(self) -> None:
        """Verify a prefix with no keys yields an empty list, not an error."""
        assert group_children(KEYS, "nonexistent") == []

    def test_prefix_does_not_match_sibling(self) -> None:
        """Verify 'dir' does not pick up keys of 'dir-12345'."""
        keys = ["dir/a", "dir-12345/b", "dirt"]

        assert _names(group_children(keys, "dir")) == [("a", False)]

    def test_file_named_like_prefix_is_not_a_child(self) -> None:
        """Verify listing a path that is itself a file returns nothing."""
        assert group_children(["dir/file"], "dir/file") == []

    def test_root_listing(self) -> None:
        """Verify the empty prefix lists top-level entries."""
        result = group_children(KEYS + ["top.txt"], "")

        assert _names(result) == [("dir", True), ("top.txt", False)]

    def test_directory_wins_over_same_named_file(self) -> None:
        """Verify a name that is both an object and a prefix is reported once, as a dir."""
        result = group_children(["dir/x", "dir/x/y"], "dir")

        assert _names(result) == [("x", True)]

    def test_folder_markers_are_skipped(self) -> None:
        """Verify zero-length 'dir/' marker keys do not produce empty names."""
        result = group_children(["dir/", "dir/a"], "dir")

        assert _names(result) == [("a", False)]

    def test_prefix_is_normalized(self) -> None:
        """Verify trailing slashes on the prefix do not change the result."""
        assert group_children(KEYS, "dir/3/") == group_children(KEYS, "dir/3")

    def test_records_carry_size_and_time(self) -> None:
        """Verify file entries keep the object's size and modification time."""
        when = datetime(2024, 5, 1, tzinfo=UTC)
        records = [ObjectRecord("dir/a", size=42, mod_time=when), ObjectRecord("dir/sub/b", 7)]

        result = group_children(records, "dir")

        assert result[0] == FileInfo(name="a", is_dir=False, size=42, mod_time=when)
        assert result[1] == FileInfo(name="sub", is_dir=True)

    def test_sorted_by_name(self) -> None:
        result = group_children(["p/c", "p/a", "p/b/x"], "p")

        assert [info.name for info in result] == ["a", "b", "c"]
