"""Unit tests for the local filesystem repository."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from artstore.exceptions import BackendError, InvalidPathError, NotFoundError, StoreIOError
from artstore.repository.local import TEMP_PREFIX, LocalRepository


@pytest.fixture
def source(tmp_path: Path) -> Path:
    path = tmp_path / "source.bin"
    path.write_bytes(os.urandom(2048))
    return path


class TestLocalLayout:
    """Tests for how repository paths map onto the filesystem."""

    def test_upload_creates_parents(self, local_repo: LocalRepository, source: Path) -> None:
        local_repo.upload(source, "a/b/c/file.bin")

        assert (local_repo.root / "a" / "b" / "c" / "file.bin").read_bytes() == source.read_bytes()

    def test_root_created_lazily(self, tmp_path: Path) -> None:
        """Verify opening a repository does not touch the filesystem."""
        repo = LocalRepository(tmp_path / "later")

        assert not (tmp_path / "later").exists()
        assert repo.list("") == []

    def test_uri_is_resolved_root(self, tmp_path: Path) -> None:
        repo = LocalRepository(tmp_path / "x" / ".." / "repo")

        assert repo.uri == str((tmp_path / "repo").resolve())

    def test_traversal_rejected(self, local_repo: LocalRepository, source: Path) -> None:
        with pytest.raises(InvalidPathError):
            local_repo.upload(source, "../escape.bin")

    def test_upload_to_root_rejected(self, local_repo: LocalRepository, source: Path) -> None:
        with pytest.raises(BackendError, match="repository root"):
            local_repo.upload(source, "/")


class TestLocalHygiene:
    """Tests for temp files and directory pruning."""

    def test_no_temp_files_left_after_upload(
        self, local_repo: LocalRepository, source: Path
    ) -> None:
        local_repo.upload(source, "dir/file")

        leftovers = [p for p in local_repo.root.rglob("*") if p.name.startswith(TEMP_PREFIX)]
        assert leftovers == []

    def test_list_hides_temp_files(self, local_repo: LocalRepository, source: Path) -> None:
        """Verify in-flight temp files of a concurrent writer never show up."""
        local_repo.upload(source, "dir/file")
        (local_repo.root / "dir" / f"{TEMP_PREFIX}abc").write_bytes(b"partial")

        assert [info.name for info in local_repo.list("dir")] == ["file"]

    def test_failed_write_keeps_previous_content(
        self, local_repo: LocalRepository, source: Path, tmp_path: Path
    ) -> None:
        """Verify a failed rename leaves the old object intact and no temp file behind."""
        local_repo.upload(source, "file")
        other = tmp_path / "other.bin"
        other.write_bytes(b"new content")

        with patch("artstore.repository.local.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(BackendError, match="disk full"):
                local_repo.upload(other, "file")

        assert (local_repo.root / "file").read_bytes() == source.read_bytes()
        assert [p.name for p in local_repo.root.iterdir()] == ["file"]

    def test_delete_prunes_empty_parents(self, local_repo: LocalRepository, source: Path) -> None:
        local_repo.upload(source, "a/b/c/file")
        local_repo.upload(source, "a/keep")

        local_repo.delete("a/b/c/file")

        assert not (local_repo.root / "a" / "b").exists()
        assert (local_repo.root / "a" / "keep").exists()
        assert local_repo.root.exists()


class TestLocalErrors:
    """Tests for error classification."""

    def test_download_directory_is_not_found(
        self, local_repo: LocalRepository, source: Path, tmp_path: Path
    ) -> None:
        local_repo.upload(source, "dir/file")

        with pytest.raises(NotFoundError):
            local_repo.download("dir", tmp_path / "out")

    def test_unreadable_source_is_io_error(
        self, local_repo: LocalRepository, tmp_path: Path
    ) -> None:
        directory = tmp_path / "a-directory"
        directory.mkdir()

        with pytest.raises(StoreIOError) as exc_info:
            local_repo.upload(directory, "x")

        assert exc_info.value.path == "x"
        assert isinstance(exc_info.value.cause, OSError)

    def test_list_failure_is_backend_error(
        self, local_repo: LocalRepository, source: Path
    ) -> None:
        local_repo.upload(source, "dir/file")

        with patch("artstore.repository.local.os.scandir", side_effect=PermissionError("denied")):
            with pytest.raises(BackendError, match="failed to list"):
                local_repo.list("dir")
