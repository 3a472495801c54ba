"""Local filesystem repository.

Stores every repository path as a file under a root directory. Writes go to a
hidden temp file in the destination directory and are moved into place with
``os.replace``, so a failed transfer never leaves a partial file at the final
path.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import BinaryIO

from artstore.exceptions import ArtifactStoreError, BackendError, NotFoundError, StoreIOError
from artstore.repository.base import COPY_CHUNK_SIZE, FileInfo, Repository, TransferOptions
from artstore.repository.paths import normalize_repo_path

logger = logging.getLogger(__name__)

TEMP_PREFIX = ".art-tmp-"

ErrorFactory = Callable[[OSError], ArtifactStoreError]


def _copy_stream(
    src: BinaryIO,
    dst: BinaryIO,
    options: TransferOptions,
    repo_path: str,
    on_read_error: ErrorFactory,
    on_write_error: ErrorFactory,
) -> None:
    while True:
        options.check_cancelled(repo_path)
        try:
            chunk = src.read(COPY_CHUNK_SIZE)
        except OSError as exc:
            raise on_read_error(exc) from exc
        if not chunk:
            return
        try:
            dst.write(chunk)
        except OSError as exc:
            raise on_write_error(exc) from exc
        options.report(len(chunk))


def _atomic_write(
    target: Path,
    src: BinaryIO,
    options: TransferOptions,
    repo_path: str,
    on_read_error: ErrorFactory,
    on_write_error: ErrorFactory,
) -> None:
    """Copy ``src`` into a temp file next to ``target``, then rename it into place."""
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=TEMP_PREFIX, dir=target.parent)
    except OSError as exc:
        raise on_write_error(exc) from exc

    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as dst:
            _copy_stream(src, dst, options, repo_path, on_read_error, on_write_error)
        try:
            os.replace(tmp, target)
        except OSError as exc:
            raise on_write_error(exc) from exc
    finally:
        tmp.unlink(missing_ok=True)


class LocalRepository(Repository):
    """Repository rooted at a local directory.

    The root directory is created lazily on the first upload; listing a
    repository that was never written to behaves like an empty repository.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).expanduser().resolve()

    @property
    def uri(self) -> str:
        return str(self.root)

    def _full_path(self, repo_path: str) -> Path:
        normalized = normalize_repo_path(repo_path)
        return self.root / normalized if normalized else self.root

    def upload(
        self, local_path: str | Path, repo_path: str, options: TransferOptions | None = None
    ) -> None:
        options = options or TransferOptions()
        normalized = normalize_repo_path(repo_path)
        options.check_cancelled(normalized)
        if not normalized:
            raise BackendError("cannot upload to the repository root", path=normalized)

        def read_error(exc: OSError) -> ArtifactStoreError:
            return StoreIOError(
                f"cannot read upload source {local_path}: {exc}", path=normalized, cause=exc
            )

        def write_error(exc: OSError) -> ArtifactStoreError:
            return BackendError(
                f"failed writing to repository: {exc}", path=normalized, cause=exc
            )

        try:
            src = open(local_path, "rb")
        except OSError as exc:
            raise read_error(exc) from exc

        target = self._full_path(normalized)
        with src:
            _atomic_write(target, src, options, normalized, read_error, write_error)

        logger.debug(f"Uploaded {local_path} to {target}")

    def download(
        self, repo_path: str, local_path: str | Path, options: TransferOptions | None = None
    ) -> None:
        options = options or TransferOptions()
        normalized = normalize_repo_path(repo_path)
        options.check_cancelled(normalized)

        source = self._full_path(normalized)
        if not normalized or not source.is_file():
            raise NotFoundError("object not found", path=normalized)

        destination = Path(local_path)

        def read_error(exc: OSError) -> ArtifactStoreError:
            return BackendError(
                f"failed reading from repository: {exc}", path=normalized, cause=exc
            )

        def write_error(exc: OSError) -> ArtifactStoreError:
            return StoreIOError(
                f"cannot write download destination {destination}: {exc}",
                path=normalized,
                cause=exc,
            )

        try:
            src = open(source, "rb")
        except FileNotFoundError as exc:
            raise NotFoundError("object not found", path=normalized) from exc
        except OSError as exc:
            raise read_error(exc) from exc

        with src:
            _atomic_write(destination, src, options, normalized, read_error, write_error)

        logger.debug(f"Downloaded {source} to {destination}")

    def delete(self, repo_path: str) -> None:
        normalized = normalize_repo_path(repo_path)
        target = self._full_path(normalized)
        if not normalized or target.is_dir():
            # Directories are implicit, like prefixes in object storage
            return
        try:
            target.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            raise BackendError(f"failed to delete: {exc}", path=normalized, cause=exc) from exc

        self._prune_empty_parents(target.parent)

    def _prune_empty_parents(self, directory: Path) -> None:
        """Remove directories left empty by a delete, stopping at the root."""
        while directory != self.root and self.root in directory.parents:
            try:
                directory.rmdir()
            except OSError:
                # Not empty, or already gone
                return
            directory = directory.parent

    def stat(self, repo_path: str) -> FileInfo:
        normalized = normalize_repo_path(repo_path)
        if not normalized:
            return FileInfo(name="", is_dir=True)

        target = self._full_path(normalized)
        try:
            st = target.stat()
        except (FileNotFoundError, NotADirectoryError) as exc:
            raise NotFoundError("path not found", path=normalized) from exc
        except OSError as exc:
            raise BackendError(f"failed to stat: {exc}", path=normalized, cause=exc) from exc

        is_dir = target.is_dir()
        return FileInfo(
            name=target.name,
            is_dir=is_dir,
            size=0 if is_dir else st.st_size,
            mod_time=datetime.fromtimestamp(st.st_mtime, tz=UTC),
        )

    def list(self, repo_path: str) -> list[FileInfo]:
        normalized = normalize_repo_path(repo_path)
        directory = self._full_path(normalized)
        if not directory.is_dir():
            return []

        entries: list[FileInfo] = []
        try:
            with os.scandir(directory) as it:
                for entry in it:
                    if entry.name.startswith(TEMP_PREFIX):
                        continue
                    try:
                        is_dir = entry.is_dir()
                        st = entry.stat()
                    except FileNotFoundError:
                        # Removed while listing
                        continue
                    entries.append(
                        FileInfo(
                            name=entry.name,
                            is_dir=is_dir,
                            size=0 if is_dir else st.st_size,
                            mod_time=datetime.fromtimestamp(st.st_mtime, tz=UTC),
                        )
                    )
        except OSError as exc:
            raise BackendError(f"failed to list: {exc}", path=normalized, cause=exc) from exc

        return sorted(entries, key=lambda info: info.name)
