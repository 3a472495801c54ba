"""Abstract base class for repositories.

Defines the transfer contract every backend implements, so the artifact layer
works unchanged against a local directory or an object store.
"""

from __future__ import annotations

import os
import tempfile
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from artstore.exceptions import NotFoundError, StoreIOError, TransferCancelledError

# Chunk size for streamed copies and hashing
COPY_CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class FileInfo:
    """Result of Stat and one element of List.

    Attributes:
        name: Last path component, never the full path
        is_dir: True for directories and object-store pseudo-directories
        size: Size in bytes (0 for directories)
        mod_time: Last modification time, UTC (None for pseudo-directories)
    """

    name: str
    is_dir: bool
    size: int = 0
    mod_time: datetime | None = None


@dataclass
class TransferOptions:
    """Per-call transfer options.

    Attributes:
        cancel_event: When set, in-flight transfers abort with TransferCancelledError
        progress: Called with the number of bytes moved since the previous call
    """

    cancel_event: threading.Event | None = None
    progress: Callable[[int], None] | None = None

    def check_cancelled(self, path: str | None = None) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise TransferCancelledError("transfer cancelled", path=path)

    def report(self, nbytes: int) -> None:
        if self.progress is not None and nbytes:
            self.progress(nbytes)


class Repository(ABC):
    """Backend-agnostic store over a slash-separated path namespace.

    Implementations must behave identically: Upload overwrites atomically and
    creates parents implicitly, Delete is idempotent, Stat of a missing path
    raises NotFoundError while List of a missing path returns an empty list.
    """

    @property
    @abstractmethod
    def uri(self) -> str:
        """URI this repository was opened from."""

    @abstractmethod
    def upload(
        self, local_path: str | Path, repo_path: str, options: TransferOptions | None = None
    ) -> None:
        """Stream a local file to ``repo_path``.

        Raises:
            StoreIOError: If the local file cannot be read
            BackendError: If the write fails
            TransferCancelledError: If the cancel event was set
        """

    @abstractmethod
    def download(
        self, repo_path: str, local_path: str | Path, options: TransferOptions | None = None
    ) -> None:
        """Fetch ``repo_path`` into a local file, creating parent directories.

        Raises:
            NotFoundError: If no object exists at ``repo_path``
            StoreIOError: If the local file cannot be written
            BackendError: If the read fails
            TransferCancelledError: If the cancel event was set
        """

    @abstractmethod
    def delete(self, repo_path: str) -> None:
        """Remove the object at ``repo_path``; a missing object is not an error."""

    @abstractmethod
    def stat(self, repo_path: str) -> FileInfo:
        """Describe the file or directory at ``repo_path``.

        Raises:
            NotFoundError: If nothing exists at that exact path
        """

    @abstractmethod
    def list(self, repo_path: str) -> list[FileInfo]:
        """Immediate children of ``repo_path``, or an empty list if it does not exist."""

    # ------------------------------------------------------------------
    # Helpers built on the transfer contract
    # ------------------------------------------------------------------

    def read_bytes(self, repo_path: str) -> bytes:
        """Download a small object into memory.

        Raises:
            NotFoundError: If no object exists at ``repo_path``
        """
        fd, tmp_name = tempfile.mkstemp(prefix="art-read-")
        os.close(fd)
        tmp = Path(tmp_name)
        try:
            self.download(repo_path, tmp)
            return tmp.read_bytes()
        finally:
            tmp.unlink(missing_ok=True)

    def write_bytes(self, repo_path: str, data: bytes) -> None:
        """Upload a small in-memory payload to ``repo_path``."""
        fd, tmp_name = tempfile.mkstemp(prefix="art-write-")
        tmp = Path(tmp_name)
        try:
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
            except OSError as exc:
                raise StoreIOError(
                    f"failed to stage payload: {exc}", path=repo_path, cause=exc
                ) from exc
            self.upload(tmp, repo_path)
        finally:
            tmp.unlink(missing_ok=True)

    def exists(self, repo_path: str) -> bool:
        try:
            self.stat(repo_path)
        except NotFoundError:
            return False
        return True

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.uri!r})"
