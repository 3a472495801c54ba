"""Repository backends.

``new_repository`` dispatches on the repository URI: ``s3://bucket/prefix``
selects object storage, ``file://`` or a bare filesystem path selects the
local backend. Backends are imported lazily so boto3 only loads when an S3
repository is used.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import urlparse

from artstore.exceptions import ConfigurationError
from artstore.repository.base import FileInfo, Repository, TransferOptions

if TYPE_CHECKING:
    from artstore.config.settings import StoreConfig

__all__ = [
    "FileInfo",
    "Repository",
    "TransferOptions",
    "list_schemes",
    "new_repository",
]


def new_repository(uri: str, config: StoreConfig | None = None) -> Repository:
    """Open the repository identified by ``uri``.

    Args:
        uri: ``s3://bucket/prefix``, ``file:///abs/path`` or a filesystem path
        config: Store configuration supplying backend credentials and endpoints

    Returns:
        Repository instance for the URI's backend

    Raises:
        ConfigurationError: If the URI is empty or its scheme is not supported
    """
    if not uri:
        raise ConfigurationError("repository URI is empty")

    parsed = urlparse(uri)
    scheme = parsed.scheme.lower()

    if scheme == "s3":
        from artstore.repository.s3 import S3Repository

        return S3Repository.from_uri(uri, config)

    if scheme == "file":
        from artstore.repository.local import LocalRepository

        return LocalRepository(parsed.path)

    # Bare paths, including Windows drive letters which urlparse reads as a scheme
    if scheme == "" or len(scheme) == 1:
        from artstore.repository.local import LocalRepository

        return LocalRepository(uri)

    raise ConfigurationError(
        f"Unsupported repository URI '{uri}'. Supported schemes: {', '.join(list_schemes())}"
    )


def list_schemes() -> list[str]:
    """List supported repository URI schemes."""
    return ["s3", "file", "<local path>"]
