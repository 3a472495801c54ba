"""Artifact store exceptions.

Provides domain-specific error types for repository transfers and version
resolution. Every error can carry the ref and repository path it concerns so
that callers (and logs) can tell which operation failed.
"""

from __future__ import annotations


class ArtifactStoreError(Exception):
    """Base exception for artifact store errors."""

    def __init__(self, message: str, *, ref: str | None = None, path: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.ref = ref
        self.path = path

    def __str__(self) -> str:
        context = []
        if self.ref is not None:
            context.append(f"ref={self.ref}")
        if self.path is not None:
            context.append(f"path={self.path}")
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"


class ConfigurationError(ArtifactStoreError):
    """Raised when the store cannot be configured.

    Common causes:
    - ART_REPOSITORY not set and no --repo given
    - Unsupported repository URI scheme
    - Malformed s3:// URI (missing bucket, path traversal)
    """


class UsageError(ArtifactStoreError):
    """Raised on command-line argument misuse."""


class InvalidPathError(ArtifactStoreError, ValueError):
    """Raised when a repository path escapes the repository root."""


class InvalidRefError(ArtifactStoreError, ValueError):
    """Raised when a ref is not a valid version name."""


class NotFoundError(ArtifactStoreError):
    """Raised when Stat or Download targets a path with nothing stored at it."""


class RefNotFoundError(ArtifactStoreError):
    """Raised when an explicit ref has no stored manifest."""


class NoVersionsError(ArtifactStoreError):
    """Raised when `latest` is requested but no upload has ever been published."""


class RefExistsError(ArtifactStoreError):
    """Raised when uploading to a ref that is already published without force."""


class StoreIOError(ArtifactStoreError):
    """Raised on local filesystem failures (upload source, download destination).

    Wraps the underlying OSError in ``cause``.
    """

    def __init__(
        self,
        message: str,
        *,
        ref: str | None = None,
        path: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, ref=ref, path=path)
        self.cause = cause


class BackendError(ArtifactStoreError):
    """Raised when the backing store fails a read, write or listing.

    Common causes:
    - S3 bucket not accessible or insufficient permissions
    - Network connectivity issues
    - Repository directory not writable

    The backend's native exception is kept in ``cause`` for diagnostics.
    """

    def __init__(
        self,
        message: str,
        *,
        ref: str | None = None,
        path: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, ref=ref, path=path)
        self.cause = cause


class CorruptManifestError(BackendError):
    """Raised when a stored manifest or pointer cannot be decoded."""


class ChecksumMismatchError(ArtifactStoreError):
    """Raised when downloaded bytes do not match the manifest's sha1 or size."""


class TransferCancelledError(ArtifactStoreError):
    """Raised when a transfer is aborted through its cancel event."""


class TransferError(ArtifactStoreError):
    """Raised when one or more transfers in a batch failed.

    ``failures`` maps each failed repository path to the exception it raised.
    """

    def __init__(
        self,
        message: str,
        failures: dict[str, BaseException],
        *,
        ref: str | None = None,
    ) -> None:
        super().__init__(message, ref=ref)
        self.failures = failures

    def __str__(self) -> str:
        base = super().__str__()
        details = "; ".join(f"{path}: {exc}" for path, exc in sorted(self.failures.items()))
        return f"{base}: {details}" if details else base
