"""S3-compatible object storage repository.

Maps repository paths onto keys below ``s3://bucket/prefix``. Object storage
has no directories, so listings are synthesized from flat keys by
``artstore.repository.listing.group_children``. Uploads rely on S3's atomic
PUT (and multipart completion): a failed transfer never exposes a partial
object at the final key.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from artstore.exceptions import (
    ArtifactStoreError,
    BackendError,
    ConfigurationError,
    NotFoundError,
    StoreIOError,
    TransferCancelledError,
)
from artstore.repository.base import FileInfo, Repository, TransferOptions
from artstore.repository.listing import ObjectRecord, group_children
from artstore.repository.paths import base_name, normalize_repo_path

if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client

    from artstore.config.settings import StoreConfig

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


def parse_s3_uri(s3_uri: str) -> tuple[str, str]:
    """Parse an S3 URI into bucket and prefix.

    Args:
        s3_uri: S3 URI (e.g., s3://bucket/prefix/path)

    Returns:
        Tuple of (bucket, prefix) with the prefix normalized

    Raises:
        ConfigurationError: If URI is invalid or contains path traversal
    """
    if not s3_uri.startswith("s3://"):
        raise ConfigurationError(f"Invalid S3 URI: {s3_uri}")
    path = s3_uri[5:]
    bucket, _, prefix = path.partition("/")

    if not bucket:
        raise ConfigurationError(f"Invalid S3 URI: missing bucket name in {s3_uri}")

    if ".." in prefix.split("/"):
        raise ConfigurationError(f"Invalid S3 URI: path traversal detected in {s3_uri}")

    return bucket, normalize_repo_path(prefix)


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


def _is_not_found(exc: BaseException) -> bool:
    if isinstance(exc, ClientError):
        return _error_code(exc) in NOT_FOUND_CODES
    # upload_file/download_file wrap the ClientError in their own exception types
    cause = exc.__cause__ or exc.__context__
    return isinstance(cause, ClientError) and _error_code(cause) in NOT_FOUND_CODES


class S3Repository(Repository):
    """Repository stored under a bucket prefix in S3 (or an S3-compatible store).

    The boto3 client is created lazily so constructing a repository never
    touches the network. Credentials default to the standard AWS chain unless
    given explicitly.
    """

    def __init__(
        self,
        bucket: str,
        prefix: str = "",
        *,
        region: str | None = None,
        endpoint_url: str | None = None,
        aws_access_key_id: str | None = None,
        aws_secret_access_key: str | None = None,
        client: Any | None = None,
    ) -> None:
        if not bucket:
            raise ConfigurationError("S3 repository requires a bucket name")
        self.bucket = bucket
        self.prefix = normalize_repo_path(prefix)
        self.region = region
        self.endpoint_url = endpoint_url
        self._aws_access_key_id = aws_access_key_id
        self._aws_secret_access_key = aws_secret_access_key
        self._s3_client: S3Client | None = client

    @classmethod
    def from_uri(cls, uri: str, config: StoreConfig | None = None) -> S3Repository:
        bucket, prefix = parse_s3_uri(uri)
        if config is None:
            return cls(bucket, prefix)
        return cls(
            bucket,
            prefix,
            region=config.aws_region,
            endpoint_url=config.s3_endpoint_url,
            aws_access_key_id=config.aws_access_key_id,
            aws_secret_access_key=config.aws_secret_access_key,
        )

    @property
    def uri(self) -> str:
        return f"s3://{self.bucket}/{self.prefix}" if self.prefix else f"s3://{self.bucket}"

    @property
    def client(self) -> S3Client:
        """Lazily initialize the S3 client."""
        if self._s3_client is None:
            try:
                self._s3_client = boto3.client(
                    "s3",
                    region_name=self.region,
                    endpoint_url=self.endpoint_url,
                    aws_access_key_id=self._aws_access_key_id,
                    aws_secret_access_key=self._aws_secret_access_key,
                    config=BotoConfig(retries={"max_attempts": 5, "mode": "standard"}),
                )
            except ValueError as exc:
                raise ConfigurationError(
                    f"invalid S3 endpoint {self.endpoint_url!r}: {exc}"
                ) from exc
        return self._s3_client

    def _key(self, repo_path: str) -> str:
        normalized = normalize_repo_path(repo_path)
        if self.prefix and normalized:
            return f"{self.prefix}/{normalized}"
        return self.prefix or normalized

    def _relative_key(self, key: str) -> str:
        if self.prefix:
            return key[len(self.prefix) + 1 :]
        return key

    def _backend_error(self, action: str, repo_path: str, exc: BaseException) -> BackendError:
        return BackendError(
            f"failed to {action} s3://{self.bucket}/{self._key(repo_path)}: {exc}",
            path=repo_path,
            cause=exc,
        )

    def _callback(self, options: TransferOptions, repo_path: str):
        def on_progress(nbytes: int) -> None:
            options.check_cancelled(repo_path)
            options.report(nbytes)

        return on_progress

    def upload(
        self, local_path: str | Path, repo_path: str, options: TransferOptions | None = None
    ) -> None:
        options = options or TransferOptions()
        normalized = normalize_repo_path(repo_path)
        options.check_cancelled(normalized)
        if not normalized:
            raise BackendError("cannot upload to the repository root", path=normalized)

        source = Path(local_path)
        if not source.is_file():
            raise StoreIOError(f"upload source is not a readable file: {source}", path=normalized)

        key = self._key(normalized)
        try:
            self.client.upload_file(
                str(source),
                self.bucket,
                key,
                Callback=self._callback(options, normalized),
            )
        except ArtifactStoreError:
            raise
        except OSError as exc:
            raise StoreIOError(
                f"failed reading {source}: {exc}", path=normalized, cause=exc
            ) from exc
        except (ClientError, BotoCoreError, S3UploadFailedError) as exc:
            if options.cancel_event is not None and options.cancel_event.is_set():
                raise TransferCancelledError("transfer cancelled", path=normalized) from exc
            raise self._backend_error("upload", normalized, exc) from exc

        logger.debug(f"Uploaded {source} to s3://{self.bucket}/{key}")

    def download(
        self, repo_path: str, local_path: str | Path, options: TransferOptions | None = None
    ) -> None:
        options = options or TransferOptions()
        normalized = normalize_repo_path(repo_path)
        options.check_cancelled(normalized)
        if not normalized:
            raise NotFoundError("object not found", path=normalized)

        destination = Path(local_path)
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreIOError(
                f"cannot create {destination.parent}: {exc}", path=normalized, cause=exc
            ) from exc

        key = self._key(normalized)
        try:
            self.client.download_file(
                self.bucket,
                key,
                str(destination),
                Callback=self._callback(options, normalized),
            )
        except ArtifactStoreError:
            raise
        except (ClientError, BotoCoreError) as exc:
            if _is_not_found(exc):
                raise NotFoundError("object not found", path=normalized) from exc
            if options.cancel_event is not None and options.cancel_event.is_set():
                raise TransferCancelledError("transfer cancelled", path=normalized) from exc
            raise self._backend_error("download", normalized, exc) from exc
        except OSError as exc:
            raise StoreIOError(
                f"cannot write download destination {destination}: {exc}",
                path=normalized,
                cause=exc,
            ) from exc

        logger.debug(f"Downloaded s3://{self.bucket}/{key} to {destination}")

    def delete(self, repo_path: str) -> None:
        normalized = normalize_repo_path(repo_path)
        if not normalized:
            return
        try:
            # DeleteObject succeeds for missing keys
            self.client.delete_object(Bucket=self.bucket, Key=self._key(normalized))
        except (ClientError, BotoCoreError) as exc:
            if _is_not_found(exc):
                return
            raise self._backend_error("delete", normalized, exc) from exc

    def stat(self, repo_path: str) -> FileInfo:
        normalized = normalize_repo_path(repo_path)
        if not normalized:
            return FileInfo(name="", is_dir=True)

        try:
            head = self.client.head_object(Bucket=self.bucket, Key=self._key(normalized))
        except ClientError as exc:
            if not _is_not_found(exc):
                raise self._backend_error("stat", normalized, exc) from exc
        except BotoCoreError as exc:
            raise self._backend_error("stat", normalized, exc) from exc
        else:
            return FileInfo(
                name=base_name(normalized),
                is_dir=False,
                size=int(head.get("ContentLength", 0)),
                mod_time=head.get("LastModified"),
            )

        # No object at the exact key: it may still be a prefix of other keys
        try:
            resp = self.client.list_objects_v2(
                Bucket=self.bucket, Prefix=f"{self._key(normalized)}/", MaxKeys=1
            )
        except (ClientError, BotoCoreError) as exc:
            raise self._backend_error("stat", normalized, exc) from exc
        if resp.get("KeyCount", len(resp.get("Contents", []))) > 0:
            return FileInfo(name=base_name(normalized), is_dir=True)

        raise NotFoundError("path not found", path=normalized)

    def _iter_records(self, repo_path: str):
        key = self._key(repo_path)
        boundary = f"{key}/" if key else ""
        paginator = self.client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self.bucket, Prefix=boundary):
            for obj in page.get("Contents", []):
                yield ObjectRecord(
                    key=self._relative_key(obj["Key"]),
                    size=int(obj.get("Size", 0)),
                    mod_time=obj.get("LastModified"),
                )

    def list(self, repo_path: str) -> list[FileInfo]:
        normalized = normalize_repo_path(repo_path)
        try:
            return group_children(self._iter_records(normalized), normalized)
        except (ClientError, BotoCoreError) as exc:
            raise self._backend_error("list", normalized, exc) from exc
