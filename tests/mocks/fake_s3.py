"""
In-memory S3 client for unit tests

Implements the subset of the boto3 S3 client that S3Repository calls, with
the same error shapes (botocore ClientError carrying 404 codes), so the
object-storage backend can be exercised without network access.
"""

import threading
from datetime import UTC, datetime
from pathlib import Path

from botocore.exceptions import ClientError

# Transfer callbacks fire per chunk, like s3transfer does
CALLBACK_CHUNK = 256 * 1024


def _client_error(code: str, operation: str, message: str = "Not Found") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


class _FakePaginator:
    def __init__(self, client: "FakeS3Client", page_size: int):
        self._client = client
        self._page_size = page_size

    def paginate(self, Bucket: str, Prefix: str = "", **kwargs):
        keys = self._client._matching_keys(Bucket, Prefix)
        if not keys:
            yield {"KeyCount": 0}
            return
        for start in range(0, len(keys), self._page_size):
            chunk = keys[start : start + self._page_size]
            yield {
                "KeyCount": len(chunk),
                "Contents": [self._client._describe(Bucket, key) for key in chunk],
            }


class FakeS3Client:
    """Thread-safe in-memory stand-in for ``boto3.client("s3")``."""

    def __init__(self, buckets: tuple[str, ...] = ("test-bucket",), page_size: int = 1000):
        self._objects: dict[str, dict[str, tuple[bytes, datetime]]] = {b: {} for b in buckets}
        self._lock = threading.Lock()
        self.page_size = page_size
        self.fail_uploads_for: set[str] = set()
        self.calls: list[tuple[str, str]] = []

    # -- helpers ---------------------------------------------------------

    def _bucket(self, bucket: str, operation: str) -> dict[str, tuple[bytes, datetime]]:
        if bucket not in self._objects:
            raise _client_error("NoSuchBucket", operation, "The specified bucket does not exist")
        return self._objects[bucket]

    def _matching_keys(self, bucket: str, prefix: str) -> list[str]:
        with self._lock:
            return sorted(k for k in self._bucket(bucket, "ListObjectsV2") if k.startswith(prefix))

    def _describe(self, bucket: str, key: str) -> dict:
        data, modified = self._objects[bucket][key]
        return {"Key": key, "Size": len(data), "LastModified": modified}

    def put(self, bucket: str, key: str, data: bytes) -> None:
        with self._lock:
            self._bucket(bucket, "PutObject")[key] = (data, datetime.now(UTC))

    def keys(self, bucket: str = "test-bucket") -> list[str]:
        return self._matching_keys(bucket, "")

    # -- boto3 client surface ----------------------------------------------

    def upload_file(self, Filename, Bucket, Key, ExtraArgs=None, Callback=None, Config=None):
        self.calls.append(("upload_file", Key))
        data = Path(Filename).read_bytes()
        if Key in self.fail_uploads_for:
            raise _client_error("InternalError", "PutObject", "We encountered an internal error")
        for start in range(0, len(data), CALLBACK_CHUNK):
            if Callback is not None:
                Callback(len(data[start : start + CALLBACK_CHUNK]))
        self.put(Bucket, Key, data)

    def download_file(self, Bucket, Key, Filename, ExtraArgs=None, Callback=None, Config=None):
        self.calls.append(("download_file", Key))
        with self._lock:
            objects = self._bucket(Bucket, "HeadObject")
            if Key not in objects:
                raise _client_error("404", "HeadObject")
            data = objects[Key][0]
        for start in range(0, len(data), CALLBACK_CHUNK):
            if Callback is not None:
                Callback(len(data[start : start + CALLBACK_CHUNK]))
        Path(Filename).write_bytes(data)

    def delete_object(self, Bucket, Key):
        self.calls.append(("delete_object", Key))
        with self._lock:
            self._bucket(Bucket, "DeleteObject").pop(Key, None)
        return {}

    def head_object(self, Bucket, Key):
        with self._lock:
            objects = self._bucket(Bucket, "HeadObject")
            if Key not in objects:
                raise _client_error("404", "HeadObject")
            data, modified = objects[Key]
        return {"ContentLength": len(data), "LastModified": modified}

    def list_objects_v2(self, Bucket, Prefix="", MaxKeys=1000, **kwargs):
        keys = self._matching_keys(Bucket, Prefix)[:MaxKeys]
        with self._lock:
            contents = [self._describe(Bucket, key) for key in keys]
        result = {"KeyCount": len(contents)}
        if contents:
            result["Contents"] = contents
        return result

    def get_paginator(self, operation_name: str):
        assert operation_name == "list_objects_v2"
        return _FakePaginator(self, self.page_size)
