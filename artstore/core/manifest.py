"""Version manifests and the persisted repository layout.

Layout inside a repository root::

    .art/refs/latest              pointer to the most recently published ref
    .art/refs/tags/<ref>.json     manifest of <ref>
    data/<snapshot_id>/<path>     file payloads of one upload

Each upload writes its payloads under a fresh snapshot id, so replacing or
failing an upload never touches files a published manifest refers to.
"""

from __future__ import annotations

import json
import re
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from artstore.exceptions import CorruptManifestError, InvalidRefError
from artstore.repository.paths import join_repo_path, normalize_repo_path

__all__ = [
    "DATA_PREFIX",
    "LATEST_POINTER_PATH",
    "MANIFEST_FORMAT_VERSION",
    "METADATA_PREFIX",
    "Manifest",
    "ManifestEntry",
    "Pointer",
    "REF_LATEST",
    "TAGS_PATH",
    "manifest_path",
    "new_snapshot_id",
    "validate_ref",
]

REF_LATEST = "latest"

METADATA_PREFIX = ".art"
TAGS_PATH = f"{METADATA_PREFIX}/refs/tags"
LATEST_POINTER_PATH = f"{METADATA_PREFIX}/refs/latest"
DATA_PREFIX = "data"
MANIFEST_SUFFIX = ".json"

MANIFEST_FORMAT_VERSION = 1

_REF_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._+-]{0,127}$")


def validate_ref(ref: str) -> str:
    """Return ``ref`` if it can name a stored version.

    Raises:
        InvalidRefError: If ``ref`` is ``latest`` or has disallowed characters
    """
    if ref == REF_LATEST:
        raise InvalidRefError(f"'{REF_LATEST}' is reserved and cannot name a version", ref=ref)
    if not _REF_PATTERN.match(ref) or ref.endswith(MANIFEST_SUFFIX):
        raise InvalidRefError(
            "ref must start with a letter or digit and contain only letters, digits, '.', "
            "'_', '+' or '-'",
            ref=ref,
        )
    return ref


def manifest_path(ref: str) -> str:
    return f"{TAGS_PATH}/{ref}{MANIFEST_SUFFIX}"


def ref_from_manifest_name(name: str) -> str | None:
    """Ref stored in a file under the tags directory, or None for foreign files."""
    if not name.endswith(MANIFEST_SUFFIX):
        return None
    ref = name[: -len(MANIFEST_SUFFIX)]
    return ref if _REF_PATTERN.match(ref) and ref != REF_LATEST else None


def new_snapshot_id(now: datetime | None = None) -> str:
    timestamp = (now or datetime.now(UTC)).strftime("%Y%m%dT%H%M%SZ")
    return f"{timestamp}-{uuid.uuid4().hex[:12]}"


def _parse_timestamp(value: Any, source: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(str(value))
    except ValueError as exc:
        raise CorruptManifestError(f"invalid timestamp {value!r}", path=source) from exc
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def _decode(data: bytes, source: str) -> dict[str, Any]:
    try:
        doc = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise CorruptManifestError(f"invalid JSON: {exc}", path=source) from exc
    if not isinstance(doc, dict):
        raise CorruptManifestError("expected a JSON object", path=source)
    return doc


@dataclass(frozen=True)
class ManifestEntry:
    """One file of a version: its relative path, size and sha1."""

    path: str
    size: int
    sha1: str

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "size": self.size, "sha1": self.sha1}


@dataclass
class Manifest:
    """The immutable file set published under one ref.

    Attributes:
        ref: Version name (never ``latest``)
        snapshot_id: Directory under ``data/`` holding this version's payloads
        created_at: Publish time, UTC
        entries: Files sorted by path
        message: Optional free-form description given at upload
    """

    ref: str
    snapshot_id: str
    created_at: datetime
    entries: list[ManifestEntry] = field(default_factory=list)
    message: str | None = None

    def __post_init__(self) -> None:
        self.entries = sorted(self.entries, key=lambda e: e.path)

    @property
    def total_size(self) -> int:
        return sum(entry.size for entry in self.entries)

    def object_path(self, entry: ManifestEntry) -> str:
        """Repository path holding the payload of ``entry``."""
        return join_repo_path(DATA_PREFIX, self.snapshot_id, entry.path)

    def to_json(self) -> bytes:
        doc = {
            "format_version": MANIFEST_FORMAT_VERSION,
            "ref": self.ref,
            "snapshot_id": self.snapshot_id,
            "created_at": self.created_at.isoformat(),
            "message": self.message,
            "files": [entry.to_dict() for entry in self.entries],
        }
        return json.dumps(doc, indent=2, sort_keys=True).encode("utf-8")

    @classmethod
    def from_json(cls, data: bytes, source: str = "") -> Manifest:
        """Decode a stored manifest.

        Raises:
            CorruptManifestError: If the document is malformed or of an unknown format
        """
        doc = _decode(data, source)
        version = doc.get("format_version")
        if version != MANIFEST_FORMAT_VERSION:
            raise CorruptManifestError(f"unsupported manifest format {version!r}", path=source)
        try:
            entries = [
                ManifestEntry(
                    path=normalize_repo_path(str(item["path"])),
                    size=int(item["size"]),
                    sha1=str(item["sha1"]),
                )
                for item in doc["files"]
            ]
            return cls(
                ref=str(doc["ref"]),
                snapshot_id=normalize_repo_path(str(doc["snapshot_id"])),
                created_at=_parse_timestamp(doc["created_at"], source),
                entries=entries,
                message=doc.get("message"),
            )
        except CorruptManifestError:
            raise
        except (KeyError, TypeError, ValueError) as exc:
            raise CorruptManifestError(f"malformed manifest: {exc}", path=source) from exc


@dataclass(frozen=True)
class Pointer:
    """Content of the ``latest`` pointer object."""

    ref: str
    snapshot_id: str
    updated_at: datetime

    def to_json(self) -> bytes:
        doc = {
            "ref": self.ref,
            "snapshot_id": self.snapshot_id,
            "updated_at": self.updated_at.isoformat(),
        }
        return json.dumps(doc, indent=2, sort_keys=True).encode("utf-8")

    @classmethod
    def from_json(cls, data: bytes, source: str = LATEST_POINTER_PATH) -> Pointer:
        doc = _decode(data, source)
        try:
            return cls(
                ref=str(doc["ref"]),
                snapshot_id=str(doc["snapshot_id"]),
                updated_at=_parse_timestamp(doc["updated_at"], source),
            )
        except KeyError as exc:
            raise CorruptManifestError(f"malformed pointer: missing {exc}", path=source) from exc

    @classmethod
    def for_manifest(cls, manifest: Manifest) -> Pointer:
        return cls(ref=manifest.ref, snapshot_id=manifest.snapshot_id, updated_at=datetime.now(UTC))
