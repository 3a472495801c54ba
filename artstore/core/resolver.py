"""Version resolution.

Maps a human reference to a stored manifest. ``latest`` goes through the
pointer object, which is the sole source of truth for "most recent": the
upload that wrote the pointer last wins. Concurrent uploads from different
processes race on that write and the race is not guarded. Resolution only
reads from the repository.
"""

from __future__ import annotations

import logging

from artstore.core.manifest import (
    LATEST_POINTER_PATH,
    REF_LATEST,
    TAGS_PATH,
    Manifest,
    Pointer,
    manifest_path,
    ref_from_manifest_name,
    validate_ref,
)
from artstore.exceptions import NoVersionsError, NotFoundError, RefNotFoundError
from artstore.repository.base import Repository

logger = logging.getLogger(__name__)


class VersionResolver:
    """Resolves ``latest`` or an explicit ref against one repository."""

    def __init__(self, repository: Repository) -> None:
        self.repository = repository

    def resolve(self, ref: str) -> Manifest:
        """Return the manifest ``ref`` denotes.

        Raises:
            NoVersionsError: ``latest`` requested and nothing was ever published
            RefNotFoundError: No manifest stored under an explicit ref
            InvalidRefError: ``ref`` is not a valid version name
        """
        if ref == REF_LATEST:
            pointer = self.read_pointer()
            if pointer is None:
                raise NoVersionsError("no versions have been uploaded", ref=REF_LATEST)
            logger.debug(f"Resolved {REF_LATEST} -> {pointer.ref}")
            return self.load_manifest(pointer.ref)

        return self.load_manifest(validate_ref(ref))

    def load_manifest(self, ref: str) -> Manifest:
        path = manifest_path(ref)
        try:
            data = self.repository.read_bytes(path)
        except NotFoundError as exc:
            raise RefNotFoundError("version not found", ref=ref) from exc
        return Manifest.from_json(data, source=path)

    def read_pointer(self) -> Pointer | None:
        """The ``latest`` pointer, or None if no upload was ever published."""
        try:
            data = self.repository.read_bytes(LATEST_POINTER_PATH)
        except NotFoundError:
            return None
        return Pointer.from_json(data)

    def latest_ref(self) -> str | None:
        pointer = self.read_pointer()
        return pointer.ref if pointer is not None else None

    def exists(self, ref: str) -> bool:
        return self.repository.exists(manifest_path(validate_ref(ref)))

    def list_refs(self) -> list[str]:
        refs = []
        for info in self.repository.list(TAGS_PATH):
            if info.is_dir:
                continue
            ref = ref_from_manifest_name(info.name)
            if ref is not None:
                refs.append(ref)
        return refs

    def list_versions(self) -> list[Manifest]:
        """Every stored version, newest first (ties broken by ref)."""
        manifests = [self.load_manifest(ref) for ref in self.list_refs()]
        manifests.sort(key=lambda m: m.ref)
        manifests.sort(key=lambda m: m.created_at, reverse=True)
        return manifests
