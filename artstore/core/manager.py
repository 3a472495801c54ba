"""Artifact manager.

Orchestrates the version resolver and a repository into the user-facing
operations: list, upload, download, versions and delete.

Upload protocol: payloads go under a fresh ``data/<snapshot_id>/`` prefix in
parallel; only when every transfer has succeeded is the manifest written and
then the ``latest`` pointer moved. A failure or cancellation before that point
leaves ``latest`` untouched and the partial snapshot orphaned (never
resolvable). Orphans are not cleaned up.
"""

from __future__ import annotations

import hashlib
import logging
import os
import sys
import threading
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from pathlib import Path
from typing import TextIO

from artstore.config.settings import DEFAULT_TRANSFER_WORKERS, StoreConfig
from artstore.core.manifest import (
    LATEST_POINTER_PATH,
    REF_LATEST,
    Manifest,
    ManifestEntry,
    Pointer,
    manifest_path,
    new_snapshot_id,
    validate_ref,
)
from artstore.core.resolver import VersionResolver
from artstore.core.transfer import TransferTask, run_transfers
from artstore.exceptions import (
    ArtifactStoreError,
    ChecksumMismatchError,
    RefExistsError,
    StoreIOError,
    TransferCancelledError,
    UsageError,
)
from artstore.repository import new_repository
from artstore.repository.base import COPY_CHUNK_SIZE, Repository, TransferOptions
from artstore.repository.paths import normalize_repo_path
from artstore.utils.logging_context import new_operation_id, use_context

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


def hash_file(path: Path) -> tuple[int, str]:
    """Size and sha1 hex digest of a local file.

    Raises:
        StoreIOError: If the file cannot be read
    """
    hasher = hashlib.sha1()
    size = 0
    try:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(COPY_CHUNK_SIZE), b""):
                hasher.update(chunk)
                size += len(chunk)
    except OSError as exc:
        raise StoreIOError(f"cannot read {path}: {exc}", cause=exc) from exc
    return size, hasher.hexdigest()


def collect_files(
    paths: Iterable[str | Path], base_dir: str | Path | None = None
) -> list[tuple[Path, str]]:
    """Expand files and directories into ``(local path, relative path)`` pairs.

    Without ``base_dir`` a file is stored under its own name and a directory's
    files keep their paths relative to that directory. With ``base_dir`` every
    path is stored relative to it.

    Raises:
        StoreIOError: A path does not exist
        UsageError: A path lies outside ``base_dir`` or two files map to the same path
    """
    base = Path(os.path.abspath(base_dir)) if base_dir is not None else None
    collected: dict[str, Path] = {}

    for raw in paths:
        path = Path(os.path.abspath(raw))
        if not path.exists():
            raise StoreIOError(f"no such file or directory: {raw}")

        if path.is_dir():
            files = sorted(p for p in path.rglob("*") if p.is_file())
            anchor = base or path
        else:
            files = [path]
            anchor = base or path.parent

        # Symlinks are stored under their own name, not their target's
        for file in files:
            try:
                relative = file.relative_to(anchor).as_posix()
            except ValueError as exc:
                raise UsageError(f"{file} is not inside {anchor}") from exc
            relative = normalize_repo_path(relative)
            if relative in collected and collected[relative].resolve() != file.resolve():
                raise UsageError(f"duplicate path in upload: {relative}", path=relative)
            collected[relative] = file

    return [(collected[rel], rel) for rel in sorted(collected)]


class ArtifactManager:
    """User-facing operations on versioned artifacts in one repository."""

    def __init__(
        self,
        repository: Repository,
        config: StoreConfig | None = None,
        output: TextIO | None = None,
    ) -> None:
        self.repository = repository
        self.resolver = VersionResolver(repository)
        self.transfer_workers = config.transfer_workers if config else DEFAULT_TRANSFER_WORKERS
        self.verify_downloads = config.verify_downloads if config else True
        self._output = output

    @property
    def output(self) -> TextIO:
        return self._output if self._output is not None else sys.stdout

    def _resolve(self, ref: str) -> Manifest:
        try:
            return self.resolver.resolve(ref)
        except ArtifactStoreError as exc:
            if exc.ref is None:
                exc.ref = ref
            raise

    # ------------------------------------------------------------------
    # Read operations
    # ------------------------------------------------------------------

    def list(self, ref: str = REF_LATEST, long: bool = False) -> Manifest:
        """Print every file of the version ``ref`` resolves to, one per line.

        With ``long`` each line is ``size  published  path``.

        Raises:
            NoVersionsError: ``latest`` requested before any upload
            RefNotFoundError: No version stored under ``ref``
            BackendError: The repository failed; carries ``ref`` for context
        """
        with use_context(operation="list", ref=ref, repository=self.repository.uri):
            manifest = self._resolve(ref)
            published = manifest.created_at.strftime("%Y-%m-%d %H:%M:%S")
            for entry in manifest.entries:
                if long:
                    print(f"{entry.size:>12}  {published}  {entry.path}", file=self.output)
                else:
                    print(entry.path, file=self.output)
            return manifest

    def versions(self) -> list[Manifest]:
        """Print all versions newest first, marking the one ``latest`` points at."""
        with use_context(operation="versions", repository=self.repository.uri):
            latest = self.resolver.latest_ref()
            manifests = self.resolver.list_versions()
            for manifest in manifests:
                marker = "*" if manifest.ref == latest else " "
                line = (
                    f"{marker} {manifest.ref}  {manifest.created_at:%Y-%m-%d %H:%M:%S}  "
                    f"{len(manifest.entries)} files  {manifest.total_size} bytes"
                )
                if manifest.message:
                    line = f"{line}  {manifest.message}"
                print(line, file=self.output)
            return manifests

    # ------------------------------------------------------------------
    # Write operations
    # ------------------------------------------------------------------

    def upload(
        self,
        paths: Iterable[str | Path],
        ref: str,
        *,
        base_dir: str | Path | None = None,
        force: bool = False,
        message: str | None = None,
        cancel_event: threading.Event | None = None,
        progress: ProgressCallback | None = None,
    ) -> Manifest:
        """Upload files as version ``ref`` and make it ``latest``.

        Args:
            paths: Files and/or directories to upload
            ref: Version name (not ``latest``)
            base_dir: Store paths relative to this directory
            force: Replace an existing version of the same name
            message: Free-form description stored in the manifest
            cancel_event: Setting it aborts the upload before publishing
            progress: Receives uploaded byte counts

        Returns:
            The published manifest

        Raises:
            InvalidRefError: ``ref`` cannot name a version
            RefExistsError: ``ref`` is already published and ``force`` is False
            StoreIOError: A local file cannot be read
            TransferError: One or more files failed to upload; nothing was published
            TransferCancelledError: Cancelled; nothing was published
        """
        validate_ref(ref)
        with use_context(operation="upload", ref=ref, operation_id=new_operation_id()):
            files = collect_files(paths, base_dir)
            if not files:
                raise UsageError("nothing to upload", ref=ref)

            if not force and self.resolver.exists(ref):
                raise RefExistsError("version already exists; use force to replace it", ref=ref)

            entries = []
            for local_path, relative in files:
                try:
                    size, sha1 = hash_file(local_path)
                except StoreIOError as exc:
                    exc.ref, exc.path = ref, relative
                    raise
                entries.append(ManifestEntry(path=relative, size=size, sha1=sha1))

            manifest = Manifest(
                ref=ref,
                snapshot_id=new_snapshot_id(),
                created_at=datetime.now(UTC),
                entries=entries,
                message=message,
            )
            local_by_path = {relative: local_path for local_path, relative in files}

            def make_task(entry: ManifestEntry) -> TransferTask:
                object_path = manifest.object_path(entry)
                source = local_by_path[entry.path]

                def run(options: TransferOptions) -> None:
                    self.repository.upload(source, object_path, options)

                return TransferTask(path=object_path, run=run)

            logger.info(
                f"Uploading {len(entries)} files ({manifest.total_size} bytes) as {ref} "
                f"to {self.repository.uri}"
            )
            run_transfers(
                [make_task(entry) for entry in manifest.entries],
                workers=self.transfer_workers,
                cancel_event=cancel_event,
                progress=progress,
                ref=ref,
            )

            # Last chance to abort: nothing is visible until the manifest is written
            if cancel_event is not None and cancel_event.is_set():
                raise TransferCancelledError("upload cancelled before publish", ref=ref)

            self._publish(manifest)
            return manifest

    def _publish(self, manifest: Manifest) -> None:
        self.repository.write_bytes(manifest_path(manifest.ref), manifest.to_json())
        self.repository.write_bytes(LATEST_POINTER_PATH, Pointer.for_manifest(manifest).to_json())
        logger.info(f"Published {manifest.ref} (snapshot {manifest.snapshot_id}) as {REF_LATEST}")

    def download(
        self,
        ref: str,
        dest_dir: str | Path,
        *,
        verify: bool | None = None,
        cancel_event: threading.Event | None = None,
        progress: ProgressCallback | None = None,
    ) -> Manifest:
        """Fetch every file of ``ref`` into ``dest_dir``, preserving relative paths.

        Raises:
            NoVersionsError / RefNotFoundError: ``ref`` does not resolve
            TransferError: One or more files failed (including checksum mismatches)
            TransferCancelledError: Cancelled through ``cancel_event``
        """
        verify = self.verify_downloads if verify is None else verify
        destination = Path(dest_dir)

        with use_context(operation="download", ref=ref, operation_id=new_operation_id()):
            manifest = self._resolve(ref)

            def make_task(entry: ManifestEntry) -> TransferTask:
                object_path = manifest.object_path(entry)
                target = destination / entry.path

                def run(options: TransferOptions) -> None:
                    self.repository.download(object_path, target, options)
                    if verify:
                        _verify_file(target, entry, manifest.ref)

                return TransferTask(path=object_path, run=run)

            logger.info(
                f"Downloading {len(manifest.entries)} files of {manifest.ref} to {destination}"
            )
            run_transfers(
                [make_task(entry) for entry in manifest.entries],
                workers=self.transfer_workers,
                cancel_event=cancel_event,
                progress=progress,
                ref=ref,
            )
            return manifest

    def delete(self, ref: str) -> Manifest:
        """Remove version ``ref``: its manifest first, then its payloads.

        If ``latest`` points at ``ref`` it is moved to the newest remaining
        version beforehand, or removed when no other version exists.

        Raises:
            RefNotFoundError: No version stored under ``ref``
        """
        validate_ref(ref)
        with use_context(operation="delete", ref=ref):
            manifest = self._resolve(ref)

            pointer = self.resolver.read_pointer()
            if pointer is not None and pointer.ref == ref:
                remaining = [m for m in self.resolver.list_versions() if m.ref != ref]
                if remaining:
                    self.repository.write_bytes(
                        LATEST_POINTER_PATH, Pointer.for_manifest(remaining[0]).to_json()
                    )
                    logger.info(f"Moved {REF_LATEST} from {ref} to {remaining[0].ref}")
                else:
                    self.repository.delete(LATEST_POINTER_PATH)
                    logger.info(f"Removed {REF_LATEST}; no versions remain")

            self.repository.delete(manifest_path(ref))

            def make_task(entry: ManifestEntry) -> TransferTask:
                object_path = manifest.object_path(entry)

                def run(_options: TransferOptions) -> None:
                    self.repository.delete(object_path)

                return TransferTask(path=object_path, run=run)

            run_transfers(
                [make_task(entry) for entry in manifest.entries],
                workers=self.transfer_workers,
                ref=ref,
            )
            logger.info(f"Deleted {ref} ({len(manifest.entries)} files)")
            return manifest


def _verify_file(path: Path, entry: ManifestEntry, ref: str) -> None:
    size, sha1 = hash_file(path)
    if size != entry.size or sha1 != entry.sha1:
        path.unlink(missing_ok=True)
        raise ChecksumMismatchError(
            f"downloaded file does not match manifest (sha1 {sha1}, expected {entry.sha1})",
            ref=ref,
            path=entry.path,
        )


def new_artifact_manager(config: StoreConfig, output: TextIO | None = None) -> ArtifactManager:
    """Build a manager for the repository ``config`` points at."""
    return ArtifactManager(new_repository(config.repository, config), config, output=output)
