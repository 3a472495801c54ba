"""Directory-style listings over flat object keys.

Object storage only knows full keys such as ``dir/3/1``. ``group_children``
turns such a flat key set into the immediate children of one directory, the
way a filesystem ``ls`` would show them. It is backend independent and does no
I/O.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from artstore.repository.base import FileInfo
from artstore.repository.paths import normalize_repo_path


@dataclass(frozen=True)
class ObjectRecord:
    """A flat key as returned by an object store, relative to the repository root."""

    key: str
    size: int = 0
    mod_time: datetime | None = None


def group_children(records: Iterable[ObjectRecord | str], prefix: str) -> list[FileInfo]:
    """Group flat keys into the immediate children of ``prefix``.

    Only keys under ``prefix + "/"`` are considered, so ``dir`` never matches
    a sibling such as ``dir-12345``. The next path segment of each key becomes
    one entry: a file when nothing follows it, otherwise a single
    pseudo-directory no matter how many keys live below it. When a name is
    both an object and a key prefix, the directory wins.

    Args:
        records: Keys (or ObjectRecord instances) relative to the repository root
        prefix: Directory to list; the empty string lists the root

    Returns:
        Children sorted by name
    """
    base = normalize_repo_path(prefix)
    boundary = f"{base}/" if base else ""

    children: dict[str, FileInfo] = {}
    for record in records:
        if isinstance(record, str):
            record = ObjectRecord(key=record)
        if not record.key.startswith(boundary):
            continue
        rest = record.key[len(boundary) :]
        name, sep, _ = rest.partition("/")
        if not name:
            # Folder marker ("dir/") or a key with an empty segment
            continue
        if sep:
            children[name] = FileInfo(name=name, is_dir=True)
        elif name not in children:
            children[name] = FileInfo(
                name=name, is_dir=False, size=record.size, mod_time=record.mod_time
            )

    return [children[name] for name in sorted(children)]
