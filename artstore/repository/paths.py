"""Repository path normalization.

A repository path is slash-separated and relative to the repository root,
whatever the backend. The root itself is the empty string.
"""

from __future__ import annotations

from artstore.exceptions import InvalidPathError

ROOT = ""


def normalize_repo_path(path: str) -> str:
    """Return ``path`` in canonical form.

    Backslashes become slashes, empty and ``.`` segments are dropped and
    leading/trailing slashes disappear. A ``..`` segment is rejected outright
    rather than resolved, so a normalized path can never leave the root.

    Raises:
        InvalidPathError: If the path contains a ``..`` segment
    """
    segments = []
    for segment in path.replace("\\", "/").split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            raise InvalidPathError("path traversal is not allowed", path=path)
        segments.append(segment)
    return "/".join(segments)


def join_repo_path(*parts: str) -> str:
    """Join and normalize path fragments, skipping empty ones."""
    return normalize_repo_path("/".join(part for part in parts if part))


def base_name(path: str) -> str:
    """Last component of a repository path (empty for the root)."""
    normalized = normalize_repo_path(path)
    return normalized.rsplit("/", 1)[-1]


def parent_path(path: str) -> str:
    normalized = normalize_repo_path(path)
    return normalized.rpartition("/")[0]
