"""Version resolution and artifact operations built on a Repository."""

from artstore.core.manager import ArtifactManager, new_artifact_manager
from artstore.core.manifest import REF_LATEST, Manifest, ManifestEntry
from artstore.core.resolver import VersionResolver

__all__ = [
    "REF_LATEST",
    "ArtifactManager",
    "Manifest",
    "ManifestEntry",
    "VersionResolver",
    "new_artifact_manager",
]
