"""Shared wiring for store commands: configuration in, manager out."""

from __future__ import annotations

import argparse

from artstore.config.settings import load_config
from artstore.core.manager import ArtifactManager, new_artifact_manager


def build_manager(ns: argparse.Namespace) -> ArtifactManager:
    """Load configuration honoring --env-file/--repo and open the repository.

    Raises:
        ConfigurationError: If no usable repository is configured
    """
    config = load_config(
        env_file=getattr(ns, "env_file", None) or ".env",
        repository=getattr(ns, "repo", None),
    )
    return new_artifact_manager(config)


def report_error(command: str, error: Exception) -> None:
    """Print a store error the way every command does: on stdout, prefixed by the command.

    The trailing space before the newline is part of the output format.
    """
    print(f"{command} {error} ")
