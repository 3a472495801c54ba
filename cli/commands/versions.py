"""`art versions` (alias `art log`) and `art delete` commands."""

from __future__ import annotations

import argparse

from artstore.exceptions import ArtifactStoreError
from cli.core.context import build_manager, report_error


def _handle_versions(ns: argparse.Namespace) -> int:
    try:
        manager = build_manager(ns)
        if not manager.versions():
            print("No versions found")
    except ArtifactStoreError as e:
        report_error("versions", e)
    return 0


def _handle_delete(ns: argparse.Namespace) -> int:
    try:
        manager = build_manager(ns)
        manifest = manager.delete(ns.ref)
    except ArtifactStoreError as e:
        report_error("delete", e)
        return 0

    print(f"Deleted {manifest.ref}")
    return 0


def register(subparsers: argparse._SubParsersAction) -> None:
    p_versions = subparsers.add_parser(
        "versions", aliases=["log"], help="List versions, newest first (* marks latest)"
    )
    p_versions.set_defaults(func=_handle_versions)

    p_delete = subparsers.add_parser("delete", help="Delete a version and its files")
    p_delete.add_argument("ref", help="Version to delete")
    p_delete.set_defaults(func=_handle_delete)
