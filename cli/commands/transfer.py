"""`art upload` and `art download` commands."""

from __future__ import annotations

import argparse
import sys

from artstore.core.manifest import REF_LATEST
from artstore.exceptions import ArtifactStoreError
from cli.core.context import build_manager, report_error


def _handle_upload(ns: argparse.Namespace) -> int:
    if not ns.paths:
        print("requires a ref and at least one path", file=sys.stderr)
        return 1

    try:
        manager = build_manager(ns)
        manifest = manager.upload(
            ns.paths,
            ns.ref,
            base_dir=ns.base_dir,
            force=ns.force,
            message=ns.message,
        )
    except ArtifactStoreError as e:
        report_error("upload", e)
        return 0

    print(f"Uploaded {len(manifest.entries)} files as {manifest.ref} ({manifest.total_size} bytes)")
    return 0


def _handle_download(ns: argparse.Namespace) -> int:
    args = ns.args or []
    if len(args) == 1:
        ref, dest = REF_LATEST, args[0]
    elif len(args) == 2:
        ref, dest = args
    else:
        print("requires [ref] and a destination directory", file=sys.stderr)
        return 1

    try:
        manager = build_manager(ns)
        manifest = manager.download(ref, dest, verify=False if ns.no_verify else None)
    except ArtifactStoreError as e:
        report_error("download", e)
        return 0

    print(f"Downloaded {len(manifest.entries)} files of {manifest.ref} to {dest}")
    return 0


def register(subparsers: argparse._SubParsersAction) -> None:
    p_upload = subparsers.add_parser("upload", help="Upload files as a new version")
    p_upload.add_argument("ref", help="Version name, e.g. v1.0.0")
    p_upload.add_argument("paths", nargs="*", metavar="path", help="Files or directories")
    p_upload.add_argument(
        "--base-dir", default=None, help="Store paths relative to this directory"
    )
    p_upload.add_argument(
        "--force", action="store_true", help="Replace the version if it already exists"
    )
    p_upload.add_argument("-m", "--message", default=None, help="Description of this version")
    p_upload.set_defaults(func=_handle_upload)

    p_download = subparsers.add_parser(
        "download",
        help="Download a version into a directory",
        description="art download DEST          # latest version\n"
        "art download v1.0.0 DEST   # specific version",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p_download.add_argument("args", nargs="*", metavar="[ref] dest")
    p_download.add_argument(
        "--no-verify", action="store_true", help="Skip sha1 verification of downloaded files"
    )
    p_download.set_defaults(func=_handle_download)
