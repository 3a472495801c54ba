"""`art list` command.

Lists the files of a version. With no argument the `latest` version is
listed; a single argument names the version. Store errors are printed to
stdout as ``list <error>`` and do not change the exit status, which scripts
rely on.
"""

from __future__ import annotations

import argparse
import sys

from artstore.core.manifest import REF_LATEST
from artstore.exceptions import ArtifactStoreError
from cli.core.context import build_manager, report_error


def _handle_list(ns: argparse.Namespace) -> int:
    refs = ns.refs or []
    if len(refs) > 1:
        print("requires 0 or 1 argument", file=sys.stderr)
        return 1
    ref = refs[0] if refs else REF_LATEST

    try:
        manager = build_manager(ns)
        manager.list(ref, long=getattr(ns, "long", False))
    except ArtifactStoreError as e:
        report_error("list", e)
    return 0


def register(subparsers: argparse._SubParsersAction) -> None:
    p = subparsers.add_parser(
        "list",
        help="List files in the repository",
        description="List the files of a version. For example:\n\n"
        "  art list          # files of the latest version\n"
        "  art list v1.0.0   # files of a specific version",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("refs", nargs="*", metavar="ref", help="Version to list (default: latest)")
    p.add_argument(
        "-l", "--long", action="store_true", help="Show size and publish time for each file"
    )
    p.set_defaults(func=_handle_list)
