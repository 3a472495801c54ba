from __future__ import annotations

import argparse
import sys
from pathlib import Path

# * Add project root to Python path so `python cli` works from a checkout
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from artstore import __version__  # noqa: E402
from artstore.utils.logging_config import configure_logging  # noqa: E402


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="art", description="Versioned artifact store for local and S3 repositories"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--repo",
        default=None,
        help="Repository URI (s3://bucket/prefix or a directory); overrides ART_REPOSITORY",
    )
    parser.add_argument(
        "--env-file", default=".env", help="Dotenv file to read settings from (default: .env)"
    )
    parser.add_argument(
        "--log-level", default=None, help="Logging level (default: LOG_LEVEL or WARNING)"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # Import and register command groups
    from cli.commands import listing, transfer, versions

    listing.register(subparsers)
    transfer.register(subparsers)
    versions.register(subparsers)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    ns = parser.parse_args(argv)
    configure_logging(ns.log_level)

    func = getattr(ns, "func", None)
    if callable(func):
        return int(func(ns) or 0)

    parser.print_help()
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
