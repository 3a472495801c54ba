"""Versioned artifact store.

Uploads, lists and retrieves named file sets against a local directory or an
S3-compatible object store, addressed by ``latest`` or an explicit version.
"""

__version__ = "0.3.0"
