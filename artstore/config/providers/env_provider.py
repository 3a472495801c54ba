"""
Environment variable configuration provider.
"""

import os
from typing import Any

from .base import ConfigProvider


class EnvVarProvider(ConfigProvider):
    """Provider that reads configuration from environment variables"""

    def get(self, key: str, default: Any | None = None) -> str | None:
        """Get configuration value from environment variables."""
        return os.getenv(key, default)

    def get_all(self) -> dict[str, Any]:
        return dict(os.environ)

    def is_available(self) -> bool:
        """Environment variables are always available"""
        return True

    @property
    def provider_name(self) -> str:
        return "Environment Variables"
