"""
Base configuration provider.

Every source the store reads settings from (process environment, dotenv
file) implements this interface.
"""

from abc import ABC, abstractmethod
from typing import Any


class ConfigProvider(ABC):
    """Abstract base class for configuration providers"""

    @abstractmethod
    def get(self, key: str, default: Any | None = None) -> Any | None:
        """Get configuration value."""

    def get_all(self) -> dict[str, Any]:
        """Get all configuration values."""
        return {}

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this provider is available/configured"""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the name of this provider"""

    def refresh(self) -> None:
        """Refresh cached values; providers without a cache need not override."""
        return
