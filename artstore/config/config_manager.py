"""
Configuration management.

``ConfigManager`` resolves keys against an ordered chain of providers. It is
created explicitly by ``load_config`` and handed to whoever needs it; there is
no process-wide instance.
"""

import logging
from pathlib import Path
from typing import Any

from .providers.base import ConfigProvider
from .providers.dotenv_provider import DotEnvProvider
from .providers.env_provider import EnvVarProvider

logger = logging.getLogger(__name__)

_TRUE_VALUES = ("true", "1", "yes", "on", "enabled")


class ConfigManager:
    """
    Manages configuration from multiple sources with fallback support.

    Default priority order:
    1. Environment variables
    2. .env file
    """

    def __init__(
        self,
        providers: list[ConfigProvider] | None = None,
        env_file: str | Path = ".env",
    ):
        """
        Initialize ConfigManager with providers.

        Args:
            providers: List of configuration providers in priority order.
                      If None, uses environment variables then ``env_file``.
            env_file: Dotenv file used by the default provider chain
        """
        if providers is None:
            self.providers: list[ConfigProvider] = [EnvVarProvider(), DotEnvProvider(env_file)]
        else:
            self.providers = providers

        available = [p.provider_name for p in self.providers if p.is_available()]
        logger.debug(f"Configuration providers available: {available}")

    def get(self, key: str, default: Any | None = None) -> str | None:
        """
        Get a configuration value from the first available provider.

        Args:
            key: Configuration key to retrieve
            default: Default value if key not found in any provider

        Returns:
            Configuration value or default
        """
        for provider in self.providers:
            if provider.is_available():
                value = provider.get(key)
                if value is not None:
                    return value

        return default

    def get_required(self, key: str) -> str:
        """
        Get a required configuration value.

        Raises:
            ValueError: If configuration key is not found
        """
        value = self.get(key)
        if value is None:
            available = [p.provider_name for p in self.providers if p.is_available()]
            raise ValueError(
                f"Required configuration '{key}' not found. Checked providers: {available}"
            )
        return value

    def get_int(self, key: str, default: int = 0) -> int:
        """Get configuration value as integer"""
        value = self.get(key)
        if value is None:
            return default
        try:
            return int(value)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring non-integer value for {key}: {value!r}")
            return default

    def get_bool(self, key: str, default: bool = False) -> bool:
        """Get configuration value as boolean"""
        value = self.get(key)
        if value is None:
            return default
        return str(value).strip().lower() in _TRUE_VALUES

    def get_all(self) -> dict[str, Any]:
        """
        Get all configuration values from all providers.
        Earlier providers override later ones.
        """
        all_config: dict[str, Any] = {}
        for provider in reversed(self.providers):
            if provider.is_available():
                all_config.update(provider.get_all())
        return all_config

    def refresh(self) -> None:
        """Refresh all providers that support refreshing"""
        for provider in self.providers:
            provider.refresh()

    def add_provider(self, provider: ConfigProvider, priority: int = 0) -> None:
        """
        Add a new provider at the specified priority.

        Args:
            provider: Configuration provider to add
            priority: Position in provider list (0 = highest priority)
        """
        self.providers.insert(priority, provider)

    def get_config_sources(self) -> list[str]:
        """Get list of configuration sources."""
        return [provider.__class__.__name__ for provider in self.providers]
