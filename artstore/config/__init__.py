"""
Configuration for the artifact store.
Provides the provider chain and the explicit StoreConfig built from it.
"""

from .config_manager import ConfigManager
from .settings import StoreConfig, load_config

__all__ = ["ConfigManager", "StoreConfig", "load_config"]
