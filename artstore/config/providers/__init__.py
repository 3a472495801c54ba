"""
Configuration providers package
"""

from .base import ConfigProvider
from .dotenv_provider import DotEnvProvider
from .env_provider import EnvVarProvider

__all__ = ["ConfigProvider", "EnvVarProvider", "DotEnvProvider"]
