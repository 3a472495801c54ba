from __future__ import annotations

import logging
import logging.config
import os
import re
from typing import Any

from artstore.utils.logging_context import get_context


class SensitiveDataFilter(logging.Filter):
    """
    Redacts sensitive tokens (access keys, secrets) from log messages.

    Applies best-effort redaction on both plain strings and simple mapping args.
    """

    _REDACT = "***"

    # Matches key=value or key: value pairs (case-insensitive) for common sensitive keys
    _KV_PATTERN = re.compile(
        r"(?i)\b(aws[_-]?secret[_-]?access[_-]?key|aws[_-]?access[_-]?key[_-]?id|secret|token"
        r"|password|auth|bearer|session[_-]?token|credential(?:s)?)[^=:\s]*\s*([=:])\s*([^\s,;]+)"
    )
    # Matches JSON-style "key": "value" for the same keys
    _JSON_PATTERN = re.compile(
        r"(?i)\"(aws[_-]?secret[_-]?access[_-]?key|aws[_-]?access[_-]?key[_-]?id|secret|token"
        r"|password|auth|bearer|session[_-]?token|credential(?:s)?)\"\s*:\s*\"([^\"]+)\""
    )

    _SENSITIVE_KEYS = {
        "aws_access_key_id",
        "aws_secret_access_key",
        "aws_session_token",
        "secret",
        "token",
        "password",
        "auth",
        "bearer",
        "credential",
        "credentials",
    }

    @classmethod
    def _redact_text(cls, text: str) -> str:
        text = cls._KV_PATTERN.sub(lambda m: f"{m.group(1)}{m.group(2)} {cls._REDACT}", text)
        text = cls._JSON_PATTERN.sub(lambda m: f'"{m.group(1)}": "{cls._REDACT}"', text)
        return text

    @classmethod
    def _redact_mapping(cls, mapping: dict[str, Any]) -> dict[str, Any]:
        redacted: dict[str, Any] = {}
        for k, v in mapping.items():
            if isinstance(k, str) and k.lower() in cls._SENSITIVE_KEYS:
                redacted[k] = cls._REDACT
            elif isinstance(v, str):
                redacted[k] = cls._redact_text(v)
            else:
                redacted[k] = v
        return redacted

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if isinstance(record.msg, str):
            record.msg = self._redact_text(record.msg)
        if isinstance(record.args, dict):
            record.args = self._redact_mapping(record.args)
        elif isinstance(record.args, tuple):
            record.args = tuple(
                self._redact_text(a) if isinstance(a, str) else a for a in record.args
            )
        return True


class NamespacePrefixFilter(logging.Filter):
    """Prefixes logger names with 'art.' for consistent namespacing."""

    _PREFIX = "art."

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if record.name and not record.name.startswith(self._PREFIX):
            record.name = f"{self._PREFIX}{record.name}"
        return True


class ContextInjectorFilter(logging.Filter):
    """Injects structured context fields from contextvars into LogRecord."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        for key, value in get_context().items():
            # Attach as record attributes so formatters (including json) can pick them up
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


class MaxMessageLengthFilter(logging.Filter):
    """Truncates overly long messages to a max length with an indicator.

    Controlled via env LOG_MAX_MESSAGE_LEN (default 5000 characters).
    """

    def __init__(self) -> None:
        super().__init__()
        try:
            self.max_len = int(os.getenv("LOG_MAX_MESSAGE_LEN", "5000"))
        except ValueError:
            self.max_len = 5000

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if isinstance(record.msg, str) and len(record.msg) > self.max_len:
            record.msg = record.msg[: self.max_len] + "... [truncated]"
        return True


def build_logging_config(level_name: str | None = None, json: bool = False) -> dict[str, Any]:
    level = (level_name or os.getenv("LOG_LEVEL") or "WARNING").upper()
    if json:
        formatter = {
            "()": "pythonjsonlogger.json.JsonFormatter",
            # Context fields are injected by ContextInjectorFilter
            "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
        }
    else:
        formatter = {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        }
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "redact": {"()": "artstore.utils.logging_config.SensitiveDataFilter"},
            "ns": {"()": "artstore.utils.logging_config.NamespacePrefixFilter"},
            "ctx": {"()": "artstore.utils.logging_config.ContextInjectorFilter"},
            "truncate": {"()": "artstore.utils.logging_config.MaxMessageLengthFilter"},
        },
        "formatters": {
            "default": formatter,
        },
        "handlers": {
            "console": {
                # stderr, so command output on stdout stays clean
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
                "formatter": "default",
                "level": level,
                "filters": ["redact", "ns", "ctx", "truncate"],
            }
        },
        "loggers": {
            # Reduce noise from chatty libraries while allowing overrides via env
            "boto3": {"level": os.getenv("LOG_BOTO_LEVEL", "WARNING"), "propagate": True},
            "botocore": {"level": os.getenv("LOG_BOTO_LEVEL", "WARNING"), "propagate": True},
            "s3transfer": {"level": os.getenv("LOG_BOTO_LEVEL", "WARNING"), "propagate": True},
            "urllib3": {"level": os.getenv("LOG_URLLIB3_LEVEL", "WARNING"), "propagate": True},
        },
        "root": {"handlers": ["console"], "level": level},
    }


def configure_logging(level_name: str | None = None, use_json: bool | None = None) -> None:
    if use_json is None:
        use_json = os.getenv("LOG_JSON", "0").strip().lower() in ("1", "true", "yes", "on")
    config = build_logging_config(level_name, json=use_json)
    logging.config.dictConfig(config)
