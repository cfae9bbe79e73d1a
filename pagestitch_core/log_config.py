"""
Log Configuration - logging setup with credential redaction
"""

import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List, Sequence

REDACTED = "[redacted]"


def _sanitize(message: str, secrets: Sequence[str]) -> str:
    for secret in secrets:
        message = message.replace(secret, REDACTED)
    return message


class SensitiveDataFilter(logging.Filter):
    """Redacts proxy credentials from log records"""

    def __init__(self, secrets: Iterable[str]):
        super().__init__()
        # Longest first so a secret containing another is fully masked
        self._secrets: List[str] = sorted(
            {s.strip() for s in secrets if s and s.strip()}, key=len, reverse=True
        )

    def filter(self, record: logging.LogRecord) -> bool:
        if not self._secrets:
            return True
        message = record.getMessage()
        sanitized = _sanitize(message, self._secrets)
        if sanitized != message:
            record.msg = sanitized
            record.args = ()
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line"""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True)


@dataclass
class LogConfig:
    """Configuration for logging"""

    log_level: str = "INFO"
    log_format: str = "plain"  # plain, json

    @classmethod
    def from_env(cls) -> 'LogConfig':
        """Create config from environment variables"""
        return cls(
            log_level=os.getenv("PAGESTITCH_LOG_LEVEL", "INFO"),
            log_format=os.getenv("PAGESTITCH_LOG_FORMAT", "plain"),
        )


def configure_logging(log_config: LogConfig, secrets: Iterable[str] = ()) -> logging.Handler:
    """Install a root stream handler; returns it so callers can remove it."""
    level = getattr(logging, log_config.log_level.upper(), logging.INFO)

    handler = logging.StreamHandler()
    if (log_config.log_format or "plain").lower() == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )
    handler.setFormatter(formatter)
    handler.addFilter(SensitiveDataFilter(secrets))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)
    return handler
