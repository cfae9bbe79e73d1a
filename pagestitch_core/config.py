#!/usr/bin/env python3
from dataclasses import dataclass
import os
from typing import Optional, Tuple
from urllib.parse import unquote, urlparse

from dotenv import load_dotenv

from .exceptions import ConfigurationError

load_dotenv()

IMAGE_FORMATS = ("png", "jpeg")
WAIT_UNTIL_STATES = ("load", "domcontentloaded", "networkidle", "commit")


def _env_bool(key: str, default: bool) -> bool:
    raw = os.getenv(key)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ["true", "1", "yes", "on"]


def _env_int(key: str, default: int) -> int:
    raw = os.getenv(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}") from e


@dataclass(frozen=True)
class CaptureConfig:
    """Capture configuration, read-only for the duration of a run"""

    # Viewport geometry (pixels)
    viewport_width: int = 1366
    viewport_height: int = 768
    overlap: int = 100

    # Proxy retry path. Credentials are never defaulted.
    use_proxy: bool = False
    proxy_username: Optional[str] = None
    proxy_password: Optional[str] = None
    proxy_server: Optional[str] = None

    # Browser runtime
    browser_executable: Optional[str] = None
    headless: bool = True
    ignore_https_errors: bool = True

    # Timeouts and settle windows (milliseconds)
    navigation_timeout_ms: int = 120000
    wait_until: str = "networkidle"
    load_settle_ms: int = 4000
    initial_settle_ms: int = 2000
    settle_ms: int = 500

    max_normalize_depth: int = 512
    image_format: str = "png"

    @classmethod
    def from_env(cls, **overrides) -> 'CaptureConfig':
        """Create config from PAGESTITCH_* environment variables"""
        values = dict(
            viewport_width=_env_int("PAGESTITCH_VIEWPORT_WIDTH", cls.viewport_width),
            viewport_height=_env_int("PAGESTITCH_VIEWPORT_HEIGHT", cls.viewport_height),
            overlap=_env_int("PAGESTITCH_OVERLAP", cls.overlap),
            use_proxy=_env_bool("PAGESTITCH_USE_PROXY", cls.use_proxy),
            proxy_username=os.getenv("PAGESTITCH_PROXY_USERNAME") or None,
            proxy_password=os.getenv("PAGESTITCH_PROXY_PASSWORD") or None,
            proxy_server=os.getenv("PAGESTITCH_PROXY_SERVER") or None,
            browser_executable=os.getenv("PAGESTITCH_BROWSER_EXECUTABLE") or None,
            headless=_env_bool("PAGESTITCH_HEADLESS", cls.headless),
            ignore_https_errors=_env_bool("PAGESTITCH_IGNORE_HTTPS_ERRORS", cls.ignore_https_errors),
            navigation_timeout_ms=_env_int("PAGESTITCH_NAVIGATION_TIMEOUT_MS", cls.navigation_timeout_ms),
            wait_until=os.getenv("PAGESTITCH_WAIT_UNTIL", cls.wait_until).lower(),
            load_settle_ms=_env_int("PAGESTITCH_LOAD_SETTLE_MS", cls.load_settle_ms),
            initial_settle_ms=_env_int("PAGESTITCH_INITIAL_SETTLE_MS", cls.initial_settle_ms),
            settle_ms=_env_int("PAGESTITCH_SETTLE_MS", cls.settle_ms),
            max_normalize_depth=_env_int("PAGESTITCH_MAX_NORMALIZE_DEPTH", cls.max_normalize_depth),
            image_format=os.getenv("PAGESTITCH_IMAGE_FORMAT", cls.image_format).lower(),
        )
        # Explicit overrides win, but None means "not given"
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    @property
    def proxy_enabled(self) -> bool:
        """True when a failed navigation may be retried through the proxy"""
        return bool(self.use_proxy and self.proxy_username and self.proxy_password)

    @property
    def sensitive_values(self) -> Tuple[str, ...]:
        """Credentials that must never reach the logs, including any user:password in proxy_server"""
        values = [self.proxy_username, self.proxy_password]
        if self.proxy_server:
            try:
                parsed = urlparse(self.proxy_server)
                userinfo = [parsed.username, parsed.password]
            except ValueError:
                userinfo = []
            for part in userinfo:
                if part:
                    values.extend([part, unquote(part)])
        return tuple(v for v in values if v)

    def validate(self) -> 'CaptureConfig':
        """Validate configuration values."""
        errors = []

        if self.viewport_width <= 0:
            errors.append("viewport_width must be positive")
        if self.viewport_height <= 0:
            errors.append("viewport_height must be positive")
        elif not 0 <= self.overlap < self.viewport_height:
            errors.append(
                f"overlap must be in [0, {self.viewport_height}), got {self.overlap}"
            )

        for name in ("navigation_timeout_ms", "load_settle_ms", "initial_settle_ms", "settle_ms"):
            if getattr(self, name) < 0:
                errors.append(f"{name} must not be negative")

        if self.max_normalize_depth <= 0:
            errors.append("max_normalize_depth must be positive")
        if self.image_format not in IMAGE_FORMATS:
            errors.append(f"image_format must be one of {', '.join(IMAGE_FORMATS)}")
        if self.wait_until not in WAIT_UNTIL_STATES:
            errors.append(f"wait_until must be one of {', '.join(WAIT_UNTIL_STATES)}")
        if self.use_proxy and self.proxy_username and not self.proxy_password:
            errors.append("proxy_password is required when proxy_username is set")

        if errors:
            raise ConfigurationError(f"Configuration errors: {'; '.join(errors)}")

        return self
