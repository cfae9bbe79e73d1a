#!/usr/bin/env python3
"""
Browser session - the one mutable resource a capture run owns.

The core only talks to the BrowserSession protocol; PlaywrightSession is the
production implementation on top of Playwright's async API.
"""
import logging
from typing import Any, Dict, Optional, Protocol

from .config import CaptureConfig
from .exceptions import AuthenticationError, CaptureError, NavigationError

logger = logging.getLogger(__name__)

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
]

# Statuses that mean the site refused us; worth a retry through the proxy
BLOCKED_STATUSES = (403, 429)
PROXY_AUTH_REQUIRED = 407

SCROLL_SCRIPT = "(y) => window.scrollTo(0, y)"


class BrowserSession(Protocol):
    async def navigate(self, url: str, timeout_ms: int) -> None: ...

    async def evaluate(self, script: str, arg: Any = None) -> Any: ...

    async def scroll_to(self, offset: int) -> None: ...

    async def capture_viewport(self) -> bytes: ...

    async def authenticate(self, username: str, password: str) -> None: ...

    async def close(self) -> None: ...


class PlaywrightSession:
    """
    BrowserSession backed by a Playwright Chromium context.

    Usage:
        session = await PlaywrightSession.open(config)
        try:
            await session.navigate(url, config.navigation_timeout_ms)
            png = await session.capture_viewport()
        finally:
            await session.close()
    """

    def __init__(self, playwright, browser, context, page, config: CaptureConfig):
        self._playwright = playwright
        self._browser = browser
        self._context = context
        self._page = page
        self._config = config
        self._authenticated = False
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @classmethod
    async def open(cls, config: CaptureConfig) -> 'PlaywrightSession':
        from playwright.async_api import async_playwright

        playwright = await async_playwright().start()
        launch_args: Dict[str, Any] = {
            "headless": bool(config.headless),
            "args": list(LAUNCH_ARGS),
        }
        if config.browser_executable:
            launch_args["executable_path"] = config.browser_executable
        try:
            browser = await playwright.chromium.launch(**launch_args)
        except Exception:
            await playwright.stop()
            raise

        session = cls(playwright, browser, None, None, config)
        try:
            await session._new_context()
        except Exception:
            await session.close()
            raise
        logger.debug(
            f"Browser session opened ({config.viewport_width}x{config.viewport_height}, "
            f"headless={config.headless})"
        )
        return session

    async def _new_context(self, credentials: Optional[Dict[str, str]] = None) -> None:
        context_args: Dict[str, Any] = {
            "viewport": {
                "width": self._config.viewport_width,
                "height": self._config.viewport_height,
            },
            "ignore_https_errors": self._config.ignore_https_errors,
        }
        if credentials:
            context_args["http_credentials"] = dict(credentials)
            if self._config.proxy_server:
                context_args["proxy"] = {"server": self._config.proxy_server, **credentials}

        context = await self._browser.new_context(**context_args)
        page = await context.new_page()
        page.set_default_navigation_timeout(self._config.navigation_timeout_ms)

        old_context = self._context
        self._context, self._page = context, page
        if old_context is not None:
            try:
                await old_context.close()
            except Exception as e:
                logger.warning(f"Failed to close previous browser context: {e}")

    async def navigate(self, url: str, timeout_ms: int) -> None:
        from playwright.async_api import Error as PlaywrightError

        try:
            response = await self._page.goto(
                url,
                timeout=timeout_ms,
                wait_until=self._config.wait_until,
            )
        except PlaywrightError as e:
            # TimeoutError is a subclass of Error
            raise NavigationError(f"Navigation to {url} failed: {e}") from e

        if response is None:
            return
        status = response.status
        if status == PROXY_AUTH_REQUIRED and self._authenticated:
            raise AuthenticationError(f"Proxy rejected credentials for {url} (HTTP {status})")
        if status == PROXY_AUTH_REQUIRED or status in BLOCKED_STATUSES or status >= 500:
            raise NavigationError(f"Navigation to {url} returned HTTP {status}")
        logger.debug(f"Navigated to {url} (HTTP {status})")

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        if arg is None:
            return await self._page.evaluate(script)
        return await self._page.evaluate(script, arg)

    async def scroll_to(self, offset: int) -> None:
        await self._page.evaluate(SCROLL_SCRIPT, offset)

    async def capture_viewport(self) -> bytes:
        from playwright.async_api import Error as PlaywrightError

        try:
            return await self._page.screenshot(type="png", full_page=False)
        except PlaywrightError as e:
            raise CaptureError(f"Viewport screenshot failed: {e}") from e

    async def authenticate(self, username: str, password: str) -> None:
        """Re-open the page in a context that carries the proxy credentials."""
        from playwright.async_api import Error as PlaywrightError

        try:
            await self._new_context({"username": username, "password": password})
        except PlaywrightError as e:
            raise AuthenticationError(f"Could not apply proxy credentials: {e}") from e
        self._authenticated = True

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for name, closer in (
            ("context", self._context.close if self._context else None),
            ("browser", self._browser.close if self._browser else None),
            ("playwright", self._playwright.stop if self._playwright else None),
        ):
            if closer is None:
                continue
            try:
                await closer()
            except Exception as e:
                logger.warning(f"Failed to close {name}: {e}")
        logger.debug("Browser session closed")


async def open_session(config: CaptureConfig) -> BrowserSession:
    """Default session factory used by the orchestrator."""
    return await PlaywrightSession.open(config)
