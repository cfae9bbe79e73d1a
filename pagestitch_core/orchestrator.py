"""
Capture Orchestrator - one full-page capture, start to finish

State machine:

    INIT -> NAVIGATING -> CAPTURING -> STITCHED
                |
                v
        NAVIGATION_FAILED -> AUTHENTICATING -> NAVIGATING   (once, proxy only)
                |                  |
                v                  v
              FAILED             FAILED

Only a failed navigation is recoverable, and only once, through the
authenticated proxy path. Whatever happens, the browser session is released
exactly once.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Dict, FrozenSet, List, Optional, Tuple
from urllib.parse import urlparse

from .capturer import TileCapturer, measure_page_height
from .config import CaptureConfig
from .exceptions import ConfigurationError, NavigationError
from .normalizer import normalize_fixed_elements
from .planner import compute_capture_plan
from .session import BrowserSession, open_session
from .stitcher import stitch

logger = logging.getLogger(__name__)

SessionFactory = Callable[[CaptureConfig], Awaitable[BrowserSession]]

# Schemes that legitimately have no host part
_HOSTLESS_SCHEMES = {"file", "data", "about"}


class CaptureState(Enum):
    """Capture run states"""
    INIT = "init"
    NAVIGATING = "navigating"
    NAVIGATION_FAILED = "navigation_failed"
    AUTHENTICATING = "authenticating"
    CAPTURING = "capturing"
    STITCHED = "stitched"
    FAILED = "failed"


TRANSITIONS: Dict[CaptureState, FrozenSet[CaptureState]] = {
    CaptureState.INIT: frozenset({CaptureState.NAVIGATING, CaptureState.FAILED}),
    CaptureState.NAVIGATING: frozenset({
        CaptureState.CAPTURING,
        CaptureState.NAVIGATION_FAILED,
        CaptureState.FAILED,
    }),
    CaptureState.NAVIGATION_FAILED: frozenset({CaptureState.AUTHENTICATING, CaptureState.FAILED}),
    CaptureState.AUTHENTICATING: frozenset({CaptureState.NAVIGATING, CaptureState.FAILED}),
    CaptureState.CAPTURING: frozenset({CaptureState.STITCHED, CaptureState.FAILED}),
    CaptureState.STITCHED: frozenset(),
    CaptureState.FAILED: frozenset(),
}


@dataclass(frozen=True)
class CaptureResult:
    """Outcome of a successful run"""
    image: bytes
    width: int
    height: int
    offsets: Tuple[int, ...]
    used_proxy: bool
    states: Tuple[CaptureState, ...]


def validate_url(url: str) -> str:
    """Raise ConfigurationError unless ``url`` is absolute and well formed."""
    if not isinstance(url, str) or not url.strip():
        raise ConfigurationError("URL must be a non-empty string")
    try:
        parsed = urlparse(url.strip())
    except ValueError as e:
        raise ConfigurationError(f"Invalid URL {url!r}: {e}") from e
    if not parsed.scheme:
        raise ConfigurationError(f"Invalid URL {url!r}: missing scheme")
    if parsed.scheme.lower() not in _HOSTLESS_SCHEMES and not parsed.netloc:
        raise ConfigurationError(f"Invalid URL {url!r}: missing host")
    return url.strip()


class CaptureOrchestrator:
    """
    Runs one capture against an exclusively owned browser session.
    Instances are single-use; create a new one for each capture.

    Usage:
        orchestrator = CaptureOrchestrator("https://example.com", CaptureConfig())
        result = await orchestrator.run()
        Path("page.png").write_bytes(result.image)
    """

    def __init__(
        self,
        url: str,
        config: Optional[CaptureConfig] = None,
        session_factory: Optional[SessionFactory] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.url = url
        self.config = config or CaptureConfig()
        self._session_factory = session_factory or open_session
        self._sleep = sleep
        self._session: Optional[BrowserSession] = None
        self._released = False
        self._used_proxy = False
        self.state = CaptureState.INIT
        self.history: List[CaptureState] = [CaptureState.INIT]

    def _transition(self, new_state: CaptureState) -> None:
        if new_state not in TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal capture transition {self.state.value} -> {new_state.value}")
        logger.info(f"[capture] {self.state.value} -> {new_state.value}")
        self.state = new_state
        self.history.append(new_state)

    async def run(self) -> CaptureResult:
        # An orchestrator drives a single capture
        if self.state is not CaptureState.INIT:
            raise RuntimeError(f"Capture already ran (state: {self.state.value})")

        # Configuration problems surface before any browser interaction
        url = validate_url(self.url)
        self.config.validate()

        try:
            self._session = await self._session_factory(self.config)
            await self._navigate_with_proxy_retry(url)
            self._transition(CaptureState.CAPTURING)
            result = await self._capture()
            self._transition(CaptureState.STITCHED)
            return result
        except BaseException:
            if self.state not in (CaptureState.FAILED, CaptureState.STITCHED):
                self._transition(CaptureState.FAILED)
            raise
        finally:
            await self._release()

    async def _navigate_with_proxy_retry(self, url: str) -> None:
        self._transition(CaptureState.NAVIGATING)
        try:
            await self._session.navigate(url, self.config.navigation_timeout_ms)
            return
        except NavigationError as first_error:
            self._transition(CaptureState.NAVIGATION_FAILED)
            if not self.config.proxy_enabled:
                logger.error(f"Navigation to {url} failed, no proxy configured: {first_error}")
                raise
            logger.warning(f"Navigation error on first attempt, retrying through proxy: {first_error}")
            error = first_error

        self._transition(CaptureState.AUTHENTICATING)
        await self._session.authenticate(self.config.proxy_username, self.config.proxy_password)
        self._used_proxy = True

        self._transition(CaptureState.NAVIGATING)
        try:
            await self._session.navigate(url, self.config.navigation_timeout_ms)
        except NavigationError as second_error:
            # Single retry only
            logger.error(f"Navigation to {url} failed through proxy: {second_error}")
            raise second_error from error

    async def _capture(self) -> CaptureResult:
        config = self.config
        if config.load_settle_ms > 0:
            await self._sleep(config.load_settle_ms / 1000)

        await normalize_fixed_elements(self._session, max_depth=config.max_normalize_depth)
        total_height = await measure_page_height(self._session)
        plan = compute_capture_plan(total_height, config.viewport_height, config.overlap)
        logger.info(f"[capture] page height {total_height}px, {len(plan)} tile(s) planned")

        capturer = TileCapturer(
            initial_settle_ms=config.initial_settle_ms,
            settle_ms=config.settle_ms,
            sleep=self._sleep,
        )
        tile_set = await capturer.capture(self._session, plan)
        image = stitch(
            tile_set.tiles,
            tile_set.total_height,
            config.viewport_width,
            image_format=config.image_format,
        )
        return CaptureResult(
            image=image,
            width=config.viewport_width,
            height=tile_set.total_height,
            offsets=tile_set.offsets,
            used_proxy=self._used_proxy,
            # STITCHED is appended by the caller once this returns
            states=tuple(self.history) + (CaptureState.STITCHED,),
        )

    async def _release(self) -> None:
        if self._released or self._session is None:
            return
        self._released = True
        try:
            await self._session.close()
        except Exception as e:
            logger.warning(f"Failed to release browser session: {e}")


async def capture_full_page(
    url: str,
    config: Optional[CaptureConfig] = None,
    session_factory: Optional[SessionFactory] = None,
) -> bytes:
    """
    Capture a full-page screenshot by scrolling and stitching.

    Args:
        url: Page to capture
        config: Capture configuration (defaults to CaptureConfig())
        session_factory: Async callable returning a BrowserSession

    Returns:
        Encoded image bytes (PNG by default)
    """
    orchestrator = CaptureOrchestrator(url, config, session_factory=session_factory)
    result = await orchestrator.run()
    return result.image
