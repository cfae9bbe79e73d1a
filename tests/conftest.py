"""
Shared fixtures: an in-memory browser session and a fake clock.
"""

import pytest

from pagestitch_core.capturer import PAGE_HEIGHT_SCRIPT
from pagestitch_core.normalizer import NORMALIZE_FIXED_SCRIPT

from tile_images import color_for_offset, solid_png


class FakeSession:
    """
    BrowserSession double.

    ``navigate_errors`` is consumed one entry per navigate() call; ``None``
    means that attempt succeeds.
    """

    def __init__(
        self,
        page_height: int = 2000,
        viewport=(100, 768),
        navigate_errors=None,
        authenticate_error=None,
        capture_error_at=None,
        normalize_error=None,
    ):
        self.page_height = page_height
        self.viewport_width, self.viewport_height = viewport
        self.navigate_errors = list(navigate_errors or [])
        self.authenticate_error = authenticate_error
        self.capture_error_at = capture_error_at
        self.normalize_error = normalize_error

        self.calls = []
        self.navigations = []
        self.credentials = None
        self.scroll_position = 0
        self.close_count = 0

    async def navigate(self, url, timeout_ms):
        self.calls.append("navigate")
        self.navigations.append((url, timeout_ms))
        if self.navigate_errors:
            error = self.navigate_errors.pop(0)
            if error is not None:
                raise error

    async def evaluate(self, script, arg=None):
        if script == PAGE_HEIGHT_SCRIPT:
            self.calls.append("measure")
            return self.page_height
        if script == NORMALIZE_FIXED_SCRIPT:
            self.calls.append(("normalize", arg))
            if self.normalize_error is not None:
                raise self.normalize_error
            return 0
        raise AssertionError(f"unexpected script: {script[:40]}")

    async def scroll_to(self, offset):
        self.calls.append(("scroll", offset))
        self.scroll_position = offset

    async def capture_viewport(self):
        self.calls.append(("capture", self.scroll_position))
        if self.capture_error_at is not None and self.scroll_position == self.capture_error_at:
            raise RuntimeError("screenshot failed")
        return solid_png(
            self.viewport_width,
            self.viewport_height,
            color_for_offset(self.scroll_position),
        )

    async def authenticate(self, username, password):
        self.calls.append("authenticate")
        if self.authenticate_error is not None:
            raise self.authenticate_error
        self.credentials = (username, password)

    async def close(self):
        self.calls.append("close")
        self.close_count += 1


class FakeClock:
    """Records sleeps instead of waiting."""

    def __init__(self):
        self.sleeps = []

    async def sleep(self, seconds):
        self.sleeps.append(seconds)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def make_session():
    """Factory fixture: make_session(**kwargs) -> FakeSession"""
    def _make(**kwargs):
        return FakeSession(**kwargs)
    return _make


@pytest.fixture
def session_factory():
    """Wrap a FakeSession into the async factory the orchestrator expects."""
    def _wrap(session):
        async def factory(config):
            return session
        return factory
    return _wrap
