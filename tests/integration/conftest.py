"""
Pytest configuration for integration tests (real Chromium via Playwright)

The browser tests skip when Chromium cannot be launched. Set
PAGESTITCH_REQUIRE_BROWSER=1 in CI to turn that skip into a failure.
"""

import os

import pytest
import pytest_asyncio

from pagestitch_core.config import CaptureConfig
from pagestitch_core.session import PlaywrightSession


def _browser_required() -> bool:
    return os.getenv("PAGESTITCH_REQUIRE_BROWSER", "").lower() in ("1", "true", "yes")


@pytest.fixture
def browser_unavailable():
    """Skip, or fail when PAGESTITCH_REQUIRE_BROWSER is set, on a launch error"""
    def _handle(error: Exception):
        if _browser_required():
            pytest.fail(f"Chromium required but not available: {error}")
        pytest.skip(f"Chromium not available: {error}")
    return _handle


@pytest.fixture
def html_url():
    """Build an inline page as a data: URL."""
    from urllib.parse import quote

    def _build(body: str) -> str:
        return "data:text/html," + quote(
            f"<!doctype html><html><head><style>html,body{{margin:0;padding:0}}</style></head>"
            f"<body>{body}</body></html>"
        )
    return _build


@pytest.fixture
def browser_config():
    return CaptureConfig(
        viewport_width=400,
        viewport_height=300,
        overlap=50,
        navigation_timeout_ms=30000,
        wait_until="load",
        load_settle_ms=0,
        initial_settle_ms=50,
        settle_ms=10,
    )


@pytest_asyncio.fixture
async def browser_session(browser_config, browser_unavailable):
    """Provide a live session"""
    try:
        session = await PlaywrightSession.open(browser_config)
    except Exception as e:
        browser_unavailable(e)
    yield session
    await session.close()
