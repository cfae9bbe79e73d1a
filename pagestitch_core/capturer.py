"""
Tile Capturer - scroll, settle, snapshot

Walks the page through a CapturePlan and grabs one viewport-sized PNG per
offset. Strictly sequential: the session has a single scroll position, so
tiles can never be taken concurrently.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Tuple

from .exceptions import CaptureError, PageStitchError
from .planner import CapturePlan

logger = logging.getLogger(__name__)

PAGE_HEIGHT_SCRIPT = """
() => Math.max(
    document.body ? document.body.scrollHeight : 0,
    document.documentElement.scrollHeight,
    document.body ? document.body.offsetHeight : 0,
    document.documentElement.offsetHeight,
    document.body ? document.body.clientHeight : 0,
    document.documentElement.clientHeight
)
"""

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class Tile:
    """One viewport capture and the scroll offset it was taken at"""
    image: bytes
    offset: int


@dataclass(frozen=True)
class TileSet:
    """Tiles in plan order plus the page height measured before capturing"""
    tiles: Tuple[Tile, ...]
    total_height: int

    @property
    def offsets(self) -> Tuple[int, ...]:
        return tuple(tile.offset for tile in self.tiles)


async def measure_page_height(session) -> int:
    """Return the full document height, measured once before tiling."""
    try:
        height = await session.evaluate(PAGE_HEIGHT_SCRIPT)
    except PageStitchError:
        raise
    except Exception as e:
        raise CaptureError(f"Could not measure page height: {e}") from e
    try:
        return max(0, int(height))
    except (TypeError, ValueError) as e:
        raise CaptureError(f"Page height is not a number: {height!r}") from e


class TileCapturer:
    """
    Capture one tile per planned offset.

    The first tile waits ``initial_settle_ms`` (initial paint, images,
    lazy-loaded resources), later tiles wait ``settle_ms``. ``sleep`` is
    injectable so tests can run on a fake clock.
    """

    def __init__(
        self,
        initial_settle_ms: int = 2000,
        settle_ms: int = 500,
        sleep: Sleep = asyncio.sleep,
    ):
        self.initial_settle_ms = initial_settle_ms
        self.settle_ms = settle_ms
        self._sleep = sleep

    async def capture(self, session, plan: CapturePlan) -> TileSet:
        tiles: List[Tile] = []
        for index, offset in enumerate(plan.offsets):
            try:
                await session.scroll_to(offset)
            except PageStitchError:
                raise
            except Exception as e:
                raise CaptureError(f"Scroll to {offset}px failed: {e}") from e

            wait_ms = self.initial_settle_ms if index == 0 else self.settle_ms
            if wait_ms > 0:
                await self._sleep(wait_ms / 1000)

            try:
                image = await session.capture_viewport()
            except PageStitchError:
                raise
            except Exception as e:
                raise CaptureError(f"Viewport capture at {offset}px failed: {e}") from e
            if not image:
                raise CaptureError(f"Viewport capture at {offset}px returned no data")

            tiles.append(Tile(image=image, offset=offset))
            logger.debug(f"Tile {index + 1}/{len(plan)} captured at {offset}px")

        return TileSet(tiles=tuple(tiles), total_height=plan.total_height)
