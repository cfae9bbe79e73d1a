"""
pagestitch - full-page screenshots by scrolling and stitching

Usage:
    from pagestitch_core import CaptureConfig, capture_full_page

    png = await capture_full_page("https://example.com", CaptureConfig(overlap=120))
"""

from .config import CaptureConfig
from .exceptions import (
    PageStitchError,
    ConfigurationError,
    NavigationError,
    AuthenticationError,
    CaptureError,
    StitchError,
)
from .planner import CapturePlan, compute_capture_plan
from .normalizer import normalize_fixed_elements
from .capturer import Tile, TileSet, TileCapturer, measure_page_height
from .stitcher import Canvas, Layer, stitch
from .session import BrowserSession, PlaywrightSession, open_session
from .orchestrator import (
    CaptureOrchestrator,
    CaptureResult,
    CaptureState,
    capture_full_page,
)
from .storage import save_screenshot, write_bytes

__all__ = [
    'CaptureConfig',

    # Errors
    'PageStitchError',
    'ConfigurationError',
    'NavigationError',
    'AuthenticationError',
    'CaptureError',
    'StitchError',

    # Pipeline
    'CapturePlan',
    'compute_capture_plan',
    'normalize_fixed_elements',
    'Tile',
    'TileSet',
    'TileCapturer',
    'measure_page_height',
    'Canvas',
    'Layer',
    'stitch',

    # Session
    'BrowserSession',
    'PlaywrightSession',
    'open_session',

    # Orchestration
    'CaptureOrchestrator',
    'CaptureResult',
    'CaptureState',
    'capture_full_page',

    # Storage
    'save_screenshot',
    'write_bytes',
]

__version__ = '0.1.0'
