"""
Screenshot storage - writing finished captures to disk.

Not part of the capture pipeline; the orchestrator only ever returns bytes.
"""
import logging
import time
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlparse

from .config import CaptureConfig
from .orchestrator import capture_full_page

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def write_bytes(path: PathLike, data: bytes) -> Path:
    """Write ``data`` to ``path``, creating parent directories as needed."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)
    return target


def get_screenshot_path(
    url: str = "",
    base_dir: PathLike = "screenshots",
    prefix: str = "fullpage",
    image_format: str = "png",
) -> Path:
    """
    Generate screenshot path based on URL and timestamp.

    Args:
        url: Page URL for subdirectory
        base_dir: Base screenshots directory
        prefix: Filename prefix
        image_format: File extension

    Returns:
        Path like: screenshots/example.com/fullpage_12345.png
    """
    subdir = Path(base_dir)
    if url:
        domain = urlparse(url).netloc or "unknown"
        subdir = subdir / domain.replace(":", "_")

    timestamp = int(time.time() * 1000)
    extension = "jpg" if image_format == "jpeg" else image_format
    return subdir / f"{prefix}_{timestamp}.{extension}"


async def save_screenshot(
    url: str,
    output: Optional[PathLike] = None,
    config: Optional[CaptureConfig] = None,
    session_factory=None,
) -> Path:
    """Capture ``url`` and write the stitched image to ``output``."""
    config = config or CaptureConfig()
    image = await capture_full_page(url, config, session_factory=session_factory)
    target = Path(output) if output else get_screenshot_path(url, image_format=config.image_format)
    write_bytes(target, image)
    logger.info(f"Saved screenshot to {target}")
    return target
