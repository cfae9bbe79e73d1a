"""
Scroll Planner - which scroll offsets cover the whole page

Pure function, no browser access. Offsets advance by one viewport minus the
overlap; the last tile is snapped to the bottom of the page. A snap that would
nearly duplicate the previous tile moves that tile down instead of adding one.
"""

from dataclasses import dataclass
from typing import Tuple

from .exceptions import ConfigurationError


@dataclass(frozen=True)
class CapturePlan:
    """Ordered scroll offsets plus the geometry used to compute them"""
    offsets: Tuple[int, ...]
    total_height: int
    viewport_height: int
    overlap: int

    @property
    def step(self) -> int:
        return self.viewport_height - self.overlap

    def __len__(self) -> int:
        return len(self.offsets)

    def __iter__(self):
        return iter(self.offsets)


def validate_geometry(viewport_height: int, overlap: int) -> None:
    """Reject geometry that would make the planner stall or walk backwards."""
    if viewport_height <= 0:
        raise ConfigurationError(f"viewport_height must be positive, got {viewport_height}")
    if overlap < 0 or overlap >= viewport_height:
        raise ConfigurationError(
            f"overlap must be in [0, {viewport_height}), got {overlap}"
        )


def compute_capture_plan(total_height: int, viewport_height: int, overlap: int) -> CapturePlan:
    """
    Compute the scroll offsets needed to cover ``total_height``.

    Args:
        total_height: Measured document height in pixels
        viewport_height: Height of one tile
        overlap: Pixels shared by consecutive tiles

    Returns:
        CapturePlan whose first offset is 0 and whose last tile reaches the bottom

    Raises:
        ConfigurationError: overlap outside [0, viewport_height)
    """
    validate_geometry(viewport_height, overlap)

    step = viewport_height - overlap
    offsets = []
    offset = 0
    while True:
        offsets.append(offset)
        offset += step
        if offset + viewport_height > total_height:
            break

    # Snap the last tile to the very bottom, skipping near-duplicates
    final_offset = max(0, total_height - viewport_height)
    if final_offset > offsets[-1] + overlap / 2:
        offsets.append(final_offset)
    elif final_offset > offsets[-1]:
        # Near-duplicate: slide the last tile down instead so the bottom
        # band is still covered. The first tile always stays at 0.
        if len(offsets) > 1:
            offsets[-1] = final_offset
        else:
            offsets.append(final_offset)

    return CapturePlan(
        offsets=tuple(offsets),
        total_height=total_height,
        viewport_height=viewport_height,
        overlap=overlap,
    )
