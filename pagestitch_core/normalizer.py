"""
Page Normalizer - pin fixed-position elements to the document

Elements with ``position: fixed`` would otherwise show up in every tile.
They are rewritten to ``position: absolute`` at the place they currently
occupy in the document, so they are captured exactly once.
"""

import logging

from .exceptions import CaptureError, PageStitchError

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 512

# Explicit worklist, bounded by maxDepth levels below the root.
# Returns the number of converted elements.
NORMALIZE_FIXED_SCRIPT = """
(maxDepth) => {
    const root = document.body || document.documentElement;
    if (!root) return 0;
    const scrollTop = window.pageYOffset || document.documentElement.scrollTop || 0;
    const stack = [[root, 0]];
    let converted = 0;
    while (stack.length) {
        const [element, depth] = stack.pop();
        const style = window.getComputedStyle(element);
        if (style.position === 'fixed') {
            const rect = element.getBoundingClientRect();
            element.style.position = 'absolute';
            element.style.top = `${rect.top + scrollTop}px`;
            element.style.left = `${rect.left}px`;
            element.style.bottom = 'auto';
            element.style.right = 'auto';
            converted += 1;
        }
        if (depth >= maxDepth) continue;
        const children = element.children;
        for (let i = children.length - 1; i >= 0; i--) {
            stack.push([children[i], depth + 1]);
        }
    }
    return converted;
}
"""


async def normalize_fixed_elements(session, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
    """
    Convert every fixed-position element into an absolutely positioned one.

    Must run once, before the first scroll: the new ``top`` is computed from
    the scroll offset at call time. Elements already converted are left alone
    since their computed position is no longer ``fixed``.

    Args:
        session: BrowserSession for the current run
        max_depth: Maximum element depth below the root to visit
    """
    if max_depth <= 0:
        raise ValueError(f"max_depth must be positive, got {max_depth}")
    try:
        converted = await session.evaluate(NORMALIZE_FIXED_SCRIPT, max_depth)
    except PageStitchError:
        raise
    except Exception as e:
        raise CaptureError(f"Fixed-element normalization failed: {e}") from e
    logger.debug(f"Converted {converted or 0} fixed element(s) to absolute")
