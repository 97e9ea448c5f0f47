"""Paint-bucket fills over a PixelBuffer.

Colors are compared exactly on all four channels.  Both fills treat the
seed pixel's color as the color to replace and do nothing at all when it
already equals the new color.
"""

import logging
import math

from pixels import ColorLike, PixelBuffer, pack_color, resolve_color

logger = logging.getLogger(__name__)


def _sample(x: float, y: float, color: ColorLike, buffer: PixelBuffer):
    """Return (x, y, old, new) as packed colors, or None for a no-op."""
    x, y = math.trunc(x), math.trunc(y)
    if not buffer.in_bounds(x, y):
        logger.debug(f"Fill seed ({x}, {y}) outside {buffer}")
        return None
    new_color = pack_color(resolve_color(color))
    old_color = int(buffer.packed()[y, x])
    if old_color == new_color:
        return None
    return x, y, old_color, new_color


def _fill_column(x: int, y: int, pixels, new_color: int, old_color: int, stack: list):
    """Recolor the vertical run through (x, y) and queue neighbouring runs.

    A left/right neighbour is pushed only when it starts matching, so the
    stack grows with the number of runs rather than pixels.
    """
    height, width = pixels.shape
    while y > 0 and pixels[y - 1, x] == old_color:
        y -= 1
    last_left_matched = False
    last_right_matched = False
    while y < height:
        if pixels[y, x] != old_color:
            break
        pixels[y, x] = new_color
        if x > 0:
            if pixels[y, x - 1] == old_color:
                if not last_left_matched:
                    stack.append((x - 1, y))
                    last_left_matched = True
            else:
                last_left_matched = False
        if x < width - 1:
            if pixels[y, x + 1] == old_color:
                if not last_right_matched:
                    stack.append((x + 1, y))
                    last_right_matched = True
            else:
                last_right_matched = False
        y += 1


def flood_fill(x: float, y: float, color: ColorLike, buffer: PixelBuffer) -> bool:
    """Fill the 4-connected region around (x, y).  Returns True if changed."""
    sampled = _sample(x, y, color, buffer)
    if sampled is None:
        return False
    x, y, old_color, new_color = sampled

    pixels = buffer.packed()
    stack = [(x, y)]
    while stack:
        cx, cy = stack.pop()
        _fill_column(cx, cy, pixels, new_color, old_color, stack)
    return True


def flood_fill_all(x: float, y: float, color: ColorLike, buffer: PixelBuffer) -> bool:
    """Replace every pixel matching the color at (x, y), connected or not."""
    sampled = _sample(x, y, color, buffer)
    if sampled is None:
        return False
    _, _, old_color, new_color = sampled

    pixels = buffer.packed()
    pixels[pixels == old_color] = new_color
    return True
