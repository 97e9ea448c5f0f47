"""Raster <-> vector mode switching: hit bounds, trimming, and the
hand-off with the external decoder that turns a vector document into
pixels."""

import logging
import math
from concurrent.futures import Future
from typing import Callable

from pixels import BoundingRect, PixelBuffer

logger = logging.getLogger(__name__)


def get_hit_bounds(buffer: PixelBuffer) -> BoundingRect:
    """Smallest rectangle containing every pixel with non-zero alpha.

    Rows are trimmed before columns, and columns only look at the rows
    that survived.  A fully transparent buffer gives a zero-sized rect.
    """
    alpha = buffer.data[:, :, 3]
    top, bottom = 0, buffer.height
    left, right = 0, buffer.width

    while top < bottom and not alpha[top].any():
        top += 1
    while bottom - 1 > top and not alpha[bottom - 1].any():
        bottom -= 1
    while left < right and not alpha[top:bottom, left].any():
        left += 1
    while right - 1 > left and not alpha[top:bottom, right - 1].any():
        right -= 1

    return BoundingRect(left, top, right - left, bottom - top)


def trim(buffer: PixelBuffer) -> tuple[PixelBuffer, BoundingRect] | None:
    """Copy of the opaque part of ``buffer`` and where it came from, or
    None when there is nothing to keep."""
    bounds = get_hit_bounds(buffer)
    if bounds.is_empty:
        return None
    return buffer.get_region(*bounds), bounds


def convert_to_vector(raster: PixelBuffer, on_update: Callable[[], None]):
    """Lift the drawn part of ``raster`` out for the vector layer and clear
    the raster.  Returns trim()'s result for the caller to place."""
    trimmed = trim(raster)
    raster.clear()
    on_update()
    return trimmed


def convert_to_bitmap(pending: Future, raster: PixelBuffer, top_left: tuple,
                      on_update: Callable[[], None]):
    """Draw the decoder's output onto ``raster`` once it is ready.

    ``pending`` resolves to a PixelBuffer rendered from the vector layer,
    whose top-left corner sits at ``top_left`` in raster coordinates.  This
    only registers a callback; it never waits on the decode.
    """
    x, y = math.floor(top_left[0]), math.floor(top_left[1])

    def _done(future: Future):
        try:
            image = future.result()
        except Exception:
            logger.exception("Vector decode failed; raster left unchanged")
        else:
            if image is not None and image.width and image.height:
                raster.draw_image(image, x, y)
        on_update()

    pending.add_done_callback(_done)
