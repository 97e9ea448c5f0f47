"""RGBA pixel buffer backed by a numpy array, plus color helpers."""

from typing import NamedTuple, Sequence, Union

import numpy as np
import pygame


Color = tuple[int, int, int, int]  # (r, g, b, a), each 0-255
ColorLike = Union[str, Sequence[int], pygame.Color]

TRANSPARENT = (0, 0, 0, 0)


def resolve_color(style: ColorLike) -> Color:
    """Turn a style string ("#ff0000", "#ff000080", "white") or an RGB(A)
    sequence into an RGBA 4-tuple.  Raises ValueError for unknown styles."""
    if isinstance(style, pygame.Color):
        return (style.r, style.g, style.b, style.a)
    if isinstance(style, str):
        c = pygame.Color(style)
        return (c.r, c.g, c.b, c.a)
    channels = [int(v) for v in style]
    if len(channels) == 3:
        channels.append(255)
    if len(channels) != 4 or any(v < 0 or v > 255 for v in channels):
        raise ValueError(f"Invalid color: {style!r}")
    return tuple(channels)


def pack_color(color: Color) -> int:
    """Pack an RGBA tuple into the uint32 used by PixelBuffer.packed()."""
    return int(np.array(color, dtype=np.uint8).view(np.uint32)[0])


class BoundingRect(NamedTuple):
    left: int
    top: int
    width: int
    height: int

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0


class PixelBuffer:
    """Fixed-size RGBA8 buffer, row-major, stored as (height, width, 4) uint8.

    Drawing primitives borrow a buffer for the duration of a call and
    write into ``data`` in place; nothing keeps a reference afterwards."""

    def __init__(self, width: int, height: int, data: np.ndarray | None = None):
        if data is None:
            data = np.zeros((height, width, 4), dtype=np.uint8)
        elif data.shape != (height, width, 4) or data.dtype != np.uint8:
            raise ValueError(
                f"Expected uint8 array of shape {(height, width, 4)}, "
                f"got {data.dtype} {data.shape}")
        self.width = width
        self.height = height
        self.data = np.ascontiguousarray(data)

    @classmethod
    def from_array(cls, data: np.ndarray) -> "PixelBuffer":
        height, width = data.shape[:2]
        return cls(width, height, data)

    def __repr__(self) -> str:
        return f"PixelBuffer({self.width}x{self.height})"

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(self.width, self.height, self.data.copy())

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def packed(self) -> np.ndarray:
        """(height, width) uint32 view; one element per pixel, writes go
        straight through to ``data``."""
        return self.data.view(np.uint32).reshape(self.height, self.width)

    # --- single pixels ---

    def get_pixel(self, x: int, y: int) -> Color:
        """RGBA at (x, y); transparent outside the buffer."""
        if not self.in_bounds(x, y):
            return TRANSPARENT
        return tuple(int(v) for v in self.data[y, x])

    def set_pixel(self, x: int, y: int, color: Color):
        if self.in_bounds(x, y):
            self.data[y, x] = color

    # --- rectangles ---

    def _clip(self, x: int, y: int, w: int, h: int):
        """Normalize negative extents and clip to the buffer.
        Returns (x0, y0, x1, y1) or None if nothing is left."""
        if w < 0:
            x, w = x + w, -w
        if h < 0:
            y, h = y + h, -h
        x0, y0 = max(0, x), max(0, y)
        x1, y1 = min(self.width, x + w), min(self.height, y + h)
        if x0 >= x1 or y0 >= y1:
            return None
        return x0, y0, x1, y1

    def fill_rect(self, x: int, y: int, w: int, h: int, color: Color):
        """Overwrite a rectangle with ``color``.  Negative sizes extend left/up."""
        clipped = self._clip(x, y, w, h)
        if clipped is None:
            return
        x0, y0, x1, y1 = clipped
        self.data[y0:y1, x0:x1] = color

    def clear(self):
        self.data[:] = 0

    def get_region(self, x: int, y: int, w: int, h: int) -> "PixelBuffer":
        """Copy of the given region; parts outside the buffer are transparent."""
        region = PixelBuffer(w, h)
        clipped = self._clip(x, y, w, h)
        if clipped is not None:
            x0, y0, x1, y1 = clipped
            region.data[y0 - y:y1 - y, x0 - x:x1 - x] = self.data[y0:y1, x0:x1]
        return region

    def _overlap(self, src: "PixelBuffer", x: int, y: int):
        clipped = self._clip(x, y, src.width, src.height)
        if clipped is None:
            return None
        x0, y0, x1, y1 = clipped
        return (slice(y0, y1), slice(x0, x1)), (slice(y0 - y, y1 - y), slice(x0 - x, x1 - x))

    def put_region(self, src: "PixelBuffer", x: int, y: int):
        """Copy ``src`` verbatim with its top-left at (x, y)."""
        overlap = self._overlap(src, x, y)
        if overlap is None:
            return
        dst_idx, src_idx = overlap
        self.data[dst_idx] = src.data[src_idx]

    def draw_image(self, src: "PixelBuffer", x: int, y: int):
        """Composite ``src`` over this buffer (source-over) at (x, y)."""
        overlap = self._overlap(src, x, y)
        if overlap is None:
            return
        dst_idx, src_idx = overlap
        top = src.data[src_idx].astype(np.float32) / 255.0
        base = self.data[dst_idx].astype(np.float32) / 255.0
        top_a = top[..., 3:4]
        base_a = base[..., 3:4]
        out_a = top_a + base_a * (1.0 - top_a)
        out_rgb = top[..., :3] * top_a + base[..., :3] * base_a * (1.0 - top_a)
        # Un-premultiply where anything is visible
        np.divide(out_rgb, out_a, out=out_rgb, where=out_a > 0)
        result = np.concatenate([out_rgb, out_a], axis=-1)
        self.data[dst_idx] = np.rint(result * 255.0).astype(np.uint8)

    def to_bytes(self) -> bytes:
        return self.data.tobytes()
