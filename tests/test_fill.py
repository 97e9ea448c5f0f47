"""Tests for scoped and global flood fill."""

from __future__ import annotations

from collections import deque

import numpy as np
import pytest

from fill import flood_fill, flood_fill_all
from pixels import PixelBuffer

RED = (255, 0, 0, 255)
WHITE = (255, 255, 255, 255)
BLACK = (0, 0, 0, 255)


def ringed_buffer() -> PixelBuffer:
    """White 12x12 buffer with a black square ring splitting inside from outside."""
    buffer = PixelBuffer(12, 12)
    buffer.fill_rect(0, 0, 12, 12, WHITE)
    buffer.fill_rect(2, 2, 8, 8, BLACK)
    buffer.fill_rect(3, 3, 6, 6, WHITE)
    return buffer


def reference_fill(mask: np.ndarray, x: int, y: int) -> np.ndarray:
    """Plain 4-connected BFS over a boolean mask of matching pixels."""
    height, width = mask.shape
    seen = np.zeros_like(mask)
    queue = deque([(x, y)])
    seen[y, x] = True
    while queue:
        cx, cy = queue.popleft()
        for nx, ny in ((cx + 1, cy), (cx - 1, cy), (cx, cy + 1), (cx, cy - 1)):
            if 0 <= nx < width and 0 <= ny < height and mask[ny, nx] and not seen[ny, nx]:
                seen[ny, nx] = True
                queue.append((nx, ny))
    return seen


# ---------------------------------------------------------------------------
# Scoped fill
# ---------------------------------------------------------------------------


class TestFloodFill:
    def test_fills_transparent_buffer(self) -> None:
        buffer = PixelBuffer(10, 10)
        assert flood_fill(5, 5, "#ff0000", buffer)
        assert (buffer.data == np.array(RED, dtype=np.uint8)).all()

    def test_same_color_is_noop(self) -> None:
        buffer = ringed_buffer()
        before = buffer.data.copy()
        assert not flood_fill(5, 5, WHITE, buffer)
        np.testing.assert_array_equal(buffer.data, before)

    def test_only_connected_region_changes(self) -> None:
        buffer = ringed_buffer()
        assert flood_fill(5, 5, RED, buffer)
        assert buffer.get_pixel(5, 5) == RED
        assert buffer.get_pixel(3, 8) == RED
        assert buffer.get_pixel(2, 2) == BLACK
        assert buffer.get_pixel(0, 0) == WHITE
        assert buffer.get_pixel(11, 11) == WHITE

    def test_does_not_leak_through_diagonal_wall(self) -> None:
        buffer = PixelBuffer(6, 6)
        for i in range(6):
            buffer.set_pixel(i, i, BLACK)
        flood_fill(5, 0, RED, buffer)
        assert buffer.get_pixel(4, 1) == RED
        assert buffer.get_pixel(1, 4) == (0, 0, 0, 0)
        assert buffer.get_pixel(3, 3) == BLACK

    def test_alpha_channel_is_part_of_the_match(self) -> None:
        buffer = PixelBuffer(4, 1)
        buffer.set_pixel(2, 0, (0, 0, 0, 1))
        flood_fill(0, 0, RED, buffer)
        assert buffer.get_pixel(1, 0) == RED
        assert buffer.get_pixel(2, 0) == (0, 0, 0, 1)
        assert buffer.get_pixel(3, 0) == (0, 0, 0, 0)

    def test_float_seed_is_truncated(self) -> None:
        buffer = ringed_buffer()
        assert flood_fill(5.9, 5.99, RED, buffer)
        assert buffer.get_pixel(5, 5) == RED
        assert buffer.get_pixel(0, 0) == WHITE

    @pytest.mark.parametrize("x,y", [(-1, 0), (0, -1), (12, 3), (3, 12)])
    def test_seed_outside_buffer_is_noop(self, x, y) -> None:
        buffer = ringed_buffer()
        before = buffer.data.copy()
        assert not flood_fill(x, y, RED, buffer)
        np.testing.assert_array_equal(buffer.data, before)

    @pytest.mark.parametrize("seed", [0, 1, 2, 3])
    def test_matches_reference_on_random_walls(self, seed) -> None:
        rng = np.random.default_rng(seed)
        walls = rng.random((24, 31)) < 0.35
        buffer = PixelBuffer(31, 24)
        buffer.data[walls] = BLACK
        start_y, start_x = np.argwhere(~walls)[0]

        expected = reference_fill(~walls, int(start_x), int(start_y))
        flood_fill(int(start_x), int(start_y), RED, buffer)

        filled = (buffer.data == np.array(RED, dtype=np.uint8)).all(axis=-1)
        np.testing.assert_array_equal(filled, expected)

    def test_fills_winding_corridor(self) -> None:
        # Comb of walls forces the fill to turn back on itself repeatedly
        buffer = PixelBuffer(9, 9)
        for col in (1, 5):
            buffer.fill_rect(col, 0, 1, 8, BLACK)
        for col in (3, 7):
            buffer.fill_rect(col, 1, 1, 8, BLACK)
        assert flood_fill(0, 0, RED, buffer)
        for x, y in [(0, 8), (2, 0), (4, 8), (6, 0), (8, 8)]:
            assert buffer.get_pixel(x, y) == RED


# ---------------------------------------------------------------------------
# Global fill
# ---------------------------------------------------------------------------


class TestFloodFillAll:
    def test_recolors_every_transparent_pixel(self) -> None:
        buffer = PixelBuffer(10, 10)
        assert flood_fill_all(5, 5, "#ff0000", buffer)
        assert (buffer.data == np.array(RED, dtype=np.uint8)).all()

    def test_recolors_disconnected_regions(self) -> None:
        buffer = ringed_buffer()
        assert flood_fill_all(5, 5, RED, buffer)
        assert buffer.get_pixel(5, 5) == RED
        assert buffer.get_pixel(0, 0) == RED
        assert buffer.get_pixel(11, 11) == RED
        assert buffer.get_pixel(2, 2) == BLACK

    def test_same_color_is_noop(self) -> None:
        buffer = ringed_buffer()
        before = buffer.data.copy()
        assert not flood_fill_all(2, 2, BLACK, buffer)
        np.testing.assert_array_equal(buffer.data, before)

    def test_seed_outside_buffer_is_noop(self) -> None:
        buffer = PixelBuffer(3, 3)
        assert not flood_fill_all(3, 0, RED, buffer)
        assert not buffer.data.any()
