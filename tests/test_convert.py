"""Tests for hit bounds, trimming and the raster/vector hand-off."""

from __future__ import annotations

from concurrent.futures import Future

import numpy as np
import pytest

from convert import convert_to_bitmap, convert_to_vector, get_hit_bounds, trim
from pixels import BoundingRect, PixelBuffer

RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)


class UpdateCounter:
    def __init__(self) -> None:
        self.calls = 0

    def __call__(self) -> None:
        self.calls += 1


# ---------------------------------------------------------------------------
# Hit bounds
# ---------------------------------------------------------------------------


class TestGetHitBounds:
    def test_transparent_buffer_is_empty(self) -> None:
        bounds = get_hit_bounds(PixelBuffer(8, 6))
        assert bounds.width == 0 or bounds.height == 0
        assert bounds.is_empty

    def test_single_pixel(self) -> None:
        buffer = PixelBuffer(10, 10)
        buffer.set_pixel(3, 4, RED)
        assert get_hit_bounds(buffer) == BoundingRect(3, 4, 1, 1)

    def test_two_pixels_span_the_box(self) -> None:
        buffer = PixelBuffer(10, 10)
        buffer.set_pixel(1, 2, RED)
        buffer.set_pixel(7, 5, RED)
        assert get_hit_bounds(buffer) == BoundingRect(1, 2, 7, 4)

    def test_only_alpha_counts(self) -> None:
        buffer = PixelBuffer(10, 10)
        buffer.fill_rect(0, 0, 10, 10, (255, 255, 255, 0))
        buffer.set_pixel(9, 9, (0, 0, 0, 1))
        assert get_hit_bounds(buffer) == BoundingRect(9, 9, 1, 1)

    def test_fully_opaque_buffer(self) -> None:
        buffer = PixelBuffer(5, 3)
        buffer.fill_rect(0, 0, 5, 3, RED)
        assert get_hit_bounds(buffer) == BoundingRect(0, 0, 5, 3)

    def test_pixel_in_last_row_and_column(self) -> None:
        buffer = PixelBuffer(4, 4)
        buffer.set_pixel(3, 3, RED)
        assert get_hit_bounds(buffer) == BoundingRect(3, 3, 1, 1)

    def test_empty_buffer_has_zero_area(self) -> None:
        assert get_hit_bounds(PixelBuffer(0, 0)).is_empty


# ---------------------------------------------------------------------------
# Trimming
# ---------------------------------------------------------------------------


class TestTrim:
    def test_transparent_buffer_trims_to_nothing(self) -> None:
        assert trim(PixelBuffer(4, 4)) is None

    def test_trim_copies_the_opaque_part(self) -> None:
        buffer = PixelBuffer(10, 10)
        buffer.fill_rect(2, 3, 4, 2, RED)
        buffer.set_pixel(5, 6, BLUE)
        piece, bounds = trim(buffer)
        assert bounds == BoundingRect(2, 3, 4, 4)
        assert (piece.width, piece.height) == (4, 4)
        assert piece.get_pixel(0, 0) == RED
        assert piece.get_pixel(3, 3) == BLUE
        assert piece.get_pixel(0, 3) == (0, 0, 0, 0)

    def test_trim_does_not_alias_source(self) -> None:
        buffer = PixelBuffer(4, 4)
        buffer.fill_rect(1, 1, 2, 2, RED)
        piece, _ = trim(buffer)
        piece.set_pixel(0, 0, BLUE)
        assert buffer.get_pixel(1, 1) == RED


# ---------------------------------------------------------------------------
# Raster <-> vector
# ---------------------------------------------------------------------------


class TestConvertToVector:
    def test_lifts_drawing_and_clears_raster(self) -> None:
        raster = PixelBuffer(10, 10)
        raster.fill_rect(4, 4, 2, 3, RED)
        on_update = UpdateCounter()

        piece, bounds = convert_to_vector(raster, on_update)

        assert bounds == BoundingRect(4, 4, 2, 3)
        assert piece.get_pixel(1, 2) == RED
        assert not raster.data.any()
        assert on_update.calls == 1

    def test_empty_raster_returns_none_and_still_updates(self) -> None:
        on_update = UpdateCounter()
        assert convert_to_vector(PixelBuffer(3, 3), on_update) is None
        assert on_update.calls == 1


class TestConvertToBitmap:
    def test_waits_for_decode_then_draws_at_floored_origin(self) -> None:
        raster = PixelBuffer(10, 10)
        pending: Future = Future()
        on_update = UpdateCounter()

        convert_to_bitmap(pending, raster, (2.7, -0.5), on_update)
        assert on_update.calls == 0
        assert not raster.data.any()

        decoded = PixelBuffer(2, 2)
        decoded.fill_rect(0, 0, 2, 2, RED)
        pending.set_result(decoded)

        assert on_update.calls == 1
        assert raster.get_pixel(2, 0) == RED
        assert raster.get_pixel(3, 0) == RED
        assert raster.get_pixel(2, 1) == (0, 0, 0, 0)

    def test_decoded_image_composites_over_raster(self) -> None:
        raster = PixelBuffer(4, 4)
        raster.fill_rect(0, 0, 4, 4, BLUE)
        decoded = PixelBuffer(4, 4)
        decoded.set_pixel(1, 1, RED)
        pending: Future = Future()
        pending.set_result(decoded)

        convert_to_bitmap(pending, raster, (0, 0), UpdateCounter())

        assert raster.get_pixel(1, 1) == RED
        assert raster.get_pixel(0, 0) == BLUE

    def test_failed_decode_leaves_raster_and_updates(self, caplog) -> None:
        raster = PixelBuffer(4, 4)
        raster.set_pixel(0, 0, BLUE)
        before = raster.data.copy()
        pending: Future = Future()
        on_update = UpdateCounter()

        convert_to_bitmap(pending, raster, (0, 0), on_update)
        pending.set_exception(RuntimeError("bad svg"))

        np.testing.assert_array_equal(raster.data, before)
        assert on_update.calls == 1
        assert "Vector decode failed" in caplog.text

    @pytest.mark.parametrize("size", [(0, 0), (0, 5)])
    def test_empty_decode_draws_nothing(self, size) -> None:
        raster = PixelBuffer(4, 4)
        pending: Future = Future()
        pending.set_result(PixelBuffer(*size))
        on_update = UpdateCounter()

        convert_to_bitmap(pending, raster, (0, 0), on_update)

        assert not raster.data.any()
        assert on_update.calls == 1
