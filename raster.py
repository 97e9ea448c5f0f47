"""Pixel-exact rasterizers: Bresenham lines, sheared/affine ellipses,
brush marks and (possibly rotated) rectangles.

Every routine takes the target PixelBuffer per call and never keeps it.
Float inputs are converted with math.trunc (toward zero), never round().
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable

from affine import AffineTransform
from fill import flood_fill
from pixels import Color, ColorLike, PixelBuffer, resolve_color

logger = logging.getLogger(__name__)

GUIDE_COLOR = "#009dec"
ERASER_COLOR = "white"
# Brushes at or below this diameter are drawn as squares for pixel art
PIXEL_BRUSH_MAX = 5


def for_each_line_point(p1: tuple, p2: tuple, visit: Callable[[int, int], None]):
    """Call ``visit(x, y)`` for every pixel of the 8-connected Bresenham
    line from p1 to p2, both ends included, in order.

    The line is always stepped from the lesser endpoint so that swapping
    p1 and p2 gives the same pixels in reverse order.
    """
    start = (math.trunc(p1[0]), math.trunc(p1[1]))
    end = (math.trunc(p2[0]), math.trunc(p2[1]))
    if start <= end:
        points = _bresenham(start, end)
    else:
        points = _bresenham(end, start)
        points.reverse()
    for x, y in points:
        visit(x, y)


def _bresenham(start: tuple, end: tuple) -> list[tuple[int, int]]:
    x1, y1 = start
    x2, y2 = end
    dx = abs(x2 - x1)
    dy = abs(y2 - y1)
    sx = 1 if x1 < x2 else -1
    sy = 1 if y1 < y2 else -1
    err = dx - dy

    points = [(x1, y1)]
    while x1 != x2 or y1 != y2:
        e2 = err * 2
        if e2 > -dy:
            err -= dy
            x1 += sx
        if e2 < dx:
            err += dx
            y1 += sy
        points.append((x1, y1))
    return points


def solve_quadratic(a: float, b: float, c: float) -> tuple[float, float]:
    """Roots of a*x^2 + b*x + c = 0, larger first.  No validation: a
    negative discriminant gives (nan, nan)."""
    disc = b * b - 4 * a * c
    root = math.sqrt(disc) if disc >= 0 else math.nan
    soln1 = (-b + root) / 2 / a
    soln2 = (-b - root) / 2 / a
    return (soln1, soln2) if soln1 > soln2 else (soln2, soln1)


def _div(num: float, den: float) -> float:
    """IEEE division: x/0 is +-inf and 0/0 is nan instead of raising."""
    if den == 0:
        if num == 0 or math.isnan(num):
            return math.nan
        return math.copysign(math.inf, num) * math.copysign(1.0, den)
    return num / den


def _floor(value: float):
    return None if math.isnan(value) else math.floor(value)


@dataclass
class ShearedEllipse:
    center_x: float
    center_y: float
    radius_x: float
    radius_y: float
    shear_slope: float = 0.0
    filled: bool = True


def sheared_ellipse_coefficients(radius_x: float, radius_y: float,
                                 shear_slope: float) -> tuple[float, float, float]:
    """(A, B, C) of A*x^2 + B*x*y + C*y^2 = 1 for the sheared ellipse."""
    a = 1 / radius_x / radius_x + shear_slope * shear_slope / radius_y / radius_y
    b = -2 * shear_slope / radius_y / radius_y
    c = 1 / radius_y / radius_y
    return a, b, c


def critical_slopes(a: float, b: float, c: float) -> tuple[float, float]:
    """Slopes of the lines through the center that meet the ellipse where
    its derivative is +1 and -1 respectively."""
    slope1 = _div(-2 * a - b, 2 * c + b)
    slope2 = _div(-2 * a + b, -2 * c + b)
    return slope1, slope2


def steps_vertically_first(slope1: float, slope2: float) -> bool:
    # Equal slopes need B^2 == 4AC, which is not an ellipse; fall through
    # to horizontal-first like any other non-greater comparison.
    return slope1 > slope2


def draw_sheared_ellipse(ellipse: ShearedEllipse, buffer: PixelBuffer,
                         color: ColorLike) -> bool:
    """Rasterize ``ellipse`` into ``buffer``.

    Returns False without touching the buffer when any parameter is not
    finite or a radius is below one pixel, True otherwise.
    """
    if not all(map(math.isfinite, (ellipse.center_x, ellipse.center_y, ellipse.radius_x,
                                   ellipse.radius_y, ellipse.shear_slope))):
        logger.debug(f"Skipping non-finite ellipse {ellipse}")
        return False
    center_x = math.trunc(ellipse.center_x)
    center_y = math.trunc(ellipse.center_y)
    radius_x = math.trunc(abs(ellipse.radius_x)) - .5
    radius_y = math.trunc(abs(ellipse.radius_y)) - .5
    shear_slope = ellipse.shear_slope
    filled = ellipse.filled
    if radius_x < 1 or radius_y < 1:
        logger.debug(f"Skipping degenerate ellipse {ellipse}")
        return False
    rgba = resolve_color(color)

    A, B, C = sheared_ellipse_coefficients(radius_x, radius_y, shear_slope)
    slope1, slope2 = critical_slopes(A, B, C)

    def fill(x, y, w, h):
        buffer.fill_rect(x, y, w, h, rgba)

    def step_vertical(start_y, keep_going):
        """Walk y downward one row at a time, solving for x.  Returns the
        last drawn (x, y) pixel offset, or None for nothing/(0, 0)."""
        y = start_y
        x = solve_quadratic(A, B * y, C * y * y - 1)
        p_y = p_x1 = None
        while keep_going(x[0], y):
            p_y, p_x1, p_x2 = _floor(y), _floor(x[0]), _floor(x[1])
            if p_x1 is None or p_x2 is None:
                p_x1 = None
            elif filled:
                fill(center_x - p_x1 - 1, center_y + p_y, p_x1 - p_x2 + 1, 1)
                fill(center_x + p_x2, center_y - p_y - 1, p_x1 - p_x2 + 1, 1)
            else:
                fill(center_x - p_x1 - 1, center_y + p_y, 1, 1)
                fill(center_x + p_x1, center_y - p_y - 1, 1, 1)
            y -= 1
            x = solve_quadratic(A, B * y, C * y * y - 1)
        if p_x1 is None:
            return None
        return (p_x1, p_y) if p_x1 or p_y else None

    def step_horizontal(start_x, keep_going):
        """Walk x rightward one column at a time, solving for y."""
        x = start_x
        y = solve_quadratic(C, B * x, A * x * x - 1)
        p_x = p_y1 = None
        while keep_going(x, y[0]):
            p_x, p_y1, p_y2 = _floor(x), _floor(y[0]), _floor(y[1])
            if p_y1 is None or p_y2 is None:
                p_y1 = None
            elif filled:
                fill(center_x - p_x - 1, center_y + p_y2, 1, p_y1 - p_y2 + 1)
                fill(center_x + p_x, center_y - p_y1 - 1, 1, p_y1 - p_y2 + 1)
            else:
                fill(center_x - p_x - 1, center_y + p_y1, 1, 1)
                fill(center_x + p_x, center_y - p_y1 - 1, 1, 1)
            x += 1
            y = solve_quadratic(C, B * x, A * x * x - 1)
        if p_y1 is None:
            return None
        return (p_x, p_y1) if p_x or p_y1 else None

    def steep(x, y):
        if x == 0 and y > 0:
            return True
        if x == 0 and y < 0:
            return False
        return _div(y, x) > slope1

    def flat(x, y):
        return _div(y, x) > slope2

    if steps_vertically_first(slope1, slope2):
        forward_leaning = slope1 > 0
        last = step_vertical(-radius_y if forward_leaning else radius_y, steep)
        last_x, last_y = last or (0, 0)
        # Flat stretch; if it draws nothing, resume from the mirrored point
        last = step_horizontal(-last_x + .5, flat) or (-last_x - .5, -last_y - .5)
        end_y = -radius_y if forward_leaning else radius_y
        step_vertical(last[1] - .5, lambda x, y: y > end_y)
    else:
        last = step_horizontal(.5, flat)
        last = step_vertical(last[1] - .5 if last else radius_y, steep) or last
        last_x = last[0] if last else 0
        step_horizontal(-last_x + .5, lambda x, y: x < 0)
    return True


def draw_ellipse(position_x: float, position_y: float, radius_x: float,
                 radius_y: float, matrix: AffineTransform, filled: bool,
                 buffer: PixelBuffer, color: ColorLike) -> bool:
    """Draw an ellipse given its axis-aligned radii and an affine transform.

    Any transformed ellipse is some axis-aligned ellipse under a shear, so
    the implicit form is converted to sheared parameters and handed to
    draw_sheared_ellipse.  Returns False (buffer untouched) if the matrix is
    not invertible or the ellipse is degenerate.
    """
    if not matrix.is_invertible():
        logger.debug(f"Non-invertible ellipse transform {matrix}")
        return False
    if radius_x == 0 or radius_y == 0:
        return False
    inverse = matrix.invert()

    # A x^2 + B x y + C y^2 = 1 in canvas coordinates
    inv_a, inv_b, inv_c, inv_d = inverse.a, inverse.b, inverse.c, inverse.d
    A = inv_a * inv_a / radius_x / radius_x + inv_b * inv_b / radius_y / radius_y
    B = 2 * inv_a * inv_c / radius_x / radius_x + 2 * inv_b * inv_d / radius_y / radius_y
    C = inv_c * inv_c / radius_x / radius_x + inv_d * inv_d / radius_y / radius_y

    disc = B * B - 4 * A * C
    if C <= 0 or disc >= 0:
        return False
    radius_b = 1 / math.sqrt(C)
    radius_a = math.sqrt(-4 * C / disc)
    slope = B / 2 / C
    if not all(map(math.isfinite, (radius_a, radius_b, slope))):
        logger.debug(f"Ellipse transform {matrix} overflows to a non-finite shape")
        return False

    return draw_sheared_ellipse(ShearedEllipse(
        center_x=position_x,
        center_y=position_y,
        radius_x=radius_a,
        radius_y=radius_b,
        shear_slope=slope,
        filled=filled,
    ), buffer, color)


def get_brush_mark(size: float, color: ColorLike, is_eraser: bool = False) -> PixelBuffer:
    """Stamp image for a round brush of diameter ``size``.

    Small brushes become squares so single pixels can be placed exactly.
    Eraser marks are white with a guide-colored outline so they show up
    as a cursor.
    """
    size = math.trunc(size)
    rounded_up_radius = math.ceil(size / 2)
    side = max(0, rounded_up_radius * 2)
    mark = PixelBuffer(side, side)
    fill_color = resolve_color(ERASER_COLOR if is_eraser else color)

    if size <= PIXEL_BRUSH_MAX:
        offset = 1 if size % 2 else 0
        if is_eraser:
            mark.fill_rect(offset, offset, size, size, resolve_color(GUIDE_COLOR))
            mark.fill_rect(offset + 1, offset + 1, size - 2, size - 2, fill_color)
        else:
            mark.fill_rect(offset, offset, size, size, fill_color)
        return mark

    half = size / 2
    draw_sheared_ellipse(ShearedEllipse(half, half, half, half, 0, filled=True),
                         mark, fill_color)
    if is_eraser:
        draw_sheared_ellipse(ShearedEllipse(half, half, half, half, 0, filled=False),
                             mark, GUIDE_COLOR)
    return mark


@dataclass
class RectSpec:
    """Rectangle of ``width`` x ``height`` centered on the origin, placed on
    the canvas by ``matrix``."""
    width: float
    height: float
    matrix: AffineTransform


def draw_rect(rect: RectSpec, buffer: PixelBuffer, color: ColorLike):
    rgba = resolve_color(color)
    matrix = rect.matrix
    # No rotation or shear: one block fill
    if matrix.b == 0 and matrix.c == 0:
        width = rect.width * matrix.a
        height = rect.height * matrix.d
        buffer.fill_rect(
            math.trunc(matrix.tx - width / 2),
            math.trunc(matrix.ty - height / 2),
            math.trunc(width),
            math.trunc(height),
            rgba)
        return

    half_w, half_h = rect.width / 2, rect.height / 2
    start_point = matrix.transform((-half_w, -half_h))
    width_point = matrix.transform((half_w, -half_h))
    height_point = matrix.transform((-half_w, half_h))
    end_point = matrix.transform((half_w, half_h))
    center = matrix.transform((0, 0))

    def plot(x, y):
        buffer.fill_rect(x, y, 1, 1, rgba)

    for_each_line_point(start_point, width_point, plot)
    for_each_line_point(start_point, height_point, plot)
    for_each_line_point(end_point, width_point, plot)
    for_each_line_point(end_point, height_point, plot)
    flood_fill(math.trunc(center[0]), math.trunc(center[1]), rgba, buffer)
