"""Drawing engine: RGBA PixelBuffer wrapper with bitmap paint-tool commands."""

import logging
from concurrent.futures import Future
from typing import Callable

import pygame
from dataclasses import dataclass

from affine import AffineTransform
from convert import convert_to_bitmap, convert_to_vector, get_hit_bounds
from fill import flood_fill, flood_fill_all
from pixels import BoundingRect, PixelBuffer, resolve_color
from raster import RectSpec, draw_ellipse, draw_rect, for_each_line_point, get_brush_mark

logger = logging.getLogger(__name__)

MAX_BRUSH_SIZE = 100


@dataclass
class DrawState:
    color: tuple = (0, 0, 0, 255)
    brush_size: int = 3
    background_color: tuple = (255, 255, 255)
    eraser: bool = False


class Canvas:
    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        self.state = DrawState()
        self.buffer = PixelBuffer(width, height)
        self.display_surface = pygame.Surface((width, height))

    def execute(self, cmd: dict):
        action = cmd.get("action")
        method = getattr(self, f"_do_{action}", None)
        if method is None:
            raise ValueError(f"Unknown action: {action}")
        method(cmd)

    # --- State operations ---

    def _do_set_color(self, cmd: dict):
        if "style" in cmd:
            self.state.color = resolve_color(cmd["style"])
        else:
            self.state.color = resolve_color(
                (cmd["r"], cmd["g"], cmd["b"], cmd.get("a", 255)))

    def _do_set_brush_size(self, cmd: dict):
        self.state.brush_size = max(1, min(MAX_BRUSH_SIZE, int(cmd["size"])))

    def _do_set_eraser(self, cmd: dict):
        self.state.eraser = bool(cmd["enabled"])

    # --- Brush helpers ---

    def _stamp(self, mark: PixelBuffer, x: int, y: int):
        """Put a brush mark centered on (x, y)."""
        offset = mark.width // 2
        if self.state.eraser:
            # Erasing clears wherever the mark is opaque
            region = self.buffer.get_region(x - offset, y - offset, mark.width, mark.height)
            region.data[mark.data[:, :, 3] > 0] = 0
            self.buffer.put_region(region, x - offset, y - offset)
        else:
            self.buffer.draw_image(mark, x - offset, y - offset)

    def _brush_line(self, p1: tuple, p2: tuple):
        mark = get_brush_mark(self.state.brush_size, self.state.color)
        for_each_line_point(p1, p2, lambda x, y: self._stamp(mark, x, y))

    # --- Drawing operations ---

    def _do_draw_point(self, cmd: dict):
        mark = get_brush_mark(self.state.brush_size, self.state.color)
        self._stamp(mark, int(cmd["x"]), int(cmd["y"]))

    def _do_draw_line(self, cmd: dict):
        self._brush_line((cmd["x1"], cmd["y1"]), (cmd["x2"], cmd["y2"]))

    def _do_draw_rect(self, cmd: dict):
        """(x, y) is the top-left corner of the unrotated rectangle; rotation
        (degrees) turns it about its center."""
        w, h = cmd["width"], cmd["height"]
        cx, cy = cmd["x"] + w / 2, cmd["y"] + h / 2
        rotation = cmd.get("rotation", 0)
        matrix = AffineTransform.translation(cx, cy).multiply(
            AffineTransform.rotation(rotation))
        if cmd.get("filled", True):
            draw_rect(RectSpec(w, h, matrix), self.buffer, self.state.color)
            return
        corners = [matrix.transform(p) for p in
                   ((-w / 2, -h / 2), (w / 2, -h / 2), (w / 2, h / 2), (-w / 2, h / 2))]
        for i in range(4):
            self._brush_line(corners[i], corners[(i + 1) % 4])

    def _do_draw_ellipse(self, cmd: dict):
        """(x, y) is the center; rotation (degrees) turns the ellipse about it."""
        cx, cy = cmd["x"], cmd["y"]
        matrix = AffineTransform.rotation(cmd.get("rotation", 0), center=(cx, cy))
        drew = draw_ellipse(cx, cy, cmd["radius_x"], cmd["radius_y"], matrix,
                            cmd.get("filled", True), self.buffer, self.state.color)
        if not drew:
            logger.info(f"Ellipse at ({cx}, {cy}) too small to draw")

    def _do_flood_fill(self, cmd: dict):
        fill = flood_fill_all if cmd.get("all", False) else flood_fill
        fill(cmd["x"], cmd["y"], self.state.color, self.buffer)

    def _do_clear(self, cmd: dict):
        self.buffer.clear()

    # --- Raster/vector hand-off ---

    def to_vector(self, on_update: Callable[[], None]):
        """Lift the drawing out of the canvas; see convert.convert_to_vector."""
        return convert_to_vector(self.buffer, on_update)

    def from_vector(self, pending: Future, top_left: tuple,
                    on_update: Callable[[], None]):
        """Composite a decoded vector layer once ``pending`` resolves."""
        convert_to_bitmap(pending, self.buffer, top_left, on_update)

    # --- Read-only operations ---

    def hit_bounds(self) -> BoundingRect:
        return get_hit_bounds(self.buffer)

    def get_image_surface(self) -> pygame.Surface:
        """The buffer as a per-pixel-alpha surface (what gets saved)."""
        return pygame.image.frombuffer(self.buffer.to_bytes(),
                                       (self.width, self.height), "RGBA")

    def get_display_surface(self) -> pygame.Surface:
        """The buffer composited over the background colour."""
        self.display_surface.fill(self.state.background_color)
        self.display_surface.blit(self.get_image_surface(), (0, 0))
        return self.display_surface

    def get_pixels_rgba(self, x: int = 0, y: int = 0,
                        w: int | None = None, h: int | None = None) -> list[list[list[int]]]:
        """Return a 2D list of [r, g, b, a] values (row-major) for the given region."""
        if w is None:
            w = self.width - x
        if h is None:
            h = self.height - y
        # Clamp to canvas bounds
        x = max(0, min(x, self.width - 1))
        y = max(0, min(y, self.height - 1))
        w = max(0, min(w, self.width - x))
        h = max(0, min(h, self.height - y))
        return self.buffer.data[y:y + h, x:x + w].tolist()
