"""Entry point: MCP stdio server on a daemon thread, pygame viewer on the main thread."""

import os
# pygame prints a banner to stdout on import, and stdout is the MCP stream
os.environ["PYGAME_HIDE_SUPPORT_PROMPT"] = "1"

import logging
import sys
import queue
import threading

import pygame
from canvas import Canvas
from raster import GUIDE_COLOR
from tools import create_mcp_server

logger = logging.getLogger(__name__)

WIDTH = int(os.environ.get("BITMAP_MCP_WIDTH", 480))
HEIGHT = int(os.environ.get("BITMAP_MCP_HEIGHT", 360))
LOG_LEVEL = os.environ.get("BITMAP_MCP_LOG_LEVEL", "INFO")
TOOLBAR_H = 40
FPS = 30

TB_BG = (220, 220, 220)
TB_BTN = (180, 180, 180)
TB_BTN_HOVER = (160, 160, 160)
TB_BTN_ACTIVE = (140, 170, 200)
TB_TEXT = (30, 30, 30)


def setup_logging(level: str = LOG_LEVEL):
    logging.basicConfig(
        level=level.upper(),
        stream=sys.stderr,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def run_mcp_server(mcp_server):
    mcp_server.run(transport="stdio")


# --- Request/response commands (MCP thread waits on cmd["_event"]) ---

def _request_pixels(cmd: dict, canvas: Canvas):
    return canvas.get_pixels_rgba(cmd.get("x", 0), cmd.get("y", 0),
                                  cmd.get("w"), cmd.get("h"))


def _request_hit_bounds(cmd: dict, canvas: Canvas):
    return canvas.hit_bounds()


def _request_save(cmd: dict, canvas: Canvas):
    path = cmd["path"]
    pygame.image.save(canvas.get_image_surface(), path)
    logger.info(f"Canvas saved to {path}")
    return f"Canvas saved to {path}"


REQUESTS = {
    "get_pixels": _request_pixels,
    "get_hit_bounds": _request_hit_bounds,
    "save_file": _request_save,
}


def _handle_request(cmd: dict, canvas: Canvas):
    result: dict = cmd["_result"]
    action = cmd.get("action")
    handler = REQUESTS.get(action)
    try:
        if handler is None:
            result["error"] = f"Unknown request action: {action}"
        else:
            result["data"] = handler(cmd, canvas)
    except Exception as e:
        logger.exception(f"Request {action} failed")
        result["error"] = str(e)
    finally:
        cmd["_event"].set()


def drain_commands(command_queue: queue.Queue, canvas: Canvas) -> int:
    """Run every queued command against the canvas without blocking.

    Returns the number of commands taken off the queue. A failing drawing
    command is logged and skipped; the rest still run.
    """
    count = 0
    while True:
        try:
            cmd = command_queue.get_nowait()
        except queue.Empty:
            return count
        count += 1
        if "_event" in cmd:
            _handle_request(cmd, canvas)
            continue
        try:
            canvas.execute(cmd)
        except Exception:
            logger.exception(f"Command error: {cmd.get('action')}")


# --- Viewer ---

class Viewer:
    """Window showing the canvas under a toolbar.

    The toolbar has a Save button, a toggle that outlines the drawing's hit
    bounds, and a readout of the current colour, brush size and eraser mode.
    """

    def __init__(self, canvas: Canvas):
        self.canvas = canvas
        self.screen = pygame.display.set_mode((canvas.width, canvas.height + TOOLBAR_H))
        pygame.display.set_caption("Bitmap MCP")
        self.font = pygame.font.SysFont(None, 24)
        self.save_btn = pygame.Rect(10, 8, 70, 26)
        self.bounds_btn = pygame.Rect(90, 8, 80, 26)
        self.show_bounds = False
        self.guide = pygame.Color(GUIDE_COLOR)

    def handle_click(self, pos):
        if self.save_btn.collidepoint(pos):
            _save_dialog_and_write(self.canvas.get_image_surface())
        elif self.bounds_btn.collidepoint(pos):
            self.show_bounds = not self.show_bounds

    def _button(self, rect: pygame.Rect, text: str, mouse_pos, active=False):
        if active:
            fill = TB_BTN_ACTIVE
        else:
            fill = TB_BTN_HOVER if rect.collidepoint(mouse_pos) else TB_BTN
        pygame.draw.rect(self.screen, fill, rect, border_radius=4)
        pygame.draw.rect(self.screen, TB_TEXT, rect, width=1, border_radius=4)
        label = self.font.render(text, True, TB_TEXT)
        self.screen.blit(label, label.get_rect(center=rect.center))

    def _draw_toolbar(self, mouse_pos):
        state = self.canvas.state
        pygame.draw.rect(self.screen, TB_BG, (0, 0, self.canvas.width, TOOLBAR_H))
        self._button(self.save_btn, "Save", mouse_pos)
        self._button(self.bounds_btn, "Bounds", mouse_pos, active=self.show_bounds)

        swatch = pygame.Rect(185, 10, 22, 22)
        pygame.draw.rect(self.screen, state.background_color, swatch)
        pygame.draw.rect(self.screen, state.color[:3], swatch.inflate(-4, -4))
        pygame.draw.rect(self.screen, TB_TEXT, swatch, width=1)

        info = f"{state.brush_size}px"
        if state.eraser:
            info += "  eraser"
        label = self.font.render(info, True, TB_TEXT)
        self.screen.blit(label, label.get_rect(midleft=(swatch.right + 10, swatch.centery)))

    def render(self):
        self._draw_toolbar(pygame.mouse.get_pos())
        self.screen.blit(self.canvas.get_display_surface(), (0, TOOLBAR_H))
        if self.show_bounds:
            bounds = self.canvas.hit_bounds()
            if not bounds.is_empty:
                outline = pygame.Rect(bounds.left, bounds.top + TOOLBAR_H,
                                      bounds.width, bounds.height)
                pygame.draw.rect(self.screen, self.guide, outline, width=1)
        pygame.display.flip()


def _save_dialog_and_write(surface: pygame.Surface):
    """Ask for a path with a Tk save dialog and write the PNG there."""
    import tkinter as tk
    from tkinter import filedialog
    root = tk.Tk()
    root.withdraw()
    path = filedialog.asksaveasfilename(
        defaultextension=".png",
        filetypes=[("PNG image", "*.png"), ("All files", "*.*")],
        title="Save canvas as…",
    )
    root.destroy()
    if path:
        pygame.image.save(surface, path)
        logger.info(f"Canvas saved to {path}")


def main():
    setup_logging()

    command_queue = queue.Queue()
    mcp_server = create_mcp_server(command_queue, WIDTH, HEIGHT)
    threading.Thread(target=run_mcp_server, args=(mcp_server,), daemon=True).start()

    # pygame must stay on the main thread
    pygame.init()
    canvas = Canvas(WIDTH, HEIGHT)
    viewer = Viewer(canvas)
    clock = pygame.time.Clock()
    logger.info(f"Canvas ready: {WIDTH}x{HEIGHT}")

    running = True
    while running:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                viewer.handle_click(event.pos)

        processed = drain_commands(command_queue, canvas)
        if processed:
            logger.debug(f"Applied {processed} queued commands")

        viewer.render()
        clock.tick(FPS)

    pygame.quit()


if __name__ == "__main__":
    main()
