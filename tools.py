"""MCP tool definitions. Pushes drawing commands onto a thread-safe queue."""

import json
import queue
import threading
from typing import Optional
from mcp.server.fastmcp import FastMCP

from pixels import resolve_color


def clamp(value: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, value))


def create_mcp_server(command_queue: queue.Queue, width: int = 800, height: int = 600) -> FastMCP:
    mcp = FastMCP("bitmap-mcp")

    # Local state mirror so get_canvas_info can respond without touching the canvas
    _color = [0, 0, 0, 255]
    _brush_size = [3]
    _eraser = [False]

    @mcp.tool()
    def get_canvas_info() -> str:
        """Get canvas dimensions and current drawing settings."""
        return (
            f"Canvas: {width}x{height}, "
            f"color: rgba({_color[0]}, {_color[1]}, {_color[2]}, {_color[3]}), "
            f"brush_size: {_brush_size[0]}, "
            f"eraser: {'on' if _eraser[0] else 'off'}"
        )

    @mcp.tool()
    def set_color(r: int, g: int, b: int, a: int = 255) -> str:
        """Set the drawing color (RGBA, each 0-255)."""
        r, g, b, a = clamp(r, 0, 255), clamp(g, 0, 255), clamp(b, 0, 255), clamp(a, 0, 255)
        _color[:] = [r, g, b, a]
        command_queue.put({"action": "set_color", "r": r, "g": g, "b": b, "a": a})
        return f"Color set to rgba({r}, {g}, {b}, {a})"

    @mcp.tool()
    def set_color_style(style: str) -> str:
        """Set the drawing color from a style string such as "#ff0000" or "navy"."""
        try:
            rgba = resolve_color(style)
        except ValueError:
            return f"Unknown color: {style}"
        _color[:] = list(rgba)
        command_queue.put({"action": "set_color", "style": style})
        return f"Color set to rgba{rgba}"

    @mcp.tool()
    def set_brush_size(size: int) -> str:
        """Set the brush diameter (1-100 pixels). Sizes up to 5 draw square pixels."""
        size = clamp(size, 1, 100)
        _brush_size[0] = size
        command_queue.put({"action": "set_brush_size", "size": size})
        return f"Brush size set to {size}"

    @mcp.tool()
    def set_eraser(enabled: bool) -> str:
        """Switch the brush between painting and erasing to transparent."""
        _eraser[0] = enabled
        command_queue.put({"action": "set_eraser", "enabled": enabled})
        return f"Eraser {'enabled' if enabled else 'disabled'}"

    @mcp.tool()
    def draw_point(x: int, y: int) -> str:
        """Stamp the brush once, centered at (x, y)."""
        command_queue.put({"action": "draw_point", "x": x, "y": y})
        return f"Drew point at ({x}, {y})"

    @mcp.tool()
    def draw_line(x1: int, y1: int, x2: int, y2: int) -> str:
        """Draw a pixel-exact line from (x1, y1) to (x2, y2) with the brush."""
        command_queue.put({"action": "draw_line", "x1": x1, "y1": y1, "x2": x2, "y2": y2})
        return f"Drew line from ({x1}, {y1}) to ({x2}, {y2})"

    @mcp.tool()
    def draw_rect(x: int, y: int, width: int, height: int, rotation: float = 0.0,
                  filled: bool = True) -> str:
        """Draw a rectangle. (x, y) is the top-left corner before rotation;
        rotation is in degrees about the rectangle's center."""
        command_queue.put({
            "action": "draw_rect",
            "x": x, "y": y, "width": width, "height": height,
            "rotation": rotation, "filled": filled,
        })
        mode = "filled" if filled else "outline"
        return f"Drew {mode} rectangle at ({x}, {y}) size {width}x{height}"

    @mcp.tool()
    def draw_ellipse(x: int, y: int, radius_x: float, radius_y: float,
                     rotation: float = 0.0, filled: bool = True) -> str:
        """Draw an ellipse centered at (x, y), rotated by `rotation` degrees."""
        command_queue.put({
            "action": "draw_ellipse",
            "x": x, "y": y, "radius_x": radius_x, "radius_y": radius_y,
            "rotation": rotation, "filled": filled,
        })
        mode = "filled" if filled else "outline"
        return f"Drew {mode} ellipse at ({x}, {y}) radii {radius_x}x{radius_y}"

    @mcp.tool()
    def flood_fill(x: int, y: int, all_matching: bool = False) -> str:
        """Bucket-fill the area at (x, y) with the current color.

        With all_matching=True every pixel of the clicked color is replaced,
        whether or not it touches (x, y)."""
        command_queue.put({"action": "flood_fill", "x": x, "y": y, "all": all_matching})
        return f"Flood filled at ({x}, {y})"

    @mcp.tool()
    def clear_canvas() -> str:
        """Clear the entire canvas to transparent."""
        command_queue.put({"action": "clear"})
        return "Canvas cleared"

    def _request_response(cmd: dict, timeout: float = 5.0):
        """Send a command to the main thread and wait for a response."""
        event = threading.Event()
        result: dict = {}
        cmd["_event"] = event
        cmd["_result"] = result
        command_queue.put(cmd)
        if not event.wait(timeout):
            raise TimeoutError("Main thread did not respond in time")
        if "error" in result:
            raise RuntimeError(result["error"])
        return result["data"]

    @mcp.tool()
    def get_hit_bounds() -> str:
        """Return the smallest rectangle holding every non-transparent pixel,
        as JSON {left, top, width, height}. Zero width or height means empty."""
        bounds = _request_response({"action": "get_hit_bounds"})
        return json.dumps(bounds._asdict())

    @mcp.tool()
    def get_canvas_pixels(x: Optional[int] = None, y: Optional[int] = None,
                          width: Optional[int] = None, height: Optional[int] = None) -> str:
        """Return RGBA pixel data from the canvas as a JSON 2D array of [r,g,b,a] values (row-major).

        All parameters are optional. Omit them to get the full canvas, which is very large.
        For efficiency, request a small region instead, e.g. x=100, y=100, width=50, height=50."""
        cmd: dict = {"action": "get_pixels"}
        if x is not None:
            cmd["x"] = x
        if y is not None:
            cmd["y"] = y
        if width is not None:
            cmd["w"] = width
        if height is not None:
            cmd["h"] = height
        pixels = _request_response(cmd)
        return json.dumps(pixels)

    @mcp.tool()
    def save_canvas(file_path: str) -> str:
        """Save the current canvas to a PNG file at the given path."""
        result = _request_response({"action": "save_file", "path": file_path})
        return result

    return mcp
