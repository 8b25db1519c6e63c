"""Colour and depth grids for one rendered frame."""

from __future__ import annotations

from typing import List, Optional, Tuple

from .errors import RenderInvariantViolation

RGB8 = Tuple[int, int, int]

FAR = float("inf")


class FrameBuffer:
    """Fixed-size RGB colour grid with a parallel depth grid.

    Depth starts at ``inf`` ("infinitely far") after every :meth:`clear`.
    Writes outside the grid are programming errors and raise
    :class:`RenderInvariantViolation` rather than being clamped.
    """

    def __init__(self, width: int, height: int, background: RGB8 = (0, 0, 0)) -> None:
        if not isinstance(width, int) or not isinstance(height, int) or width <= 0 or height <= 0:
            raise RenderInvariantViolation(f"Frame buffer needs a positive size, got {width}x{height}")
        self.width = width
        self.height = height
        self.background: RGB8 = _check_rgb8(background)
        self._color: List[List[RGB8]] = []
        self._depth: List[List[float]] = []
        self.clear()

    def clear(self, background: Optional[RGB8] = None) -> None:
        if background is not None:
            self.background = _check_rgb8(background)
        self._color = [[self.background] * self.width for _ in range(self.height)]
        self._depth = [[FAR] * self.width for _ in range(self.height)]

    def write(self, x: int, y: int, color: RGB8, depth: float) -> None:
        self._check_bounds(x, y)
        self._color[y][x] = color
        self._depth[y][x] = depth

    def depth_at(self, x: int, y: int) -> float:
        self._check_bounds(x, y)
        return self._depth[y][x]

    def color_at(self, x: int, y: int) -> RGB8:
        self._check_bounds(x, y)
        return self._color[y][x]

    def is_background(self, x: int, y: int) -> bool:
        return self.depth_at(x, y) == FAR

    def coverage(self) -> int:
        return sum(1 for row in self._depth for depth in row if depth != FAR)

    def rows(self) -> Tuple[Tuple[RGB8, ...], ...]:
        """Read-only snapshot of the colour grid, top row first."""
        return tuple(tuple(row) for row in self._color)

    def to_bytes(self) -> bytes:
        """Packed 8-bit RGB, row-major, suitable for image encoders."""
        return bytes(channel for row in self._color for pixel in row for channel in pixel)

    def _check_bounds(self, x: int, y: int) -> None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise RenderInvariantViolation(
                f"Pixel ({x}, {y}) is outside the {self.width}x{self.height} frame buffer"
            )


def _check_rgb8(color: RGB8) -> RGB8:
    if len(color) != 3 or not all(isinstance(c, int) and 0 <= c <= 255 for c in color):
        raise RenderInvariantViolation(f"Colour must be three 0-255 integers, got {color!r}")
    return (color[0], color[1], color[2])
