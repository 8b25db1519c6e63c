"""Output sinks that accept one finished frame buffer at a time."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional, Protocol, Sequence, Tuple, Union

from PIL import Image

from .framebuffer import RGB8, FrameBuffer

logger = logging.getLogger(__name__)

HALF_BLOCK = "▀"
HUD_COLOR: RGB8 = (208, 208, 208)
HUD_BACKGROUND: RGB8 = (0, 0, 0)

Cell = Tuple[str, RGB8, RGB8]


class FrameSink(Protocol):
    def present(self, framebuffer: FrameBuffer) -> None: ...


class PngSink:
    """Encode frames as PNG files.

    The image is written to a temporary file next to the destination and
    renamed into place, so readers never observe a partially written PNG.
    """

    def __init__(self, path: Union[str, "os.PathLike[str]"]) -> None:
        self.path = Path(path)

    def present(self, framebuffer: FrameBuffer) -> None:
        image = to_image(framebuffer)
        directory = self.path.parent
        fd, temp_name = tempfile.mkstemp(prefix=".stlview-", suffix=".png", dir=directory)
        try:
            with os.fdopen(fd, "wb") as fh:
                image.save(fh, format="PNG")
            os.replace(temp_name, self.path)
        except BaseException:
            try:
                os.unlink(temp_name)
            except OSError:
                pass
            raise
        logger.info("Wrote %dx%d PNG to %s", framebuffer.width, framebuffer.height, self.path)


def to_image(framebuffer: FrameBuffer) -> Image.Image:
    return Image.frombytes("RGB", (framebuffer.width, framebuffer.height), framebuffer.to_bytes())


class TerminalSink:
    """Blit frames to an ANSI terminal, two pixel rows per character row."""

    def __init__(self, controller, *, hud: Sequence[str] = ()) -> None:
        self.controller = controller
        self.hud: Sequence[str] = hud

    def present(self, framebuffer: FrameBuffer) -> None:
        self.controller.draw(compose_ansi(framebuffer, self.hud))


def compose_ansi(framebuffer: FrameBuffer, hud: Sequence[str] = ()) -> str:
    """Render a frame as 24-bit ANSI text using upper-half-block glyphs.

    The glyph's foreground is the upper pixel and its background the lower
    one. HUD lines are right-aligned over the top rows.
    """

    rows = framebuffer.rows()
    cells: List[List[Cell]] = []
    for top in range(0, framebuffer.height, 2):
        upper = rows[top]
        lower = rows[top + 1] if top + 1 < framebuffer.height else None
        cells.append(
            [
                (HALF_BLOCK, upper[x], lower[x] if lower is not None else (0, 0, 0))
                for x in range(framebuffer.width)
            ]
        )
    _blit_hud(cells, framebuffer.width, hud)

    reset = "\033[0m"
    lines: List[str] = []
    for row in cells:
        current: Optional[Tuple[RGB8, RGB8]] = None
        parts: List[str] = []
        for char, fg, bg in row:
            if (fg, bg) != current:
                parts.append(f"\033[38;2;{fg[0]};{fg[1]};{fg[2]}m\033[48;2;{bg[0]};{bg[1]};{bg[2]}m")
                current = (fg, bg)
            parts.append(char)
        parts.append(reset)
        lines.append("".join(parts))
    return "\n".join(lines)


def _blit_hud(cells: List[List[Cell]], width: int, lines: Sequence[str]) -> None:
    if not lines:
        return
    max_width = max(len(line) for line in lines)
    start_x = max(0, width - max_width - 1)
    for row_offset, line in enumerate(lines):
        if row_offset >= len(cells):
            break
        x = start_x
        for char in line:
            if 0 <= x < width:
                cells[row_offset][x] = (char, HUD_COLOR, HUD_BACKGROUND)
            x += 1
