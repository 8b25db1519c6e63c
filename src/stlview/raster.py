"""Triangle scan conversion with a depth-buffered visibility test."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Iterable

from .camera import ScreenTriangle, ScreenVertex
from .framebuffer import RGB8, FrameBuffer
from .vecmath import Vec3

# Screen-space area (in pixels^2, doubled) below which a triangle is skipped
MIN_AREA = 1e-9


@dataclass(frozen=True, slots=True)
class Fragment:
    """A covered pixel on its way from the rasterizer to the shader."""

    x: int
    y: int
    depth: float
    normal: Vec3
    position: Vec3


ShadeFn = Callable[[Fragment], RGB8]


def _edge(ax: float, ay: float, bx: float, by: float, px: float, py: float) -> float:
    return (px - ax) * (by - ay) - (py - ay) * (bx - ax)


def _is_top_left(a: ScreenVertex, b: ScreenVertex) -> bool:
    # With y pointing down and positive area, left edges run downwards and
    # the top edge runs right to left.
    dx = b.x - a.x
    dy = b.y - a.y
    return dy > 0.0 or (dy == 0.0 and dx < 0.0)


def _covers(weight: float, top_left: bool) -> bool:
    return weight > 0.0 or (weight == 0.0 and top_left)


def rasterize_triangle(framebuffer: FrameBuffer, triangle: ScreenTriangle, shade: ShadeFn) -> int:
    """Shade the pixels of ``triangle`` that pass the depth test.

    Pixels are sampled at their centres. A sample lying exactly on an edge
    belongs to the triangle only when that edge is a top or left edge, so
    triangles sharing an edge never both cover a pixel and never leave a gap.
    Returns the number of pixels written.
    """

    a, b, c = triangle.vertices
    area = _edge(a.x, a.y, b.x, b.y, c.x, c.y)
    if abs(area) < MIN_AREA:
        return 0
    if area < 0.0:
        b, c = c, b
        area = -area

    min_x = max(0, int(math.floor(min(a.x, b.x, c.x))))
    max_x = min(framebuffer.width - 1, int(math.ceil(max(a.x, b.x, c.x))))
    min_y = max(0, int(math.floor(min(a.y, b.y, c.y))))
    max_y = min(framebuffer.height - 1, int(math.ceil(max(a.y, b.y, c.y))))
    if min_x > max_x or min_y > max_y:
        return 0

    top_left_a = _is_top_left(b, c)
    top_left_b = _is_top_left(c, a)
    top_left_c = _is_top_left(a, b)
    inv_area = 1.0 / area
    normal = triangle.normal

    written = 0
    for y in range(min_y, max_y + 1):
        py = y + 0.5
        for x in range(min_x, max_x + 1):
            px = x + 0.5
            w_a = _edge(b.x, b.y, c.x, c.y, px, py)
            w_b = _edge(c.x, c.y, a.x, a.y, px, py)
            w_c = _edge(a.x, a.y, b.x, b.y, px, py)
            if not (
                _covers(w_a, top_left_a) and _covers(w_b, top_left_b) and _covers(w_c, top_left_c)
            ):
                continue

            l_a, l_b, l_c = w_a * inv_area, w_b * inv_area, w_c * inv_area
            depth = l_a * a.depth + l_b * b.depth + l_c * c.depth
            if depth < 0.0 or depth > 1.0:
                continue
            if depth >= framebuffer.depth_at(x, y):
                continue

            # Perspective-correct world position
            p_a, p_b, p_c = l_a * a.inv_w, l_b * b.inv_w, l_c * c.inv_w
            inv_w = p_a + p_b + p_c
            position = (a.world * p_a + b.world * p_b + c.world * p_c) / inv_w

            color = shade(Fragment(x, y, depth, normal, position))
            framebuffer.write(x, y, color, depth)
            written += 1

    return written


def rasterize(framebuffer: FrameBuffer, triangles: Iterable[ScreenTriangle], shade: ShadeFn) -> int:
    return sum(rasterize_triangle(framebuffer, triangle, shade) for triangle in triangles)
