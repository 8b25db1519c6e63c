"""Render driver: camera transform -> rasterize -> shade into a frame buffer."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional, Sequence, Tuple

from .camera import Camera, ProjectionStats, Projector
from .errors import RenderInvariantViolation
from .framebuffer import RGB8, FrameBuffer
from .mesh import Mesh
from .raster import Fragment, rasterize
from .shading import LambertShader, Light, to_rgb8
from .vecmath import Vec3

if TYPE_CHECKING:
    from .sinks import FrameSink

logger = logging.getLogger(__name__)


@dataclass
class RenderContext:
    """Everything one render call reads: the camera, the lights and the meshes."""

    camera: Camera
    lights: Sequence[Light]
    meshes: Sequence[Mesh] = field(default_factory=tuple)


@dataclass
class RenderStats:
    projection: ProjectionStats = field(default_factory=ProjectionStats)
    pixels_shaded: int = 0
    seconds: float = 0.0


class RenderEngine:
    """Software rasterizer producing one frame buffer per call."""

    def __init__(
        self,
        width: int,
        height: int,
        *,
        shader: Optional[LambertShader] = None,
        background: RGB8 = (0, 0, 0),
        cull_backfaces: bool = False,
    ) -> None:
        if width < 1 or height < 1:
            raise RenderInvariantViolation(f"RenderEngine requires a positive size, got {width}x{height}")
        self.width = width
        self.height = height
        self.shader = shader if shader is not None else LambertShader()
        self.background = background
        self.cull_backfaces = cull_backfaces
        self.last_stats = RenderStats()

    def resize(self, width: int, height: int) -> None:
        if width < 1 or height < 1:
            raise RenderInvariantViolation(f"RenderEngine requires a positive size, got {width}x{height}")
        self.width = width
        self.height = height

    def new_framebuffer(self) -> FrameBuffer:
        return FrameBuffer(self.width, self.height, self.background)

    def project_point(self, point: Vec3, camera: Camera) -> Optional[Tuple[float, float, float]]:
        return Projector(camera, self.width, self.height).project_point(point)

    def render(self, context: RenderContext, framebuffer: Optional[FrameBuffer] = None) -> FrameBuffer:
        """Render every mesh of ``context`` and return the finished frame.

        A supplied ``framebuffer`` is reused and cleared when it matches the
        engine size; otherwise a new one is allocated.
        """
        started = time.perf_counter()
        if framebuffer is None or (framebuffer.width, framebuffer.height) != (self.width, self.height):
            framebuffer = self.new_framebuffer()
        else:
            framebuffer.clear(self.background)

        projector = Projector(
            context.camera, self.width, self.height, cull_backfaces=self.cull_backfaces
        )
        shader = self.shader
        lights = tuple(context.lights)

        def shade(fragment: Fragment) -> RGB8:
            return to_rgb8(shader.shade_fragment(fragment, lights))

        pixels = 0
        for mesh in context.meshes:
            pixels += rasterize(framebuffer, projector.project_mesh(mesh), shade)

        stats = RenderStats(projection=projector.stats, pixels_shaded=pixels)
        stats.seconds = time.perf_counter() - started
        self.last_stats = stats
        logger.debug(
            "Rendered %dx%d: %d submitted, %d rejected, %d culled, %d clipped, %d rasterized, %d pixels in %.3fs",
            self.width,
            self.height,
            stats.projection.submitted,
            stats.projection.rejected,
            stats.projection.culled,
            stats.projection.clipped,
            stats.projection.emitted,
            pixels,
            stats.seconds,
        )
        return framebuffer

    def render_to(self, sink: "FrameSink", context: RenderContext) -> FrameBuffer:
        """Render a complete frame and only then hand it to ``sink``."""
        framebuffer = self.render(context)
        sink.present(framebuffer)
        return framebuffer
