"""Per-frame state machine for the interactive viewer."""

from __future__ import annotations

import enum
import logging
import math
from typing import Dict, Mapping, Optional

from .camera import CameraDelta
from .engine import RenderContext, RenderEngine
from .errors import CorruptMeshError, FormatError, RenderInvariantViolation
from .framebuffer import FrameBuffer
from .sinks import FrameSink
from .vecmath import Vec3

logger = logging.getLogger(__name__)

# Errors after which there is nothing valid left to draw.
FATAL_ERRORS = (CorruptMeshError, FormatError, RenderInvariantViolation)

QUIT = None

Bindings = Mapping[str, Optional[CameraDelta]]


class FrameState(enum.Enum):
    IDLE = "idle"
    RENDERING = "rendering"
    PRESENTING = "presenting"


def default_bindings(step: float = 0.25, angle: float = math.radians(3.0), zoom: float = 5.0) -> Dict[str, Optional[CameraDelta]]:
    """Key map: arrows orbit, WASD walks, Q/E roll, R/F rise and sink, +/- zoom."""

    return {
        "LEFT": CameraDelta(orbit_yaw=angle),
        "RIGHT": CameraDelta(orbit_yaw=-angle),
        "UP": CameraDelta(orbit_pitch=angle),
        "DOWN": CameraDelta(orbit_pitch=-angle),
        "w": CameraDelta(translation=Vec3(0.0, 0.0, step)),
        "s": CameraDelta(translation=Vec3(0.0, 0.0, -step)),
        "a": CameraDelta(translation=Vec3(-step, 0.0, 0.0)),
        "d": CameraDelta(translation=Vec3(step, 0.0, 0.0)),
        "r": CameraDelta(translation=Vec3(0.0, step, 0.0)),
        "f": CameraDelta(translation=Vec3(0.0, -step, 0.0)),
        "q": CameraDelta(roll=-angle),
        "e": CameraDelta(roll=angle),
        "+": CameraDelta(fov_degrees=-zoom),
        "=": CameraDelta(fov_degrees=-zoom),
        "-": CameraDelta(fov_degrees=zoom),
        "x": QUIT,
        "ESC": QUIT,
    }


DEFAULT_BINDINGS = default_bindings()


class FrameLoop:
    """Drives one render-and-present cycle per :meth:`tick`.

    The loop never blocks or sleeps; whoever owns the event source (a timer,
    a key poller, a test) decides when to call :meth:`handle_key` and
    :meth:`tick`. Camera changes are only applied between frames.
    """

    def __init__(
        self,
        engine: RenderEngine,
        context: RenderContext,
        sink: FrameSink,
        *,
        bindings: Optional[Bindings] = None,
    ) -> None:
        self.engine = engine
        self.context = context
        self.sink = sink
        self.bindings: Bindings = bindings if bindings is not None else DEFAULT_BINDINGS
        self.state = FrameState.IDLE
        self.frames_presented = 0
        self.frames_skipped = 0
        self.running = True
        self._framebuffer: Optional[FrameBuffer] = None

    def handle_key(self, key: str) -> bool:
        """Apply the binding for ``key``; returns ``False`` once the viewer should quit."""
        if key not in self.bindings:
            return self.running
        delta = self.bindings[key]
        if delta is QUIT:
            logger.info("Quit requested")
            self.running = False
            return False
        self.apply(delta)
        return self.running

    def apply(self, delta: CameraDelta) -> None:
        if self.state is not FrameState.IDLE:
            raise RenderInvariantViolation("Camera changed while a frame was in flight")
        self.context.camera.apply(delta)

    def tick(self) -> Optional[FrameBuffer]:
        """Render and present one frame. Returns ``None`` if the frame was skipped."""
        if self.state is not FrameState.IDLE:
            raise RenderInvariantViolation(f"tick() re-entered while {self.state.value}")

        self.state = FrameState.RENDERING
        try:
            framebuffer = self.engine.render(self.context, self._framebuffer)
            self._framebuffer = framebuffer
            self.state = FrameState.PRESENTING
            self.sink.present(framebuffer)
        except FATAL_ERRORS:
            self.running = False
            raise
        except Exception:
            self.frames_skipped += 1
            logger.exception("Skipping frame %d", self.frames_presented + self.frames_skipped)
            return None
        finally:
            self.state = FrameState.IDLE

        self.frames_presented += 1
        return framebuffer
