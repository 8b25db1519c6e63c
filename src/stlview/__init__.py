"""Software renderer for STL meshes, to PNG or the terminal."""

from .camera import Camera, CameraDelta, Projector
from .engine import RenderContext, RenderEngine
from .errors import (
    ConfigurationError,
    CorruptMeshError,
    DegenerateGeometryWarning,
    FormatError,
    FormatErrorKind,
    RenderInvariantViolation,
)
from .framebuffer import FrameBuffer
from .mesh import Mesh, Triangle
from .objects import cube_mesh
from .shading import LambertShader, Light
from .sinks import PngSink, TerminalSink
from .stl import load_mesh, load_stl, parse_stl, save_stl
from .terminal import TerminalController
from .vecmath import Mat4, Vec3
from .viewer import FrameLoop, FrameState

__all__ = [
    "Camera",
    "CameraDelta",
    "ConfigurationError",
    "CorruptMeshError",
    "DegenerateGeometryWarning",
    "FormatError",
    "FormatErrorKind",
    "FrameBuffer",
    "FrameLoop",
    "FrameState",
    "LambertShader",
    "Light",
    "Mat4",
    "Mesh",
    "PngSink",
    "Projector",
    "RenderContext",
    "RenderEngine",
    "RenderInvariantViolation",
    "TerminalController",
    "TerminalSink",
    "Triangle",
    "Vec3",
    "cube_mesh",
    "load_mesh",
    "load_stl",
    "parse_stl",
    "save_stl",
]
