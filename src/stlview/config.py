"""Validated render settings assembled from the command line."""

from __future__ import annotations

import argparse
import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .camera import Camera, validate_lens
from .errors import ConfigurationError
from .mesh import Mesh
from .shading import LambertShader, Light, headlight
from .vecmath import Vec3

Triple = Tuple[float, float, float]


@dataclass
class LightSpec:
    direction: Triple
    intensity: float = 1.0


@dataclass
class RenderConfig:
    """Everything needed to set up a render before any pixel is drawn.

    ``near``/``far`` of ``None`` are derived from the mesh size, and a missing
    ``camera_position`` frames the whole mesh. With no lights configured the
    scene is lit by a headlight along the view direction.
    """

    width: int = 800
    height: int = 600
    fov_degrees: float = 60.0
    near: Optional[float] = None
    far: Optional[float] = None
    camera_position: Optional[Triple] = None
    camera_target: Optional[Triple] = None
    camera_up: Triple = (0.0, 1.0, 0.0)
    lights: List[LightSpec] = field(default_factory=list)
    headlight: bool = False
    headlight_intensity: float = 1.0
    ambient: float = 0.1
    albedo: Triple = (0.8, 0.8, 0.8)
    background: Tuple[int, int, int] = (0, 0, 0)
    mesh_path: Optional[str] = None
    output_path: Optional[str] = None
    window: bool = False
    fps: float = 20.0
    frames: int = 0
    cull_backfaces: bool = False
    log_level: int = logging.WARNING
    log_file: Optional[str] = None

    def validate(self) -> "RenderConfig":
        if self.width < 1 or self.height < 1:
            raise ConfigurationError(f"Image size must be positive, got {self.width}x{self.height}")
        if not math.isfinite(self.fov_degrees) or not 0.0 < self.fov_degrees < 180.0:
            raise ConfigurationError(
                f"Field of view must lie strictly between 0 and 180 degrees, got {self.fov_degrees}"
            )
        if self.near is not None and (not math.isfinite(self.near) or self.near <= 0.0):
            raise ConfigurationError(f"Near clip distance must be positive, got {self.near}")
        if self.far is not None and (not math.isfinite(self.far) or self.far <= 0.0):
            raise ConfigurationError(f"Far clip distance must be positive, got {self.far}")
        if self.near is not None and self.far is not None:
            validate_lens(self.fov_degrees, self.near, self.far)
        if not math.isfinite(self.ambient) or self.ambient < 0.0:
            raise ConfigurationError(f"Ambient floor must be non-negative, got {self.ambient}")
        if not all(0.0 <= c <= 1.0 for c in self.albedo):
            raise ConfigurationError(f"Albedo channels must lie in [0, 1], got {self.albedo!r}")
        if not all(isinstance(c, int) and 0 <= c <= 255 for c in self.background):
            raise ConfigurationError(f"Background channels must lie in [0, 255], got {self.background!r}")
        if not math.isfinite(self.fps) or self.fps <= 0.0:
            raise ConfigurationError(f"Frame rate must be positive, got {self.fps}")
        if self.frames < 0:
            raise ConfigurationError(f"Frame count must not be negative, got {self.frames}")
        for light in self.lights:
            _check_vector("Light direction", light.direction, allow_zero=False)
            if not math.isfinite(light.intensity) or light.intensity < 0.0:
                raise ConfigurationError(f"Light intensity must be non-negative, got {light.intensity}")
        if self.camera_position is not None:
            _check_vector("Camera position", self.camera_position)
        if self.camera_target is not None:
            _check_vector("Camera target", self.camera_target)
        _check_vector("Camera up vector", self.camera_up, allow_zero=False)
        if not self.window and not self.output_path:
            raise ConfigurationError("Either an output path or --window is required")
        return self

    def build_camera(self, mesh: Mesh) -> Camera:
        up = Vec3(*self.camera_up)
        if self.camera_position is None:
            camera = Camera.framing(
                mesh,
                up=up,
                fov_degrees=self.fov_degrees,
                near=self.near,
                far=self.far,
            )
            if self.camera_target is not None:
                camera.look_at(Vec3(*self.camera_target))
            return camera

        position = Vec3(*self.camera_position)
        target = Vec3(*self.camera_target) if self.camera_target is not None else mesh.center()
        distance = (target - position).length()
        reach = distance + mesh.extent()
        return Camera.looking_at(
            position,
            target,
            up,
            fov_degrees=self.fov_degrees,
            near=self.near if self.near is not None else min(0.1, max(reach * 1e-3, 1e-4)),
            far=self.far if self.far is not None else max(100.0, reach * 2.0),
        )

    def build_lights(self, camera: Camera) -> List[Light]:
        lights = [Light(Vec3(*item.direction), item.intensity) for item in self.lights]
        if self.headlight or not lights:
            lights.append(headlight(camera, self.headlight_intensity))
        return lights

    def build_shader(self) -> LambertShader:
        return LambertShader(albedo=self.albedo, ambient=self.ambient)

    @classmethod
    def from_arguments(cls, args: argparse.Namespace) -> "RenderConfig":
        lights: List[LightSpec] = []
        if args.light is not None:
            lights.append(LightSpec(tuple(args.light), args.light_intensity))
        log_level = logging.WARNING
        if args.verbose >= 2:
            log_level = logging.DEBUG
        elif args.verbose == 1:
            log_level = logging.INFO
        return cls(
            width=args.width,
            height=args.height,
            fov_degrees=args.fov,
            near=args.near,
            far=args.far,
            camera_position=_triple(args.camera),
            camera_target=_triple(args.target),
            camera_up=_triple(args.up) or (0.0, 1.0, 0.0),
            lights=lights,
            headlight=args.headlight,
            ambient=args.ambient,
            albedo=_triple(args.albedo) or (0.8, 0.8, 0.8),
            background=tuple(int(c) for c in args.background) if args.background else (0, 0, 0),
            mesh_path=args.mesh,
            output_path=args.output,
            window=args.window,
            fps=args.fps,
            frames=args.frames,
            cull_backfaces=args.cull,
            log_level=log_level,
            log_file=args.log_file,
        )


def _triple(values: Optional[Sequence[float]]) -> Optional[Triple]:
    if values is None:
        return None
    return (float(values[0]), float(values[1]), float(values[2]))


def _check_vector(label: str, values: Triple, *, allow_zero: bool = True) -> None:
    if len(values) != 3 or not all(math.isfinite(v) for v in values):
        raise ConfigurationError(f"{label} must be three finite numbers, got {values!r}")
    if not allow_zero and all(v == 0.0 for v in values):
        raise ConfigurationError(f"{label} must be non-zero")
