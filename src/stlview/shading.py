"""Lambertian diffuse shading."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence, Tuple

from .errors import ConfigurationError
from .vecmath import Vec3

if TYPE_CHECKING:
    from .camera import Camera
    from .raster import Fragment

RGB = Tuple[float, float, float]


@dataclass(frozen=True, slots=True)
class Light:
    """Directional light; ``direction`` is the way the light travels."""

    direction: Vec3
    intensity: float = 1.0
    color: RGB = (1.0, 1.0, 1.0)

    def __post_init__(self) -> None:
        unit = self.direction.normalized()
        if unit.is_zero():
            raise ConfigurationError("Light direction must be non-zero")
        if not math.isfinite(self.intensity) or self.intensity < 0.0:
            raise ConfigurationError(f"Light intensity must be non-negative, got {self.intensity}")
        object.__setattr__(self, "direction", unit)
        object.__setattr__(self, "color", _clamp_rgb(self.color))


def headlight(camera: "Camera", intensity: float = 1.0) -> Light:
    """A light shining along the camera's view direction."""

    return Light(camera.forward, intensity)


class LambertShader:
    """Diffuse shading: sum of ``max(0, n . -l) * intensity`` over all lights.

    The ambient floor is added before the per-channel clamp to [0, 1], and the
    clamped irradiance is then multiplied by the albedo.
    """

    def __init__(self, albedo: RGB = (0.8, 0.8, 0.8), ambient: float = 0.0) -> None:
        if not math.isfinite(ambient) or ambient < 0.0:
            raise ConfigurationError(f"Ambient floor must be non-negative, got {ambient}")
        if len(albedo) != 3 or not all(0.0 <= c <= 1.0 for c in albedo):
            raise ConfigurationError(f"Albedo channels must lie in [0, 1], got {albedo!r}")
        self.albedo: RGB = (float(albedo[0]), float(albedo[1]), float(albedo[2]))
        self.ambient = ambient

    def shade(self, normal: Vec3, position: Vec3, lights: Sequence[Light]) -> RGB:
        # Directional lights only; position is kept for lights that fall off with distance.
        r = g = b = self.ambient
        if not normal.is_zero():
            for light in lights:
                cosine = -normal.dot(light.direction)
                if cosine <= 0.0:
                    continue
                energy = cosine * light.intensity
                r += energy * light.color[0]
                g += energy * light.color[1]
                b += energy * light.color[2]
        return (
            _clamp(r) * self.albedo[0],
            _clamp(g) * self.albedo[1],
            _clamp(b) * self.albedo[2],
        )

    def shade_fragment(self, fragment: "Fragment", lights: Sequence[Light]) -> RGB:
        return self.shade(fragment.normal, fragment.position, lights)


def to_rgb8(color: RGB) -> Tuple[int, int, int]:
    return (
        int(round(_clamp(color[0]) * 255)),
        int(round(_clamp(color[1]) * 255)),
        int(round(_clamp(color[2]) * 255)),
    )


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def _clamp_rgb(rgb: RGB) -> RGB:
    return (_clamp(rgb[0]), _clamp(rgb[1]), _clamp(rgb[2]))
