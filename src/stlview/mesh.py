"""Triangle mesh model with a placement transform decoupled from geometry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional, Sequence, Tuple

from .vecmath import ZERO, Mat4, Vec3, compose

# Squared sine of the smallest corner angle a non-degenerate triangle may have.
DEGENERATE_SINE_SQUARED = 1e-12


@dataclass(frozen=True, slots=True)
class Triangle:
    """Three vertices in mesh-local space plus a unit face normal.

    ``degenerate`` marks zero-area triangles. Their normal is the recorded
    one when the source supplied it, otherwise the zero vector.
    """

    vertices: Tuple[Vec3, Vec3, Vec3]
    normal: Vec3
    degenerate: bool = False

    @classmethod
    def from_facet(cls, normal: Vec3, v0: Vec3, v1: Vec3, v2: Vec3) -> "Triangle":
        e1 = v1 - v0
        e2 = v2 - v0
        winding = e1.cross(e2)
        # Scale-free: compared against the edge lengths.
        degenerate = winding.length_squared() <= DEGENERATE_SINE_SQUARED * e1.length_squared() * e2.length_squared()
        if not normal.is_zero():
            normal = normal.normalized()
        elif degenerate:
            normal = ZERO
        else:
            normal = winding / winding.length()
        return cls((v0, v1, v2), normal, degenerate)

    @classmethod
    def from_points(cls, v0: Vec3, v1: Vec3, v2: Vec3) -> "Triangle":
        return cls.from_facet(ZERO, v0, v1, v2)

    def area(self) -> float:
        v0, v1, v2 = self.vertices
        return 0.5 * (v1 - v0).cross(v2 - v0).length()


class Mesh:
    """Ordered, fixed collection of triangles and a mutable world transform."""

    def __init__(
        self,
        triangles: Sequence[Triangle],
        *,
        name: Optional[str] = None,
        transform: Optional[Mat4] = None,
    ):
        self._triangles: Tuple[Triangle, ...] = tuple(triangles)
        if not self._triangles:
            raise ValueError("Mesh requires at least one triangle")
        self.name = name
        self.transform = transform if transform is not None else Mat4.identity()

    @property
    def triangles(self) -> Tuple[Triangle, ...]:
        return self._triangles

    @property
    def degenerate_count(self) -> int:
        return sum(1 for triangle in self._triangles if triangle.degenerate)

    def __iter__(self) -> Iterator[Triangle]:
        return iter(self._triangles)

    def __len__(self) -> int:
        return len(self._triangles)

    def __repr__(self) -> str:
        label = f" {self.name!r}" if self.name else ""
        return f"<Mesh{label} triangles={len(self._triangles)}>"

    def place(
        self,
        translation: Vec3 = ZERO,
        rotation: Vec3 = ZERO,
        scale: Vec3 = Vec3(1.0, 1.0, 1.0),
    ) -> None:
        """Replace the world transform; ``rotation`` holds XYZ Euler angles in radians."""

        self.transform = compose(
            Mat4.translation(translation),
            Mat4.rotation_z(rotation.z),
            Mat4.rotation_y(rotation.y),
            Mat4.rotation_x(rotation.x),
            Mat4.scaling(scale),
        )

    def bounds(self) -> Tuple[Vec3, Vec3]:
        return _bounds(v for triangle in self._triangles for v in triangle.vertices)

    def world_bounds(self) -> Tuple[Vec3, Vec3]:
        transform = self.transform
        return _bounds(
            transform.transform_point(v) for triangle in self._triangles for v in triangle.vertices
        )

    def center(self) -> Vec3:
        low, high = self.world_bounds()
        return (low + high) * 0.5

    def extent(self) -> float:
        """Length of the world-space bounding box diagonal."""
        low, high = self.world_bounds()
        return (high - low).length()


def _bounds(points) -> Tuple[Vec3, Vec3]:
    min_x = min_y = min_z = float("inf")
    max_x = max_y = max_z = float("-inf")
    for p in points:
        min_x, max_x = min(min_x, p.x), max(max_x, p.x)
        min_y, max_y = min(min_y, p.y), max(max_y, p.y)
        min_z, max_z = min(min_z, p.z), max(max_z, p.z)
    return Vec3(min_x, min_y, min_z), Vec3(max_x, max_y, max_z)
