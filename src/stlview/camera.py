"""Camera state and the world -> view -> clip -> screen projection."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .errors import ConfigurationError, CorruptMeshError
from .mesh import Mesh, Triangle
from .vecmath import ZERO, Mat4, Vec3

WORLD_UP = Vec3(0.0, 1.0, 0.0)
DEFAULT_FORWARD = Vec3(0.0, 0.0, -1.0)


@dataclass(frozen=True)
class CameraDelta:
    """Camera motion requested between two frames.

    ``translation`` is expressed in the camera frame (right, up, forward).
    Angles are radians; orbit angles pivot around the camera's target point.
    """

    translation: Vec3 = ZERO
    yaw: float = 0.0
    pitch: float = 0.0
    roll: float = 0.0
    orbit_yaw: float = 0.0
    orbit_pitch: float = 0.0
    fov_degrees: float = 0.0


class Camera:
    """Eye position, orthonormal basis, vertical field of view and clip planes."""

    def __init__(
        self,
        position: Vec3,
        forward: Vec3 = DEFAULT_FORWARD,
        up: Vec3 = WORLD_UP,
        *,
        fov_degrees: float = 60.0,
        near: float = 0.1,
        far: float = 100.0,
        target_distance: Optional[float] = None,
    ) -> None:
        validate_lens(fov_degrees, near, far)
        if not position.is_finite():
            raise ConfigurationError("Camera position must be finite")
        self.position = position
        self.fov_degrees = fov_degrees
        self.near = near
        self.far = far
        self.forward, self.up, self.right = _orthonormal_basis(forward, up)
        self.target_distance = target_distance if target_distance is not None else 1.0

    def __repr__(self) -> str:
        return (
            f"Camera(position={self.position}, forward={self.forward}, up={self.up}, "
            f"fov={self.fov_degrees}, near={self.near}, far={self.far})"
        )

    @classmethod
    def looking_at(cls, position: Vec3, target: Vec3, up: Vec3 = WORLD_UP, **kwargs) -> "Camera":
        direction = target - position
        if direction.is_zero():
            raise ConfigurationError("Camera position and target coincide")
        return cls(position, direction, up, target_distance=direction.length(), **kwargs)

    @classmethod
    def framing(
        cls,
        mesh: Mesh,
        *,
        forward: Vec3 = DEFAULT_FORWARD,
        up: Vec3 = WORLD_UP,
        fov_degrees: float = 60.0,
        near: Optional[float] = None,
        far: Optional[float] = None,
    ) -> "Camera":
        """Place the camera one bounding-box diagonal away from the mesh centre."""

        center = mesh.center()
        distance = mesh.extent()
        if distance <= 1e-9:
            distance = 1.0
        direction = forward.normalized()
        if direction.is_zero():
            raise ConfigurationError("Camera forward vector must be non-zero")
        position = center - direction * distance
        return cls(
            position,
            direction,
            up,
            fov_degrees=fov_degrees,
            near=near if near is not None else distance * 0.01,
            far=far if far is not None else distance * 10.0,
            target_distance=distance,
        )

    # Motion -----------------------------------------------------------

    @property
    def target(self) -> Vec3:
        return self.position + self.forward * self.target_distance

    def move(self, delta: Vec3) -> None:
        """Translate by ``delta`` given in camera-local (right, up, forward) units."""
        self.position = (
            self.position + self.right * delta.x + self.up * delta.y + self.forward * delta.z
        )

    def step_forward(self, distance: float = 1.0) -> None:
        self.move(Vec3(0.0, 0.0, distance))

    def step_back(self, distance: float = 1.0) -> None:
        self.move(Vec3(0.0, 0.0, -distance))

    def step_left(self, distance: float = 1.0) -> None:
        self.move(Vec3(-distance, 0.0, 0.0))

    def step_right(self, distance: float = 1.0) -> None:
        self.move(Vec3(distance, 0.0, 0.0))

    def rotate(self, yaw: float = 0.0, pitch: float = 0.0, roll: float = 0.0) -> None:
        """Turn about the camera's own up, right and forward axes."""
        rotation = (
            Mat4.rotation_axis(self.forward, roll)
            @ Mat4.rotation_axis(self.right, pitch)
            @ Mat4.rotation_axis(self.up, yaw)
        )
        self._apply_rotation(rotation)

    def orbit(self, yaw: float = 0.0, pitch: float = 0.0, pivot: Optional[Vec3] = None) -> None:
        """Swing the eye around ``pivot`` (default: the target point) while facing it."""
        if pivot is None:
            pivot = self.target
        rotation = Mat4.rotation_axis(self.right, pitch) @ Mat4.rotation_axis(self.up, yaw)
        self.position = rotation.transform_point(self.position - pivot) + pivot
        self._apply_rotation(rotation)

    def look_at(self, target: Vec3) -> None:
        direction = target - self.position
        if direction.is_zero():
            raise ConfigurationError("Camera position and target coincide")
        self.forward, self.up, self.right = _orthonormal_basis(direction, self.up)
        self.target_distance = direction.length()

    def set_fov(self, fov_degrees: float) -> None:
        validate_lens(fov_degrees, self.near, self.far)
        self.fov_degrees = fov_degrees

    def apply(self, delta: CameraDelta) -> None:
        if delta.orbit_yaw or delta.orbit_pitch:
            self.orbit(delta.orbit_yaw, delta.orbit_pitch)
        if delta.yaw or delta.pitch or delta.roll:
            self.rotate(delta.yaw, delta.pitch, delta.roll)
        if not delta.translation.is_zero():
            self.move(delta.translation)
        if delta.fov_degrees:
            self.set_fov(max(5.0, min(170.0, self.fov_degrees + delta.fov_degrees)))

    def _apply_rotation(self, rotation: Mat4) -> None:
        forward = rotation.transform_direction(self.forward)
        up = rotation.transform_direction(self.up)
        self.forward, self.up, self.right = _orthonormal_basis(forward, up)

    # Matrices ---------------------------------------------------------

    def view_matrix(self) -> Mat4:
        return Mat4.look_at(self.position, self.forward, self.up)

    def projection_matrix(self, aspect: float) -> Mat4:
        return Mat4.perspective(self.fov_degrees, aspect, self.near, self.far)


def validate_lens(fov_degrees: float, near: float, far: float) -> None:
    if not math.isfinite(fov_degrees) or not 0.0 < fov_degrees < 180.0:
        raise ConfigurationError(
            f"Field of view must lie strictly between 0 and 180 degrees, got {fov_degrees}"
        )
    if not math.isfinite(near) or near <= 0.0:
        raise ConfigurationError(f"Near clip distance must be positive, got {near}")
    if not math.isfinite(far) or near >= far:
        raise ConfigurationError(f"Near clip distance must be less than far ({near} >= {far})")


def _orthonormal_basis(forward: Vec3, up: Vec3) -> Tuple[Vec3, Vec3, Vec3]:
    forward = forward.normalized()
    if forward.is_zero():
        raise ConfigurationError("Camera forward vector must be non-zero")
    right = forward.cross(up).normalized()
    if right.is_zero():
        raise ConfigurationError("Camera up vector must not be parallel to the view direction")
    up = right.cross(forward).normalized()
    return forward, up, right


# Projection --------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ScreenVertex:
    x: float
    y: float
    depth: float
    inv_w: float
    world: Vec3


@dataclass(frozen=True, slots=True)
class ScreenTriangle:
    """Pixel-space triangle with the world-space normal used for shading."""

    vertices: Tuple[ScreenVertex, ScreenVertex, ScreenVertex]
    normal: Vec3
    source_index: int = 0


@dataclass
class ProjectionStats:
    submitted: int = 0
    rejected: int = 0
    culled: int = 0
    clipped: int = 0
    emitted: int = 0

    def merge(self, other: "ProjectionStats") -> None:
        self.submitted += other.submitted
        self.rejected += other.rejected
        self.culled += other.culled
        self.clipped += other.clipped
        self.emitted += other.emitted


@dataclass(frozen=True, slots=True)
class _ClipVertex:
    view: Vec3
    world: Vec3

    @property
    def depth(self) -> float:
        return -self.view.z


class Projector:
    """Applies one camera's transform chain to meshes for a given frame size.

    Triangles straddling the near plane are clipped against it in view space
    and re-triangulated as a fan, so silhouettes stay intact at the frustum
    boundary. Triangles wholly in front of the near plane, wholly beyond the
    far plane, or wholly outside one side of the frustum are rejected.
    """

    def __init__(self, camera: Camera, width: int, height: int, *, cull_backfaces: bool = False) -> None:
        self.camera = camera
        self.width = width
        self.height = height
        self.cull_backfaces = cull_backfaces
        self._view = camera.view_matrix()
        self._projection = camera.projection_matrix(width / height)
        self._near = camera.near
        self._far = camera.far
        self.stats = ProjectionStats()

    def project_mesh(self, mesh: Mesh) -> List[ScreenTriangle]:
        model = mesh.transform
        normal_matrix = model.normal_matrix()
        screen: List[ScreenTriangle] = []
        for index, triangle in enumerate(mesh):
            screen.extend(self.project_triangle(triangle, model, normal_matrix, index))
        return screen

    def project_triangle(
        self,
        triangle: Triangle,
        model: Mat4,
        normal_matrix: Mat4,
        index: int = 0,
    ) -> List[ScreenTriangle]:
        self.stats.submitted += 1
        world = [model.transform_point(v) for v in triangle.vertices]
        if not all(point.is_finite() for point in world):
            raise CorruptMeshError(f"Triangle {index} has non-finite world coordinates")

        if self.cull_backfaces:
            winding = (world[1] - world[0]).cross(world[2] - world[0])
            if winding.dot(self.camera.position - world[0]) <= 0.0:
                self.stats.culled += 1
                return []

        polygon = [_ClipVertex(self._view.transform_point(p), p) for p in world]
        depths = [vertex.depth for vertex in polygon]
        if all(d < self._near for d in depths) or all(d > self._far for d in depths):
            self.stats.rejected += 1
            return []

        if any(d < self._near for d in depths):
            polygon = _clip_near(polygon, self._near)
            self.stats.clipped += 1
            if len(polygon) < 3:
                self.stats.rejected += 1
                return []

        projected = [self._to_screen(vertex) for vertex in polygon]
        if self._outside_frustum(projected):
            self.stats.rejected += 1
            return []

        normal = normal_matrix.transform_direction(triangle.normal).normalized()
        first = projected[0][0]
        result = [
            ScreenTriangle((first, projected[i][0], projected[i + 1][0]), normal, index)
            for i in range(1, len(projected) - 1)
        ]
        self.stats.emitted += len(result)
        return result

    def project_point(self, point: Vec3) -> Optional[Tuple[float, float, float]]:
        """Pixel coordinates and depth of a world-space point, or ``None`` if behind the near plane."""
        view = self._view.transform_point(point)
        if -view.z < self._near:
            return None
        vertex, _, _ = self._to_screen(_ClipVertex(view, point))
        return (vertex.x, vertex.y, vertex.depth)

    def _to_screen(self, vertex: _ClipVertex) -> Tuple[ScreenVertex, float, float]:
        cx, cy, cz, cw = self._projection.transform_homogeneous(vertex.view)
        inv_w = 1.0 / cw
        ndc_x, ndc_y, ndc_z = cx * inv_w, cy * inv_w, cz * inv_w
        screen = ScreenVertex(
            x=(ndc_x + 1.0) * 0.5 * self.width,
            y=(1.0 - ndc_y) * 0.5 * self.height,
            depth=(ndc_z + 1.0) * 0.5,
            inv_w=inv_w,
            world=vertex.world,
        )
        return screen, ndc_x, ndc_y

    @staticmethod
    def _outside_frustum(projected: Sequence[Tuple[ScreenVertex, float, float]]) -> bool:
        xs = [ndc_x for _, ndc_x, _ in projected]
        ys = [ndc_y for _, _, ndc_y in projected]
        return max(xs) < -1.0 or min(xs) > 1.0 or max(ys) < -1.0 or min(ys) > 1.0


def _clip_near(polygon: Sequence[_ClipVertex], near: float) -> List[_ClipVertex]:
    """Sutherland-Hodgman clip of a convex polygon against ``depth >= near``."""

    clipped: List[_ClipVertex] = []
    count = len(polygon)
    for i in range(count):
        a, b = polygon[i], polygon[(i + 1) % count]
        a_in, b_in = a.depth >= near, b.depth >= near
        if a_in and b_in:
            clipped.append(b)
        elif a_in or b_in:
            t = (near - a.depth) / (b.depth - a.depth)
            clipped.append(_ClipVertex(a.view.lerp(b.view, t), a.world.lerp(b.world, t)))
            if b_in:
                clipped.append(b)
    return clipped
