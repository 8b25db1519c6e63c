"""Vector and matrix math used throughout the render pipeline."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator, Tuple

EPSILON = 1e-12

Row = Tuple[float, float, float, float]


@dataclass(frozen=True, slots=True)
class Vec3:
    """Lightweight immutable 3D vector."""

    x: float
    y: float
    z: float

    def __add__(self, other: "Vec3") -> "Vec3":
        return Vec3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "Vec3") -> "Vec3":
        return Vec3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, scalar: float) -> "Vec3":
        if not isinstance(scalar, (int, float)):
            raise TypeError("Vec3 can only be multiplied by a scalar")
        return Vec3(self.x * scalar, self.y * scalar, self.z * scalar)

    def __rmul__(self, scalar: float) -> "Vec3":
        return self.__mul__(scalar)

    def __truediv__(self, scalar: float) -> "Vec3":
        if scalar == 0:
            raise ZeroDivisionError("Division by zero in Vec3")
        return Vec3(self.x / scalar, self.y / scalar, self.z / scalar)

    def __neg__(self) -> "Vec3":
        return Vec3(-self.x, -self.y, -self.z)

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z

    def dot(self, other: "Vec3") -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: "Vec3") -> "Vec3":
        return Vec3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def length(self) -> float:
        return math.sqrt(self.dot(self))

    def length_squared(self) -> float:
        return self.dot(self)

    def is_zero(self, tolerance: float = EPSILON) -> bool:
        return self.length() <= tolerance

    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y) and math.isfinite(self.z)

    def normalized(self) -> "Vec3":
        """Return the unit vector pointing the same way.

        A vector whose magnitude is at most ``EPSILON`` normalizes to the zero
        vector instead of raising; use :meth:`is_zero` on the result to detect
        that case.
        """
        length = self.length()
        if length <= EPSILON:
            return Vec3(0.0, 0.0, 0.0)
        return self / length

    def lerp(self, other: "Vec3", t: float) -> "Vec3":
        return Vec3(
            self.x + (other.x - self.x) * t,
            self.y + (other.y - self.y) * t,
            self.z + (other.z - self.z) * t,
        )

    def almost_equal(self, other: "Vec3", tolerance: float = 1e-6) -> bool:
        return (
            abs(self.x - other.x) <= tolerance
            and abs(self.y - other.y) <= tolerance
            and abs(self.z - other.z) <= tolerance
        )


ZERO = Vec3(0.0, 0.0, 0.0)


@dataclass(frozen=True, slots=True)
class Mat4:
    """Immutable 4x4 matrix stored row-major; vectors are columns."""

    rows: Tuple[Row, Row, Row, Row]

    @classmethod
    def identity(cls) -> "Mat4":
        return cls(
            (
                (1.0, 0.0, 0.0, 0.0),
                (0.0, 1.0, 0.0, 0.0),
                (0.0, 0.0, 1.0, 0.0),
                (0.0, 0.0, 0.0, 1.0),
            )
        )

    @classmethod
    def translation(cls, offset: Vec3) -> "Mat4":
        return cls(
            (
                (1.0, 0.0, 0.0, offset.x),
                (0.0, 1.0, 0.0, offset.y),
                (0.0, 0.0, 1.0, offset.z),
                (0.0, 0.0, 0.0, 1.0),
            )
        )

    @classmethod
    def scaling(cls, factors: Vec3) -> "Mat4":
        return cls(
            (
                (factors.x, 0.0, 0.0, 0.0),
                (0.0, factors.y, 0.0, 0.0),
                (0.0, 0.0, factors.z, 0.0),
                (0.0, 0.0, 0.0, 1.0),
            )
        )

    @classmethod
    def rotation_x(cls, radians: float) -> "Mat4":
        c, s = math.cos(radians), math.sin(radians)
        return cls(
            (
                (1.0, 0.0, 0.0, 0.0),
                (0.0, c, -s, 0.0),
                (0.0, s, c, 0.0),
                (0.0, 0.0, 0.0, 1.0),
            )
        )

    @classmethod
    def rotation_y(cls, radians: float) -> "Mat4":
        c, s = math.cos(radians), math.sin(radians)
        return cls(
            (
                (c, 0.0, s, 0.0),
                (0.0, 1.0, 0.0, 0.0),
                (-s, 0.0, c, 0.0),
                (0.0, 0.0, 0.0, 1.0),
            )
        )

    @classmethod
    def rotation_z(cls, radians: float) -> "Mat4":
        c, s = math.cos(radians), math.sin(radians)
        return cls(
            (
                (c, -s, 0.0, 0.0),
                (s, c, 0.0, 0.0),
                (0.0, 0.0, 1.0, 0.0),
                (0.0, 0.0, 0.0, 1.0),
            )
        )

    @classmethod
    def rotation_axis(cls, axis: Vec3, radians: float) -> "Mat4":
        """Rotation by ``radians`` about ``axis`` (right-hand rule).

        A zero axis yields the identity.
        """
        unit = axis.normalized()
        if unit.is_zero():
            return cls.identity()
        x, y, z = unit.x, unit.y, unit.z
        c, s = math.cos(radians), math.sin(radians)
        t = 1.0 - c
        return cls(
            (
                (t * x * x + c, t * x * y - s * z, t * x * z + s * y, 0.0),
                (t * x * y + s * z, t * y * y + c, t * y * z - s * x, 0.0),
                (t * x * z - s * y, t * y * z + s * x, t * z * z + c, 0.0),
                (0.0, 0.0, 0.0, 1.0),
            )
        )

    @classmethod
    def perspective(cls, fov_degrees: float, aspect: float, near: float, far: float) -> "Mat4":
        """OpenGL-style projection: view space looks down -Z, NDC z in [-1, 1]."""
        if not 0.0 < fov_degrees < 180.0:
            raise ValueError("Field of view must lie strictly between 0 and 180 degrees")
        if aspect <= 0.0:
            raise ValueError("Aspect ratio must be positive")
        if near <= 0.0 or far <= near:
            raise ValueError("Clip planes require 0 < near < far")
        f = 1.0 / math.tan(math.radians(fov_degrees) / 2.0)
        depth = near - far
        return cls(
            (
                (f / aspect, 0.0, 0.0, 0.0),
                (0.0, f, 0.0, 0.0),
                (0.0, 0.0, (far + near) / depth, (2.0 * far * near) / depth),
                (0.0, 0.0, -1.0, 0.0),
            )
        )

    @classmethod
    def look_at(cls, eye: Vec3, forward: Vec3, up: Vec3) -> "Mat4":
        """View matrix for an eye looking along ``forward``.

        ``forward`` and ``up`` must already be orthonormal.
        """
        right = forward.cross(up)
        return cls(
            (
                (right.x, right.y, right.z, -right.dot(eye)),
                (up.x, up.y, up.z, -up.dot(eye)),
                (-forward.x, -forward.y, -forward.z, forward.dot(eye)),
                (0.0, 0.0, 0.0, 1.0),
            )
        )

    def __matmul__(self, other: "Mat4") -> "Mat4":
        if not isinstance(other, Mat4):
            return NotImplemented
        a, b = self.rows, other.rows
        return Mat4(
            tuple(  # type: ignore[arg-type]
                tuple(
                    a[r][0] * b[0][c] + a[r][1] * b[1][c] + a[r][2] * b[2][c] + a[r][3] * b[3][c]
                    for c in range(4)
                )
                for r in range(4)
            )
        )

    def transform_homogeneous(self, point: Vec3, w: float = 1.0) -> Tuple[float, float, float, float]:
        m = self.rows
        x, y, z = point.x, point.y, point.z
        return (
            m[0][0] * x + m[0][1] * y + m[0][2] * z + m[0][3] * w,
            m[1][0] * x + m[1][1] * y + m[1][2] * z + m[1][3] * w,
            m[2][0] * x + m[2][1] * y + m[2][2] * z + m[2][3] * w,
            m[3][0] * x + m[3][1] * y + m[3][2] * z + m[3][3] * w,
        )

    def transform_point(self, point: Vec3) -> Vec3:
        x, y, z, _ = self.transform_homogeneous(point, 1.0)
        return Vec3(x, y, z)

    def transform_direction(self, direction: Vec3) -> Vec3:
        x, y, z, _ = self.transform_homogeneous(direction, 0.0)
        return Vec3(x, y, z)

    def determinant3(self) -> float:
        m = self.rows
        return (
            m[0][0] * (m[1][1] * m[2][2] - m[1][2] * m[2][1])
            - m[0][1] * (m[1][0] * m[2][2] - m[1][2] * m[2][0])
            + m[0][2] * (m[1][0] * m[2][1] - m[1][1] * m[2][0])
        )

    def normal_matrix(self) -> "Mat4":
        """Matrix that maps surface normals through this transform.

        This is the cofactor matrix of the upper 3x3 block, which equals the
        inverse transpose scaled by the determinant. The sign is corrected for
        mirroring transforms, so only a renormalization is needed afterwards.
        A singular block gives a matrix that collapses normals to zero.
        """
        m = self.rows
        cof = (
            (
                m[1][1] * m[2][2] - m[1][2] * m[2][1],
                m[1][2] * m[2][0] - m[1][0] * m[2][2],
                m[1][0] * m[2][1] - m[1][1] * m[2][0],
            ),
            (
                m[0][2] * m[2][1] - m[0][1] * m[2][2],
                m[0][0] * m[2][2] - m[0][2] * m[2][0],
                m[0][1] * m[2][0] - m[0][0] * m[2][1],
            ),
            (
                m[0][1] * m[1][2] - m[0][2] * m[1][1],
                m[0][2] * m[1][0] - m[0][0] * m[1][2],
                m[0][0] * m[1][1] - m[0][1] * m[1][0],
            ),
        )
        sign = -1.0 if self.determinant3() < 0.0 else 1.0
        return Mat4(
            tuple(  # type: ignore[arg-type]
                (cof[r][0] * sign, cof[r][1] * sign, cof[r][2] * sign, 0.0) for r in range(3)
            )
            + ((0.0, 0.0, 0.0, 1.0),)
        )

    def almost_equal(self, other: "Mat4", tolerance: float = 1e-9) -> bool:
        return all(
            abs(a - b) <= tolerance
            for row_a, row_b in zip(self.rows, other.rows)
            for a, b in zip(row_a, row_b)
        )


def compose(*matrices: Mat4) -> Mat4:
    """Compose matrices so the right-most one is applied first."""

    result = Mat4.identity()
    for matrix in matrices:
        result = result @ matrix
    return result
