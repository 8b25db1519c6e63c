"""Predefined mesh helpers."""

from __future__ import annotations

from typing import List

from .mesh import Mesh, Triangle
from .vecmath import Vec3


def cube_mesh(size: float = 1.0) -> Mesh:
    """Return a cube centred at the origin with outward-facing normals."""

    half = size / 2.0

    vertices = {
        "lbf": Vec3(-half, -half, half),  # left-bottom-front
        "rbf": Vec3(half, -half, half),
        "rtf": Vec3(half, half, half),
        "ltf": Vec3(-half, half, half),
        "lbb": Vec3(-half, -half, -half),  # left-bottom-back
        "rbb": Vec3(half, -half, -half),
        "rtb": Vec3(half, half, -half),
        "ltb": Vec3(-half, half, -half),
    }

    # Counter-clockwise seen from outside, so the winding normal points outwards
    quads = (
        ("lbf", "rbf", "rtf", "ltf"),  # front (+z, towards the default camera)
        ("rbb", "lbb", "ltb", "rtb"),  # back
        ("lbb", "lbf", "ltf", "ltb"),  # left
        ("rbf", "rbb", "rtb", "rtf"),  # right
        ("ltf", "rtf", "rtb", "ltb"),  # top
        ("lbb", "rbb", "rbf", "lbf"),  # bottom
    )

    triangles: List[Triangle] = []
    for a, b, c, d in quads:
        triangles.append(Triangle.from_points(vertices[a], vertices[b], vertices[c]))
        triangles.append(Triangle.from_points(vertices[a], vertices[c], vertices[d]))

    return Mesh(triangles, name="cube")
