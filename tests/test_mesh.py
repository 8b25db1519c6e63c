import unittest

from stlview.mesh import Mesh, Triangle
from stlview.vecmath import Vec3

ORIGIN = Vec3(0.0, 0.0, 0.0)


class TriangleTests(unittest.TestCase):
    def test_normal_from_winding_has_unit_length(self) -> None:
        triangle = Triangle.from_points(ORIGIN, Vec3(3.0, 0.0, 0.0), Vec3(0.0, 5.0, 0.0))
        self.assertAlmostEqual(triangle.normal.length(), 1.0)
        self.assertTrue(triangle.normal.almost_equal(Vec3(0.0, 0.0, 1.0)))
        self.assertAlmostEqual(triangle.area(), 7.5)
        self.assertFalse(triangle.degenerate)

    def test_recorded_normal_is_normalized(self) -> None:
        triangle = Triangle.from_facet(
            Vec3(0.0, 0.0, 4.0), ORIGIN, Vec3(1.0, 0.0, 0.0), Vec3(0.0, 1.0, 0.0)
        )
        self.assertEqual(triangle.normal, Vec3(0.0, 0.0, 1.0))

    def test_degenerate_triangle_is_flagged(self) -> None:
        triangle = Triangle.from_points(ORIGIN, Vec3(1.0, 1.0, 1.0), Vec3(2.0, 2.0, 2.0))
        self.assertTrue(triangle.degenerate)
        self.assertTrue(triangle.normal.is_zero())

    def test_repeated_vertex_is_degenerate(self) -> None:
        triangle = Triangle.from_points(ORIGIN, ORIGIN, Vec3(1.0, 0.0, 0.0))
        self.assertTrue(triangle.degenerate)

    def test_tiny_triangle_keeps_a_unit_normal(self) -> None:
        triangle = Triangle.from_points(ORIGIN, Vec3(1e-7, 0.0, 0.0), Vec3(0.0, 1e-7, 0.0))
        self.assertFalse(triangle.degenerate)
        self.assertAlmostEqual(triangle.normal.length(), 1.0)
        self.assertTrue(triangle.normal.almost_equal(Vec3(0.0, 0.0, 1.0)))


class MeshTests(unittest.TestCase):
    def test_empty_mesh_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            Mesh([])

    def test_degenerate_count(self) -> None:
        good = Triangle.from_points(ORIGIN, Vec3(1.0, 0.0, 0.0), Vec3(0.0, 1.0, 0.0))
        flat = Triangle.from_points(ORIGIN, Vec3(1.0, 0.0, 0.0), Vec3(2.0, 0.0, 0.0))
        self.assertEqual(Mesh([good, flat, good]).degenerate_count, 1)

    def test_placement_moves_world_bounds_only(self) -> None:
        mesh = Mesh([Triangle.from_points(ORIGIN, Vec3(1.0, 0.0, 0.0), Vec3(0.0, 1.0, 0.0))])
        mesh.place(translation=Vec3(10.0, 0.0, 0.0), scale=Vec3(2.0, 2.0, 2.0))
        low, high = mesh.world_bounds()
        self.assertTrue(low.almost_equal(Vec3(10.0, 0.0, 0.0)))
        self.assertTrue(high.almost_equal(Vec3(12.0, 2.0, 0.0)))
        self.assertEqual(mesh.bounds()[1], Vec3(1.0, 1.0, 0.0))
        self.assertTrue(mesh.center().almost_equal(Vec3(11.0, 1.0, 0.0)))


if __name__ == "__main__":
    unittest.main()
