import math
import unittest

from stlview.vecmath import Mat4, Vec3, compose


class Vec3Tests(unittest.TestCase):
    def test_arithmetic(self) -> None:
        a = Vec3(1.0, 2.0, 3.0)
        b = Vec3(4.0, 5.0, 6.0)
        self.assertEqual(a + b, Vec3(5.0, 7.0, 9.0))
        self.assertEqual(b - a, Vec3(3.0, 3.0, 3.0))
        self.assertEqual(2 * a, Vec3(2.0, 4.0, 6.0))
        self.assertEqual(a.dot(b), 32.0)
        self.assertEqual(Vec3(1.0, 0.0, 0.0).cross(Vec3(0.0, 1.0, 0.0)), Vec3(0.0, 0.0, 1.0))

    def test_normalisation_safe(self) -> None:
        zero = Vec3(0.0, 0.0, 0.0).normalized()
        self.assertEqual(zero, Vec3(0.0, 0.0, 0.0))
        self.assertTrue(zero.is_zero())

        unit = Vec3(2.0, -3.0, 6.0).normalized()
        self.assertAlmostEqual(unit.length(), 1.0)

    def test_division_by_zero_raises(self) -> None:
        with self.assertRaises(ZeroDivisionError):
            Vec3(1.0, 1.0, 1.0) / 0.0

    def test_is_finite(self) -> None:
        self.assertTrue(Vec3(1.0, 2.0, 3.0).is_finite())
        self.assertFalse(Vec3(math.nan, 0.0, 0.0).is_finite())


class Mat4Tests(unittest.TestCase):
    def test_identity_is_neutral(self) -> None:
        m = Mat4.translation(Vec3(1.0, 2.0, 3.0))
        self.assertTrue((Mat4.identity() @ m).almost_equal(m))
        self.assertTrue((m @ Mat4.identity()).almost_equal(m))

    def test_points_translate_directions_do_not(self) -> None:
        m = Mat4.translation(Vec3(1.0, 2.0, 3.0))
        self.assertEqual(m.transform_point(Vec3(0.0, 0.0, 0.0)), Vec3(1.0, 2.0, 3.0))
        self.assertEqual(m.transform_direction(Vec3(0.0, 0.0, 1.0)), Vec3(0.0, 0.0, 1.0))

    def test_rotation_z_quarter_turn(self) -> None:
        rotated = Mat4.rotation_z(math.pi / 2).transform_point(Vec3(1.0, 0.0, 0.0))
        self.assertTrue(rotated.almost_equal(Vec3(0.0, 1.0, 0.0)))

    def test_rotation_axis_matches_principal_rotation(self) -> None:
        angle = 0.7
        self.assertTrue(
            Mat4.rotation_axis(Vec3(0.0, 2.0, 0.0), angle).almost_equal(Mat4.rotation_y(angle))
        )
        self.assertTrue(Mat4.rotation_axis(Vec3(0.0, 0.0, 0.0), angle).almost_equal(Mat4.identity()))

    def test_compose_applies_rightmost_first(self) -> None:
        m = compose(Mat4.translation(Vec3(1.0, 0.0, 0.0)), Mat4.scaling(Vec3(2.0, 2.0, 2.0)))
        self.assertEqual(m.transform_point(Vec3(1.0, 0.0, 0.0)), Vec3(3.0, 0.0, 0.0))

    def test_normal_matrix_keeps_normals_perpendicular(self) -> None:
        m = Mat4.scaling(Vec3(2.0, 1.0, 1.0))
        normal = m.normal_matrix().transform_direction(Vec3(1.0, 1.0, 0.0))
        tangent = m.transform_direction(Vec3(1.0, -1.0, 0.0))
        self.assertAlmostEqual(normal.dot(tangent), 0.0)

    def test_normal_matrix_keeps_mirrored_normals_outward(self) -> None:
        m = Mat4.scaling(Vec3(-1.0, 1.0, 1.0))
        normal = m.normal_matrix().transform_direction(Vec3(1.0, 0.0, 0.0)).normalized()
        self.assertTrue(normal.almost_equal(Vec3(-1.0, 0.0, 0.0)))

    def test_perspective_rejects_bad_lens(self) -> None:
        with self.assertRaises(ValueError):
            Mat4.perspective(0.0, 1.0, 0.1, 10.0)
        with self.assertRaises(ValueError):
            Mat4.perspective(60.0, 1.0, 1.0, 1.0)

    def test_perspective_maps_clip_planes_to_ndc_bounds(self) -> None:
        m = Mat4.perspective(90.0, 1.0, 1.0, 10.0)
        _, _, z, w = m.transform_homogeneous(Vec3(0.0, 0.0, -1.0))
        self.assertAlmostEqual(z / w, -1.0)
        _, _, z, w = m.transform_homogeneous(Vec3(0.0, 0.0, -10.0))
        self.assertAlmostEqual(z / w, 1.0)


if __name__ == "__main__":
    unittest.main()
