import math
import unittest

from stlview.camera import Camera, CameraDelta
from stlview.errors import ConfigurationError
from stlview.objects import cube_mesh
from stlview.vecmath import Vec3

ORIGIN = Vec3(0.0, 0.0, 0.0)


class CameraTests(unittest.TestCase):
    def assertOrthonormal(self, camera: Camera) -> None:
        for axis in (camera.forward, camera.up, camera.right):
            self.assertAlmostEqual(axis.length(), 1.0, places=9)
        self.assertAlmostEqual(camera.forward.dot(camera.up), 0.0, places=9)
        self.assertAlmostEqual(camera.forward.dot(camera.right), 0.0, places=9)
        self.assertAlmostEqual(camera.up.dot(camera.right), 0.0, places=9)

    def test_invalid_lens_is_rejected(self) -> None:
        for kwargs in (
            {"fov_degrees": 0.0},
            {"fov_degrees": 180.0},
            {"near": 0.0},
            {"near": 5.0, "far": 5.0},
            {"near": 5.0, "far": 1.0},
        ):
            with self.subTest(**kwargs):
                with self.assertRaises(ConfigurationError):
                    Camera(ORIGIN, **kwargs)

    def test_degenerate_orientation_is_rejected(self) -> None:
        with self.assertRaises(ConfigurationError):
            Camera(ORIGIN, forward=Vec3(0.0, 1.0, 0.0), up=Vec3(0.0, 1.0, 0.0))
        with self.assertRaises(ConfigurationError):
            Camera.looking_at(ORIGIN, ORIGIN)

    def test_basis_stays_orthonormal_after_many_rotations(self) -> None:
        camera = Camera.looking_at(Vec3(1.0, 2.0, 5.0), ORIGIN)
        for step in range(200):
            camera.rotate(yaw=0.11, pitch=0.07 * (-1) ** step, roll=0.05)
            camera.orbit(yaw=0.03, pitch=0.02)
        self.assertOrthonormal(camera)

    def test_orbit_keeps_distance_to_pivot(self) -> None:
        camera = Camera.looking_at(Vec3(0.0, 0.0, 5.0), ORIGIN)
        camera.orbit(yaw=math.pi / 2)
        self.assertTrue(camera.position.almost_equal(Vec3(5.0, 0.0, 0.0)))
        self.assertTrue(camera.target.almost_equal(ORIGIN))
        self.assertTrue(camera.forward.almost_equal(Vec3(-1.0, 0.0, 0.0)))

    def test_steps_move_in_camera_frame(self) -> None:
        camera = Camera.looking_at(Vec3(0.0, 0.0, 5.0), ORIGIN)
        camera.step_forward(1.0)
        self.assertTrue(camera.position.almost_equal(Vec3(0.0, 0.0, 4.0)))
        camera.step_right(2.0)
        self.assertTrue(camera.position.almost_equal(Vec3(2.0, 0.0, 4.0)))
        camera.step_left(2.0)
        camera.step_back(1.0)
        self.assertTrue(camera.position.almost_equal(Vec3(0.0, 0.0, 5.0)))

    def test_apply_delta_clamps_fov(self) -> None:
        camera = Camera(ORIGIN, fov_degrees=60.0)
        camera.apply(CameraDelta(fov_degrees=500.0))
        self.assertEqual(camera.fov_degrees, 170.0)
        camera.apply(CameraDelta(fov_degrees=-500.0))
        self.assertEqual(camera.fov_degrees, 5.0)

    def test_set_fov_validates(self) -> None:
        camera = Camera(ORIGIN)
        with self.assertRaises(ConfigurationError):
            camera.set_fov(-10.0)

    def test_framing_centres_mesh(self) -> None:
        mesh = cube_mesh(2.0)
        mesh.place(translation=Vec3(3.0, 0.0, 0.0))
        camera = Camera.framing(mesh)
        self.assertTrue(camera.target.almost_equal(Vec3(3.0, 0.0, 0.0)))
        distance = (camera.position - camera.target).length()
        self.assertAlmostEqual(distance, mesh.extent())
        self.assertLess(camera.near, distance - mesh.extent() / 2)
        self.assertGreater(camera.far, distance + mesh.extent() / 2)

    def test_look_at_retargets(self) -> None:
        camera = Camera(Vec3(0.0, 0.0, 5.0))
        camera.look_at(Vec3(5.0, 0.0, 5.0))
        self.assertTrue(camera.forward.almost_equal(Vec3(1.0, 0.0, 0.0)))
        self.assertOrthonormal(camera)

    def test_view_matrix_puts_target_on_negative_z(self) -> None:
        camera = Camera.looking_at(Vec3(4.0, 3.0, 2.0), Vec3(1.0, 1.0, 1.0))
        view = camera.view_matrix().transform_point(Vec3(1.0, 1.0, 1.0))
        self.assertAlmostEqual(view.x, 0.0)
        self.assertAlmostEqual(view.y, 0.0)
        self.assertAlmostEqual(view.z, -camera.target_distance)


if __name__ == "__main__":
    unittest.main()
