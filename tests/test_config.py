import logging
import unittest

from stlview.config import LightSpec, RenderConfig
from stlview.errors import ConfigurationError
from stlview.main import parse_arguments
from stlview.objects import cube_mesh
from stlview.vecmath import Vec3


class RenderConfigTests(unittest.TestCase):
    def _config(self, **overrides) -> RenderConfig:
        values = {"output_path": "out.png"}
        values.update(overrides)
        return RenderConfig(**values)

    def test_defaults_are_valid(self) -> None:
        self.assertIsInstance(self._config().validate(), RenderConfig)

    def test_invalid_settings_are_rejected(self) -> None:
        for overrides in (
            {"width": 0},
            {"fov_degrees": 180.0},
            {"near": -1.0},
            {"near": 10.0, "far": 1.0},
            {"ambient": -0.5},
            {"albedo": (0.5, 2.0, 0.5)},
            {"background": (0, 0, 300)},
            {"fps": 0.0},
            {"frames": -1},
            {"lights": [LightSpec((0.0, 0.0, 0.0))]},
            {"camera_up": (0.0, 0.0, 0.0)},
            {"output_path": None},
        ):
            with self.subTest(**{key: repr(value) for key, value in overrides.items()}):
                with self.assertRaises(ConfigurationError):
                    self._config(**overrides).validate()

    def test_window_mode_needs_no_output(self) -> None:
        self._config(output_path=None, window=True).validate()

    def test_camera_frames_mesh_by_default(self) -> None:
        camera = self._config().build_camera(cube_mesh())
        self.assertTrue(camera.target.almost_equal(Vec3(0.0, 0.0, 0.0)))

    def test_explicit_camera_position(self) -> None:
        camera = self._config(camera_position=(0.0, 0.0, 5.0)).build_camera(cube_mesh())
        self.assertEqual(camera.position, Vec3(0.0, 0.0, 5.0))
        self.assertTrue(camera.forward.almost_equal(Vec3(0.0, 0.0, -1.0)))
        self.assertLess(camera.near, 4.5)
        self.assertGreater(camera.far, 5.5)

    def test_headlight_used_when_no_lights_given(self) -> None:
        config = self._config()
        camera = config.build_camera(cube_mesh())
        lights = config.build_lights(camera)
        self.assertEqual(len(lights), 1)
        self.assertTrue(lights[0].direction.almost_equal(camera.forward))

    def test_explicit_lights_plus_headlight(self) -> None:
        config = self._config(lights=[LightSpec((0.0, -1.0, 0.0), 0.5)], headlight=True)
        lights = config.build_lights(config.build_camera(cube_mesh()))
        self.assertEqual(len(lights), 2)
        self.assertEqual(lights[0].intensity, 0.5)

    def test_from_arguments(self) -> None:
        args = parse_arguments(
            [
                "part.stl",
                "-o",
                "part.png",
                "--light",
                "0",
                "0",
                "-1",
                "--background",
                "10",
                "20",
                "30",
                "--camera",
                "1",
                "2",
                "3",
                "-vv",
            ]
        )
        config = RenderConfig.from_arguments(args).validate()
        self.assertEqual(config.mesh_path, "part.stl")
        self.assertEqual(config.output_path, "part.png")
        self.assertEqual(config.lights[0].direction, (0.0, 0.0, -1.0))
        self.assertEqual(config.background, (10, 20, 30))
        self.assertEqual(config.camera_position, (1.0, 2.0, 3.0))
        self.assertEqual(config.log_level, logging.DEBUG)
        self.assertFalse(config.window)


if __name__ == "__main__":
    unittest.main()
