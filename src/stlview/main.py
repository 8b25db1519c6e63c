"""Command line entry point: render an STL mesh to PNG or view it in the terminal."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from typing import Optional, Sequence

from .config import RenderConfig
from .engine import RenderContext, RenderEngine
from .errors import ConfigurationError, CorruptMeshError, FormatError
from .logging_config import setup_logging
from .mesh import Mesh
from .objects import cube_mesh
from .sinks import PngSink, TerminalSink
from .stl import load_mesh
from .terminal import TerminalController
from .viewer import FrameLoop, default_bindings

logger = logging.getLogger(__name__)

EXIT_RUNTIME_ERROR = 1
EXIT_USAGE_ERROR = 2


def parse_arguments(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="stlview",
        description="Render an STL mesh to a PNG file or an interactive terminal window",
    )
    parser.add_argument("mesh", nargs="?", help="STL file to render (default: a demo cube)")
    parser.add_argument("-o", "--output", help="Write a single frame to this PNG file")
    parser.add_argument("--window", action="store_true", help="Open the interactive terminal viewer")
    parser.add_argument("--width", type=int, default=800, help="Image width in pixels (default: 800)")
    parser.add_argument("--height", type=int, default=600, help="Image height in pixels (default: 600)")
    parser.add_argument("--fov", type=float, default=60.0, help="Vertical field of view in degrees (default: 60)")
    parser.add_argument("--near", type=float, default=None, help="Near clip distance (default: from mesh size)")
    parser.add_argument("--far", type=float, default=None, help="Far clip distance (default: from mesh size)")
    parser.add_argument(
        "--camera",
        type=float,
        nargs=3,
        metavar=("X", "Y", "Z"),
        help="Camera position (default: frame the whole mesh)",
    )
    parser.add_argument(
        "--target",
        type=float,
        nargs=3,
        metavar=("X", "Y", "Z"),
        help="Point the camera looks at (default: mesh centre)",
    )
    parser.add_argument(
        "--up",
        type=float,
        nargs=3,
        metavar=("X", "Y", "Z"),
        help="Camera up vector (default: 0 1 0)",
    )
    parser.add_argument(
        "--light",
        type=float,
        nargs=3,
        metavar=("X", "Y", "Z"),
        help="Direction the light travels (default: a headlight)",
    )
    parser.add_argument(
        "--light-intensity",
        type=float,
        default=1.0,
        help="Intensity of the --light source (default: 1)",
    )
    parser.add_argument("--headlight", action="store_true", help="Add a light along the view direction")
    parser.add_argument("--ambient", type=float, default=0.1, help="Ambient light floor (default: 0.1)")
    parser.add_argument(
        "--albedo",
        type=float,
        nargs=3,
        metavar=("R", "G", "B"),
        help="Surface colour, channels in [0, 1] (default: 0.8 0.8 0.8)",
    )
    parser.add_argument(
        "--background",
        type=int,
        nargs=3,
        metavar=("R", "G", "B"),
        help="Background colour, channels in [0, 255] (default: black)",
    )
    parser.add_argument("--cull", action="store_true", help="Skip triangles facing away from the camera")
    parser.add_argument("--fps", type=float, default=20.0, help="Target frames per second (default: 20)")
    parser.add_argument(
        "--frames",
        type=int,
        default=0,
        help="Stop the viewer after this many frames (0 = until quit)",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0, help="More log output (repeatable)")
    parser.add_argument("--log-file", help="Also write log records to this file")
    return parser.parse_args(argv)


def _load_scene(config: RenderConfig) -> Mesh:
    if config.mesh_path is None:
        logger.info("No mesh given, rendering the demo cube")
        return cube_mesh()
    return load_mesh(config.mesh_path)


def _create_engine(config: RenderConfig, width: int, height: int) -> RenderEngine:
    return RenderEngine(
        width,
        height,
        shader=config.build_shader(),
        background=config.background,
        cull_backfaces=config.cull_backfaces,
    )


def render_still(config: RenderConfig, mesh: Mesh) -> None:
    assert config.output_path is not None
    camera = config.build_camera(mesh)
    context = RenderContext(camera, config.build_lights(camera), (mesh,))
    engine = _create_engine(config, config.width, config.height)
    engine.render_to(PngSink(config.output_path), context)


def _run_window_loop(config: RenderConfig, mesh: Mesh) -> None:
    camera = config.build_camera(mesh)
    context = RenderContext(camera, config.build_lights(camera), (mesh,))
    bindings = default_bindings(step=max(mesh.extent(), 1e-3) * 0.05)
    frame_duration = 1.0 / config.fps

    with TerminalController() as terminal:
        width, height = terminal.pixel_size()
        engine = _create_engine(config, width, height)
        sink = TerminalSink(terminal)
        loop = FrameLoop(engine, context, sink, bindings=bindings)

        last_frame_start: float | None = None
        smoothed_fps = config.fps
        try:
            while loop.running:
                frame_start = time.perf_counter()
                if last_frame_start is not None:
                    delta = frame_start - last_frame_start
                    smoothed_fps = smoothed_fps * 0.85 + (1.0 / max(delta, 1e-6)) * 0.15
                last_frame_start = frame_start

                engine.resize(*terminal.pixel_size())
                for key in terminal.poll_keys():
                    if not loop.handle_key(key):
                        break
                if not loop.running:
                    break

                sink.hud = (
                    f"FPS {smoothed_fps:5.1f}",
                    f"FOV {camera.fov_degrees:5.1f}",
                    "Arrows orbit, WASD move, X quits",
                )
                loop.tick()

                if config.frames and loop.frames_presented >= config.frames:
                    break

                sleep_time = frame_duration - (time.perf_counter() - frame_start)
                if sleep_time > 0:
                    time.sleep(sleep_time)
        except KeyboardInterrupt:
            logger.info("Interrupted")

    logger.info(
        "Viewer closed after %d frames (%d skipped)",
        loop.frames_presented,
        loop.frames_skipped,
    )


def run(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_arguments(argv)
    config = RenderConfig.from_arguments(args)
    setup_logging(
        config.log_level,
        config.log_file,
        console_level=logging.ERROR if config.window else None,
    )

    try:
        config.validate()
        mesh = _load_scene(config)
        if config.window:
            _run_window_loop(config, mesh)
        else:
            render_still(config, mesh)
    except (ConfigurationError, FormatError) as exc:
        logger.debug("Aborting", exc_info=True)
        sys.stderr.write(f"stlview: error: {exc}\n")
        return EXIT_USAGE_ERROR
    except (CorruptMeshError, OSError) as exc:
        logger.debug("Aborting", exc_info=True)
        sys.stderr.write(f"stlview: error: {exc}\n")
        return EXIT_RUNTIME_ERROR
    return 0


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
