import unittest

from stlview.camera import ScreenTriangle, ScreenVertex
from stlview.framebuffer import FrameBuffer
from stlview.raster import Fragment, rasterize, rasterize_triangle
from stlview.vecmath import Vec3

NORMAL = Vec3(0.0, 0.0, 1.0)


def _vertex(x: float, y: float, depth: float = 0.5) -> ScreenVertex:
    return ScreenVertex(x, y, depth, 1.0, Vec3(x, y, 0.0))


def _triangle(*points, depth: float = 0.5) -> ScreenTriangle:
    a, b, c = (_vertex(x, y, depth) for x, y in points)
    return ScreenTriangle((a, b, c), NORMAL)


def _solid(color):
    def shade(fragment: Fragment):
        return color

    return shade


def _covered(fb: FrameBuffer):
    return {(x, y) for y in range(fb.height) for x in range(fb.width) if not fb.is_background(x, y)}


class RasterizerTests(unittest.TestCase):
    def test_shared_edge_is_covered_exactly_once(self) -> None:
        first = _triangle((0, 0), (4, 0), (4, 4))
        second = _triangle((0, 0), (4, 4), (0, 4))
        fb_first, fb_second = FrameBuffer(6, 6), FrameBuffer(6, 6)
        rasterize_triangle(fb_first, first, _solid((255, 0, 0)))
        rasterize_triangle(fb_second, second, _solid((255, 0, 0)))

        a, b = _covered(fb_first), _covered(fb_second)
        self.assertEqual(a & b, set())
        self.assertEqual(a | b, {(x, y) for x in range(4) for y in range(4)})

    def test_winding_does_not_matter(self) -> None:
        fb_ccw, fb_cw = FrameBuffer(8, 8), FrameBuffer(8, 8)
        rasterize_triangle(fb_ccw, _triangle((1, 1), (7, 1), (1, 7)), _solid((9, 9, 9)))
        rasterize_triangle(fb_cw, _triangle((1, 1), (1, 7), (7, 1)), _solid((9, 9, 9)))
        self.assertEqual(fb_ccw.rows(), fb_cw.rows())
        self.assertGreater(fb_ccw.coverage(), 0)

    def test_depth_test_is_independent_of_order(self) -> None:
        near = _triangle((0, 0), (8, 0), (0, 8), depth=0.3)
        far = _triangle((1, 1), (8, 1), (8, 8), depth=0.6)

        def shade(fragment: Fragment):
            return (255, 0, 0) if fragment.depth < 0.5 else (0, 0, 255)

        forward, backward = FrameBuffer(8, 8), FrameBuffer(8, 8)
        rasterize(forward, [near, far], shade)
        rasterize(backward, [far, near], shade)
        self.assertEqual(forward.rows(), backward.rows())
        self.assertEqual(forward.color_at(2, 2), (255, 0, 0))
        self.assertEqual(forward.color_at(7, 5), (0, 0, 255))

    def test_degenerate_triangle_draws_nothing(self) -> None:
        fb = FrameBuffer(8, 8)
        self.assertEqual(rasterize_triangle(fb, _triangle((0, 0), (4, 4), (8, 8)), _solid((1, 1, 1))), 0)
        self.assertEqual(fb.coverage(), 0)

    def test_fragments_outside_depth_range_are_dropped(self) -> None:
        fb = FrameBuffer(8, 8)
        written = rasterize_triangle(fb, _triangle((0, 0), (8, 0), (0, 8), depth=1.5), _solid((1, 1, 1)))
        self.assertEqual(written, 0)

    def test_triangle_partly_off_screen_is_clipped_to_frame(self) -> None:
        fb = FrameBuffer(8, 8)
        written = rasterize_triangle(fb, _triangle((-20, -20), (60, -20), (-20, 60)), _solid((1, 1, 1)))
        self.assertEqual(written, 64)

    def test_fragment_carries_interpolated_position(self) -> None:
        seen = []

        def shade(fragment: Fragment):
            seen.append(fragment)
            return (0, 0, 0)

        fb = FrameBuffer(4, 4)
        rasterize_triangle(fb, _triangle((0, 0), (4, 0), (0, 4)), shade)
        fragment = next(f for f in seen if (f.x, f.y) == (0, 0))
        self.assertTrue(fragment.position.almost_equal(Vec3(0.5, 0.5, 0.0)))
        self.assertEqual(fragment.normal, NORMAL)


if __name__ == "__main__":
    unittest.main()
