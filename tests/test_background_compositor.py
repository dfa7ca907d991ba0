"""
Tests for the background compositor.

Tests cover:
- Precondition on the background-removal result
- Gradient rendering geometry
- Cover-fit image backgrounds
- Alpha blending of the foreground
"""

import unittest

import numpy as np

from PhotoAI_Libs.errors import PreconditionFailed
from PhotoAI_Libs.ImageEditingLib.background_compositor import BackgroundCompositor, composite
from PhotoAI_Libs.ImageEditingLib.backgrounds import GradientBackground, ImageBackground
from PhotoAI_Libs.RasterLib.raster_buffer import RasterBuffer


RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)


def assert_close(test, actual, expected, tolerance=3):
    for a, e in zip(actual, expected):
        test.assertLessEqual(abs(a - e), tolerance, f"{actual} != {expected}")


def three_band_image(width=300, height=100):
    array = np.zeros((height, width, 4), dtype=np.uint8)
    array[..., 3] = 255
    third = width // 3
    array[:, :third, 0] = 255
    array[:, third:2 * third, 1] = 255
    array[:, 2 * third:, 2] = 255
    return RasterBuffer.from_array(array)


class TestCompositePrecondition(unittest.TestCase):
    """Test composite() without a background-removal result."""

    def test_none_foreground(self):
        """Test compositing without a cutout raises PreconditionFailed."""
        with self.assertRaises(PreconditionFailed) as ctx:
            composite(None, GradientBackground(stops=(RED, BLUE)))
        self.assertIn("background removal required first", str(ctx.exception))

    def test_empty_foreground(self):
        """Test compositing an empty cutout raises PreconditionFailed."""
        with self.assertRaises(PreconditionFailed):
            composite(RasterBuffer.empty(), GradientBackground(stops=(RED, BLUE)))

    def test_unsupported_background(self):
        """Test that a CSS string is rejected as a background."""
        with self.assertRaises(TypeError):
            composite(RasterBuffer.new(4, 4, (0, 0, 0, 0)), "linear-gradient(#fff, #000)")


class TestRenderGradient(unittest.TestCase):
    """Test gradient geometry."""

    def test_left_to_right(self):
        """Test left to right."""
        image = BackgroundCompositor.render_gradient(GradientBackground(stops=(RED, BLUE), angle=90), (100, 10))

        assert_close(self, image.getpixel((0, 5)), RED)
        assert_close(self, image.getpixel((99, 5)), BLUE)
        assert_close(self, image.getpixel((0, 0)), image.getpixel((0, 9)), tolerance=1)

    def test_default_angle_runs_top_left_to_bottom_right(self):
        """Test default angle runs top left to bottom right."""
        image = BackgroundCompositor.render_gradient(GradientBackground(stops=(RED, BLUE)), (60, 40))

        assert_close(self, image.getpixel((0, 0)), RED)
        assert_close(self, image.getpixel((59, 39)), BLUE)

    def test_zero_degrees_runs_bottom_to_top(self):
        """Test zero degrees runs bottom to top."""
        image = BackgroundCompositor.render_gradient(GradientBackground(stops=(RED, BLUE), angle=0), (10, 100))

        assert_close(self, image.getpixel((5, 99)), RED)
        assert_close(self, image.getpixel((5, 0)), BLUE)

    def test_size(self):
        """Test gradient image size and mode."""
        image = BackgroundCompositor.render_gradient(GradientBackground(stops=(RED, BLUE)), (7, 3))

        self.assertEqual(image.size, (7, 3))
        self.assertEqual(image.mode, "RGBA")


class TestComposite(unittest.TestCase):
    """Test merging a foreground over a fill."""

    def setUp(self):
        self.gradient = GradientBackground(stops=(BLUE, BLUE))

    def test_transparent_foreground_shows_fill(self):
        """Test transparent foreground shows fill."""
        result = composite(RasterBuffer.new(20, 10, (0, 0, 0, 0)), self.gradient)

        self.assertEqual(result.size, (20, 10))
        self.assertEqual(result.pixel(3, 3), BLUE)

    def test_opaque_foreground_replaces_fill(self):
        """Test opaque foreground replaces fill."""
        result = composite(RasterBuffer.new(20, 10, (10, 200, 30, 255)), self.gradient)

        self.assertEqual(result.pixel(19, 9), (10, 200, 30, 255))

    def test_semi_transparent_foreground_blends(self):
        """Test semi transparent foreground blends."""
        result = composite(RasterBuffer.new(4, 4, (255, 0, 0, 128)), self.gradient)

        assert_close(self, result.pixel(1, 1), (128, 0, 127, 255), tolerance=1)

    def test_result_is_opaque_over_opaque_fill(self):
        """Test result is opaque over opaque fill."""
        foreground = RasterBuffer.new(8, 8, (0, 0, 0, 0))
        array = foreground.to_array().copy()
        array[2:6, 2:6] = (250, 250, 250, 255)

        fill = GradientBackground(stops=((20, 40, 60), (200, 180, 160)))

        result = composite(RasterBuffer.from_array(array), fill)

        self.assertFalse(result.has_transparency)
        self.assertEqual(result.pixel(3, 3), (250, 250, 250, 255))

    def test_explicit_canvas_size(self):
        """Test explicit canvas size."""
        result = composite(RasterBuffer.new(4, 4, (0, 0, 0, 0)), self.gradient, canvas_size=(6, 5))

        self.assertEqual(result.size, (6, 5))

    def test_invalid_canvas_size(self):
        """Test invalid canvas size."""
        with self.assertRaises(ValueError):
            composite(RasterBuffer.new(4, 4, (0, 0, 0, 0)), self.gradient, canvas_size=(0, 5))


class TestCoverFit(unittest.TestCase):
    """Test image backgrounds drawn with cover fit."""

    def test_wide_image_crops_to_middle(self):
        """Test wide image crops to middle."""
        background = ImageBackground(three_band_image(300, 100))

        result = composite(RasterBuffer.new(50, 50, (0, 0, 0, 0)), background)

        self.assertEqual(result.size, (50, 50))
        assert_close(self, result.pixel(25, 25), (0, 255, 0, 255), tolerance=5)

    def test_small_image_scaled_up(self):
        """Test small image scaled up."""
        background = ImageBackground(RasterBuffer.new(2, 2, (90, 80, 70, 255)))

        result = composite(RasterBuffer.new(30, 20, (0, 0, 0, 0)), background)

        self.assertEqual(result.size, (30, 20))
        assert_close(self, result.pixel(0, 0), (90, 80, 70, 255), tolerance=1)
        assert_close(self, result.pixel(29, 19), (90, 80, 70, 255), tolerance=1)

    def test_render_cover_fills_canvas(self):
        """Test render cover fills canvas."""
        background = ImageBackground(three_band_image(90, 30))

        layer = BackgroundCompositor.render_cover(background, (40, 60))

        self.assertEqual(layer.size, (40, 60))
