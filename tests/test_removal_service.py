"""
Tests for the background removal service adapter.

The rembg model itself is not exercised; the inference step is replaced so
the adapter's threading, validation and error mapping can be checked.
"""

import asyncio
import unittest

from PhotoAI_Libs.config import EditorConfig
from PhotoAI_Libs.errors import InvalidBuffer, ServiceError
from PhotoAI_Libs.RasterLib.raster_buffer import RasterBuffer
from PhotoAI_Libs.SessionLib.removal_service import BackgroundRemovalService, RembgRemovalService

from conftest import FakeRemovalService, make_gradient_buffer


class StubbedRembgService(RembgRemovalService):
    """RembgRemovalService with the model call replaced."""

    def __init__(self, behaviour="cutout"):
        super().__init__(model_name="u2netp")
        self.behaviour = behaviour

    def _remove_sync(self, image):
        if self.behaviour == "raise":
            raise RuntimeError("onnxruntime session crashed")
        if self.behaviour == "service_error":
            raise ServiceError("model weights missing")
        if self.behaviour == "shrink":
            return RasterBuffer.new(image.width // 2, image.height, (0, 0, 0, 0))

        pixels = image.to_array().copy()
        pixels[: image.height // 2, :, 3] = 0
        return RasterBuffer.from_array(pixels)


class TestRembgRemovalService(unittest.TestCase):
    """Test RembgRemovalService behaviour around the model call."""

    def setUp(self):
        self.image = make_gradient_buffer(40, 20)

    def test_returns_same_size_cutout(self):
        """Test returns same size cutout."""
        result = asyncio.run(StubbedRembgService().remove_background(self.image))

        self.assertEqual(result.size, self.image.size)
        self.assertEqual(result.pixel(0, 0)[3], 0)
        self.assertEqual(result.pixel(0, 19)[3], 255)

    def test_unexpected_exception_becomes_service_error(self):
        """Test unexpected exception becomes service error."""
        with self.assertRaises(ServiceError) as ctx:
            asyncio.run(StubbedRembgService("raise").remove_background(self.image))
        self.assertIsInstance(ctx.exception.__cause__, RuntimeError)

    def test_service_error_passes_through(self):
        """Test service error passes through."""
        with self.assertRaises(ServiceError) as ctx:
            asyncio.run(StubbedRembgService("service_error").remove_background(self.image))
        self.assertIn("model weights missing", str(ctx.exception))

    def test_wrong_size_rejected(self):
        """Test wrong size rejected."""
        with self.assertRaises(ServiceError):
            asyncio.run(StubbedRembgService("shrink").remove_background(self.image))

    def test_empty_image_rejected(self):
        """Test empty image rejected."""
        with self.assertRaises(InvalidBuffer):
            asyncio.run(StubbedRembgService().remove_background(RasterBuffer.empty()))

    def test_model_name_required(self):
        """Test model name required."""
        with self.assertRaises(ValueError):
            RembgRemovalService(model_name="  ")

    def test_session_created_lazily(self):
        """Test session created lazily."""
        service = RembgRemovalService()

        self.assertEqual(service.model_name, "u2net")
        self.assertIsNone(service._session)


class TestRemovalServiceProtocol(unittest.TestCase):
    """Test the BackgroundRemovalService protocol."""

    def test_implementations_satisfy_protocol(self):
        """Test implementations satisfy protocol."""
        self.assertIsInstance(RembgRemovalService(), BackgroundRemovalService)
        self.assertIsInstance(FakeRemovalService(), BackgroundRemovalService)

    def test_unrelated_object_does_not(self):
        """Test unrelated object does not."""
        self.assertNotIsInstance(object(), BackgroundRemovalService)


def test_from_config_uses_model_name():
    """Test from config uses model name."""
    service = RembgRemovalService.from_config(EditorConfig(rembg_model="isnet-general-use"))

    assert service.model_name == "isnet-general-use"
