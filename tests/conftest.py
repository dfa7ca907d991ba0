"""
Pytest configuration and shared fixtures for the PhotoAI editing core tests.

This module provides test rasters and a stand-in background removal service
used across multiple test modules.
"""

import asyncio

import numpy as np
import pytest

from PhotoAI_Libs.errors import ServiceError
from PhotoAI_Libs.RasterLib.raster_buffer import RasterBuffer


def make_gradient_buffer(width, height):
    """Opaque buffer with a gentle horizontal red ramp and vertical green ramp."""
    xs = np.linspace(60, 190, width)
    ys = np.linspace(40, 200, height)
    pixels = np.zeros((height, width, 4), dtype=np.float64)
    pixels[:, :, 0] = xs[np.newaxis, :]
    pixels[:, :, 1] = ys[:, np.newaxis]
    pixels[:, :, 2] = 128
    pixels[:, :, 3] = 255
    return RasterBuffer.from_array(pixels)


class FakeRemovalService:
    """
    Background removal stand-in.

    Makes the left half of the image transparent. An optional asyncio.Event
    holds the call until the test releases it.
    """

    def __init__(self, fail=False, gate=None, wrong_size=False):
        self.fail = fail
        self.gate = gate
        self.wrong_size = wrong_size
        self.calls = 0
        self.received = []

    async def remove_background(self, image):
        self.calls += 1
        self.received.append(image)
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)

        if self.fail:
            raise ServiceError("segmentation model unavailable")

        if self.wrong_size:
            return RasterBuffer.new(1, 1, (0, 0, 0, 0))

        pixels = image.to_array().copy()
        pixels[:, : image.width // 2, 3] = 0
        return RasterBuffer.from_array(pixels)


@pytest.fixture
def gradient_buffer():
    """80x60 opaque gradient raster."""
    return make_gradient_buffer(80, 60)


@pytest.fixture
def gray_buffer():
    """100x50 opaque mid-gray raster."""
    return RasterBuffer.new(100, 50, (100, 100, 100, 255))


@pytest.fixture
def fake_service():
    return FakeRemovalService()


@pytest.fixture
def sample_rgba_colors():
    """
    Provide a list of sample RGBA color tuples for testing.

    Returns:
        List of (R, G, B, A) tuples with common test colors
    """
    return [
        (255, 0, 0, 255),    # Red
        (0, 255, 0, 255),    # Green
        (0, 0, 255, 255),    # Blue
        (255, 255, 255, 255),  # White
        (0, 0, 0, 255),      # Black
        (128, 128, 128, 255),  # Gray
    ]
