"""
Raster data model for the PhotoAI editing core.

This module defines the immutable pixel container every pipeline operation
reads from and writes to.

Classes:
    RasterBuffer: Width/height-tagged row-major RGBA byte grid

Functions:
    require_pixels: Validate that a buffer can be processed

Type Aliases:
    RgbaColor: A tuple of 4 integers representing RGBA color values (0-255)
"""

from dataclasses import dataclass, field
from typing import Any, Tuple

import numpy as np
from PIL import Image

from PhotoAI_Libs.constants import CHANNELS, PIXEL_MODE, TRANSPARENT
from PhotoAI_Libs.errors import InvalidBuffer

RgbaColor = Tuple[int, int, int, int]


@dataclass(frozen=True)
class RasterBuffer:
    """Immutable RGBA raster.

    Attributes:
        width: Number of columns (>= 0)
        height: Number of rows (>= 0)
        pixels: Row-major RGBA bytes, length width * height * 4

    Two buffers compare equal only when they are pixel-identical.
    """
    width: int
    height: int
    pixels: bytes = field(repr=False)

    def __post_init__(self):
        if isinstance(self.width, bool) or not isinstance(self.width, int):
            raise InvalidBuffer(f"width must be an int, got {type(self.width).__name__}")
        if isinstance(self.height, bool) or not isinstance(self.height, int):
            raise InvalidBuffer(f"height must be an int, got {type(self.height).__name__}")
        if self.width < 0 or self.height < 0:
            raise InvalidBuffer(f"Negative raster size: {self.width}x{self.height}")

        if isinstance(self.pixels, (bytearray, memoryview)):
            object.__setattr__(self, "pixels", bytes(self.pixels))
        if not isinstance(self.pixels, bytes):
            raise InvalidBuffer(f"pixels must be bytes, got {type(self.pixels).__name__}")

        expected = self.width * self.height * CHANNELS
        if len(self.pixels) != expected:
            raise InvalidBuffer(
                f"Pixel data length {len(self.pixels)} does not match "
                f"{self.width}x{self.height} RGBA ({expected} bytes)"
            )

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def pixel(self, x: int, y: int) -> RgbaColor:
        """Return the RGBA value at column x, row y."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} raster")
        offset = (y * self.width + x) * CHANNELS
        r, g, b, a = self.pixels[offset:offset + CHANNELS]
        return r, g, b, a

    @property
    def has_transparency(self) -> bool:
        if self.is_empty:
            return False
        return bool((self.to_array()[:, :, 3] < 255).any())

    def to_array(self) -> np.ndarray:
        """Read-only (height, width, 4) uint8 view of the pixels."""
        return np.frombuffer(self.pixels, dtype=np.uint8).reshape(
            self.height, self.width, CHANNELS
        )

    def to_image(self) -> Image.Image:
        """Copy the pixels into a new RGBA PIL Image."""
        require_pixels(self)
        return Image.frombytes(PIXEL_MODE, self.size, self.pixels)

    @classmethod
    def from_array(cls, array: Any) -> "RasterBuffer":
        """
        Build a buffer from a (height, width, 4) array.

        Float arrays are rounded and clamped to 0-255.

        Raises:
            InvalidBuffer: If the array does not have shape (H, W, 4)
        """
        data = np.asarray(array)
        if data.ndim != 3 or data.shape[2] != CHANNELS:
            raise InvalidBuffer(f"Expected (height, width, 4) array, got shape {data.shape}")

        if data.dtype != np.uint8:
            data = np.clip(np.floor(data.astype(np.float64) + 0.5), 0, 255).astype(np.uint8)

        height, width = data.shape[:2]
        return cls(width=int(width), height=int(height), pixels=np.ascontiguousarray(data).tobytes())

    @classmethod
    def from_image(cls, image: Any) -> "RasterBuffer":
        """
        Build a buffer from a PIL Image (converted to RGBA).

        Raises:
            TypeError: If image is not a PIL Image
        """
        if not hasattr(image, "convert"):
            raise TypeError(f"Expected PIL Image, got {type(image)}")

        rgba = image if image.mode == PIXEL_MODE else image.convert(PIXEL_MODE)
        width, height = rgba.size
        return cls(width=width, height=height, pixels=rgba.tobytes())

    @classmethod
    def new(cls, width: int, height: int, color: RgbaColor = TRANSPARENT) -> "RasterBuffer":
        """Create a buffer filled with a single color."""
        return cls(width=width, height=height, pixels=bytes(color) * (width * height))

    @classmethod
    def empty(cls) -> "RasterBuffer":
        """Create a zero-area buffer."""
        return cls(width=0, height=0, pixels=b"")


def require_pixels(buffer: Any, operation: str = "operation") -> RasterBuffer:
    """
    Validate that a buffer can be processed.

    Args:
        buffer: The value to check
        operation: Name used in error messages

    Returns:
        The buffer, unchanged

    Raises:
        TypeError: If buffer is not a RasterBuffer
        InvalidBuffer: If the buffer has zero area
    """
    if not isinstance(buffer, RasterBuffer):
        raise TypeError(f"{operation} expects a RasterBuffer, got {type(buffer)}")

    if buffer.is_empty:
        raise InvalidBuffer(f"{operation} requires a non-empty raster, got {buffer.width}x{buffer.height}")

    return buffer
