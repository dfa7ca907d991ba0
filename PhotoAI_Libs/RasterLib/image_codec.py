"""
Image ingestion and export for the PhotoAI editing core.

Decoding turns an uploaded file (bytes, path, file object or PIL Image) into a
RasterBuffer, and export encodes the current buffer as PNG for download.
Supported input containers are PNG, JPEG, GIF (first frame), BMP and WebP.

Classes:
    ExportedImage: Encoded image artifact returned by an export

Functions:
    decode_image: Decode an image source into a RasterBuffer
    load_image: Asynchronous wrapper around decode_image
    encode_png: Encode a RasterBuffer as PNG bytes
    export_image: Encode a RasterBuffer into an ExportedImage
    default_export_filename: Suggested download filename
    get_supported_image_formats: List of accepted file extensions
    is_supported_format: Check a path's extension
"""

import asyncio
import io
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional, Union

from PIL import Image, ImageOps

from PhotoAI_Libs.constants import (
    DEFAULT_OUTPUT_FORMAT,
    OUTPUT_FILE_EXTENSION,
    OUTPUT_FILE_PREFIX,
    OUTPUT_MIME_TYPE,
    SUPPORTED_DECODE_FORMATS,
    SUPPORTED_STANDARD_IMAGES,
)
from PhotoAI_Libs.errors import DecodeError
from PhotoAI_Libs.RasterLib.raster_buffer import RasterBuffer, require_pixels

logger = logging.getLogger(__name__)

ImageSource = Union[bytes, bytearray, memoryview, str, Path, Any]


def get_supported_image_formats() -> List[str]:
    """
    Get list of supported input image formats.

    Returns:
        Sorted list of file extensions (e.g., ['.bmp', '.gif', ...])
    """
    return sorted(SUPPORTED_STANDARD_IMAGES)


def is_supported_format(file_path: Union[str, Path]) -> bool:
    """
    Check if a file path has a supported image extension.

    Args:
        file_path: Path to the file

    Returns:
        True if the extension is one of the accepted input formats
    """
    return Path(file_path).suffix.lower() in SUPPORTED_STANDARD_IMAGES


def _open_source(source: ImageSource) -> Image.Image:
    """Open a source lazily; raises Pillow's own errors."""
    if isinstance(source, Image.Image):
        return source

    if isinstance(source, (bytes, bytearray, memoryview)):
        if len(source) == 0:
            raise DecodeError("Cannot decode empty image data")
        return Image.open(io.BytesIO(bytes(source)))

    if isinstance(source, (str, Path)):
        return Image.open(Path(source))

    if hasattr(source, "read"):
        return Image.open(source)

    raise TypeError(f"Unsupported image source type: {type(source)}")


def decode_image(source: ImageSource, max_image_pixels: Optional[int] = None) -> RasterBuffer:
    """
    Decode an image source into an RGBA RasterBuffer.

    EXIF orientation is applied so the raster matches what a browser shows.

    Args:
        source: Encoded bytes, a file path, a binary file object, or a PIL Image
        max_image_pixels: Reject images with more pixels than this (None = no limit)

    Returns:
        Decoded RasterBuffer

    Raises:
        DecodeError: If the data is not a supported, decodable, non-empty image
        TypeError: If source is of an unsupported type
    """
    try:
        image = _open_source(source)
    except DecodeError:
        raise
    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as e:
        raise DecodeError(f"Failed to open image: {e}") from e

    image_format = getattr(image, "format", None)
    if image_format is not None and image_format.upper() not in SUPPORTED_DECODE_FORMATS:
        raise DecodeError(f"Unsupported image format: {image_format}")

    width, height = image.size
    if width == 0 or height == 0:
        raise DecodeError(f"Image has zero area: {width}x{height}")

    if max_image_pixels is not None and width * height > max_image_pixels:
        raise DecodeError(
            f"Image too large: {width}x{height} exceeds {max_image_pixels} pixels"
        )

    try:
        image.load()
        oriented = ImageOps.exif_transpose(image)
        buffer = RasterBuffer.from_image(oriented)
    except (OSError, ValueError, SyntaxError) as e:
        raise DecodeError(f"Failed to decode {image_format or 'image'} data: {e}") from e

    logger.debug(f"Decoded {image_format or 'in-memory'} image: {buffer.width}x{buffer.height}")
    return buffer


async def load_image(source: ImageSource, max_image_pixels: Optional[int] = None) -> RasterBuffer:
    """
    Decode an image source without blocking the event loop.

    Args:
        source: See decode_image
        max_image_pixels: See decode_image

    Returns:
        Decoded RasterBuffer

    Raises:
        DecodeError: If the image cannot be decoded
    """
    return await asyncio.to_thread(decode_image, source, max_image_pixels)


def encode_png(buffer: RasterBuffer) -> bytes:
    """
    Encode a buffer as PNG.

    Raises:
        InvalidBuffer: If the buffer has zero area
    """
    require_pixels(buffer, "encode_png")
    output = io.BytesIO()
    buffer.to_image().save(output, format=DEFAULT_OUTPUT_FORMAT)
    return output.getvalue()


@dataclass(frozen=True)
class ExportedImage:
    """Encoded export artifact.

    Attributes:
        data: Encoded file contents
        width: Raster width in pixels
        height: Raster height in pixels
        format: Pillow format name (PNG)
        mime_type: MIME type for downloads
    """
    data: bytes = field(repr=False)
    width: int
    height: int
    format: str = DEFAULT_OUTPUT_FORMAT
    mime_type: str = OUTPUT_MIME_TYPE

    def save(self, path: Union[str, Path]) -> Path:
        """
        Write the encoded data to disk.

        Raises:
            OSError: If the parent directory does not exist or the file cannot be written
        """
        target = Path(path)
        if not target.parent.exists():
            raise OSError(f"Output directory does not exist: {target.parent}")
        target.write_bytes(self.data)
        logger.info(f"Saved {self.width}x{self.height} {self.format} to {target}")
        return target


def export_image(buffer: RasterBuffer) -> ExportedImage:
    """Encode a buffer into a PNG ExportedImage."""
    return ExportedImage(data=encode_png(buffer), width=buffer.width, height=buffer.height)


def default_export_filename(timestamp: Optional[datetime] = None) -> str:
    """
    Suggested download filename, 'edited-<epoch milliseconds>.png'.

    Args:
        timestamp: Time to embed (default: now)
    """
    moment = timestamp if timestamp is not None else datetime.now()
    millis = int(moment.timestamp() * 1000)
    return f"{OUTPUT_FILE_PREFIX}{millis}{OUTPUT_FILE_EXTENSION}"
