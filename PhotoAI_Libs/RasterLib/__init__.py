"""
RasterLib - Raster data model and codecs

This module provides the immutable RGBA buffer every pipeline operation
works on, plus decoding of uploaded images and PNG export.
"""

from PhotoAI_Libs.RasterLib.raster_buffer import RasterBuffer, RgbaColor, require_pixels
from PhotoAI_Libs.RasterLib.image_codec import (
    ExportedImage,
    decode_image,
    load_image,
    encode_png,
    export_image,
    default_export_filename,
    get_supported_image_formats,
    is_supported_format,
)

__all__ = [
    "RasterBuffer",
    "RgbaColor",
    "require_pixels",
    "ExportedImage",
    "decode_image",
    "load_image",
    "encode_png",
    "export_image",
    "default_export_filename",
    "get_supported_image_formats",
    "is_supported_format",
]
