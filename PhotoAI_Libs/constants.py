"""
Constants and configuration values for the PhotoAI editing core.

This module centralizes all constant values, magic numbers, and
default settings used throughout the pipeline.
"""

# Raster layout
CHANNELS = 4
PIXEL_MODE = "RGBA"
TRANSPARENT = (0, 0, 0, 0)

# Adjustment sliders (percent)
ADJUSTMENT_MIN = 0
ADJUSTMENT_MAX = 200
ADJUSTMENT_IDENTITY = 100
ADJUSTMENT_KINDS = ("brightness", "contrast", "saturation")

# Contrast pivots around mid-gray
CONTRAST_PIVOT = 128.0

# Luminance weights used by the saturation blend (Rec. 709, as CSS saturate())
LUMA_WEIGHTS = (0.2126, 0.7152, 0.0722)

# Crop rectangle (percent of source dimensions)
CROP_PERCENT_MIN = 0.0
CROP_PERCENT_MAX = 100.0

# Rotation
FULL_TURN_DEGREES = 360.0

# Gradient backgrounds
DEFAULT_GRADIENT_ANGLE = 135.0

# Resampling filter names (resolved to Pillow filters in config.py)
DEFAULT_ROTATE_RESAMPLE = "bicubic"
DEFAULT_COVER_RESAMPLE = "lanczos"

# Background removal
DEFAULT_REMBG_MODEL = "u2net"
BACKGROUND_REMOVAL_REQUIRED = "background removal required first"

# Remote background images
DEFAULT_FETCH_TIMEOUT = 10.0

# Decoding limits (Pillow decompression bomb guard)
DEFAULT_MAX_IMAGE_PIXELS = 89_478_485

# Supported ingestion formats (Pillow format names and file extensions)
SUPPORTED_DECODE_FORMATS = {"PNG", "JPEG", "GIF", "BMP", "WEBP"}
SUPPORTED_STANDARD_IMAGES = {".png", ".jpg", ".jpeg", ".gif", ".bmp", ".webp"}

# Export
DEFAULT_OUTPUT_FORMAT = "PNG"
OUTPUT_MIME_TYPE = "image/png"
OUTPUT_FILE_PREFIX = "edited-"
OUTPUT_FILE_EXTENSION = ".png"
