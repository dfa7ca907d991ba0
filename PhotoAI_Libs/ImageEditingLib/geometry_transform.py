"""
Geometry operations: crop and rotation.

Crop rectangles are expressed in percent of the source dimensions and are
clamped, never rejected. Rotation is clockwise around the image centre and
grows the canvas to the rotated bounding box so nothing is clipped; right
angles are exact pixel transposes.

When a crop is requested together with a rotation the source is rotated
first and the rectangle is then taken from the rotated bounding box, so the
pair behaves as one affine transform followed by one clip.

Example:
    >>> rotated = rotate(buffer, 90)
    >>> cropped = crop(buffer, CropRect(x=10, y=10, width=50, height=50))
    >>> both = rotate_and_crop(buffer, 15, CropRect(0, 0, 80, 80))
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Tuple

from PIL import Image

from PhotoAI_Libs.constants import (
    CROP_PERCENT_MAX,
    CROP_PERCENT_MIN,
    FULL_TURN_DEGREES,
    TRANSPARENT,
)
from PhotoAI_Libs.RasterLib.raster_buffer import RasterBuffer, require_pixels

logger = logging.getLogger(__name__)

# Clockwise rotation by a right angle expressed as a Pillow transpose
_RIGHT_ANGLE_TRANSPOSES = {
    90.0: Image.Transpose.ROTATE_270,
    180.0: Image.Transpose.ROTATE_180,
    270.0: Image.Transpose.ROTATE_90,
}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp_percent(value: float) -> float:
    value = float(value)
    if math.isnan(value):
        return CROP_PERCENT_MIN
    return max(CROP_PERCENT_MIN, min(CROP_PERCENT_MAX, value))


@dataclass(frozen=True)
class CropRect:
    """Crop rectangle in percent of the source dimensions.

    Values are clamped to 0-100 and width/height are then limited so the
    rectangle stays inside the source (x + width <= 100, y + height <= 100).
    """
    x: float = 0.0
    y: float = 0.0
    width: float = 100.0
    height: float = 100.0

    def __post_init__(self):
        x = _clamp_percent(self.x)
        y = _clamp_percent(self.y)
        object.__setattr__(self, "x", x)
        object.__setattr__(self, "y", y)
        object.__setattr__(self, "width", min(_clamp_percent(self.width), CROP_PERCENT_MAX - x))
        object.__setattr__(self, "height", min(_clamp_percent(self.height), CROP_PERCENT_MAX - y))

    @classmethod
    def coerce(cls, value: Any) -> "CropRect":
        """
        Build a CropRect from a CropRect, a mapping or a 4-sequence.

        Mappings may use 'width'/'height' or the short 'w'/'h' keys.

        Raises:
            TypeError: If value cannot be interpreted as a rectangle
        """
        if isinstance(value, CropRect):
            return value

        if isinstance(value, Mapping):
            return cls(
                x=value.get("x", 0.0),
                y=value.get("y", 0.0),
                width=value.get("width", value.get("w", 100.0)),
                height=value.get("height", value.get("h", 100.0)),
            )

        if isinstance(value, (tuple, list)) and len(value) == 4:
            return cls(*value)

        raise TypeError(f"Cannot interpret {type(value)} as a crop rectangle")

    def to_pixel_box(self, width: int, height: int) -> Tuple[int, int, int, int]:
        """
        Map the rectangle onto a width x height raster.

        Returns:
            (left, top, right, bottom) in pixels, at least 1x1 and inside bounds
        """
        left = min(_round_half_up(self.x / 100.0 * width), width - 1)
        top = min(_round_half_up(self.y / 100.0 * height), height - 1)
        box_width = max(1, min(_round_half_up(self.width / 100.0 * width), width - left))
        box_height = max(1, min(_round_half_up(self.height / 100.0 * height), height - top))
        return left, top, left + box_width, top + box_height


def normalize_degrees(degrees: float) -> float:
    """Normalise an angle to [0, 360); non-finite angles become 0."""
    value = float(degrees)
    if not math.isfinite(value):
        logger.warning(f"Ignoring non-finite rotation angle: {degrees}")
        return 0.0
    value = value % FULL_TURN_DEGREES
    # -1e-20 % 360 rounds to 360.0
    if value >= FULL_TURN_DEGREES:
        value = 0.0
    return value


def crop(source: RasterBuffer, rect: Any) -> RasterBuffer:
    """
    Extract the sub-raster described by a percent rectangle.

    Args:
        source: Buffer to crop (not modified)
        rect: CropRect, mapping with x/y/width/height, or (x, y, width, height)

    Returns:
        New buffer sized to the clamped rectangle (at least 1x1)

    Raises:
        InvalidBuffer: If source has zero area
    """
    require_pixels(source, "crop")
    rect = CropRect.coerce(rect)

    left, top, right, bottom = rect.to_pixel_box(source.width, source.height)
    logger.debug(f"Crop {source.width}x{source.height} -> box ({left}, {top}, {right}, {bottom})")

    return RasterBuffer.from_array(source.to_array()[top:bottom, left:right])


def rotate(
    source: RasterBuffer,
    degrees: float,
    resample: Image.Resampling = Image.Resampling.BICUBIC,
) -> RasterBuffer:
    """
    Rotate clockwise around the centre, growing the canvas to fit.

    90 and 270 swap width and height exactly; other angles produce the
    rotated bounding box with transparent uncovered corners.

    Args:
        source: Buffer to rotate (not modified)
        degrees: Clockwise angle, normalised to [0, 360)
        resample: Pillow filter for non-right angles

    Returns:
        New rotated buffer

    Raises:
        InvalidBuffer: If source has zero area
    """
    require_pixels(source, "rotate")
    angle = normalize_degrees(degrees)

    if angle == 0.0:
        return RasterBuffer(width=source.width, height=source.height, pixels=source.pixels)

    image = source.to_image()
    if angle in _RIGHT_ANGLE_TRANSPOSES:
        rotated = image.transpose(_RIGHT_ANGLE_TRANSPOSES[angle])
    else:
        # Pillow rotates counter-clockwise
        rotated = image.rotate(-angle, resample=resample, expand=True, fillcolor=TRANSPARENT)

    logger.debug(f"Rotate {angle} deg: {source.width}x{source.height} -> {rotated.width}x{rotated.height}")
    return RasterBuffer.from_image(rotated)


def rotate_and_crop(
    source: RasterBuffer,
    degrees: float,
    rect: Any,
    resample: Image.Resampling = Image.Resampling.BICUBIC,
) -> RasterBuffer:
    """Rotate first, then crop the rectangle out of the rotated canvas."""
    return crop(rotate(source, degrees, resample), rect)


@dataclass(frozen=True)
class GeometryOp:
    """A recorded geometry step that can be replayed onto another buffer.

    Attributes:
        kind: 'crop' or 'rotate'
        degrees: Clockwise rotation applied before any crop
        rect: Crop rectangle for 'crop' steps
    """
    kind: str
    degrees: float = 0.0
    rect: Optional[CropRect] = field(default=None)

    def __post_init__(self):
        if self.kind not in ("crop", "rotate"):
            raise ValueError(f"Unsupported geometry kind: {self.kind}")
        if self.kind == "crop" and self.rect is None:
            raise ValueError("crop steps require a rect")
        object.__setattr__(self, "degrees", normalize_degrees(self.degrees))

    @classmethod
    def for_crop(cls, rect: Any, degrees: float = 0.0) -> "GeometryOp":
        return cls(kind="crop", degrees=degrees, rect=CropRect.coerce(rect))

    @classmethod
    def for_rotate(cls, degrees: float) -> "GeometryOp":
        return cls(kind="rotate", degrees=degrees)

    def apply(
        self,
        source: RasterBuffer,
        resample: Image.Resampling = Image.Resampling.BICUBIC,
    ) -> RasterBuffer:
        if self.kind == "rotate":
            return rotate(source, self.degrees, resample)
        return rotate_and_crop(source, self.degrees, self.rect, resample)
