"""
Brightness, contrast and saturation adjustment.

The three sliders behave like a CSS filter string
``brightness(b%) contrast(c%) saturate(s%)`` applied in that order in a single
pass. Values are percentages in 0-200 with 100 as identity.

Example:
    >>> adjusted = apply_adjustments(buffer, brightness=150, contrast=100, saturation=80)
    >>> settings = Adjustments().replace("contrast", 120)
    >>> adjusted = settings.apply(buffer)
"""

from dataclasses import dataclass
from typing import Dict, Tuple

import numpy as np

from PhotoAI_Libs.constants import (
    ADJUSTMENT_IDENTITY,
    ADJUSTMENT_KINDS,
    ADJUSTMENT_MAX,
    ADJUSTMENT_MIN,
    CONTRAST_PIVOT,
    LUMA_WEIGHTS,
)
from PhotoAI_Libs.RasterLib.raster_buffer import RasterBuffer, require_pixels


def clamp_adjustment(value: float) -> int:
    """Clamp a slider value to 0-200 and round it to an integer percent."""
    clamped = max(float(ADJUSTMENT_MIN), min(float(ADJUSTMENT_MAX), float(value)))
    return int(np.floor(clamped + 0.5))


@dataclass(frozen=True)
class Adjustments:
    """Slider values for one adjustment pass.

    Attributes:
        brightness: Percent, 100 = identity
        contrast: Percent, 100 = identity
        saturation: Percent, 100 = identity
    """
    brightness: int = ADJUSTMENT_IDENTITY
    contrast: int = ADJUSTMENT_IDENTITY
    saturation: int = ADJUSTMENT_IDENTITY

    def __post_init__(self):
        for kind in ADJUSTMENT_KINDS:
            object.__setattr__(self, kind, clamp_adjustment(getattr(self, kind)))

    @property
    def is_identity(self) -> bool:
        return (self.brightness, self.contrast, self.saturation) == (
            ADJUSTMENT_IDENTITY,
            ADJUSTMENT_IDENTITY,
            ADJUSTMENT_IDENTITY,
        )

    def replace(self, kind: str, value: float) -> "Adjustments":
        """
        Return a copy with one slider changed.

        Raises:
            ValueError: If kind is not brightness, contrast or saturation
        """
        kind = str(kind).strip().lower()
        if kind not in ADJUSTMENT_KINDS:
            raise ValueError(
                f"Unsupported adjustment kind: {kind}. Use one of {', '.join(ADJUSTMENT_KINDS)}"
            )
        values = self.to_dict()
        values[kind] = value
        return Adjustments(**values)

    def to_dict(self) -> Dict[str, int]:
        return {kind: getattr(self, kind) for kind in ADJUSTMENT_KINDS}

    def as_tuple(self) -> Tuple[int, int, int]:
        return self.brightness, self.contrast, self.saturation

    def apply(self, source: RasterBuffer) -> RasterBuffer:
        return apply_adjustments(source, self.brightness, self.contrast, self.saturation)


def apply_adjustments(
    source: RasterBuffer,
    brightness: float = ADJUSTMENT_IDENTITY,
    contrast: float = ADJUSTMENT_IDENTITY,
    saturation: float = ADJUSTMENT_IDENTITY,
) -> RasterBuffer:
    """
    Apply brightness, contrast and saturation in one pass.

    Each stage works in floating point and clamps to 0-255 before the next;
    the result is quantised once at the end. Alpha is left untouched.

    Args:
        source: Buffer to adjust (not modified)
        brightness: Percent, linear scale of each channel
        contrast: Percent, scales distance from mid-gray (128)
        saturation: Percent, blend between luminance (0) and original chroma (100)

    Returns:
        New buffer with the same dimensions

    Raises:
        InvalidBuffer: If source has zero area
    """
    require_pixels(source, "apply_adjustments")

    b = clamp_adjustment(brightness) / 100.0
    c = clamp_adjustment(contrast) / 100.0
    s = clamp_adjustment(saturation) / 100.0

    if (b, c, s) == (1.0, 1.0, 1.0):
        return RasterBuffer(width=source.width, height=source.height, pixels=source.pixels)

    pixels = source.to_array()
    rgb = pixels[:, :, :3].astype(np.float64)

    rgb = np.clip(rgb * b, 0.0, 255.0)
    rgb = np.clip((rgb - CONTRAST_PIVOT) * c + CONTRAST_PIVOT, 0.0, 255.0)

    luma = rgb @ np.asarray(LUMA_WEIGHTS, dtype=np.float64)
    luma = luma[:, :, np.newaxis]
    rgb = np.clip(luma + (rgb - luma) * s, 0.0, 255.0)

    result = np.empty_like(pixels)
    result[:, :, :3] = np.floor(rgb + 0.5).astype(np.uint8)
    result[:, :, 3] = pixels[:, :, 3]
    return RasterBuffer.from_array(result)
