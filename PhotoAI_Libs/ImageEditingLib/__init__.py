"""
ImageEditingLib - Core image editing functionality

This module provides the pure pipeline stages used by the edit session:
color adjustment, geometry transforms, background fills and compositing.
"""

from PhotoAI_Libs.ImageEditingLib.color_adjustment import (
    Adjustments,
    apply_adjustments,
    clamp_adjustment,
)
from PhotoAI_Libs.ImageEditingLib.geometry_transform import (
    CropRect,
    GeometryOp,
    crop,
    rotate,
    rotate_and_crop,
    normalize_degrees,
)
from PhotoAI_Libs.ImageEditingLib.backgrounds import (
    GradientBackground,
    ImageBackground,
    GRADIENT_PRESETS,
    PRESET_BACKGROUND_URLS,
    parse_hex_color,
    get_gradient_preset,
    list_gradient_presets,
    fetch_background_image,
)
from PhotoAI_Libs.ImageEditingLib.background_compositor import (
    BackgroundCompositor,
    composite,
)

__all__ = [
    "Adjustments",
    "apply_adjustments",
    "clamp_adjustment",
    "CropRect",
    "GeometryOp",
    "crop",
    "rotate",
    "rotate_and_crop",
    "normalize_degrees",
    "GradientBackground",
    "ImageBackground",
    "GRADIENT_PRESETS",
    "PRESET_BACKGROUND_URLS",
    "parse_hex_color",
    "get_gradient_preset",
    "list_gradient_presets",
    "fetch_background_image",
    "BackgroundCompositor",
    "composite",
]
