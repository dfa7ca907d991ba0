"""
Editor configuration for the PhotoAI editing core.

Classes:
    EditorConfig: Tunable settings shared by the session and its collaborators

Functions:
    get_resample_filter: Resolve a resample filter name to a Pillow constant
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from PIL import Image

from PhotoAI_Libs.constants import (
    DEFAULT_COVER_RESAMPLE,
    DEFAULT_FETCH_TIMEOUT,
    DEFAULT_MAX_IMAGE_PIXELS,
    DEFAULT_REMBG_MODEL,
    DEFAULT_ROTATE_RESAMPLE,
)


_RESAMPLE_FILTERS = {
    "nearest": Image.Resampling.NEAREST,
    "bilinear": Image.Resampling.BILINEAR,
    "bicubic": Image.Resampling.BICUBIC,
    "lanczos": Image.Resampling.LANCZOS,
}


def get_resample_filter(name: str) -> Image.Resampling:
    """
    Resolve a resample filter name to the Pillow constant.

    Args:
        name: One of 'nearest', 'bilinear', 'bicubic', 'lanczos' (case-insensitive)

    Returns:
        The matching Image.Resampling member

    Raises:
        ValueError: If the name is not a known filter
    """
    key = str(name).strip().lower()
    if key not in _RESAMPLE_FILTERS:
        available = ", ".join(sorted(_RESAMPLE_FILTERS))
        raise ValueError(f"Unknown resample filter '{name}'. Available: {available}")
    return _RESAMPLE_FILTERS[key]


@dataclass
class EditorConfig:
    """Configuration for an edit session.

    Attributes:
        rotate_resample: Filter used for arbitrary-angle rotation (default: bicubic)
        cover_resample: Filter used to scale cover-fit background images (default: lanczos)
        rembg_model: Segmentation model name for the rembg adapter (default: u2net)
        fetch_timeout: Timeout in seconds for remote background images (default: 10.0)
        max_image_pixels: Largest decodable image in pixels; None disables the guard
    """
    rotate_resample: str = DEFAULT_ROTATE_RESAMPLE
    cover_resample: str = DEFAULT_COVER_RESAMPLE
    rembg_model: str = DEFAULT_REMBG_MODEL
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
    max_image_pixels: Optional[int] = DEFAULT_MAX_IMAGE_PIXELS

    def __post_init__(self):
        get_resample_filter(self.rotate_resample)
        get_resample_filter(self.cover_resample)

        if self.fetch_timeout <= 0:
            raise ValueError(f"fetch_timeout must be > 0, got {self.fetch_timeout}")

        if self.max_image_pixels is not None and self.max_image_pixels <= 0:
            raise ValueError(f"max_image_pixels must be > 0, got {self.max_image_pixels}")

    @property
    def rotate_filter(self) -> Image.Resampling:
        return get_resample_filter(self.rotate_resample)

    @property
    def cover_filter(self) -> Image.Resampling:
        return get_resample_filter(self.cover_resample)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EditorConfig":
        """Create from dictionary, ignoring unknown keys."""
        filtered = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**filtered)
