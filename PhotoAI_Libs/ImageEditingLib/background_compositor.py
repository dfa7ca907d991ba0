"""
Background replacement compositor.

Paints a background fill (gradient or cover-fit image) across the canvas and
alpha-composites a background-removed foreground on top of it. Transparent
foreground pixels show the fill; opaque subject pixels replace it.

Example:
    >>> cutout = session.background_removed
    >>> result = composite(cutout, get_gradient_preset("Sunset"))
    >>> photo = ImageBackground(decode_image(Path("beach.jpg")))
    >>> result = composite(cutout, photo)
"""

import logging
import math
from typing import Any, Optional, Tuple

import numpy as np
from PIL import Image

from PhotoAI_Libs.constants import BACKGROUND_REMOVAL_REQUIRED, PIXEL_MODE, TRANSPARENT
from PhotoAI_Libs.errors import PreconditionFailed
from PhotoAI_Libs.ImageEditingLib.backgrounds import GradientBackground, ImageBackground
from PhotoAI_Libs.RasterLib.raster_buffer import RasterBuffer, require_pixels

logger = logging.getLogger(__name__)


class BackgroundCompositor:
    """Renders background fills and merges a foreground over them."""

    @staticmethod
    def render_gradient(gradient: GradientBackground, size: Tuple[int, int]) -> Any:
        """
        Paint a linear gradient with CSS linear-gradient geometry.

        The gradient line passes through the canvas centre at the given angle
        and is long enough that the corners receive exactly the stop colors.
        Colors are sampled at pixel centres.

        Args:
            gradient: Stops and angle
            size: (width, height) of the canvas

        Returns:
            RGBA PIL Image of the given size
        """
        width, height = size
        radians = math.radians(gradient.angle)
        dx, dy = math.sin(radians), -math.cos(radians)
        length = abs(width * dx) + abs(height * dy)

        xs = np.arange(width, dtype=np.float64) + 0.5 - width / 2.0
        ys = np.arange(height, dtype=np.float64) + 0.5 - height / 2.0
        t = (xs[np.newaxis, :] * dx + ys[:, np.newaxis] * dy) / length + 0.5
        t = np.clip(t, 0.0, 1.0)[:, :, np.newaxis]

        start = np.asarray(gradient.stops[0], dtype=np.float64)
        end = np.asarray(gradient.stops[1], dtype=np.float64)
        fill = start + (end - start) * t

        return RasterBuffer.from_array(fill).to_image()

    @staticmethod
    def render_cover(
        background: ImageBackground,
        size: Tuple[int, int],
        resample: Image.Resampling = Image.Resampling.LANCZOS,
    ) -> Any:
        """
        Scale an image to cover the canvas, centred, cropping the overflow.

        Args:
            background: Image background
            size: (width, height) of the canvas
            resample: Pillow filter used for scaling

        Returns:
            RGBA PIL Image of the given size
        """
        width, height = size
        source = background.image.to_image()
        scale = max(width / source.width, height / source.height)

        scaled_width = max(width, int(math.floor(source.width * scale + 0.5)))
        scaled_height = max(height, int(math.floor(source.height * scale + 0.5)))
        if (scaled_width, scaled_height) != source.size:
            source = source.resize((scaled_width, scaled_height), resample)

        left = (scaled_width - width) // 2
        top = (scaled_height - height) // 2
        return source.crop((left, top, left + width, top + height))

    @staticmethod
    def composite(
        foreground: Optional[RasterBuffer],
        background: Any,
        canvas_size: Optional[Tuple[int, int]] = None,
        resample: Image.Resampling = Image.Resampling.LANCZOS,
    ) -> RasterBuffer:
        """
        Merge a background-removed foreground over a background fill.

        Args:
            foreground: Cutout with transparent background pixels
            background: GradientBackground or ImageBackground
            canvas_size: Output (width, height); defaults to the foreground size
            resample: Pillow filter for cover-fit scaling

        Returns:
            New composited buffer

        Raises:
            PreconditionFailed: If there is no background-removal result
            TypeError: If background is not a gradient or image background
        """
        if foreground is None or (isinstance(foreground, RasterBuffer) and foreground.is_empty):
            raise PreconditionFailed(BACKGROUND_REMOVAL_REQUIRED)
        require_pixels(foreground, "composite")

        size = foreground.size if canvas_size is None else (int(canvas_size[0]), int(canvas_size[1]))
        if size[0] <= 0 or size[1] <= 0:
            raise ValueError(f"canvas_size must be positive, got {size}")

        if isinstance(background, GradientBackground):
            layer = BackgroundCompositor.render_gradient(background, size)
        elif isinstance(background, ImageBackground):
            layer = BackgroundCompositor.render_cover(background, size, resample)
        else:
            raise TypeError(f"Unsupported background type: {type(background)}")

        overlay = foreground.to_image()
        if overlay.size != size:
            canvas = Image.new(PIXEL_MODE, size, TRANSPARENT)
            canvas.paste(overlay, (0, 0))
            overlay = canvas

        logger.debug(f"Composite {background.kind} background under {foreground.width}x{foreground.height} foreground")
        return RasterBuffer.from_image(Image.alpha_composite(layer, overlay))


def composite(
    foreground: Optional[RasterBuffer],
    background: Any,
    canvas_size: Optional[Tuple[int, int]] = None,
    resample: Image.Resampling = Image.Resampling.LANCZOS,
) -> RasterBuffer:
    """Module-level shortcut for BackgroundCompositor.composite."""
    return BackgroundCompositor.composite(foreground, background, canvas_size, resample)
