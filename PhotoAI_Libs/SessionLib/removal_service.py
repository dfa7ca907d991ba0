"""
Background removal service boundary.

The segmentation model is a black box: it receives a decoded image and either
returns the same image with background pixels made transparent, or fails as a
unit. The edit session only depends on the BackgroundRemovalService protocol;
RembgRemovalService is the default adapter built on rembg.

Classes:
    BackgroundRemovalService: Protocol the edit session calls
    RembgRemovalService: rembg-backed implementation (model runs in a worker thread)
"""

import asyncio
import logging
import threading
from typing import Any, Optional, Protocol, runtime_checkable

from PhotoAI_Libs.config import EditorConfig
from PhotoAI_Libs.constants import DEFAULT_REMBG_MODEL
from PhotoAI_Libs.errors import ServiceError
from PhotoAI_Libs.RasterLib.raster_buffer import RasterBuffer, require_pixels

logger = logging.getLogger(__name__)


@runtime_checkable
class BackgroundRemovalService(Protocol):
    """Asynchronous, all-or-nothing background segmentation."""

    async def remove_background(self, image: RasterBuffer) -> RasterBuffer:
        """Return image with background pixels transparent, or raise ServiceError."""
        ...


class RembgRemovalService:
    """
    Background removal using rembg.

    The rembg session (model download and ONNX runtime) is created lazily on
    first use and reused afterwards. Inference is CPU-bound, so it runs in a
    worker thread to keep the event loop responsive.

    Example:
        >>> service = RembgRemovalService(model_name="u2netp")
        >>> session = EditSession(service)
    """

    def __init__(self, model_name: str = DEFAULT_REMBG_MODEL):
        model_name = str(model_name).strip()
        if not model_name:
            raise ValueError("model_name cannot be empty")

        self.model_name = model_name
        self._session: Optional[Any] = None
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: EditorConfig) -> "RembgRemovalService":
        """Build the adapter for the model named in an EditorConfig."""
        return cls(model_name=config.rembg_model)

    def _get_session(self) -> Any:
        with self._lock:
            if self._session is None:
                from rembg import new_session

                logger.info(f"Creating rembg session for model: {self.model_name}")
                self._session = new_session(self.model_name)
            return self._session

    def _remove_sync(self, image: RasterBuffer) -> RasterBuffer:
        from rembg import remove

        output = remove(image.to_image(), session=self._get_session())
        return RasterBuffer.from_image(output)

    async def remove_background(self, image: RasterBuffer) -> RasterBuffer:
        """
        Segment the image and make its background transparent.

        Args:
            image: Source raster

        Returns:
            RGBA raster of the same size

        Raises:
            ServiceError: If the model fails or returns a raster of the wrong size
            InvalidBuffer: If image has zero area
        """
        require_pixels(image, "remove_background")

        try:
            result = await asyncio.to_thread(self._remove_sync, image)
        except ServiceError:
            raise
        except Exception as e:
            logger.exception(f"rembg background removal failed: {e}")
            raise ServiceError(f"Background removal failed: {e}") from e

        if result.size != image.size:
            raise ServiceError(
                f"Background removal returned {result.width}x{result.height}, "
                f"expected {image.width}x{image.height}"
            )

        return result
