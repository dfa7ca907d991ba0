"""
Edit session state machine.

An EditSession owns the decoded source image for one editing surface and
turns UI operations into new rasters:

    EMPTY --load--> LOADED --close--> CLOSED

While LOADED, every operation replaces ``current`` in a single step or raises
and leaves the session untouched.

The session keeps an unadjusted *base* buffer (the original after geometry,
or the composited result when a background is active). Adjustments are always
recomputed from that base, so moving a slider back and forth never compounds
rounding error. Geometry steps are recorded so they can be replayed onto a
background-removal result, which is computed from the original image.

Classes:
    SessionState: Lifecycle states
    EditSession: The state machine
"""

import logging
from enum import Enum
from typing import Any, List, Optional, Tuple

import httpx

from PhotoAI_Libs.config import EditorConfig
from PhotoAI_Libs.constants import BACKGROUND_REMOVAL_REQUIRED
from PhotoAI_Libs.errors import PreconditionFailed, ServiceError
from PhotoAI_Libs.ImageEditingLib.background_compositor import composite
from PhotoAI_Libs.ImageEditingLib.backgrounds import Background, ImageBackground, fetch_background_image
from PhotoAI_Libs.ImageEditingLib.color_adjustment import Adjustments
from PhotoAI_Libs.ImageEditingLib.geometry_transform import GeometryOp
from PhotoAI_Libs.RasterLib.image_codec import (
    ExportedImage,
    ImageSource,
    decode_image,
    export_image,
    load_image,
)
from PhotoAI_Libs.RasterLib.raster_buffer import RasterBuffer, require_pixels
from PhotoAI_Libs.SessionLib.removal_service import BackgroundRemovalService

logger = logging.getLogger(__name__)


class SessionState(Enum):
    EMPTY = "empty"
    LOADED = "loaded"
    CLOSED = "closed"


class EditSession:
    """
    Orchestrates adjustments, geometry and background replacement for one image.

    Example:
        >>> session = EditSession(RembgRemovalService())
        >>> session.load(decode_image(Path("portrait.jpg")))
        >>> session.set_adjustment("brightness", 120)
        >>> session.crop(CropRect(10, 10, 80, 80))
        >>> await session.remove_background()
        >>> session.add_background(get_gradient_preset("Ocean"))
        >>> session.export().save(Path("edited.png"))
    """

    def __init__(
        self,
        removal_service: Optional[BackgroundRemovalService] = None,
        config: Optional[EditorConfig] = None,
    ):
        self.removal_service = removal_service
        self.config = config if config is not None else EditorConfig()

        self._state = SessionState.EMPTY
        self._original: Optional[RasterBuffer] = None
        self._base: Optional[RasterBuffer] = None
        self._current: Optional[RasterBuffer] = None
        self._background_removed: Optional[RasterBuffer] = None
        self._background: Optional[Background] = None
        self._adjustments = Adjustments()
        self._geometry: List[GeometryOp] = []
        self._generation = 0
        self._inflight: Optional[int] = None

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_loaded(self) -> bool:
        return self._state is SessionState.LOADED

    @property
    def is_busy(self) -> bool:
        """True while a background removal for the current generation is outstanding."""
        return self._inflight is not None and self._inflight == self._generation

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def original(self) -> Optional[RasterBuffer]:
        return self._original

    @property
    def current(self) -> Optional[RasterBuffer]:
        return self._current

    @property
    def background_removed(self) -> Optional[RasterBuffer]:
        return self._background_removed

    @property
    def background(self) -> Optional[Background]:
        return self._background

    @property
    def adjustments(self) -> Adjustments:
        return self._adjustments

    @property
    def geometry(self) -> Tuple[GeometryOp, ...]:
        return tuple(self._geometry)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def load(self, source: Any) -> RasterBuffer:
        """
        Ingest the source image; original and current both become it.

        Args:
            source: A RasterBuffer, or anything decode_image accepts

        Returns:
            The new current buffer

        Raises:
            PreconditionFailed: If the session is already loaded or closed
            DecodeError: If source is encoded data that cannot be decoded
            InvalidBuffer: If the raster has zero area
        """
        if self._state is not SessionState.EMPTY:
            raise PreconditionFailed(f"Cannot load into a {self._state.value} session")

        if isinstance(source, RasterBuffer):
            buffer = source
        else:
            buffer = decode_image(source, self.config.max_image_pixels)
        require_pixels(buffer, "load")

        self._generation += 1
        self._original = buffer
        self._base = buffer
        self._current = buffer
        self._state = SessionState.LOADED

        logger.info(f"Session loaded {buffer.width}x{buffer.height} image")
        return buffer

    @classmethod
    async def open(
        cls,
        source: ImageSource,
        removal_service: Optional[BackgroundRemovalService] = None,
        config: Optional[EditorConfig] = None,
    ) -> "EditSession":
        """Decode source off the event loop and return a loaded session."""
        session = cls(removal_service, config)
        buffer = await load_image(source, session.config.max_image_pixels)
        session.load(buffer)
        return session

    def close(self) -> None:
        """Release all buffers. Any in-flight removal result will be discarded."""
        if self._state is SessionState.CLOSED:
            return

        self._generation += 1
        self._original = None
        self._base = None
        self._current = None
        self._background_removed = None
        self._background = None
        self._geometry = []
        self._adjustments = Adjustments()
        self._state = SessionState.CLOSED
        logger.info("Session closed")

    def _require_loaded(self, operation: str) -> None:
        if self._state is not SessionState.LOADED:
            raise PreconditionFailed(f"{operation} requires a loaded session (state: {self._state.value})")

    # ------------------------------------------------------------------
    # Adjustments
    # ------------------------------------------------------------------

    def set_adjustment(self, kind: str, value: float) -> RasterBuffer:
        """
        Change one slider and recompute current from the unadjusted base.

        Args:
            kind: 'brightness', 'contrast' or 'saturation'
            value: Percent, clamped to 0-200

        Returns:
            The new current buffer

        Raises:
            PreconditionFailed: If the session is not loaded
            ValueError: If kind is unknown
        """
        self._require_loaded("set_adjustment")
        return self._apply_adjustments(self._adjustments.replace(kind, value))

    def set_adjustments(
        self,
        brightness: Optional[float] = None,
        contrast: Optional[float] = None,
        saturation: Optional[float] = None,
    ) -> RasterBuffer:
        """Change several sliders at once; None keeps the current value."""
        self._require_loaded("set_adjustments")
        values = self._adjustments.to_dict()
        for kind, value in (("brightness", brightness), ("contrast", contrast), ("saturation", saturation)):
            if value is not None:
                values[kind] = value
        return self._apply_adjustments(Adjustments(**values))

    def _apply_adjustments(self, adjustments: Adjustments) -> RasterBuffer:
        current = adjustments.apply(self._base)
        self._adjustments, self._current = adjustments, current
        logger.debug(f"Adjustments set to {adjustments.to_dict()}")
        return current

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    def crop(self, rect: Any, rotation: float = 0.0) -> RasterBuffer:
        """
        Crop the current image, optionally rotating it first.

        Destructive: reset() returns to the original, not to the pre-crop image.

        Args:
            rect: CropRect, mapping or (x, y, width, height) in percent
            rotation: Clockwise degrees applied before the crop

        Returns:
            The new current buffer

        Raises:
            PreconditionFailed: If the session is not loaded
            InvalidBuffer: If the current raster is empty
        """
        self._require_loaded("crop")
        return self._apply_geometry(GeometryOp.for_crop(rect, rotation))

    def rotate(self, degrees: float) -> RasterBuffer:
        """
        Rotate the current image clockwise, growing the canvas to fit.

        Raises:
            PreconditionFailed: If the session is not loaded
            InvalidBuffer: If the current raster is empty
        """
        self._require_loaded("rotate")
        return self._apply_geometry(GeometryOp.for_rotate(degrees))

    def _apply_geometry(self, op: GeometryOp) -> RasterBuffer:
        resample = self.config.rotate_filter

        removed = None
        if self._background_removed is not None:
            removed = op.apply(self._background_removed, resample)

        # an active background is re-composited under the transformed cutout
        if self._background is not None:
            base = composite(removed, self._background, resample=self.config.cover_filter)
        elif removed is not None:
            base = removed
        else:
            base = op.apply(self._base, resample)
        current = self._adjustments.apply(base)

        self._base, self._background_removed, self._current = base, removed, current
        self._geometry.append(op)

        logger.debug(f"Applied {op.kind} (rotation {op.degrees}): now {current.width}x{current.height}")
        return current

    # ------------------------------------------------------------------
    # Background removal and replacement
    # ------------------------------------------------------------------

    async def remove_background(self) -> Optional[RasterBuffer]:
        """
        Run the removal service on the original image.

        The recorded geometry is replayed onto the cutout so it lines up with
        the current image. If reset(), close() or another remove_background()
        happens while the call is outstanding, its result is discarded.

        Returns:
            The new current buffer, or None if the result was stale

        Raises:
            PreconditionFailed: If not loaded or no service is configured
            ServiceError: If the service fails or returns an unusable raster
        """
        self._require_loaded("remove_background")

        if self.removal_service is None:
            raise PreconditionFailed("No background removal service configured")

        if self.is_busy:
            logger.info(f"Superseding in-flight background removal (generation {self._generation})")

        self._generation += 1
        token = self._generation
        self._inflight = token
        source = self._original

        logger.info(f"Background removal started (generation {token})")
        try:
            result = await self.removal_service.remove_background(source)
        except Exception as e:
            if token != self._generation:
                logger.info(f"Ignoring failure of stale background removal (generation {token}): {e}")
                return None
            if isinstance(e, ServiceError):
                raise
            logger.exception(f"Background removal service raised: {e}")
            raise ServiceError(f"Background removal failed: {e}") from e
        finally:
            if self._inflight == token:
                self._inflight = None

        if token != self._generation:
            logger.info(f"Discarding stale background removal result (generation {token})")
            return None

        if not isinstance(result, RasterBuffer) or result.size != source.size:
            size = getattr(result, "size", None)
            raise ServiceError(
                f"Background removal returned {size}, expected a {source.width}x{source.height} raster"
            )

        resample = self.config.rotate_filter
        removed = result
        for op in self._geometry:
            removed = op.apply(removed, resample)
        current = self._adjustments.apply(removed)

        self._background_removed, self._base, self._current = removed, removed, current
        self._background = None

        logger.info(f"Background removed (generation {token}): {removed.width}x{removed.height}")
        return current

    def add_background(self, background: Background) -> RasterBuffer:
        """
        Composite the background-removed image over a new background.

        Args:
            background: GradientBackground or ImageBackground

        Returns:
            The new current buffer

        Raises:
            PreconditionFailed: If no background removal has succeeded yet
            TypeError: If background is not a gradient or image background
        """
        self._require_loaded("add_background")
        if self._background_removed is None:
            raise PreconditionFailed(BACKGROUND_REMOVAL_REQUIRED)

        base = composite(self._background_removed, background, resample=self.config.cover_filter)
        current = self._adjustments.apply(base)

        self._base, self._current, self._background = base, current, background
        logger.debug(f"Background set to {background.kind} ({getattr(background, 'name', None)})")
        return current

    async def add_background_from_url(
        self,
        url: str,
        client: Optional[httpx.AsyncClient] = None,
    ) -> RasterBuffer:
        """
        Fetch an image background (preset photo or data: URL) and composite over it.

        Args:
            url: http(s) or data: URL, e.g. a value of PRESET_BACKGROUND_URLS
            client: Optional shared httpx.AsyncClient

        Returns:
            The new current buffer

        Raises:
            PreconditionFailed: If no background removal has succeeded yet
            ServiceError: If the download fails
            DecodeError: If the payload is not a decodable image
        """
        self._require_loaded("add_background_from_url")
        if self._background_removed is None:
            raise PreconditionFailed(BACKGROUND_REMOVAL_REQUIRED)

        image = await fetch_background_image(
            url,
            client=client,
            timeout=self.config.fetch_timeout,
            max_image_pixels=self.config.max_image_pixels,
        )
        if self._state is not SessionState.LOADED or self._background_removed is None:
            raise PreconditionFailed("Session changed while the background image was downloading")
        return self.add_background(ImageBackground(image, name=url))

    def clear_background(self) -> RasterBuffer:
        """
        Drop the replacement background and show the transparent cutout.

        Raises:
            PreconditionFailed: If no background removal has succeeded yet
        """
        self._require_loaded("clear_background")
        if self._background_removed is None:
            raise PreconditionFailed(BACKGROUND_REMOVAL_REQUIRED)

        base = self._background_removed
        current = self._adjustments.apply(base)
        self._base, self._current, self._background = base, current, None
        return current

    # ------------------------------------------------------------------
    # Reset and export
    # ------------------------------------------------------------------

    def reset(self) -> RasterBuffer:
        """
        Return to the original image and identity adjustments.

        Clears the background-removal result and the recorded geometry, and
        invalidates any outstanding removal call.
        """
        self._require_loaded("reset")

        self._generation += 1
        self._base = self._original
        self._current = self._original
        self._background_removed = None
        self._background = None
        self._adjustments = Adjustments()
        self._geometry = []

        logger.info(f"Session reset (generation {self._generation})")
        return self._current

    def export(self) -> ExportedImage:
        """
        Encode the current image as PNG.

        Raises:
            PreconditionFailed: If the session is not loaded
        """
        self._require_loaded("export")
        exported = export_image(self._current)
        logger.info(f"Exported {exported.width}x{exported.height} PNG ({len(exported.data)} bytes)")
        return exported
