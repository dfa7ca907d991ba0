"""
Background fills for background replacement.

A background is either a two-stop linear gradient or an image. Both are plain
values carried from the palette to the compositor; no CSS strings are parsed
on the way.

Classes:
    GradientBackground: Two-stop linear gradient
    ImageBackground: Decoded image drawn with cover fit

Functions:
    parse_hex_color: Convert '#rgb', '#rrggbb' or '#rrggbbaa' to an RGBA tuple
    get_gradient_preset: Look up a named palette gradient
    list_gradient_presets: Names of the palette gradients
    fetch_background_image: Resolve an http(s) or data: URL into a RasterBuffer

Constants:
    GRADIENT_PRESETS: Named palette gradients
    PRESET_BACKGROUND_URLS: Named stock photo backgrounds
"""

import asyncio
import base64
import binascii
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union
from urllib.parse import unquote_to_bytes

import httpx

from PhotoAI_Libs.constants import DEFAULT_FETCH_TIMEOUT, DEFAULT_GRADIENT_ANGLE
from PhotoAI_Libs.errors import DecodeError, ServiceError
from PhotoAI_Libs.RasterLib.image_codec import decode_image
from PhotoAI_Libs.RasterLib.raster_buffer import RasterBuffer, RgbaColor, require_pixels

logger = logging.getLogger(__name__)


def parse_hex_color(value: str) -> RgbaColor:
    """
    Convert a hex color string to an RGBA tuple.

    Args:
        value: '#rgb', '#rrggbb' or '#rrggbbaa' (leading '#' optional)

    Returns:
        (r, g, b, a) with alpha 255 unless given

    Raises:
        ValueError: If the string is not a hex color
    """
    text = str(value).strip().lstrip("#")
    if len(text) == 3:
        text = "".join(ch * 2 for ch in text)

    if len(text) not in (6, 8):
        raise ValueError(f"Invalid hex color: {value!r}")

    try:
        channels = [int(text[i:i + 2], 16) for i in range(0, len(text), 2)]
    except ValueError:
        raise ValueError(f"Invalid hex color: {value!r}")

    if len(channels) == 3:
        channels.append(255)
    r, g, b, a = channels
    return r, g, b, a


def _as_rgba(color: Sequence[int]) -> RgbaColor:
    if isinstance(color, str) or len(color) not in (3, 4):
        raise ValueError(f"Gradient stop must be an RGB or RGBA tuple, got {color!r}")

    channels = [int(channel) for channel in color]
    if any(channel < 0 or channel > 255 for channel in channels):
        raise ValueError(f"Color channels must be 0-255, got {color!r}")

    if len(channels) == 3:
        channels.append(255)
    r, g, b, a = channels
    return r, g, b, a


@dataclass(frozen=True)
class GradientBackground:
    """Two-stop linear gradient.

    Attributes:
        stops: (start, end) colors; start is painted at the top-left corner for 135 degrees
        angle: CSS gradient angle in degrees (0 = bottom to top, 90 = left to right)
        name: Optional palette name
    """
    stops: Tuple[RgbaColor, RgbaColor]
    angle: float = DEFAULT_GRADIENT_ANGLE
    name: Optional[str] = None

    kind = "gradient"

    def __post_init__(self):
        if len(self.stops) != 2:
            raise ValueError(f"A gradient needs exactly two stops, got {len(self.stops)}")
        object.__setattr__(self, "stops", (_as_rgba(self.stops[0]), _as_rgba(self.stops[1])))
        object.__setattr__(self, "angle", float(self.angle))

    @classmethod
    def from_hex(
        cls,
        start: str,
        end: str,
        angle: float = DEFAULT_GRADIENT_ANGLE,
        name: Optional[str] = None,
    ) -> "GradientBackground":
        return cls(stops=(parse_hex_color(start), parse_hex_color(end)), angle=angle, name=name)


@dataclass(frozen=True)
class ImageBackground:
    """Image background drawn with cover fit.

    Attributes:
        image: Decoded background raster
        name: Optional label (preset name or source URL)
    """
    image: RasterBuffer
    name: Optional[str] = None

    kind = "image"

    def __post_init__(self):
        require_pixels(self.image, "ImageBackground")


Background = Union[GradientBackground, ImageBackground]


GRADIENT_PRESETS: Dict[str, GradientBackground] = {
    name: GradientBackground.from_hex(start, end, name=name)
    for name, start, end in (
        ("Sunset", "#ff6b6b", "#feca57"),
        ("Ocean", "#667eea", "#764ba2"),
        ("Forest", "#11998e", "#38ef7d"),
        ("Purple Dream", "#a8edea", "#fed6e3"),
        ("Fire", "#ff9a9e", "#fecfef"),
        ("Sky", "#74b9ff", "#0984e3"),
        ("Mint", "#00b894", "#00cec9"),
        ("Rose Gold", "#f093fb", "#f5576c"),
    )
}

_UNSPLASH = "https://images.unsplash.com/photo-{}?w=1920&h=1080&fit=crop&crop=center"

PRESET_BACKGROUND_URLS: Dict[str, str] = {
    "Starry Night": _UNSPLASH.format("1470813740244-df37b8c1edcb"),
    "Mountain Dawn": _UNSPLASH.format("1470071459604-3b5ec3a7fe05"),
    "Ocean Wave": _UNSPLASH.format("1500375592092-40eb2168fd21"),
    "Desert Dunes": _UNSPLASH.format("1482881497185-d4a9ddbe4151"),
    "Forest Light": _UNSPLASH.format("1523712999610-f77fbcfc3843"),
    "Lake Reflection": _UNSPLASH.format("1506744038136-46273834b3fb"),
}


def list_gradient_presets() -> List[str]:
    """Palette gradient names in display order."""
    return list(GRADIENT_PRESETS)


def get_gradient_preset(name: str) -> GradientBackground:
    """
    Look up a named palette gradient.

    Raises:
        KeyError: If the name is not in the palette
    """
    if name not in GRADIENT_PRESETS:
        available = ", ".join(GRADIENT_PRESETS)
        raise KeyError(f"Unknown gradient preset '{name}'. Available: {available}")
    return GRADIENT_PRESETS[name]


def _decode_data_url(url: str) -> bytes:
    header, sep, payload = url.partition(",")
    if not sep:
        raise DecodeError("Malformed data URL: missing ',' separator")

    if header.endswith(";base64"):
        try:
            return base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise DecodeError(f"Malformed base64 payload in data URL: {e}") from e

    return unquote_to_bytes(payload)


async def fetch_background_image(
    url: str,
    client: Optional[httpx.AsyncClient] = None,
    timeout: float = DEFAULT_FETCH_TIMEOUT,
    max_image_pixels: Optional[int] = None,
) -> RasterBuffer:
    """
    Resolve a background image URL into a RasterBuffer.

    Supports http(s) URLs (preset photos) and data: URLs (custom uploads).

    Args:
        url: Image location
        client: Optional shared httpx.AsyncClient (one is created otherwise)
        timeout: Request timeout in seconds when a client is created here
        max_image_pixels: See decode_image

    Returns:
        Decoded background raster

    Raises:
        ServiceError: If the download fails
        DecodeError: If the payload is not a decodable image or the scheme is unsupported
    """
    url = str(url).strip()

    if url.startswith("data:"):
        payload = _decode_data_url(url)
        return await asyncio.to_thread(decode_image, payload, max_image_pixels)

    if not url.startswith(("http://", "https://")):
        raise DecodeError(f"Unsupported background image URL: {url[:40]}")

    logger.debug(f"Fetching background image: {url}")
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as own_client:
                response = await own_client.get(url)
        else:
            response = await client.get(url)
        response.raise_for_status()
    except httpx.HTTPError as e:
        logger.warning(f"Background image download failed for {url}: {e}")
        raise ServiceError(f"Failed to fetch background image: {e}") from e

    return await asyncio.to_thread(decode_image, response.content, max_image_pixels)
