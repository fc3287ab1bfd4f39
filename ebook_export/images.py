#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Image Resolver

Turns an image locator (data URI, http(s) URL, local path) into a binary
payload plus pixel dimensions, trying one strategy at a time:

1. data URI - decode in memory
2. direct fetch - raw bytes through the shared httpx client
3. canvas round-trip - load through the decoder's permissive loader, redraw
   onto a fresh canvas and export as PNG

When everything fails ImageResolutionError is raised and the renderer skips
that image; resolve() raises nothing else, malformed locators included.
Pixel decoding and redrawing sit behind the ImageDecoder interface;
PillowImageDecoder is the implementation used in production.
"""

import asyncio
import base64
from abc import ABC, abstractmethod
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Optional, Tuple
from urllib.parse import unquote_to_bytes, urlparse

import httpx
from PIL import Image, UnidentifiedImageError

from config.constants import DOCX_EMBEDDABLE_FORMATS
from config.logging_config import get_logger
from config.settings import settings
from .errors import ImageResolutionError

logger = get_logger(__name__)


@dataclass
class ResolvedImage:
    """Decoded image payload ready for embedding"""
    payload: bytes
    width: int
    height: int
    format: Optional[str] = None  # Pillow format name, lower-cased

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height if self.height else 1.0


# ============================================================================
# Helpers
# ============================================================================

def is_data_uri(locator: str) -> bool:
    return locator[:5].lower() == "data:"


def decode_data_uri(locator: str) -> bytes:
    """
    Decode a data URI (base64 or percent-encoded) to bytes.

    Raises:
        ValueError: If the URI is malformed
    """
    header, separator, data = locator.partition(",")
    if not separator:
        raise ValueError("data URI has no payload separator")

    if header.lower().endswith(";base64"):
        compact = "".join(data.split())
        compact += "=" * (-len(compact) % 4)
        return base64.b64decode(compact)
    return unquote_to_bytes(data)


def infer_image_format(locator: str) -> str:
    """Guess the embedding format from hints in the locator: jpg, gif or png"""
    hint = (locator or "")[:200].lower()
    if "image/jpeg" in hint or ".jpg" in hint or ".jpeg" in hint:
        return "jpg"
    if "image/gif" in hint or ".gif" in hint:
        return "gif"
    return "png"


def fit_within(
    width: float,
    height: float,
    max_width: float,
    max_height: float,
    allow_upscale: bool = False,
) -> Tuple[float, float]:
    """Scale (width, height) to fit a box, keeping the aspect ratio"""
    if width <= 0 or height <= 0:
        return 0.0, 0.0
    scale = min(max_width / width, max_height / height)
    if not allow_upscale:
        scale = min(scale, 1.0)
    return width * scale, height * scale


def reencode_png(payload: bytes) -> bytes:
    """Decode any Pillow-readable payload and write it back as PNG"""
    with Image.open(BytesIO(payload)) as source:
        source.load()
        mode = "RGBA" if source.mode in ("RGBA", "LA", "P") else "RGB"
        buffer = BytesIO()
        source.convert(mode).save(buffer, format="PNG")
    return buffer.getvalue()


def ensure_embeddable(image: ResolvedImage) -> ResolvedImage:
    """
    Return an image python-docx can embed, re-encoding to PNG when needed.

    Raises:
        OSError: If the payload cannot be decoded at all
    """
    if image.format in DOCX_EMBEDDABLE_FORMATS:
        return image
    return ResolvedImage(reencode_png(image.payload), image.width, image.height, "png")


# ============================================================================
# Decoder capability
# ============================================================================

class ImageDecoder(ABC):
    """Pixel-level operations the resolver needs from an imaging library"""

    @abstractmethod
    def inspect(self, payload: bytes) -> Optional[Tuple[int, int, str]]:
        """Return (width, height, format) or None when the bytes are not an image"""

    @abstractmethod
    async def redraw(self, locator: str) -> ResolvedImage:
        """Load the image permissively, draw it on a canvas and export PNG"""

    async def aclose(self) -> None:
        pass


class PillowImageDecoder(ImageDecoder):
    """
    ImageDecoder backed by Pillow.

    The redraw loader follows redirects, sends browser-like headers and
    accepts local files, so it succeeds for sources the strict direct fetch
    refuses.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
        user_agent: Optional[str] = None,
    ):
        self.timeout = timeout if timeout is not None else settings.image_fetch_timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            follow_redirects=True,
            timeout=self.timeout,
            headers={
                "User-Agent": user_agent or settings.user_agent,
                "Accept": "image/avif,image/webp,image/apng,image/*,*/*;q=0.8",
            },
        )

    def inspect(self, payload: bytes) -> Optional[Tuple[int, int, str]]:
        try:
            with Image.open(BytesIO(payload)) as img:
                width, height = img.size
                return width, height, (img.format or "").lower()
        except (UnidentifiedImageError, OSError, ValueError):
            return None

    async def redraw(self, locator: str) -> ResolvedImage:
        data = await self._load(locator)
        return await asyncio.to_thread(self._draw, data)

    async def _load(self, locator: str) -> bytes:
        if is_data_uri(locator):
            return decode_data_uri(locator)

        parsed = urlparse(locator)
        if parsed.scheme in ("http", "https"):
            response = await self._client.get(locator)
            response.raise_for_status()
            return response.content
        if parsed.scheme == "file":
            return await asyncio.to_thread(Path(parsed.path).read_bytes)
        return await asyncio.to_thread(Path(locator).read_bytes)

    @staticmethod
    def _draw(data: bytes) -> ResolvedImage:
        with Image.open(BytesIO(data)) as source:
            source.load()
            canvas = Image.new("RGBA", source.size, (255, 255, 255, 0))
            canvas.paste(source.convert("RGBA"), (0, 0))

        buffer = BytesIO()
        canvas.save(buffer, format="PNG")
        width, height = canvas.size
        return ResolvedImage(buffer.getvalue(), width, height, "png")

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


# ============================================================================
# Resolver
# ============================================================================

class ImageResolver:
    """
    Layered image acquisition shared by both renderers.

    Usage:
        async with ImageResolver() as resolver:
            image = await resolver.resolve("https://example.com/cover.jpg")
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        decoder: Optional[ImageDecoder] = None,
        timeout: Optional[float] = None,
        placeholder_size: Optional[Tuple[int, int]] = None,
    ):
        self.timeout = timeout if timeout is not None else settings.image_fetch_timeout
        self.placeholder_size = placeholder_size or (
            settings.placeholder_width,
            settings.placeholder_height,
        )
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self.timeout)
        self._owns_decoder = decoder is None
        self.decoder = decoder or PillowImageDecoder(timeout=self.timeout)

    async def __aenter__(self) -> "ImageResolver":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
        if self._owns_decoder:
            await self.decoder.aclose()

    def _measured(self, payload: bytes) -> ResolvedImage:
        info = self.decoder.inspect(payload)
        if info is None:
            width, height = self.placeholder_size
            return ResolvedImage(payload, width, height, None)
        width, height, image_format = info
        return ResolvedImage(payload, width, height, image_format or None)

    async def resolve(self, locator: str) -> ResolvedImage:
        """
        Resolve a locator to a payload with dimensions.

        Raises:
            ImageResolutionError: When every strategy failed
        """
        if not locator or not locator.strip():
            raise ImageResolutionError(locator or "", "empty locator")

        if is_data_uri(locator):
            try:
                payload = decode_data_uri(locator)
            except ValueError as e:
                raise ImageResolutionError(locator, f"invalid data URI: {e}") from e
            if not payload:
                raise ImageResolutionError(locator, "empty data URI payload")
            return self._measured(payload)

        try:
            scheme = urlparse(locator).scheme
        except ValueError as e:
            raise ImageResolutionError(locator, f"malformed locator: {e}") from e

        if scheme in ("http", "https"):
            try:
                return await self._fetch_direct(locator)
            except (httpx.HTTPError, httpx.InvalidURL, ValueError, ImageResolutionError) as e:
                logger.debug(f"Direct fetch failed for {locator}: {e}; trying canvas round-trip")

        try:
            image = await asyncio.wait_for(self.decoder.redraw(locator), timeout=self.timeout)
        except asyncio.TimeoutError:
            raise ImageResolutionError(locator, f"timed out after {self.timeout}s")
        except Exception as e:
            raise ImageResolutionError(locator, str(e) or type(e).__name__) from e

        if not image.payload or image.width <= 0 or image.height <= 0:
            raise ImageResolutionError(locator, "canvas round-trip produced an empty image")

        logger.debug(f"Resolved {locator} via canvas round-trip ({image.width}x{image.height})")
        return image

    async def _fetch_direct(self, locator: str) -> ResolvedImage:
        response = await self._client.get(locator, timeout=self.timeout)
        response.raise_for_status()
        if not response.content:
            raise ImageResolutionError(locator, "empty response body")

        info = self.decoder.inspect(response.content)
        if info is None:
            raise ImageResolutionError(locator, "response body is not a decodable image")
        width, height, image_format = info
        return ResolvedImage(response.content, width, height, image_format or None)
