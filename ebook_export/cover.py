#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Cover Acquirer

Produces the first page of an exported ebook:

- CoverSnapshot: a raster capture of the already-rendered cover template
  (an HTML document) taken at 2x device scale, or
- ProgrammaticCover: title / genre / author / optional cover image, laid out
  by each renderer itself.

Snapshot capture goes through the Rasterizer interface. PlaywrightRasterizer
renders the cover HTML in headless Chromium; tests plug in fakes.
"""

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional, Tuple, Union

from playwright.async_api import async_playwright

from config.constants import COVER_PAGE_WIDTH_PX, COVER_PAGE_HEIGHT_PX
from config.logging_config import get_logger
from config.settings import settings
from .errors import CoverCaptureError, ImageResolutionError
from .html_parser import sanitize_text
from .images import ImageResolver, ResolvedImage
from .models import ExportOptions

logger = get_logger(__name__)


@dataclass
class CoverElement:
    """Externally rendered cover: an HTML document sized as an 8.5in x 11in page"""
    html: str
    selector: Optional[str] = None  # element to capture; whole body when None


@dataclass
class CoverSnapshot:
    """Full-page PNG capture of the cover element"""
    payload: bytes
    width: int
    height: int


@dataclass
class ProgrammaticCover:
    """Cover description for renderers to draw themselves"""
    title: str
    genre: Optional[str] = None
    author: Optional[str] = None
    image: Optional[ResolvedImage] = None


CoverArtifact = Union[CoverSnapshot, ProgrammaticCover]


# ============================================================================
# Rasterizer capability
# ============================================================================

class RenderedSurface(ABC):
    """A cover element loaded into some rendering engine"""

    @abstractmethod
    async def size(self) -> Tuple[float, float]:
        """Rendered (width, height) in CSS pixels; zeros when not laid out"""

    @abstractmethod
    async def wait_for_images(self, timeout: float) -> None:
        """Wait for pending images, at most `timeout` seconds each, ignoring failures"""

    @abstractmethod
    async def capture(self) -> bytes:
        """PNG bytes of the element stretched to one full cover page"""


class Rasterizer(ABC):
    """Factory of rendered surfaces"""

    @abstractmethod
    def open(self, element: CoverElement, scale: int):
        """Async context manager yielding a RenderedSurface"""


class _PlaywrightSurface(RenderedSurface):
    WAIT_FOR_IMAGES_JS = """
        (el, timeout) => Promise.all(Array.from(el.querySelectorAll('img')).map(img => {
            if (img.complete) return null;
            return new Promise(resolve => {
                const timer = setTimeout(resolve, timeout);
                img.addEventListener('load', () => { clearTimeout(timer); resolve(); });
                img.addEventListener('error', () => { clearTimeout(timer); resolve(); });
            });
        }))
    """

    STRETCH_TO_PAGE_JS = """
        (el) => { el.style.width = '8.5in'; el.style.height = '11in'; }
    """

    def __init__(self, handle):
        self._handle = handle

    async def size(self) -> Tuple[float, float]:
        box = await self._handle.bounding_box()
        if not box:
            return 0.0, 0.0
        return box["width"], box["height"]

    async def wait_for_images(self, timeout: float) -> None:
        await self._handle.evaluate(self.WAIT_FOR_IMAGES_JS, int(timeout * 1000))

    async def capture(self) -> bytes:
        await self._handle.evaluate(self.STRETCH_TO_PAGE_JS)
        return await self._handle.screenshot(type="png", scale="device")


class PlaywrightRasterizer(Rasterizer):
    """Rasterizer backed by headless Chromium (Playwright)"""

    @asynccontextmanager
    async def open(self, element: CoverElement, scale: int) -> AsyncIterator[RenderedSurface]:
        async with async_playwright() as playwright:
            browser = await playwright.chromium.launch(headless=True)
            try:
                context = await browser.new_context(
                    viewport={"width": COVER_PAGE_WIDTH_PX, "height": COVER_PAGE_HEIGHT_PX},
                    device_scale_factor=scale,
                )
                page = await context.new_page()
                await page.set_content(element.html, wait_until="domcontentloaded")

                handle = await page.query_selector(element.selector or "body")
                if handle is None:
                    raise CoverCaptureError(f"Cover element not found: {element.selector}")

                yield _PlaywrightSurface(handle)
            finally:
                await browser.close()


# ============================================================================
# Acquirer
# ============================================================================

class CoverAcquirer:
    """
    Decide and build the cover artifact for one export call.

    Order: snapshot of the cover element, then programmatic synthesis when a
    cover page is wanted, otherwise no cover.
    """

    def __init__(
        self,
        resolver: ImageResolver,
        rasterizer: Optional[Rasterizer] = None,
        scale: Optional[int] = None,
        image_wait: Optional[float] = None,
    ):
        self.resolver = resolver
        self.rasterizer = rasterizer
        self.scale = scale or settings.cover_scale
        self.image_wait = image_wait if image_wait is not None else settings.cover_image_wait

    async def acquire(self, options: ExportOptions) -> Optional[CoverArtifact]:
        if options.cover_element is not None:
            if self.rasterizer is None:
                logger.debug("Cover element supplied but no rasterizer configured")
            else:
                try:
                    return await self.capture(options.cover_element)
                except CoverCaptureError as e:
                    logger.warning(f"Cover snapshot unusable, synthesizing instead: {e}")
                except Exception as e:
                    logger.warning(f"Cover capture error, synthesizing instead: {e}")

        if options.has_cover_page:
            return await self.synthesize(options)

        return None

    async def capture(self, element: CoverElement) -> CoverSnapshot:
        """
        Rasterize the cover element.

        Raises:
            CoverCaptureError: When the element is not laid out or the capture is empty
        """
        async with self.rasterizer.open(element, self.scale) as surface:
            width, height = await surface.size()
            if width <= 0 or height <= 0:
                raise CoverCaptureError(f"Cover element has no rendered area ({width}x{height})")

            await surface.wait_for_images(self.image_wait)
            payload = await surface.capture()

        info = self.resolver.decoder.inspect(payload) if payload else None
        if info is None or info[0] <= 0 or info[1] <= 0:
            raise CoverCaptureError("Cover capture produced an empty image")

        logger.info(f"Cover snapshot captured ({info[0]}x{info[1]} px)")
        return CoverSnapshot(payload=payload, width=info[0], height=info[1])

    async def synthesize(self, options: ExportOptions) -> Optional[ProgrammaticCover]:
        title = sanitize_text(options.title)
        if not title:
            logger.warning("Cannot synthesize a cover without a title")
            return None

        image = None
        if options.cover_image:
            try:
                image = await self.resolver.resolve(options.cover_image)
            except ImageResolutionError as e:
                logger.warning(f"Cover image skipped: {e}")

        return ProgrammaticCover(
            title=title,
            genre=sanitize_text(options.genre or "") or None,
            author=sanitize_text(options.author or "") or None,
            image=image,
        )
