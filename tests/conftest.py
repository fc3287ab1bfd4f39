"""
Pytest configuration and shared fixtures for the ebook export tests.

Nothing here touches the network or launches a browser: HTTP goes through
httpx.MockTransport and cover snapshots through a fake Rasterizer.
"""
import base64
import sys
from contextlib import asynccontextmanager
from io import BytesIO
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple

import httpx
import pytest
from PIL import Image

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from ebook_export.cover import CoverAcquirer, Rasterizer, RenderedSurface
from ebook_export.images import ImageResolver, PillowImageDecoder


# ============================================================================
# Helpers
# ============================================================================

def png_bytes(width: int = 40, height: int = 30, color=(200, 30, 30)) -> bytes:
    """Small solid-colour PNG"""
    buffer = BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


def png_data_uri(width: int = 40, height: int = 30) -> str:
    return "data:image/png;base64," + base64.b64encode(png_bytes(width, height)).decode("ascii")


def mock_client(routes: Optional[Dict[str, bytes]] = None) -> httpx.AsyncClient:
    """AsyncClient answering 200 for known URLs and 404 for everything else"""
    routes = routes or {}

    def handler(request: httpx.Request) -> httpx.Response:
        body = routes.get(str(request.url))
        if body is None:
            return httpx.Response(404)
        return httpx.Response(200, content=body)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class FakeSurface(RenderedSurface):
    def __init__(self, size: Tuple[float, float], payload: bytes = b"", error: Exception = None):
        self._size = size
        self._payload = payload
        self._error = error
        self.waited_for: Optional[float] = None

    async def size(self):
        return self._size

    async def wait_for_images(self, timeout: float) -> None:
        self.waited_for = timeout

    async def capture(self) -> bytes:
        if self._error:
            raise self._error
        return self._payload


class FakeRasterizer(Rasterizer):
    def __init__(self, surface: FakeSurface):
        self.surface = surface
        self.scales = []

    @asynccontextmanager
    async def open(self, element, scale):
        self.scales.append(scale)
        yield self.surface


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def make_png() -> Callable[..., bytes]:
    return png_bytes


@pytest.fixture
def make_data_uri() -> Callable[..., str]:
    return png_data_uri


@pytest.fixture
def make_resolver() -> Callable[..., ImageResolver]:
    """
    Build an offline ImageResolver.

    `direct` maps URLs to bodies for the strict fetch, `canvas` for the
    decoder's own permissive loader.
    """
    def factory(direct=None, canvas=None, timeout: float = 2.0) -> ImageResolver:
        decoder = PillowImageDecoder(client=mock_client(canvas), timeout=timeout)
        return ImageResolver(client=mock_client(direct), decoder=decoder, timeout=timeout)

    return factory


@pytest.fixture
def offline_resolver(make_resolver) -> ImageResolver:
    """Resolver for which every remote image fails"""
    return make_resolver()


@pytest.fixture
def acquirer(offline_resolver) -> CoverAcquirer:
    """Cover acquirer without a rasterizer (programmatic covers only)"""
    return CoverAcquirer(offline_resolver)


@pytest.fixture
def snapshot_rasterizer() -> FakeRasterizer:
    """Rasterizer returning a letter-size 2x capture"""
    return FakeRasterizer(FakeSurface((816, 1056), png_bytes(1632, 2112)))


@pytest.fixture
def make_rasterizer() -> Callable[..., FakeRasterizer]:
    """FakeRasterizer over a surface of the given size, capture payload or error"""
    def factory(size=(816, 1056), payload: bytes = b"", error: Exception = None) -> FakeRasterizer:
        return FakeRasterizer(FakeSurface(size, payload, error))

    return factory
