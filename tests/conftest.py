from __future__ import annotations

from typing import Callable, Optional

import httpx
import pytest
from PIL import Image

from mcp_image_downloader.config import ServerSettings
from mcp_image_downloader.observability import InMemoryMetrics
from mcp_image_downloader.server import AppContext
from mcp_image_downloader.tools import ImageDownloader, ImageOptimizer


@pytest.fixture
def make_image(tmp_path):
    """Write a gradient test image and return its path."""

    def _make(name: str = "in.jpg", size=(400, 200), mode: str = "RGB") -> str:
        image = Image.new(mode, size)
        pixels = image.load()
        for x in range(size[0]):
            for y in range(size[1]):
                value = (x * 255 // size[0], y * 255 // size[1], (x + y) % 256)
                if mode == "RGBA":
                    pixels[x, y] = value + (128,)
                else:
                    pixels[x, y] = value
        path = tmp_path / name
        image.save(path)
        return str(path)

    return _make


@pytest.fixture
def make_app() -> Callable[..., AppContext]:
    def _make(handler: Optional[Callable[[httpx.Request], httpx.Response]] = None) -> AppContext:
        settings = ServerSettings()
        transport = httpx.MockTransport(handler) if handler is not None else None
        return AppContext.from_settings(
            settings,
            metrics=InMemoryMetrics(),
            downloader=ImageDownloader(settings.download, transport=transport),
            optimizer=ImageOptimizer(),
        )

    return _make
