from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Optional

import httpx

from ..config import DownloadSettings
from ..results import ToolFailure, ToolResult, ToolSuccess
from ..schemas import DownloadImageRequest
from .files import ensure_parent_dir

logger = logging.getLogger("mcp_image_downloader.tools.download")


def _describe(exc: Exception) -> str:
    # some httpx timeouts carry an empty message
    return str(exc) or type(exc).__name__


class ImageDownloader:
    """
    Fetches a URL with a single GET and writes the body to disk.

    No retries: one failed attempt ends the request. ``transport`` lets tests
    swap in ``httpx.MockTransport``.
    """

    def __init__(
        self,
        settings: Optional[DownloadSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings or DownloadSettings()
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            headers={"User-Agent": self.settings.user_agent},
            timeout=httpx.Timeout(self.settings.timeout_seconds),
            follow_redirects=self.settings.follow_redirects,
            transport=self._transport,
        )

    async def _fetch(self, url: str) -> bytes:
        async with self._client() as client:
            response = await client.get(url)
            response.raise_for_status()
            return response.content

    async def download(self, request: DownloadImageRequest) -> ToolResult:
        start = time.perf_counter()
        timeout = self.settings.timeout_seconds
        try:
            ensure_parent_dir(request.output_path)
            # httpx.Timeout bounds each phase; wait_for bounds the whole request
            data = await asyncio.wait_for(self._fetch(request.url), timeout)
            Path(request.output_path).write_bytes(data)
        except asyncio.TimeoutError:
            message = f"request timed out after {timeout:g}s"
            logger.error(f"Download error: {message}", extra={"tool": "download_image"})
            return ToolFailure(f"Failed to download image: {message}", kind="network")
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.error(f"Download error: {_describe(exc)}", extra={"tool": "download_image"})
            return ToolFailure(f"Failed to download image: {_describe(exc)}", kind="network")
        except OSError as exc:
            logger.error(f"Download error: {_describe(exc)}", extra={"tool": "download_image"})
            return ToolFailure(f"Failed to download image: {_describe(exc)}", kind="filesystem")

        duration_ms = (time.perf_counter() - start) * 1000.0
        logger.info(
            f"Downloaded {len(data)} bytes from {request.url} to {request.output_path}",
            extra={"tool": "download_image", "duration_ms": round(duration_ms, 1)},
        )
        return ToolSuccess(f"Successfully downloaded image to {request.output_path}")
