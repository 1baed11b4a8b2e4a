"""
Tests for the download_image handler.

Network access is replaced by httpx.MockTransport.
"""
from __future__ import annotations

import asyncio
import time

import httpx
import pytest

from mcp_image_downloader.config import DEFAULT_USER_AGENT, DownloadSettings
from mcp_image_downloader.results import ToolFailure, ToolSuccess
from mcp_image_downloader.schemas import DownloadImageRequest
from mcp_image_downloader.tools.download import ImageDownloader

PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x06\x00\x00\x00"
    b"\x1f\x15\xc4\x89\x00\x00\x00\rIDATx\x9cc\xf8\x0f\x00\x00\x01\x01\x00\x05\x18\xd8N\x00"
    b"\x00\x00\x00IEND\xaeB`\x82"
)


def _downloader(handler) -> ImageDownloader:
    return ImageDownloader(DownloadSettings(), transport=httpx.MockTransport(handler))


class TestDownloadImage:
    @pytest.mark.asyncio
    async def test_writes_bytes_and_creates_directory(self, tmp_path):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["user_agent"] = request.headers.get("user-agent")
            return httpx.Response(200, content=PNG_BYTES, headers={"content-type": "image/png"})

        out = tmp_path / "out" / "nested" / "a.png"
        result = await _downloader(handler).download(
            DownloadImageRequest(url="https://example.com/valid.png", output_path=str(out))
        )

        assert isinstance(result, ToolSuccess)
        assert str(out) in result.message
        assert out.read_bytes() == PNG_BYTES
        assert seen == {"method": "GET", "user_agent": DEFAULT_USER_AGENT}

    @pytest.mark.asyncio
    async def test_overwrites_existing_file(self, tmp_path):
        out = tmp_path / "a.png"
        out.write_bytes(b"old contents that are longer than the new ones")

        result = await _downloader(lambda request: httpx.Response(200, content=b"new")).download(
            DownloadImageRequest(url="https://example.com/a.png", output_path=str(out))
        )

        assert result.is_error is False
        assert out.read_bytes() == b"new"

    @pytest.mark.asyncio
    async def test_follows_redirects(self, tmp_path):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/old.png":
                return httpx.Response(302, headers={"location": "https://example.com/new.png"})
            return httpx.Response(200, content=PNG_BYTES)

        out = tmp_path / "a.png"
        result = await _downloader(handler).download(
            DownloadImageRequest(url="https://example.com/old.png", output_path=str(out))
        )
        assert result.is_error is False
        assert out.read_bytes() == PNG_BYTES

    @pytest.mark.asyncio
    async def test_http_error_status_is_tool_failure(self, tmp_path):
        out = tmp_path / "missing.png"
        result = await _downloader(lambda request: httpx.Response(404)).download(
            DownloadImageRequest(url="https://example.com/missing.png", output_path=str(out))
        )

        assert isinstance(result, ToolFailure)
        assert result.kind == "network"
        assert result.message.startswith("Failed to download image: ")
        assert "404" in result.message
        assert not out.exists()

    @pytest.mark.asyncio
    async def test_timeout_is_tool_failure(self, tmp_path):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        out = tmp_path / "slow.png"
        result = await _downloader(handler).download(
            DownloadImageRequest(url="https://example.com/slow.png", output_path=str(out))
        )

        assert result.is_error is True
        assert "timed out" in result.message
        assert not out.exists()

    @pytest.mark.asyncio
    async def test_slow_body_hits_total_timeout(self, tmp_path):
        """A server that keeps trickling bytes cannot hold the call open past the timeout."""

        async def trickle():
            for _ in range(20):
                await asyncio.sleep(0.1)
                yield b"x"

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=trickle())

        downloader = ImageDownloader(
            DownloadSettings(timeout_seconds=0.5), transport=httpx.MockTransport(handler)
        )
        out = tmp_path / "drip.png"

        start = time.perf_counter()
        result = await downloader.download(
            DownloadImageRequest(url="https://example.com/drip.png", output_path=str(out))
        )
        elapsed = time.perf_counter() - start

        assert isinstance(result, ToolFailure)
        assert result.kind == "network"
        assert "timed out" in result.message
        assert elapsed < 1.5
        assert not out.exists()

    @pytest.mark.asyncio
    async def test_unreachable_host_is_tool_failure(self, tmp_path):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Name or service not known", request=request)

        result = await _downloader(handler).download(
            DownloadImageRequest(url="https://nope.invalid/a.png", output_path=str(tmp_path / "a.png"))
        )
        assert result.is_error is True
        assert "Name or service not known" in result.message

    @pytest.mark.asyncio
    async def test_filesystem_error_is_tool_failure(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")

        result = await _downloader(lambda request: httpx.Response(200, content=PNG_BYTES)).download(
            DownloadImageRequest(url="https://example.com/a.png", output_path=str(blocker / "a.png"))
        )
        assert isinstance(result, ToolFailure)
        assert result.kind == "filesystem"

    @pytest.mark.asyncio
    async def test_relative_output_without_directory(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = await _downloader(lambda request: httpx.Response(200, content=PNG_BYTES)).download(
            DownloadImageRequest(url="https://example.com/a.png", output_path="a.png")
        )
        assert result.is_error is False
        assert (tmp_path / "a.png").read_bytes() == PNG_BYTES
