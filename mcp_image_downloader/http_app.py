"""
FastAPI/ASGI wrapper for the streamable-HTTP transport.

- MCP mount under /mcp
- Healthcheck under /health
- Prometheus metrics under /metrics
- Tool discovery under /mcp/discovery
"""
from __future__ import annotations

import hashlib
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Response
from mcp.server.lowlevel import Server
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from starlette.types import Receive, Scope, Send

from .observability import format_prometheus
from .server import AppContext, ToolDispatcher, create_server

logger = logging.getLogger("mcp_image_downloader.http_app")


def compute_tools_hash(tool_names: List[str]) -> str:
    """SHA-256 over the sorted tool names, one per line."""
    content = "\n".join(sorted(tool_names))
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def create_app(app_ctx: AppContext, server: Optional[Server] = None) -> FastAPI:
    dispatcher = ToolDispatcher(app_ctx)
    server = server or create_server(app_ctx, dispatcher)
    session_manager = StreamableHTTPSessionManager(app=server)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        async with session_manager.run():
            logger.info(f"{app_ctx.settings.name} streamable-http transport ready")
            yield
        logger.info("streamable-http transport stopped")

    app = FastAPI(
        title=app_ctx.settings.name,
        description="MCP server for downloading and optimizing images",
        version=app_ctx.settings.version,
        lifespan=lifespan,
    )

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {"ok": True, "status": "healthy"}

    @app.get("/metrics")
    async def metrics() -> Response:
        return Response(
            content=format_prometheus(app_ctx.metrics),
            media_type="text/plain; version=0.0.4",
        )

    @app.get("/mcp/discovery")
    async def discovery() -> Dict[str, Any]:
        tool_names = sorted(tool.name for tool in dispatcher.list_tools())
        return {
            "version": "1.0",
            "server": app_ctx.settings.name,
            "transport": "streamable-http",
            "endpoint": "/mcp",
            "tools": [{"name": name} for name in tool_names],
            "tool_count": len(tool_names),
            "tools_hash": compute_tools_hash(tool_names),
        }

    async def handle_mcp(scope: Scope, receive: Receive, send: Send) -> None:
        await session_manager.handle_request(scope, receive, send)

    # after /mcp/discovery so the route above wins
    app.mount("/mcp", handle_mcp)
    return app
