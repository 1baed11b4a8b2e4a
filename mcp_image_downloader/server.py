from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple, Type

from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError

from .catalog import DOWNLOAD_IMAGE, OPTIMIZE_IMAGE, TOOL_CATALOG, ToolSpec, list_tools
from .config import ServerSettings
from .observability import InMemoryMetrics, setup_logger
from .results import ToolFailure, ToolResult, to_call_tool_result
from .schemas import (
    ArgumentValidationError,
    DownloadImageRequest,
    ImageRequest,
    OptimizeImageRequest,
    parse_arguments,
)
from .tools import ImageDownloader, ImageOptimizer

logger = logging.getLogger("mcp_image_downloader.server")

Handler = Callable[[Any], Awaitable[ToolResult]]


def protocol_error(code: int, message: str, data: Optional[Dict[str, Any]] = None) -> McpError:
    """Build an error that the transport returns as a JSON-RPC error, not a tool result."""
    return McpError(types.ErrorData(code=code, message=message, data=data))


@dataclass
class AppContext:
    settings: ServerSettings
    logger: logging.Logger
    metrics: InMemoryMetrics
    downloader: ImageDownloader
    optimizer: ImageOptimizer
    catalog: Tuple[ToolSpec, ...] = field(default=TOOL_CATALOG)

    @classmethod
    def from_settings(cls, settings: ServerSettings, **overrides: Any) -> "AppContext":
        values: Dict[str, Any] = {
            "settings": settings,
            "logger": setup_logger(settings.log_level),
            "metrics": InMemoryMetrics(),
            "downloader": ImageDownloader(settings.download),
            "optimizer": ImageOptimizer(),
        }
        values.update(overrides)
        return cls(**values)


class ToolDispatcher:
    """
    Routes ``tools/call`` requests to the image handlers.

    Two error tiers:
    - unknown tool, bad arguments and unexpected handler exceptions raise
      ``McpError`` (JSON-RPC error response);
    - expected handler failures come back as ``CallToolResult(isError=True)``.
    """

    def __init__(self, app: AppContext) -> None:
        self.app = app
        handlers: Dict[str, Tuple[Type[ImageRequest], Handler]] = {
            DOWNLOAD_IMAGE: (DownloadImageRequest, app.downloader.download),
            OPTIMIZE_IMAGE: (OptimizeImageRequest, app.optimizer.optimize),
        }
        # only catalogued tools are callable
        self._routes = {spec.name: handlers[spec.name] for spec in app.catalog if spec.name in handlers}

    def list_tools(self) -> List[types.Tool]:
        return list_tools(self.app.catalog)

    async def call_tool(self, name: str, arguments: Optional[Mapping[str, Any]]) -> types.CallToolResult:
        route = self._routes.get(name)
        if route is None:
            logger.warning(f"Unknown tool: {name}", extra={"tool": name})
            raise protocol_error(types.METHOD_NOT_FOUND, f"Unknown tool: {name}")

        model, handler = route
        try:
            request = parse_arguments(name, model, arguments)
        except ArgumentValidationError as exc:
            logger.warning(str(exc), extra={"tool": name})
            raise protocol_error(
                types.INVALID_PARAMS,
                f"Invalid arguments for {name}",
                data={"errors": exc.errors},
            ) from exc

        start = time.perf_counter()
        try:
            result = await handler(request)
        except Exception as exc:
            duration_ms = (time.perf_counter() - start) * 1000.0
            self.app.metrics.record(name, duration_ms, error=True)
            logger.error(
                f"Unexpected error: {exc}",
                extra={"tool": name, "duration_ms": round(duration_ms, 1)},
                exc_info=True,
            )
            raise protocol_error(types.INTERNAL_ERROR, f"Internal error in {name}: {exc}") from exc

        duration_ms = (time.perf_counter() - start) * 1000.0
        self.app.metrics.record(name, duration_ms, error=result.is_error)
        if isinstance(result, ToolFailure):
            logger.warning(
                f"Tool failed ({result.kind}): {result.message}",
                extra={"tool": name, "duration_ms": round(duration_ms, 1)},
            )
        return to_call_tool_result(result)


def create_server(app: AppContext, dispatcher: Optional[ToolDispatcher] = None) -> Server:
    dispatcher = dispatcher or ToolDispatcher(app)
    server: Server = Server(app.settings.name, version=app.settings.version)

    @server.list_tools()
    async def handle_list_tools() -> List[types.Tool]:
        return dispatcher.list_tools()

    async def handle_call_tool(req: types.CallToolRequest) -> types.ServerResult:
        result = await dispatcher.call_tool(req.params.name, req.params.arguments)
        return types.ServerResult(result)

    # Registered directly: the call_tool() decorator turns every exception,
    # McpError included, into an isError result.
    server.request_handlers[types.CallToolRequest] = handle_call_tool
    return server


async def run_stdio(server: Server) -> None:
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())
