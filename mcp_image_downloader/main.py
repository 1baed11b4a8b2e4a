"""
Main entry point for the MCP image server.

stdio is the default transport. ``--transport streamable-http`` serves the
FastAPI app from http_app with uvicorn instead.
"""
from __future__ import annotations

import argparse
import asyncio
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

import uvicorn

from .config import TRANSPORTS, load_settings
from .server import AppContext, create_server, run_stdio


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mcp-image-downloader",
        description="MCP server exposing download_image and optimize_image tools",
    )
    parser.add_argument("--config", type=Path, default=None, help="Path to a YAML config file")
    parser.add_argument("--transport", choices=TRANSPORTS, default=None, help="Override the configured transport")
    parser.add_argument("--host", default=None, help="Bind host for streamable-http")
    parser.add_argument("--port", type=int, default=None, help="Bind port for streamable-http")
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    try:
        settings = load_settings(args.config)
        overrides = {
            key: value
            for key, value in (("transport", args.transport), ("host", args.host), ("port", args.port))
            if value is not None
        }
        if overrides:
            settings = replace(settings, **overrides)

        app_ctx = AppContext.from_settings(settings)
        logger = app_ctx.logger

        if settings.transport == "streamable-http":
            from .http_app import create_app

            logger.info(f"Image Downloader MCP server on http://{settings.host}:{settings.port}/mcp")
            uvicorn.run(
                create_app(app_ctx),
                host=settings.host,
                port=settings.port,
                log_level=settings.log_level.lower(),
                server_header=False,
            )
        else:
            logger.info("Image Downloader MCP server running on stdio")
            asyncio.run(run_stdio(create_server(app_ctx)))
    except KeyboardInterrupt:
        print("Server shutdown requested...", file=sys.stderr)
        sys.exit(0)
    except (FileNotFoundError, ValueError) as exc:
        print(f"Failed to start MCP server: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
