"""MCP server that downloads images from URLs and writes optimized copies."""

__version__ = "0.1.0"
