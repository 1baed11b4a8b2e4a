"""
Tool handlers.

Each handler takes an already validated request and returns a ToolResult.
Expected failures come back as ToolFailure; anything else propagates to the
dispatcher.
"""
from __future__ import annotations

from .download import ImageDownloader
from .optimize import ImageOptimizer

__all__ = ["ImageDownloader", "ImageOptimizer"]
