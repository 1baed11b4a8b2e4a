from __future__ import annotations

import asyncio
import logging
import os
import time
from typing import Any, Dict, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from ..results import ToolFailure, ToolResult, ToolSuccess
from ..schemas import OptimizeImageRequest
from .files import ensure_parent_dir

logger = logging.getLogger("mcp_image_downloader.tools.optimize")

# Encoders that take a ``quality`` save option.
QUALITY_FORMATS = {"JPEG", "WEBP"}


def output_format(path: str) -> Optional[str]:
    """Pillow format name for the file extension of ``path``, if Pillow knows it."""
    ext = os.path.splitext(path)[1].lower()
    if not ext:
        return None
    return Image.registered_extensions().get(ext)


def fit_box(
    source: Tuple[int, int],
    width: Optional[float],
    height: Optional[float],
) -> Tuple[int, int]:
    """Bounding box for resize-to-fit; a missing side falls back to the source side."""
    src_w, src_h = source
    box_w = max(1, int(round(width))) if width is not None else src_w
    box_h = max(1, int(round(height))) if height is not None else src_h
    return box_w, box_h


def _save_options(fmt: Optional[str], quality: Optional[float]) -> Dict[str, Any]:
    if quality is not None and fmt in QUALITY_FORMATS:
        return {"quality": int(round(quality))}
    return {}


def optimize_file(request: OptimizeImageRequest) -> Tuple[int, int]:
    """Blocking part of the optimize tool. Returns the written image size."""
    ensure_parent_dir(request.output_path)
    fmt = output_format(request.output_path)
    Image.init()
    if fmt is not None and fmt not in Image.SAVE:
        # Pillow reads some formats (PSD, CUR, FLI, XPM) it cannot write
        raise ValueError(f"cannot write {fmt} images")

    with Image.open(request.input_path) as source:
        image = source.copy()
        if request.wants_resize:
            # thumbnail() keeps the aspect ratio and never enlarges
            image.thumbnail(fit_box(source.size, request.width, request.height), Image.Resampling.LANCZOS)

        if fmt == "JPEG" and image.mode not in ("RGB", "L", "CMYK"):
            image = image.convert("RGB")

        image.save(request.output_path, **_save_options(fmt, request.quality))
        return image.size


class ImageOptimizer:
    async def optimize(self, request: OptimizeImageRequest) -> ToolResult:
        start = time.perf_counter()
        try:
            size = await asyncio.to_thread(optimize_file, request)
        except (Image.DecompressionBombError, UnidentifiedImageError) as exc:
            logger.error(f"Optimization error: {exc}", extra={"tool": "optimize_image"})
            return ToolFailure(f"Failed to optimize image: {exc}", kind="codec")
        except OSError as exc:
            # missing input, unwritable output
            logger.error(f"Optimization error: {exc}", extra={"tool": "optimize_image"})
            return ToolFailure(f"Failed to optimize image: {exc}", kind="filesystem")
        except ValueError as exc:
            # unknown output extension or unsupported save options
            logger.error(f"Optimization error: {exc}", extra={"tool": "optimize_image"})
            return ToolFailure(f"Failed to optimize image: {exc}", kind="codec")

        duration_ms = (time.perf_counter() - start) * 1000.0
        logger.info(
            f"Optimized {request.input_path} -> {request.output_path} ({size[0]}x{size[1]})",
            extra={"tool": "optimize_image", "duration_ms": round(duration_ms, 1)},
        )
        return ToolSuccess(f"Successfully optimized image to {request.output_path}")
