"""
Static tool catalogue.

The set of tools is fixed at import time and never changes while the server
runs. ``list_tools`` builds fresh ``mcp.types.Tool`` objects on every call so
callers cannot mutate the shared definitions.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from mcp import types

DOWNLOAD_IMAGE = "download_image"
OPTIMIZE_IMAGE = "optimize_image"


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    input_schema: Dict[str, Any]

    def to_tool(self) -> types.Tool:
        return types.Tool(
            name=self.name,
            description=self.description,
            inputSchema=copy.deepcopy(self.input_schema),
        )


TOOL_CATALOG: Tuple[ToolSpec, ...] = (
    ToolSpec(
        name=DOWNLOAD_IMAGE,
        description="Download an image from a URL to a specified path",
        input_schema={
            "type": "object",
            "properties": {
                "url": {
                    "type": "string",
                    "description": "URL of the image to download",
                },
                "outputPath": {
                    "type": "string",
                    "description": "Path where to save the image",
                },
            },
            "required": ["url", "outputPath"],
        },
    ),
    ToolSpec(
        name=OPTIMIZE_IMAGE,
        description="Create an optimized version of an image",
        input_schema={
            "type": "object",
            "properties": {
                "inputPath": {
                    "type": "string",
                    "description": "Path to the input image",
                },
                "outputPath": {
                    "type": "string",
                    "description": "Path where to save the optimized image",
                },
                "width": {
                    "type": "number",
                    "description": "Target width (maintains aspect ratio if only width is specified)",
                },
                "height": {
                    "type": "number",
                    "description": "Target height (maintains aspect ratio if only height is specified)",
                },
                "quality": {
                    "type": "number",
                    "description": "JPEG/WebP quality (1-100)",
                    "minimum": 1,
                    "maximum": 100,
                },
            },
            "required": ["inputPath", "outputPath"],
        },
    ),
)


def list_tools(catalog: Tuple[ToolSpec, ...] = TOOL_CATALOG) -> List[types.Tool]:
    return [spec.to_tool() for spec in catalog]

