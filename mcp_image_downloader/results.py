from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from mcp import types


@dataclass(frozen=True)
class ToolSuccess:
    message: str

    @property
    def is_error(self) -> bool:
        return False


@dataclass(frozen=True)
class ToolFailure:
    """An expected failure of a tool's side effects (network, filesystem, codec)."""

    message: str
    kind: str = "error"

    @property
    def is_error(self) -> bool:
        return True


ToolResult = Union[ToolSuccess, ToolFailure]


def to_call_tool_result(result: ToolResult) -> types.CallToolResult:
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=result.message)],
        isError=result.is_error,
    )
