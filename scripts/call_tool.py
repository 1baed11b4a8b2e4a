from __future__ import annotations

import asyncio
import json
import sys
from typing import Any, Dict

from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client


SERVER_PARAMS = StdioServerParameters(
    command=sys.executable,
    args=["-m", "mcp_image_downloader"],
)


async def main() -> None:
    if len(sys.argv) < 2:
        print("Usage: python scripts/call_tool.py <tool_name> ['<json-args>']")
        print("       python scripts/call_tool.py --list")
        raise SystemExit(1)

    async with stdio_client(SERVER_PARAMS) as (read_stream, write_stream):
        async with ClientSession(read_stream, write_stream) as session:
            await session.initialize()

            if sys.argv[1] == "--list":
                tools_result = await session.list_tools()
                print("Available tools:")
                for tool in tools_result.tools:
                    print(f"- {tool.name}: {tool.description}")
                return

            tool_name = sys.argv[1]
            try:
                params: Dict[str, Any] = json.loads(sys.argv[2]) if len(sys.argv) > 2 else {}
            except Exception as exc:
                print("Failed to parse JSON arguments")
                print(repr(exc))
                raise SystemExit(1)

            try:
                result = await session.call_tool(tool_name, params)
                print("Tool call result:")
                print(result)
            except Exception as exc:
                print("Tool call failed:")
                print(repr(exc))


if __name__ == "__main__":
    asyncio.run(main())
