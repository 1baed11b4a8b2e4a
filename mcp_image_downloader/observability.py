from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Dict, List

LOGGER_NAME = "mcp_image_downloader"


class StructuredFormatter(logging.Formatter):
    """JSON-line formatter that tolerates records without the structured fields."""

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "tool"):
            record.tool = ""
        if not hasattr(record, "duration_ms"):
            record.duration_ms = ""
        return super().format(record)


def setup_logger(level_name: str = "INFO") -> logging.Logger:
    # stderr only: stdout carries the MCP stdio channel
    logger = logging.getLogger(LOGGER_NAME)
    if logger.handlers:
        return logger
    level = getattr(logging, str(level_name).upper(), logging.INFO)
    logger.setLevel(level)
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter(
        '{"ts":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","tool":"%(tool)s",'
        '"duration_ms":"%(duration_ms)s","msg":"%(message)s"}'
    ))
    logger.addHandler(handler)
    logger.propagate = False
    return logger


@dataclass
class ToolMetrics:
    calls: int = 0
    errors: int = 0
    total_latency_ms: float = 0.0

    def observe(self, duration_ms: float, error: bool) -> None:
        self.calls += 1
        self.total_latency_ms += float(duration_ms)
        if error:
            self.errors += 1

    @property
    def avg_latency_ms(self) -> float:
        if self.calls == 0:
            return 0.0
        return self.total_latency_ms / self.calls


class InMemoryMetrics:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tools: Dict[str, ToolMetrics] = {}

    def record(self, tool: str, duration_ms: float, error: bool) -> None:
        with self._lock:
            metrics = self._tools.get(tool)
            if metrics is None:
                metrics = ToolMetrics()
                self._tools[tool] = metrics
            metrics.observe(duration_ms, error)

    def snapshot(self) -> Dict[str, Dict[str, float]]:
        with self._lock:
            data: Dict[str, Dict[str, float]] = {}
            for name, m in self._tools.items():
                data[name] = {
                    "calls": float(m.calls),
                    "errors": float(m.errors),
                    "avg_latency_ms": float(m.avg_latency_ms),
                }
            return data


def format_prometheus(metrics: InMemoryMetrics) -> str:
    """Render a metrics snapshot in the Prometheus text exposition format."""
    snapshot = metrics.snapshot()
    lines: List[str] = [
        "# HELP mcp_server_healthy MCP server health status",
        "# TYPE mcp_server_healthy gauge",
        "mcp_server_healthy 1",
    ]
    if snapshot:
        lines.append("# HELP mcp_tool_calls_total Total number of tool calls")
        lines.append("# TYPE mcp_tool_calls_total counter")
        for tool_name, tool_metrics in sorted(snapshot.items()):
            lines.append(f'mcp_tool_calls_total{{tool="{tool_name}"}} {tool_metrics["calls"]}')
        lines.append("# HELP mcp_tool_errors_total Total number of tool errors")
        lines.append("# TYPE mcp_tool_errors_total counter")
        for tool_name, tool_metrics in sorted(snapshot.items()):
            lines.append(f'mcp_tool_errors_total{{tool="{tool_name}"}} {tool_metrics["errors"]}')
        lines.append("# HELP mcp_tool_avg_latency_ms Average tool latency in milliseconds")
        lines.append("# TYPE mcp_tool_avg_latency_ms gauge")
        for tool_name, tool_metrics in sorted(snapshot.items()):
            lines.append(f'mcp_tool_avg_latency_ms{{tool="{tool_name}"}} {tool_metrics["avg_latency_ms"]}')
    return "\n".join(lines) + "\n"
