from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "server.yaml"
CONFIG_ENV_VAR = "MCP_IMAGE_SERVER_CONFIG"

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)

TRANSPORTS = ("stdio", "streamable-http")


def load_config(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"MCP server config not found at {path}")
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError("Config root must be a mapping")
    return data


@dataclass(frozen=True)
class DownloadSettings:
    timeout_seconds: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT
    follow_redirects: bool = True


@dataclass(frozen=True)
class ServerSettings:
    name: str = "mcp-image-downloader"
    version: str = "0.1.0"
    log_level: str = "INFO"
    transport: str = "stdio"
    host: str = "127.0.0.1"
    port: int = 9000
    download: DownloadSettings = field(default_factory=DownloadSettings)


def settings_from_config(config: Dict[str, Any]) -> ServerSettings:
    """
    Build typed settings from a raw config mapping.

    Environment variables win over the file:
    MCP_SERVER_HOST, MCP_SERVER_PORT, MCP_LOG_LEVEL, MCP_TRANSPORT.
    """
    server_cfg = config.get("server", {}) or {}
    download_cfg = config.get("download", {}) or {}
    defaults = ServerSettings()
    download_defaults = DownloadSettings()

    transport = os.getenv("MCP_TRANSPORT", server_cfg.get("transport", defaults.transport)).strip().lower()
    if transport not in TRANSPORTS:
        raise ValueError(f"Unsupported transport '{transport}', expected one of {TRANSPORTS}")

    download = DownloadSettings(
        timeout_seconds=float(download_cfg.get("timeout_seconds", download_defaults.timeout_seconds)),
        user_agent=str(download_cfg.get("user_agent", download_defaults.user_agent)),
        follow_redirects=bool(download_cfg.get("follow_redirects", download_defaults.follow_redirects)),
    )
    return ServerSettings(
        name=str(server_cfg.get("name", defaults.name)),
        version=str(server_cfg.get("version", defaults.version)),
        log_level=str(os.getenv("MCP_LOG_LEVEL", server_cfg.get("log_level", defaults.log_level))).upper(),
        transport=transport,
        host=os.getenv("MCP_SERVER_HOST", server_cfg.get("host", defaults.host)),
        port=int(os.getenv("MCP_SERVER_PORT", server_cfg.get("port", defaults.port))),
        download=download,
    )


def load_settings(path: Optional[Path] = None) -> ServerSettings:
    """Load settings from an explicit path, the env var, or the optional default file."""
    explicit = path or (Path(os.environ[CONFIG_ENV_VAR]) if os.getenv(CONFIG_ENV_VAR) else None)
    if explicit is not None:
        return settings_from_config(load_config(explicit))
    if DEFAULT_CONFIG_PATH.exists():
        return settings_from_config(load_config(DEFAULT_CONFIG_PATH))
    return settings_from_config({})
