"""Configuration loading for the Cloud Logging MCP server."""

import os
import re
from pathlib import Path
from typing import Any, Mapping

import yaml

from gcloud_logging_mcp.models import ServerConfig

TRANSPORT_ENV_VAR = "MCP_TRANSPORT"
HOST_ENV_VAR = "MCP_HOST"
PORT_ENV_VAR = "PORT"


def _substitute_env_vars(obj):
    """Recursively substitute ${VAR} with environment variables."""
    if isinstance(obj, str):
        pattern = r"\$\{([^}]+)\}"
        return re.sub(pattern, lambda m: os.environ.get(m.group(1), m.group(0)), obj)
    elif isinstance(obj, dict):
        return {k: _substitute_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_substitute_env_vars(item) for item in obj]
    return obj


def load_config_data(path: str | Path | None) -> dict[str, Any]:
    """Load the raw settings mapping from a YAML file (empty if no path)."""
    if path is None:
        return {}

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {path}")
    return _substitute_env_vars(data)


def load_config(path: str | Path | None = None) -> ServerConfig:
    """Load configuration from a YAML file, or defaults if no path is given."""
    return ServerConfig(**load_config_data(path))


def resolve_config(
    path: str | Path | None = None,
    transport: str | None = None,
    port: int | None = None,
    host: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> ServerConfig:
    """Build the effective configuration for this process.

    Precedence, highest first: environment variables, command-line flags,
    the YAML config file, model defaults. The result is fixed for the
    process lifetime.
    """
    environ = os.environ if environ is None else environ
    data = load_config_data(path)

    flags = {"transport": transport, "port": port, "host": host}
    data.update({key: value for key, value in flags.items() if value is not None})

    env = {
        "transport": (environ.get(TRANSPORT_ENV_VAR) or "").strip().lower(),
        "port": environ.get(PORT_ENV_VAR),
        "host": environ.get(HOST_ENV_VAR),
    }
    data.update({key: value for key, value in env.items() if value})

    return ServerConfig(**data)
