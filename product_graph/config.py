"""
Configuration management for the product graph editor.

Settings come from two places, environment first:
- Environment variables (a .env file next to the project root is loaded first)
- config.json next to the executable/project root

Keys:
- api_url / PRODUCT_GRAPH_API_URL: base URL of the console REST API
- admin_token / PRODUCT_GRAPH_ADMIN_TOKEN: bearer token for the session
- request_timeout / PRODUCT_GRAPH_TIMEOUT: transport timeout in seconds
- storage_backend / PRODUCT_GRAPH_BACKEND: 'rest' or 'memory'
- allow_self_loops, allow_parallel_edges: edge policy for the editor
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv

from product_graph.paths import get_config_path, get_env_path

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:8000/api"
DEFAULT_TIMEOUT = 30.0
DEFAULT_BACKEND = "rest"

ENV_API_URL = "PRODUCT_GRAPH_API_URL"
ENV_ADMIN_TOKEN = "PRODUCT_GRAPH_ADMIN_TOKEN"
ENV_TIMEOUT = "PRODUCT_GRAPH_TIMEOUT"
ENV_BACKEND = "PRODUCT_GRAPH_BACKEND"


@dataclass
class Settings:
    api_url: str = DEFAULT_API_URL
    admin_token: Optional[str] = None
    request_timeout: float = DEFAULT_TIMEOUT
    storage_backend: str = DEFAULT_BACKEND
    allow_self_loops: bool = False
    allow_parallel_edges: bool = False


def load_config(config_path: Optional[Union[str, Path]] = None) -> dict:
    """Load configuration from config.json. Missing or malformed files give {}."""
    path = Path(config_path) if config_path else get_config_path()
    if path.exists():
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Ignoring unreadable config file {path}: {e}")
            return {}
        if isinstance(data, dict):
            return data
        logger.warning(f"Ignoring config file {path}: top level is not an object")
    return {}


def save_config(config: dict, config_path: Optional[Union[str, Path]] = None) -> None:
    """Save configuration to config.json."""
    path = Path(config_path) if config_path else get_config_path()
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(config, f, indent=2)


def _parse_timeout(value) -> float:
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        logger.warning(f"Invalid request timeout {value!r}, using {DEFAULT_TIMEOUT}s")
        return DEFAULT_TIMEOUT
    if timeout <= 0:
        logger.warning(f"Request timeout must be positive, got {timeout}, using {DEFAULT_TIMEOUT}s")
        return DEFAULT_TIMEOUT
    return timeout


def get_settings(config_path: Optional[Union[str, Path]] = None, load_env: bool = True) -> Settings:
    """
    Resolve the effective settings.

    Priority:
    1. Environment variables (optionally seeded from .env)
    2. config.json
    3. Built-in defaults
    """
    if load_env:
        load_dotenv(get_env_path())
    config = load_config(config_path)

    api_url = os.environ.get(ENV_API_URL) or config.get("api_url") or DEFAULT_API_URL
    token = os.environ.get(ENV_ADMIN_TOKEN) or config.get("admin_token")
    timeout = os.environ.get(ENV_TIMEOUT) or config.get("request_timeout", DEFAULT_TIMEOUT)
    backend = os.environ.get(ENV_BACKEND) or config.get("storage_backend") or DEFAULT_BACKEND

    return Settings(
        api_url=api_url.rstrip("/"),
        admin_token=token or None,
        request_timeout=_parse_timeout(timeout),
        storage_backend=str(backend).lower(),
        allow_self_loops=bool(config.get("allow_self_loops", False)),
        allow_parallel_edges=bool(config.get("allow_parallel_edges", False)),
    )


def set_admin_token(token: str, config_path: Optional[Union[str, Path]] = None) -> None:
    """Persist the admin token to config.json and expose it to the current process."""
    config = load_config(config_path)
    config["admin_token"] = token
    save_config(config, config_path)
    os.environ[ENV_ADMIN_TOKEN] = token
