"""
Path utilities for the product graph editor.

config.json and .env live in the project root, next to app.py.
"""

from pathlib import Path


def get_app_dir() -> Path:
    """The project root (parent of product_graph/)."""
    return Path(__file__).parent.parent


def get_config_path() -> Path:
    """Get the path to the config file (API URL, admin token, editor policy)."""
    return get_app_dir() / "config.json"


def get_env_path() -> Path:
    """Get the path to the optional .env file."""
    return get_app_dir() / ".env"
