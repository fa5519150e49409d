"""Static settings for mailproc.

Rules live in a single TOML file in the user's home directory, as they always
have. Paths can be overridden through the environment (or a ``.env`` file)
so the delivery agent does not need a special HOME.
"""

import json
import os
import tomllib
from typing import Any, Optional

from dotenv import load_dotenv

from mailproc.core.config import Config, build_config
from mailproc.core.errors import ConfigError

load_dotenv()

HOME = os.path.expanduser("~")

# Rules file. Files ending in .json are read as JSON, everything else as TOML.
CONFIG_PATH = os.getenv("MAILPROC_CONFIG") or os.path.join(HOME, ".mailproc.conf")

# Default log file, used unless the config's [logging.file] sets a path.
LOG_PATH = os.getenv("MAILPROC_LOG") or os.path.join(HOME, "mailproc.log")

# Delivery runs hold an exclusive lock on this file so they never overlap.
LOCK_PATH = os.getenv("MAILPROC_LOCK") or os.path.join(HOME, ".mailproc.lock")


def _load_raw_config(path: str) -> dict[str, Any]:
    """Read the config file into a plain mapping."""

    if not os.path.exists(path):
        raise FileNotFoundError(f"Config file not found: {path}")

    if path.endswith(".json"):
        with open(path, "r", encoding="utf-8") as handle:
            try:
                data = json.load(handle)
            except json.JSONDecodeError as exc:
                raise ConfigError(f"Could not parse config file {path}: {exc}") from exc
    else:
        with open(path, "rb") as handle:
            try:
                data = tomllib.load(handle)
            except tomllib.TOMLDecodeError as exc:
                raise ConfigError(f"Could not parse config file {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a table at the top level")
    return data


def load_config(path: Optional[str] = None) -> Config:
    """Load and shape-check the rules file (``CONFIG_PATH`` by default)."""

    return build_config(_load_raw_config(path or CONFIG_PATH))


def resolve_log_path(configured: Optional[str]) -> str:
    if not configured:
        return LOG_PATH
    return os.path.expanduser(configured)
