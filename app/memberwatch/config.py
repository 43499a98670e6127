"""
Configuration for memberwatch.

An optional JSON config file is read first, then environment variables
(including anything in a local ``.env``) override it. This is the single
source of truth for config loading.
"""

import json
import logging
import os
from typing import Any, Dict, Optional

from dotenv import load_dotenv

log = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "/data/memberwatch.config"
DEFAULT_WORKSPACE_NAME = "Aucklandia"
DEFAULT_DATA_DIR = "data"
DEFAULT_RECONNECT_DELAY = 5.0

# env var -> top-level config key
ENV_OVERRIDES = {
    "NOTIFICATION_CHANNEL": "notification_channel",
    "SLACK_BOT_TOKEN": "bot_token",
    "SLACK_APP_TOKEN": "app_token",
    "MEMBERWATCH_WORKSPACE_NAME": "workspace_name",
    "MEMBERWATCH_DATA_DIR": "data_dir",
    "MEMBERWATCH_RECONNECT_DELAY": "reconnect_delay",
}


class ConfigError(Exception):
    """Raised when the process cannot start with the given configuration."""


def config_path() -> str:
    return os.getenv("MEMBERWATCH_CONFIG", DEFAULT_CONFIG_PATH)


def _load_file(path: str) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        log.info("Config file not found: %s (using environment only)", path)
        return {}
    except Exception:
        log.exception("Failed to load config file %s", path)
        return {}

    if not isinstance(data, dict):
        log.error("Config file %s must contain a JSON object; ignoring it", path)
        return {}
    return data


def load_config(path: Optional[str] = None, *, use_dotenv: bool = True) -> Dict[str, Any]:
    """
    Load the memberwatch configuration.

    Keys set in the environment win over keys in the config file. Nested
    sections (``logging``, ``health``) are merged rather than replaced.
    """
    if use_dotenv:
        load_dotenv()

    cfg = _load_file(path or config_path())

    for env_name, key in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            cfg[key] = value

    level = os.getenv("MEMBERWATCH_LOG_LEVEL")
    if level:
        cfg.setdefault("logging", {})["level"] = level

    port = os.getenv("MEMBERWATCH_HEALTH_PORT")
    if port:
        cfg.setdefault("health", {})["port"] = port

    return cfg


def notification_channel(cfg: Dict[str, Any]) -> Optional[str]:
    return cfg.get("notification_channel") or None


def workspace_name(cfg: Dict[str, Any]) -> str:
    return cfg.get("workspace_name") or DEFAULT_WORKSPACE_NAME


def data_dir(cfg: Dict[str, Any]) -> str:
    return cfg.get("data_dir") or DEFAULT_DATA_DIR


def reconnect_delay(cfg: Dict[str, Any]) -> float:
    raw = cfg.get("reconnect_delay", DEFAULT_RECONNECT_DELAY)
    try:
        delay = float(raw)
    except (TypeError, ValueError):
        log.warning("Invalid reconnect_delay %r; using %s", raw, DEFAULT_RECONNECT_DELAY)
        return DEFAULT_RECONNECT_DELAY
    return max(delay, 0.0)


def health_port(cfg: Dict[str, Any]) -> Optional[int]:
    raw = (cfg.get("health") or {}).get("port")
    if raw in (None, ""):
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid health port: {raw!r}")


def slack_tokens(cfg: Dict[str, Any]) -> tuple:
    """Return ``(bot_token, app_token)`` or raise ConfigError if either is missing."""
    bot_token = cfg.get("bot_token")
    app_token = cfg.get("app_token")
    missing = [
        name
        for name, value in (("SLACK_BOT_TOKEN", bot_token), ("SLACK_APP_TOKEN", app_token))
        if not value
    ]
    if missing:
        raise ConfigError("Missing Slack credentials: " + ", ".join(missing))
    return bot_token, app_token
