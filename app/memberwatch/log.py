import logging
import os
from typing import Any, Dict, Optional

log = logging.getLogger("memberwatch")

DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def _resolve_log_level(cfg: Optional[Dict[str, Any]] = None) -> int:
    env_level = os.getenv("MEMBERWATCH_LOG_LEVEL")
    if env_level:
        return logging._nameToLevel.get(env_level.upper(), logging.INFO)

    level_name = (cfg or {}).get("logging", {}).get("level", "INFO")
    return logging._nameToLevel.get(str(level_name).upper(), logging.INFO)


def configure_logging(level: Optional[int] = None, cfg: Optional[Dict[str, Any]] = None) -> None:
    resolved = level if level is not None else _resolve_log_level(cfg)
    logging.basicConfig(level=resolved, format=DEFAULT_LOG_FORMAT)
    # basicConfig is a no-op once handlers exist; later calls still adjust the level
    logging.getLogger().setLevel(resolved)
    # slack_sdk is chatty at INFO about every socket frame
    logging.getLogger("slack_sdk").setLevel(max(resolved, logging.WARNING))
