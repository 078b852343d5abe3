"""
Configuration utilities for the GCP Deploy MCP Server.
"""

import logging
import os
from typing import Any, Dict

logger = logging.getLogger(__name__)

DEFAULT_TASK_TIMEOUT = 30.0


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").lower() in ("1", "true", "yes")


def get_config() -> Dict[str, Any]:
    """
    Gets the configuration for the GCP Deploy MCP Server.

    Returns:
        Dict containing configuration values
    """
    try:
        task_timeout = float(os.environ.get("DEPLOY_TASK_TIMEOUT", DEFAULT_TASK_TIMEOUT))
    except ValueError:
        logger.warning("Invalid DEPLOY_TASK_TIMEOUT, using default")
        task_timeout = DEFAULT_TASK_TIMEOUT

    config = {
        "github_api_base": os.environ.get("GITHUB_API_BASE", "https://api.github.com"),
        "github_token": os.environ.get("GITHUB_TOKEN", None),
        "task_timeout": task_timeout,
        "allow-write": _env_flag("ALLOW_WRITE"),
        "log_level": os.environ.get("FASTMCP_LOG_LEVEL", "INFO"),
    }

    redacted = {k: v for k, v in config.items() if k != "github_token"}
    logger.debug(f"Loaded configuration: {redacted}")
    return config
