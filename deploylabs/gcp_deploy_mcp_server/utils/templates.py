"""
Template utilities for the GCP Deploy MCP Server.
"""

import logging
import os
from importlib import resources

logger = logging.getLogger(__name__)


def get_templates_dir() -> str:
    """
    Gets the path to the templates directory.

    Returns:
        Path to the templates directory
    """
    # First, try to get templates from the package resources
    try:
        templates_dir = str(resources.files("deploylabs.gcp_deploy_mcp_server") / "templates")
        if os.path.isdir(templates_dir):
            return templates_dir
    except (ModuleNotFoundError, TypeError) as e:
        logger.debug(f"Could not find templates in package resources: {e}")

    # Fallback to the templates directory next to this package
    current_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    templates_dir = os.path.join(current_dir, "templates")

    if not os.path.isdir(templates_dir):
        logger.warning(f"Templates directory not found at {templates_dir}")

    return templates_dir
