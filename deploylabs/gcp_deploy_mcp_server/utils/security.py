"""
Security utilities for the GCP Deploy MCP Server.
"""

import logging
import os.path
import re
from typing import Any, Dict, Literal

logger = logging.getLogger(__name__)

# Define permission types as constants
PERMISSION_WRITE = "write"
PERMISSION_NONE = "none"

PermissionType = Literal["write", "none"]


class SecurityError(Exception):
    """Exception raised for security-related errors."""
    pass


class ValidationError(Exception):
    """Exception raised for validation errors."""
    pass


def validate_app_name(app_name: str) -> bool:
    """
    Validates application name to ensure it contains only allowed characters.

    Args:
        app_name: The application name to validate

    Returns:
        bool: Whether the name is valid

    Raises:
        ValidationError: If the name contains invalid characters
    """
    # Allow alphanumeric characters, hyphens, and underscores
    pattern = r'^[a-zA-Z0-9\-_]+$'
    if not app_name or not re.match(pattern, app_name):
        raise ValidationError(
            f"Application name '{app_name}' contains invalid characters. "
            "Only alphanumeric characters, hyphens, and underscores are allowed."
        )
    return True


def validate_output_dir(path: str) -> str:
    """
    Validates an output directory path to prevent directory traversal.

    The directory does not need to exist yet, but its parent must.

    Args:
        path: The directory path to validate

    Returns:
        str: The normalized absolute path

    Raises:
        ValidationError: If the path is invalid
    """
    if not path:
        raise ValidationError("Output directory must not be empty")

    suspicious_patterns = [
        r'(^|/)\.\.(/|$)',  # ../ or /..
        r'(^|\\)\.\.(\\|$)',  # ..\ (Windows)
    ]
    for pattern in suspicious_patterns:
        if re.search(pattern, path):
            raise ValidationError(f"Path '{path}' contains suspicious traversal patterns")

    abs_path = os.path.abspath(os.path.normpath(path))
    parent = os.path.dirname(abs_path)
    if not os.path.isdir(parent):
        raise ValidationError(f"Parent directory of '{path}' does not exist")

    if os.path.exists(abs_path) and not os.path.isdir(abs_path):
        raise ValidationError(f"Path '{path}' exists and is not a directory")

    return abs_path


def check_permission(config: Dict[str, Any], permission_type: PermissionType) -> bool:
    """
    Checks if the specified permission is allowed based on configuration settings.

    Args:
        config: The MCP server configuration
        permission_type: The type of permission to check

    Returns:
        bool: Whether the operation is allowed

    Raises:
        SecurityError: If the operation is not allowed
    """
    if permission_type == PERMISSION_WRITE and not config.get("allow-write", False):
        raise SecurityError(
            "Write operations are disabled for security. "
            "Set ALLOW_WRITE=true in your environment to enable, "
            "but be aware of the security implications."
        )

    return True
