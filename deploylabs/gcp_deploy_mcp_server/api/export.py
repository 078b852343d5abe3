"""
API for writing generated deployment files to disk.
"""

import logging
import os
import zipfile
from typing import Any, Dict, Optional

from deploylabs.gcp_deploy_mcp_server.models.reports import GeneratedArtifactSet
from deploylabs.gcp_deploy_mcp_server.utils.config import get_config
from deploylabs.gcp_deploy_mcp_server.utils.security import (
    PERMISSION_WRITE,
    check_permission,
    validate_app_name,
    validate_output_dir,
)

logger = logging.getLogger(__name__)


def write_artifacts(
    artifacts: GeneratedArtifactSet,
    output_dir: str,
    app_name: str,
    as_zip: bool = False,
    config: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Writes a generated file set to a directory, or to a zip archive inside it.

    Args:
        artifacts: Generated deployment files
        output_dir: Target directory (created if missing; its parent must exist)
        app_name: Application name, used for the archive name
        as_zip: Whether to write a single ``<app_name>-deploy.zip`` archive
        config: Server configuration (defaults to get_config())

    Returns:
        Dict with the written paths

    Raises:
        SecurityError: If write operations are disabled
        ValidationError: If the app name or output directory is invalid
    """
    config = config if config is not None else get_config()
    check_permission(config, PERMISSION_WRITE)
    validate_app_name(app_name)
    target_dir = validate_output_dir(output_dir)

    os.makedirs(target_dir, exist_ok=True)
    files = artifacts.as_files()

    if as_zip:
        archive_path = os.path.join(target_dir, f"{app_name}-deploy.zip")
        with zipfile.ZipFile(archive_path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for relative_path, content in files.items():
                archive.writestr(relative_path, content)
        logger.info(f"Wrote {len(files)} deployment files to {archive_path}")
        return {"archive_path": archive_path, "files": sorted(files)}

    written = []
    for relative_path, content in files.items():
        path = os.path.join(target_dir, relative_path)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w") as f:
            f.write(content)
        written.append(path)

    logger.info(f"Wrote {len(written)} deployment files to {target_dir}")
    return {"output_dir": target_dir, "files": written}
