"""
Security module for GCP Deploy MCP Server.
This module provides tools to check configurations and generated files against
security best practices.
"""
import logging
from typing import Any, Dict, Optional

from mcp.server.fastmcp import FastMCP
from pydantic import Field, ValidationError

from deploylabs.gcp_deploy_mcp_server.api.security_check import (
    FILE_SCANNERS,
    check_configuration,
    scan_generated_file,
)
from deploylabs.gcp_deploy_mcp_server.models.deployment import DeploymentConfiguration

logger = logging.getLogger(__name__)


def register_module(mcp: FastMCP) -> None:
    """Register security module tools with the MCP server."""

    @mcp.tool(name="check_deployment_security")
    async def mcp_check_deployment_security(
        config: Optional[Dict[str, Any]] = Field(
            default=None,
            description="Deployment configuration fields; omitted fields use defaults",
        ),
    ) -> Dict[str, Any]:
        """
        Checks a deployment configuration against GCP security best practices.

        Each rule produces one finding. Critical and high findings are errors,
        medium findings are warnings, and the rest are reported as passed. The
        score runs from 0 to 100.

        Parameters:
            config: Deployment configuration fields (optional)

        Returns:
            Dictionary containing the security report
        """
        try:
            deployment = DeploymentConfiguration.model_validate(config or {})
        except ValidationError as e:
            logger.error(f"Invalid deployment configuration: {e}")
            return {"status": "error", "error": str(e)}

        return {"status": "success", "report": check_configuration(deployment).model_dump(mode="json")}

    @mcp.tool(name="scan_generated_file")
    async def mcp_scan_generated_file(
        kind: str = Field(
            ...,
            description=f"Kind of file to scan ({', '.join(sorted(FILE_SCANNERS))})",
        ),
        content: str = Field(
            ...,
            description="File content to scan",
        ),
    ) -> Dict[str, Any]:
        """
        Scans a Dockerfile or Terraform file for common security issues.

        Dockerfiles are checked for running as root, secrets in ARG/ENV and
        :latest base images. Terraform is checked for a public Cloud SQL IP,
        missing SSL enforcement and 0.0.0.0/0 firewall rules.

        Parameters:
            kind: "dockerfile" or "terraform"
            content: File content

        Returns:
            Dictionary containing one finding per check, most severe first
        """
        try:
            issues = scan_generated_file(kind, content)
        except ValueError as e:
            return {"status": "error", "error": str(e)}

        issues = sorted(issues, key=lambda issue: issue.severity.rank, reverse=True)
        return {"status": "success", "issues": [issue.model_dump(mode="json") for issue in issues]}
