"""
Generate module for GCP Deploy MCP Server.
This module provides tools to generate Dockerfile, Terraform and Cloud Build files.
"""
import asyncio
import logging
from typing import Any, Dict, Optional

from mcp.server.fastmcp import FastMCP
from pydantic import Field, ValidationError

from deploylabs.gcp_deploy_mcp_server.api.analyze import InvalidReferenceError, analyze_repository
from deploylabs.gcp_deploy_mcp_server.api.export import write_artifacts
from deploylabs.gcp_deploy_mcp_server.api.generate import GenerationError, build_context, generate_all
from deploylabs.gcp_deploy_mcp_server.api.security_check import scan_artifacts
from deploylabs.gcp_deploy_mcp_server.api.wizard import format_error
from deploylabs.gcp_deploy_mcp_server.models.deployment import DeploymentConfiguration
from deploylabs.gcp_deploy_mcp_server.utils.config import get_config
from deploylabs.gcp_deploy_mcp_server.utils.github import GitHubClient, RepositoryFetchError
from deploylabs.gcp_deploy_mcp_server.utils.security import SecurityError
from deploylabs.gcp_deploy_mcp_server.utils.security import ValidationError as PathValidationError

logger = logging.getLogger(__name__)


def register_module(mcp: FastMCP) -> None:
    """Register generate module tools with the MCP server."""

    @mcp.tool(name="generate_deployment_files")
    async def mcp_generate_deployment_files(
        config: Optional[Dict[str, Any]] = Field(
            default=None,
            description="Deployment configuration fields; omitted fields use defaults",
        ),
        repository_url: Optional[str] = Field(
            default=None,
            description="GitHub repository URL to analyze first (optional)",
        ),
        output_dir: Optional[str] = Field(
            default=None,
            description="Absolute directory path to write the files to (requires ALLOW_WRITE=true)",
        ),
        as_zip: bool = Field(
            default=False,
            description="Write a single zip archive into output_dir instead of individual files",
        ),
    ) -> Dict[str, Any]:
        """
        Generates deployment files for a Phoenix app on GCP.

        Produces a Dockerfile, Terraform (main.tf, variables.tf, outputs.tf)
        and a Cloud Build pipeline. When a repository URL is given, the
        repository is analyzed first and the detected app name and Elixir
        version are used. Generated files are scanned for security issues.

        USAGE INSTRUCTIONS:
        1. Optionally run analyze_repository and estimate_deployment_cost first
        2. Provide the configuration fields you want to change from the defaults
        3. Review the returned files, or pass output_dir to write them to disk

        Parameters:
            config: Deployment configuration fields (optional)
            repository_url: GitHub repository URL (optional)
            output_dir: Directory to write files to (optional)
            as_zip: Whether to write a zip archive

        Returns:
            Dictionary containing the generated files and their scan results
        """
        try:
            deployment = DeploymentConfiguration.model_validate(config or {})
        except ValidationError as e:
            logger.error(f"Invalid deployment configuration: {e}")
            return {"status": "error", "error": str(e)}

        server_config = get_config()

        analysis = None
        if repository_url:
            fetcher = GitHubClient(
                api_base=server_config["github_api_base"], token=server_config["github_token"]
            )
            try:
                analysis = await analyze_repository(repository_url, fetcher)
            except (InvalidReferenceError, RepositoryFetchError) as e:
                logger.error(f"Error analyzing {repository_url}: {e}")
                return {"status": "error", "kind": e.kind, "error": format_error(e)}

        context = build_context(deployment, analysis)
        try:
            artifacts = await asyncio.to_thread(generate_all, context)
        except GenerationError as e:
            return {"status": "error", "error": str(e)}

        result: Dict[str, Any] = {
            "status": "success",
            "files": artifacts.as_files(),
            "scan": {
                name: [issue.model_dump(mode="json") for issue in issues]
                for name, issues in scan_artifacts(artifacts).items()
            },
        }
        if analysis is not None:
            result["analysis"] = analysis.model_dump(mode="json")

        if output_dir:
            try:
                result["written"] = write_artifacts(
                    artifacts, output_dir, context["app_name"], as_zip=as_zip, config=server_config
                )
            except (SecurityError, PathValidationError) as e:
                logger.error(f"Error writing deployment files: {e}")
                return {"status": "error", "error": str(e), "files": result["files"]}

        return result
