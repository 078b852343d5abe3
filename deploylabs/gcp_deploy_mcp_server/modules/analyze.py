"""
Analyze module for GCP Deploy MCP Server.
This module provides tools to analyze Phoenix repositories on GitHub.
"""
import logging
from typing import Any, Dict

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from deploylabs.gcp_deploy_mcp_server.api.analyze import (
    InvalidReferenceError,
    analyze_repository,
)
from deploylabs.gcp_deploy_mcp_server.api.wizard import format_error
from deploylabs.gcp_deploy_mcp_server.utils.config import get_config
from deploylabs.gcp_deploy_mcp_server.utils.github import GitHubClient, RepositoryFetchError

logger = logging.getLogger(__name__)


def register_module(mcp: FastMCP) -> None:
    """Register analyze module tools with the MCP server."""

    @mcp.tool(name="analyze_repository")
    async def mcp_analyze_repository(
        repository_url: str = Field(
            ...,
            description="GitHub repository URL (e.g. https://github.com/owner/repo)",
        ),
    ) -> Dict[str, Any]:
        """
        Analyzes a public GitHub repository to detect Phoenix application characteristics.

        Reads mix.exs from the repository's default branch and reports the
        application name, Elixir and Phoenix versions, and which common
        libraries (Ecto, LiveView, Oban, Swoosh, Gettext) are used.

        USAGE INSTRUCTIONS:
        1. Provide the URL of a public GitHub repository
        2. Use the result to configure estimate_deployment_cost and generate_deployment_files

        Parameters:
            repository_url: GitHub repository URL

        Returns:
            Dictionary containing the analysis result
        """
        config = get_config()
        fetcher = GitHubClient(api_base=config["github_api_base"], token=config["github_token"])

        try:
            analysis = await analyze_repository(repository_url, fetcher)
        except (InvalidReferenceError, RepositoryFetchError) as e:
            logger.error(f"Error analyzing {repository_url}: {e}")
            return {"status": "error", "kind": e.kind, "error": format_error(e)}

        return {"status": "success", "analysis": analysis.model_dump(mode="json")}
