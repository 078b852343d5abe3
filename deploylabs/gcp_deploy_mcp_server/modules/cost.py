"""
Cost module for GCP Deploy MCP Server.
This module provides tools to estimate monthly GCP costs.
"""
import logging
from typing import Any, Dict, Optional

from mcp.server.fastmcp import FastMCP
from pydantic import Field, ValidationError

from deploylabs.gcp_deploy_mcp_server.api.cost import available_tiers, estimate, tier_description
from deploylabs.gcp_deploy_mcp_server.models.deployment import DeploymentConfiguration

logger = logging.getLogger(__name__)


def register_module(mcp: FastMCP) -> None:
    """Register cost module tools with the MCP server."""

    @mcp.tool(name="estimate_deployment_cost")
    async def mcp_estimate_deployment_cost(
        config: Optional[Dict[str, Any]] = Field(
            default=None,
            description="Deployment configuration fields (e.g. {\"db_tier\": \"db-g1-small\", \"min_instances\": 2}); omitted fields use defaults",
        ),
    ) -> Dict[str, Any]:
        """
        Estimates the monthly cost of deploying a Phoenix app on GCP.

        The estimate covers Cloud Run, Cloud SQL, and the optional Cloud Armor,
        Cloud CDN and Secret Manager services, using baseline traffic
        assumptions. Values are approximate monthly USD totals.

        Parameters:
            config: Deployment configuration fields (optional)

        Returns:
            Dictionary containing the cost breakdown and available Cloud SQL tiers
        """
        try:
            deployment = DeploymentConfiguration.model_validate(config or {})
        except ValidationError as e:
            logger.error(f"Invalid deployment configuration: {e}")
            return {"status": "error", "error": str(e)}

        return {
            "status": "success",
            "estimate": estimate(deployment).model_dump(),
            "db_tier_description": tier_description(deployment.db_tier),
            "available_tiers": available_tiers(),
        }
