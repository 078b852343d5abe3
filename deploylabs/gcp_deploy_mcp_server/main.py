#!/usr/bin/env python3
"""
GCP Deploy MCP Server - Main entry point
"""

import logging
import os
import sys

from mcp.server.fastmcp import FastMCP

from deploylabs.gcp_deploy_mcp_server.modules import analyze, cost, generate, security, wizard
from deploylabs.gcp_deploy_mcp_server.utils.config import get_config

# Configure logging
logging.basicConfig(
    level=os.environ.get("FASTMCP_LOG_LEVEL", "INFO"),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("gcp-deploy-mcp-server")

# Create the MCP server
mcp = FastMCP(
    name="GCP Deploy MCP Server",
    instructions="""Use this server to deploy Phoenix (Elixir) applications to Google Cloud Platform.

WORKFLOW:
1. analyze_repository:
   - Detect the app name, Elixir/Phoenix versions and libraries from mix.exs

2. estimate_deployment_cost / check_deployment_security:
   - Estimate monthly costs for Cloud Run, Cloud SQL and optional services
   - Check the configuration against security best practices

3. generate_deployment_files:
   - Generate a Dockerfile, Terraform and Cloud Build configuration
   - Optionally write them to disk (requires ALLOW_WRITE=true)

Alternatively, use deployment_wizard to go through the same steps interactively.

IMPORTANT:
- Only public GitHub repositories can be analyzed without a GITHUB_TOKEN
- Cost estimates are approximate and based on baseline traffic assumptions
""",
)

# Register all modules
analyze.register_module(mcp)
cost.register_module(mcp)
security.register_module(mcp)
generate.register_module(mcp)
wizard.register_module(mcp)


def main() -> None:
    """Main entry point for the GCP Deploy MCP Server."""
    try:
        config = get_config()
        logger.info(f"Server started (write operations {'enabled' if config['allow-write'] else 'disabled'})")
        mcp.run()
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Error starting server: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
