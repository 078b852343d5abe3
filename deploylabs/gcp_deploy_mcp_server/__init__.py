"""
GCP Deploy MCP Server.

Analyzes Phoenix repositories on GitHub and generates Cloud Run deployment files.
"""

__version__ = "0.1.0"
