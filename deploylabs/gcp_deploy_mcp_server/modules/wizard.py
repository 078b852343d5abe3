"""
Wizard module for GCP Deploy MCP Server.
This module exposes the step-by-step deployment wizard as a single tool.
"""
import functools
import logging
from collections import OrderedDict
from typing import Any, Dict, Optional

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from deploylabs.gcp_deploy_mcp_server.api.analyze import analyze_repository
from deploylabs.gcp_deploy_mcp_server.api.wizard import STEPS, WizardSession
from deploylabs.gcp_deploy_mcp_server.utils.config import get_config
from deploylabs.gcp_deploy_mcp_server.utils.github import GitHubClient

logger = logging.getLogger(__name__)

WIZARD_ACTIONS = ("status", "analyze", "update", "next", "previous", "goto", "generate", "reset")
DEFAULT_SESSION_ID = "default"
MAX_SESSIONS = 32


def create_session() -> WizardSession:
    """Creates a wizard session wired to the configured GitHub API."""
    config = get_config()
    fetcher = GitHubClient(api_base=config["github_api_base"], token=config["github_token"])
    return WizardSession(
        analyzer=functools.partial(analyze_repository, fetcher=fetcher),
        task_timeout=config["task_timeout"],
    )


def get_session(
    sessions: "OrderedDict[str, WizardSession]", session_id: str, fresh: bool = False
) -> WizardSession:
    """
    Looks up a wizard session by id, creating it if needed.

    At most MAX_SESSIONS sessions are kept; the least recently used one is
    dropped to make room.

    Args:
        sessions: Session store, ordered from least to most recently used
        session_id: Wizard session identifier
        fresh: Replace any existing session with a new one

    Returns:
        The session for session_id
    """
    session = None if fresh else sessions.get(session_id)
    if session is None:
        logger.info(f"Starting wizard session {session_id}")
        session = create_session()

    sessions[session_id] = session
    sessions.move_to_end(session_id)
    while len(sessions) > MAX_SESSIONS:
        dropped, _ = sessions.popitem(last=False)
        logger.info(f"Dropping least recently used wizard session {dropped}")
    return session


async def handle_wizard_action(
    session: WizardSession,
    action: str,
    repository_url: Optional[str] = None,
    params: Optional[Dict[str, Any]] = None,
    step: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Applies one wizard action to a session.

    Background work started by ``analyze`` and ``generate`` is awaited, so
    the returned state already reflects its outcome. ``reset`` only reports
    the state; replacing the session is up to the caller (see get_session).

    Returns:
        Dictionary with the status and the session state
    """
    error = None

    if action in ("status", "reset"):
        pass
    elif action == "analyze":
        if not repository_url:
            error = "repository_url is required for the analyze action"
        else:
            task = session.submit_analysis(repository_url)
            if task is None:
                error = "An analysis is already in progress"
            else:
                await task
                error = session.analysis_error
    elif action == "update":
        if not session.merge_configuration(params or {}):
            error = "Configuration update rejected; no fields were changed"
    elif action == "next":
        session.advance()
    elif action == "previous":
        session.retreat()
    elif action == "goto":
        if not step or not session.jump_to(step):
            error = f"Cannot jump to step {step!r} from {session.step.value}"
    elif action == "generate":
        task = session.submit_generation()
        if task is None:
            error = "File generation is already in progress"
        else:
            await task
            error = session.generation_error
    else:
        error = f"Unknown action {action!r}. Expected one of {', '.join(WIZARD_ACTIONS)}"

    result: Dict[str, Any] = {"status": "error" if error else "success", "state": session.snapshot()}
    if error:
        result["error"] = error
    return result


def register_module(mcp: FastMCP) -> None:
    """Register wizard module tools with the MCP server."""

    sessions: "OrderedDict[str, WizardSession]" = OrderedDict()

    @mcp.tool(name="deployment_wizard")
    async def mcp_deployment_wizard(
        action: str = Field(
            ...,
            description=f"Action to perform ({', '.join(WIZARD_ACTIONS)})",
        ),
        session_id: str = Field(
            default=DEFAULT_SESSION_ID,
            description="Wizard session identifier; each session keeps its own configuration",
        ),
        repository_url: Optional[str] = Field(
            default=None,
            description="GitHub repository URL for the analyze action",
        ),
        params: Optional[Dict[str, Any]] = Field(
            default=None,
            description="Configuration fields for the update action (e.g. {\"min_instances\": \"2\", \"enable_armor\": \"true\"})",
        ),
        step: Optional[str] = Field(
            default=None,
            description=f"Target step for the goto action ({', '.join(s.value for s in STEPS)})",
        ),
    ) -> Dict[str, Any]:
        """
        Walks through configuring a Phoenix deployment on GCP step by step.

        Steps: repo -> env -> database -> compute -> security -> review.
        Analyzing a repository moves the wizard to the env step. Entering the
        review step computes the cost estimate and security report.

        USAGE INSTRUCTIONS:
        1. Start with action="analyze" and a repository_url
        2. Use action="update" with params to change configuration fields
        3. Move with "next", "previous" or "goto" (earlier steps only)
        4. On the review step, use action="generate" to produce deployment files
        5. Use action="status" at any time to see the current state
        6. Use action="reset" to discard the session and start over

        Parameters:
            action: Action to perform
            session_id: Wizard session identifier
            repository_url: GitHub repository URL (analyze)
            params: Configuration fields (update)
            step: Target step (goto)

        Returns:
            Dictionary containing the action status and the wizard state
        """
        session = get_session(sessions, session_id, fresh=action == "reset")
        return await handle_wizard_action(session, action, repository_url, params, step)
