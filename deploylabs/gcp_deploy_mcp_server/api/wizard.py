"""
Multi-step deployment configuration wizard.

Steps:
    1. repo     - Enter a GitHub URL and analyze it
    2. env      - Select environment and GCP project
    3. database - Configure Cloud SQL
    4. compute  - Configure Cloud Run scaling/resources
    5. security - Security settings
    6. review   - Review, cost estimate, and generate

A session owns one working configuration. Repository analysis and file
generation run as background asyncio tasks; each kind has a single in-flight
flag that both rejects duplicate submissions and tracks completion. The session
holds each running task until it finishes or is cancelled. Results re-enter the
session only through ``_complete_analysis`` and ``_complete_generation``.
"""

import asyncio
import logging
import re
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Union

from pydantic import ValidationError

from deploylabs.gcp_deploy_mcp_server.api.analyze import analyze_repository
from deploylabs.gcp_deploy_mcp_server.api.cost import estimate
from deploylabs.gcp_deploy_mcp_server.api.generate import DEFAULT_APP_NAME, build_context, generate_all
from deploylabs.gcp_deploy_mcp_server.api.security_check import check_configuration
from deploylabs.gcp_deploy_mcp_server.models.analysis import AnalysisResult
from deploylabs.gcp_deploy_mcp_server.models.deployment import (
    BOOLEAN_FIELDS,
    INTEGER_FIELDS,
    DeploymentConfiguration,
)
from deploylabs.gcp_deploy_mcp_server.models.reports import (
    CostBreakdown,
    GeneratedArtifactSet,
    SecurityReport,
)
from deploylabs.gcp_deploy_mcp_server.utils.config import get_config

logger = logging.getLogger(__name__)


class WizardStep(str, Enum):
    """Wizard steps, in order."""

    REPO = "repo"
    ENV = "env"
    DATABASE = "database"
    COMPUTE = "compute"
    SECURITY = "security"
    REVIEW = "review"


STEPS = list(WizardStep)

# state -> {"next": ..., "previous": ...}; None means the move is a no-op
TRANSITIONS: Dict[WizardStep, Dict[str, Optional[WizardStep]]] = {
    step: {
        "next": STEPS[index + 1] if index + 1 < len(STEPS) else None,
        "previous": STEPS[index - 1] if index > 0 else None,
    }
    for index, step in enumerate(STEPS)
}

# Reachable from anywhere once a repository has been analyzed
FAST_FORWARD_STEP = WizardStep.ENV

TRUE_TOKEN = "true"

ERROR_MESSAGES = {
    "invalid_github_url": "Please enter a valid GitHub URL (e.g. https://github.com/owner/repo)",
    "not_found": "Repository not found. Make sure it's public and the URL is correct.",
    "unauthorized": "GitHub API access denied. The repository may be private.",
    "rate_limited": "GitHub API rate limit exceeded. Please wait a few minutes and try again.",
    "timeout": "Repository analysis timed out. Please try again.",
}
GENERIC_ERROR_MESSAGE = "Failed to analyze repository. Please check the URL and try again."

Analyzer = Callable[[str], Awaitable[AnalysisResult]]
Generator = Callable[[Dict[str, Any]], GeneratedArtifactSet]


class TaskTimeoutError(Exception):
    """Exception raised when a background task exceeds its deadline."""

    kind = "timeout"


def format_error(error: BaseException) -> str:
    """Maps an analysis error to a short user-facing message."""
    return ERROR_MESSAGES.get(getattr(error, "kind", None), GENERIC_ERROR_MESSAGE)


def _parse_integer(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"Not an integer: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and re.fullmatch(r"[+-]?\d+", value):
        return int(value, 10)
    raise ValueError(f"Not an integer: {value!r}")


class WizardSession:
    """State machine driving a single deployment configuration session."""

    def __init__(
        self,
        analyzer: Optional[Analyzer] = None,
        generator: Optional[Generator] = None,
        task_timeout: Optional[float] = None,
    ):
        self._analyzer = analyzer or analyze_repository
        self._generator = generator or generate_all
        self.task_timeout = task_timeout if task_timeout is not None else get_config()["task_timeout"]

        self.step = WizardStep.REPO
        self._config = DeploymentConfiguration()
        self.repository_url = ""
        self.analysis_result: Optional[AnalysisResult] = None
        self.analysis_error: Optional[str] = None
        self.analyzing = False
        self.generating = False
        self.generation_error: Optional[str] = None
        self.cost_estimate: Optional[CostBreakdown] = None
        self.security_report: Optional[SecurityReport] = None
        self.generated_files: Optional[GeneratedArtifactSet] = None
        self.analysis_task: Optional["asyncio.Task[None]"] = None
        self.generation_task: Optional["asyncio.Task[None]"] = None

    @property
    def config(self) -> DeploymentConfiguration:
        """A copy of the working configuration; use merge_configuration to change it."""
        return self._config.model_copy()

    # --- Navigation ---

    def advance(self) -> WizardStep:
        """Moves to the next step; a no-op on the last step."""
        target = TRANSITIONS[self.step]["next"]
        if target is not None:
            self._enter(target)
        return self.step

    def retreat(self) -> WizardStep:
        """Moves to the previous step; a no-op on the first step."""
        target = TRANSITIONS[self.step]["previous"]
        if target is not None:
            self._enter(target)
        return self.step

    def can_jump_to(self, target: WizardStep) -> bool:
        """Earlier steps are always reachable; env also once an analysis exists."""
        if STEPS.index(target) <= STEPS.index(self.step):
            return True
        if target == FAST_FORWARD_STEP and self.analysis_result is not None:
            return True
        return False

    def jump_to(self, target: Union[WizardStep, str]) -> bool:
        """
        Jumps to a step if it is reachable.

        Returns:
            True if the step changed (or was re-entered), False if rejected
        """
        try:
            target = WizardStep(target)
        except ValueError:
            logger.warning(f"Unknown wizard step: {target}")
            return False

        if not self.can_jump_to(target):
            logger.debug(f"Rejected jump from {self.step.value} to {target.value}")
            return False

        self._enter(target)
        return True

    def _enter(self, target: WizardStep) -> None:
        self.step = target
        if target == WizardStep.REVIEW:
            self.enter_review()

    def enter_review(self) -> None:
        """Recomputes the cost estimate and security report from the current configuration."""
        self.cost_estimate = estimate(self._config)
        self.security_report = check_configuration(self._config)

    # --- Configuration ---

    def merge_configuration(self, params: Mapping[str, Any]) -> bool:
        """
        Applies a partial update to the working configuration.

        Boolean fields are true only for the token "true"; integer fields are
        parsed as base-10 integers. If any field fails to parse or the result
        does not validate, nothing is changed.

        Returns:
            True if the update was applied
        """
        parsed: Dict[str, Any] = {}
        try:
            for key, value in params.items():
                if key not in DeploymentConfiguration.model_fields:
                    raise ValueError(f"Unknown configuration field: {key}")
                if key in BOOLEAN_FIELDS:
                    parsed[key] = value is True or value == TRUE_TOKEN
                elif key in INTEGER_FIELDS:
                    parsed[key] = _parse_integer(value)
                else:
                    parsed[key] = value

            updated = DeploymentConfiguration.model_validate({**self._config.model_dump(), **parsed})
        except (ValueError, ValidationError) as e:
            logger.warning(f"Ignoring configuration update: {e}")
            return False

        self._config = updated
        if self.step == WizardStep.REVIEW:
            self.enter_review()
        return True

    # --- Analysis ---

    def submit_analysis(self, url: str) -> Optional["asyncio.Task[None]"]:
        """
        Starts analyzing a repository in the background.

        Must be called from a running event loop. Ignored while another
        analysis is in flight.

        Returns:
            The background task, or None if the submission was ignored
        """
        if self.analyzing:
            logger.info("Analysis already in progress, ignoring submission")
            return None

        self.analyzing = True
        self.analysis_error = None
        self.repository_url = url
        self.analysis_task = asyncio.get_running_loop().create_task(self._run_analysis(url))
        self.analysis_task.add_done_callback(self._analysis_done)
        return self.analysis_task

    def _analysis_done(self, task: "asyncio.Task[None]") -> None:
        # A task cancelled before or while running never reaches _complete_analysis
        if task.cancelled():
            logger.info("Repository analysis cancelled")
            self.analyzing = False
        if self.analysis_task is task:
            self.analysis_task = None

    async def _run_analysis(self, url: str) -> None:
        try:
            result = await asyncio.wait_for(self._analyzer(url), timeout=self.task_timeout)
        except asyncio.TimeoutError:
            self._complete_analysis(error=TaskTimeoutError(f"Analysis of {url} timed out"))
        except Exception as e:
            self._complete_analysis(error=e)
        else:
            self._complete_analysis(result=result)

    def _complete_analysis(
        self, result: Optional[AnalysisResult] = None, error: Optional[BaseException] = None
    ) -> None:
        self.analyzing = False

        if error is not None:
            logger.warning(f"Repository analysis failed: {error!r}")
            self.analysis_error = format_error(error)
            return

        self.analysis_result = result
        self._config = self._config.model_copy(update={"app_name": result.name or DEFAULT_APP_NAME})
        self._enter(WizardStep.ENV)

    # --- Generation ---

    def submit_generation(self) -> Optional["asyncio.Task[None]"]:
        """
        Starts generating deployment files in the background.

        The render context is taken from the configuration and analysis as
        they are at submission time. Ignored while a generation is in flight.

        Returns:
            The background task, or None if the submission was ignored
        """
        if self.generating:
            logger.info("Generation already in progress, ignoring submission")
            return None

        self.generating = True
        self.generation_error = None
        context = build_context(self._config, self.analysis_result)
        self.generation_task = asyncio.get_running_loop().create_task(self._run_generation(context))
        self.generation_task.add_done_callback(self._generation_done)
        return self.generation_task

    def _generation_done(self, task: "asyncio.Task[None]") -> None:
        if task.cancelled():
            logger.info("Deployment file generation cancelled")
            self.generating = False
        if self.generation_task is task:
            self.generation_task = None

    async def _run_generation(self, context: Dict[str, Any]) -> None:
        try:
            files = await asyncio.wait_for(
                asyncio.to_thread(self._generator, context), timeout=self.task_timeout
            )
        except asyncio.TimeoutError:
            self._complete_generation(error=TaskTimeoutError("File generation timed out"))
        except Exception as e:
            self._complete_generation(error=e)
        else:
            self._complete_generation(files=files)

    def _complete_generation(
        self, files: Optional[GeneratedArtifactSet] = None, error: Optional[BaseException] = None
    ) -> None:
        self.generating = False

        if error is not None:
            logger.error(f"Deployment file generation failed: {error}")
            self.generation_error = str(error)
            return

        self.generated_files = files

    def snapshot(self) -> Dict[str, Any]:
        """Returns the session state as plain data."""

        def dump(model):
            return model.model_dump(mode="json") if model is not None else None

        return {
            "step": self.step.value,
            "repository_url": self.repository_url,
            "config": self._config.model_dump(mode="json"),
            "analysis_result": dump(self.analysis_result),
            "analysis_error": self.analysis_error,
            "analyzing": self.analyzing,
            "generating": self.generating,
            "generation_error": self.generation_error,
            "cost_estimate": dump(self.cost_estimate),
            "security_report": dump(self.security_report),
            "generated_files": self.generated_files.as_files() if self.generated_files else None,
        }
