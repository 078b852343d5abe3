"""
API for analyzing GitHub repositories to detect Phoenix application characteristics.
"""

import logging
import re
from typing import Any, Optional
from urllib.parse import urlparse

from deploylabs.gcp_deploy_mcp_server.models.analysis import (
    AnalysisResult,
    ManifestFacts,
    RepositoryReference,
)
from deploylabs.gcp_deploy_mcp_server.utils.github import GitHubClient, RepositoryFetcher

logger = logging.getLogger(__name__)

GITHUB_HOSTS = ("github.com", "www.github.com")
MANIFEST_PATH = "mix.exs"
DEFAULT_BRANCH = "main"

_APP_NAME_PATTERN = re.compile(r"app:\s+:([a-z_]+)")
_ELIXIR_VERSION_PATTERN = re.compile(r"elixir:\s+\"~>\s*([\d.]+)\"")
_UMBRELLA_MARKERS = ("in_umbrella", "apps_path:")


class InvalidReferenceError(ValueError):
    """Exception raised when a URL does not point to a GitHub repository."""

    kind = "invalid_github_url"


def parse_repository_reference(url: Any) -> RepositoryReference:
    """
    Parses a GitHub URL into its owner and repository name.

    Anything after the repository segment (such as ``/tree/<branch>``) is
    ignored and a trailing ``.git`` is stripped.

    Args:
        url: GitHub repository URL

    Returns:
        RepositoryReference with owner and repo

    Raises:
        InvalidReferenceError: If the URL is not a GitHub repository URL
    """
    if not isinstance(url, str) or not url.strip():
        raise InvalidReferenceError(f"Not a GitHub repository URL: {url!r}")

    try:
        parsed = urlparse(url.strip())
        hostname = parsed.hostname
    except ValueError as e:
        raise InvalidReferenceError(f"Not a GitHub repository URL: {url!r}") from e

    if hostname not in GITHUB_HOSTS:
        raise InvalidReferenceError(f"Not a GitHub repository URL: {url!r}")

    segments = [segment for segment in parsed.path.split("/") if segment]
    if len(segments) < 2:
        raise InvalidReferenceError(f"URL does not name a repository: {url!r}")

    owner = segments[0]
    repo = segments[1]
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]

    if not owner or not repo:
        raise InvalidReferenceError(f"URL does not name a repository: {url!r}")

    return RepositoryReference(owner=owner, repo=repo)


async def analyze_repository(url: str, fetcher: Optional[RepositoryFetcher] = None) -> AnalysisResult:
    """
    Analyzes a GitHub repository and returns information about the Phoenix app.

    Fetches ``mix.exs`` from the default branch and parses it to discover
    dependencies and project configuration. Errors raised by the fetcher are
    not retried and propagate unchanged.

    Args:
        url: GitHub repository URL
        fetcher: Repository fetcher (defaults to a GitHubClient)

    Returns:
        AnalysisResult for the repository
    """
    reference = parse_repository_reference(url)
    fetcher = fetcher or GitHubClient()

    logger.info(f"Analyzing repository {reference.owner}/{reference.repo}")

    repo_info = await fetcher.fetch_repo_info(reference.owner, reference.repo)
    default_branch = (repo_info or {}).get("default_branch") or DEFAULT_BRANCH

    manifest = await fetcher.fetch_file(reference.owner, reference.repo, MANIFEST_PATH, default_branch)
    facts = parse_manifest(manifest)

    analysis = AnalysisResult(
        **facts.model_dump(),
        repo_url=url,
        default_branch=default_branch,
        is_umbrella=is_umbrella_project(manifest),
    )

    logger.info(f"Analysis complete: {analysis}")
    return analysis


def parse_manifest(content: Optional[str]) -> ManifestFacts:
    """
    Parses the content of a ``mix.exs`` file and extracts relevant information.

    Extraction is best effort: anything that cannot be found is left as None.
    Dependency presence is a plain substring test on ``:<name>``, so a
    dependency whose name prefixes another one (``:phoenix`` inside
    ``:phoenix_live_view``) is reported as present too.
    """
    content = content or ""
    return ManifestFacts(
        name=_first_group(_APP_NAME_PATTERN, content),
        elixir_version=_first_group(_ELIXIR_VERSION_PATTERN, content),
        phoenix_version=extract_dependency_version(content, "phoenix"),
        live_view_version=extract_dependency_version(content, "phoenix_live_view"),
        has_ecto=has_dependency(content, "ecto_sql") or has_dependency(content, "ecto"),
        has_live_view=has_dependency(content, "phoenix_live_view"),
        has_oban=has_dependency(content, "oban"),
        has_swoosh=has_dependency(content, "swoosh"),
        has_gettext=has_dependency(content, "gettext"),
    )


def extract_dependency_version(content: str, dep_name: str) -> Optional[str]:
    """Returns the ``~>`` version of a dependency declaration, if any."""
    pattern = re.compile(r"\{:" + re.escape(dep_name) + r",\s*\"~>\s*([\d.]+)\"")
    return _first_group(pattern, content)


def has_dependency(content: str, dep_name: str) -> bool:
    """Checks whether ``:<dep_name>`` appears anywhere in the manifest."""
    return f":{dep_name}" in content


def is_umbrella_project(content: str) -> bool:
    """Checks whether the manifest belongs to an umbrella project."""
    return any(marker in content for marker in _UMBRELLA_MARKERS)


def _first_group(pattern: "re.Pattern[str]", content: str) -> Optional[str]:
    match = pattern.search(content)
    return match.group(1) if match else None
