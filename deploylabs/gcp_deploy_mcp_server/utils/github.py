"""
GitHub utility functions.

Defines the repository fetcher contract used by the analyzer and the
production client that talks to the GitHub REST API.
"""

import base64
import binascii
import logging
import os
from typing import Any, Dict, Optional, Protocol

import httpx

logger = logging.getLogger(__name__)

GITHUB_API_BASE = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"


class RepositoryFetchError(Exception):
    """Exception raised when repository data cannot be fetched."""

    kind = "fetch_failed"


class NotFoundError(RepositoryFetchError):
    """The repository or file does not exist (or is not visible)."""

    kind = "not_found"


class UnauthorizedError(RepositoryFetchError):
    """The request was not authenticated."""

    kind = "unauthorized"


class RateLimitedError(RepositoryFetchError):
    """The GitHub API rate limit has been exhausted."""

    kind = "rate_limited"


class ForbiddenError(RepositoryFetchError):
    """Access to the resource is forbidden."""

    kind = "forbidden"


class UnexpectedStatusError(RepositoryFetchError):
    """GitHub answered with a status code we do not handle."""

    kind = "unexpected_status"

    def __init__(self, status: int):
        super().__init__(f"Unexpected status code from GitHub: {status}")
        self.status = status


class TransportError(RepositoryFetchError):
    """The request never produced a response."""

    kind = "transport_error"


class RepositoryFetcher(Protocol):
    """Capability used by the analyzer to read repository data."""

    async def fetch_repo_info(self, owner: str, repo: str) -> Dict[str, Any]:
        ...

    async def fetch_file(self, owner: str, repo: str, path: str, branch: str) -> str:
        ...


def _raise_for_status(response: httpx.Response) -> None:
    """Maps an unsuccessful GitHub response to a RepositoryFetchError."""
    status = response.status_code
    if status == 200:
        return
    if status == 404:
        raise NotFoundError(f"Not found: {response.request.url}")
    if status == 401:
        raise UnauthorizedError("GitHub rejected the credentials")
    if status == 403:
        if response.headers.get("x-ratelimit-remaining") == "0":
            raise RateLimitedError("GitHub API rate limit exceeded")
        raise ForbiddenError(f"Access forbidden: {response.request.url}")
    raise UnexpectedStatusError(status)


class GitHubClient:
    """Repository fetcher backed by the GitHub REST API."""

    def __init__(
        self,
        api_base: Optional[str] = None,
        token: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_base = api_base or os.environ.get("GITHUB_API_BASE", GITHUB_API_BASE)
        self.token = token if token is not None else os.environ.get("GITHUB_TOKEN")
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {
            "accept": "application/vnd.github+json",
            "x-github-api-version": GITHUB_API_VERSION,
        }
        if self.token:
            headers["authorization"] = f"Bearer {self.token}"
        return headers

    async def _get(self, url: str, params: Optional[Dict[str, str]] = None) -> httpx.Response:
        try:
            async with httpx.AsyncClient(
                base_url=self.api_base,
                headers=self._headers(),
                timeout=self.timeout,
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                return await client.get(url, params=params)
        except httpx.TransportError as e:
            logger.error(f"Error requesting {url}: {e}")
            raise TransportError(str(e)) from e

    async def fetch_repo_info(self, owner: str, repo: str) -> Dict[str, Any]:
        """
        Fetches repository metadata.

        Args:
            owner: Repository owner
            repo: Repository name

        Returns:
            The repository metadata as returned by GitHub
        """
        logger.info(f"Fetching repository info for {owner}/{repo}")
        response = await self._get(f"/repos/{owner}/{repo}")
        _raise_for_status(response)
        return response.json()

    async def fetch_file(self, owner: str, repo: str, path: str, branch: str) -> str:
        """
        Fetches the decoded content of a file.

        Args:
            owner: Repository owner
            repo: Repository name
            path: File path within the repository
            branch: Branch (or any git ref) to read from

        Returns:
            The file content as text
        """
        logger.info(f"Fetching {path} from {owner}/{repo}@{branch}")
        response = await self._get(f"/repos/{owner}/{repo}/contents/{path}", params={"ref": branch})
        _raise_for_status(response)

        body = response.json()
        if not isinstance(body, dict) or body.get("encoding") != "base64" or "content" not in body:
            raise RepositoryFetchError(f"{path} is not a regular file")

        try:
            return base64.b64decode(body["content"].replace("\n", "")).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            raise RepositoryFetchError(f"Could not decode {path}: {e}") from e
