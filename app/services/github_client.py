"""
GitHub REST API client.

Thin async wrapper over httpx for the calls the review pipeline makes:
fetching a pull request diff, reading pull request details and posting
issue, review and line comments.
"""

import time
from typing import Any, Dict, Optional

import httpx

from app.config import Settings
from app.utils.logging import get_logger, log_api_call

logger = get_logger(__name__)

USER_AGENT = "GitHub-Webhook-Code-Reviewer"
DEFAULT_TIMEOUT_SECONDS = 30.0


class GitHubAPIError(Exception):
    """A GitHub API call failed or returned a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class GitHubClient:
    """Async GitHub API client."""

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        """
        Initialize the client.

        Args:
            settings: Application settings (token and API base URL)
            transport: Optional httpx transport, used by tests
            timeout: Request timeout in seconds
        """
        self.token = settings.github_token
        self.base_url = settings.github_api_url.rstrip("/")
        self.transport = transport
        self.timeout = timeout

        if not self.token:
            logger.warning("GitHub token not configured, comment publishing is disabled")

    @property
    def has_token(self) -> bool:
        return bool(self.token)

    def get_headers(self, include_auth: bool = True) -> Dict[str, str]:
        headers = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": USER_AGENT,
        }
        if include_auth and self.token:
            headers["Authorization"] = f"token {self.token}"
        return headers

    async def _request(
        self,
        method: str,
        url: str,
        include_auth: bool = True,
        json: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        start_time = time.perf_counter()
        async with httpx.AsyncClient(
            timeout=self.timeout,
            transport=self.transport,
            follow_redirects=True,
        ) as client:
            try:
                response = await client.request(
                    method, url, headers=self.get_headers(include_auth), json=json
                )
            except httpx.HTTPError as e:
                log_api_call(
                    logger, service="github", endpoint=url, method=method,
                    duration_ms=(time.perf_counter() - start_time) * 1000, error=str(e),
                )
                raise GitHubAPIError(f"{method} {url} failed: {e}") from e

        duration_ms = (time.perf_counter() - start_time) * 1000
        if response.is_error:
            error = f"{method} {url} returned {response.status_code}"
            log_api_call(
                logger, service="github", endpoint=url, method=method,
                status_code=response.status_code, duration_ms=duration_ms, error=error,
            )
            raise GitHubAPIError(error, status_code=response.status_code)

        log_api_call(
            logger, service="github", endpoint=url, method=method,
            status_code=response.status_code, duration_ms=duration_ms,
        )
        return response

    async def fetch_diff(self, diff_url: str) -> str:
        """
        Fetch raw unified diff text from a pull request diff URL.

        The diff URL is public for public repositories; no auth is sent.
        """
        response = await self._request("GET", diff_url, include_auth=False)
        return response.text

    async def get_pull_request(self, owner: str, repo: str, number: int) -> Dict[str, Any]:
        """Fetch the pull request resource from the REST API."""
        url = f"{self.base_url}/repos/{owner}/{repo}/pulls/{number}"
        response = await self._request("GET", url)
        return response.json()

    async def add_issue_comment(self, owner: str, repo: str, number: int, body: str) -> Dict[str, Any]:
        """Post a conversation comment on the pull request."""
        url = f"{self.base_url}/repos/{owner}/{repo}/issues/{number}/comments"
        response = await self._request("POST", url, json={"body": body})
        data = response.json()
        logger.info(f"Comment added to PR #{number}, comment id {data.get('id')}")
        return data

    async def add_review_comment(
        self,
        owner: str,
        repo: str,
        number: int,
        commit_sha: str,
        path: str,
        line: int,
        body: str,
    ) -> Dict[str, Any]:
        """Post a line-anchored review comment."""
        url = f"{self.base_url}/repos/{owner}/{repo}/pulls/{number}/comments"
        payload = {
            "body": body,
            "commit_id": commit_sha,
            "path": path,
            "line": line,
        }
        response = await self._request("POST", url, json=payload)
        data = response.json()
        logger.info(f"Line comment added to PR #{number} at {path}:{line}, comment id {data.get('id')}")
        return data
