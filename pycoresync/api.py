"""API client for resolving upstream revisions on GitHub."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from .config import config
from .exceptions import CoreSyncInvalidResponseError, CoreSyncNetworkError
from .sync.state import is_valid_revision

logger = logging.getLogger(__name__)


class GitHubClient:
    """Client for the GitHub REST API commit listing."""

    def __init__(
        self,
        repo_slug: str | None = None,
        api_url: str | None = None,
        token: str | None = None,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize GitHub API client.

        Args:
            repo_slug: "owner/name" of the upstream repository (uses config
                if not provided)
            api_url: Optional API URL (uses config if not provided)
            token: Optional access token for private repositories
            timeout: Request timeout in seconds (default: 30.0)
            transport: Optional httpx transport (used by tests)
        """
        self.repo_slug = (repo_slug or config.repo_slug).strip("/")
        self.api_url = (api_url or config.api_url).rstrip("/")
        self.token = token if token is not None else config.github_token
        self.timeout = timeout
        self._transport = transport

        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client."""
        if self._client is None or self._client.is_closed:
            headers = {
                "Accept": "application/vnd.github+json",
                "User-Agent": "pycoresync",
            }
            if self.token:
                headers["Authorization"] = f"Bearer {self.token}"
            self._client = httpx.Client(
                headers=headers,
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """Close the client and release connections."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def __enter__(self) -> GitHubClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        """Make an API request.

        Args:
            method: HTTP method
            endpoint: API endpoint path
            **kwargs: Additional arguments passed to httpx

        Returns:
            Response JSON data

        Raises:
            CoreSyncNetworkError: On transport errors or non-200 responses
            CoreSyncInvalidResponseError: If the body is not valid JSON
        """
        url = f"{self.api_url}/{endpoint.lstrip('/')}"
        logger.debug(f"{method} {url}")

        try:
            response = self._get_client().request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise CoreSyncNetworkError(f"Request to {url} timed out") from e
        except httpx.RequestError as e:
            raise CoreSyncNetworkError(f"Network error contacting {url}: {e}") from e

        if response.status_code != 200:
            error_msg = f"API request failed with status {response.status_code}"
            # Try to extract more details from response body
            try:
                error_data = response.json()
                if isinstance(error_data, dict) and error_data.get("message"):
                    error_msg = f"{error_msg}: {error_data['message']}"
            except ValueError:
                pass
            raise CoreSyncNetworkError(error_msg)

        try:
            return response.json()
        except ValueError as e:
            raise CoreSyncInvalidResponseError(
                "Invalid JSON response from server"
            ) from e

    def get_latest_revision(self, branch: str | None = None) -> str:
        """Resolve the newest commit of a branch.

        Args:
            branch: Branch name (uses config if not provided)

        Returns:
            Commit identifier of the branch head

        Raises:
            CoreSyncNetworkError: If the request fails
            CoreSyncInvalidResponseError: If the response holds no valid commit
        """
        branch = branch or config.branch
        commits = self._request(
            "GET",
            f"/repos/{self.repo_slug}/commits",
            params={"sha": branch, "per_page": 1},
        )

        if not isinstance(commits, list) or not commits:
            raise CoreSyncInvalidResponseError(
                f"No commits returned for {self.repo_slug}@{branch}"
            )

        first = commits[0]
        revision = first.get("sha") if isinstance(first, dict) else None
        if not isinstance(revision, str) or not revision:
            raise CoreSyncInvalidResponseError(
                f"Commit descriptor without revision for {self.repo_slug}@{branch}"
            )
        if not is_valid_revision(revision):
            raise CoreSyncInvalidResponseError(
                f"Malformed revision {revision!r} for {self.repo_slug}@{branch}"
            )

        logger.debug(f"Latest revision of {self.repo_slug}@{branch}: {revision}")
        return revision
