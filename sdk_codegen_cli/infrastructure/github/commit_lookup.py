"""GitHub REST lookups for spec directories and commit SHAs."""

import logging
import os
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)

GITHUB_API_BASE = "https://api.github.com"
USER_AGENT = "sdk-codegen-cli/1.0"
REQUEST_TIMEOUT = 30.0


class GitHubCommitLookup:
    """Read-only GitHub API client used by the migration steps.

    Lookups return a falsy value for non-200 responses. Transport failures
    raise ``httpx.HTTPError``; callers decide whether that is a warning.
    """

    def __init__(self, api_base: Optional[str] = None, token: Optional[str] = None):
        self.api_base = (api_base or os.getenv("GITHUB_API_URL") or GITHUB_API_BASE).rstrip("/")
        self.token = token if token is not None else os.getenv("GITHUB_TOKEN")

    def _headers(self) -> dict:
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": USER_AGENT,
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _get(self, url: str, params: Optional[dict] = None) -> Optional[Any]:
        async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT) as client:
            response = await client.get(url, params=params, headers=self._headers())

        if response.status_code != 200:
            logger.debug(f"GitHub returned {response.status_code} for {url}")
            return None
        return response.json()

    async def path_exists(self, owner: str, repo: str, path: str, branch: str = "main") -> bool:
        url = f"{self.api_base}/repos/{owner}/{repo}/contents/{path.strip('/')}"
        return await self._get(url, params={"ref": branch}) is not None

    async def latest_commit_for_path(
        self, owner: str, repo: str, path: str, branch: str = "main"
    ) -> Optional[str]:
        """SHA of the newest commit on ``branch`` touching ``path``."""
        data = await self._get(
            f"{self.api_base}/repos/{owner}/{repo}/commits",
            params={"path": path.strip("/"), "sha": branch, "per_page": 1},
        )
        return self._first_sha(data)

    async def latest_commit(self, owner: str, repo: str, branch: str = "main") -> Optional[str]:
        data = await self._get(
            f"{self.api_base}/repos/{owner}/{repo}/commits",
            params={"sha": branch, "per_page": 1},
        )
        return self._first_sha(data)

    @staticmethod
    def _first_sha(data: Optional[Any]) -> Optional[str]:
        if isinstance(data, list) and data:
            return data[0].get("sha")
        return None
