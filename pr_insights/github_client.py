"""
Helpers for reading pull-request data from the GitHub REST API.

The assistant session exposes these calls as AutoGen function tools so the
model can fetch PR lists, PR details and reviews on demand.  Results are
reduced to the summaries in `pr_insights.domain.pull_requests` and returned to
the model as JSON text.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests
from autogen_core.tools import FunctionTool

from .domain.pull_requests import summarize_pull_request, summarize_review

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
MAX_PER_PAGE = 100


class GitHubAPIError(RuntimeError):
    """Raised when the GitHub API answers with an HTTP error status."""

    def __init__(self, *, status: int, message: str) -> None:
        super().__init__(f"GitHub API error {status}: {message}")
        self.status = status


@dataclass(slots=True)
class GitHubConfig:
    """Connection details for the GitHub REST API."""

    base_url: str = DEFAULT_API_URL
    token: Optional[str] = None


class GitHubClient:
    """
    Minimal REST client for the pull-request endpoints.

    One `requests.Session` is reused for every call and closed by `close()`.
    """

    def __init__(self, *, config: GitHubConfig, request_timeout: int = 30, session: Optional[requests.Session] = None) -> None:
        self._config = config
        self._session = session or requests.Session()
        default_headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "PRInsightsDashboard/0.1",
        }
        if config.token:
            default_headers["Authorization"] = f"Bearer {config.token}"
        else:
            logger.warning("GITHUB_TOKEN is not set; GitHub requests are unauthenticated and heavily rate limited.")
        self._session.headers.update(default_headers)

        self._base_url = config.base_url.rstrip("/")
        self._timeout = request_timeout
        logger.info("Initialising GitHubClient for %s", self._base_url)

    def list_pull_requests(self, owner: str, repo: str, *, state: str = "open", limit: int = 100) -> List[Dict[str, Any]]:
        limit = max(1, limit)
        per_page = min(limit, MAX_PER_PAGE)
        collected: List[Dict[str, Any]] = []
        page = 1
        while len(collected) < limit:
            batch = self._get(
                f"/repos/{owner}/{repo}/pulls",
                params={"state": state, "per_page": per_page, "page": page, "sort": "created", "direction": "desc"},
            )
            if not isinstance(batch, list):
                break
            collected.extend(summarize_pull_request(item) for item in batch if isinstance(item, dict))
            if len(batch) < per_page:
                break
            page += 1
        logger.info("Fetched %d pull requests for %s/%s (state=%s)", len(collected[:limit]), owner, repo, state)
        return collected[:limit]

    def get_pull_request(self, owner: str, repo: str, number: int) -> Dict[str, Any]:
        data = self._get(f"/repos/{owner}/{repo}/pulls/{number}")
        return summarize_pull_request(data if isinstance(data, dict) else {})

    def list_pull_request_reviews(self, owner: str, repo: str, number: int) -> List[Dict[str, Any]]:
        data = self._get(f"/repos/{owner}/{repo}/pulls/{number}/reviews", params={"per_page": MAX_PER_PAGE})
        if not isinstance(data, list):
            return []
        return [summarize_review(item) for item in data if isinstance(item, dict)]

    def close(self) -> None:
        self._session.close()

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self._base_url}{path}"
        logger.debug("GET %s params=%s", url, params)

        try:
            response = self._session.get(url, params=params or {}, timeout=self._timeout)
        except requests.exceptions.RequestException as exc:
            logger.error("GitHub request failed: %s", exc)
            raise

        logger.info("GitHub response status: %s for %s", response.status_code, path)
        if response.status_code >= 400:
            try:
                message = response.json().get("message", response.text)
            except ValueError:
                message = response.text
            raise GitHubAPIError(status=response.status_code, message=message)
        return response.json()


def build_github_tools(client: GitHubClient) -> List[FunctionTool]:
    """Expose the client's read calls as AutoGen tools returning JSON text."""

    def list_pull_requests(owner: str, repo: str, state: str = "open", limit: int = 100) -> str:
        return json.dumps(client.list_pull_requests(owner, repo, state=state, limit=limit))

    def get_pull_request(owner: str, repo: str, number: int) -> str:
        return json.dumps(client.get_pull_request(owner, repo, number))

    def list_pull_request_reviews(owner: str, repo: str, number: int) -> str:
        return json.dumps(client.list_pull_request_reviews(owner, repo, number))

    return [
        FunctionTool(
            func=list_pull_requests,
            name="github_list_pull_requests",
            description=(
                "List pull requests of a GitHub repository, newest first. `state` is one of "
                "'open', 'closed' or 'all'; `limit` caps how many are returned. Each entry has "
                "number, title, author, state, labels and created/merged/closed timestamps."
            ),
        ),
        FunctionTool(
            func=get_pull_request,
            name="github_get_pull_request",
            description=(
                "Fetch one pull request by number, including additions, deletions, "
                "changed_files and comment counts."
            ),
        ),
        FunctionTool(
            func=list_pull_request_reviews,
            name="github_list_pull_request_reviews",
            description="List the reviews submitted on one pull request (reviewer, state, submitted_at).",
        ),
    ]
