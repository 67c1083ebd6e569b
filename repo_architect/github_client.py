"""REST client for the GitHub pull request API.

Only the two calls needed to publish generated docs: look up a repository's
default branch and open a pull request. Writes are retried with exponential
backoff; a 4xx answer is final.
"""

import logging
import os
import time
from typing import Any, Dict, Optional

import requests

from repo_architect.errors import PullRequestError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
API_VERSION = "2022-11-28"


class GitHubClient:
    """Token-authenticated access to one GitHub (or GHE) API endpoint.

    Args:
        api_url: API root. Defaults to ``GITHUB_API_URL``, then api.github.com.
        token: Defaults to ``GITHUB_TOKEN`` or ``GH_TOKEN``. Without one no PR
               can be opened.
        max_retries: Attempts per write, including the first.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        token: Optional[str] = None,
        max_retries: int = 3,
        timeout: int = 30,
    ):
        self.api_url = (api_url or os.getenv("GITHUB_API_URL") or DEFAULT_API_URL).rstrip("/")
        self.token = token or os.getenv("GITHUB_TOKEN") or os.getenv("GH_TOKEN", "")
        self.max_retries = max_retries
        self.timeout = timeout

    @property
    def has_token(self) -> bool:
        return bool(self.token)

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/vnd.github+json", "X-GitHub-Api-Version": API_VERSION}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _repo_url(self, owner: str, repo: str, *parts: str) -> str:
        return "/".join([self.api_url, "repos", owner, repo, *parts])

    def get_default_branch(self, owner: str, repo: str) -> Optional[str]:
        """Default branch of owner/repo, or None when it cannot be read."""
        try:
            response = requests.get(self._repo_url(owner, repo), headers=self._headers(), timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as exc:
            logger.warning("Could not read default branch of %s/%s: %s", owner, repo, exc)
            return None
        return response.json().get("default_branch")

    def create_pull_request(
        self,
        owner: str,
        repo: str,
        head: str,
        base: str,
        title: str,
        body: str = "",
    ) -> Dict[str, Any]:
        """Open ``head`` -> ``base`` as a pull request and return the API record.

        Raises:
            PullRequestError: GitHub refused the request, or every attempt failed.
        """
        result = self._post_with_retry(
            self._repo_url(owner, repo, "pulls"),
            {"title": title, "head": head, "base": base, "body": body},
        )
        logger.info("Opened pull request %s", result.get("html_url"))
        return result

    def _post_with_retry(self, url: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        last_error: Optional[Exception] = None
        for attempt in range(1, self.max_retries + 1):
            if attempt > 1:
                delay = 2 ** (attempt - 2)
                logger.info("Waiting %ds before attempt %d", delay, attempt)
                time.sleep(delay)

            logger.info("POST %s [%d/%d]", url, attempt, self.max_retries)
            try:
                response = requests.post(url, json=payload, headers=self._headers(), timeout=self.timeout)
                if 400 <= response.status_code < 500:
                    raise PullRequestError(
                        f"GitHub rejected the pull request ({response.status_code}): {response.text[:300]}"
                    )
                response.raise_for_status()
                return response.json()
            except requests.exceptions.RequestException as exc:
                logger.warning("POST %s failed: %s: %s", url, type(exc).__name__, exc)
                last_error = exc

        logger.error("Giving up on %s", url)
        raise PullRequestError(
            f"GitHub API failed after {self.max_retries} attempts: {last_error}"
        ) from last_error
