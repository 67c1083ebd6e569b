"""
Pull request creation for regenerated documentation.

Commits the written files on a fresh branch, pushes it, and opens a PR
through the GitHub API when a token and a GitHub remote are available.
Without them the branch is still committed and the operator pushes manually.
The working tree is switched back to the original branch afterwards.
"""

import logging
import re
import subprocess
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Tuple, Union

from repo_architect.errors import PullRequestError
from repo_architect.github_client import GitHubClient

logger = logging.getLogger(__name__)

BRANCH_PREFIX = "repo-architect"

_GITHUB_REMOTE = re.compile(
    r"^(?:https://github\.com/|git@github\.com:|ssh://git@github\.com/)"
    r"(?P<owner>[\w.-]+)/(?P<repo>[\w.-]+?)(?:\.git)?/?$"
)


@dataclass
class PrResult:
    branch: str
    pr_url: Optional[str]


def parse_github_remote(url: str) -> Optional[Tuple[str, str]]:
    """(owner, repo) for a GitHub remote URL, else None."""
    match = _GITHUB_REMOTE.match(url.strip())
    if not match:
        return None
    return match.group("owner"), match.group("repo")


def _git(repo_root: Union[str, Path], *args: str) -> str:
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=repo_root,
            capture_output=True,
            text=True,
            check=True,
        )
    except subprocess.CalledProcessError as e:
        raise PullRequestError(f"git {args[0]} failed: {(e.stderr or '').strip()}") from e
    return result.stdout.strip()


def _origin_url(repo_root: Union[str, Path]) -> Optional[str]:
    try:
        return _git(repo_root, "remote", "get-url", "origin")
    except PullRequestError:
        return None


def create_arch_pr(
    repo_root: Union[str, Path],
    changed_files: List[str],
    summary: str,
    client: Optional[GitHubClient] = None,
) -> PrResult:
    """
    Commit changed_files on a new branch and open a pull request.

    The checkout the operator started from is restored afterwards, whether
    or not the commit, push or API call succeeded.

    Args:
        repo_root: Repository root
        changed_files: Paths relative to repo_root (written and deleted docs)
        summary: One-line description used for the commit and PR title

    Returns:
        PrResult with the branch name and the PR URL (None when no PR was opened)
    """
    if not changed_files:
        raise PullRequestError("No documentation changes to commit")

    client = client or GitHubClient()
    base_branch = _git(repo_root, "rev-parse", "--abbrev-ref", "HEAD")
    # Detached HEAD: go back to the commit itself
    start_ref = base_branch if base_branch != "HEAD" else _git(repo_root, "rev-parse", "HEAD")
    branch = f"{BRANCH_PREFIX}/{datetime.now(timezone.utc).strftime('%Y%m%d-%H%M%S')}"

    _git(repo_root, "checkout", "-b", branch)
    try:
        pr_url = _commit_and_publish(repo_root, branch, base_branch, changed_files, summary, client)
    finally:
        _restore_checkout(repo_root, start_ref)
    return PrResult(branch=branch, pr_url=pr_url)


def _restore_checkout(repo_root: Union[str, Path], ref: str) -> None:
    try:
        _git(repo_root, "checkout", ref)
    except PullRequestError as e:
        logger.error("Could not switch back to %s, still on the docs branch: %s", ref, e)


def _commit_and_publish(
    repo_root: Union[str, Path],
    branch: str,
    base_branch: str,
    changed_files: List[str],
    summary: str,
    client: GitHubClient,
) -> Optional[str]:
    _git(repo_root, "add", "-A", "--", *changed_files)
    _git(repo_root, "commit", "-m", f"docs(architecture): {summary}")
    logger.info("Committed %d file(s) on %s", len(changed_files), branch)

    origin = _origin_url(repo_root)
    if not origin:
        logger.info("No origin remote, leaving branch %s local", branch)
        return None

    _git(repo_root, "push", "-u", "origin", branch)

    repo_id = parse_github_remote(origin)
    if repo_id is None or not client.has_token:
        logger.info("Pushed %s; no GitHub token or remote, PR must be opened manually", branch)
        return None

    owner, repo = repo_id
    base = client.get_default_branch(owner, repo) or base_branch
    result = client.create_pull_request(
        owner,
        repo,
        head=branch,
        base=base,
        title=f"Architecture docs: {summary}",
        body=(
            "Automated architecture documentation update by repo-architect.\n\n"
            f"{summary}\n\n"
            + "\n".join(f"- `{f}`" for f in changed_files)
        ),
    )
    return result.get("html_url")
