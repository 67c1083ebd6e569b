"""Tests for committing regenerated docs and opening a pull request."""

from unittest.mock import MagicMock, patch

import pytest

from repo_architect.errors import PullRequestError
from repo_architect.pr import BRANCH_PREFIX, create_arch_pr, parse_github_remote
from tests.fixtures import git


class TestParseGithubRemote:

    @pytest.mark.parametrize("url", [
        "https://github.com/acme/shop.git",
        "https://github.com/acme/shop",
        "git@github.com:acme/shop.git",
        "ssh://git@github.com/acme/shop.git",
    ])
    def test_github_urls(self, url):
        assert parse_github_remote(url) == ("acme", "shop")

    @pytest.mark.parametrize("url", [
        "https://gitlab.com/acme/shop.git",
        "/srv/git/shop.git",
        "",
    ])
    def test_other_urls(self, url):
        assert parse_github_remote(url) is None


@pytest.fixture
def docs_change(git_repo):
    docs = git_repo / "docs" / "architecture"
    docs.mkdir(parents=True)
    (docs / "OVERVIEW.md").write_text("# Overview\n")
    return git_repo, ["docs/architecture/OVERVIEW.md"]


class TestCreateArchPr:

    def test_requires_files(self, git_repo):
        with pytest.raises(PullRequestError):
            create_arch_pr(git_repo, [], "nothing")

    def test_local_branch_without_origin(self, docs_change):
        repo, files = docs_change
        client = MagicMock(has_token=True)
        start = git(repo, "rev-parse", "--abbrev-ref", "HEAD")

        result = create_arch_pr(repo, files, "Full architecture scan", client=client)

        assert result.branch.startswith(f"{BRANCH_PREFIX}/")
        assert result.pr_url is None
        assert git(repo, "rev-parse", "--abbrev-ref", "HEAD") == start
        assert git(repo, "log", "-1", "--format=%s", result.branch) == "docs(architecture): Full architecture scan"
        assert git(repo, "status", "--porcelain") == ""
        client.create_pull_request.assert_not_called()

    def test_only_listed_files_committed(self, docs_change):
        repo, files = docs_change
        (repo / "scratch.txt").write_text("not mine")

        create_arch_pr(repo, files, "scan", client=MagicMock(has_token=False))

        assert git(repo, "status", "--porcelain") == "?? scratch.txt"

    def test_opens_pr_on_github_remote(self, docs_change, tmp_path):
        repo, files = docs_change
        bare = tmp_path / "origin.git"
        git(tmp_path, "init", "-q", "--bare", str(bare))
        git(repo, "remote", "add", "origin", str(bare))

        client = MagicMock(has_token=True)
        client.get_default_branch.return_value = "main"
        client.create_pull_request.return_value = {"html_url": "https://github.com/acme/shop/pull/1"}

        with patch("repo_architect.pr._origin_url", return_value="git@github.com:acme/shop.git"):
            result = create_arch_pr(repo, files, "Incremental update", client=client)

        assert result.pr_url == "https://github.com/acme/shop/pull/1"
        kwargs = client.create_pull_request.call_args.kwargs
        assert kwargs["head"] == result.branch
        assert kwargs["base"] == "main"
        assert "docs/architecture/OVERVIEW.md" in kwargs["body"]
        assert result.branch in git(bare, "branch", "--list")

    def test_pushed_without_token(self, docs_change, tmp_path):
        repo, files = docs_change
        bare = tmp_path / "origin.git"
        git(tmp_path, "init", "-q", "--bare", str(bare))
        git(repo, "remote", "add", "origin", str(bare))

        result = create_arch_pr(repo, files, "scan", client=MagicMock(has_token=False))

        assert result.pr_url is None
        assert result.branch in git(bare, "branch", "--list")

    def test_failed_push_returns_to_start_branch(self, docs_change, tmp_path):
        repo, files = docs_change
        git(repo, "remote", "add", "origin", str(tmp_path / "missing.git"))
        start = git(repo, "rev-parse", "--abbrev-ref", "HEAD")

        with pytest.raises(PullRequestError, match="push"):
            create_arch_pr(repo, files, "scan", client=MagicMock(has_token=False))

        assert git(repo, "rev-parse", "--abbrev-ref", "HEAD") == start
        assert f"{BRANCH_PREFIX}/" in git(repo, "branch", "--list")

    def test_failed_commit_returns_to_start_branch(self, docs_change):
        repo, files = docs_change
        hook = repo / ".git" / "hooks" / "pre-commit"
        hook.parent.mkdir(parents=True, exist_ok=True)
        hook.write_text("#!/bin/sh\nexit 1\n")
        hook.chmod(0o755)
        git(repo, "config", "core.hooksPath", str(hook.parent))
        start = git(repo, "rev-parse", "--abbrev-ref", "HEAD")

        with pytest.raises(PullRequestError, match="commit"):
            create_arch_pr(repo, files, "scan", client=MagicMock(has_token=False))

        assert git(repo, "rev-parse", "--abbrev-ref", "HEAD") == start
        assert (repo / "docs" / "architecture" / "OVERVIEW.md").exists()

    def test_detached_head_restored(self, docs_change):
        repo, files = docs_change
        sha = git(repo, "rev-parse", "HEAD")
        git(repo, "checkout", "-q", "--detach")

        create_arch_pr(repo, files, "scan", client=MagicMock(has_token=False))

        assert git(repo, "rev-parse", "--abbrev-ref", "HEAD") == "HEAD"
        assert git(repo, "rev-parse", "HEAD") == sha
