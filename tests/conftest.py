"""Shared fixtures for the repo-architect test suite.

All tests run with zero API calls, zero network access, zero LLM credits.
The LLM, repomix and GitHub are mocked; git runs only in throwaway repos.
"""

import shutil
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Ensure the repository root is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from repo_architect.models import ArchState, ModuleInfo  # noqa: E402
from tests.fixtures import SAMPLE_STATE, commit_all, git  # noqa: E402


@pytest.fixture
def git_repo(tmp_path):
    """A real git repository with one commit. Skips when git is missing."""
    if shutil.which("git") is None:
        pytest.skip("git not installed")
    repo = tmp_path / "repo"
    repo.mkdir()
    git(repo, "init", "-q")
    git(repo, "config", "user.email", "test@example.com")
    git(repo, "config", "user.name", "Test")
    git(repo, "config", "commit.gpgsign", "false")
    (repo / "README.md").write_text("# Test Repo\n")
    (repo / "src").mkdir()
    (repo / "src" / "app.py").write_text("print('hello')\n")
    commit_all(repo, "initial")
    return repo


@pytest.fixture
def arch_tree(tmp_path):
    """Existing documentation tree, as left by an earlier run."""
    arch = tmp_path / "docs" / "architecture"
    modules = arch / "modules"
    modules.mkdir(parents=True)
    (arch / "OVERVIEW.md").write_text(
        "# Project\n\n## Overview\n\nOld overview.\n\n## System Map\n\nOld map.\n"
    )
    (modules / "old-module.md").write_text("# Old Module\n\nOld content.")
    (modules / "orders.md").write_text("# Orders\n\nOld orders content.")
    return tmp_path


@pytest.fixture
def sample_state():
    return ArchState.from_dict(SAMPLE_STATE)


@pytest.fixture
def fake_analyzer():
    """Stand-in for ArchitectureAnalyzer; tests set return values."""
    return MagicMock(name="ArchitectureAnalyzer")


@pytest.fixture
def module_infos():
    return [
        ModuleInfo(name="Orders", path="src/orders", description="Order lifecycle."),
        ModuleInfo(name="Old Module", path="src/old", description="Going away."),
    ]
