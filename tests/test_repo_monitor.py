"""Tests for git change detection.

Parsing is tested on canned ``git diff --name-status`` output; the
queries run against throwaway repositories built by the git_repo fixture.
"""

import subprocess
from unittest.mock import patch

import pytest

from repo_architect.models import StructuralChange
from repo_architect.repo_monitor import (
    NO_CHANGES_SUMMARY,
    NO_STRUCTURAL_CHANGES_SUMMARY,
    get_arch_history,
    get_changed_files,
    get_commit_count_since,
    get_current_sha,
    get_git_log_summary,
    get_snapshot_content,
    parse_name_status,
    show_file,
    summarize_changes,
)
from tests.fixtures import commit_all


# ---------------------------------------------------------------------------
# Pure parsing
# ---------------------------------------------------------------------------

class TestParseNameStatus:

    def test_status_mapping(self):
        output = (
            "A\tsrc/new.py\n"
            "D\tsrc/gone.py\n"
            "M\tsrc/app.py\n"
            "R100\tsrc/old_name.py\tsrc/new_name.py\n"
            "T\tsrc/link.py\n"
        )
        changes = parse_name_status(output)

        assert [(c.file, c.change_type) for c in changes] == [
            ("src/new.py", "added"),
            ("src/gone.py", "deleted"),
            ("src/app.py", "modified"),
            ("src/new_name.py", "renamed"),
            ("src/link.py", "modified"),
        ]
        assert all(c.is_structural for c in changes)

    def test_classification(self):
        changes = parse_name_status("M\tREADME.md\nM\tpackage-lock.json\nM\tsrc/index.ts\n")
        assert [c.is_structural for c in changes] == [False, False, True]

    def test_generated_docs_not_structural(self):
        changes = parse_name_status("M\tdocs/architecture/OVERVIEW.md\nM\tdocs/architecture/.arch-state.json")
        assert not any(c.is_structural for c in changes)

    def test_blank_and_malformed_lines_skipped(self):
        assert parse_name_status("\n\nM\n   \n") == []


class TestSummarizeChanges:

    def test_lists_structural_only(self):
        changes = [
            StructuralChange("src/a.py", "added", True),
            StructuralChange("README.md", "modified", False),
            StructuralChange("src/b.py", "deleted", True),
        ]
        summary = summarize_changes(changes)

        assert summary == "2 structural change(s): added src/a.py, deleted src/b.py"
        assert "README" not in summary

    def test_nothing_structural(self):
        assert summarize_changes([StructuralChange("README.md", "modified", False)]) == NO_STRUCTURAL_CHANGES_SUMMARY


class TestGetChangedFilesMocked:

    def test_same_sha_short_circuits(self):
        with patch("repo_architect.repo_monitor._git", return_value="abc123\n") as mock_git:
            result = get_changed_files("/repo", "abc123")

        assert result.changes == []
        assert result.current_sha == "abc123"
        assert result.summary == NO_CHANGES_SUMMARY
        mock_git.assert_called_once_with("/repo", "rev-parse", "HEAD")


# ---------------------------------------------------------------------------
# Against a real repository
# ---------------------------------------------------------------------------

class TestAgainstRepository:

    def test_changed_files(self, git_repo):
        base = get_current_sha(git_repo)
        (git_repo / "src" / "orders.py").write_text("class Order: ...\n")
        (git_repo / "src" / "app.py").write_text("print('changed')\n")
        (git_repo / "README.md").write_text("# Changed\n")
        docs = git_repo / "docs" / "architecture"
        docs.mkdir(parents=True)
        (docs / "OVERVIEW.md").write_text("# Overview\n")
        head = commit_all(git_repo, "add orders")

        result = get_changed_files(git_repo, base)

        assert result.current_sha == head
        by_file = {c.file: c for c in result.changes}
        assert by_file["src/orders.py"].change_type == "added"
        assert by_file["src/app.py"].change_type == "modified"
        assert not by_file["README.md"].is_structural
        assert not by_file["docs/architecture/OVERVIEW.md"].is_structural
        assert [c.file for c in result.structural_changes] == ["src/app.py", "src/orders.py"]
        assert result.summary.startswith("2 structural change(s):")

    def test_unchanged(self, git_repo):
        head = get_current_sha(git_repo)
        assert get_changed_files(git_repo, head).summary == NO_CHANGES_SUMMARY

    def test_invalid_sha_raises(self, git_repo):
        with pytest.raises(subprocess.CalledProcessError):
            get_changed_files(git_repo, "f" * 40)

    def test_commit_count(self, git_repo):
        base = get_current_sha(git_repo)
        (git_repo / "a.py").write_text("a = 1\n")
        commit_all(git_repo, "one")
        (git_repo / "b.py").write_text("b = 1\n")
        commit_all(git_repo, "two")

        assert get_commit_count_since(git_repo, base) == 2
        assert get_commit_count_since(git_repo, "f" * 40) is None

    def test_log_summary(self, git_repo):
        base = get_current_sha(git_repo)
        (git_repo / "a.py").write_text("a = 1\n")
        commit_all(git_repo, "add module a")

        log = get_git_log_summary(git_repo, base)
        assert "add module a" in log
        assert len(log.splitlines()) == 1

    def test_show_file(self, git_repo):
        head = get_current_sha(git_repo)
        assert show_file(git_repo, head, "README.md") == "# Test Repo\n"
        assert show_file(git_repo, head, "missing.md") is None

    def test_history_and_snapshot(self, git_repo):
        docs = git_repo / "docs" / "architecture"
        (docs / "modules").mkdir(parents=True)
        (docs / "OVERVIEW.md").write_text("# Shop\n")
        (docs / "modules" / "orders.md").write_text("# Orders\n")
        (docs / "modules" / "payments.md").write_text("# Payments\n")
        sha = commit_all(git_repo, "docs: architecture | first pass")

        history = get_arch_history(git_repo)

        assert len(history) == 1
        assert history[0].commit_sha == sha
        assert history[0].summary == "docs: architecture | first pass"
        assert history[0].module_count == 2

        snapshot = get_snapshot_content(git_repo, sha)
        assert snapshot["overview"] == "# Shop\n"
        assert [m["slug"] for m in snapshot["modules"]] == ["orders", "payments"]
        assert snapshot["modules"][0]["content"] == "# Orders\n"

    def test_history_empty_without_docs(self, git_repo):
        assert get_arch_history(git_repo) == []
