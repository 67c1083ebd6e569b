"""
Git change detection for incremental documentation updates.

Every function here is a read-only query against an existing repository.
Failures of the queries that drive a run (bad commit, not a repository)
raise ``subprocess.CalledProcessError`` and are fatal to that run. Lookups
of paths that may not exist at a given commit return "no content" instead.
"""

import logging
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Union

from repo_architect.classifier import DEFAULT_OUTPUT_DIR, is_structural_file
from repo_architect.models import ArchSnapshot, DiffResult, StructuralChange

logger = logging.getLogger(__name__)

NO_CHANGES_SUMMARY = "No changes since last run."
NO_STRUCTURAL_CHANGES_SUMMARY = "No structural changes detected."

PathLike = Union[str, Path]


def _git(repo_path: PathLike, *args: str) -> str:
    result = subprocess.run(
        ["git", *args],
        cwd=repo_path,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout


def get_current_sha(repo_path: PathLike) -> str:
    """SHA of HEAD."""
    return _git(repo_path, "rev-parse", "HEAD").strip()


def get_commit_count_since(repo_path: PathLike, since_sha: str) -> Optional[int]:
    """
    Count commits between since_sha and HEAD.

    Returns:
        Number of commits, or None if since_sha is unknown (rebased away,
        shallow clone) or the count cannot be determined.
    """
    try:
        _git(repo_path, "cat-file", "-e", since_sha)
        return int(_git(repo_path, "rev-list", "--count", f"{since_sha}..HEAD").strip())
    except (subprocess.CalledProcessError, ValueError) as e:
        logger.warning("Failed to count commits since %s: %s", since_sha[:8], e)
        return None


def _change_type(status: str) -> str:
    if status.startswith("R"):
        return "renamed"
    if status == "A":
        return "added"
    if status == "D":
        return "deleted"
    return "modified"


def parse_name_status(output: str, output_dir: str = DEFAULT_OUTPUT_DIR) -> List[StructuralChange]:
    """Parse ``git diff --name-status`` output into classified changes."""
    changes = []
    for line in output.strip().split("\n"):
        if not line.strip():
            continue
        status, *parts = line.split("\t")
        if not parts:
            continue
        # Renames list old and new path; the new one is last
        file = parts[-1]
        changes.append(StructuralChange(
            file=file,
            change_type=_change_type(status.strip()),
            is_structural=is_structural_file(file, output_dir),
        ))
    return changes


def summarize_changes(changes: List[StructuralChange]) -> str:
    """One-line description of the structural changes only."""
    structural = [c for c in changes if c.is_structural]
    if not structural:
        return NO_STRUCTURAL_CHANGES_SUMMARY
    listed = ", ".join(f"{c.change_type} {c.file}" for c in structural)
    return f"{len(structural)} structural change(s): {listed}"


def get_changed_files(
    repo_path: PathLike,
    since_sha: str,
    output_dir: str = DEFAULT_OUTPUT_DIR,
) -> DiffResult:
    """
    Classify every file changed between since_sha and HEAD.

    Non-structural changes stay in ``changes`` but are left out of the
    summary. An invalid since_sha raises CalledProcessError.
    """
    current_sha = get_current_sha(repo_path)

    if since_sha == current_sha:
        return DiffResult(changes=[], current_sha=current_sha, summary=NO_CHANGES_SUMMARY)

    output = _git(repo_path, "diff", "--name-status", since_sha, current_sha)
    changes = parse_name_status(output, output_dir)
    summary = summarize_changes(changes)

    logger.info(
        "%d changed file(s) since %s, %d structural",
        len(changes), since_sha[:8], sum(1 for c in changes if c.is_structural),
    )
    return DiffResult(changes=changes, current_sha=current_sha, summary=summary)


def get_git_log_summary(repo_path: PathLike, since_sha: str) -> str:
    """One line per commit since since_sha."""
    return _git(repo_path, "log", "--oneline", "--no-decorate", f"{since_sha}..HEAD").strip()


def show_file(repo_path: PathLike, commit_sha: str, path: str) -> Optional[str]:
    """Content of path at commit_sha, or None if it did not exist there."""
    try:
        return _git(repo_path, "show", f"{commit_sha}:{path}")
    except subprocess.CalledProcessError:
        return None


def _list_module_docs(repo_path: PathLike, commit_sha: str, modules_dir: str) -> List[str]:
    try:
        output = _git(repo_path, "ls-tree", "--name-only", commit_sha, f"{modules_dir}/")
    except subprocess.CalledProcessError:
        return []
    return sorted(f for f in output.strip().split("\n") if f.endswith(".md"))


def get_arch_history(
    repo_path: PathLike,
    limit: int = 20,
    output_dir: str = DEFAULT_OUTPUT_DIR,
) -> List[ArchSnapshot]:
    """Commits that touched the overview document, newest first."""
    overview = f"{output_dir}/OVERVIEW.md"
    try:
        output = _git(
            repo_path, "log", f"--max-count={limit}", "--format=%H|%aI|%s", "--", overview,
        ).strip()
    except subprocess.CalledProcessError:
        return []

    snapshots = []
    for line in output.split("\n"):
        if not line:
            continue
        commit_sha, date, *summary_parts = line.split("|")
        module_count = len(_list_module_docs(repo_path, commit_sha, f"{output_dir}/modules"))
        snapshots.append(ArchSnapshot(
            commit_sha=commit_sha,
            date=date,
            summary="|".join(summary_parts),
            module_count=module_count,
        ))
    return snapshots


def get_snapshot_content(
    repo_path: PathLike,
    commit_sha: str,
    output_dir: str = DEFAULT_OUTPUT_DIR,
) -> Dict[str, object]:
    """
    Overview and module documents as they were at commit_sha.

    Returns:
        {"overview": str, "modules": [{"slug": ..., "content": ...}, ...]}
    """
    overview = show_file(repo_path, commit_sha, f"{output_dir}/OVERVIEW.md") or ""

    modules = []
    for file_path in _list_module_docs(repo_path, commit_sha, f"{output_dir}/modules"):
        content = show_file(repo_path, commit_sha, file_path)
        if content is None:
            continue
        modules.append({"slug": Path(file_path).stem, "content": content})

    return {"overview": overview, "modules": modules}
