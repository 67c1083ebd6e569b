#!/usr/bin/env python3
"""
Architecture documentation generator.

Pipeline per run, strictly sequential:
  1. Plan: full or incremental, from the persisted state
  2. Scan: repomix packs the repository (or only the changed files)
  3. Analyze: one LLM call, reply parsed into a typed result
  4. Render: Markdown written / patched under the output directory
  5. Persist: new state written last, only after everything else succeeded

Usage:
    repo-architect                  # incremental when a previous run exists
    repo-architect --full --pr
    repo-architect --view
"""

import argparse
import logging
import os
import subprocess
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from repo_architect import __version__
from repo_architect.analyzer import ArchitectureAnalyzer
from repo_architect.config import (
    RepoArchitectConfig,
    create_default_config,
    load_config,
    resolve_model,
)
from repo_architect.errors import PullRequestError, RepoArchitectError
from repo_architect.models import ArchState, ModuleInfo
from repo_architect.pr import create_arch_pr
from repo_architect.render import (
    OVERVIEW_FILENAME,
    arch_dir,
    reconcile_modules,
    render_full_docs,
    render_incremental_docs,
    unique_modules,
)
from repo_architect.repo_monitor import get_changed_files, get_current_sha, get_git_log_summary
from repo_architect.run_planner import FULL, RunPlanner
from repo_architect.scan import scan_files, scan_repo
from repo_architect.security import RepositoryValidator
from repo_architect.setup_action import setup_github_action
from repo_architect.state import read_state, state_path, write_state
from repo_architect.viewer import write_viewer

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ArchitectureDocGenerator:
    """
    Runs one documentation pass over a repository.

    Args:
        repo_path: Repository root
        config: Loaded ``.repo-architect.json``; read from repo_path when omitted
        analyzer: Pre-built analyzer (tests inject a fake); built lazily otherwise
        model: Model override from the command line
    """

    def __init__(
        self,
        repo_path: Path,
        config: Optional[RepoArchitectConfig] = None,
        analyzer: Optional[ArchitectureAnalyzer] = None,
        model: Optional[str] = None,
    ):
        self.repo_path = Path(repo_path).resolve()
        self.config = config or load_config(self.repo_path)
        self.output_dir = self.config.output_dir
        self.model = model
        self._analyzer = analyzer
        self.planner = RunPlanner(self.repo_path)

    @property
    def analyzer(self) -> ArchitectureAnalyzer:
        if self._analyzer is None:
            self._analyzer = ArchitectureAnalyzer(
                model=resolve_model(self.config, self.model),
                base_url=os.getenv("LLM_BASE_URL") or None,
            )
        return self._analyzer

    def _rel(self, path: Path) -> str:
        return os.path.relpath(path, self.repo_path)

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def run(self, force_full: bool = False, create_pr: bool = False) -> dict:
        """Pick the run mode and execute it."""
        state = read_state(self.repo_path, self.output_dir)
        mode, reason = self.planner.decide(state, force_full=force_full)
        print(f"[Plan] {mode.upper()}: {reason}")

        if mode == FULL:
            return self.run_full(create_pr=create_pr)
        return self.run_incremental(state, create_pr=create_pr)

    # ------------------------------------------------------------------
    # Full run
    # ------------------------------------------------------------------

    def run_full(self, create_pr: bool = False) -> dict:
        print("[Scan] Scanning repository with repomix...")
        scan = scan_repo(self.repo_path, ignore=self.config.ignore, include=self.config.include)
        if scan.file_count == 0:
            print("[Scan] No files found to analyze, nothing to document.")
            return {"status": "empty", "written": [], "deleted": []}
        print(f"[Scan] Scanned {scan.file_count} files")

        print("[Analyze] Analyzing architecture...")
        analysis = self.analyzer.analyze_full(scan.content)
        modules = unique_modules(analysis.modules)
        print(f"[Analyze] Identified {len(modules)} modules")

        print("[Render] Generating documentation...")
        written = render_full_docs(self.repo_path, analysis, self.output_dir)
        print(f"[Render] Wrote {len(written)} files")

        try:
            sha = get_current_sha(self.repo_path)
        except subprocess.CalledProcessError as e:
            logger.warning("Could not resolve HEAD (%s), recording unknown commit", e)
            sha = "unknown"

        self._persist(sha, [m.to_info() for m in modules])

        for path in written:
            print(f"   + {self._rel(path)}")

        if create_pr:
            self._open_pr(written, [], f"Full architecture scan: {len(modules)} modules documented")

        print(f"[Done] Docs at {self.output_dir}/")
        return {"status": "full", "written": written, "deleted": []}

    # ------------------------------------------------------------------
    # Incremental run
    # ------------------------------------------------------------------

    def _existing_docs(self, modules: List[ModuleInfo]) -> str:
        overview_path = arch_dir(self.repo_path, self.output_dir) / OVERVIEW_FILENAME
        overview = overview_path.read_text(encoding="utf-8") if overview_path.exists() else ""
        names = "\n".join(f"- {m.name} ({m.path})" for m in modules)
        return f"{overview}\n\n### Documented modules\n\n{names}\n" if names else overview

    def run_incremental(self, state: ArchState, create_pr: bool = False) -> dict:
        print("[Diff] Checking for changes...")
        # Version-control failures propagate: the prior state stays authoritative
        diff = get_changed_files(self.repo_path, state.last_commit_sha, self.output_dir)

        structural = diff.structural_changes
        if not structural:
            print(f"[Diff] {diff.summary} Nothing to update.")
            return {"status": "unchanged", "written": [], "deleted": []}
        print(f"[Diff] {diff.summary}")

        present = [c.file for c in structural if c.change_type != "deleted"]
        print("[Scan] Scanning changed files...")
        scan = scan_files(self.repo_path, present)
        print(f"[Scan] Scanned {scan.file_count} changed files")

        git_log = get_git_log_summary(self.repo_path, state.last_commit_sha)

        print("[Analyze] Analyzing changes...")
        analysis = self.analyzer.analyze_incremental(
            scan.content,
            self._existing_docs(state.modules),
            diff.summary,
            git_log,
        )
        print(
            f"[Analyze] {len(analysis.updated_modules)} updated, "
            f"{len(analysis.new_modules)} new, {len(analysis.deleted_modules)} deleted module(s)"
        )

        modules = reconcile_modules(state.modules, analysis)

        print("[Render] Updating documentation...")
        result = render_incremental_docs(self.repo_path, analysis, self.output_dir, modules=modules)
        print(f"[Render] Updated {len(result.written_files)} files, removed {len(result.deleted_files)}")

        self._persist(diff.current_sha, modules)

        for path in result.written_files:
            print(f"   ~ {self._rel(path)}")
        for path in result.deleted_files:
            print(f"   - {self._rel(path)}")

        if create_pr:
            self._open_pr(
                result.written_files,
                result.deleted_files,
                f"Incremental update: {len(structural)} structural changes",
            )

        print("[Done] Documentation updated")
        return {"status": "incremental", "written": result.written_files, "deleted": result.deleted_files}

    # ------------------------------------------------------------------
    # Shared steps
    # ------------------------------------------------------------------

    def _persist(self, sha: str, modules: List[ModuleInfo]) -> None:
        write_state(
            self.repo_path,
            ArchState(
                last_commit_sha=sha,
                last_run_at=_now(),
                modules=modules,
                repo_root=str(self.repo_path),
            ),
            self.output_dir,
        )
        print(f"[State] Recorded commit {sha[:8]} with {len(modules)} modules")

    def _open_pr(self, written: List[Path], deleted: List[Path], summary: str) -> None:
        files = [self._rel(p) for p in [*written, *deleted]]
        files.append(self._rel(state_path(self.repo_path, self.output_dir)))
        print("[PR] Creating pull request...")
        try:
            result = create_arch_pr(self.repo_path, files, summary)
        except PullRequestError as e:
            print(f"[PR] Skipped: {e}")
            return
        if result.pr_url:
            print(f"[PR] Created: {result.pr_url}")
        else:
            print(f"[PR] Committed to branch {result.branch} (open the PR manually)")


# ===================================================================
# CLI Entry Point
# ===================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="repo-architect",
        description="Your codebase, documented. Automatically.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                 incremental update (full on first run)
  %(prog)s --full --pr     regenerate everything and open a pull request
  %(prog)s --view          open the local architecture viewer
        """,
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--full", action="store_true", help="Force full regeneration")
    mode.add_argument(
        "--incremental",
        action="store_true",
        help="Incremental update (default for subsequent runs)",
    )
    mode.add_argument("--setup", action="store_true", help="Set up GitHub Action for nightly runs")
    mode.add_argument("--view", action="store_true", help="Open local architecture viewer in browser")
    mode.add_argument("--init", action="store_true", help="Write a default .repo-architect.json")
    parser.add_argument("--pr", action="store_true", help="Create a pull request with changes")
    parser.add_argument("-d", "--dir", default=os.getcwd(), help="Repository root directory")
    parser.add_argument("--model", default=None, help="Override the analysis model")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    load_dotenv()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    is_valid, error, repo_root = RepositoryValidator.validate_local_path(args.dir)
    if not is_valid:
        print(f"[Error] {error}")
        return 1
    repo_root = Path(repo_root)

    try:
        if args.init:
            print(f"[Init] Created {create_default_config(repo_root)}")
            return 0

        if args.setup:
            path = setup_github_action(repo_root)
            print(f"[Setup] Created {path}")
            print("   Next: add ANTHROPIC_API_KEY to your repo secrets (gh secret set ANTHROPIC_API_KEY),")
            print("   then commit and push the workflow file.")
            return 0

        config = load_config(repo_root)

        if args.view:
            path = write_viewer(repo_root, config.output_dir)
            print(f"[View] Opened {path}")
            return 0

        print("=" * 70)
        print("[repo-architect] documenting your codebase")
        print("=" * 70)

        generator = ArchitectureDocGenerator(repo_root, config=config, model=args.model)
        generator.run(force_full=args.full, create_pr=args.pr)
        return 0

    except RepoArchitectError as e:
        print(f"[Error] {e}")
        return 1
    except subprocess.CalledProcessError as e:
        stderr = (e.stderr or "").strip() if isinstance(e.stderr, str) else ""
        print(f"[Error] git {' '.join(e.cmd[1:2])} failed: {stderr or e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
