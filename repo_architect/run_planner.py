"""
Run planner: decides between full and incremental regeneration.

Implements the decision rules that keep incremental runs safe: an
incremental run needs a trustworthy baseline commit, anything else falls
back to a full run.
"""

import logging
from pathlib import Path
from typing import Optional, Tuple

from repo_architect.models import ArchState
from repo_architect.repo_monitor import get_commit_count_since

logger = logging.getLogger(__name__)

FULL = "full"
INCREMENTAL = "incremental"


class RunPlanner:
    """
    Decision engine for choosing the run mode.

    Rules:
    1. Full run requested → FULL
    2. No previous state → FULL
    3. State without a commit SHA → FULL
    4. Recorded commit no longer in history (rebase, shallow clone) → FULL
    5. Otherwise → INCREMENTAL
    """

    def __init__(self, repo_path: Path):
        self.repo_path = repo_path

    def decide(self, state: Optional[ArchState], force_full: bool = False) -> Tuple[str, str]:
        """
        Determine how to run.

        Args:
            state: State from the last successful run, if any
            force_full: The operator asked for a full regeneration

        Returns:
            Tuple of (mode, reason)
        """
        # Rule 1
        if force_full:
            return FULL, "Full regeneration requested"

        # Rule 2
        if state is None:
            return FULL, "No previous run found"

        # Rule 3
        last_sha = state.last_commit_sha
        if not last_sha or last_sha == "unknown":
            return FULL, "Previous run did not record a commit, regenerating everything"

        # Rule 4
        commit_count = get_commit_count_since(self.repo_path, last_sha)
        if commit_count is None:
            return FULL, f"Cannot compare to commit {last_sha[:8]}, regenerating everything"

        # Rule 5
        logger.debug("%d commit(s) since %s", commit_count, last_sha[:8])
        return INCREMENTAL, f"{commit_count} commit(s) since last documented commit {last_sha[:8]}"
