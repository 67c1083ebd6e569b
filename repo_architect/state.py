"""
Persisted run state.

``<output_dir>/.arch-state.json`` records the last documented commit, when
the run happened and which modules have files on disk. It is the baseline
for the next incremental run. Callers pass a fully resolved state; no merge
logic lives here.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from repo_architect.classifier import DEFAULT_OUTPUT_DIR
from repo_architect.models import ArchState

logger = logging.getLogger(__name__)

STATE_FILENAME = ".arch-state.json"


def state_path(repo_root: Union[str, Path], output_dir: Optional[str] = None) -> Path:
    return Path(repo_root) / (output_dir or DEFAULT_OUTPUT_DIR) / STATE_FILENAME


def read_state(repo_root: Union[str, Path], output_dir: Optional[str] = None) -> Optional[ArchState]:
    """Load the last run's state, or None if there is no usable record."""
    path = state_path(repo_root, output_dir)
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None

    try:
        return ArchState.from_dict(json.loads(raw))
    except (json.JSONDecodeError, ValueError) as e:
        logger.warning("Ignoring unreadable state file %s: %s", path, e)
        return None


def write_state(repo_root: Union[str, Path], state: ArchState, output_dir: Optional[str] = None) -> Path:
    """Write state via a temp file and rename so readers never see half a file."""
    path = state_path(repo_root, output_dir)
    path.parent.mkdir(parents=True, exist_ok=True)

    payload = json.dumps(state.to_dict(), indent=2) + "\n"
    fd, tmp_name = tempfile.mkstemp(prefix=".arch-state.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise

    logger.info("Wrote state to %s (commit %s, %d modules)", path, state.last_commit_sha[:8], len(state.modules))
    return path
