"""
Repository content extraction through repomix.

repomix packs a repository (or a subset of files) into one XML document
that is sent to the model as-is.
"""

import logging
import os
import re
import shutil
import subprocess
from pathlib import Path
from typing import Iterable, List, Optional, Union

from repo_architect.errors import ScanError
from repo_architect.models import ScanResult

logger = logging.getLogger(__name__)

REPOMIX_ARGS = [
    "--stdout",
    "--style", "xml",
    "--compress",
    "--no-file-summary",
    "--no-copy-clipboard",
]

_FILE_TAG = re.compile(r"<file ")


def _repomix_command() -> List[str]:
    """repomix binary: REPOMIX_BIN, then PATH, then npx."""
    explicit = os.getenv("REPOMIX_BIN")
    if explicit:
        return [explicit]
    found = shutil.which("repomix")
    if found:
        return [found]
    npx = shutil.which("npx")
    if npx:
        return [npx, "--yes", "repomix"]
    raise ScanError(
        "repomix not found. Install it with `npm install -g repomix` "
        "or point REPOMIX_BIN at the binary."
    )


def _run_repomix(repo_root: Union[str, Path], extra_args: List[str]) -> ScanResult:
    command = _repomix_command() + REPOMIX_ARGS + extra_args
    logger.debug("Running %s", " ".join(command))
    try:
        result = subprocess.run(
            command,
            cwd=repo_root,
            capture_output=True,
            text=True,
            check=True,
        )
    except FileNotFoundError as e:
        raise ScanError(f"repomix could not be started: {e}") from e
    except subprocess.CalledProcessError as e:
        stderr = (e.stderr or "").strip()
        raise ScanError(f"repomix failed (exit {e.returncode}): {stderr[:500]}") from e

    content = result.stdout
    file_count = len(_FILE_TAG.findall(content))
    logger.info("repomix packed %d file(s), %d chars", file_count, len(content))
    return ScanResult(content=content, file_count=file_count)


def scan_repo(
    repo_root: Union[str, Path],
    ignore: Optional[Iterable[str]] = None,
    include: Optional[Iterable[str]] = None,
) -> ScanResult:
    """Pack the whole repository, honouring config ignore/include globs."""
    extra: List[str] = []
    ignore = list(ignore or [])
    include = list(include or [])
    if ignore:
        extra += ["--ignore", ",".join(ignore)]
    if include:
        extra += ["--include", ",".join(include)]
    return _run_repomix(repo_root, extra)


def scan_files(repo_root: Union[str, Path], files: Iterable[str]) -> ScanResult:
    """Pack only the given files. No files means no repomix call."""
    files = list(files)
    if not files:
        return ScanResult(content="", file_count=0)
    return _run_repomix(repo_root, ["--include", ",".join(files)])
