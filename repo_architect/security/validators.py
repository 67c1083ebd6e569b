"""Validators for user-supplied paths."""

import re
from pathlib import Path, PurePosixPath
from typing import Optional, Tuple


class RepositoryValidator:
    """Checks the directory passed as --dir."""

    @staticmethod
    def validate_local_path(path_str: str) -> Tuple[bool, str, Optional[str]]:
        """
        Check that ``path_str`` names a git working tree.

        Returns:
            (is_valid, error_message, absolute_path)
        """
        if not path_str:
            return False, "No repository directory given", None
        root = Path(path_str).expanduser()
        if not root.exists():
            return False, f"Directory does not exist: {path_str}", None
        if not root.is_dir():
            return False, f"Not a directory: {path_str}", None
        # .git is a plain file in worktrees and submodules
        if not (root / ".git").exists():
            return False, f"{path_str} is not a git repository (no .git found)", None
        return True, "", str(root.resolve())


class PathValidator:
    """Checks paths that are written to inside the repository."""

    @staticmethod
    def validate_output_dir(output_dir: str) -> Tuple[bool, str, Optional[str]]:
        """
        Normalize the ``outputDir`` setting to a clean relative POSIX path.

        Rejects absolute or drive-letter paths, any ``..`` segment, control
        characters and values over 200 characters. Error messages are
        fragments; the caller prefixes them with the setting name.
        """
        if not output_dir or not output_dir.strip():
            return False, "must not be empty", None

        if len(output_dir) > 200:
            return False, "is too long", None

        if re.search(r'[\x00-\x1f\x7f]', output_dir):
            return False, "contains control characters", None

        normalized = output_dir.replace('\\', '/')
        if normalized.startswith('/') or re.match(r'^[A-Za-z]:', normalized):
            return False, "must be a relative path", None

        parts = [p for p in PurePosixPath(normalized).parts if p not in ('', '.')]
        if '..' in parts:
            return False, "must not contain path traversal", None
        if not parts:
            return False, "must not be empty", None

        return True, "", '/'.join(parts)
