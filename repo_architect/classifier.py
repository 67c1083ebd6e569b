"""
Structural change classification.

Decides whether a changed file is likely to affect the architecture
(source, manifests, build and CI config) or is incidental (lockfiles,
build output, tests, generated docs). Pure functions only.
"""

import re

DEFAULT_OUTPUT_DIR = "docs/architecture"

STRUCTURAL_PATTERNS = [
    re.compile(r"\.(ts|tsx|js|jsx|py|go|rs|java|rb|swift|kt)$"),
    re.compile(r"(^|/)package\.json$"),
    re.compile(r"(^|/)tsconfig[^/]*\.json$"),
    re.compile(r"(^|/)Cargo\.toml$"),
    re.compile(r"(^|/)go\.mod$"),
    re.compile(r"(^|/)pyproject\.toml$"),
    re.compile(r"(^|/)setup\.cfg$"),
    re.compile(r"(^|/)requirements[^/]*\.txt$"),
    re.compile(r"(^|/)Pipfile$"),
    re.compile(r"Dockerfile"),
    re.compile(r"docker-compose"),
    re.compile(r"(^|/)\.github/workflows/"),
]

IGNORE_PATTERNS = [
    re.compile(r"\.lock$"),
    re.compile(r"lock\.json$"),
    re.compile(r"(^|/)node_modules/"),
    re.compile(r"(^|/)dist/"),
    re.compile(r"(^|/)build/"),
    re.compile(r"\.min\."),
    re.compile(r"\.map$"),
    re.compile(r"\.test\."),
    re.compile(r"\.spec\."),
    re.compile(r"(^|/)__tests__/"),
    re.compile(r"(^|/)tests?/"),
    re.compile(r"(^|/)test_[^/]*\.py$"),
    re.compile(r"_test\.(py|go)$"),
    re.compile(r"(^|/)conftest\.py$"),
]


def _output_dir_pattern(output_dir: str) -> "re.Pattern[str]":
    normalized = output_dir.replace("\\", "/").strip("/")
    return re.compile(r"(^|/)" + re.escape(normalized) + r"/")


def is_ignored(path: str, output_dir: str = DEFAULT_OUTPUT_DIR) -> bool:
    """True for files that must never trigger re-analysis."""
    normalized = path.replace("\\", "/")
    if any(p.search(normalized) for p in IGNORE_PATTERNS):
        return True
    # Generated docs (and the state file inside them) would otherwise
    # re-trigger analysis on every run.
    return bool(output_dir) and bool(_output_dir_pattern(output_dir).search(normalized))


def is_structural_file(path: str, output_dir: str = DEFAULT_OUTPUT_DIR) -> bool:
    """
    Classify a repository-relative path.

    Ignore patterns win over structural ones, so ``package-lock.json`` is
    never structural. Files matching neither list (README, images) are not
    structural either.
    """
    if is_ignored(path, output_dir):
        return False
    normalized = path.replace("\\", "/")
    return any(p.search(normalized) for p in STRUCTURAL_PATTERNS)
