"""Exception types raised across repo-architect."""


class RepoArchitectError(Exception):
    """Base class for failures the CLI reports to the operator."""


class ConfigError(RepoArchitectError, ValueError):
    """Invalid ``.repo-architect.json``."""


class ScanError(RepoArchitectError):
    """The repository scanner is missing or failed to run."""


class AnalysisError(RepoArchitectError):
    """The LLM call failed (auth, rate limit, transport)."""


class PullRequestError(RepoArchitectError):
    """Branch, push or pull request creation failed."""
