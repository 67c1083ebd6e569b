"""repo-architect: architecture documentation that keeps itself up to date."""

__version__ = "0.3.0"
