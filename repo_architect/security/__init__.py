"""Validation of the repository directory and the configured output path."""

from .validators import RepositoryValidator, PathValidator

__all__ = ["RepositoryValidator", "PathValidator"]
