"""
Data model shared by the parser, renderer, state store and change detector.

Analysis results are ephemeral: the renderer consumes them once. Only
``ArchState`` is persisted, as camelCase JSON.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional


CHANGE_TYPES = ("added", "deleted", "modified", "renamed")


@dataclass(frozen=True)
class StructuralChange:
    """One file-level change between two commits."""

    file: str
    change_type: str           # one of CHANGE_TYPES
    is_structural: bool


@dataclass
class DiffResult:
    changes: List[StructuralChange]
    current_sha: str
    summary: str

    @property
    def structural_changes(self) -> List[StructuralChange]:
        return [c for c in self.changes if c.is_structural]


@dataclass
class ModuleAnalysis:
    """One documented subsystem. ``name`` is the identity key (case-sensitive)."""

    name: str
    path: str = ""
    description: str = ""
    key_abstractions: List[str] = field(default_factory=list)
    internal_diagram: str = ""

    def to_info(self) -> "ModuleInfo":
        return ModuleInfo(name=self.name, path=self.path, description=self.description)


@dataclass
class AnalysisResult:
    project_name: str
    overview: str
    tech_stack: List[str] = field(default_factory=list)
    system_map: str = ""
    data_flows: str = ""
    dependency_graph: str = ""
    modules: List[ModuleAnalysis] = field(default_factory=list)


@dataclass
class IncrementalAnalysisResult:
    """Delta produced by an incremental run.

    ``None`` means the model did not address the field and existing content
    must be left alone. Only a non-None value may replace a section.
    """

    updated_overview: Optional[str] = None
    updated_system_map: Optional[str] = None
    updated_data_flows: Optional[str] = None
    updated_dependency_graph: Optional[str] = None
    updated_modules: List[ModuleAnalysis] = field(default_factory=list)
    new_modules: List[ModuleAnalysis] = field(default_factory=list)
    deleted_modules: List[str] = field(default_factory=list)


@dataclass
class ModuleInfo:
    """Lean module record kept in ``ArchState``."""

    name: str
    path: str = ""
    description: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "path": self.path, "description": self.description}


@dataclass
class ArchState:
    last_commit_sha: str
    last_run_at: str
    modules: List[ModuleInfo]
    repo_root: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lastCommitSha": self.last_commit_sha,
            "lastRunAt": self.last_run_at,
            "modules": [m.to_dict() for m in self.modules],
            "repoRoot": self.repo_root,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ArchState":
        """Build from the on-disk shape. Raises ValueError on a malformed record."""
        if not isinstance(data, dict):
            raise ValueError("state must be a JSON object")

        sha = data.get("lastCommitSha")
        run_at = data.get("lastRunAt")
        if not isinstance(sha, str) or not isinstance(run_at, str):
            raise ValueError("state is missing lastCommitSha/lastRunAt")

        raw_modules = data.get("modules", [])
        if not isinstance(raw_modules, list):
            raise ValueError("state.modules must be a list")

        modules = []
        for entry in raw_modules:
            if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
                raise ValueError(f"invalid module entry in state: {entry!r}")
            modules.append(ModuleInfo(
                name=entry["name"],
                path=str(entry.get("path") or ""),
                description=str(entry.get("description") or ""),
            ))

        return cls(
            last_commit_sha=sha,
            last_run_at=run_at,
            modules=modules,
            repo_root=str(data.get("repoRoot") or ""),
        )


@dataclass
class ScanResult:
    content: str
    file_count: int


@dataclass
class RenderResult:
    written_files: List[Path] = field(default_factory=list)
    deleted_files: List[Path] = field(default_factory=list)


@dataclass
class ArchSnapshot:
    """A past commit that touched the overview document."""

    commit_sha: str
    date: str
    summary: str
    module_count: int
