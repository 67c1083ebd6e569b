"""
Markdown rendering and merging of analysis results.

Layout under the output directory (``docs/architecture`` by default)::

    OVERVIEW.md          project overview, diagrams, module index
    modules/<slug>.md    one file per module
    .arch-state.json     run state (owned by repo_architect.state)

Full runs rewrite everything. Incremental runs patch individual overview
sections and touch only the module files the model named.
"""

import logging
import re
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

from repo_architect.classifier import DEFAULT_OUTPUT_DIR
from repo_architect.models import (
    AnalysisResult,
    IncrementalAnalysisResult,
    ModuleAnalysis,
    ModuleInfo,
    RenderResult,
)

logger = logging.getLogger(__name__)

OVERVIEW_FILENAME = "OVERVIEW.md"
MODULES_DIRNAME = "modules"
GENERATED_NOTICE = "> Generated by repo-architect. Sections are updated in place on incremental runs."
NO_DIAGRAM = "_No diagram available._"

# Incremental field -> (overview heading, holds a diagram)
OVERVIEW_SECTIONS = (
    ("updated_overview", "Overview", False),
    ("updated_system_map", "System Map", True),
    ("updated_data_flows", "Data Flows", True),
    ("updated_dependency_graph", "Dependency Graph", True),
)

# An optional closing run of # is not part of the heading text
_HEADING = re.compile(r"^(#{1,6})\s+(.+?)(?:\s+#+)?\s*$")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    """'CLI_Scanner (v2)' -> 'cli-scanner-v2'."""
    return _NON_ALNUM.sub("-", name.lower()).strip("-")


def arch_dir(repo_root: Union[str, Path], output_dir: Optional[str] = None) -> Path:
    return Path(repo_root) / (output_dir or DEFAULT_OUTPUT_DIR)


def module_filename(name: str) -> str:
    # A name with no usable characters still needs a file
    return f"{slugify(name) or 'module'}.md"


def module_doc_path(repo_root: Union[str, Path], name: str, output_dir: Optional[str] = None) -> Path:
    return arch_dir(repo_root, output_dir) / MODULES_DIRNAME / module_filename(name)


def _write_text(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Markdown builders
# ---------------------------------------------------------------------------

def diagram_block(diagram: str) -> str:
    if not diagram:
        return NO_DIAGRAM
    return f"```mermaid\n{diagram}\n```"


def _cell(text: str) -> str:
    return " ".join(text.split()).replace("|", "\\|")


def module_index(modules: List[ModuleInfo]) -> str:
    if not modules:
        return "_No modules documented._"
    rows = [
        "| Module | Path | Description |",
        "|--------|------|-------------|",
    ]
    for m in modules:
        link = f"[{_cell(m.name)}]({MODULES_DIRNAME}/{module_filename(m.name)})"
        path = f"`{_cell(m.path)}`" if m.path else ""
        rows.append(f"| {link} | {path} | {_cell(m.description)} |")
    return "\n".join(rows)


def render_overview(analysis: AnalysisResult) -> str:
    tech = "\n".join(f"- {t}" for t in analysis.tech_stack) or "_Not identified._"
    modules = [m.to_info() for m in unique_modules(analysis.modules)]

    parts = [
        f"# {analysis.project_name}",
        GENERATED_NOTICE,
        f"## Overview\n\n{analysis.overview.strip()}",
        f"## Tech Stack\n\n{tech}",
        f"## System Map\n\n{diagram_block(analysis.system_map)}",
        f"## Data Flows\n\n{diagram_block(analysis.data_flows)}",
        f"## Dependency Graph\n\n{diagram_block(analysis.dependency_graph)}",
        f"## Modules\n\n{module_index(modules)}",
    ]
    return "\n\n".join(parts) + "\n"


def render_module(module: ModuleAnalysis) -> str:
    parts = [f"# {module.name}"]
    if module.path:
        parts.append(f"> Path: `{module.path}`")
    if module.description.strip():
        parts.append(module.description.strip())
    if module.key_abstractions:
        items = "\n".join(f"- {a}" for a in module.key_abstractions)
        parts.append(f"## Key Abstractions\n\n{items}")
    if module.internal_diagram:
        parts.append(f"## Internal Diagram\n\n{diagram_block(module.internal_diagram)}")
    return "\n\n".join(parts) + "\n"


# ---------------------------------------------------------------------------
# Section patching
# ---------------------------------------------------------------------------

def _headings(lines: List[str]) -> Iterator[Tuple[int, int, str]]:
    """(line index, level, text) for each heading outside fenced code."""
    in_fence = False
    for i, line in enumerate(lines):
        stripped = line.lstrip()
        if stripped.startswith("```") or stripped.startswith("~~~"):
            in_fence = not in_fence
            continue
        if in_fence:
            continue
        match = _HEADING.match(line)
        if match:
            yield i, len(match.group(1)), match.group(2)


def replace_section(document: str, heading: str, content: str) -> str:
    """
    Replace the body of the ``## heading`` section in document.

    The heading is matched case-insensitively and keeps its original text.
    The body runs to the next heading of the same or higher level. All other
    lines, including the title and preamble, are kept byte for byte. A
    missing section is appended; an empty document yields only the section.
    """
    body = content.strip()
    if not document.strip():
        return f"## {heading}\n\n{body}\n"

    lines = document.split("\n")
    headings = list(_headings(lines))
    target = heading.strip().lower()

    for idx, (line_no, level, text) in enumerate(headings):
        if level < 2 or text.lower() != target:
            continue
        end = next((n for n, lvl, _ in headings[idx + 1:] if lvl <= level), len(lines))
        return "\n".join(lines[:line_no + 1] + ["", body, ""] + lines[end:])

    return document.rstrip("\n") + f"\n\n## {heading}\n\n{body}\n"


# ---------------------------------------------------------------------------
# Full and incremental rendering
# ---------------------------------------------------------------------------

def unique_modules(modules: List[ModuleAnalysis]) -> List[ModuleAnalysis]:
    """Drop modules whose file name collides with an earlier one."""
    seen = set()
    unique = []
    for module in modules:
        filename = module_filename(module.name)
        if filename in seen:
            logger.warning("Skipping module %r: file name %s already used", module.name, filename)
            continue
        seen.add(filename)
        unique.append(module)
    return unique


def render_full_docs(
    repo_root: Union[str, Path],
    analysis: AnalysisResult,
    output_dir: Optional[str] = None,
) -> List[Path]:
    """
    Write OVERVIEW.md and one file per module, overwriting prior content.

    Module files left over from earlier runs that match no module in this
    analysis are removed so the tree mirrors the new state.
    """
    base = arch_dir(repo_root, output_dir)
    written = [_write_text(base / OVERVIEW_FILENAME, render_overview(analysis))]

    module_paths = []
    for module in unique_modules(analysis.modules):
        path = module_doc_path(repo_root, module.name, output_dir)
        module_paths.append(_write_text(path, render_module(module)))
    written.extend(module_paths)

    keep = {p.name for p in module_paths}
    modules_dir = base / MODULES_DIRNAME
    for stale in sorted(modules_dir.glob("*.md")):
        if stale.name not in keep:
            stale.unlink()
            logger.info("Removed stale module doc %s", stale)

    logger.info("Rendered full docs: %d file(s) under %s", len(written), base)
    return written


def render_incremental_docs(
    repo_root: Union[str, Path],
    analysis: IncrementalAnalysisResult,
    output_dir: Optional[str] = None,
    modules: Optional[List[ModuleInfo]] = None,
) -> RenderResult:
    """
    Apply an incremental delta to the existing documentation tree.

    Only non-None overview fields patch their section. Updated and new
    modules are (re)written; deleted modules are removed when their file
    exists and skipped otherwise. When ``modules`` (the reconciled module
    list) is given and the module set changed, the overview's module index
    is refreshed too.
    """
    base = arch_dir(repo_root, output_dir)
    result = RenderResult()

    patches = []
    for field_name, heading, is_diagram in OVERVIEW_SECTIONS:
        value = getattr(analysis, field_name)
        if value is None:
            continue
        patches.append((heading, diagram_block(value) if is_diagram else value))

    if modules is not None and (analysis.new_modules or analysis.deleted_modules):
        patches.append(("Modules", module_index(modules)))

    if patches:
        overview_path = base / OVERVIEW_FILENAME
        document = overview_path.read_text(encoding="utf-8") if overview_path.exists() else ""
        for heading, content in patches:
            document = replace_section(document, heading, content)
        result.written_files.append(_write_text(overview_path, document))
        logger.info("Patched %d overview section(s): %s", len(patches), ", ".join(h for h, _ in patches))

    updated = unique_modules(analysis.updated_modules)
    new = unique_modules(analysis.new_modules)

    for module in updated:
        path = module_doc_path(repo_root, module.name, output_dir)
        if not path.exists():
            logger.warning("Updated module %r had no file, creating %s", module.name, path.name)
        result.written_files.append(_write_text(path, render_module(module)))

    for module in new:
        path = module_doc_path(repo_root, module.name, output_dir)
        result.written_files.append(_write_text(path, render_module(module)))

    for name in analysis.deleted_modules:
        path = module_doc_path(repo_root, name, output_dir)
        if not path.exists():
            logger.debug("Deleted module %r has no file, nothing to remove", name)
            continue
        path.unlink()
        result.deleted_files.append(path)

    return result


def reconcile_modules(
    previous: List[ModuleInfo],
    analysis: IncrementalAnalysisResult,
) -> List[ModuleInfo]:
    """
    Module list to persist after an incremental run.

    Entries are keyed by module file name, the same key the renderer writes
    and deletes by, so the list holds exactly one entry per file on disk.
    Deleted names drop their entry. Updated and new modules replace the entry
    with the same file name in place, or are appended.
    """
    deleted = {module_filename(name) for name in analysis.deleted_modules}
    merged: Dict[str, ModuleInfo] = {}

    for info in previous:
        key = module_filename(info.name)
        if key not in deleted and key not in merged:
            merged[key] = info

    # Same order as the renderer: a new module overwrites an updated one's file
    for module in unique_modules(analysis.updated_modules) + unique_modules(analysis.new_modules):
        key = module_filename(module.name)
        if key not in deleted:
            merged[key] = module.to_info()

    return list(merged.values())
