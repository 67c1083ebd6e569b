"""
Parsing of model responses into typed analysis results.

The model is asked for JSON but nothing guarantees it complies. Parsing is
two-tiered:

1. Structured: a ```json fenced block, else the whole text, decoded and
   checked against the expected shape (required fields and types).
2. Tagged text: ``<OVERVIEW>...</OVERVIEW>`` style sections, matched
   case-insensitively, used when decoding OR shape validation fails.

Both entry points always return a result and never raise for malformed
input. Every diagram-bearing field goes through ``validate_mermaid``.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

from repo_architect.mermaid import validate_mermaid
from repo_architect.models import AnalysisResult, IncrementalAnalysisResult, ModuleAnalysis

logger = logging.getLogger(__name__)

DEFAULT_PROJECT_NAME = "Unknown Project"
DEFAULT_MODULE_NAME = "unknown"

_JSON_FENCE = re.compile(r"```json\s*\n(.*?)\n\s*```", re.DOTALL)
_BULLET = re.compile(r"^[-*]\s*")

INCREMENTAL_KEYS = (
    "updatedOverview",
    "updatedSystemMap",
    "updatedDataFlows",
    "updatedDependencyGraph",
    "updatedModules",
    "newModules",
    "deletedModules",
)


class SchemaError(ValueError):
    """Decoded JSON does not have the expected result shape."""


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def parse_analysis_response(text: str) -> AnalysisResult:
    """Parse a full-run response. Always returns an ``AnalysisResult``."""
    text = text or ""
    data = extract_json(text)
    if data is not None:
        try:
            return _decode_full(data)
        except SchemaError as e:
            logger.warning("JSON response does not match analysis shape (%s), using tag extraction", e)
    else:
        logger.info("No JSON found in response, using tag extraction")

    return AnalysisResult(
        project_name=extract_section(text, "PROJECT_NAME") or DEFAULT_PROJECT_NAME,
        # Keep everything when no structure is recognisable at all
        overview=extract_section(text, "OVERVIEW") or text,
        tech_stack=extract_list(text, "TECH_STACK"),
        system_map=validate_mermaid(extract_section(text, "SYSTEM_MAP") or ""),
        data_flows=validate_mermaid(extract_section(text, "DATA_FLOWS") or ""),
        dependency_graph=validate_mermaid(extract_section(text, "DEPENDENCY_GRAPH") or ""),
        modules=extract_modules(text, "MODULE"),
    )


def parse_incremental_response(text: str) -> IncrementalAnalysisResult:
    """Parse an incremental-run response. Absent fields stay ``None``."""
    text = text or ""
    data = extract_json(text)
    if data is not None:
        try:
            return _decode_incremental(data)
        except SchemaError as e:
            logger.warning("JSON response does not match incremental shape (%s), using tag extraction", e)
    else:
        logger.info("No JSON found in response, using tag extraction")

    return IncrementalAnalysisResult(
        updated_overview=_optional_text(extract_section(text, "UPDATED_OVERVIEW")),
        updated_system_map=_optional_diagram(extract_section(text, "UPDATED_SYSTEM_MAP")),
        updated_data_flows=_optional_diagram(extract_section(text, "UPDATED_DATA_FLOWS")),
        updated_dependency_graph=_optional_diagram(extract_section(text, "UPDATED_DEPENDENCY_GRAPH")),
        updated_modules=extract_modules(text, "MODULE"),
        new_modules=extract_modules(text, "NEW_MODULE"),
        deleted_modules=extract_list(text, "DELETED_MODULES"),
    )


# ---------------------------------------------------------------------------
# Structured decoding
# ---------------------------------------------------------------------------

def extract_json(text: str) -> Optional[Any]:
    """Decode a ```json block, else the whole text. None when neither decodes.

    Pathologically nested input makes the decoder raise RecursionError; that
    counts as undecodable too.
    """
    match = _JSON_FENCE.search(text)
    if match:
        try:
            return json.loads(match.group(1))
        except (ValueError, RecursionError):
            pass
    try:
        return json.loads(text)
    except (ValueError, RecursionError):
        return None


def _require_object(data: Any) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise SchemaError(f"expected an object, got {type(data).__name__}")
    return data


def _required_str(obj: Dict[str, Any], key: str) -> str:
    value = obj.get(key)
    if not isinstance(value, str):
        raise SchemaError(f"'{key}' must be a string")
    return value


def _optional_str(obj: Dict[str, Any], key: str) -> str:
    value = obj.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise SchemaError(f"'{key}' must be a string")
    return value


def _nullable_str(obj: Dict[str, Any], key: str) -> Optional[str]:
    value = obj.get(key)
    if value is not None and not isinstance(value, str):
        raise SchemaError(f"'{key}' must be a string or null")
    return value


def _str_list(obj: Dict[str, Any], key: str) -> List[str]:
    value = obj.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise SchemaError(f"'{key}' must be a list of strings")
    return list(value)


def _object_list(obj: Dict[str, Any], key: str, required: bool = False) -> List[Any]:
    value = obj.get(key)
    if value is None and not required:
        return []
    if not isinstance(value, list):
        raise SchemaError(f"'{key}' must be a list")
    return value


def _decode_module(data: Any) -> ModuleAnalysis:
    obj = _require_object(data)
    return ModuleAnalysis(
        name=_required_str(obj, "name"),
        path=_optional_str(obj, "path"),
        description=_optional_str(obj, "description"),
        key_abstractions=_str_list(obj, "keyAbstractions"),
        internal_diagram=validate_mermaid(_optional_str(obj, "internalDiagram")),
    )


def _decode_full(data: Any) -> AnalysisResult:
    obj = _require_object(data)
    return AnalysisResult(
        project_name=_required_str(obj, "projectName"),
        overview=_required_str(obj, "overview"),
        tech_stack=_str_list(obj, "techStack"),
        system_map=validate_mermaid(_optional_str(obj, "systemMap")),
        data_flows=validate_mermaid(_optional_str(obj, "dataFlows")),
        dependency_graph=validate_mermaid(_optional_str(obj, "dependencyGraph")),
        modules=[_decode_module(m) for m in _object_list(obj, "modules", required=True)],
    )


def _decode_incremental(data: Any) -> IncrementalAnalysisResult:
    obj = _require_object(data)
    if not any(key in obj for key in INCREMENTAL_KEYS):
        raise SchemaError("no incremental fields present")

    return IncrementalAnalysisResult(
        updated_overview=_optional_text(_nullable_str(obj, "updatedOverview")),
        updated_system_map=_optional_diagram(_nullable_str(obj, "updatedSystemMap")),
        updated_data_flows=_optional_diagram(_nullable_str(obj, "updatedDataFlows")),
        updated_dependency_graph=_optional_diagram(_nullable_str(obj, "updatedDependencyGraph")),
        updated_modules=[_decode_module(m) for m in _object_list(obj, "updatedModules")],
        new_modules=[_decode_module(m) for m in _object_list(obj, "newModules")],
        deleted_modules=_str_list(obj, "deletedModules"),
    )


def _optional_text(value: Optional[str]) -> Optional[str]:
    """Empty updates carry no authority to blank a section."""
    if value is None or not value.strip():
        return None
    return value.strip()


def _optional_diagram(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return validate_mermaid(value) or None


# ---------------------------------------------------------------------------
# Tag extraction fallback
# ---------------------------------------------------------------------------

def extract_section(text: str, tag: str) -> Optional[str]:
    """Inner text of the first ``<TAG>...</TAG>`` pair, trimmed, or None."""
    pattern = re.compile(rf"<{tag}>(.*?)</{tag}>", re.IGNORECASE | re.DOTALL)
    match = pattern.search(text)
    return match.group(1).strip() if match else None


def extract_list(text: str, tag: str) -> List[str]:
    section = extract_section(text, tag)
    if not section:
        return []
    items = (_BULLET.sub("", line).strip() for line in section.split("\n"))
    return [item for item in items if item]


def extract_modules(text: str, tag: str = "MODULE") -> List[ModuleAnalysis]:
    """All ``<TAG>`` blocks, in source order, each parsed as a module."""
    pattern = re.compile(rf"<{tag}>(.*?)</{tag}>", re.IGNORECASE | re.DOTALL)
    modules = []
    for match in pattern.finditer(text):
        block = match.group(1)
        modules.append(ModuleAnalysis(
            name=extract_section(block, "NAME") or DEFAULT_MODULE_NAME,
            path=extract_section(block, "PATH") or "",
            description=extract_section(block, "DESCRIPTION") or "",
            key_abstractions=extract_list(block, "KEY_ABSTRACTIONS"),
            internal_diagram=validate_mermaid(extract_section(block, "INTERNAL_DIAGRAM") or ""),
        ))
    return modules
