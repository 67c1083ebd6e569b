"""Mermaid diagram validation for model-produced diagram text."""

import logging
import re

logger = logging.getLogger(__name__)

DEFAULT_DECLARATION = "graph TD"

VALID_MERMAID_TYPES = re.compile(
    r"^(graph|flowchart|sequenceDiagram|classDiagram|stateDiagram|erDiagram|gantt|pie"
    r"|gitGraph|journey|mindmap|timeline|quadrantChart|sankey|xychart|block)"
)

ARROW_MARKERS = ("-->", "---")


def validate_mermaid(diagram) -> str:
    """
    Return diagram text that mermaid can at least attempt to render.

    Text starting with a known diagram type is returned trimmed. Text with
    arrows but no declaration gets ``graph TD`` prepended. Anything else is
    discarded as prose and returns an empty string. Never raises: one broken
    diagram must not abort the whole analysis.
    """
    if not isinstance(diagram, str):
        return ""

    trimmed = diagram.strip()
    if not trimmed:
        return ""

    if VALID_MERMAID_TYPES.match(trimmed):
        return trimmed

    if any(marker in trimmed for marker in ARROW_MARKERS):
        logger.warning('Mermaid diagram missing type declaration, prepending "%s"', DEFAULT_DECLARATION)
        return f"{DEFAULT_DECLARATION}\n{trimmed}"

    logger.warning("Invalid mermaid diagram content, skipping (%d chars)", len(trimmed))
    return ""
