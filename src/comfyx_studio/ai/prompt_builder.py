"""
Prompt Builder - Brief the language model about the available nodes.

The system prompt text itself is supplied by the caller (or read from a
file); this module only appends the registry summary to it.
"""

from __future__ import annotations

import logging
from pathlib import Path

from comfyx_studio.core.node_registry import NodeRegistry

logger = logging.getLogger(__name__)


NODES_HEADING = "## Available Nodes"


def load_system_prompt(path: Path | None, fallback: str = "") -> str:
    """Read the system prompt from a file, or return the fallback."""
    if path is None or not path.exists():
        return fallback
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Failed to read system prompt %s: %s", path, e)
        return fallback


def build_workflow_prompt(
    system_prompt: str,
    registry: NodeRegistry | None,
    max_entries: int = 50,
) -> str:
    """
    Append the registry summary to the system prompt.

    The prompt is returned unchanged when no registry is loaded.
    """
    if registry is None or not registry.is_loaded:
        return system_prompt
    return f"{system_prompt}\n\n{NODES_HEADING}\n{registry.summarize(max_entries)}"
