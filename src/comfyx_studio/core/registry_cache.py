"""
Registry Cache - Persist the node registry between sessions.

The cache document maps class name to
{display_name, category, description, output_node, inputs, outputs}
and is read back through the same parser as the engine schema.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from comfyx_studio.core.node_registry import NodeRegistry
from comfyx_studio.core.results import ErrorKind, LoadResult

logger = logging.getLogger(__name__)


CACHE_FILENAME = "node_registry.json"


def get_cache_path(cache_dir: Path) -> Path:
    """
    Get the registry cache file path.

    Args:
        cache_dir: Directory holding application caches

    Returns:
        Path to the registry cache JSON file
    """
    return cache_dir / CACHE_FILENAME


def save_registry_cache(registry: NodeRegistry, path: Path) -> bool:
    """
    Write the registry to the cache file.

    Returns:
        True if written, False if the registry is empty or the write failed
    """
    if not registry.is_loaded:
        return False

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(registry.to_cache_document(), f, indent=2)
    except OSError as e:
        logger.warning("Failed to save registry cache %s: %s", path, e)
        return False

    logger.debug("Saved %d node types to %s", len(registry), path)
    return True


def load_registry_cache(registry: NodeRegistry, path: Path) -> LoadResult:
    """Load the registry from the cache file."""
    if not path.exists():
        return LoadResult.failed(f"No registry cache at {path}", ErrorKind.NOT_FOUND)

    try:
        with open(path, "r", encoding="utf-8") as f:
            document = json.load(f)
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Failed to read registry cache %s: %s", path, e)
        return LoadResult.failed("Registry cache could not be read", ErrorKind.NOT_FOUND)
    except json.JSONDecodeError as e:
        logger.warning("Failed to parse registry cache %s: %s", path, e)
        return LoadResult.failed("Registry cache is not valid JSON")

    return registry.load_from_cache(document)


def delete_registry_cache(path: Path) -> bool:
    """
    Delete the cache file.

    Returns:
        True if file was deleted, False if it didn't exist
    """
    if not path.exists():
        return False
    try:
        path.unlink()
    except OSError as e:
        logger.warning("Failed to delete registry cache %s: %s", path, e)
        return False
    return True
