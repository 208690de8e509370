"""
Registry Loader - Populate a NodeRegistry from the engine or the cache.

The engine's live schema is preferred and is written back to the cache;
when the engine cannot be reached the cached schema is used instead.
"""

from __future__ import annotations

import logging
from pathlib import Path

from comfyx_studio.core.node_registry import NodeRegistry
from comfyx_studio.core.registry_cache import load_registry_cache, save_registry_cache
from comfyx_studio.core.results import LoadResult
from comfyx_studio.engine.client import EngineClient, EngineError

logger = logging.getLogger(__name__)


async def load_registry(
    registry: NodeRegistry,
    client: EngineClient | None,
    cache_path: Path,
) -> LoadResult:
    """
    Load the registry, falling back to the cache.

    Args:
        registry: Registry to populate (left untouched if everything fails)
        client: Engine client, or None to use the cache only
        cache_path: Registry cache file

    Returns:
        LoadResult of whichever source succeeded, or of the cache attempt
    """
    if client is not None:
        try:
            document = await client.get_object_info()
        except EngineError as e:
            logger.warning("Could not fetch node schema from engine: %s", e)
        else:
            result = registry.load_from_source(document)
            if result.ok:
                save_registry_cache(registry, cache_path)
                return result
            logger.warning("Engine schema rejected: %s", result.reason)

    result = load_registry_cache(registry, cache_path)
    if not result.ok:
        logger.warning("Node registry unavailable: %s", result.reason)
    return result
