"""
Engine access.

Usage:
    from comfyx_studio.engine import EngineClient, load_registry

    client = EngineClient.from_config(config)
    result = await load_registry(registry, client, cache_path)
"""

from comfyx_studio.engine.client import (
    EngineClient,
    EngineConnectionError,
    EngineError,
    EngineResponseError,
)
from comfyx_studio.engine.registry_loader import load_registry

__all__ = [
    "EngineClient",
    "EngineConnectionError",
    "EngineError",
    "EngineResponseError",
    "load_registry",
]
