"""
Studio Config - Settings for the engine connection and the workflow core.

Settings live in ~/.config/comfyx_studio/config.json. A missing or broken
file gives the defaults.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from comfyx_studio.core.node_registry import Strictness

logger = logging.getLogger(__name__)


DEFAULT_CONFIG_PATH = Path.home() / ".config" / "comfyx_studio" / "config.json"
DEFAULT_CACHE_DIR = Path.home() / ".cache" / "comfyx_studio"


@dataclass
class StudioConfig:
    """
    Application settings used by the core.

    Attributes:
        engine_url: Base URL of the engine's HTTP API
        request_timeout: Seconds before an engine request is abandoned
        cache_dir: Directory holding the node registry cache
        summary_max_entries: Node classes described to the language model
        layout_row_width: Nodes per row when laying out editor graphs
        strictness: Level for registry validation of parsed workflows
        class_aliases: Extra class-name corrections for auto-fix
    """
    engine_url: str = "http://127.0.0.1:8188"
    request_timeout: float = 30.0
    cache_dir: Path = DEFAULT_CACHE_DIR
    summary_max_entries: int = 50
    layout_row_width: int = 4
    strictness: Strictness = Strictness.PERMISSIVE
    class_aliases: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert settings to dictionary for serialization."""
        return {
            "engine_url": self.engine_url,
            "request_timeout": self.request_timeout,
            "cache_dir": str(self.cache_dir),
            "summary_max_entries": self.summary_max_entries,
            "layout_row_width": self.layout_row_width,
            "strictness": self.strictness.value,
            "class_aliases": dict(self.class_aliases),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StudioConfig:
        """Create settings from dictionary; unknown strictness falls back to permissive."""
        try:
            strictness = Strictness(data.get("strictness", Strictness.PERMISSIVE.value))
        except ValueError:
            logger.warning("Unknown strictness %r; using permissive", data.get("strictness"))
            strictness = Strictness.PERMISSIVE

        aliases = data.get("class_aliases")
        return cls(
            engine_url=str(data.get("engine_url", "http://127.0.0.1:8188")).rstrip("/"),
            request_timeout=float(data.get("request_timeout", 30.0)),
            cache_dir=Path(data["cache_dir"]) if data.get("cache_dir") else DEFAULT_CACHE_DIR,
            summary_max_entries=int(data.get("summary_max_entries", 50)),
            layout_row_width=int(data.get("layout_row_width", 4)),
            strictness=strictness,
            class_aliases={str(k): str(v) for k, v in aliases.items()} if isinstance(aliases, dict) else {},
        )


def load_config(path: Path | None = None) -> StudioConfig:
    """Load settings from file, or defaults if it is missing or unreadable."""
    if path is None:
        path = DEFAULT_CONFIG_PATH

    if not path.exists():
        return StudioConfig()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError("top level must be an object")
        return StudioConfig.from_dict(data)
    except (OSError, ValueError, TypeError) as e:
        logger.warning("Failed to load config %s: %s", path, e)
        return StudioConfig()


def save_config(config: StudioConfig, path: Path | None = None) -> Path:
    """Save settings to file, creating the directory if needed."""
    if path is None:
        path = DEFAULT_CONFIG_PATH

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config.to_dict(), f, indent=2)
    return path
