"""
Tests for the registry cache file and settings persistence.
"""

import json
from pathlib import Path

from comfyx_studio.core.config import StudioConfig, load_config, save_config
from comfyx_studio.core.node_registry import NodeRegistry, Strictness
from comfyx_studio.core.registry_cache import (
    delete_registry_cache,
    get_cache_path,
    load_registry_cache,
    save_registry_cache,
)
from comfyx_studio.core.results import ErrorKind


SCHEMA = {
    "KSampler": {
        "input": {"required": {"model": ["MODEL"], "sampler_name": [["euler", "dpmpp_2m"]]}},
        "output": ["LATENT"],
        "category": "sampling",
    },
    "PreviewImage": {"input": {"required": {"images": ["IMAGE"]}}, "output_node": True},
}


class TestRegistryCache:
    """Tests for saving and loading the cache file."""

    def test_cache_path(self, tmp_path):
        assert get_cache_path(tmp_path) == tmp_path / "node_registry.json"

    def test_save_and_load(self, tmp_path):
        registry = NodeRegistry()
        registry.load_from_source(SCHEMA)
        path = get_cache_path(tmp_path / "nested")

        assert save_registry_cache(registry, path) is True
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["KSampler"]["inputs"][1] == {
            "name": "sampler_name", "type": "COMBO", "required": True,
            "options": ["euler", "dpmpp_2m"],
        }

        restored = NodeRegistry()
        result = load_registry_cache(restored, path)
        assert result.ok
        assert result.count == 2
        assert restored.lookup("PreviewImage").is_terminal is True
        assert restored.lookup("KSampler").get_input("sampler_name").enum_options == ("euler", "dpmpp_2m")

    def test_empty_registry_not_saved(self, tmp_path):
        path = get_cache_path(tmp_path)
        assert save_registry_cache(NodeRegistry(), path) is False
        assert not path.exists()

    def test_missing_file(self, tmp_path):
        result = load_registry_cache(NodeRegistry(), tmp_path / "missing.json")
        assert result.ok is False
        assert result.kind == ErrorKind.NOT_FOUND

    def test_corrupt_file_keeps_registry(self, tmp_path):
        path = tmp_path / "node_registry.json"
        path.write_text("{not json", encoding="utf-8")
        registry = NodeRegistry()
        registry.load_from_source(SCHEMA)

        result = load_registry_cache(registry, path)

        assert result.ok is False
        assert result.kind == ErrorKind.MALFORMED_INPUT
        assert len(registry) == 2

    def test_delete(self, tmp_path):
        path = tmp_path / "node_registry.json"
        path.write_text("{}", encoding="utf-8")
        assert delete_registry_cache(path) is True
        assert delete_registry_cache(path) is False


class TestStudioConfig:
    """Tests for settings load/save."""

    def test_defaults_when_missing(self, tmp_path):
        config = load_config(tmp_path / "config.json")
        assert config.engine_url == "http://127.0.0.1:8188"
        assert config.strictness == Strictness.PERMISSIVE
        assert config.summary_max_entries == 50

    def test_round_trip(self, tmp_path):
        config = StudioConfig(
            engine_url="http://gpu-box:8188",
            cache_dir=tmp_path / "cache",
            layout_row_width=3,
            strictness=Strictness.LINKS,
            class_aliases={"Sampler": "KSampler"},
        )
        path = save_config(config, tmp_path / "cfg" / "config.json")

        loaded = load_config(path)

        assert loaded == config

    def test_corrupt_file_gives_defaults(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("[1, 2", encoding="utf-8")
        assert load_config(path) == StudioConfig()

    def test_from_dict_tolerates_unknown_strictness(self):
        config = StudioConfig.from_dict({"strictness": "paranoid", "engine_url": "http://x:1/"})
        assert config.strictness == Strictness.PERMISSIVE
        assert config.engine_url == "http://x:1"
        assert isinstance(config.cache_dir, Path)
