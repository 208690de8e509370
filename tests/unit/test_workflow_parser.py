"""
Tests for parsing model responses into execution graphs.
"""

import pytest

from comfyx_studio.core.config import StudioConfig
from comfyx_studio.core.node_registry import NodeRegistry, Strictness
from comfyx_studio.core.results import ErrorKind
from comfyx_studio.core.workflow import ExecutionGraph, Link
from comfyx_studio.core.workflow_parser import (
    AutoFixTable,
    WorkflowParser,
    auto_fix,
)


RESPONSE = """Here you go:
```json
{"1":{"class_type":"CheckpointLoader","inputs":{"ckpt_name":"a.safetensors"}},"2":{"class_type":"TextEncode","inputs":{"text":"cat","clip":[1,1]}}}
```
"""


class TestParse:
    """Tests for WorkflowParser.parse()."""

    def test_end_to_end(self):
        result = WorkflowParser().parse(RESPONSE)

        assert result.ok
        assert result.node_count == 2
        graph = result.value.to_dict()
        assert graph["1"]["class_type"] == "CheckpointLoaderSimple"
        assert graph["2"]["class_type"] == "CLIPTextEncode"
        assert graph["2"]["inputs"]["clip"] == ["1", 1]
        assert result.value["2"].inputs["clip"] == Link("1", 1)

    def test_no_json(self):
        result = WorkflowParser().parse("I cannot help with that.")
        assert result.ok is False
        assert result.kind == ErrorKind.NOT_FOUND
        assert result.reason

    def test_empty_object(self):
        result = WorkflowParser().parse("```json\n{}\n```")
        assert result.ok is False
        assert result.kind == ErrorKind.NOT_FOUND

    def test_unrecognized_shape(self):
        result = WorkflowParser().parse('{"prompt": "a cat", "steps": 20}')
        assert result.ok is False
        assert result.kind == ErrorKind.AMBIGUOUS_FORMAT

    def test_list_payload_is_unrecognized(self):
        result = WorkflowParser().parse('```json\n[1, 2]\n```')
        assert result.kind == ErrorKind.AMBIGUOUS_FORMAT

    def test_editor_format_converted(self):
        response = """```json
{"nodes": [
  {"id": 1, "type": "CheckpointLoader", "widgets_values": ["m.safetensors"]},
  {"id": 2, "type": "KSampler", "inputs": [{"name": "model", "link": 7},
                                           {"name": "steps", "link": null}],
   "widgets_values": [20]}
 ],
 "links": [[7, 1, 0, 2, 0, "MODEL"]]}
```"""
        result = WorkflowParser().parse(response)

        assert result.ok
        graph = result.value.to_dict()
        assert graph["1"]["class_type"] == "CheckpointLoaderSimple"
        assert graph["1"]["inputs"] == {"param_0": "m.safetensors"}
        assert graph["2"]["inputs"] == {"model": ["1", 0], "steps": 20}

    def test_editor_format_without_nodes_is_malformed(self):
        result = WorkflowParser().parse('{"nodes": [], "links": []}')
        assert result.ok is False
        assert result.kind == ErrorKind.MALFORMED_INPUT

    def test_missing_inputs_rejected_by_shape_check(self):
        result = WorkflowParser().parse('{"1": {"class_type": "X"}}')
        assert result.ok is False
        assert result.kind == ErrorKind.MALFORMED_INPUT
        assert result.node_id == "1"

    def test_malformed_node_fields_rejected(self):
        result = WorkflowParser().parse('{"1": {"class_type": 42, "inputs": "seed=5"}}')
        assert result.ok is False
        assert result.kind == ErrorKind.MALFORMED_INPUT
        assert result.node_id == "1"

        result = WorkflowParser().parse('{"1": {"class_type": "X", "inputs": "seed=5"}}')
        assert result.ok is False
        assert result.node_id == "1"

    def test_null_inputs_are_filled_in(self):
        result = WorkflowParser().parse('{"1": {"class_type": "X", "inputs": null}}')
        assert result.ok
        assert result.value["1"].inputs == {}

    def test_custom_aliases(self):
        parser = WorkflowParser(fix_table=AutoFixTable.with_overrides({"Sampler": "KSampler"}))
        result = parser.parse('{"1": {"class_type": "Sampler", "inputs": {}}}')
        assert result.value["1"].class_type == "KSampler"


class TestAutoFix:
    """Tests for the auto-fix pass."""

    def test_fixes(self):
        fixed = auto_fix({
            "1": {"class_type": "CLIPEncode"},
            "2": {"class_type": "KSampler", "inputs": {"model": [3, 0], "size": [512, 512.5],
                                                      "name": ["a", "b"]}},
        })

        assert fixed["1"] == {"class_type": "CLIPTextEncode", "inputs": {}}
        assert fixed["2"]["inputs"] == {"model": ["3", 0], "size": ["512", 512.5], "name": ["a", "b"]}

    def test_integral_float_reference(self):
        fixed = auto_fix({"1": {"class_type": "X", "inputs": {"a": [4.0, 0]}}})
        assert fixed["1"]["inputs"]["a"] == ["4", 0]

    def test_fractional_reference_is_not_truncated(self):
        fixed = auto_fix({"1": {"class_type": "X", "inputs": {"a": [1.5, 0]}}})
        assert fixed["1"]["inputs"]["a"] == ["1.5", 0]

    def test_pure(self):
        original = {"1": {"class_type": "TextEncode", "inputs": {"clip": [1, 1]}}}
        auto_fix(original)
        assert original == {"1": {"class_type": "TextEncode", "inputs": {"clip": [1, 1]}}}

    def test_total_on_odd_entries(self):
        fixed = auto_fix({"1": "junk", "2": {"inputs": None}})
        assert fixed == {"1": "junk", "2": {"inputs": {}}}

    @pytest.mark.parametrize("workflow", [
        {"1": {"class_type": "CheckpointLoader", "inputs": {"x": [2, 0]}}},
        {"1": {"class_type": "A"}, "2": {"class_type": "B", "inputs": {"v": [1.0, 2]}}},
    ])
    def test_idempotent(self, workflow):
        table = AutoFixTable.with_overrides({"A": "B", "B": "C"})
        once = auto_fix(workflow, table)
        assert auto_fix(once, table) == once

    def test_alias_chain_and_cycle(self):
        table = AutoFixTable.with_overrides({"A": "B", "B": "C", "X": "Y", "Y": "X"})
        assert table.resolve("A") == "C"
        assert table.resolve("X") == "X"
        assert table.resolve("CheckpointLoader") == "CheckpointLoaderSimple"

    def test_execution_graph_input(self):
        graph = ExecutionGraph.from_dict({"1": {"class_type": "TextEncode", "inputs": {}}})
        fixed = auto_fix(graph)
        assert isinstance(fixed, ExecutionGraph)
        assert fixed["1"].class_type == "CLIPTextEncode"


class TestRegistryValidation:
    """Tests for the optional registry follow-up check."""

    def test_requires_loaded_registry(self):
        outcome = WorkflowParser().validate_against_registry({"1": {"class_type": "X", "inputs": {}}})
        assert outcome.ok is False
        assert outcome.kind == ErrorKind.NOT_FOUND

    def test_delegates_to_registry(self):
        registry = NodeRegistry()
        registry.load_from_source({
            "CheckpointLoaderSimple": {"output": ["MODEL", "CLIP", "VAE"]},
            "CLIPTextEncode": {"output": ["CONDITIONING"]},
        })
        parser = WorkflowParser(registry=registry)

        result = parser.parse(RESPONSE)

        assert parser.validate_against_registry(result.value).ok
        outcome = parser.validate_against_registry({"7": {"class_type": "DoesNotExist", "inputs": {}}})
        assert outcome.node_id == "7"

    def test_from_config(self):
        registry = NodeRegistry()
        registry.load_from_source({
            "CheckpointLoaderSimple": {"output": ["MODEL"]},
            "CLIPTextEncode": {"output": ["CONDITIONING"]},
        })
        config = StudioConfig(strictness=Strictness.STRICT, class_aliases={"Loader": "CheckpointLoaderSimple"})
        parser = WorkflowParser.from_config(config, registry)

        result = parser.parse(RESPONSE)

        assert parser.fix_table.resolve("Loader") == "CheckpointLoaderSimple"
        # clip references output 1 of a class that declares only one output
        assert parser.validate_against_registry(result.value).ok is False
