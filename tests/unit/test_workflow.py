"""
Tests for the workflow value objects.
"""

import pytest

from comfyx_studio.core.workflow import (
    EditorGraph,
    EditorLink,
    ExecutionGraph,
    Link,
    Literal,
    to_input_value,
)


class TestInputValue:
    """Tests for Link/Literal discrimination."""

    @pytest.mark.parametrize("raw, expected", [
        (["4", 0], Link("4", 0)),
        ([4, 2], Link("4", 2)),
        ([4.0, 1], Link("4", 1)),
        ("text", Literal("text")),
        (7, Literal(7)),
        ([512, 512.5], Literal([512, 512.5])),
        (["a", -1], Literal(["a", -1])),
        (["a", True], Literal(["a", True])),
        ([True, 0], Literal([True, 0])),
        ([1, 2, 3], Literal([1, 2, 3])),
    ])
    def test_to_input_value(self, raw, expected):
        assert to_input_value(raw) == expected

    def test_already_wrapped(self):
        link = Link("1", 0)
        assert to_input_value(link) is link


class TestExecutionGraph:
    """Tests for ExecutionGraph JSON handling."""

    def test_from_dict_preserves_order(self):
        graph = ExecutionGraph.from_dict({
            "3": {"class_type": "B", "inputs": {}},
            "1": {"class_type": "A", "inputs": {"x": ["3", 0]}},
        })
        assert list(graph) == ["3", "1"]
        assert len(graph) == 2
        assert "1" in graph
        assert dict(graph["1"].links()) == {"x": Link("3", 0)}

    def test_numeric_references_become_strings(self):
        graph = ExecutionGraph.from_dict({"1": {"class_type": "A", "inputs": {"x": [2, 0]}}})
        assert graph.to_dict()["1"]["inputs"]["x"] == ["2", 0]

    def test_non_object_entries_skipped(self):
        graph = ExecutionGraph.from_dict({"1": "junk", "2": {"class_type": "A"}})
        assert list(graph) == ["2"]
        assert graph["2"].inputs == {}


class TestEditorGraph:
    """Tests for EditorGraph JSON handling."""

    def test_counters_from_content(self):
        graph = EditorGraph.from_dict({
            "nodes": [{"id": 3, "type": "A"}, {"id": 11, "type": "B"}],
            "links": [[5, 3, 0, 11, 0, "MODEL"]],
        })
        assert graph.last_node_id == 11
        assert graph.last_link_id == 5

    def test_unreadable_links_skipped(self):
        assert EditorLink.from_json(["x", 1, 0]) is None
        assert EditorLink.from_json({"id": 1}) is None
        assert EditorLink.from_json([1, 2, 3]).target_node_id == -1

    def test_missing_sections(self):
        graph = EditorGraph.from_dict({"nodes": None})
        assert graph.nodes == []
        assert graph.links == []
