"""
Workflow Model - Value objects for the engine's two workflow formats.

This module defines:
- Literal / Link: The two kinds of input value in an execution graph
- ExecutionNode / ExecutionGraph: The flat "API" format the engine executes
- InputSlot / EditorNode / EditorLink / EditorGraph: The "UI" format used
  by the visual graph editor

JSON is kept at the boundary (from_dict/to_dict); inside the core every
input value is either a Literal or a Link, decided once by to_input_value().
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping

logger = logging.getLogger(__name__)


# Placeholder data type for synthesized links and slots
ANY_TYPE = "*"


@dataclass(frozen=True)
class Literal:
    """A literal input value (any JSON value that is not a link)."""
    value: Any

    def to_json(self) -> Any:
        return self.value


@dataclass(frozen=True)
class Link:
    """
    A reference to another node's output.

    Attributes:
        source_node_id: Id of the producing node (always a string)
        output_index: Position in the producing class's output list
    """
    source_node_id: str
    output_index: int

    def to_json(self) -> list[Any]:
        return [self.source_node_id, self.output_index]


InputValue = Literal | Link


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def node_id_to_str(value: Any) -> str:
    """Render a node id as a string; integral floats lose their decimal part."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def is_link_value(raw: Any) -> bool:
    """
    Check whether a raw JSON value is a [node_id, output_index] reference.

    The node id may be a string or a number; the output index must be a
    non-negative integer.
    """
    if not isinstance(raw, (list, tuple)) or len(raw) != 2:
        return False
    source, index = raw
    if not (isinstance(source, str) or _is_number(source)):
        return False
    return isinstance(index, int) and not isinstance(index, bool) and index >= 0


def to_input_value(raw: Any) -> InputValue:
    """Wrap a raw JSON input value as a Link or a Literal."""
    if isinstance(raw, (Literal, Link)):
        return raw
    if is_link_value(raw):
        return Link(node_id_to_str(raw[0]), raw[1])
    return Literal(raw)


# =============================================================================
# Execution (API) format
# =============================================================================

@dataclass(frozen=True)
class ExecutionNode:
    """A single node in the execution graph."""
    class_type: str
    inputs: dict[str, InputValue] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ExecutionNode:
        raw_inputs = data.get("inputs")
        if not isinstance(raw_inputs, Mapping):
            raw_inputs = {}
        class_type = data.get("class_type")
        return cls(
            class_type=class_type if isinstance(class_type, str) else "",
            inputs={str(name): to_input_value(value) for name, value in raw_inputs.items()},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "class_type": self.class_type,
            "inputs": {name: value.to_json() for name, value in self.inputs.items()},
        }

    def links(self) -> Iterator[tuple[str, Link]]:
        """Iterate (input_name, link) pairs for linked inputs."""
        for name, value in self.inputs.items():
            if isinstance(value, Link):
                yield name, value


@dataclass
class ExecutionGraph:
    """
    The flat execution format: node id -> ExecutionNode.

    Insertion order is preserved and is the order used for layout when
    converting to the editor format.
    """
    nodes: dict[str, ExecutionNode] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ExecutionGraph:
        """
        Build a graph from an execution-format JSON object.

        Entries that are not JSON objects are skipped; shape problems are
        reported by validate_execution_shape(), not here.
        """
        nodes: dict[str, ExecutionNode] = {}
        for node_id, node_data in data.items():
            if not isinstance(node_data, Mapping):
                logger.debug("Skipping non-object entry %r", node_id)
                continue
            nodes[str(node_id)] = ExecutionNode.from_dict(node_data)
        return cls(nodes)

    @classmethod
    def coerce(cls, graph: ExecutionGraph | Mapping[str, Any]) -> ExecutionGraph:
        if isinstance(graph, ExecutionGraph):
            return graph
        return cls.from_dict(graph)

    def to_dict(self) -> dict[str, Any]:
        return {node_id: node.to_dict() for node_id, node in self.nodes.items()}

    def items(self):
        return self.nodes.items()

    def __getitem__(self, node_id: str) -> ExecutionNode:
        return self.nodes[node_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes


# =============================================================================
# Editor (UI) format
# =============================================================================

@dataclass(frozen=True)
class InputSlot:
    """
    An input slot on an editor node.

    link_id is None for inputs fed by a widget value; is_widget marks slots
    that exist only to name such a value.
    """
    name: str
    link_id: int | None = None
    data_type: str = ANY_TYPE
    is_widget: bool = False

    def to_json(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "type": self.data_type, "link": self.link_id}
        if self.is_widget:
            data["widget"] = {"name": self.name}
        return data


@dataclass(frozen=True)
class EditorLink:
    """A wire between two editor nodes."""
    id: int
    origin_node_id: int
    origin_slot_index: int
    target_node_id: int
    target_slot_index: int
    data_type: str = ANY_TYPE

    @classmethod
    def from_json(cls, raw: Any) -> EditorLink | None:
        """
        Read a link from either the array form
        [id, origin_id, origin_slot, target_id, target_slot, type]
        or the object form. Returns None for unreadable links.
        """
        try:
            if isinstance(raw, (list, tuple)) and len(raw) >= 3:
                return cls(
                    id=int(raw[0]),
                    origin_node_id=int(raw[1]),
                    origin_slot_index=int(raw[2]),
                    target_node_id=int(raw[3]) if len(raw) > 3 else -1,
                    target_slot_index=int(raw[4]) if len(raw) > 4 else -1,
                    data_type=str(raw[5]) if len(raw) > 5 else ANY_TYPE,
                )
            if isinstance(raw, Mapping):
                return cls(
                    id=int(raw["id"]),
                    origin_node_id=int(raw["origin_id"]),
                    origin_slot_index=int(raw["origin_slot"]),
                    target_node_id=int(raw.get("target_id", -1)),
                    target_slot_index=int(raw.get("target_slot", -1)),
                    data_type=str(raw.get("type", ANY_TYPE)),
                )
        except (KeyError, TypeError, ValueError):
            pass
        logger.debug("Skipping unreadable link %r", raw)
        return None

    def to_json(self) -> list[Any]:
        return [
            self.id,
            self.origin_node_id,
            self.origin_slot_index,
            self.target_node_id,
            self.target_slot_index,
            self.data_type,
        ]


@dataclass
class EditorNode:
    """
    A node in the editor graph.

    Widget values line up, in order, with the input slots that have no link.
    """
    id: int
    type: str
    input_slots: list[InputSlot] = field(default_factory=list)
    widget_values: list[Any] = field(default_factory=list)
    pos: tuple[float, float] = (0.0, 0.0)
    size: tuple[float, float] = (300.0, 200.0)
    order: int = 0

    @classmethod
    def from_json(cls, raw: Any) -> EditorNode | None:
        """Read a node; returns None when id or type is missing."""
        if not isinstance(raw, Mapping):
            return None
        node_type = raw.get("type")
        try:
            node_id = int(raw["id"])
        except (KeyError, TypeError, ValueError):
            return None
        if not isinstance(node_type, str) or not node_type:
            return None

        slots: list[InputSlot] = []
        raw_inputs = raw.get("inputs")
        if isinstance(raw_inputs, list):
            for raw_slot in raw_inputs:
                if not isinstance(raw_slot, Mapping) or "name" not in raw_slot:
                    continue
                link = raw_slot.get("link")
                slots.append(InputSlot(
                    name=str(raw_slot["name"]),
                    link_id=link if isinstance(link, int) and not isinstance(link, bool) else None,
                    data_type=str(raw_slot.get("type", ANY_TYPE)),
                    is_widget=isinstance(raw_slot.get("widget"), Mapping),
                ))

        widgets = raw.get("widgets_values")
        pos = raw.get("pos")
        size = raw.get("size")
        return cls(
            id=node_id,
            type=node_type,
            input_slots=slots,
            widget_values=list(widgets) if isinstance(widgets, list) else [],
            pos=tuple(pos[:2]) if isinstance(pos, list) and len(pos) >= 2 else (0.0, 0.0),
            size=tuple(size[:2]) if isinstance(size, list) and len(size) >= 2 else (300.0, 200.0),
            order=raw.get("order", 0) if isinstance(raw.get("order"), int) else 0,
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "pos": list(self.pos),
            "size": list(self.size),
            "flags": {},
            "order": self.order,
            "mode": 0,
            "inputs": [slot.to_json() for slot in self.input_slots],
            "outputs": [],
            "widgets_values": list(self.widget_values),
            "properties": {"Node name for S&R": self.type},
        }


@dataclass
class EditorGraph:
    """
    The editor format: node list, explicit link list, and id counters.

    last_node_id / last_link_id let a later edit session keep allocating
    unique ids.
    """
    nodes: list[EditorNode] = field(default_factory=list)
    links: list[EditorLink] = field(default_factory=list)
    last_node_id: int = 0
    last_link_id: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EditorGraph:
        raw_nodes = data.get("nodes")
        raw_links = data.get("links")
        nodes = [
            node for node in map(EditorNode.from_json, raw_nodes if isinstance(raw_nodes, list) else [])
            if node is not None
        ]
        links = [
            link for link in map(EditorLink.from_json, raw_links if isinstance(raw_links, list) else [])
            if link is not None
        ]
        return cls(
            nodes=nodes,
            links=links,
            last_node_id=max((n.id for n in nodes), default=0),
            last_link_id=max((l.id for l in links), default=0),
        )

    @classmethod
    def coerce(cls, graph: EditorGraph | Mapping[str, Any]) -> EditorGraph:
        if isinstance(graph, EditorGraph):
            return graph
        return cls.from_dict(graph)

    def to_dict(self) -> dict[str, Any]:
        return {
            "last_node_id": self.last_node_id,
            "last_link_id": self.last_link_id,
            "nodes": [node.to_json() for node in self.nodes],
            "links": [link.to_json() for link in self.links],
            "groups": [],
            "config": {},
            "extra": {},
            "version": 0.4,
        }

    def get_node(self, node_id: int) -> EditorNode | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None
