"""
Workflow Converter - Translate between the editor and execution formats.

Provides:
- editor_to_execution(): Resolve editor links into [node_id, output] inputs
- execution_to_editor(): Synthesize nodes, slots, links and a grid layout
- validate_execution_shape(): Structural check of an execution document
- extract_embedded_json(): Find a JSON object inside free text
- format_workflow(): Indented JSON for display and export

Output indices are passed through unchecked; NodeRegistry.validate() with
Strictness.STRICT is where they are compared to the source class.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Mapping

from comfyx_studio.core.results import ConversionResult, ErrorKind, ParseResult, ValidationOutcome
from comfyx_studio.core.workflow import (
    ANY_TYPE,
    EditorGraph,
    EditorLink,
    EditorNode,
    ExecutionGraph,
    ExecutionNode,
    InputSlot,
    InputValue,
    Link,
    Literal,
)

logger = logging.getLogger(__name__)


# Grid layout for synthesized editor graphs
LAYOUT_ORIGIN = (100.0, 100.0)
LAYOUT_SPACING = (350.0, 250.0)
NODE_SIZE = (300.0, 200.0)
DEFAULT_ROW_WIDTH = 4

# ```json ... ``` or ``` ... ```; the language tag is optional
_CODE_BLOCK_RE = re.compile(r"```[A-Za-z0-9_+-]*[ \t]*\n?(.*?)```", re.DOTALL)

_MISSING = object()


def editor_to_execution(editor: EditorGraph | Mapping[str, Any]) -> ExecutionGraph:
    """
    Convert an editor graph to the execution format.

    Linked input slots become Links to the link's origin; unlinked slots
    take the next widget value in order. A node without declared input
    slots falls back to param_<index> names for its widget values. Nodes
    without an id or type are skipped.
    """
    editor = EditorGraph.coerce(editor)
    link_map = {link.id: (link.origin_node_id, link.origin_slot_index) for link in editor.links}

    nodes: dict[str, ExecutionNode] = {}
    for node in editor.nodes:
        inputs: dict[str, InputValue] = {}

        if node.input_slots:
            widgets = iter(node.widget_values)
            for slot in node.input_slots:
                if slot.link_id is not None:
                    origin = link_map.get(slot.link_id)
                    if origin is not None and origin[0] >= 0 and origin[1] >= 0:
                        inputs[slot.name] = Link(str(origin[0]), origin[1])
                        continue
                    # Dangling link id or negative origin: the slot is treated as a widget input
                value = next(widgets, _MISSING)
                if value is not _MISSING:
                    inputs[slot.name] = Literal(value)
        else:
            for i, value in enumerate(node.widget_values):
                inputs[f"param_{i}"] = Literal(value)

        nodes[str(node.id)] = ExecutionNode(class_type=node.type, inputs=inputs)

    return ExecutionGraph(nodes)


def execution_to_editor(
    graph: ExecutionGraph | Mapping[str, Any],
    row_width: int = DEFAULT_ROW_WIDTH,
) -> ConversionResult:
    """
    Convert an execution graph to the editor format.

    Nodes are placed left to right on a grid of row_width columns in their
    stored order. Every Link becomes an EditorLink with a new id and a
    linked input slot; literals become widget values behind unlinked
    widget slots. Node ids and link sources must be plain decimal
    integers ("7", not "07" or "-7"); any other id fails the conversion.
    """
    graph = ExecutionGraph.coerce(graph)
    row_width = max(1, row_width)

    numeric_ids: dict[str, int] = {}
    for node_id in graph:
        numeric_id = _canonical_id(node_id)
        if numeric_id is None:
            return ConversionResult.failure(
                f"Node id '{node_id}' is not a non-negative integer", node_id, ErrorKind.MALFORMED_INPUT
            )
        if numeric_id in numeric_ids.values():
            return ConversionResult.failure(
                f"Node id '{node_id}' is used more than once", node_id, ErrorKind.MALFORMED_INPUT
            )
        numeric_ids[node_id] = numeric_id

    for node_id, node in graph.items():
        for input_name, link in node.links():
            if _canonical_id(link.source_node_id) is None:
                return ConversionResult.failure(
                    f"Node {node_id} input '{input_name}' references non-integer node id "
                    f"'{link.source_node_id}'",
                    node_id,
                )

    nodes: list[EditorNode] = []
    links: list[EditorLink] = []
    next_link_id = 1

    for position, (node_id, node) in enumerate(graph.items()):
        row, column = divmod(position, row_width)
        slots: list[InputSlot] = []
        widgets: list[Any] = []

        for input_name, value in node.inputs.items():
            if isinstance(value, Link):
                links.append(EditorLink(
                    id=next_link_id,
                    origin_node_id=int(value.source_node_id),
                    origin_slot_index=value.output_index,
                    target_node_id=numeric_ids[node_id],
                    target_slot_index=len(slots),
                    data_type=ANY_TYPE,
                ))
                slots.append(InputSlot(name=input_name, link_id=next_link_id))
                next_link_id += 1
            else:
                # Unlinked slot keeps the name that the widget value maps back to
                widgets.append(value.value)
                slots.append(InputSlot(name=input_name, is_widget=True))

        nodes.append(EditorNode(
            id=numeric_ids[node_id],
            type=node.class_type,
            input_slots=slots,
            widget_values=widgets,
            pos=(
                LAYOUT_ORIGIN[0] + column * LAYOUT_SPACING[0],
                LAYOUT_ORIGIN[1] + row * LAYOUT_SPACING[1],
            ),
            size=NODE_SIZE,
            order=position,
        ))

    return ConversionResult.success(EditorGraph(
        nodes=nodes,
        links=links,
        last_node_id=max(numeric_ids.values(), default=0),
        last_link_id=next_link_id - 1,
    ))


def _canonical_id(node_id: str) -> int | None:
    """Integer value of a plain decimal id like "12"; None for "01", "-3", " 1" etc."""
    if not node_id.isdecimal() or str(int(node_id)) != node_id:
        return None
    return int(node_id)


def validate_execution_shape(workflow: Any) -> ValidationOutcome:
    """
    Structural check: a non-empty object whose entries all declare a
    non-empty string class_type and an inputs object (null is allowed,
    auto_fix fills it in). Does not consult the node registry.
    """
    if isinstance(workflow, ExecutionGraph):
        workflow = workflow.to_dict()
    if not isinstance(workflow, Mapping) or not workflow:
        return ValidationOutcome.failed("Workflow must be a non-empty JSON object")

    for node_id, node_data in workflow.items():
        if not isinstance(node_data, Mapping):
            return ValidationOutcome.failed(f"Node {node_id} is not an object", str(node_id))
        if "class_type" not in node_data:
            return ValidationOutcome.failed(f"Node {node_id} missing 'class_type'", str(node_id))
        class_type = node_data["class_type"]
        if not isinstance(class_type, str) or not class_type:
            return ValidationOutcome.failed(
                f"Node {node_id} has an invalid 'class_type': {class_type!r}", str(node_id)
            )
        if "inputs" not in node_data:
            return ValidationOutcome.failed(f"Node {node_id} missing 'inputs'", str(node_id))
        inputs = node_data["inputs"]
        if inputs is not None and not isinstance(inputs, Mapping):
            return ValidationOutcome.failed(f"Node {node_id} 'inputs' is not an object", str(node_id))

    return ValidationOutcome.passed()


def _try_parse(candidate: str) -> tuple[bool, Any]:
    try:
        return True, json.loads(candidate)
    except (json.JSONDecodeError, RecursionError):
        return False, None


def _scan_balanced_object(text: str) -> str | None:
    """
    Return the text from the first '{' to where brace depth returns to
    zero, or None if it never does. Braces inside string literals are
    ignored.
    """
    start = text.find("{")
    if start < 0:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        c = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif c == "\\":
                escaped = True
            elif c == '"':
                in_string = False
            continue
        if c == '"':
            in_string = True
        elif c == "{":
            depth += 1
        elif c == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return None


def extract_embedded_json(text: str) -> ParseResult:
    """
    Extract a JSON payload from free text such as a model response.

    The first fenced code block is tried first. Failing that, the first
    brace-balanced region starting at the first '{' is tried; no further
    regions are searched. Never raises.
    """
    if not isinstance(text, str) or not text.strip():
        return ParseResult.failure("No text to search for JSON", ErrorKind.NOT_FOUND)

    match = _CODE_BLOCK_RE.search(text)
    if match:
        ok, value = _try_parse(match.group(1).strip())
        if ok:
            logger.debug("Extracted JSON from fenced code block")
            return ParseResult.success(value)

    candidate = _scan_balanced_object(text)
    if candidate is not None:
        ok, value = _try_parse(candidate)
        if ok:
            logger.debug("Extracted JSON from raw object in text")
            return ParseResult.success(value)
        return ParseResult.failure("Found a JSON-like object but it is not valid JSON")

    return ParseResult.failure("No JSON found", ErrorKind.NOT_FOUND)


def format_workflow(workflow: ExecutionGraph | EditorGraph | Mapping[str, Any]) -> str:
    """Pretty-print a workflow as indented JSON."""
    if isinstance(workflow, (ExecutionGraph, EditorGraph)):
        workflow = workflow.to_dict()
    return json.dumps(workflow, indent=2, ensure_ascii=False)
