"""
Workflow Parser - Turn a language model response into an executable graph.

The pipeline for one response:
1. Extract the embedded JSON payload
2. Sniff the format (execution or editor); convert editor graphs
3. Check the execution shape
4. Auto-fix known model mistakes
5. Accept with the fixed graph

Registry validation is a separate, optional step because the registry may
not be loaded yet when a response arrives.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Mapping

from comfyx_studio.core.converter import (
    editor_to_execution,
    extract_embedded_json,
    validate_execution_shape,
)
from comfyx_studio.core.node_registry import NodeRegistry, Strictness
from comfyx_studio.core.results import ErrorKind, ParseResult, ValidationOutcome
from comfyx_studio.core.workflow import ExecutionGraph, node_id_to_str

if TYPE_CHECKING:
    from comfyx_studio.core.config import StudioConfig

logger = logging.getLogger(__name__)


# Class names models commonly get wrong -> the engine's class name
DEFAULT_CLASS_ALIASES: dict[str, str] = {
    "CheckpointLoader": "CheckpointLoaderSimple",
    "TextEncode": "CLIPTextEncode",
    "CLIPEncode": "CLIPTextEncode",
}


@dataclass(frozen=True)
class AutoFixTable:
    """
    Class-name corrections applied by auto_fix().

    Aliases are followed to their final target, so chained entries
    (A -> B, B -> C) still give a fixed point after one pass.
    """
    class_aliases: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType(dict(DEFAULT_CLASS_ALIASES))
    )

    @classmethod
    def with_overrides(cls, overrides: Mapping[str, str] | None) -> AutoFixTable:
        """Default table extended (or overridden) by the given aliases."""
        merged = dict(DEFAULT_CLASS_ALIASES)
        merged.update(overrides or {})
        return cls(MappingProxyType(merged))

    def resolve(self, class_type: str) -> str:
        seen = {class_type}
        current = class_type
        while current in self.class_aliases:
            current = self.class_aliases[current]
            if current in seen:
                # Cyclic aliases are left alone
                return class_type
            seen.add(current)
        return current


DEFAULT_FIX_TABLE = AutoFixTable()


def _fix_input_value(value: Any) -> Any:
    # [1, 0] -> ["1", 0]; node references must be strings
    if isinstance(value, list) and len(value) == 2:
        source = value[0]
        if isinstance(source, (int, float)) and not isinstance(source, bool):
            return [node_id_to_str(source), value[1]]
    return value


def auto_fix(
    workflow: ExecutionGraph | Mapping[str, Any],
    table: AutoFixTable = DEFAULT_FIX_TABLE,
) -> Any:
    """
    Repair common model mistakes in an execution workflow.

    Pure and idempotent: returns a new workflow of the same kind with
    missing inputs initialized, aliased class names corrected and numeric
    node references turned into strings. Entries it cannot interpret are
    copied through unchanged.
    """
    if isinstance(workflow, ExecutionGraph):
        return ExecutionGraph.from_dict(auto_fix(workflow.to_dict(), table))

    fixed: dict[str, Any] = {}
    for node_id, node_data in workflow.items():
        if not isinstance(node_data, Mapping):
            fixed[node_id] = copy.deepcopy(node_data)
            continue

        node = copy.deepcopy(dict(node_data))
        if "inputs" not in node or node["inputs"] is None:
            node["inputs"] = {}

        class_type = node.get("class_type")
        if isinstance(class_type, str):
            node["class_type"] = table.resolve(class_type)

        if isinstance(node["inputs"], Mapping):
            node["inputs"] = {
                name: _fix_input_value(value) for name, value in node["inputs"].items()
            }

        fixed[node_id] = node
    return fixed


def is_execution_format(document: Any) -> bool:
    """True if every top-level entry is an object with a class_type."""
    return (
        isinstance(document, Mapping)
        and bool(document)
        and all(isinstance(v, Mapping) and "class_type" in v for v in document.values())
    )


def is_editor_format(document: Any) -> bool:
    return isinstance(document, Mapping) and "nodes" in document


class WorkflowParser:
    """
    Builds validated execution graphs from model responses.

    Args:
        registry: Registry used by validate_against_registry(), if any
        fix_table: Class-name corrections for auto_fix()
        strictness: Level used by validate_against_registry()
    """

    def __init__(
        self,
        registry: NodeRegistry | None = None,
        fix_table: AutoFixTable = DEFAULT_FIX_TABLE,
        strictness: Strictness = Strictness.PERMISSIVE,
    ):
        self.registry = registry
        self.fix_table = fix_table
        self.strictness = strictness

    @classmethod
    def from_config(cls, config: StudioConfig, registry: NodeRegistry | None = None) -> WorkflowParser:
        """Create a parser using the aliases and strictness from settings."""
        return cls(
            registry=registry,
            fix_table=AutoFixTable.with_overrides(config.class_aliases),
            strictness=config.strictness,
        )

    def parse(self, response: str) -> ParseResult:
        """
        Parse a model response.

        Returns:
            ParseResult whose value is the fixed ExecutionGraph on success,
            or a failure with a display-ready reason.
        """
        extracted = extract_embedded_json(response)
        document = extracted.value if extracted.ok else None
        if not document:
            return self._reject("No JSON found in the response", ErrorKind.NOT_FOUND)

        if is_execution_format(document):
            workflow = document
        elif is_editor_format(document):
            logger.debug("Response contains an editor-format graph; converting")
            workflow = editor_to_execution(document).to_dict()
        else:
            return self._reject("JSON is not a recognized workflow shape", ErrorKind.AMBIGUOUS_FORMAT)

        shape = validate_execution_shape(workflow)
        if not shape.ok:
            return self._reject(shape.reason, ErrorKind.MALFORMED_INPUT, shape.node_id)

        graph = ExecutionGraph.from_dict(self.auto_fix(workflow))
        logger.info("Accepted workflow with %d nodes", len(graph))
        return ParseResult.success(graph, node_count=len(graph))

    def auto_fix(self, workflow: ExecutionGraph | Mapping[str, Any]) -> Any:
        return auto_fix(workflow, self.fix_table)

    def validate_against_registry(
        self, graph: ExecutionGraph | Mapping[str, Any]
    ) -> ValidationOutcome:
        """Stricter follow-up check against the node registry."""
        if self.registry is None or not self.registry.is_loaded:
            return ValidationOutcome.failed("Node registry is not loaded", kind=ErrorKind.NOT_FOUND)
        return self.registry.validate(graph, self.strictness)

    def _reject(self, reason: str, kind: ErrorKind, node_id: str | None = None) -> ParseResult:
        logger.warning("Rejected model response: %s", reason)
        return ParseResult.failure(reason, kind, node_id)
