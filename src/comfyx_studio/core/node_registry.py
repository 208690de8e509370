"""
Node Registry - Schema of the node classes the engine can execute.

This module defines:
- InputSpec / OutputSpec: Typed input and output signatures
- NodeClassSignature: Complete description of one node class
- Strictness: How much of a graph validate() checks beyond class existence
- NodeRegistry: The set of known classes, loaded from the engine's
  /object_info document or from the local cache document

A registry is an explicitly constructed object. Each successful load swaps
in a new immutable snapshot under a lock, so readers never observe a
half-loaded registry and a failed load leaves the last good one in place.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from comfyx_studio.core.results import ErrorKind, LoadResult, ValidationOutcome
from comfyx_studio.core.workflow import ExecutionGraph

logger = logging.getLogger(__name__)


COMBO_TYPE = "COMBO"
DEFAULT_CATEGORY = "uncategorized"


@dataclass(frozen=True)
class InputSpec:
    """
    Definition of an input on a node class.

    Attributes:
        name: Input name, unique within the class
        type: Type token (e.g. "MODEL", "INT"), or "COMBO" for enumerations
        required: False for inputs declared under "optional"
        default_value: Default from the schema metadata, if any
        enum_options: Allowed values for COMBO inputs
    """
    name: str
    type: str
    required: bool = True
    default_value: Any = None
    enum_options: tuple[Any, ...] | None = None


@dataclass(frozen=True)
class OutputSpec:
    """Definition of an output; its position in the class is what links use."""
    name: str
    type: str


@dataclass(frozen=True)
class NodeClassSignature:
    """Complete, immutable description of a node class."""
    class_name: str
    display_name: str
    category: str = DEFAULT_CATEGORY
    description: str = ""
    inputs: tuple[InputSpec, ...] = ()
    outputs: tuple[OutputSpec, ...] = ()
    is_terminal: bool = False

    @property
    def terminal_eligible(self) -> bool:
        """Sink classes, and classes with no outputs, may have no consumers."""
        return self.is_terminal or not self.outputs

    def get_input(self, name: str) -> InputSpec | None:
        for inp in self.inputs:
            if inp.name == name:
                return inp
        return None

    def get_output(self, index: int) -> OutputSpec | None:
        if 0 <= index < len(self.outputs):
            return self.outputs[index]
        return None


class Strictness(Enum):
    """Validation levels for NodeRegistry.validate()."""
    PERMISSIVE = "permissive"  # Class existence only
    LINKS = "links"            # Plus: link sources must exist in the graph
    STRICT = "strict"          # Plus: output index within the source's outputs


# =============================================================================
# Document parsing
# =============================================================================

def _parse_type_descriptor(descriptor: Any) -> tuple[str, tuple[Any, ...] | None, Any]:
    """
    Parse an /object_info input descriptor: [type_or_options, metadata?].

    Returns (type, enum_options, default_value).
    """
    if not isinstance(descriptor, (list, tuple)) or not descriptor:
        return "", None, None

    head = descriptor[0]
    if isinstance(head, str):
        input_type, options = head, None
    elif isinstance(head, (list, tuple)):
        input_type, options = COMBO_TYPE, tuple(head)
    else:
        raise ValueError(f"unsupported input descriptor {head!r}")

    default = None
    if len(descriptor) > 1 and isinstance(descriptor[1], Mapping):
        default = descriptor[1].get("default")
    return input_type, options, default


def _parse_schema_inputs(input_info: Any) -> list[InputSpec]:
    if input_info is None:
        return []
    if not isinstance(input_info, Mapping):
        raise ValueError("'input' must be an object")

    inputs: list[InputSpec] = []
    for section, required in (("required", True), ("optional", False)):
        entries = input_info.get(section)
        if entries is None:
            continue
        if not isinstance(entries, Mapping):
            raise ValueError(f"'input.{section}' must be an object")
        for name, descriptor in entries.items():
            input_type, options, default = _parse_type_descriptor(descriptor)
            inputs.append(InputSpec(
                name=str(name),
                type=input_type,
                required=required,
                default_value=default,
                enum_options=options,
            ))
    return inputs


def _parse_schema_outputs(info: Mapping[str, Any]) -> list[OutputSpec]:
    types = info.get("output")
    if types is None:
        return []
    if not isinstance(types, list):
        raise ValueError("'output' must be a list")

    names = info.get("output_name")
    if not isinstance(names, list):
        names = []

    outputs = []
    for i, output_type in enumerate(types):
        # Combo outputs are reported as option lists
        type_name = output_type if isinstance(output_type, str) else COMBO_TYPE
        name = names[i] if i < len(names) and isinstance(names[i], str) else type_name
        outputs.append(OutputSpec(name=name, type=type_name))
    return outputs


def _parse_cache_inputs(raw_inputs: list[Any]) -> list[InputSpec]:
    inputs = []
    for raw in raw_inputs:
        if not isinstance(raw, Mapping) or "name" not in raw:
            raise ValueError("cached input without a name")
        options = raw.get("options")
        inputs.append(InputSpec(
            name=str(raw["name"]),
            type=str(raw.get("type", "")),
            required=bool(raw.get("required", True)),
            default_value=raw.get("default"),
            enum_options=tuple(options) if isinstance(options, list) else None,
        ))
    return inputs


def _parse_cache_outputs(raw_outputs: Any) -> list[OutputSpec]:
    if not isinstance(raw_outputs, list):
        return []
    outputs = []
    for raw in raw_outputs:
        if not isinstance(raw, Mapping):
            raise ValueError("cached output must be an object")
        output_type = str(raw.get("type", ""))
        outputs.append(OutputSpec(name=str(raw.get("name", output_type)), type=output_type))
    return outputs


def parse_class_entry(class_name: str, info: Any) -> NodeClassSignature | None:
    """
    Parse one class entry from either document shape.

    The engine's /object_info shape uses "input"/"output"/"output_name";
    the cache shape uses flattened "inputs"/"outputs" lists. Returns None
    for entries that cannot be read.
    """
    if not isinstance(info, Mapping) or not class_name:
        return None

    try:
        if isinstance(info.get("inputs"), list):
            inputs = _parse_cache_inputs(info["inputs"])
            outputs = _parse_cache_outputs(info.get("outputs"))
        else:
            inputs = _parse_schema_inputs(info.get("input"))
            outputs = _parse_schema_outputs(info)
    except (TypeError, ValueError) as e:
        logger.debug("Skipping node class %s: %s", class_name, e)
        return None

    display_name = info.get("display_name")
    category = info.get("category")
    description = info.get("description")
    return NodeClassSignature(
        class_name=class_name,
        display_name=display_name if isinstance(display_name, str) and display_name else class_name,
        category=category if isinstance(category, str) and category else DEFAULT_CATEGORY,
        description=description if isinstance(description, str) else "",
        inputs=tuple(inputs),
        outputs=tuple(outputs),
        is_terminal=bool(info.get("output_node", False)),
    )


def signature_to_cache_entry(sig: NodeClassSignature) -> dict[str, Any]:
    """Serialize a signature to the cache document entry shape."""
    inputs = []
    for inp in sig.inputs:
        entry: dict[str, Any] = {"name": inp.name, "type": inp.type, "required": inp.required}
        if inp.default_value is not None:
            entry["default"] = inp.default_value
        if inp.enum_options is not None:
            entry["options"] = list(inp.enum_options)
        inputs.append(entry)

    return {
        "display_name": sig.display_name,
        "category": sig.category,
        "description": sig.description,
        "output_node": sig.is_terminal,
        "inputs": inputs,
        "outputs": [{"name": out.name, "type": out.type} for out in sig.outputs],
    }


# =============================================================================
# Registry
# =============================================================================

class NodeRegistry:
    """
    Registry of the node classes available on the engine.

    Queries against an empty registry report "not found" rather than raising.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._classes: Mapping[str, NodeClassSignature] = MappingProxyType({})
        self._source: str = ""

    # --- Loading ---

    def load_from_source(self, document: Any) -> LoadResult:
        """Replace the registry from an engine /object_info document."""
        return self._load(document, "engine")

    def load_from_cache(self, document: Any) -> LoadResult:
        """Replace the registry from a cache document."""
        return self._load(document, "cache")

    def _load(self, document: Any, source: str) -> LoadResult:
        if document is None:
            return LoadResult.failed(f"No {source} schema document", ErrorKind.NOT_FOUND)
        if not isinstance(document, Mapping) or not document:
            return LoadResult.failed(f"The {source} schema document is empty or not an object")

        try:
            parsed: dict[str, NodeClassSignature] = {}
            for class_name, info in document.items():
                sig = parse_class_entry(str(class_name), info)
                if sig is not None:
                    parsed[sig.class_name] = sig
        except Exception as e:
            logger.warning("Failed to parse %s schema: %s", source, e)
            return LoadResult.failed(f"Could not parse the {source} schema document")

        if not parsed:
            return LoadResult.failed(f"The {source} schema document contains no usable node classes")

        skipped = len(document) - len(parsed)
        with self._lock:
            self._classes = MappingProxyType(parsed)
            self._source = source

        logger.info(
            "Loaded %d node types from %s%s",
            len(parsed), source, f" ({skipped} skipped)" if skipped else "",
        )
        return LoadResult.loaded(len(parsed))

    def to_cache_document(self) -> dict[str, Any]:
        """Serialize the current snapshot in the cache document shape."""
        snapshot = self._classes
        return {name: signature_to_cache_entry(snapshot[name]) for name in sorted(snapshot)}

    # --- Queries ---

    @property
    def source(self) -> str:
        """Where the current snapshot came from ("engine", "cache" or "")."""
        return self._source

    @property
    def is_loaded(self) -> bool:
        return bool(self._classes)

    def lookup(self, class_name: str) -> NodeClassSignature | None:
        """Get a class signature by name."""
        return self._classes.get(class_name)

    def list_classes(self) -> list[str]:
        """All class names, sorted."""
        return sorted(self._classes)

    def list_categories(self) -> list[str]:
        """All distinct categories, sorted."""
        return sorted({sig.category for sig in self._classes.values()})

    def classes_in_category(self, category: str) -> list[str]:
        """Class names in a category, sorted."""
        return sorted(
            name for name, sig in self._classes.items() if sig.category == category
        )

    def search(self, query: str) -> list[NodeClassSignature]:
        """Search classes by class name, display name or category."""
        snapshot = self._classes
        if not query.strip():
            return [snapshot[name] for name in sorted(snapshot)]

        query = query.lower()
        return [
            snapshot[name] for name in sorted(snapshot)
            if query in name.lower()
            or query in snapshot[name].display_name.lower()
            or query in snapshot[name].category.lower()
        ]

    # --- Validation ---

    def validate(
        self,
        graph: ExecutionGraph | Mapping[str, Any],
        strictness: Strictness = Strictness.PERMISSIVE,
    ) -> ValidationOutcome:
        """
        Validate a graph against the known classes.

        Every node's class_type must be non-empty and known. The first
        failing node is reported. Input values are not type-checked.
        """
        if not isinstance(graph, ExecutionGraph):
            for node_id, node_data in graph.items():
                if not isinstance(node_data, Mapping):
                    return ValidationOutcome.failed(f"Node {node_id} is not an object", str(node_id))
            graph = ExecutionGraph.from_dict(graph)

        snapshot = self._classes
        for node_id, node in graph.items():
            if not node.class_type:
                return ValidationOutcome.failed(f"Node {node_id} missing class_type", node_id)
            if node.class_type not in snapshot:
                return ValidationOutcome.failed(
                    f"Unknown node type: {node.class_type}", node_id, ErrorKind.NOT_FOUND
                )

        if strictness is Strictness.PERMISSIVE:
            return ValidationOutcome.passed()

        for node_id, node in graph.items():
            for input_name, link in node.links():
                if link.source_node_id not in graph:
                    return ValidationOutcome.failed(
                        f"Node {node_id} input '{input_name}' references missing node "
                        f"{link.source_node_id}",
                        node_id,
                        ErrorKind.NOT_FOUND,
                    )
                if strictness is not Strictness.STRICT:
                    continue
                source = snapshot[graph[link.source_node_id].class_type]
                if source.get_output(link.output_index) is None:
                    return ValidationOutcome.failed(
                        f"Node {node_id} input '{input_name}' uses output {link.output_index} "
                        f"of {source.class_name}, which has {len(source.outputs)} outputs",
                        node_id,
                    )

        return ValidationOutcome.passed()

    # --- Language model briefing ---

    def summarize(self, max_entries: int = 100) -> str:
        """
        Describe up to max_entries classes for a language model prompt.

        Categories are visited in sorted order and classes alphabetically
        within each; the cap applies across categories.
        """
        snapshot = self._classes
        lines = [f"Available nodes ({len(snapshot)} total):", ""]
        count = 0

        by_category: dict[str, list[NodeClassSignature]] = {}
        for sig in sorted(snapshot.values(), key=lambda s: (s.category, s.class_name)):
            by_category.setdefault(sig.category, []).append(sig)

        for category, signatures in by_category.items():
            if count >= max_entries:
                break
            lines.append(f"## {category}")
            for sig in signatures:
                if count >= max_entries:
                    break
                header = f"- **{sig.class_name}**"
                if sig.description:
                    header += f": {sig.description}"
                lines.append(header)
                lines.append("  Inputs: " + ", ".join(f"{i.name}({i.type})" for i in sig.inputs))
                lines.append("  Outputs: " + ", ".join(o.type for o in sig.outputs))
                count += 1
            lines.append("")

        return "\n".join(lines)

    def __len__(self) -> int:
        return len(self._classes)

    def __contains__(self, class_name: object) -> bool:
        return class_name in self._classes
