"""
Core module - Workflow formats, node registry, and response parsing.

This module provides the graph-translation and validation pipeline:
- Workflow: Execution and editor graph value objects
- Node Registry: Node class signatures discovered from the engine
- Converter: Editor <-> execution conversion and JSON extraction
- Workflow Parser: Model response -> validated execution graph
"""

from comfyx_studio.core.results import (
    ConversionResult,
    ErrorKind,
    LoadResult,
    ParseResult,
    ValidationOutcome,
)

from comfyx_studio.core.workflow import (
    EditorGraph,
    EditorLink,
    EditorNode,
    ExecutionGraph,
    ExecutionNode,
    InputSlot,
    InputValue,
    Link,
    Literal,
    to_input_value,
)

from comfyx_studio.core.node_registry import (
    InputSpec,
    NodeClassSignature,
    NodeRegistry,
    OutputSpec,
    Strictness,
)

from comfyx_studio.core.converter import (
    editor_to_execution,
    execution_to_editor,
    extract_embedded_json,
    format_workflow,
    validate_execution_shape,
)

from comfyx_studio.core.workflow_parser import (
    AutoFixTable,
    WorkflowParser,
    auto_fix,
)

from comfyx_studio.core.config import (
    StudioConfig,
    load_config,
    save_config,
)


__all__ = [
    # results.py
    "ConversionResult",
    "ErrorKind",
    "LoadResult",
    "ParseResult",
    "ValidationOutcome",
    # workflow.py
    "EditorGraph",
    "EditorLink",
    "EditorNode",
    "ExecutionGraph",
    "ExecutionNode",
    "InputSlot",
    "InputValue",
    "Link",
    "Literal",
    "to_input_value",
    # node_registry.py
    "InputSpec",
    "NodeClassSignature",
    "NodeRegistry",
    "OutputSpec",
    "Strictness",
    # converter.py
    "editor_to_execution",
    "execution_to_editor",
    "extract_embedded_json",
    "format_workflow",
    "validate_execution_shape",
    # workflow_parser.py
    "AutoFixTable",
    "WorkflowParser",
    "auto_fix",
    # config.py
    "StudioConfig",
    "load_config",
    "save_config",
]
