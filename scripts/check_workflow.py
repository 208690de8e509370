#!/usr/bin/env python3
"""
Quick script to check a saved model response against the engine.

Usage:
    # Parse a response and validate it against the live (or cached) schema:
    python scripts/check_workflow.py response.txt

    # Also write the editor-format graph next to it:
    python scripts/check_workflow.py response.txt --editor out.workflow.json
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


def main() -> int:
    from comfyx_studio.core import NodeRegistry, WorkflowParser, execution_to_editor, format_workflow, load_config
    from comfyx_studio.core.registry_cache import get_cache_path
    from comfyx_studio.engine import EngineClient, load_registry

    parser = argparse.ArgumentParser(description="Check a model response for a valid workflow")
    parser.add_argument("response", type=Path, help="File containing the raw model response")
    parser.add_argument("--editor", type=Path, help="Write the editor-format graph here")
    parser.add_argument("--offline", action="store_true", help="Use the cached schema only")
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    config = load_config()
    registry = NodeRegistry()
    client = None if args.offline else EngineClient.from_config(config)
    loaded = asyncio.run(load_registry(registry, client, get_cache_path(config.cache_dir)))
    if not loaded.ok:
        print(f"Warning: {loaded.reason}; skipping registry validation")

    workflow_parser = WorkflowParser.from_config(config, registry)
    result = workflow_parser.parse(args.response.read_text(encoding="utf-8"))
    if not result.ok:
        print(f"✗ Rejected: {result.reason}")
        return 1

    print(f"✓ Parsed {result.node_count} nodes")
    print(format_workflow(result.value))

    if registry.is_loaded:
        outcome = workflow_parser.validate_against_registry(result.value)
        if not outcome.ok:
            print(f"✗ Registry check failed: {outcome.reason}")
            return 1
        print(f"✓ All node types known to the engine ({registry.source})")

    if args.editor:
        converted = execution_to_editor(result.value, row_width=config.layout_row_width)
        if not converted.ok:
            print(f"✗ Cannot convert to editor format: {converted.reason}")
            return 1
        args.editor.write_text(format_workflow(converted.value), encoding="utf-8")
        print(f"Editor graph written to {args.editor}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
