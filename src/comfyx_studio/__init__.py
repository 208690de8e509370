"""
ComfyX Studio - Prompt-driven workflow building for ComfyUI.

The core turns language model output into engine-executable workflow
graphs and validates them against the engine's node schema.
"""

__version__ = "0.1.0"
