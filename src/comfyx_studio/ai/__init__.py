"""Language model briefing helpers."""

from comfyx_studio.ai.prompt_builder import build_workflow_prompt, load_system_prompt

__all__ = [
    "build_workflow_prompt",
    "load_system_prompt",
]
