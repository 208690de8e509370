"""
UI support.

This package holds the Qt workers that run the core off the UI thread.
"""

from comfyx_studio.ui.workers import (
    RegistryLoadWorker,
    ResponseParseWorker,
    WorkerSignals,
    start_worker,
)

__all__ = [
    "RegistryLoadWorker",
    "ResponseParseWorker",
    "WorkerSignals",
    "start_worker",
]
