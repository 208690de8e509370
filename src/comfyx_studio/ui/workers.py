"""
Background workers - Keep the UI responsive while loading or parsing.

Each worker is a QRunnable for QThreadPool; results come back to the UI
thread through the signals object.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from PySide6.QtCore import QObject, QRunnable, QThreadPool, Signal

from comfyx_studio.core.node_registry import NodeRegistry
from comfyx_studio.core.workflow_parser import WorkflowParser
from comfyx_studio.engine.client import EngineClient
from comfyx_studio.engine.registry_loader import load_registry

logger = logging.getLogger(__name__)


class WorkerSignals(QObject):
    """Signals emitted by the background workers."""
    finished = Signal(object)  # LoadResult or ParseResult
    error = Signal(str)


class RegistryLoadWorker(QRunnable):
    """Fetch the node schema (engine first, then cache) off the UI thread."""

    def __init__(self, registry: NodeRegistry, client: EngineClient | None, cache_path: Path):
        super().__init__()
        self.registry = registry
        self.client = client
        self.cache_path = cache_path
        self.signals = WorkerSignals()

    def run(self) -> None:
        try:
            result = asyncio.run(load_registry(self.registry, self.client, self.cache_path))
        except Exception as e:
            logger.exception("Registry load failed")
            self.signals.error.emit(str(e))
            return
        self.signals.finished.emit(result)


class ResponseParseWorker(QRunnable):
    """Run the workflow parser on a model response off the UI thread."""

    def __init__(self, parser: WorkflowParser, response: str):
        super().__init__()
        self.parser = parser
        self.response = response
        self.signals = WorkerSignals()

    def run(self) -> None:
        try:
            result = self.parser.parse(self.response)
        except Exception as e:
            logger.exception("Response parsing failed")
            self.signals.error.emit(str(e))
            return
        self.signals.finished.emit(result)


def start_worker(worker: QRunnable, pool: QThreadPool | None = None) -> None:
    """Queue a worker on the given pool (the global pool by default)."""
    (pool or QThreadPool.globalInstance()).start(worker)
