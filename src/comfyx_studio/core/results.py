"""
Results - Error taxonomy and result values returned by the core.

Core entry points never raise for expected bad input. They return one of
these frozen result objects instead, carrying a short, display-ready reason
and, where it applies, the offending node id.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorKind(Enum):
    """Categories of expected failure."""
    NOT_FOUND = "not_found"                # Unknown class, missing cache/schema
    MALFORMED_INPUT = "malformed_input"    # Bad JSON, wrong shape, missing field
    AMBIGUOUS_FORMAT = "ambiguous_format"  # Neither execution nor editor shape


@dataclass(frozen=True)
class ValidationOutcome:
    """Outcome of a shape or registry validation."""
    ok: bool
    reason: str = ""
    node_id: str | None = None
    kind: ErrorKind | None = None

    @classmethod
    def passed(cls) -> ValidationOutcome:
        return cls(ok=True)

    @classmethod
    def failed(
        cls,
        reason: str,
        node_id: str | None = None,
        kind: ErrorKind = ErrorKind.MALFORMED_INPUT,
    ) -> ValidationOutcome:
        return cls(ok=False, reason=reason, node_id=node_id, kind=kind)

    def __bool__(self) -> bool:
        return self.ok


@dataclass(frozen=True)
class ParseResult:
    """
    Result of a parse entry point.

    Attributes:
        ok: True if parsing succeeded
        value: Parsed payload (JSON document or ExecutionGraph)
        reason: Human-readable failure reason
        kind: Failure category
        node_count: Number of nodes for accepted workflows
    """
    ok: bool
    value: Any = None
    reason: str = ""
    kind: ErrorKind | None = None
    node_id: str | None = None
    node_count: int = 0

    @classmethod
    def success(cls, value: Any, node_count: int = 0) -> ParseResult:
        return cls(ok=True, value=value, node_count=node_count)

    @classmethod
    def failure(
        cls,
        reason: str,
        kind: ErrorKind = ErrorKind.MALFORMED_INPUT,
        node_id: str | None = None,
    ) -> ParseResult:
        return cls(ok=False, reason=reason, kind=kind, node_id=node_id)

    def __bool__(self) -> bool:
        return self.ok


@dataclass(frozen=True)
class LoadResult:
    """Result of loading a registry from a schema or cache document."""
    ok: bool
    count: int = 0
    reason: str = ""
    kind: ErrorKind | None = None

    @classmethod
    def loaded(cls, count: int) -> LoadResult:
        return cls(ok=True, count=count)

    @classmethod
    def failed(cls, reason: str, kind: ErrorKind = ErrorKind.MALFORMED_INPUT) -> LoadResult:
        return cls(ok=False, reason=reason, kind=kind)

    def __bool__(self) -> bool:
        return self.ok


@dataclass(frozen=True)
class ConversionResult:
    """Result of converting between workflow formats."""
    ok: bool
    value: Any = None
    reason: str = ""
    node_id: str | None = None
    kind: ErrorKind | None = None

    @classmethod
    def success(cls, value: Any) -> ConversionResult:
        return cls(ok=True, value=value)

    @classmethod
    def failure(
        cls,
        reason: str,
        node_id: str | None = None,
        kind: ErrorKind = ErrorKind.MALFORMED_INPUT,
    ) -> ConversionResult:
        return cls(ok=False, reason=reason, node_id=node_id, kind=kind)

    def __bool__(self) -> bool:
        return self.ok
