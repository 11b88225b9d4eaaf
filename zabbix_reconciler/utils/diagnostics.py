"""
Diagnostics aggregation for Read/Update passes.

A :class:`DiagnosticBatch` collects the outcome of many independent field
operations. It never stops early: every field producer runs, failures are
recorded with the attribute they belong to, and the caller gets one report.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional

from ..core.errors import Cancelled, PartialFieldErrors, ReconcileError
from ..core.logging_utils import get_logger

log = get_logger(__name__)

# Errors a field producer may raise on malformed remote data.
FIELD_ERRORS = (ReconcileError, ValueError, TypeError, KeyError)


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class Diagnostic:
    """One reportable issue.

    Attributes:
        severity: ``error`` or ``warning``.
        summary: Human-readable message.
        attribute: Declarative attribute the issue belongs to, if any.
        error: The original exception for error diagnostics.
    """
    severity: Severity
    summary: str
    attribute: Optional[str] = None
    error: Optional[BaseException] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "severity": self.severity.value,
            "summary": self.summary,
            "attribute": self.attribute,
        }


class DiagnosticBatch:
    """Ordered, append-only collection of diagnostics."""

    def __init__(self) -> None:
        self._items: List[Diagnostic] = []

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __repr__(self) -> str:
        return f"DiagnosticBatch({self._items!r})"

    # ----- collection ----------------------------------------------------
    def add_error(self, err: Optional[BaseException], attribute: Optional[str] = None) -> None:
        """Record ``err`` as an Error diagnostic; ``None`` is ignored."""
        if err is None:
            return
        self._items.append(Diagnostic(Severity.ERROR, str(err), attribute, err))

    def add_warning(self, summary: str, attribute: Optional[str] = None) -> None:
        self._items.append(Diagnostic(Severity.WARNING, summary, attribute))

    def extend(self, other: "DiagnosticBatch") -> None:
        self._items.extend(other)

    def set_field(self, target: Dict[str, Any], name: str, producer: Callable[[], Any]) -> bool:
        """Run ``producer`` and store its value under ``target[name]``.

        A failing producer is recorded as an error attributed to ``name`` and
        the field is left unset; a cancellation propagates. Returns True on
        success.
        """
        try:
            target[name] = producer()
        except Cancelled:
            raise
        except FIELD_ERRORS as exc:
            log.debug("Field %s could not be set: %s", name, exc)
            self.add_error(exc, attribute=name)
            return False
        return True

    # ----- queries -------------------------------------------------------
    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self._items if d.severity is Severity.ERROR]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self._items if d.severity is Severity.WARNING]

    @property
    def has_errors(self) -> bool:
        return any(d.severity is Severity.ERROR for d in self._items)

    def as_list(self) -> List[Dict[str, Any]]:
        return [d.as_dict() for d in self._items]

    def raise_for_errors(self) -> None:
        """Raise :class:`PartialFieldErrors` if any error was collected."""
        errs = self.errors
        if errs:
            raise PartialFieldErrors(
                [d.error or ReconcileError(d.summary) for d in errs],
                [d.attribute for d in errs],
            )
