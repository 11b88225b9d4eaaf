"""
Error taxonomy for the reconciliation layer.

Every error raised by the codecs, resolvers and orchestrator derives from
:class:`ReconcileError` so callers can tell reconciliation failures apart
from transport errors (``requests.RequestException``) and programming bugs.

Retry classification is type based: only :class:`TransientConsistency`
(and its subclasses :class:`NotFoundError` and :class:`ReferenceNotVisible`)
is retried.
"""
from __future__ import annotations

from typing import Any, List, Optional, Sequence


class ReconcileError(Exception):
    """Base class for all reconciliation errors."""
    pass


class InvalidConfiguration(ReconcileError):
    """Declared attributes violate one or more invariants.

    Attributes:
        violations: Every violated invariant, each prefixed with the
            attribute path it concerns (e.g. ``interfaces[0].ip``).
    """

    def __init__(self, violations: Sequence[str] | str) -> None:
        if isinstance(violations, str):
            violations = [violations]
        self.violations: List[str] = list(violations)
        super().__init__("; ".join(self.violations))


class UnknownToken(InvalidConfiguration):
    """A declared token is not part of an enum table."""

    def __init__(self, mapping: str, token: Any, *, path: Optional[str] = None) -> None:
        self.mapping = mapping
        self.token = token
        prefix = f"{path}: " if path else ""
        super().__init__(f"{prefix}unknown {mapping} token {token!r}")


class UnknownCode(ReconcileError):
    """A code returned by the remote API is not part of an enum table."""

    def __init__(self, mapping: str, code: Any) -> None:
        self.mapping = mapping
        self.code = code
        super().__init__(f"unknown {mapping} code {code!r}")


class AmbiguousParentage(ReconcileError):
    """A child object does not resolve to exactly one child with one parent."""

    def __init__(self, child_kind: str, child_id: str, *, found_children: int, found_parents: int = 0) -> None:
        self.child_kind = child_kind
        self.child_id = child_id
        self.found_children = found_children
        self.found_parents = found_parents
        if found_children != 1:
            msg = f"expected one {child_kind} with id {child_id}, got {found_children}"
        else:
            msg = f"expected one parent for {child_kind} {child_id}, got {found_parents}"
        super().__init__(msg)


class ReferenceNotFound(ReconcileError):
    """An expression reference could not be resolved."""

    def __init__(self, reference: str, reason: str) -> None:
        self.reference = reference
        self.reason = reason
        super().__init__(f"{reference}: {reason}")


class TransientConsistency(ReconcileError):
    """Remote state is not (yet) consistent with a just-issued mutation."""
    pass


class NotFoundError(TransientConsistency):
    """A lookup by id returned no object.

    Raised by the client instead of matching the remote error wording.
    """

    def __init__(self, kind: str, object_id: str, *, found: int = 0) -> None:
        self.kind = kind
        self.object_id = object_id
        self.found = found
        super().__init__(f"expected exactly one {kind} with id {object_id}, got {found}")


class RetryExhausted(ReconcileError):
    """All attempts failed with transient errors."""

    def __init__(self, last_error: BaseException, attempts: int) -> None:
        self.last_error = last_error
        self.attempts = attempts
        super().__init__(f"gave up after {attempts} attempt(s): {last_error}")


class Cancelled(ReconcileError):
    """The caller cancelled the operation or its deadline expired."""
    pass


class PartialFieldErrors(ReconcileError):
    """Aggregated non-fatal field errors from a single Read/Update pass."""

    def __init__(self, errors: Sequence[BaseException], attributes: Sequence[Optional[str]] = ()) -> None:
        self.errors = list(errors)
        self.attributes = list(attributes)
        parts = []
        for i, err in enumerate(self.errors):
            attr = self.attributes[i] if i < len(self.attributes) else None
            parts.append(f"{attr}: {err}" if attr else str(err))
        super().__init__(f"{len(self.errors)} field error(s): " + "; ".join(parts))


class IndeterminateState(ReconcileError):
    """A mutation succeeded but the follow-up read failed.

    The remote object may or may not match what was requested; the caller
    must not record it as created/updated.
    """

    def __init__(self, ref: Any, cause: BaseException) -> None:
        self.ref = ref
        self.cause = cause
        super().__init__(f"{ref}: mutation applied but read-back failed: {cause}")


class ApiError(ReconcileError):
    """The JSON-RPC endpoint returned an ``error`` member."""

    def __init__(self, code: Any, message: str, data: Any = None, *, method: str = "") -> None:
        self.code = code
        self.message = message
        self.data = data
        self.method = method
        detail = f" {data}" if data else ""
        where = f"{method}: " if method else ""
        super().__init__(f"{where}[{code}] {message}{detail}")


class ReferenceNotVisible(TransientConsistency, ApiError):
    """The API rejected a mutation because a referred object is not visible.

    Zabbix reports a parent created moments ago, and one that really does
    not exist, with the same error. It is retried as transient; once the
    attempts run out the caller sees the API error text.
    """
    pass
