"""
Bounded retry for mutating calls.

Zabbix is eventually consistent towards a just-created object: a follow-up
lookup can briefly report "no such object", and a mutation that refers to
it can be rejected. Those failures surface as :class:`TransientConsistency`
(the client raises :class:`NotFoundError` or :class:`ReferenceNotVisible`)
and are the only ones retried here. Any other error propagates on the
first occurrence.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from ..core.context import CallContext, background
from ..core.errors import RetryExhausted, TransientConsistency
from ..core.logging_utils import get_logger
from .resolvers import ParentageRecord

log = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """How often and how patiently to retry.

    Attributes:
        max_attempts: Total attempts including the first one.
        delay_sec: Sleep before the second attempt.
        backoff: Multiplier applied to the delay after each failed attempt.
    """
    max_attempts: int = 5
    delay_sec: float = 1.0
    backoff: float = 2.0

    def delay_for(self, attempt: int) -> float:
        """Delay to sleep after failed ``attempt`` (1-based)."""
        return self.delay_sec * (self.backoff ** (attempt - 1))

    @staticmethod
    def is_retryable(exc: BaseException) -> bool:
        return isinstance(exc, TransientConsistency)


def perform_retry(
    operation: Callable[[], T],
    max_attempts: int,
    *,
    ctx: Optional[CallContext] = None,
    delay_sec: float = 1.0,
    backoff: float = 2.0,
    what: str = "operation",
) -> T:
    """Run ``operation`` until it succeeds or attempts run out.

    Args:
        operation: Zero-argument callable performing one remote mutation.
        max_attempts: Upper bound on calls to ``operation`` (>= 1).
        ctx: Cancellation context, checked before every attempt and while
            sleeping between attempts.
        delay_sec: First delay; multiplied by ``backoff`` each time.
        what: Label for log messages.

    Returns:
        Whatever ``operation`` returns (usually the object id).

    Raises:
        RetryExhausted: After ``max_attempts`` transient failures.
        Cancelled: If ``ctx`` is cancelled or expires between attempts.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")
    policy = RetryPolicy(max_attempts=max_attempts, delay_sec=delay_sec, backoff=backoff)
    ctx = ctx or background()

    last_exc: Optional[BaseException] = None
    for attempt in range(1, policy.max_attempts + 1):
        ctx.check(what)
        try:
            return operation()
        except TransientConsistency as exc:
            last_exc = exc
            if attempt >= policy.max_attempts:
                break
            delay = policy.delay_for(attempt)
            log.warning(
                "%s: transient failure on attempt %d/%d (%s); retrying in %.2fs",
                what, attempt, policy.max_attempts, exc, delay,
            )
            ctx.wait(delay)

    log.error("%s: giving up after %d attempt(s): %s", what, policy.max_attempts, last_exc)
    raise RetryExhausted(last_exc, policy.max_attempts)


def delete_retry(
    object_id: str,
    resolve_parent: Optional[Callable[[str], ParentageRecord]],
    remote_delete: Callable[[str, Optional[ParentageRecord]], object],
    *,
    max_attempts: int,
    ctx: Optional[CallContext] = None,
    delay_sec: float = 1.0,
    backoff: float = 2.0,
    what: str = "delete",
) -> Optional[ParentageRecord]:
    """Resolve the owning parent (when needed) then delete with retries.

    Parent resolution runs once and is never retried: an ambiguous parent is
    a data problem, not a transient one.

    Returns:
        The resolved :class:`ParentageRecord`, or ``None`` for kinds without one.
    """
    parent = resolve_parent(object_id) if resolve_parent is not None else None
    if parent is not None:
        log.debug("%s: %s %s is owned by %s", what, parent.child_kind, object_id, parent.parent_id)
    perform_retry(
        lambda: remote_delete(object_id, parent),
        max_attempts,
        ctx=ctx,
        delay_sec=delay_sec,
        backoff=backoff,
        what=what,
    )
    return parent
