import pytest

from zabbix_reconciler.core.context import CallContext
from zabbix_reconciler.core.errors import ApiError, Cancelled, NotFoundError, RetryExhausted
from zabbix_reconciler.utils.resolvers import ParentageRecord
from zabbix_reconciler.utils.retry import RetryPolicy, delete_retry, perform_retry


class _Flaky:
    def __init__(self, failures, result="42", exc=None):
        self.failures = failures
        self.result = result
        self.exc = exc or NotFoundError("item", "42")
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.exc
        return self.result


def test_transient_failures_are_retried():
    op = _Flaky(2)
    assert perform_retry(op, 3, delay_sec=0) == "42"
    assert op.calls == 3


def test_gives_up_after_max_attempts():
    op = _Flaky(5)
    with pytest.raises(RetryExhausted) as ei:
        perform_retry(op, 2, delay_sec=0)
    assert op.calls == 2
    assert ei.value.attempts == 2
    assert isinstance(ei.value.last_error, NotFoundError)


def test_other_errors_propagate_immediately():
    op = _Flaky(1, exc=ApiError(-32602, "Invalid params."))
    with pytest.raises(ApiError):
        perform_retry(op, 5, delay_sec=0)
    assert op.calls == 1


def test_cancelled_before_first_attempt():
    ctx = CallContext()
    ctx.cancel()
    op = _Flaky(0)
    with pytest.raises(Cancelled):
        perform_retry(op, 3, ctx=ctx)
    assert op.calls == 0


def test_cancel_interrupts_the_wait():
    ctx = CallContext()

    def op():
        ctx.cancel()
        raise NotFoundError("item", "1")

    # a 60s delay would hang the test if the wait ignored the cancel
    with pytest.raises(Cancelled):
        perform_retry(op, 3, ctx=ctx, delay_sec=60)


def test_expired_deadline():
    with pytest.raises(Cancelled):
        perform_retry(_Flaky(0), 3, ctx=CallContext.with_timeout(0))


def test_invalid_attempts():
    with pytest.raises(ValueError):
        perform_retry(_Flaky(0), 0)


def test_backoff():
    policy = RetryPolicy(max_attempts=4, delay_sec=1.0, backoff=2.0)
    assert [policy.delay_for(n) for n in (1, 2, 3)] == [1.0, 2.0, 4.0]


def test_delete_resolves_parent_once():
    resolved = []
    deleted = []

    def resolve(oid):
        resolved.append(oid)
        return ParentageRecord("item", oid, "10084", "web01")

    def remote_delete(oid, parent):
        deleted.append((oid, parent.parent_id))
        if len(deleted) == 1:
            raise NotFoundError("item", oid)

    parent = delete_retry("900", resolve, remote_delete, max_attempts=3, delay_sec=0)
    assert parent.parent_id == "10084"
    assert resolved == ["900"]
    assert deleted == [("900", "10084"), ("900", "10084")]


def test_delete_without_parent():
    calls = []
    assert delete_retry("7", None, lambda oid, parent: calls.append(parent), max_attempts=1) is None
    assert calls == [None]
