import copy
import logging
from collections import defaultdict, deque

import pytest

from zabbix_reconciler.core.config import ReconcileOptions
from zabbix_reconciler.core.zabbix_client import ApiMethods


class FakeApi(ApiMethods):
    """Scripted JSON-RPC endpoint.

    ``on(method, result)`` sets a standing answer; ``queue(method, *results)``
    answers the next calls in order before falling back to ``on``. A result
    may be a callable (called with the params) or an exception instance
    (raised).
    """

    def __init__(self):
        self.calls = []
        self._standing = {}
        self._queued = defaultdict(deque)

    def on(self, method, result):
        self._standing[method] = result
        return self

    def queue(self, method, *results):
        self._queued[method].extend(results)
        return self

    def call(self, method, params, *, ctx=None):
        if ctx is not None:
            ctx.check(method)
        self.calls.append((method, copy.deepcopy(params)))
        if self._queued[method]:
            result = self._queued[method].popleft()
        elif method in self._standing:
            result = self._standing[method]
        else:
            raise AssertionError(f"unexpected call {method} {params!r}")
        if callable(result):
            result = result(params)
        if isinstance(result, BaseException):
            raise result
        return copy.deepcopy(result)

    def methods(self):
        return [m for m, _ in self.calls]

    def params_of(self, method):
        return [p for m, p in self.calls if m == method]


@pytest.fixture
def api():
    return FakeApi()


@pytest.fixture
def options():
    # no sleeping between retries in tests
    return ReconcileOptions(max_attempts=3, retry_delay_sec=0)


@pytest.fixture
def restore_logging():
    """setup_logging() replaces the root handlers; put them back afterwards."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for h in list(root.handlers):
        if h not in handlers:
            root.removeHandler(h)
            h.close()
    for h in handlers:
        if h not in root.handlers:
            root.addHandler(h)
    root.setLevel(level)
