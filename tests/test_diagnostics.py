import pytest

from zabbix_reconciler.core.errors import Cancelled, PartialFieldErrors, UnknownCode
from zabbix_reconciler.utils.diagnostics import DiagnosticBatch, Severity


def test_set_field_success_and_failure():
    batch = DiagnosticBatch()
    out = {}
    assert batch.set_field(out, "name", lambda: "web01") is True

    def boom():
        raise UnknownCode("interface type", "9")

    assert batch.set_field(out, "type", boom) is False
    assert out == {"name": "web01"}
    (diag,) = batch.errors
    assert diag.attribute == "type"
    assert diag.severity is Severity.ERROR
    assert "unknown interface type code '9'" in diag.summary


def test_programming_errors_are_not_collected():
    batch = DiagnosticBatch()

    def bug():
        raise RuntimeError("bug")

    with pytest.raises(RuntimeError):
        batch.set_field({}, "x", bug)
    assert not batch


def test_warnings_and_serialisation():
    batch = DiagnosticBatch()
    batch.add_error(None)
    batch.add_warning("only the first page is managed", attribute="widgets")
    assert len(batch) == 1
    assert not batch.has_errors
    assert batch.as_list() == [
        {"severity": "warning", "summary": "only the first page is managed", "attribute": "widgets"},
    ]
    batch.raise_for_errors()


def test_raise_for_errors_aggregates():
    batch = DiagnosticBatch()
    batch.add_error(ValueError("bad port"), attribute="port")
    batch.add_error(KeyError("key_"), attribute="key")
    with pytest.raises(PartialFieldErrors) as ei:
        batch.raise_for_errors()
    assert ei.value.attributes == ["port", "key"]
    assert str(ei.value).startswith("2 field error(s): port: bad port")


def test_extend_keeps_order():
    a, b = DiagnosticBatch(), DiagnosticBatch()
    a.add_warning("first")
    b.add_warning("second")
    a.extend(b)
    assert [d.summary for d in a] == ["first", "second"]


def test_failing_field_does_not_stop_the_others():
    batch = DiagnosticBatch()
    out = {}
    ran = []

    def producer(name, value=None):
        def run():
            ran.append(name)
            if value is None:
                raise UnknownCode("interface type", "9")
            return value
        return run

    batch.set_field(out, "name", producer("name", "web01"))
    batch.set_field(out, "type", producer("type"))
    batch.set_field(out, "port", producer("port", "10050"))

    assert ran == ["name", "type", "port"]
    assert out == {"name": "web01", "port": "10050"}
    assert [d.attribute for d in batch.errors] == ["type"]
    assert len(batch) == 1


def test_cancellation_is_not_collected():
    batch = DiagnosticBatch()

    def cancelled():
        raise Cancelled("item.get: cancelled")

    with pytest.raises(Cancelled):
        batch.set_field({}, "expression", cancelled)
    assert not batch
