import pytest

from zabbix_reconciler.core.errors import ReferenceNotFound
from zabbix_reconciler.utils.expressions import (
    FunctionRef,
    compile_expression,
    referenced_ids,
    resolve_expression,
)

ITEMS = {
    "100": {"itemid": "100", "key_": "cpu.load", "hosts": [{"hostid": "10", "host": "web01"}]},
    "200": {"itemid": "200", "key_": "mem.used", "hosts": [{"hostid": "10", "host": "web01"}]},
}


def _items(params):
    return [ITEMS[i] for i in params["itemids"] if i in ITEMS]


def test_referenced_ids_in_order_without_duplicates():
    assert referenced_ids("{2}>0 or {1}<5 and {2}=1") == ("2", "1")
    assert referenced_ids("") == ()


def test_single_pass_substitution():
    # text produced by a replacement is never rescanned
    assert compile_expression("{1}", {"1": "{2}", "2": "X"}) == "{2}"


def test_render_two_items(api):
    api.on("item.get", _items)
    functions = [
        {"functionid": "1", "itemid": "100", "function": "avg", "parameter": ""},
        {"functionid": "2", "itemid": "200", "function": "avg", "parameter": ""},
    ]
    out = resolve_expression(api, "{1}+{2}", functions)
    assert out == "{web01:cpu.load.avg()}+{web01:mem.used.avg()}"


def test_each_item_looked_up_once(api):
    api.on("item.get", _items)
    functions = [
        FunctionRef("1", "100", "last"),
        FunctionRef("3", "100", "avg", "5m"),
    ]
    out = resolve_expression(api, "{1}>0 and {3}<5", functions)
    assert out == "{web01:cpu.load.last()}>0 and {web01:cpu.load.avg(5m)}<5"
    assert api.methods() == ["item.get"]


def test_unknown_function_id(api):
    with pytest.raises(ReferenceNotFound):
        resolve_expression(api, "{9}>0", [FunctionRef("1", "100", "last")])
    assert api.calls == []


def test_item_without_host(api):
    api.on("item.get", [{"itemid": "100", "key_": "cpu.load", "hosts": []}])
    with pytest.raises(ReferenceNotFound):
        resolve_expression(api, "{1}>0", [FunctionRef("1", "100", "last")])
