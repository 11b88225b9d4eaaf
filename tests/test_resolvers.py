import pytest

from zabbix_reconciler.core.errors import AmbiguousParentage
from zabbix_reconciler.utils.resolvers import ParentageRecord, find_parent, supported_kinds


def test_single_parent(api):
    api.on("item.get", [{"itemid": "900", "hosts": [{"hostid": "10084", "host": "web01"}]}])
    record = find_parent(api, "item", "900")
    assert record == ParentageRecord(child_kind="item", child_id="900", parent_id="10084", parent_name="web01")
    (params,) = api.params_of("item.get")
    assert params["itemids"] == ["900"]
    assert params["selectHosts"] == "extend"


def test_graph_uses_graph_query(api):
    api.on("graph.get", [{"graphid": "5", "hosts": [{"hostid": "1", "host": "h"}]}])
    assert find_parent(api, "graph", "5").parent_id == "1"
    assert api.params_of("graph.get")[0]["graphids"] == ["5"]


def test_no_child(api):
    api.on("trigger.get", [])
    with pytest.raises(AmbiguousParentage) as ei:
        find_parent(api, "trigger", "1")
    assert ei.value.found_children == 0


def test_many_parents(api):
    api.on("trigger.get", [{"triggerid": "1", "hosts": [{"hostid": "1"}, {"hostid": "2"}]}])
    with pytest.raises(AmbiguousParentage) as ei:
        find_parent(api, "trigger", "1")
    assert ei.value.found_children == 1
    assert ei.value.found_parents == 2


def test_unsupported_kind(api):
    assert "host" not in supported_kinds()
    with pytest.raises(ValueError):
        find_parent(api, "host", "1")
    assert api.calls == []
