from zabbix_reconciler.utils.diff_engine import decide, decide_delete, same_value


def test_untracked_is_create():
    d = decide({"name": "Ops"}, None, compare_keys=["name"])
    assert d.op == "CREATE"
    assert d.reason == "Not tracked"


def test_extra_remote_keys_are_ignored():
    existing = {"name": "Ops", "gui_access": 0, "usrgrpid": "7"}
    d = decide({"name": "Ops"}, existing, compare_keys=["name"])
    assert d.op == "NOOP"
    assert d.reason == "Identical subset"


def test_changed_fields_are_listed():
    d = decide(
        {"name": "Ops", "gui_access": 2, "debug_mode": True},
        {"name": "Ops", "gui_access": 0, "debug_mode": False},
        compare_keys=["name", "gui_access", "debug_mode"],
    )
    assert d.op == "UPDATE"
    assert d.reason == "Field differs: gui_access, debug_mode"


def test_only_compare_keys_are_checked():
    d = decide({"username": "jdoe", "password": "x"}, {"username": "jdoe"}, compare_keys=["username"])
    assert d.op == "NOOP"


def test_nested_entries_match_as_subset():
    desired = {"interfaces": [{"type": "agent", "ip": "10.0.0.1"}]}
    existing = {"interfaces": [{"interface_id": "1", "type": "agent", "ip": "10.0.0.1", "port": "10050"}]}
    assert decide(desired, existing, compare_keys=["interfaces"]).op == "NOOP"
    existing["interfaces"].append({"type": "snmp", "ip": "10.0.0.2"})
    assert decide(desired, existing, compare_keys=["interfaces"]).op == "UPDATE"


def test_set_keys_ignore_order():
    desired = {"groups": ["2", "5"]}
    existing = {"groups": ["5", "2"]}
    assert decide(desired, existing, compare_keys=["groups"]).op == "UPDATE"
    assert decide(desired, existing, compare_keys=["groups"], set_keys=["groups"]).op == "NOOP"


def test_set_match_counts_duplicates():
    assert not same_value(["a", "a"], ["a", "b"], as_set=True)
    assert same_value(["a", "b", "a"], ["a", "a", "b"], as_set=True)


def test_numeric_strings_match_numbers():
    assert same_value(10050, "10050")
    assert same_value("1.5", 1.5)
    assert not same_value(10050, "10051")


def test_bools_are_strict():
    assert not same_value(True, 1)
    assert not same_value(False, "0")
    assert same_value(True, True)


def test_missing_remote_key_differs():
    assert not same_value({"snmp_config": []}, {})
    assert decide({"name": "x"}, {}, compare_keys=["name"]).op == "UPDATE"


def test_delete_decision():
    d = decide_delete({"kind": "host", "id": "10084"})
    assert d.op == "DELETE"
    assert d.reason == "No longer declared"
    assert d.existing["id"] == "10084"
