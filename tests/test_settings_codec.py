from zabbix_reconciler.codecs.common import Violations
from zabbix_reconciler.codecs.settings import settings_to_declarative, settings_to_remote
from zabbix_reconciler.core.models import AuthenticationSettings, HousekeepingSettings
from zabbix_reconciler.utils.diagnostics import DiagnosticBatch


def test_sparse_payload_with_prefix():
    v = Violations()
    payload = settings_to_remote({"events_mode": 0, "history": "30d"}, HousekeepingSettings, "hk_", v)
    assert not v
    assert payload == {"hk_events_mode": "0", "hk_history": "30d"}


def test_unknown_and_read_only_settings():
    v = Violations()
    settings_to_remote({"bogus": 1, "db_extension": "timescaledb"}, HousekeepingSettings, "hk_", v)
    assert v.items == ["bogus: unknown setting", "db_extension: is read-only"]


def test_number_validation():
    v = Violations()
    settings_to_remote({"ldap_port": "not-a-port"}, AuthenticationSettings, "", v)
    assert v.items == ["ldap_port: expected an integer, got 'not-a-port'"]


def test_declarative_strips_prefix_and_write_only():
    batch = DiagnosticBatch()
    hk = HousekeepingSettings.from_api({"hk_events_mode": "0", "hk_history": "30d", "db_extension": "timescaledb"})
    out = settings_to_declarative(hk, "hk_", (), batch)
    assert out["events_mode"] == 0
    assert out["history"] == "30d"
    assert out["db_extension"] == "timescaledb"
    assert out["compression_status"] == 0
    assert not batch

    auth = settings_to_declarative(AuthenticationSettings(), "", ("ldap_bind_password",), DiagnosticBatch())
    assert "ldap_bind_password" not in auth
    assert auth["ldap_port"] == 389


def test_full_payload_skips_read_only():
    payload = HousekeepingSettings().to_api()
    assert "db_extension" not in payload
    assert "compression_availability" not in payload
    assert payload["hk_events_mode"] == "1"
