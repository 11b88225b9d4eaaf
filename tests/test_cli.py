import json
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from zabbix_reconciler import main as cli
from zabbix_reconciler.state import StateStore


class _Zabbix(BaseHTTPRequestHandler):
    """Just enough of usergroup.* to drive the CLI."""

    groups = {}
    next_id = 7
    protocol_version = "HTTP/1.1"

    def _reply(self, req, result=None, error=None):
        body = {"jsonrpc": "2.0", "id": req["id"]}
        if error is not None:
            body["error"] = error
        else:
            body["result"] = result
        raw = json.dumps(body).encode("utf-8")
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(raw)))
        self.end_headers()
        self.wfile.write(raw)

    def do_POST(self):  # noqa: N802
        length = int(self.headers.get("Content-Length", "0"))
        req = json.loads(self.rfile.read(length).decode("utf-8"))
        method, params = req["method"], req["params"]
        cls = type(self)

        if method == "usergroup.create":
            if params["name"] == "broken":
                self._reply(req, error={"code": -32602, "message": "Invalid params.", "data": "Cannot create."})
                return
            gid = str(cls.next_id)
            cls.next_id += 1
            cls.groups[gid] = dict(params, usrgrpid=gid)
            self._reply(req, {"usrgrpids": [gid]})
        elif method == "usergroup.get":
            rows = [cls.groups[i] for i in params.get("usrgrpids", []) if i in cls.groups]
            self._reply(req, rows)
        elif method == "usergroup.update":
            gid = params["usrgrpid"]
            cls.groups[gid].update(params)
            self._reply(req, {"usrgrpids": [gid]})
        elif method == "usergroup.delete":
            for gid in params:
                cls.groups.pop(gid, None)
            self._reply(req, {"usrgrpids": params})
        else:
            self._reply(req, error={"code": -32601, "message": "Method not found.", "data": method})

    def log_message(self, fmt, *args):
        return


@pytest.fixture
def zabbix():
    _Zabbix.groups = {}
    _Zabbix.next_id = 7
    srv = ThreadingHTTPServer(("127.0.0.1", 0), _Zabbix)
    th = threading.Thread(target=srv.serve_forever, daemon=True)
    th.start()
    try:
        yield f"http://{srv.server_address[0]}:{srv.server_address[1]}"
    finally:
        srv.shutdown()
        th.join(timeout=1.0)


@pytest.fixture
def workdir(tmp_path, monkeypatch, zabbix, restore_logging):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("ZBX_API_URL", zabbix)
    monkeypatch.setenv("ZBX_API_TOKEN", "TEST")
    monkeypatch.setenv("ZBX_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("ZBX_RETRY_DELAY_SEC", "0")
    monkeypatch.setenv("ZBX_STATE_FILE", str(tmp_path / "zbx-state.json"))
    monkeypatch.setenv("ZBX_MANIFEST_FILE", str(tmp_path / "zabbix.yml"))
    return tmp_path


def _manifest(workdir, *groups):
    lines = ["resources:"]
    for name, attrs in groups:
        lines.append(f"  - name: {name}")
        lines.append("    kind: user_group")
        lines.append(f"    attributes: {json.dumps(attrs)}")
    if not groups:
        lines = ["resources: []"]
    (workdir / "zabbix.yml").write_text("\n".join(lines) + "\n", encoding="utf-8")


def _state(workdir):
    return StateStore(workdir / "zbx-state.json").load()


def _plan(capsys):
    capsys.readouterr()
    assert cli.main(["--format", "json", "plan"]) == cli.EXIT_OK
    return json.loads(capsys.readouterr().out)


def test_apply_plan_update_delete(workdir, capsys):
    _manifest(workdir, ("ops", {"name": "Ops", "gui_access": 0}))
    assert cli.main(["apply"]) == cli.EXIT_OK
    entry = _state(workdir).get("ops")
    assert entry["kind"] == "user_group"
    assert entry["id"] == "7"
    assert entry["status"] == "created"
    assert _Zabbix.groups["7"]["name"] == "Ops"

    (row,) = _plan(capsys)
    assert row["action"] == "NOOP"
    assert row["id"] == "7"

    _manifest(workdir, ("ops", {"name": "Ops", "gui_access": 2}))
    (row,) = _plan(capsys)
    assert row["action"] == "UPDATE"
    assert row["reason"] == "Field differs: gui_access"
    assert cli.main(["apply"]) == cli.EXIT_OK
    assert _Zabbix.groups["7"]["gui_access"] == "2"
    assert _state(workdir).get("ops")["attributes"]["gui_access"] == 2

    _manifest(workdir)
    (row,) = _plan(capsys)
    assert row["action"] == "DELETE"
    assert cli.main(["apply"]) == cli.EXIT_OK
    assert len(_state(workdir)) == 0
    assert _Zabbix.groups == {}


def test_partial_failure_keeps_successful_rows(workdir, capsys):
    _manifest(workdir, ("ops", {"name": "Ops"}), ("bad", {"name": "broken"}))
    assert cli.main(["--format", "json", "apply"]) == cli.EXIT_PARTIAL_FAILURE
    rows = json.loads(capsys.readouterr().out)
    assert [(r["name"], r["status"]) for r in rows] == [("ops", "Success"), ("bad", "Failed")]
    assert "Cannot create." in rows[1]["error"]
    state = _state(workdir)
    assert "ops" in state
    assert "bad" not in state


def test_tracked_object_deleted_remotely_is_recreated(workdir, capsys):
    _manifest(workdir, ("ops", {"name": "Ops"}))
    assert cli.main(["apply"]) == cli.EXIT_OK
    _Zabbix.groups.clear()
    (row,) = _plan(capsys)
    assert row["action"] == "CREATE"
    assert row["reason"] == "Tracked object missing remotely"
    assert cli.main(["apply"]) == cli.EXIT_OK
    assert _state(workdir).get("ops")["id"] == "8"


def test_destroy(workdir):
    _manifest(workdir, ("ops", {"name": "Ops"}), ("dev", {"name": "Dev"}))
    assert cli.main(["apply"]) == cli.EXIT_OK
    assert len(_Zabbix.groups) == 2
    assert cli.main(["destroy"]) == cli.EXIT_OK
    assert _Zabbix.groups == {}
    assert len(_state(workdir)) == 0


def test_read_prints_decoded_attributes(workdir, capsys):
    _Zabbix.groups["3"] = {"usrgrpid": "3", "name": "Guests", "gui_access": "0", "debug_mode": "0",
                           "users_status": "1"}
    assert cli.main(["read", "--kind", "user_group", "--id", "3"]) == cli.EXIT_OK
    out = json.loads(capsys.readouterr().out)
    assert out["kind"] == "user_group"
    assert out["id"] == "3"
    assert out["attributes"] == {"name": "Guests", "gui_access": 0, "debug_mode": False, "enabled": False}
    assert out["diagnostics"] == []


def test_read_missing_object_is_a_generic_error(workdir):
    assert cli.main(["read", "--kind", "user_group", "--id", "404"]) == cli.EXIT_GENERIC_ERROR


def test_validation_error(workdir):
    _manifest(workdir, ("ops", {"name": "Ops", "gui_access": 9}), ("dev", {}))
    assert cli.main(["apply"]) == cli.EXIT_VALIDATION_ERROR
    assert _Zabbix.groups == {}
    assert not (workdir / "zbx-state.json").exists()


def test_missing_environment(workdir, monkeypatch):
    monkeypatch.delenv("ZBX_API_TOKEN")
    assert cli.main(["plan"]) == cli.EXIT_CONFIG_ERROR


def test_missing_manifest(workdir, monkeypatch):
    monkeypatch.delenv("ZBX_MANIFEST_FILE")
    assert cli.main(["plan"]) == cli.EXIT_CONFIG_ERROR


def test_manifest_option_is_a_fallback(workdir, monkeypatch, capsys):
    monkeypatch.delenv("ZBX_MANIFEST_FILE")
    _manifest(workdir, ("ops", {"name": "Ops"}))
    capsys.readouterr()
    assert cli.main(["--manifest", str(workdir / "zabbix.yml"), "--format", "json", "plan"]) == cli.EXIT_OK
    (row,) = json.loads(capsys.readouterr().out)
    assert row["action"] == "CREATE"


def test_state_option_overrides_environment(workdir):
    _manifest(workdir, ("ops", {"name": "Ops"}))
    other = workdir / "other" / "state.json"
    assert cli.main(["--state", str(other), "apply"]) == cli.EXIT_OK
    assert "ops" in StateStore(other).load()
    assert not (workdir / "zbx-state.json").exists()


def test_unreachable_server(workdir, monkeypatch):
    monkeypatch.setenv("ZBX_API_URL", "http://127.0.0.1:9")
    monkeypatch.setenv("ZBX_TIMEOUT_SEC", "1")
    assert cli.main(["read", "--kind", "user_group", "--id", "1"]) == cli.EXIT_NETWORK_ERROR
