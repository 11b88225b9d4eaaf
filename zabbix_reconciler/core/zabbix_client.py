"""
ZabbixClient: JSON-RPC client for the Zabbix API.

This module provides a single, reusable client with:
  * One low-level entry point (`call`) that marshals the JSON-RPC envelope
  * Object-kind helpers (`get`, `get_one`, `create`, `update`, `delete`) so
    resource handlers do not duplicate RPC plumbing
  * A typed :class:`NotFoundError` for "expected exactly one result" lookups
  * Redacted, truncated payload logging

Thread safety: every thread gets its own ``requests.Session``; request ids
come from a locked counter. A single client can be shared by concurrent
resource operations.

Example:
    client = ZabbixClient("https://zabbix.local", token)
    host = client.get_one("host", "hostid", "10084", {"selectInterfaces": "extend"})
"""
from __future__ import annotations

import itertools
import json
import os
import threading
import uuid
import warnings
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

import requests
import urllib3

from .context import CallContext
from .errors import ApiError, NotFoundError, ReferenceNotVisible
from .logging_utils import get_logger

log = get_logger(__name__)

JSON_RPC_PATH = "api_jsonrpc.php"

_LOG_PREVIEW = int(os.getenv("ZBX_HTTP_PREVIEW", "600"))
_REDACT_KEYS = {
    "token",
    "authorization",
    "password",
    "passwd",
    "auth",
    "ldap_bind_password",
    "authpassphrase",
    "privpassphrase",
    "smtp_password",
    "ipmi_password",
}
# Methods Zabbix rejects when an Authorization header is present.
_UNAUTHENTICATED_METHODS = {"apiinfo.version"}
# Error text for a referred object that is missing or not visible yet.
_NOT_VISIBLE_MARKER = "no permissions to referred object or it does not exist"


def _short_json(obj: Any, limit: int = _LOG_PREVIEW) -> str:
    try:
        if isinstance(obj, (dict, list)):
            s = json.dumps(obj, ensure_ascii=False)
        else:
            s = str(obj)
        return s[:limit]
    except (TypeError, ValueError):
        return f"<unserializable:{type(obj).__name__}>"


def _redact(obj: Any) -> Any:
    if isinstance(obj, dict):
        out = {}
        for k, v in obj.items():
            if str(k).lower() in _REDACT_KEYS:
                out[k] = "***REDACTED***"
            else:
                out[k] = _redact(v)
        return out
    if isinstance(obj, list):
        return [_redact(x) for x in obj]
    return obj


@dataclass
class ClientOptions:
    """Runtime options for :class:`ZabbixClient`.

    Attributes:
        verify: If False, TLS certificate verification is disabled.
        timeout_sec: Per-request timeout (seconds); capped by the context deadline.
        suppress_insecure_warning: Silence urllib3's InsecureRequestWarning
            when ``verify`` is False.
    """
    verify: bool = True
    timeout_sec: float = 30.0
    suppress_insecure_warning: bool = True


class ApiMethods:
    """Object-kind helpers built on top of :meth:`call`.

    Subclasses only provide ``call(method, params, *, ctx=None)``.
    """

    def call(self, method: str, params: Any, *, ctx: Optional[CallContext] = None) -> Any:
        raise NotImplementedError

    def get(self, kind: str, params: Dict[str, Any], *, ctx: Optional[CallContext] = None) -> List[Dict[str, Any]]:
        """Run ``<kind>.get`` and return the result list."""
        res = self.call(f"{kind}.get", params, ctx=ctx)
        return list(res or [])

    def get_one(
        self,
        kind: str,
        id_field: str,
        object_id: str,
        params: Optional[Dict[str, Any]] = None,
        *,
        ctx: Optional[CallContext] = None,
    ) -> Dict[str, Any]:
        """Fetch exactly one object by id.

        Raises:
            NotFoundError: If the API returns anything but one object.
        """
        query: Dict[str, Any] = {"output": "extend", f"{id_field}s": [str(object_id)]}
        query.update(params or {})
        rows = self.get(kind, query, ctx=ctx)
        if len(rows) != 1:
            raise NotFoundError(kind, str(object_id), found=len(rows))
        return rows[0]

    def create(self, kind: str, obj: Dict[str, Any], id_key: str, *, ctx: Optional[CallContext] = None) -> str:
        """Run ``<kind>.create`` for one object and return its new id."""
        res = self.call(f"{kind}.create", obj, ctx=ctx)
        return _first_id(kind, res, id_key)

    def update(self, kind: str, obj: Dict[str, Any], id_key: str, *, ctx: Optional[CallContext] = None) -> str:
        """Run ``<kind>.update`` for one object and return its id."""
        res = self.call(f"{kind}.update", obj, ctx=ctx)
        return _first_id(kind, res, id_key)

    def delete(self, kind: str, ids: Iterable[str], *, ctx: Optional[CallContext] = None) -> List[str]:
        """Run ``<kind>.delete`` and return the ids reported as deleted."""
        res = self.call(f"{kind}.delete", [str(i) for i in ids], ctx=ctx)
        if isinstance(res, dict):
            for v in res.values():
                if isinstance(v, list):
                    return [str(x) for x in v]
        return []

    def api_version(self, *, ctx: Optional[CallContext] = None) -> str:
        return str(self.call("apiinfo.version", {}, ctx=ctx))


def _first_id(kind: str, res: Any, id_key: str) -> str:
    ids = res.get(id_key) if isinstance(res, dict) else None
    if not ids:
        raise ApiError(-1, f"{kind}: response carries no '{id_key}'", res, method=f"{kind}")
    return str(ids[0])


def _api_error(err: Dict[str, Any], method: str) -> ApiError:
    """Build the typed error for a JSON-RPC ``error`` member."""
    text = f"{err.get('message') or ''} {err.get('data') or ''}".lower()
    cls = ReferenceNotVisible if _NOT_VISIBLE_MARKER in text else ApiError
    return cls(err.get("code"), err.get("message", ""), err.get("data"), method=method)


class ZabbixClient(ApiMethods):
    """JSON-RPC client for the Zabbix front-end API.

    Args:
        base_url: Front-end URL (``https://zabbix.local`` or the full
            ``.../api_jsonrpc.php`` endpoint).
        api_token: API token, sent as ``Authorization: Bearer``.
        options: Optional :class:`ClientOptions`.
        verify: Optional TLS verification override.
    """

    def __init__(
        self,
        base_url: str,
        api_token: str,
        *,
        options: Optional[ClientOptions] = None,
        verify: bool | None = None,
    ) -> None:
        base = base_url.rstrip("/")
        self.url = base if base.endswith(".php") else f"{base}/{JSON_RPC_PATH}"
        self._token = api_token
        self.options = options or ClientOptions()
        if verify is not None:
            self.options.verify = bool(verify)

        self._local = threading.local()
        self._ids = itertools.count(1)
        self._ids_lock = threading.Lock()

        if not self.options.verify and self.options.suppress_insecure_warning:
            warnings.filterwarnings("ignore", category=urllib3.exceptions.InsecureRequestWarning)
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    # ---------------- low-level ----------------
    @property
    def session(self) -> requests.Session:
        """The calling thread's session (created on first use)."""
        sess = getattr(self._local, "session", None)
        if sess is None:
            sess = requests.Session()
            sess.headers.update({"Content-Type": "application/json-rpc"})
            self._local.session = sess
        return sess

    def _next_id(self) -> int:
        with self._ids_lock:
            return next(self._ids)

    def _timeout(self, ctx: Optional[CallContext]) -> float:
        timeout = float(self.options.timeout_sec)
        if ctx is not None:
            left = ctx.remaining()
            if left is not None:
                timeout = min(timeout, left)
        return timeout

    def call(self, method: str, params: Any, *, ctx: Optional[CallContext] = None) -> Any:
        """Perform one JSON-RPC call and return its ``result`` member.

        Raises:
            Cancelled: If ``ctx`` is cancelled or expired before sending.
            ReferenceNotVisible: If the error says a referred object does not
                exist (it may only be not visible yet).
            ApiError: If the response carries any other ``error`` member.
            requests.RequestException: On connection-level errors.
            requests.HTTPError: On non-2xx responses.
        """
        if ctx is not None:
            ctx.check(method)
        corr = uuid.uuid4().hex[:8]
        body = {"jsonrpc": "2.0", "method": method, "params": params, "id": self._next_id()}
        headers = {}
        if self._token and method not in _UNAUTHENTICATED_METHODS:
            headers["Authorization"] = f"Bearer {self._token}"

        log.debug("RPC[%s] %s params=%s", corr, method, _short_json(_redact(params)))
        try:
            resp = self.session.post(
                self.url,
                data=json.dumps(body),
                headers=headers,
                timeout=self._timeout(ctx),
                verify=self.options.verify,
            )
        except requests.RequestException as exc:
            log.error("RPC[%s] %s failed: %s", corr, method, exc)
            raise

        if resp.status_code >= 400:
            snippet = resp.text[:200]
            log.error("RPC[%s] %s -> HTTP %s: %s", corr, method, resp.status_code, snippet)
            raise requests.HTTPError(f"{resp.status_code}: {snippet}", response=resp)

        try:
            payload = resp.json()
        except ValueError as exc:
            log.error("RPC[%s] %s -> non-JSON response: %s", corr, method, resp.text[:200])
            raise ApiError(-32700, "Invalid JSON response", resp.text[:200], method=method) from exc

        if isinstance(payload, dict) and payload.get("error"):
            err = payload["error"]
            log.warning("RPC[%s] %s -> error %s: %s %s", corr, method, err.get("code"), err.get("message"), err.get("data"))
            raise _api_error(err, method)

        result = payload.get("result") if isinstance(payload, dict) else None
        log.debug("RPC[%s] %s -> %s", corr, method, _short_json(_redact(result)))
        return result
