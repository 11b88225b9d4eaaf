"""
Name -> id lookups for objects the manifest references but does not manage.

Manifests may write ``{lookup: host_group, name: Linux servers}`` wherever
an id is expected; :func:`expand_lookups` replaces such mappings with the
id found on the server before the attributes reach a resource handler.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from ..core.context import CallContext
from ..core.errors import InvalidConfiguration, NotFoundError
from ..core.logging_utils import get_logger
from ..core.zabbix_client import ApiMethods

log = get_logger(__name__)


@dataclass(frozen=True)
class NamedObject:
    kind: str
    id: str
    name: str


def _find_one(
    client: ApiMethods,
    api_object: str,
    id_field: str,
    name_field: str,
    name: str,
    ctx: Optional[CallContext],
) -> NamedObject:
    rows = client.get(api_object, {
        "output": [id_field, name_field],
        "filter": {name_field: [name]},
    }, ctx=ctx)
    if len(rows) != 1:
        raise NotFoundError(api_object, name, found=len(rows))
    row = rows[0]
    log.debug("Lookup %s %r -> %s", api_object, name, row.get(id_field))
    return NamedObject(kind=api_object, id=str(row.get(id_field, "")), name=str(row.get(name_field, "")))


def find_host_by_name(client: ApiMethods, name: str, *, ctx: Optional[CallContext] = None) -> NamedObject:
    """Host by visible name."""
    return _find_one(client, "host", "hostid", "name", name, ctx)


def find_host_group(client: ApiMethods, name: str, *, ctx: Optional[CallContext] = None) -> NamedObject:
    return _find_one(client, "hostgroup", "groupid", "name", name, ctx)


def find_template(client: ApiMethods, name: str, *, ctx: Optional[CallContext] = None) -> NamedObject:
    return _find_one(client, "template", "templateid", "name", name, ctx)


def find_proxy(client: ApiMethods, name: str, *, ctx: Optional[CallContext] = None) -> NamedObject:
    # Zabbix < 7.0 names proxies by their ``host`` field
    return _find_one(client, "proxy", "proxyid", "host", name, ctx)


LOOKUPS: Dict[str, Callable[..., NamedObject]] = {
    "host": find_host_by_name,
    "host_group": find_host_group,
    "template": find_template,
    "proxy": find_proxy,
}


def _is_lookup(value: Any) -> bool:
    return isinstance(value, dict) and set(value) == {"lookup", "name"}


def expand_lookups(value: Any, client: ApiMethods, *, ctx: Optional[CallContext] = None) -> Any:
    """Return a copy of ``value`` with every lookup mapping replaced by an id.

    Raises:
        InvalidConfiguration: For an unknown lookup kind.
        NotFoundError: If a name does not match exactly one object.
    """
    if _is_lookup(value):
        finder = LOOKUPS.get(str(value["lookup"]))
        if finder is None:
            raise InvalidConfiguration(
                f"unknown lookup kind {value['lookup']!r}; expected one of {', '.join(LOOKUPS)}"
            )
        return finder(client, str(value["name"]), ctx=ctx).id
    if isinstance(value, dict):
        return {k: expand_lookups(v, client, ctx=ctx) for k, v in value.items()}
    if isinstance(value, list):
        return [expand_lookups(v, client, ctx=ctx) for v in value]
    return value
