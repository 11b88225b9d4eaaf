"""
Parent resolution helpers.

The Zabbix API does not put the owning host on an item/trigger/graph id, so
deleting or rendering such an object needs a second query with
``selectHosts``. :func:`find_parent` performs that query and insists on
exactly one child with exactly one parent.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from ..core.context import CallContext
from ..core.errors import AmbiguousParentage
from ..core.logging_utils import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class ParentageRecord:
    """A resolved child -> owning host relationship (never persisted)."""
    child_kind: str
    child_id: str
    parent_id: str
    parent_name: str = ""


# kind -> (API object, id filter)
_PARENT_QUERIES: Dict[str, Tuple[str, str]] = {
    "item": ("item", "itemids"),
    "trigger": ("trigger", "triggerids"),
    "graph": ("graph", "graphids"),
    "host_interface": ("hostinterface", "interfaceids"),
}


def supported_kinds() -> Tuple[str, ...]:
    return tuple(_PARENT_QUERIES)


def parent_from_row(child_kind: str, child_id: str, rows: Any) -> ParentageRecord:
    """Validate a ``<kind>.get`` result and extract its single parent host.

    Raises:
        AmbiguousParentage: Unless there is one row carrying one host.
    """
    rows = list(rows or [])
    if len(rows) != 1:
        raise AmbiguousParentage(child_kind, child_id, found_children=len(rows))
    hosts = rows[0].get("hosts") or []
    if len(hosts) != 1:
        raise AmbiguousParentage(child_kind, child_id, found_children=1, found_parents=len(hosts))
    host = hosts[0]
    return ParentageRecord(
        child_kind=child_kind,
        child_id=str(child_id),
        parent_id=str(host.get("hostid", "")),
        parent_name=str(host.get("host", "")),
    )


def find_parent(client: Any, child_kind: str, child_id: str, *, ctx: Optional[CallContext] = None) -> ParentageRecord:
    """Return the single host owning ``child_id``.

    Args:
        client: Object exposing ``get(kind, params, ctx=...)``.
        child_kind: One of :func:`supported_kinds`.
        child_id: Remote id of the child.
        ctx: Propagated to the lookup.

    Raises:
        ValueError: For a kind without parent lookup.
        AmbiguousParentage: Zero/many children, or zero/many parents.
    """
    try:
        api_object, id_filter = _PARENT_QUERIES[child_kind]
    except KeyError:
        raise ValueError(f"no parent lookup for kind {child_kind!r}") from None

    rows = client.get(api_object, {
        "output": "extend",
        "selectHosts": "extend",
        id_filter: [str(child_id)],
    }, ctx=ctx)
    record = parent_from_row(child_kind, child_id, rows)
    log.debug("Resolved %s %s -> host %s (%s)", child_kind, child_id, record.parent_id, record.parent_name)
    return record
