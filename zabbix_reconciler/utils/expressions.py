"""
Trigger expression compiler.

The API returns trigger expressions with opaque function references such as
``{13519}>0``. Rendering them as ``{host:key.function(params)}`` needs one
item lookup per referenced item (with its owning host).

Substitution is a single regex pass over the original text keyed by the
``{N}`` token, so text produced by one replacement is never matched again.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from ..core.context import CallContext
from ..core.errors import AmbiguousParentage, ReferenceNotFound
from ..core.logging_utils import get_logger
from .resolvers import parent_from_row

log = get_logger(__name__)

_FUNCTION_REF_RE = re.compile(r"\{(\d+)\}")


@dataclass(frozen=True)
class FunctionRef:
    """One entry of a trigger's ``functions`` list."""
    functionid: str
    itemid: str
    function: str
    parameter: str = ""

    @classmethod
    def from_api(cls, row: Mapping[str, Any]) -> "FunctionRef":
        return cls(
            functionid=str(row.get("functionid", "")),
            itemid=str(row.get("itemid", "")),
            function=str(row.get("function") or row.get("name") or ""),
            parameter=str(row.get("parameter") or ""),
        )


def referenced_ids(expression: str) -> Tuple[str, ...]:
    """Function ids referenced by ``expression`` in order of appearance."""
    seen: Dict[str, None] = {}
    for m in _FUNCTION_REF_RE.finditer(expression or ""):
        seen.setdefault(m.group(1), None)
    return tuple(seen)


def compile_expression(expression: str, rendered: Mapping[str, str]) -> str:
    """Replace every ``{N}`` token with ``rendered[N]`` in one pass.

    Raises:
        ReferenceNotFound: If a token has no rendering.
    """
    def repl(m: "re.Match[str]") -> str:
        fid = m.group(1)
        if fid not in rendered:
            raise ReferenceNotFound("{" + fid + "}", "no function with this id on the trigger")
        return rendered[fid]

    return _FUNCTION_REF_RE.sub(repl, expression or "")


def _resolve_item(client: Any, itemid: str, ctx: Optional[CallContext]) -> Tuple[str, str]:
    rows = client.get("item", {
        "output": ["itemid", "key_"],
        "selectHosts": ["hostid", "host"],
        "itemids": [itemid],
        "webitems": True,
    }, ctx=ctx)
    try:
        parent = parent_from_row("item", itemid, rows)
    except AmbiguousParentage as exc:
        raise ReferenceNotFound(f"item {itemid}", str(exc)) from exc
    return parent.parent_name, str(rows[0].get("key_", ""))


def resolve_expression(
    client: Any,
    expression: str,
    function_refs: Iterable[FunctionRef | Mapping[str, Any]],
    *,
    ctx: Optional[CallContext] = None,
) -> str:
    """Render ``expression`` with host/item/function names.

    Every referenced item is looked up once, and all lookups finish before
    the result is built; a single failure fails the whole compilation.

    Raises:
        ReferenceNotFound: Unknown function id, or an item that does not
            resolve to one item with one host.
    """
    refs: Dict[str, FunctionRef] = {}
    for ref in function_refs:
        fr = ref if isinstance(ref, FunctionRef) else FunctionRef.from_api(ref)
        refs[fr.functionid] = fr

    wanted = referenced_ids(expression)
    missing = [fid for fid in wanted if fid not in refs]
    if missing:
        raise ReferenceNotFound("{" + missing[0] + "}", "no function with this id on the trigger")

    items: Dict[str, Tuple[str, str]] = {}
    for fid in wanted:
        itemid = refs[fid].itemid
        if itemid not in items:
            items[itemid] = _resolve_item(client, itemid, ctx)

    rendered: Dict[str, str] = {}
    for fid in wanted:
        fr = refs[fid]
        host, key = items[fr.itemid]
        rendered[fid] = "{%s:%s.%s(%s)}" % (host, key, fr.function, fr.parameter)

    out = compile_expression(expression, rendered)
    log.debug("Compiled expression %r -> %r", expression, out)
    return out
