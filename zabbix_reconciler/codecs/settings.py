"""
Codec for flat settings singletons (authentication, housekeeping).

Declared names are the API field names, minus an optional prefix
(housekeeping drops ``hk_``). Only declared settings are sent, so an
update never resets what the manifest does not mention. Read-only fields
are decoded but rejected on write.
"""
from __future__ import annotations

import dataclasses
from typing import Any, Dict, Iterable, Mapping

from ..core.models import num
from ..utils.diagnostics import DiagnosticBatch
from .common import AttrReader, Violations


def _declared(api_name: str, prefix: str) -> str:
    if prefix and api_name.startswith(prefix):
        return api_name[len(prefix):]
    return api_name


def settings_to_remote(attrs: Mapping[str, Any], model_cls: Any, prefix: str, v: Violations) -> Dict[str, Any]:
    """Render declared settings into a sparse ``settings.update`` payload."""
    r = AttrReader(attrs, v)
    fields = {_declared(f.name, prefix): f for f in dataclasses.fields(model_cls)}
    payload: Dict[str, Any] = {}
    for key in r.attrs:
        f = fields.get(key)
        if f is None:
            v.add(key, "unknown setting")
            continue
        if f.metadata.get("read_only"):
            v.add(key, "is read-only")
            continue
        if f.type in ("int", int):
            payload[f.name] = num(r.number(key))
        else:
            payload[f.name] = r.text(key)
    return payload


def settings_to_declarative(
    model: Any,
    prefix: str,
    write_only: Iterable[str],
    batch: DiagnosticBatch,
) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    skip = set(write_only)
    for f in dataclasses.fields(model):
        name = _declared(f.name, prefix)
        if name in skip:
            continue
        batch.set_field(out, name, lambda f=f: getattr(model, f.name))
    return out
