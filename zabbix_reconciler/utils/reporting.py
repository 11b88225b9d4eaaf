"""
Reporting helpers (table or JSON) for driver results.

`print_rows` auto-selects relevant columns and produces a compact table that
fits CLI usage. JSON output is also supported for machine consumption.
"""
from __future__ import annotations

import json
from typing import Any, Dict, List

from ..core.logging_utils import get_logger

log = get_logger(__name__)


def _derive_status(row: dict) -> str:
    """Final status for the row: an error always wins."""
    if row.get("error"):
        return "Failed"
    return row.get("status") or "—"


def _normalize_row(row: Dict[str, Any]) -> Dict[str, Any]:
    """
    Normalize a raw result row so the table is consistent:
    - status derived from the error column,
    - warnings rendered as a count,
    - error truncated to one short line.
    """
    r = dict(row)

    final_status = _derive_status(r)
    raw_status = r.get("status")
    if r.get("error") and raw_status and raw_status != "Failed":
        log.warning("reporting: row %s has an error but status=%s", r.get("name"), raw_status)
    r["status"] = final_status

    warnings = r.get("warnings") or []
    r["warnings"] = len(warnings) if isinstance(warnings, list) else warnings

    err = r.get("error")
    r["error"] = (str(err).strip()[:160] if isinstance(err, (str, bytes)) and str(err).strip() else "—")
    return r


def print_rows(rows: List[Dict[str, Any]], fmt: str = "table") -> None:
    """Render driver result rows as a table or JSON.

    Args:
        rows: List of dict rows (name, kind, id, action, status, reason...).
        fmt: Either ``"table"`` (default) or ``"json"``.
    """
    if fmt == "json":
        print(json.dumps(rows, indent=2, default=str))
        return

    norm_rows = [_normalize_row(r) for r in rows]

    def _present(v) -> bool:
        return not (v is None or v in ("", "—", 0) or v == [])

    candidates = ["name", "kind", "id", "action", "reason", "status", "warnings", "error"]
    mandatory = {"name", "kind", "action"}

    cols: List[str] = []
    for c in candidates:
        if (c in mandatory) or any(_present(r.get(c)) for r in norm_rows):
            cols.append(c)

    def _fmt(v, col):
        s = "" if v is None else str(v)
        if col == "reason" and len(s) > 48:
            return f"{s[:45]}…"
        if s == "":
            return "—"
        return s

    widths = {c: len(c) for c in cols}
    for r in norm_rows:
        for c in cols:
            widths[c] = max(widths[c], len(_fmt(r.get(c), c)))

    header = "| " + " | ".join(c.ljust(widths[c]) for c in cols) + " |"
    sep = "| " + " | ".join("-" * widths[c] for c in cols) + " |"
    print(header)
    print(sep)
    for r in norm_rows:
        print("| " + " | ".join(_fmt(r.get(c), c).ljust(widths[c]) for c in cols) + " |")
