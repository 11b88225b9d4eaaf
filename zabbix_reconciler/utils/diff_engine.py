"""
Diff engine for the reconcile driver.

Provides a minimal decision model to determine whether a declared resource
should be created, updated, deleted or left as-is (NOOP), based on a subset
comparison between the **desired** attributes and the attributes read back
from the server.

Nested mappings are compared the same way: keys the manifest leaves out
(server-assigned ids, defaulted fields) are ignored. Lists named in
``set_keys`` are compared as multisets since the server is free to return
group ids, tags or dependencies in any order.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Literal, Mapping


Op = Literal["NOOP", "CREATE", "UPDATE", "DELETE", "SKIP"]


@dataclass(frozen=True)
class Decision:
    """Represents a diff outcome for a single resource.

    Attributes:
        op: One of ``"NOOP"``, ``"CREATE"``, ``"UPDATE"``, ``"DELETE"`` or ``"SKIP"``.
        reason: Human-friendly explanation of the decision.
        desired: Desired attributes (subset used for comparison).
        existing: Existing attributes (subset used for comparison).
    """
    op: Op
    reason: str
    desired: Dict[str, Any] | None = None
    existing: Dict[str, Any] | None = None


def _scalar_equal(desired: Any, existing: Any) -> bool:
    if isinstance(desired, bool) or isinstance(existing, bool):
        return isinstance(desired, bool) and isinstance(existing, bool) and desired == existing
    if desired == existing:
        return True
    # the API sends numbers as strings; manifests often don't
    if isinstance(desired, (int, float, str)) and isinstance(existing, (int, float, str)):
        return str(desired) == str(existing)
    return False


def _matches(desired: Any, existing: Any) -> bool:
    """Subset match: every declared key must match, undeclared keys are ignored."""
    if isinstance(desired, Mapping):
        if not isinstance(existing, Mapping):
            return False
        return all(k in existing and _matches(v, existing[k]) for k, v in desired.items())
    if isinstance(desired, (list, tuple)):
        if not isinstance(existing, (list, tuple)) or len(desired) != len(existing):
            return False
        return all(_matches(d, e) for d, e in zip(desired, existing))
    return _scalar_equal(desired, existing)


def _matches_as_set(desired: Any, existing: Any) -> bool:
    if not isinstance(desired, (list, tuple)) or not isinstance(existing, (list, tuple)):
        return _matches(desired, existing)
    if len(desired) != len(existing):
        return False
    unused = list(existing)
    for d in desired:
        for i, e in enumerate(unused):
            if _matches(d, e):
                del unused[i]
                break
        else:
            return False
    return True


def same_value(desired: Any, existing: Any, *, as_set: bool = False) -> bool:
    if as_set:
        return _matches_as_set(desired, existing)
    return _matches(desired, existing)


def decide(
    desired: Dict[str, Any],
    existing: Dict[str, Any] | None,
    *,
    compare_keys: Iterable[str],
    set_keys: Iterable[str] = (),
) -> Decision:
    """Compute a :class:`Decision` from desired vs existing states.

    The comparison is limited to ``compare_keys`` so write-only and
    server-managed fields can be ignored.

    Returns:
        A :class:`Decision` with ``op`` set to ``"CREATE"``, ``"UPDATE"``, or ``"NOOP"``.
        (``"DELETE"`` comes from :func:`decide_delete`; ``"SKIP"`` is set by the
        driver when validation fails.)
    """
    if existing is None:
        return Decision(op="CREATE", reason="Not tracked", desired=desired)

    sets = set(set_keys)
    changed: List[str] = [
        k for k in compare_keys
        if not same_value(desired.get(k), existing.get(k), as_set=k in sets)
    ]
    if changed:
        return Decision(
            op="UPDATE", reason=f"Field differs: {', '.join(changed)}", desired=desired, existing=existing,
        )

    return Decision(op="NOOP", reason="Identical subset", desired=desired, existing=existing)


def decide_delete(existing: Dict[str, Any] | None) -> Decision:
    """A tracked resource that is no longer declared."""
    return Decision(op="DELETE", reason="No longer declared", existing=existing)
