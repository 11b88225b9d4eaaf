# zabbix_reconciler/main.py
"""CLI: plan / apply / destroy / read against a Zabbix server.

The driver is sequential: resources are created and updated
in manifest order, deletions run afterwards in reverse tracking order, and
no dependency analysis is performed. The local state file is saved after
every successful step so an interrupted run keeps its progress.
"""
from __future__ import annotations

import argparse
import json
import os
import signal
import sys
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

import requests

from .core.config import Config, ConfigError, ReconcileOptions, ResourceDecl, load_manifest
from .core.context import CallContext
from .core.errors import (
    ApiError,
    Cancelled,
    IndeterminateState,
    InvalidConfiguration,
    NotFoundError,
    ReconcileError,
)
from .core.logging_utils import get_logger, resource_logger, setup_logging
from .core.zabbix_client import ApiMethods, ClientOptions, ZabbixClient
from .resources.base import ResourceState
from .resources.lookups import expand_lookups
from .resources.registry import build_resource, known_kinds
from .state import StateStore
from .utils.diff_engine import Decision, decide, decide_delete
from .utils.reporting import print_rows

EXIT_OK = 0
EXIT_GENERIC_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_VALIDATION_ERROR = 3
EXIT_NETWORK_ERROR = 4
EXIT_PARTIAL_FAILURE = 5

log = get_logger(__name__)


class PartialFailure(Exception):
    """Some rows failed; the others were applied."""
    pass


@dataclass
class PlannedChange:
    """One row of a plan."""
    name: str
    kind: str
    decision: Decision
    object_id: str = ""
    attributes: Dict[str, Any] = field(default_factory=dict)
    error: str = ""

    def row(self, **extra: Any) -> Dict[str, Any]:
        out = {
            "name": self.name,
            "kind": self.kind,
            "id": self.object_id,
            "action": self.decision.op,
            "reason": self.decision.reason,
            "error": self.error,
        }
        out.update(extra)
        return out


def _prepare_context(args) -> Tuple[ZabbixClient, Config]:
    """Resolve environment/config and return runtime artifacts."""
    # --manifest only applies when ZBX_MANIFEST_FILE is not set
    if getattr(args, "manifest", None) and not os.getenv("ZBX_MANIFEST_FILE"):
        os.environ["ZBX_MANIFEST_FILE"] = args.manifest

    try:
        cfg = Config.from_env()
        setup_logging(run="zbx", action=args.command)
    except ConfigError as exc:
        log.error("Configuration error: %s", exc)
        raise

    if getattr(args, "state", None):
        cfg.state_file = Path(args.state)
    client = ZabbixClient(
        cfg.api_url,
        cfg.api_token,
        options=ClientOptions(verify=cfg.verify_tls and not args.no_verify, timeout_sec=cfg.timeout_sec),
    )
    return client, cfg


@contextmanager
def _cancel_on_sigint(ctx: CallContext) -> Iterator[CallContext]:
    """Turn Ctrl-C into a cooperative cancellation of ``ctx``."""
    def handler(signum, frame):
        log.warning("Interrupted; finishing the current call then stopping")
        ctx.cancel()

    previous = signal.signal(signal.SIGINT, handler)
    try:
        yield ctx
    finally:
        signal.signal(signal.SIGINT, previous)


# ----------------------------- Planning --------------------------------------

def plan_changes(
    decls: List[ResourceDecl],
    state: StateStore,
    client: ApiMethods,
    options: ReconcileOptions,
    *,
    ctx: Optional[CallContext] = None,
) -> List[PlannedChange]:
    """Compare the manifest with the tracked remote objects.

    Declared resources come first in manifest order; tracked resources that
    are no longer declared follow as DELETE rows in reverse tracking order.

    Raises:
        InvalidConfiguration: If any declared resource fails validation
            (every failing resource is listed).
    """
    ctx = ctx or CallContext()
    changes: List[PlannedChange] = []
    invalid: List[str] = []

    for decl in decls:
        handler = build_resource(decl.kind, client, options)
        rlog = resource_logger(log, decl.kind, decl.name)
        try:
            desired = expand_lookups(decl.attributes, client, ctx=ctx)
        except (InvalidConfiguration, NotFoundError) as exc:
            invalid.append(f"{decl.name}: lookup failed: {exc}")
            continue
        try:
            handler.parse(desired)
        except InvalidConfiguration as exc:
            invalid.extend(f"{decl.name}: {v}" for v in exc.violations)
            continue

        entry = state.get(decl.name)
        if entry is None:
            changes.append(PlannedChange(decl.name, decl.kind, decide(desired, None, compare_keys=[]),
                                         attributes=desired))
            continue
        if entry.get("kind") != decl.kind:
            changes.append(PlannedChange(
                decl.name, decl.kind,
                Decision(op="SKIP", reason=f"Tracked as {entry.get('kind')}; destroy it first"),
                object_id=str(entry.get("id", "")), attributes=desired,
            ))
            continue

        object_id = str(entry.get("id", ""))
        try:
            current = handler.read(object_id, ctx=ctx)
        except NotFoundError:
            rlog.warning("id %s no longer exists remotely; it will be recreated", object_id)
            changes.append(PlannedChange(
                decl.name, decl.kind, Decision(op="CREATE", reason="Tracked object missing remotely", desired=desired),
                attributes=desired,
            ))
            continue
        for diag in current.diagnostics:
            rlog.warning("%s: %s", diag.attribute or "-", diag.summary)
        compare = [k for k in desired if k not in handler.write_only_attributes]
        decision = decide(desired, current.attributes, compare_keys=compare, set_keys=handler.set_attributes)
        changes.append(PlannedChange(decl.name, decl.kind, decision, object_id=object_id, attributes=desired))

    if invalid:
        raise InvalidConfiguration(invalid)

    declared = {d.name for d in decls}
    orphans = [(name, entry) for name, entry in state.items() if name not in declared]
    for name, entry in reversed(orphans):
        changes.append(PlannedChange(
            name, str(entry.get("kind", "")), decide_delete(entry.get("attributes")),
            object_id=str(entry.get("id", "")),
        ))
    return changes


# ----------------------------- Applying --------------------------------------

def _track(state: StateStore, change: PlannedChange, object_id: str, status: ResourceState) -> None:
    state.put(change.name, {
        "kind": change.kind,
        "id": object_id,
        "status": status.value,
        "attributes": change.attributes,
    })
    state.save()


def apply_changes(
    changes: List[PlannedChange],
    state: StateStore,
    client: ApiMethods,
    options: ReconcileOptions,
    *,
    ctx: Optional[CallContext] = None,
) -> List[Dict[str, Any]]:
    """Execute a plan row by row; failures are reported, not raised.

    Raises:
        Cancelled: If ``ctx`` is cancelled (remaining rows are not run).
    """
    ctx = ctx or CallContext()
    rows: List[Dict[str, Any]] = []
    for change in changes:
        op = change.decision.op
        if op in ("NOOP", "SKIP"):
            entry = state.get(change.name)
            if op == "NOOP" and entry and entry.get("status") != ResourceState.CREATED.value:
                # a previously indeterminate object turned out to match
                _track(state, change, change.object_id, ResourceState.CREATED)
            rows.append(change.row(status="Unchanged" if op == "NOOP" else "Skipped"))
            continue

        handler = build_resource(change.kind, client, options)
        rlog = resource_logger(log, change.kind, change.name)
        warnings: List[str] = []
        try:
            if op == "CREATE":
                result = handler.create(change.attributes, ctx=ctx)
                change.object_id = result.ref.id
                _track(state, change, result.ref.id, ResourceState.CREATED)
                warnings = [d.summary for d in result.diagnostics.warnings]
            elif op == "UPDATE":
                previous = (state.get(change.name) or {}).get("attributes")
                result = handler.update(change.object_id, change.attributes, previous=previous, ctx=ctx)
                _track(state, change, change.object_id, ResourceState.CREATED)
                warnings = [d.summary for d in result.diagnostics.warnings]
            elif op == "DELETE":
                batch = handler.delete(change.object_id, ctx=ctx)
                state.remove(change.name)
                state.save()
                warnings = [d.summary for d in batch.warnings]
            rows.append(change.row(status="Success", warnings=warnings))
        except Cancelled:
            raise
        except IndeterminateState as exc:
            _track(state, change, str(exc.ref.id), ResourceState.UNKNOWN)
            rlog.error("%s: %s", op, exc)
            rows.append(change.row(status="Failed", error=str(exc)))
        except (ReconcileError, requests.RequestException) as exc:
            rlog.error("%s failed: %s", op, exc)
            rows.append(change.row(status="Failed", error=str(exc)))
    return rows


def destroy_changes(state: StateStore) -> List[PlannedChange]:
    """DELETE rows for every tracked resource, newest first."""
    return [
        PlannedChange(name, str(entry.get("kind", "")), decide_delete(entry.get("attributes")),
                      object_id=str(entry.get("id", "")))
        for name, entry in reversed(list(state.items()))
    ]


# ----------------------------- Commands --------------------------------------

def _load(args, cfg: Config) -> Tuple[List[ResourceDecl], StateStore]:
    manifest = cfg.manifest_file
    if manifest is None:
        raise ConfigError("No manifest given. Hint: pass --manifest or set ZBX_MANIFEST_FILE.")
    decls = load_manifest(manifest, known_kinds=known_kinds())
    return decls, StateStore(cfg.state_file).load()


def _finish(rows: List[Dict[str, Any]], fmt: str) -> None:
    print_rows(rows, fmt)
    if any(r.get("status") == "Failed" for r in rows):
        raise PartialFailure("One or more operations failed; see rows above.")


def cmd_plan(args) -> None:
    client, cfg = _prepare_context(args)
    decls, state = _load(args, cfg)
    with _cancel_on_sigint(CallContext()) as ctx:
        changes = plan_changes(decls, state, client, cfg.options, ctx=ctx)
    print_rows([c.row() for c in changes], args.format)


def cmd_apply(args) -> None:
    client, cfg = _prepare_context(args)
    decls, state = _load(args, cfg)
    with _cancel_on_sigint(CallContext()) as ctx:
        changes = plan_changes(decls, state, client, cfg.options, ctx=ctx)
        rows = apply_changes(changes, state, client, cfg.options, ctx=ctx)
    _finish(rows, args.format)


def cmd_destroy(args) -> None:
    client, cfg = _prepare_context(args)
    state = StateStore(cfg.state_file).load()
    with _cancel_on_sigint(CallContext()) as ctx:
        rows = apply_changes(destroy_changes(state), state, client, cfg.options, ctx=ctx)
    _finish(rows, args.format)


def cmd_read(args) -> None:
    client, cfg = _prepare_context(args)
    handler = build_resource(args.kind, client, cfg.options)
    result = handler.read(args.id, ctx=CallContext())
    print(json.dumps({
        "kind": result.ref.kind,
        "id": result.ref.id,
        "attributes": result.attributes,
        "diagnostics": result.diagnostics.as_list(),
    }, indent=2, sort_keys=True))
    if result.diagnostics.has_errors:
        raise PartialFailure(f"{len(result.diagnostics.errors)} attribute(s) could not be decoded")


def _run(func, args) -> None:
    """Map failures to exit codes."""
    try:
        func(args)
    except ConfigError as exc:
        log.error("Configuration error: %s", exc)
        sys.exit(EXIT_CONFIG_ERROR)
    except InvalidConfiguration as exc:
        for violation in exc.violations:
            log.error("Invalid configuration: %s", violation)
        sys.exit(EXIT_VALIDATION_ERROR)
    except (ApiError, requests.RequestException) as exc:
        log.error("Network/API error: %s", exc)
        sys.exit(EXIT_NETWORK_ERROR)
    except PartialFailure as exc:
        log.error("%s", exc)
        sys.exit(EXIT_PARTIAL_FAILURE)
    except Cancelled as exc:
        log.error("Cancelled: %s", exc)
        sys.exit(EXIT_GENERIC_ERROR)
    except ReconcileError as exc:
        log.error("Reconcile error (%s): %s", type(exc).__name__, exc)
        sys.exit(EXIT_GENERIC_ERROR)


# ---------------------------- Argument parser -------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Zabbix declarative reconciler")
    parser.add_argument(
        "--manifest",
        help="(Optional) Fallback if ZBX_MANIFEST_FILE is not set in the environment",
    )
    parser.add_argument("--state", help="State file (overrides ZBX_STATE_FILE)")
    parser.add_argument("--no-verify", action="store_true", help="Disable SSL verification")
    parser.add_argument("--format", choices=["table", "json"], default="table", help="Output format")

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("plan", help="Show what apply would change").set_defaults(func=cmd_plan)
    subparsers.add_parser("apply", help="Create/update/delete to match the manifest").set_defaults(func=cmd_apply)
    subparsers.add_parser("destroy", help="Delete every tracked resource").set_defaults(func=cmd_destroy)

    sp = subparsers.add_parser("read", help="Print the decoded attributes of one remote object")
    sp.add_argument("--kind", required=True, choices=sorted(known_kinds()), help="Object kind")
    sp.add_argument("--id", required=True, help="Remote object id")
    sp.set_defaults(func=cmd_read)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        _run(args.func, args)
        return EXIT_OK
    except SystemExit as e:  # explicit exits above
        return int(e.code) if isinstance(e.code, int) else EXIT_GENERIC_ERROR
    except Exception as exc:  # pragma: no cover
        log.error("Fatal error: %s", exc, exc_info=True)
        return EXIT_GENERIC_ERROR


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
