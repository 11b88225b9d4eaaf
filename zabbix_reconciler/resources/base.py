""" BaseResource: parse -> mutate (with retry) -> read-back -> report.

Concrete resources only implement kind-specific hooks: how declared
attributes become a typed request object, how a fetched API row becomes
declared attributes again, and (rarely) how the remote call is issued.
The retry loop and the read after every mutation live here, as does the
parent lookup some kinds need before delete.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

import requests

from ..codecs.common import Violations
from ..codecs.settings import settings_to_declarative, settings_to_remote
from ..core.config import ReconcileOptions
from ..core.context import CallContext, background
from ..core.errors import Cancelled, IndeterminateState, NotFoundError, ReconcileError
from ..core.logging_utils import get_logger
from ..core.zabbix_client import ApiMethods
from ..utils.diagnostics import DiagnosticBatch
from ..utils.resolvers import ParentageRecord, find_parent
from ..utils.retry import delete_retry, perform_retry

log = get_logger(__name__)


class ResourceState(str, Enum):
    ABSENT = "absent"
    CREATING = "creating"
    CREATED = "created"
    UPDATING = "updating"
    DELETING = "deleting"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class RemoteObjectRef:
    """Remote id plus object kind; primary key of the local state."""
    kind: str
    id: str

    def __str__(self) -> str:
        return f"{self.kind}/{self.id}"


@dataclass
class ResourceResult:
    """Outcome of a create/read/update call."""
    ref: RemoteObjectRef
    attributes: Dict[str, Any]
    diagnostics: DiagnosticBatch = field(default_factory=DiagnosticBatch)
    state: ResourceState = ResourceState.CREATED


class BaseResource:
    """Abstract base class for every object kind.

    Subclasses must set the class attributes below and implement
    :meth:`to_remote`, :meth:`from_api` and :meth:`to_declarative`.

    Class Attributes:
        kind: Declarative kind name (e.g. ``"host"``).
        api_object: JSON-RPC object name (e.g. ``"host"`` for ``host.get``).
        id_field: Id member of the API object (e.g. ``"hostid"``).
        ids_key: Key holding new ids in create/update results.
        get_params: Extra ``<object>.get`` options used by :meth:`read`.
        set_attributes: List attributes whose order is irrelevant.
        write_only_attributes: Attributes the API never returns (secrets);
            they are not compared by the diff engine.
        resolve_parent_on_delete: Resolve the owning host before delete.
    """

    kind: str = "resource"
    api_object: str = ""
    id_field: str = ""
    ids_key: str = ""
    get_params: Mapping[str, Any] = {}
    set_attributes: Tuple[str, ...] = ()
    write_only_attributes: Tuple[str, ...] = ()
    resolve_parent_on_delete: bool = False

    def __init__(self, client: ApiMethods, options: Optional[ReconcileOptions] = None) -> None:
        self.client = client
        self.options = options or ReconcileOptions()

    # ----- hooks to implement --------------------------------------------
    def to_remote(self, attrs: Mapping[str, Any], v: Violations) -> Any:
        """Parse declared attributes into a typed model, reporting into ``v``."""
        raise NotImplementedError

    def from_api(self, row: Mapping[str, Any]) -> Any:
        """Parse a fetched API row into a typed model."""
        raise NotImplementedError

    def to_declarative(self, model: Any, batch: DiagnosticBatch, *, ctx: CallContext) -> Dict[str, Any]:
        """Build declared attributes from a model, one ``batch.set_field`` per field."""
        raise NotImplementedError

    def build_create(self, model: Any) -> Dict[str, Any]:
        return model.to_api()

    def build_update(self, object_id: str, model: Any, previous: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        payload = model.to_api()
        payload[self.id_field] = object_id
        return payload

    def describe(self, model: Any) -> str:
        return getattr(model, "name", "") or getattr(model, "host", "") or ""

    # ----- remote calls (overridable) -------------------------------------
    def fetch(self, object_id: str, ctx: CallContext) -> Mapping[str, Any]:
        return self.client.get_one(self.api_object, self.id_field, object_id, dict(self.get_params), ctx=ctx)

    def remote_create(self, payload: Dict[str, Any], ctx: CallContext) -> str:
        return self.client.create(self.api_object, payload, self.ids_key, ctx=ctx)

    def remote_update(self, object_id: str, payload: Dict[str, Any], ctx: CallContext) -> str:
        return self.client.update(self.api_object, payload, self.ids_key, ctx=ctx)

    def remote_delete(self, object_id: str, parent: Optional[ParentageRecord], ctx: CallContext) -> None:
        self.client.delete(self.api_object, [object_id], ctx=ctx)

    # ----- pipeline -------------------------------------------------------
    def parse(self, attrs: Mapping[str, Any]) -> Any:
        """Parse and validate declared attributes in one pass.

        Raises:
            InvalidConfiguration: Listing every violated invariant.
        """
        v = Violations(legacy_enum_defaults=self.options.legacy_enum_defaults)
        model = self.to_remote(attrs or {}, v)
        v.raise_if_any()
        return model

    def _retry(self, operation, ctx: CallContext, what: str):
        return perform_retry(
            operation,
            self.options.max_attempts,
            ctx=ctx,
            delay_sec=self.options.retry_delay_sec,
            backoff=self.options.retry_backoff,
            what=what,
        )

    def _read_back(self, ref: RemoteObjectRef, ctx: CallContext) -> ResourceResult:
        """Mandatory read after a mutation; failure leaves the state unknown."""
        try:
            return self._retry(lambda: self.read(ref.id, ctx=ctx), ctx, f"READ[{self.kind}] {ref.id}")
        except Cancelled:
            raise
        except (ReconcileError, requests.RequestException) as exc:
            log.error("READ[%s] %s after mutation failed; state unknown: %s", self.kind, ref.id, exc)
            raise IndeterminateState(ref, exc) from exc

    def create(self, attrs: Mapping[str, Any], *, ctx: Optional[CallContext] = None) -> ResourceResult:
        """Create the remote object, then read it back."""
        ctx = ctx or background()
        model = self.parse(attrs)
        payload = self.build_create(model)
        log.info("CREATE[%s] %s", self.kind, self.describe(model))
        new_id = self._retry(lambda: self.remote_create(payload, ctx), ctx, f"CREATE[{self.kind}]")
        ref = RemoteObjectRef(self.kind, str(new_id))
        log.info("CREATE[%s] %s -> id=%s", self.kind, self.describe(model), ref.id)
        return self._read_back(ref, ctx)

    def read(self, object_id: str, *, ctx: Optional[CallContext] = None) -> ResourceResult:
        """Fetch the remote object and decode it.

        Field-level decode failures are collected in the result diagnostics;
        a failing fetch raises.
        """
        ctx = ctx or background()
        row = self.fetch(object_id, ctx)
        model = self.from_api(row)
        batch = DiagnosticBatch()
        attrs = self.to_declarative(model, batch, ctx=ctx)
        if batch.has_errors:
            log.warning("READ[%s] %s: %d field error(s)", self.kind, object_id, len(batch.errors))
        return ResourceResult(RemoteObjectRef(self.kind, str(object_id)), attrs, batch)

    def update(
        self,
        object_id: str,
        attrs: Mapping[str, Any],
        *,
        previous: Optional[Mapping[str, Any]] = None,
        ctx: Optional[CallContext] = None,
    ) -> ResourceResult:
        """Update the remote object, then read it back.

        Args:
            previous: Last known declared attributes, used by kinds that only
                send a sub-object when it changed.
        """
        ctx = ctx or background()
        model = self.parse(attrs)
        payload = self.build_update(object_id, model, previous)
        log.info("UPDATE[%s] %s id=%s", self.kind, self.describe(model), object_id)
        self._retry(lambda: self.remote_update(object_id, payload, ctx), ctx, f"UPDATE[{self.kind}] {object_id}")
        return self._read_back(RemoteObjectRef(self.kind, str(object_id)), ctx)

    def delete(self, object_id: str, *, ctx: Optional[CallContext] = None) -> DiagnosticBatch:
        """Delete the remote object (resolving its parent first if needed)."""
        ctx = ctx or background()
        resolve = None
        if self.resolve_parent_on_delete:
            def resolve(oid: str) -> ParentageRecord:
                return find_parent(self.client, self.kind, oid, ctx=ctx)
        log.info("DELETE[%s] id=%s", self.kind, object_id)
        delete_retry(
            object_id,
            resolve,
            lambda oid, parent: self.remote_delete(oid, parent, ctx),
            max_attempts=self.options.max_attempts,
            ctx=ctx,
            delay_sec=self.options.retry_delay_sec,
            backoff=self.options.retry_backoff,
            what=f"DELETE[{self.kind}] {object_id}",
        )
        return DiagnosticBatch()

    def exists(self, object_id: str, *, ctx: Optional[CallContext] = None) -> bool:
        """True if the object can still be fetched."""
        try:
            self.fetch(object_id, ctx or background())
        except NotFoundError:
            log.debug("%s with id %s doesn't exist", self.kind, object_id)
            return False
        return True


class SingletonResource(BaseResource):
    """A platform-wide settings object: it can only be read and updated.

    Create reads the current settings and then updates them; delete makes
    no remote call and only reports a warning.

    Class Attributes:
        singleton_id: Fixed id recorded in the local state.
        model_cls: Settings dataclass with ``from_api``/``to_api``.
        prefix: API field prefix stripped from declared names (``hk_``).
    """

    singleton_id: str = ""
    model_cls: Any = None
    prefix: str = ""

    def fetch(self, object_id: str, ctx: CallContext) -> Mapping[str, Any]:
        row = self.client.call(f"{self.api_object}.get", {"output": "extend"}, ctx=ctx)
        if not isinstance(row, Mapping):
            raise NotFoundError(self.api_object, object_id)
        return row

    def from_api(self, row: Mapping[str, Any]) -> Any:
        return self.model_cls.from_api(row)

    def to_remote(self, attrs: Mapping[str, Any], v: Violations) -> Dict[str, Any]:
        """Sparse payload: only declared settings are sent."""
        return settings_to_remote(attrs, self.model_cls, self.prefix, v)

    def to_declarative(self, model: Any, batch: DiagnosticBatch, *, ctx: CallContext) -> Dict[str, Any]:
        return settings_to_declarative(model, self.prefix, self.write_only_attributes, batch)

    def build_update(self, object_id: str, model: Any, previous: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        return dict(model)

    def describe(self, model: Any) -> str:
        return self.singleton_id

    def remote_update(self, object_id: str, payload: Dict[str, Any], ctx: CallContext) -> str:
        self.client.call(f"{self.api_object}.update", payload, ctx=ctx)
        return self.singleton_id

    def _notice(self, what: str) -> str:
        return (
            f"The {self.kind} resource is a singleton that can only be read and updated, "
            f"this will {what}"
        )

    def create(self, attrs: Mapping[str, Any], *, ctx: Optional[CallContext] = None) -> ResourceResult:
        ctx = ctx or background()
        self.read(self.singleton_id, ctx=ctx)
        result = self.update(self.singleton_id, attrs, ctx=ctx)
        notice = self._notice("read the resource into local state and update remote values to match")
        log.warning("CREATE[%s] %s", self.kind, notice)
        result.diagnostics.add_warning(notice)
        return result

    def read(self, object_id: str, *, ctx: Optional[CallContext] = None) -> ResourceResult:
        return super().read(self.singleton_id, ctx=ctx)

    def delete(self, object_id: str, *, ctx: Optional[CallContext] = None) -> DiagnosticBatch:
        notice = self._notice("only delete the resource from local state")
        log.warning("DELETE[%s] %s", self.kind, notice)
        batch = DiagnosticBatch()
        batch.add_warning(notice)
        return batch
