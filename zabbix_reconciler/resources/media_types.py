"""
Media type resource (email, script and webhook variants).

Common attributes: ``name`` (required), ``type`` (email | script | webhook),
``enabled`` (status 0 / 1) and ``description``. Variant attributes:

* email: ``smtp_server``, ``smtp_port``, ``smtp_helo``, ``smtp_from_email``,
  ``smtp_auth_user``, ``smtp_auth_password`` (write-only);
* script: ``exec_path``, ``exec_parameters`` (list, stored newline
  terminated by the API);
* webhook: ``script``, ``timeout``, ``parameter`` ([{name, value}]).
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping

from ..codecs.common import AttrReader, Violations, webhook_params_to_declarative, webhook_params_to_remote
from ..core.context import CallContext
from ..core.logging_utils import get_logger
from ..core.models import MediaType
from ..utils.diagnostics import DiagnosticBatch
from ..utils.enums import MEDIA_TYPE_KINDS
from .base import BaseResource

log = get_logger(__name__)

EMAIL = MEDIA_TYPE_KINDS.encode("email")
SCRIPT = MEDIA_TYPE_KINDS.encode("script")
WEBHOOK = MEDIA_TYPE_KINDS.encode("webhook")

_VARIANT_ATTRS = {
    EMAIL: ("smtp_server", "smtp_port", "smtp_helo", "smtp_from_email", "smtp_auth_user", "smtp_auth_password"),
    SCRIPT: ("exec_path", "exec_parameters"),
    WEBHOOK: ("script", "timeout", "parameter"),
}


def join_exec_params(params: List[str]) -> str:
    """Script parameters as the API stores them: one per line, newline terminated."""
    return "\n".join(params) + "\n" if params else ""


def split_exec_params(value: str) -> List[str]:
    return [p for p in (value or "").split("\n") if p != ""]


class MediaTypeResource(BaseResource):
    kind = "media_type"
    api_object = "mediatype"
    id_field = "mediatypeid"
    ids_key = "mediatypeids"
    write_only_attributes = ("smtp_auth_password",)

    def to_remote(self, attrs: Mapping[str, Any], v: Violations) -> MediaType:
        r = AttrReader(attrs, v)
        kind = r.enum("type", MEDIA_TYPE_KINDS, required=True)
        if "type" in r.attrs and kind not in _VARIANT_ATTRS:
            v.add("type", f"unsupported media type {r.text('type')!r}; use email, script or webhook")
        allowed = _VARIANT_ATTRS.get(kind, ())
        for key in r.attrs:
            if any(key in names for names in _VARIANT_ATTRS.values()) and key not in allowed:
                v.add(key, f"not valid for media type {r.text('type')!r}")

        fields: Dict[str, Any] = {
            "name": r.text("name", required=True),
            "type": kind,
            "status": 0 if r.flag("enabled", True) else 1,
            "description": r.text("description"),
        }
        if kind == EMAIL:
            user = r.text("smtp_auth_user")
            fields.update(
                smtp_server=r.text("smtp_server", required=True),
                smtp_port=r.number("smtp_port", 25),
                smtp_helo=r.text("smtp_helo", required=True),
                smtp_email=r.text("smtp_from_email", required=True),
                smtp_authentication=1 if user else 0,
                username=user,
                passwd=r.text("smtp_auth_password"),
            )
        elif kind == SCRIPT:
            fields.update(
                exec_path=r.text("exec_path", required=True),
                exec_params=join_exec_params(r.strings("exec_parameters")),
            )
        elif kind == WEBHOOK:
            fields.update(
                script=r.text("script", required=True),
                timeout=r.text("timeout", "30s"),
                parameters=webhook_params_to_remote(r.items("parameter"), v=v, path="parameter"),
            )
        return MediaType(**fields)

    def from_api(self, row: Mapping[str, Any]) -> MediaType:
        return MediaType.from_api(row)

    def to_declarative(self, model: MediaType, batch: DiagnosticBatch, *, ctx: CallContext) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        batch.set_field(out, "name", lambda: model.name)
        batch.set_field(out, "type", lambda: MEDIA_TYPE_KINDS.decode(model.type))
        batch.set_field(out, "enabled", lambda: model.status == 0)
        batch.set_field(out, "description", lambda: model.description)
        if model.type == EMAIL:
            batch.set_field(out, "smtp_server", lambda: model.smtp_server)
            batch.set_field(out, "smtp_port", lambda: model.smtp_port)
            batch.set_field(out, "smtp_helo", lambda: model.smtp_helo)
            batch.set_field(out, "smtp_from_email", lambda: model.smtp_email)
            batch.set_field(out, "smtp_auth_user", lambda: model.username)
        elif model.type == SCRIPT:
            batch.set_field(out, "exec_path", lambda: model.exec_path)
            batch.set_field(out, "exec_parameters", lambda: split_exec_params(model.exec_params))
        elif model.type == WEBHOOK:
            batch.set_field(out, "script", lambda: model.script)
            batch.set_field(out, "timeout", lambda: model.timeout)
            batch.set_field(out, "parameter", lambda: webhook_params_to_declarative(model.parameters))
        return out
