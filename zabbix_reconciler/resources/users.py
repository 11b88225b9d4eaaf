"""User, user group and role resources."""
from __future__ import annotations

from typing import Any, Dict, Mapping

from ..codecs.common import AttrReader, Violations, user_medias_to_declarative, user_medias_to_remote
from ..core.context import CallContext
from ..core.logging_utils import get_logger
from ..core.models import Role, User, UserGroup
from ..utils.diagnostics import DiagnosticBatch
from ..utils.enums import ROLE_TYPES
from .base import BaseResource

log = get_logger(__name__)


class UserResource(BaseResource):
    """Zabbix user.

    ``password`` is write-only: the API never returns it, so it is neither
    read back nor compared.
    """

    kind = "user"
    api_object = "user"
    id_field = "userid"
    ids_key = "userids"
    get_params = {"selectUsrgrps": ["usrgrpid"], "selectMedias": "extend"}
    set_attributes = ("groups",)
    write_only_attributes = ("password",)

    def to_remote(self, attrs: Mapping[str, Any], v: Violations) -> User:
        r = AttrReader(attrs, v)
        groups = r.strings("groups", required=True)
        if "groups" in r.attrs and not groups:
            v.add("groups", "at least one user group is required")
        rows_per_page = r.number("rows_per_page", 50)
        if rows_per_page < 1:
            v.add("rows_per_page", f"must be positive, got {rows_per_page}")
        return User(
            username=r.text("username", required=True),
            roleid=r.text("role_id", required=True),
            name=r.text("name"),
            surname=r.text("surname"),
            groups=groups,
            medias=user_medias_to_remote(r.items("medias"), v=v, path="medias"),
            theme=r.text("theme", "default"),
            lang=r.text("lang", "default"),
            rows_per_page=rows_per_page,
            passwd=r.text("password"),
        )

    def from_api(self, row: Mapping[str, Any]) -> User:
        return User.from_api(row)

    def to_declarative(self, model: User, batch: DiagnosticBatch, *, ctx: CallContext) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        batch.set_field(out, "username", lambda: model.username)
        batch.set_field(out, "role_id", lambda: model.roleid)
        batch.set_field(out, "name", lambda: model.name)
        batch.set_field(out, "surname", lambda: model.surname)
        batch.set_field(out, "groups", lambda: list(model.groups))
        batch.set_field(out, "medias", lambda: user_medias_to_declarative(model.medias))
        batch.set_field(out, "theme", lambda: model.theme)
        batch.set_field(out, "lang", lambda: model.lang)
        batch.set_field(out, "rows_per_page", lambda: model.rows_per_page)
        return out

    def describe(self, model: User) -> str:
        return model.username


class UserGroupResource(BaseResource):
    kind = "user_group"
    api_object = "usergroup"
    id_field = "usrgrpid"
    ids_key = "usrgrpids"

    def to_remote(self, attrs: Mapping[str, Any], v: Violations) -> UserGroup:
        r = AttrReader(attrs, v)
        gui_access = r.number("gui_access", 0)
        if not 0 <= gui_access <= 4:
            v.add("gui_access", f"must be between 0 and 4, got {gui_access}")
        return UserGroup(
            name=r.text("name", required=True),
            gui_access=gui_access,
            debug_mode=1 if r.flag("debug_mode", False) else 0,
            users_status=0 if r.flag("enabled", True) else 1,
        )

    def from_api(self, row: Mapping[str, Any]) -> UserGroup:
        return UserGroup.from_api(row)

    def to_declarative(self, model: UserGroup, batch: DiagnosticBatch, *, ctx: CallContext) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        batch.set_field(out, "name", lambda: model.name)
        batch.set_field(out, "gui_access", lambda: model.gui_access)
        batch.set_field(out, "debug_mode", lambda: model.debug_mode != 0)
        batch.set_field(out, "enabled", lambda: model.users_status == 0)
        return out


class RoleResource(BaseResource):
    """User role. ``read_only`` is reported by the API and never written."""

    kind = "role"
    api_object = "role"
    id_field = "roleid"
    ids_key = "roleids"

    def to_remote(self, attrs: Mapping[str, Any], v: Violations) -> Role:
        r = AttrReader(attrs, v)
        if "read_only" in r.attrs:
            v.add("read_only", "is computed by the server and cannot be set")
        return Role(name=r.text("name", required=True), type=r.enum("type", ROLE_TYPES, required=True))

    def from_api(self, row: Mapping[str, Any]) -> Role:
        return Role.from_api(row)

    def to_declarative(self, model: Role, batch: DiagnosticBatch, *, ctx: CallContext) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        batch.set_field(out, "name", lambda: model.name)
        batch.set_field(out, "type", lambda: ROLE_TYPES.decode(model.type))
        batch.set_field(out, "read_only", lambda: model.readonly != 0)
        return out
