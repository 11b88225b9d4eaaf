"""
Settings singletons.

Authentication and housekeeping settings exist exactly once per server;
see :class:`~zabbix_reconciler.resources.base.SingletonResource` for the
create/delete semantics.
"""
from __future__ import annotations

from ..core.models import AuthenticationSettings, HousekeepingSettings
from .base import SingletonResource


class AuthenticationSettingsResource(SingletonResource):
    kind = "authentication_settings"
    api_object = "authentication"
    singleton_id = "authentication_settings"
    model_cls = AuthenticationSettings
    write_only_attributes = ("ldap_bind_password",)


class HousekeepingSettingsResource(SingletonResource):
    kind = "housekeeping_settings"
    api_object = "housekeeping"
    singleton_id = "housekeeping_settings"
    model_cls = HousekeepingSettings
    prefix = "hk_"
