"""
Configuration loader for zabbix-reconciler.

This module resolves environment configuration and parses the desired-state
manifest (YAML).

Key rules:
  * `.env` provides ZBX_API_URL and ZBX_API_TOKEN (required)
  * retry/TLS/enum behaviour is tuned through optional ZBX_* variables
  * the manifest has a top-level `resources` list of `{name, kind, attributes}`
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import yaml
from dotenv import find_dotenv, load_dotenv

from .logging_utils import get_logger

log = get_logger(__name__)

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


class ConfigError(Exception):
    """Raised when runtime configuration cannot be resolved."""
    pass


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    val = raw.strip().lower()
    if val in _TRUE:
        return True
    if val in _FALSE:
        return False
    raise ConfigError(f"{name} must be a boolean (true/false), got {raw!r}")


def _env_number(name: str, default: float, cast=float):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw.strip())
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from exc


@dataclass(frozen=True)
class ReconcileOptions:
    """Behaviour knobs shared by every resource handler.

    Attributes:
        max_attempts: Upper bound on mutation attempts (create/update/delete).
        retry_delay_sec: Sleep before the second attempt.
        retry_backoff: Multiplier applied to the delay after each attempt.
        legacy_enum_defaults: When True, tables flagged as legacy map an
            unknown token to their zero code (with a WARNING) instead of
            raising ``UnknownToken``.
    """
    max_attempts: int = 5
    retry_delay_sec: float = 1.0
    retry_backoff: float = 2.0
    legacy_enum_defaults: bool = False

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ConfigError("max_attempts must be >= 1")
        if self.retry_delay_sec < 0 or self.retry_backoff < 1:
            raise ConfigError("retry_delay_sec must be >= 0 and retry_backoff >= 1")

    @classmethod
    def from_env(cls) -> "ReconcileOptions":
        return cls(
            max_attempts=_env_number("ZBX_RETRY_ATTEMPTS", 5, int),
            retry_delay_sec=_env_number("ZBX_RETRY_DELAY_SEC", 1.0),
            retry_backoff=_env_number("ZBX_RETRY_BACKOFF", 2.0),
            legacy_enum_defaults=_env_bool("ZBX_LEGACY_ENUM_DEFAULTS", False),
        )


@dataclass(frozen=True)
class ResourceDecl:
    """One declared resource from the manifest."""
    name: str
    kind: str
    attributes: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Config:
    """Runtime configuration resolved from `.env`."""
    api_url: str
    api_token: str
    manifest_file: Optional[Path] = None
    state_file: Path = Path("./zbx-state.json")
    verify_tls: bool = True
    timeout_sec: float = 30.0
    options: ReconcileOptions = field(default_factory=ReconcileOptions)

    @classmethod
    def from_env(cls) -> "Config":
        """Load `.env` and build a :class:`Config` instance.

        Raises:
            ConfigError: If required environment variables are missing or
                an optional one cannot be parsed.
        """
        env_path = find_dotenv(usecwd=True) or ""
        load_dotenv(env_path, override=True)
        api_url = os.getenv("ZBX_API_URL")
        api_token = os.getenv("ZBX_API_TOKEN")

        missing = [k for k, v in {
            "ZBX_API_URL": api_url,
            "ZBX_API_TOKEN": api_token,
        }.items() if not v]
        if missing:
            hint = (
                "Create a .env at the repo root or export them in your shell. "
                "Example:\n"
                "  ZBX_API_URL=https://zabbix.example.local\n"
                "  ZBX_API_TOKEN=***\n"
                "  ZBX_MANIFEST_FILE=./zabbix.yml\n"
            )
            raise ConfigError(
                "Missing required environment variables: "
                + ", ".join(missing)
                + ". " + hint
            )

        manifest = os.getenv("ZBX_MANIFEST_FILE")
        return cls(
            api_url=api_url,
            api_token=api_token,
            manifest_file=Path(manifest) if manifest else None,
            state_file=Path(os.getenv("ZBX_STATE_FILE") or "./zbx-state.json"),
            verify_tls=_env_bool("ZBX_VERIFY_TLS", True),
            timeout_sec=_env_number("ZBX_TIMEOUT_SEC", 30.0),
            options=ReconcileOptions.from_env(),
        )


def load_manifest(path: Path | str, *, known_kinds: Optional[Iterable[str]] = None) -> List[ResourceDecl]:
    """Read and validate the desired-state YAML.

    Args:
        path: Manifest file.
        known_kinds: If given, every declared ``kind`` must be one of these.

    Raises:
        ConfigError: On unreadable files, missing keys, duplicate names or
            unknown kinds. All problems are reported together.
    """
    p = Path(path)
    if not p.is_file():
        raise ConfigError(f"Manifest not found: {p}")
    with open(p, "r", encoding="utf-8") as fh:
        try:
            data = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {p}: {exc}") from exc

    if not isinstance(data, dict) or not isinstance(data.get("resources"), list):
        raise ConfigError(f"{p} must contain a top-level 'resources' list")

    kinds = set(known_kinds) if known_kinds is not None else None
    problems: List[str] = []
    seen: Dict[str, int] = {}
    out: List[ResourceDecl] = []
    for idx, block in enumerate(data["resources"]):
        where = f"resources[{idx}]"
        if not isinstance(block, dict):
            problems.append(f"{where}: must be a mapping")
            continue
        name, kind = block.get("name"), block.get("kind")
        attrs = block.get("attributes") or {}
        if not name:
            problems.append(f"{where}: missing 'name'")
        if not kind:
            problems.append(f"{where}: missing 'kind'")
        elif kinds is not None and kind not in kinds:
            problems.append(f"{where}: unknown kind {kind!r}")
        if not isinstance(attrs, dict):
            problems.append(f"{where}: 'attributes' must be a mapping")
            attrs = {}
        if name:
            key = str(name)
            if key in seen:
                problems.append(f"{where}: duplicate name {key!r} (first at resources[{seen[key]}])")
            seen.setdefault(key, idx)
        out.append(ResourceDecl(name=str(name or ""), kind=str(kind or ""), attributes=attrs))

    if problems:
        raise ConfigError("Invalid manifest " + str(p) + ": " + "; ".join(problems))
    log.debug("Loaded %d resource declaration(s) from %s", len(out), p)
    return out
