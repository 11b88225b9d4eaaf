"""
Local declarative state.

The state file maps each manifest name to the remote object it created::

    {"version": 1,
     "resources": {"web01": {"kind": "host", "id": "10084",
                             "status": "created", "attributes": {...}}}}

Writes are atomic (temp file in the same directory, then ``os.replace``)
so an interrupted run never leaves a truncated file behind.
"""
from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Tuple

from .core.config import ConfigError
from .core.logging_utils import get_logger

log = get_logger(__name__)

STATE_VERSION = 1


class StateStore:
    """JSON-backed ``name -> {kind, id, status, attributes}`` store."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._resources: Dict[str, Dict[str, Any]] = {}

    def load(self) -> "StateStore":
        """Read the state file; a missing file is an empty state.

        Raises:
            ConfigError: If the file exists but is not a valid state file.
        """
        if not self.path.exists():
            log.debug("No state file at %s, starting empty", self.path)
            self._resources = {}
            return self
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            raise ConfigError(f"Cannot read state file {self.path}: {exc}") from exc
        if not isinstance(data, dict) or not isinstance(data.get("resources"), dict):
            raise ConfigError(f"State file {self.path} has no 'resources' mapping")
        if data.get("version") != STATE_VERSION:
            raise ConfigError(f"Unsupported state version {data.get('version')!r} in {self.path}")
        self._resources = data["resources"]
        log.debug("Loaded %d tracked resource(s) from %s", len(self._resources), self.path)
        return self

    def __contains__(self, name: str) -> bool:
        return name in self._resources

    def __len__(self) -> int:
        return len(self._resources)

    def items(self) -> Iterator[Tuple[str, Dict[str, Any]]]:
        return iter(list(self._resources.items()))

    def get(self, name: str) -> Optional[Dict[str, Any]]:
        return self._resources.get(name)

    def put(self, name: str, entry: Dict[str, Any]) -> None:
        self._resources[name] = dict(entry)

    def remove(self, name: str) -> None:
        self._resources.pop(name, None)

    def save(self) -> None:
        """Atomically write the state file."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"version": STATE_VERSION, "resources": self._resources}
        fd, tmp = tempfile.mkstemp(prefix=".zbx-state-", suffix=".tmp", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, indent=2, sort_keys=True, default=str)
            os.replace(tmp, self.path)
        except OSError:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise
        log.debug("Saved %d tracked resource(s) to %s", len(self._resources), self.path)
