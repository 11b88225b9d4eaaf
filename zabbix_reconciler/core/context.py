"""
Cancellation and deadline context passed down to every remote call.

A :class:`CallContext` is created by whoever drives an operation and handed
to the client, the resolvers and the retry loop. Waiting goes through
:meth:`CallContext.wait` so a cancel interrupts a retry sleep immediately.
"""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Optional

from .errors import Cancelled


@dataclass
class CallContext:
    """Deadline + cancel flag shared by one logical operation.

    Attributes:
        deadline: Absolute ``time.monotonic()`` value after which calls fail.
        cancel_event: Set it (or call :meth:`cancel`) to abort.
    """
    deadline: Optional[float] = None
    cancel_event: threading.Event = field(default_factory=threading.Event)

    @classmethod
    def with_timeout(cls, seconds: float) -> "CallContext":
        return cls(deadline=time.monotonic() + float(seconds))

    def cancel(self) -> None:
        self.cancel_event.set()

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline (``None`` when unbounded)."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def cancelled(self) -> bool:
        if self.cancel_event.is_set():
            return True
        left = self.remaining()
        return left is not None and left <= 0.0

    def check(self, what: str = "operation") -> None:
        """Raise :class:`Cancelled` if the context is no longer live."""
        if self.cancel_event.is_set():
            raise Cancelled(f"{what} cancelled")
        left = self.remaining()
        if left is not None and left <= 0.0:
            raise Cancelled(f"{what} deadline exceeded")

    def wait(self, seconds: float) -> None:
        """Block for ``seconds`` unless cancelled first (then raise)."""
        left = self.remaining()
        if left is not None:
            seconds = min(seconds, left)
        if seconds > 0:
            self.cancel_event.wait(seconds)
        self.check("wait")


def background() -> CallContext:
    """A context that never expires and is never cancelled."""
    return CallContext()
