"""Transient status banner.

State machine: Idle → Pending → {Success, Failure} → (timeout) → Idle.

Expiry is evaluated lazily against the clock on every read, so a status set at
T with a 5000 ms timeout reads as Idle from T+5000 ms, and any newer write
restarts the timeout relative to its own set time. The severity tag replaces
inspecting message text for words like "Error".
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from supplychain.core.settings import DEFAULT_STATUS_CLEAR_MS


logger = logging.getLogger(__name__)


class StatusKind(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"

    @property
    def severity(self) -> str:
        return _SEVERITY[self]


_SEVERITY = {
    StatusKind.IDLE: "none",
    StatusKind.PENDING: "info",
    StatusKind.SUCCESS: "success",
    StatusKind.FAILURE: "error",
}


@dataclass(frozen=True)
class TransactionStatus:
    kind: StatusKind
    message: str = ""
    set_at: float = 0.0
    # None: sticky until the next write.
    expires_at: Optional[float] = None

    @property
    def severity(self) -> str:
        return self.kind.severity

    @property
    def is_error(self) -> bool:
        return self.kind is StatusKind.FAILURE

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "severity": self.severity,
            "message": self.message,
        }


IDLE = TransactionStatus(kind=StatusKind.IDLE)

StatusListener = Callable[[TransactionStatus], None]


class StatusBanner:
    def __init__(
        self,
        *,
        clear_after_ms: int = DEFAULT_STATUS_CLEAR_MS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.clear_after_ms = clear_after_ms
        self._clock = clock
        self._status = IDLE
        self._listeners: list[StatusListener] = []

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def set(
        self,
        kind: StatusKind,
        message: str,
        *,
        auto_clear: bool = True,
        timeout_ms: int | None = None,
    ) -> TransactionStatus:
        now = self._clock()
        expires_at = None
        if auto_clear and kind is not StatusKind.IDLE:
            expires_at = now + (self.clear_after_ms if timeout_ms is None else timeout_ms) / 1000.0
        status = TransactionStatus(kind=kind, message=message, set_at=now, expires_at=expires_at)
        self._publish(status)
        return status

    def _publish(self, status: TransactionStatus) -> None:
        self._status = status
        for listener in list(self._listeners):
            try:
                listener(status)
            except Exception as e:
                logger.warning("status_listener_failed", extra={"error": str(e)})

    def pending(self, message: str, *, auto_clear: bool = True) -> TransactionStatus:
        return self.set(StatusKind.PENDING, message, auto_clear=auto_clear)

    def success(self, message: str, *, auto_clear: bool = True) -> TransactionStatus:
        return self.set(StatusKind.SUCCESS, message, auto_clear=auto_clear)

    def failure(self, message: str, *, auto_clear: bool = True) -> TransactionStatus:
        return self.set(StatusKind.FAILURE, message, auto_clear=auto_clear)

    def clear(self) -> None:
        if self._status is not IDLE:
            self._publish(IDLE)

    def current(self) -> TransactionStatus:
        """Latest status; an expired one turns Idle here and listeners are told so."""

        status = self._status
        if status.expires_at is not None and self._clock() >= status.expires_at:
            self._publish(IDLE)
            return IDLE
        return status
