from __future__ import annotations

from .errors import OperationCancelled


class CancellationToken:
    """Cooperative cancellation flag checked after every suspension point.

    Cancelling does not interrupt an in-flight network call; the owner of the
    token observes the cancellation when that call returns.
    """

    def __init__(self) -> None:
        self._cancelled = False
        self.reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._cancelled:
            self._cancelled = True
            self.reason = reason

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise OperationCancelled(self.reason or "cancelled")


def check(token: CancellationToken | None) -> None:
    if token is not None:
        token.raise_if_cancelled()
