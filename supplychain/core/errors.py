"""Error taxonomy shared by every layer.

- ValidationError: rejected locally, before any network call
- NotConnectedError: a signer is required but none is active
- LedgerCallError: unreachable provider, reverted call or failed receipt
- PartialDataError: a single registry entry could not be read
- OperationCancelled: the caller's cancellation token fired
"""

from __future__ import annotations


class SupplyChainError(Exception):
    """Base class for all errors raised by this package."""


class ValidationError(SupplyChainError, ValueError):
    pass


class NotConnectedError(SupplyChainError):
    def __init__(self, message: str = "Connect wallet first") -> None:
        super().__init__(message)


class LedgerCallError(SupplyChainError):
    def __init__(self, message: str, *, function: str | None = None) -> None:
        super().__init__(message)
        self.function = function


class PartialDataError(SupplyChainError):
    def __init__(self, product_id: int, reason: str) -> None:
        super().__init__(f"product {product_id} unreadable: {reason}")
        self.product_id = product_id
        self.reason = reason


class OperationCancelled(SupplyChainError):
    pass


def extract_error_message(exc: BaseException) -> str:
    """Best-effort human readable message for a failed call.

    web3 revert errors carry the revert reason in ``message``; everything else
    falls back to ``str(exc)`` and finally the exception class name.
    """

    message = getattr(exc, "message", None)
    if isinstance(message, str) and message.strip():
        return message
    text = str(exc)
    if text:
        return text
    return exc.__class__.__name__
