"""Submission lifecycle for state-mutating ledger operations.

Must stay mechanical:
- validate locally, then dispatch exactly once through the gateway
- no retries (a retried transaction may be mined twice)
- every failure becomes a Failure status; nothing escapes to the caller

Concurrent submissions share one banner and carry no per-operation identity:
whichever finishes last writes the status that is observed.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from supplychain.contracts import streams
from supplychain.core.cancellation import CancellationToken, check
from supplychain.core.errors import OperationCancelled, ValidationError, extract_error_message
from supplychain.core.message_bus import MessageBus, build_event, new_trace_id, publish_quietly
from supplychain.ledger.gateway import ContractGateway

from .forms import FormState
from .operations import OPERATIONS, Operation
from .status import StatusBanner, StatusKind, TransactionStatus


logger = logging.getLogger(__name__)

RefreshCallback = Callable[[Optional[CancellationToken]], Awaitable[Any]]


class TransactionOrchestrator:
    def __init__(
        self,
        gateway: ContractGateway,
        banner: StatusBanner,
        *,
        on_success: RefreshCallback | None = None,
        bus: MessageBus | None = None,
        operations: Dict[str, Operation] | None = None,
    ) -> None:
        self._gateway = gateway
        self._banner = banner
        self._on_success = on_success
        self._bus = bus
        self._operations = dict(operations or OPERATIONS)

    @property
    def operation_names(self) -> list[str]:
        return sorted(self._operations)

    async def _fail(self, op: Operation, message: str, *, stage: str, trace_id: str) -> TransactionStatus:
        logger.warning("tx_failed", extra={"operation": op.name, "stage": stage, "error": message})
        status = self._banner.failure(message)
        await publish_quietly(
            self._bus,
            build_event(
                schema=streams.LEDGER_TX_FAILED_V1,
                payload={"operation": op.name, "message": message, "stage": stage},
                trace_id=trace_id,
            ),
        )
        return status

    def _cancelled(self, op: Operation, stage: str, e: OperationCancelled) -> TransactionStatus:
        # Returned to the caller only; a cancelled submission never writes the shared banner.
        logger.info("tx_tracking_cancelled", extra={"operation": op.name, "stage": stage})
        return TransactionStatus(kind=StatusKind.FAILURE, message=f"Cancelled: {e}")

    async def submit(
        self,
        operation: str,
        *,
        token: CancellationToken | None = None,
        **args: Any,
    ) -> TransactionStatus:
        """Validate, dispatch and confirm one operation; returns the resulting status.

        A token that is already cancelled sends nothing and writes nothing.
        Cancelled later, tracking stops at the next suspension point; the
        transaction may still be mined, but its outcome is not written to the
        banner.
        """

        op = self._operations.get(operation)
        if op is None:
            raise ValueError(f"unknown operation: {operation}")
        trace_id = new_trace_id()

        if not self._gateway.is_signed:
            return await self._fail(op, "Connect wallet first", stage="validation", trace_id=trace_id)
        try:
            call_args = op.prepare(args)
        except ValidationError as e:
            return await self._fail(op, str(e), stage="validation", trace_id=trace_id)

        stage = "submission"
        try:
            check(token)
        except OperationCancelled as e:
            return self._cancelled(op, stage, e)

        self._banner.pending(op.pending_message)
        await publish_quietly(
            self._bus,
            build_event(
                schema=streams.LEDGER_TX_SUBMITTED_V1,
                payload={"operation": op.name, "message": op.pending_message},
                trace_id=trace_id,
            ),
        )

        try:
            check(token)
            handle = await getattr(self._gateway, op.method)(*call_args)
            check(token)
            stage = "confirmation"
            await handle.wait()
            check(token)
        except OperationCancelled as e:
            return self._cancelled(op, stage, e)
        except Exception as e:
            return await self._fail(op, f"Error: {extract_error_message(e)}", stage=stage, trace_id=trace_id)

        status = self._banner.success(op.success_message)
        logger.info("tx_confirmed", extra={"operation": op.name, "tx_hash": handle.tx_hash})
        await publish_quietly(
            self._bus,
            build_event(
                schema=streams.LEDGER_TX_CONFIRMED_V1,
                payload={"operation": op.name, "message": op.success_message, "tx_hash": handle.tx_hash},
                trace_id=trace_id,
            ),
        )

        if self._on_success is not None:
            try:
                await self._on_success(token)
            except OperationCancelled:
                logger.info("post_tx_refresh_cancelled", extra={"operation": op.name})
            except Exception as e:
                logger.error("post_tx_refresh_failed", extra={"operation": op.name, "error": extract_error_message(e)})
        return status

    async def submit_form(
        self,
        operation: str,
        form: FormState,
        *,
        token: CancellationToken | None = None,
    ) -> TransactionStatus:
        """Submit the form's values; the form is cleared only on Success."""

        status = await self.submit(operation, token=token, **form.values())
        if status.kind is StatusKind.SUCCESS:
            form.clear()
        return status
