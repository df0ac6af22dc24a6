"""Registry scan: fault-tolerant enumeration of numbered product entries.

Product ids are assigned densely 1..(nextProductId-1) by the ledger, but any
single read may fail (missing entry, revert, flaky node). Each id therefore
produces a typed outcome; an unreadable entry is reported as skipped and is
never mistaken for an empty record. Nothing is cached between scans.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Optional

from supplychain.contracts import streams
from supplychain.core.cancellation import CancellationToken, check
from supplychain.core.errors import (
    OperationCancelled,
    PartialDataError,
    ValidationError,
    extract_error_message,
)
from supplychain.core.message_bus import MessageBus, build_event, publish_quietly
from supplychain.core.models import ProductDetails, ProductRecord
from supplychain.ledger.gateway import ContractGateway


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScanOutcome:
    product_id: int
    record: Optional[ProductRecord] = None
    skip_reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.record is not None


@dataclass(frozen=True)
class ScanReport:
    registry_size: int
    outcomes: tuple[ScanOutcome, ...]

    @property
    def records(self) -> list[tuple[int, ProductRecord]]:
        return [(o.product_id, o.record) for o in self.outcomes if o.record is not None]

    @property
    def unreadable(self) -> list[PartialDataError]:
        return [PartialDataError(o.product_id, o.skip_reason or "unknown") for o in self.outcomes if not o.ok]

    def summary(self) -> str:
        return f"{len(self.unreadable)} of {self.registry_size} entries unreadable"


def parse_product_id(value: object) -> int:
    """Coerce user input into a positive product id."""

    if isinstance(value, bool):
        raise ValidationError("Enter a product ID")
    try:
        product_id = int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError("Enter a product ID") from None
    if product_id < 1:
        raise ValidationError("Enter a product ID")
    return product_id


class RegistryScanner:
    def __init__(
        self,
        gateway: ContractGateway,
        *,
        concurrency: int = 1,
        bus: MessageBus | None = None,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self._gateway = gateway
        self.concurrency = concurrency
        self._bus = bus

    async def _read(self, product_id: int) -> ScanOutcome:
        try:
            record = await self._gateway.get_basic_info(product_id)
        except OperationCancelled:
            raise
        except Exception as e:
            reason = extract_error_message(e)
            logger.warning("skip_unreadable_product", extra={"product_id": product_id, "error": reason})
            return ScanOutcome(product_id=product_id, skip_reason=reason)
        return ScanOutcome(product_id=product_id, record=record)

    async def scan_range(
        self,
        start: int,
        end: int,
        *,
        token: CancellationToken | None = None,
    ) -> AsyncIterator[ScanOutcome]:
        """Yield one outcome per id in ``start..end`` (inclusive), in id order.

        With ``concurrency == 1`` reads are strictly sequential. Larger values
        read fixed-size windows concurrently; ordering and per-item isolation
        are unchanged.
        """

        product_id = start
        while product_id <= end:
            check(token)
            window_end = min(end, product_id + self.concurrency - 1)
            if window_end == product_id:
                outcomes = [await self._read(product_id)]
            else:
                outcomes = await asyncio.gather(*(self._read(i) for i in range(product_id, window_end + 1)))
            check(token)
            for outcome in outcomes:
                yield outcome
            product_id = window_end + 1

    async def records(
        self,
        start: int,
        end: int,
        *,
        token: CancellationToken | None = None,
    ) -> AsyncIterator[tuple[int, ProductRecord]]:
        """Only the readable ``(id, record)`` pairs of :meth:`scan_range`."""

        async for outcome in self.scan_range(start, end, token=token):
            if outcome.record is not None:
                yield outcome.product_id, outcome.record

    async def load_all(self, *, token: CancellationToken | None = None) -> ScanReport:
        registry_size = max(0, await self._gateway.next_id() - 1)
        check(token)
        outcomes = [o async for o in self.scan_range(1, registry_size, token=token)]
        report = ScanReport(registry_size=registry_size, outcomes=tuple(outcomes))
        logger.info(
            "registry_scan_completed",
            extra={"registry_size": registry_size, "loaded": len(report.records), "unreadable": len(report.unreadable)},
        )
        await publish_quietly(
            self._bus,
            build_event(
                schema=streams.REGISTRY_SCAN_COMPLETED_V1,
                payload={
                    "registry_size": registry_size,
                    "loaded": len(report.records),
                    "unreadable": len(report.unreadable),
                },
            ),
        )
        return report

    async def get_product(self, product_id: object) -> ProductDetails:
        return await self._gateway.get_full_details(parse_product_id(product_id))
