"""Dashboard statistics derived from a registry scan.

``compute`` is deterministic and side-effect free; ``refresh`` performs the
network reads (scan + role counters) and never raises on ledger failures.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Awaitable, Callable, Iterable, Optional

from supplychain.contracts import streams
from supplychain.core.accounts import normalize_account
from supplychain.core.cancellation import CancellationToken, check
from supplychain.core.errors import OperationCancelled, extract_error_message
from supplychain.core.message_bus import MessageBus, build_event, publish_quietly
from supplychain.core.models import ProductRecord
from supplychain.ledger.gateway import ContractGateway
from supplychain.registry.scanner import RegistryScanner


logger = logging.getLogger(__name__)

TRANSFER_UNAVAILABLE = "unavailable"
TRANSFER_HEURISTIC = "heuristic"


@dataclass(frozen=True)
class RoleCounters:
    producers: int = 0
    quality_inspectors: int = 0
    distributors: int = 0
    retailers: int = 0

    @property
    def total(self) -> int:
        return self.producers + self.quality_inspectors + self.distributors + self.retailers


@dataclass(frozen=True)
class DashboardStats:
    total_products: int = 0
    approved_products: int = 0
    owned_by_caller: int = 0
    registered_participants: int = 0
    # None means "unavailable": the ledger exposes no transfer counter.
    transfer_estimate: Optional[int] = None
    unreadable_products: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def estimate_transfers(total_products: int) -> int:
    """Legacy placeholder: assumes two custody transfers per product.

    Not derived from ledger data. Only used when explicitly configured.
    """

    return total_products * 2 if total_products > 0 else 0


async def _read_counter(name: str, read: Callable[[], Awaitable[int]]) -> int:
    try:
        return int(await read())
    except Exception as e:
        logger.warning("role_counter_unavailable", extra={"counter": name, "error": extract_error_message(e)})
        return 0


async def read_role_counters(gateway: ContractGateway) -> RoleCounters:
    """Read the four registry counters independently; each defaults to 0 on failure."""

    return RoleCounters(
        producers=await _read_counter("totalProducers", gateway.total_producers),
        quality_inspectors=await _read_counter("totalQualityInspectors", gateway.total_quality_inspectors),
        distributors=await _read_counter("totalDistributors", gateway.total_distributors),
        retailers=await _read_counter("totalRetailers", gateway.total_retailers),
    )


class AggregationEngine:
    def __init__(
        self,
        gateway: ContractGateway,
        scanner: RegistryScanner,
        *,
        transfer_mode: str = TRANSFER_UNAVAILABLE,
        bus: MessageBus | None = None,
    ) -> None:
        if transfer_mode not in {TRANSFER_UNAVAILABLE, TRANSFER_HEURISTIC}:
            raise ValueError(f"unknown transfer mode: {transfer_mode}")
        self._gateway = gateway
        self._scanner = scanner
        self.transfer_mode = transfer_mode
        self._bus = bus
        self.latest = DashboardStats()

    def compute(
        self,
        records: Iterable[ProductRecord],
        caller_account: str | None,
        role_counters: RoleCounters,
        *,
        registry_size: int | None = None,
    ) -> DashboardStats:
        items = list(records)
        caller = normalize_account(caller_account)

        total = registry_size if registry_size is not None else len(items)
        approved = sum(1 for r in items if r.approved)
        owned = 0
        if caller is not None:
            owned = sum(1 for r in items if normalize_account(r.producer) == caller)

        transfers: Optional[int] = None
        if self.transfer_mode == TRANSFER_HEURISTIC:
            transfers = estimate_transfers(total)

        return DashboardStats(
            total_products=total,
            approved_products=approved,
            owned_by_caller=owned,
            registered_participants=role_counters.total,
            transfer_estimate=transfers,
            unreadable_products=(registry_size - len(items)) if registry_size is not None else None,
        )

    async def refresh(
        self,
        caller_account: str | None = None,
        *,
        token: CancellationToken | None = None,
    ) -> DashboardStats:
        """Re-scan the registry and recompute; on ledger failure keep the previous stats."""

        try:
            report = await self._scanner.load_all(token=token)
            counters = await read_role_counters(self._gateway)
            check(token)
        except OperationCancelled:
            raise
        except Exception as e:
            logger.error("dashboard_refresh_failed", extra={"error": extract_error_message(e)})
            return self.latest

        stats = self.compute(
            (record for _, record in report.records),
            caller_account,
            counters,
            registry_size=report.registry_size,
        )
        self.latest = stats
        await publish_quietly(
            self._bus,
            build_event(schema=streams.DASHBOARD_STATS_COMPUTED_V1, payload=stats.to_dict()),
        )
        return stats
