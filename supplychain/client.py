"""Composition root: wires settings into one client object.

Every user-triggered action runs as its own coroutine; the components below
hold no per-action state besides the shared status banner and the latest
dashboard stats.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from supplychain.connection.manager import ConnectionManager, WalletProvider
from supplychain.core.cancellation import CancellationToken
from supplychain.core.errors import OperationCancelled, ValidationError, extract_error_message
from supplychain.core.message_bus import MessageBus, RedisStreamBus
from supplychain.core.models import ParticipantRole, ProductDetails
from supplychain.core.settings import Settings
from supplychain.dashboard.aggregation import AggregationEngine, DashboardStats
from supplychain.ledger.gateway import ContractGateway, LedgerProvider
from supplychain.registry.scanner import RegistryScanner, ScanReport
from supplychain.roles.resolver import RoleResolver
from supplychain.transactions.orchestrator import TransactionOrchestrator
from supplychain.transactions.status import StatusBanner


logger = logging.getLogger(__name__)


@dataclass
class SupplyChainClient:
    settings: Settings
    banner: StatusBanner
    gateway: ContractGateway
    connection: ConnectionManager
    scanner: RegistryScanner
    dashboard: AggregationEngine
    roles: RoleResolver
    transactions: TransactionOrchestrator

    async def refresh_dashboard(self, token: CancellationToken | None = None) -> DashboardStats:
        return await self.dashboard.refresh(self.connection.account, token=token)

    async def load_all_products(self, *, token: CancellationToken | None = None) -> Optional[ScanReport]:
        self.banner.pending("Loading products (this may take a while)...", auto_clear=False)
        try:
            report = await self.scanner.load_all(token=token)
        except OperationCancelled:
            logger.info("product_load_cancelled")
            return None
        except Exception as e:
            self.banner.failure(f"Error loading products: {extract_error_message(e)}")
            return None
        message = f"Loaded products: {len(report.records)}"
        if report.unreadable:
            message += f" ({report.summary()})"
        self.banner.success(message)
        return report

    async def search_product(self, product_id: object) -> Optional[ProductDetails]:
        try:
            self.banner.pending("Searching product...")
            details = await self.scanner.get_product(product_id)
        except ValidationError as e:
            self.banner.failure(str(e))
            return None
        except Exception as e:
            self.banner.failure(f"Error loading product: {extract_error_message(e)}")
            return None
        self.banner.success("Product loaded")
        return details

    async def role_of(self, address: str) -> ParticipantRole:
        return await self.roles.resolve(address)


def build_client(
    settings: Settings,
    *,
    ledger: LedgerProvider | None = None,
    wallet: WalletProvider | None = None,
    bus: MessageBus | None = None,
) -> SupplyChainClient:
    """Build a client; explicit collaborators override what ``settings`` selects."""

    if ledger is None:
        if settings.ledger_backend == "memory":
            from supplychain.ledger.memory import InMemoryLedger

            logger.info("Using in-memory ledger (dev mode)")
            ledger = InMemoryLedger()
        else:
            from supplychain.ledger.web3_backend import Web3LedgerProvider, Web3WalletProvider, build_web3

            logger.info("Using JSON-RPC ledger at %s", settings.rpc_url)
            w3 = build_web3(settings.rpc_url)
            ledger = Web3LedgerProvider(w3)
            if wallet is None:
                wallet = Web3WalletProvider(w3)
    if bus is None and settings.redis_url:
        bus = RedisStreamBus(settings.redis_url)

    banner = StatusBanner(clear_after_ms=settings.status_clear_ms)
    gateway = ContractGateway(ledger, settings.contract_address)
    connection = ConnectionManager(wallet, gateway, banner)
    scanner = RegistryScanner(gateway, concurrency=settings.scan_concurrency, bus=bus)
    dashboard = AggregationEngine(gateway, scanner, transfer_mode=settings.transfer_estimate, bus=bus)
    roles = RoleResolver(gateway, current_account=lambda: connection.account)

    async def refresh_after_tx(token: CancellationToken | None) -> None:
        await dashboard.refresh(connection.account, token=token)

    transactions = TransactionOrchestrator(gateway, banner, on_success=refresh_after_tx, bus=bus)

    async def refresh_after_connect(account: str) -> None:
        await dashboard.refresh(account)

    connection.on_connect(refresh_after_connect)

    return SupplyChainClient(
        settings=settings,
        banner=banner,
        gateway=gateway,
        connection=connection,
        scanner=scanner,
        dashboard=dashboard,
        roles=roles,
        transactions=transactions,
    )
