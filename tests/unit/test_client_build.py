from __future__ import annotations

import asyncio

from supplychain.client import build_client
from supplychain.core.cancellation import CancellationToken
from supplychain.core.message_bus import RedisStreamBus
from supplychain.core.settings import Settings
from supplychain.ledger.memory import InMemoryLedger
from supplychain.ledger.web3_backend import Web3LedgerProvider, Web3WalletProvider
from supplychain.transactions.status import StatusKind


def test_memory_backend_is_selected_from_settings() -> None:
    client = build_client(Settings(ledger_backend="memory"))
    assert isinstance(client.gateway._provider, InMemoryLedger)
    assert client.scanner.concurrency == 1
    assert client.dashboard.transfer_mode == "unavailable"


def test_web3_backend_wires_node_wallet() -> None:
    client = build_client(Settings(rpc_url="http://127.0.0.1:8545"))
    assert isinstance(client.gateway._provider, Web3LedgerProvider)
    assert isinstance(client.connection._wallet, Web3WalletProvider)
    assert client.gateway.is_signed is False


def test_redis_url_enables_event_bus() -> None:
    client = build_client(Settings(ledger_backend="memory", redis_url="redis://localhost:6379/0"))
    assert isinstance(client.transactions._bus, RedisStreamBus)
    assert client.scanner._bus is client.transactions._bus


def test_status_banner_uses_configured_timeout() -> None:
    client = build_client(Settings(ledger_backend="memory", status_clear_ms=1234))
    assert client.banner.clear_after_ms == 1234


def test_search_product_reports_each_failure_kind() -> None:
    client = build_client(Settings(ledger_backend="memory"))

    assert asyncio.run(client.search_product("")) is None
    assert client.banner.current().message == "Enter a product ID"

    assert asyncio.run(client.search_product("5")) is None
    assert client.banner.current().message == "Error loading product: execution reverted: Product does not exist"


def test_load_all_products_on_empty_registry() -> None:
    client = build_client(Settings(ledger_backend="memory"))
    report = asyncio.run(client.load_all_products())
    assert report is not None and report.records == []
    assert client.banner.current().message == "Loaded products: 0"


def test_cancelled_load_leaves_loading_status() -> None:
    client = build_client(Settings(ledger_backend="memory"))
    token = CancellationToken()
    token.cancel("navigated away")
    assert asyncio.run(client.load_all_products(token=token)) is None
    current = client.banner.current()
    assert current.kind is StatusKind.PENDING
    assert current.message == "Loading products (this may take a while)..."
