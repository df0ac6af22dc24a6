from __future__ import annotations

import asyncio

import pytest

from supplychain.core.cancellation import CancellationToken
from supplychain.core.errors import OperationCancelled, ValidationError
from supplychain.ledger.gateway import ContractGateway
from supplychain.ledger.memory import InMemoryLedger, LedgerRevert
from supplychain.registry.scanner import RegistryScanner, parse_product_id


CONTRACT = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
PRODUCER = "0x1111111111111111111111111111111111111111"


class _HoleyLedger(InMemoryLedger):
    """Ledger whose basic-info reads revert for selected ids."""

    def __init__(self, broken: set[int]) -> None:
        super().__init__()
        self.broken = broken

    def call(self, function: str, *args):
        if function == "getBasicProductInfo" and int(args[0]) in self.broken:
            self.calls.append((function, args))
            raise LedgerRevert("Product does not exist")
        return super().call(function, *args)


def _seeded(n: int, *, broken: set[int] | None = None) -> _HoleyLedger:
    ledger = _HoleyLedger(broken or set())
    ledger.execute(PRODUCER, "registerProducer", PRODUCER, "Green Farm")
    for i in range(n):
        ledger.execute(PRODUCER, "createProduct", f"Rice {i}", f"B{i}", "grain", 1_700_000_000, "")
    return ledger


def _scanner(ledger: InMemoryLedger, **kwargs) -> RegistryScanner:
    return RegistryScanner(ContractGateway(ledger, CONTRACT), **kwargs)


def test_scan_skips_reverting_entry_and_keeps_order() -> None:
    ledger = _seeded(3, broken={2})
    assert ledger.next_product_id == 4
    scanner = _scanner(ledger)

    async def run():
        return [(pid, rec.id) async for pid, rec in scanner.records(1, 3)]

    assert asyncio.run(run()) == [(1, 1), (3, 3)]


def test_scan_reads_one_id_at_a_time_in_order() -> None:
    ledger = _seeded(3, broken={2})
    scanner = _scanner(ledger)

    async def run():
        return [o async for o in scanner.scan_range(1, 3)]

    outcomes = asyncio.run(run())
    reads = [args[0] for fn, args in ledger.calls if fn == "getBasicProductInfo"]
    assert reads == [1, 2, 3]
    assert [o.ok for o in outcomes] == [True, False, True]
    assert "Product does not exist" in (outcomes[1].skip_reason or "")
    assert outcomes[1].record is None


def test_scan_is_restartable_and_uncached() -> None:
    ledger = _seeded(2)
    scanner = _scanner(ledger)

    async def run():
        first = [pid async for pid, _ in scanner.records(1, 2)]
        second = [pid async for pid, _ in scanner.records(1, 2)]
        return first, second

    first, second = asyncio.run(run())
    assert first == second == [1, 2]
    reads = [fn for fn, _ in ledger.calls if fn == "getBasicProductInfo"]
    assert len(reads) == 4


def test_windowed_scan_preserves_order_and_isolation() -> None:
    ledger = _seeded(5, broken={2, 5})
    scanner = _scanner(ledger, concurrency=2)

    async def run():
        return [o async for o in scanner.scan_range(1, 5)]

    outcomes = asyncio.run(run())
    assert [o.product_id for o in outcomes] == [1, 2, 3, 4, 5]
    assert [o.ok for o in outcomes] == [True, False, True, True, False]


def test_load_all_reports_holes_as_unreadable() -> None:
    ledger = _seeded(3, broken={2})
    report = asyncio.run(_scanner(ledger).load_all())

    assert report.registry_size == 3
    assert [pid for pid, _ in report.records] == [1, 3]
    assert [e.product_id for e in report.unreadable] == [2]
    assert report.summary() == "1 of 3 entries unreadable"


def test_load_all_on_empty_registry() -> None:
    report = asyncio.run(_scanner(InMemoryLedger()).load_all())
    assert report.registry_size == 0
    assert report.records == []


def test_cancelled_scan_stops_after_current_read() -> None:
    token = CancellationToken()

    class _CancellingLedger(_HoleyLedger):
        def call(self, function: str, *args):
            if function == "getBasicProductInfo" and int(args[0]) == 2:
                token.cancel("view closed")
            return super().call(function, *args)

    ledger = _CancellingLedger(set())
    ledger.execute(PRODUCER, "registerProducer", PRODUCER, "Green Farm")
    for i in range(3):
        ledger.execute(PRODUCER, "createProduct", f"Rice {i}", f"B{i}", "grain", 1_700_000_000, "")
    scanner = _scanner(ledger)
    seen: list[int] = []

    async def run():
        async for outcome in scanner.scan_range(1, 3, token=token):
            seen.append(outcome.product_id)

    with pytest.raises(OperationCancelled):
        asyncio.run(run())
    assert seen == [1]


def test_get_product_returns_full_details() -> None:
    ledger = _seeded(1)
    details = asyncio.run(_scanner(ledger).get_product("1"))
    assert details.id == 1
    assert details.fields[2] == "Rice 0"


@pytest.mark.parametrize("value", ["", "abc", "0", "-3", None, True])
def test_parse_product_id_rejects_bad_input(value) -> None:
    with pytest.raises(ValidationError):
        parse_product_id(value)


def test_concurrency_must_be_positive() -> None:
    with pytest.raises(ValueError):
        _scanner(InMemoryLedger(), concurrency=0)
