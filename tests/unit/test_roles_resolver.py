from __future__ import annotations

import asyncio

from supplychain.core.models import ParticipantRole
from supplychain.ledger.gateway import ContractGateway
from supplychain.ledger.memory import InMemoryLedger
from supplychain.roles.resolver import ROLE_PRECEDENCE, RoleResolver


CONTRACT = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
ADMIN = "0x9999999999999999999999999999999999999999"
ALICE = "0x1111111111111111111111111111111111111111"
BOB = "0x2222222222222222222222222222222222222222"


def _resolver(ledger: InMemoryLedger, current: str | None = None) -> RoleResolver:
    return RoleResolver(ContractGateway(ledger, CONTRACT), current_account=lambda: current)


def test_distributor_wins_over_retailer() -> None:
    ledger = InMemoryLedger()
    ledger.execute(ADMIN, "registerDistributor", ALICE, "Trucks Ltd")
    ledger.execute(ADMIN, "registerRetailer", ALICE, "Corner Shop")
    assert asyncio.run(_resolver(ledger).resolve(ALICE)) is ParticipantRole.DISTRIBUTOR


def test_producer_has_highest_precedence() -> None:
    ledger = InMemoryLedger()
    for fn in ("registerRetailer", "registerQualityInspector", "registerProducer"):
        ledger.execute(ADMIN, fn, ALICE, "details")
    assert asyncio.run(_resolver(ledger).resolve(ALICE)) is ParticipantRole.PRODUCER


def test_short_circuits_on_first_match() -> None:
    ledger = InMemoryLedger()
    ledger.execute(ADMIN, "registerQualityInspector", ALICE, "Lab")
    asyncio.run(_resolver(ledger).resolve(ALICE))
    queried = [fn for fn, _ in ledger.calls if fn.startswith("is")]
    assert queried == ["isProducerRegistered", "isQualityInspectorRegistered"]


def test_unregistered_current_account_is_self() -> None:
    role = asyncio.run(_resolver(InMemoryLedger(), current=ALICE).resolve(ALICE))
    assert role is ParticipantRole.SELF_ACCOUNT
    assert role.value == "You"


def test_unregistered_other_account_is_participant() -> None:
    role = asyncio.run(_resolver(InMemoryLedger(), current=ALICE).resolve(BOB))
    assert role is ParticipantRole.PARTICIPANT


def test_registered_current_account_keeps_registry_role() -> None:
    ledger = InMemoryLedger()
    ledger.execute(ADMIN, "registerRetailer", ALICE, "Corner Shop")
    assert asyncio.run(_resolver(ledger, current=ALICE).resolve(ALICE)) is ParticipantRole.RETAILER


class _FailingProducerLedger(InMemoryLedger):
    def call(self, function: str, *args):
        if function == "isProducerRegistered":
            raise TimeoutError("rpc timeout")
        return super().call(function, *args)


def test_failed_query_counts_as_false_and_chain_continues() -> None:
    ledger = _FailingProducerLedger()
    ledger.execute(ADMIN, "registerRetailer", BOB, "Corner Shop")
    assert asyncio.run(_resolver(ledger).resolve(BOB)) is ParticipantRole.RETAILER


def test_all_queries_failing_falls_back_to_generic_role() -> None:
    class _Down(InMemoryLedger):
        def call(self, function: str, *args):
            raise ConnectionError("down")

    assert asyncio.run(_resolver(_Down()).resolve(BOB)) is ParticipantRole.PARTICIPANT


def test_precedence_table_order() -> None:
    assert [role for role, _ in ROLE_PRECEDENCE] == [
        ParticipantRole.PRODUCER,
        ParticipantRole.QUALITY_INSPECTOR,
        ParticipantRole.DISTRIBUTOR,
        ParticipantRole.RETAILER,
    ]
