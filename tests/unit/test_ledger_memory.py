from __future__ import annotations

import asyncio

import pytest

from supplychain.ledger.gateway import AddressSigner
from supplychain.ledger.memory import InMemoryLedger, InMemoryWallet, LedgerRevert


CONTRACT = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
FARM = "0x1111111111111111111111111111111111111111"
TRUCKS = "0x2222222222222222222222222222222222222222"
SHOP = "0x3333333333333333333333333333333333333333"
LAB = "0x4444444444444444444444444444444444444444"
BUYER = "0x5555555555555555555555555555555555555555"


def _ledger_with_product() -> InMemoryLedger:
    ledger = InMemoryLedger()
    ledger.execute(FARM, "registerProducer", FARM, "Green Farm")
    ledger.execute(FARM, "registerDistributor", TRUCKS, "Trucks Ltd")
    ledger.execute(FARM, "registerRetailer", SHOP, "Corner Shop")
    ledger.execute(FARM, "registerQualityInspector", LAB, "Lab")
    ledger.execute(FARM, "createProduct", "Rice", "B1", "grain", 1_700_000_000, "")
    return ledger


def test_ids_are_dense_from_one() -> None:
    ledger = _ledger_with_product()
    ledger.execute(FARM, "createProduct", "Wheat", "B2", "grain", 1_700_000_000, "")
    assert sorted(ledger.products) == [1, 2]
    assert ledger.call("nextProductId") == 3


def test_registration_reverts() -> None:
    ledger = _ledger_with_product()
    with pytest.raises(LedgerRevert, match="Already registered"):
        ledger.execute(FARM, "registerProducer", FARM, "again")
    with pytest.raises(LedgerRevert, match="Details required"):
        ledger.execute(FARM, "registerRetailer", BUYER, " ")
    with pytest.raises(LedgerRevert, match="invalid address"):
        ledger.execute(FARM, "registerRetailer", "0x12", "Shop")


def test_only_registered_producers_create_products() -> None:
    ledger = InMemoryLedger()
    with pytest.raises(LedgerRevert) as e:
        ledger.execute(BUYER, "createProduct", "Rice", "B1", "grain", 1_700_000_000, "")
    assert e.value.message == "execution reverted: Only registered producers"
    assert ledger.call("nextProductId") == 1


def test_custody_order_is_enforced() -> None:
    ledger = _ledger_with_product()
    with pytest.raises(LedgerRevert, match="Only assigned distributor"):
        ledger.execute(TRUCKS, "assignRetailer", 1, SHOP)
    ledger.execute(FARM, "assignDistributor", 1, TRUCKS)
    with pytest.raises(LedgerRevert, match="Retailer not registered"):
        ledger.execute(TRUCKS, "assignRetailer", 1, BUYER)
    ledger.execute(TRUCKS, "assignRetailer", 1, SHOP)
    ledger.execute(SHOP, "sellToConsumer", 1, BUYER)
    with pytest.raises(LedgerRevert, match="Product already sold"):
        ledger.execute(SHOP, "sellToConsumer", 1, BUYER)


def test_quality_approval_rules() -> None:
    ledger = _ledger_with_product()
    with pytest.raises(LedgerRevert, match="Only registered quality inspectors"):
        ledger.execute(FARM, "approveQuality", 1, 1_800_000_000)
    with pytest.raises(LedgerRevert, match="Expiry must be after production date"):
        ledger.execute(LAB, "approveQuality", 1, 1_600_000_000)
    ledger.execute(LAB, "approveQuality", 1, 1_800_000_000)
    assert ledger.call("getBasicProductInfo", 1)[6] is True


def test_missing_product_and_unknown_function_revert() -> None:
    ledger = InMemoryLedger()
    with pytest.raises(LedgerRevert, match="Product does not exist"):
        ledger.call("getFullProductDetails", 1)
    with pytest.raises(LedgerRevert, match="unknown function"):
        ledger.call("ownerOf", 1)


def test_read_only_binding_cannot_transact() -> None:
    binding = InMemoryLedger().bind(CONTRACT, None)
    with pytest.raises(LedgerRevert):
        asyncio.run(binding.transact("registerProducer", FARM, "Green Farm"))


def test_signed_binding_sends_from_signer() -> None:
    ledger = InMemoryLedger()
    binding = ledger.bind(CONTRACT, AddressSigner(FARM))

    async def run():
        handle = await binding.transact("registerProducer", FARM, "Green Farm")
        return handle.tx_hash, await handle.wait()

    tx_hash, receipt = asyncio.run(run())
    assert tx_hash.startswith("0x") and len(tx_hash) == 66
    assert receipt == {"status": 1, "transactionHash": tx_hash}
    assert ledger.call("isProducerRegistered", FARM) is True


def test_wallet_returns_checksum_accounts() -> None:
    lower = CONTRACT.lower()
    wallet = InMemoryWallet([lower])

    async def run():
        accounts = await wallet.request_accounts()
        signer = await wallet.get_signer()
        return accounts, await signer.get_address()

    accounts, address = asyncio.run(run())
    assert accounts == [CONTRACT]
    assert address == CONTRACT
