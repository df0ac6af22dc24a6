"""In-process SupplyChain ledger (dev mode).

Mirrors the deployed contract closely enough to exercise the client end to
end without a node: dense product ids starting at 1, four participant
registries, per-product custody (producer → distributor → retailer →
consumer) and revert messages for rejected calls. State lives in memory only.
"""

from __future__ import annotations

import asyncio
import itertools
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

from web3 import Web3

from .gateway import AddressSigner, Signer


ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

PRODUCER = "producer"
QUALITY_INSPECTOR = "quality_inspector"
DISTRIBUTOR = "distributor"
RETAILER = "retailer"


class LedgerRevert(Exception):
    """A rejected contract call; ``message`` carries the revert reason."""

    def __init__(self, reason: str) -> None:
        self.message = f"execution reverted: {reason}"
        super().__init__(self.message)


@dataclass
class _Product:
    id: int
    producer: str
    name: str
    batch_id: str
    category: str
    production_date: int
    metadata_uri: str
    approved: bool = False
    quality_expiry: int = 0
    distributor: str = ZERO_ADDRESS
    retailer: str = ZERO_ADDRESS
    consumer: str = ZERO_ADDRESS
    certifications: List[str] = field(default_factory=list)

    def basic_info(self) -> tuple:
        return (
            self.id,
            self.producer,
            self.name,
            self.batch_id,
            self.category,
            self.production_date,
            self.approved,
        )

    def full_details(self) -> tuple:
        return self.basic_info() + (
            self.metadata_uri,
            self.quality_expiry,
            self.distributor,
            self.retailer,
            self.consumer,
            list(self.certifications),
        )


def _addr(value: Any) -> str:
    if not isinstance(value, str) or not Web3.is_address(value):
        raise LedgerRevert("invalid address")
    return Web3.to_checksum_address(value)


class InMemoryLedger:
    """Contract simulator implementing the ``LedgerProvider`` protocol."""

    def __init__(self) -> None:
        self.next_product_id = 1
        self.products: Dict[int, _Product] = {}
        self.registries: Dict[str, Dict[str, str]] = {
            PRODUCER: {},
            QUALITY_INSPECTOR: {},
            DISTRIBUTOR: {},
            RETAILER: {},
        }
        # Every call/transaction that reached the ledger, in order.
        self.calls: list[tuple[str, tuple]] = []
        self._tx_counter = itertools.count(1)

        self._views: Dict[str, Callable[..., Any]] = {
            "nextProductId": lambda: self.next_product_id,
            "getBasicProductInfo": lambda pid: self._product(pid).basic_info(),
            "getFullProductDetails": lambda pid: self._product(pid).full_details(),
            "isProducerRegistered": lambda a: self._is_registered(PRODUCER, a),
            "isQualityInspectorRegistered": lambda a: self._is_registered(QUALITY_INSPECTOR, a),
            "isDistributorRegistered": lambda a: self._is_registered(DISTRIBUTOR, a),
            "isRetailerRegistered": lambda a: self._is_registered(RETAILER, a),
            "totalProducers": lambda: len(self.registries[PRODUCER]),
            "totalQualityInspectors": lambda: len(self.registries[QUALITY_INSPECTOR]),
            "totalDistributors": lambda: len(self.registries[DISTRIBUTOR]),
            "totalRetailers": lambda: len(self.registries[RETAILER]),
        }
        self._mutations: Dict[str, Callable[..., None]] = {
            "registerProducer": lambda s, a, d: self._register(PRODUCER, a, d),
            "registerQualityInspector": lambda s, a, d: self._register(QUALITY_INSPECTOR, a, d),
            "registerDistributor": lambda s, a, d: self._register(DISTRIBUTOR, a, d),
            "registerRetailer": lambda s, a, d: self._register(RETAILER, a, d),
            "createProduct": self._create_product,
            "assignDistributor": self._assign_distributor,
            "assignRetailer": self._assign_retailer,
            "addCertification": self._add_certification,
            "approveQuality": self._approve_quality,
            "sellToConsumer": self._sell_to_consumer,
        }

    def bind(self, contract_address: str, signer: Signer | None) -> "InMemoryBinding":
        return InMemoryBinding(self, signer)

    # -- contract surface ---------------------------------------------------

    def call(self, function: str, *args: Any) -> Any:
        self.calls.append((function, args))
        view = self._views.get(function)
        if view is None:
            raise LedgerRevert(f"unknown function {function}")
        return view(*args)

    def execute(self, sender: str, function: str, *args: Any) -> str:
        self.calls.append((function, args))
        mutation = self._mutations.get(function)
        if mutation is None:
            raise LedgerRevert(f"unknown function {function}")
        mutation(_addr(sender), *args)
        return "0x" + format(next(self._tx_counter), "064x")

    # -- helpers --------------------------------------------------------------

    def _product(self, product_id: Any) -> _Product:
        product = self.products.get(int(product_id))
        if product is None:
            raise LedgerRevert("Product does not exist")
        return product

    def _is_registered(self, registry: str, address: Any) -> bool:
        return _addr(address) in self.registries[registry]

    def _require_role(self, registry: str, sender: str, label: str) -> None:
        if sender not in self.registries[registry]:
            raise LedgerRevert(f"Only registered {label}")

    def _register(self, registry: str, address: Any, details: Any) -> None:
        account = _addr(address)
        if not str(details or "").strip():
            raise LedgerRevert("Details required")
        if account in self.registries[registry]:
            raise LedgerRevert("Already registered")
        self.registries[registry][account] = str(details)

    def _create_product(self, sender: str, name: str, batch_id: str, category: str, production_date: int, metadata_uri: str) -> None:
        self._require_role(PRODUCER, sender, "producers")
        pid = self.next_product_id
        self.products[pid] = _Product(
            id=pid,
            producer=sender,
            name=name,
            batch_id=batch_id,
            category=category,
            production_date=int(production_date),
            metadata_uri=metadata_uri,
        )
        self.next_product_id += 1

    def _assign_distributor(self, sender: str, product_id: int, distributor: str) -> None:
        product = self._product(product_id)
        if product.producer != sender:
            raise LedgerRevert("Only product producer")
        account = _addr(distributor)
        if account not in self.registries[DISTRIBUTOR]:
            raise LedgerRevert("Distributor not registered")
        product.distributor = account

    def _assign_retailer(self, sender: str, product_id: int, retailer: str) -> None:
        product = self._product(product_id)
        if product.distributor != sender:
            raise LedgerRevert("Only assigned distributor")
        account = _addr(retailer)
        if account not in self.registries[RETAILER]:
            raise LedgerRevert("Retailer not registered")
        product.retailer = account

    def _add_certification(self, sender: str, product_id: int, certification: str) -> None:
        self._require_role(QUALITY_INSPECTOR, sender, "quality inspectors")
        self._product(product_id).certifications.append(str(certification))

    def _approve_quality(self, sender: str, product_id: int, expiry: int) -> None:
        self._require_role(QUALITY_INSPECTOR, sender, "quality inspectors")
        product = self._product(product_id)
        if int(expiry) <= product.production_date:
            raise LedgerRevert("Expiry must be after production date")
        product.approved = True
        product.quality_expiry = int(expiry)

    def _sell_to_consumer(self, sender: str, product_id: int, consumer: str) -> None:
        product = self._product(product_id)
        if product.retailer != sender:
            raise LedgerRevert("Only assigned retailer")
        if product.consumer != ZERO_ADDRESS:
            raise LedgerRevert("Product already sold")
        product.consumer = _addr(consumer)


class InMemoryTxHandle:
    def __init__(self, tx_hash: str) -> None:
        self.tx_hash = tx_hash

    async def wait(self) -> Dict[str, Any]:
        await asyncio.sleep(0)
        return {"status": 1, "transactionHash": self.tx_hash}


class InMemoryBinding:
    def __init__(self, ledger: InMemoryLedger, signer: Signer | None) -> None:
        self._ledger = ledger
        self._signer = signer

    async def call(self, function: str, *args: Any) -> Any:
        await asyncio.sleep(0)
        return self._ledger.call(function, *args)

    async def transact(self, function: str, *args: Any) -> InMemoryTxHandle:
        if self._signer is None:
            raise LedgerRevert("read-only binding cannot send transactions")
        sender = await self._signer.get_address()
        tx_hash = self._ledger.execute(sender, function, *args)
        return InMemoryTxHandle(tx_hash)


class InMemoryWallet:
    """Wallet collaborator over a fixed list of accounts; the first one signs."""

    def __init__(self, accounts: list[str]) -> None:
        self.accounts = [Web3.to_checksum_address(a) for a in accounts]

    async def request_accounts(self) -> list[str]:
        return list(self.accounts)

    async def get_signer(self) -> AddressSigner:
        if not self.accounts:
            raise LedgerRevert("wallet has no accounts")
        return AddressSigner(self.accounts[0])
