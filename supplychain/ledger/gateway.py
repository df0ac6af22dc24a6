"""Typed façade over the SupplyChain ledger contract.

The gateway owns exactly one binding at a time: read-only when no signer is
active, signed otherwise. ``set_signer`` rebuilds the binding. Raw backend
errors are converted to ``LedgerCallError`` here so callers only ever see the
package's error taxonomy.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Protocol, Sequence

from supplychain.core.accounts import normalize_account, require_address
from supplychain.core.errors import (
    LedgerCallError,
    NotConnectedError,
    SupplyChainError,
    extract_error_message,
)
from supplychain.core.models import (
    BASIC_INFO_APPROVED_INDEX,
    BASIC_INFO_PRODUCER_INDEX,
    ProductDetails,
    ProductRecord,
)


logger = logging.getLogger(__name__)


class TxHandle(Protocol):
    """A submitted transaction."""

    tx_hash: str

    async def wait(self) -> Dict[str, Any]:
        """Block until the transaction is mined and return its receipt."""


class Signer(Protocol):
    async def get_address(self) -> str:
        ...


class AddressSigner:
    """Signer identified only by its address; signing happens in the node or simulator."""

    def __init__(self, address: str) -> None:
        self.address = require_address(address, field="signer address")

    async def get_address(self) -> str:
        return self.address


class ContractBinding(Protocol):
    """Contract handle bound to a provider, optionally with a signer."""

    async def call(self, function: str, *args: Any) -> Any:
        ...

    async def transact(self, function: str, *args: Any) -> TxHandle:
        ...


class LedgerProvider(Protocol):
    """External collaborator that produces contract bindings."""

    def bind(self, contract_address: str, signer: Signer | None) -> ContractBinding:
        ...


def decode_basic_info(product_id: int, raw: Sequence[Any]) -> ProductRecord:
    fields = tuple(raw)
    if len(fields) <= BASIC_INFO_APPROVED_INDEX:
        raise LedgerCallError(f"malformed product record for id {product_id}", function="getBasicProductInfo")
    producer = str(fields[BASIC_INFO_PRODUCER_INDEX])
    return ProductRecord(
        id=product_id,
        producer=normalize_account(producer) or producer,
        approved=bool(fields[BASIC_INFO_APPROVED_INDEX]),
        fields=fields,
    )


class _ConfirmedTxHandle:
    """Wraps a backend handle so confirmation failures use the package taxonomy."""

    def __init__(self, inner: TxHandle, function: str) -> None:
        self._inner = inner
        self.function = function
        self.tx_hash = str(getattr(inner, "tx_hash", "") or "")

    async def wait(self) -> Dict[str, Any]:
        try:
            receipt = await self._inner.wait()
        except SupplyChainError:
            raise
        except Exception as e:
            raise LedgerCallError(extract_error_message(e), function=self.function) from e
        receipt = dict(receipt or {})
        if receipt.get("status") == 0:
            raise LedgerCallError(f"transaction reverted: {self.function}", function=self.function)
        return receipt


class ContractGateway:
    def __init__(self, provider: LedgerProvider, contract_address: str, *, signer: Signer | None = None) -> None:
        self._provider = provider
        self.contract_address = require_address(contract_address, field="contract address")
        self._signer: Signer | None = None
        self._binding: ContractBinding = provider.bind(self.contract_address, None)
        if signer is not None:
            self.set_signer(signer)

    @property
    def is_signed(self) -> bool:
        return self._signer is not None

    @property
    def signer(self) -> Signer | None:
        return self._signer

    def set_signer(self, signer: Signer | None) -> None:
        """Switch binding mode; ``None`` reverts to a read-only binding."""

        self._signer = signer
        self._binding = self._provider.bind(self.contract_address, signer)
        logger.info("ledger_binding_rebuilt", extra={"signed": signer is not None})

    async def _call(self, function: str, *args: Any) -> Any:
        try:
            return await self._binding.call(function, *args)
        except SupplyChainError:
            raise
        except Exception as e:
            raise LedgerCallError(extract_error_message(e), function=function) from e

    async def _transact(self, function: str, *args: Any) -> TxHandle:
        if not self.is_signed:
            raise NotConnectedError()
        try:
            handle = await self._binding.transact(function, *args)
        except SupplyChainError:
            raise
        except Exception as e:
            raise LedgerCallError(extract_error_message(e), function=function) from e
        return _ConfirmedTxHandle(handle, function)

    # -- reads ----------------------------------------------------------------

    async def next_id(self) -> int:
        return int(await self._call("nextProductId"))

    async def get_basic_info(self, product_id: int) -> ProductRecord:
        raw = await self._call("getBasicProductInfo", product_id)
        return decode_basic_info(product_id, raw)

    async def get_full_details(self, product_id: int) -> ProductDetails:
        raw = await self._call("getFullProductDetails", product_id)
        return ProductDetails(id=product_id, fields=tuple(raw))

    async def is_producer_registered(self, address: str) -> bool:
        return bool(await self._call("isProducerRegistered", address))

    async def is_quality_inspector_registered(self, address: str) -> bool:
        return bool(await self._call("isQualityInspectorRegistered", address))

    async def is_distributor_registered(self, address: str) -> bool:
        return bool(await self._call("isDistributorRegistered", address))

    async def is_retailer_registered(self, address: str) -> bool:
        return bool(await self._call("isRetailerRegistered", address))

    async def total_producers(self) -> int:
        return int(await self._call("totalProducers"))

    async def total_quality_inspectors(self) -> int:
        return int(await self._call("totalQualityInspectors"))

    async def total_distributors(self) -> int:
        return int(await self._call("totalDistributors"))

    async def total_retailers(self) -> int:
        return int(await self._call("totalRetailers"))

    # -- mutations --------------------------------------------------------------

    async def register_producer(self, address: str, details: str) -> TxHandle:
        return await self._transact("registerProducer", address, details)

    async def register_quality_inspector(self, address: str, details: str) -> TxHandle:
        return await self._transact("registerQualityInspector", address, details)

    async def register_distributor(self, address: str, details: str) -> TxHandle:
        return await self._transact("registerDistributor", address, details)

    async def register_retailer(self, address: str, details: str) -> TxHandle:
        return await self._transact("registerRetailer", address, details)

    async def create_product(
        self,
        name: str,
        batch_id: str,
        category: str,
        production_timestamp: int,
        metadata_uri: str = "",
    ) -> TxHandle:
        return await self._transact("createProduct", name, batch_id, category, production_timestamp, metadata_uri)

    async def assign_distributor(self, product_id: int, address: str) -> TxHandle:
        return await self._transact("assignDistributor", product_id, address)

    async def assign_retailer(self, product_id: int, address: str) -> TxHandle:
        return await self._transact("assignRetailer", product_id, address)

    async def add_certification(self, product_id: int, certification: str) -> TxHandle:
        return await self._transact("addCertification", product_id, certification)

    async def approve_quality(self, product_id: int, expiry_timestamp: int) -> TxHandle:
        return await self._transact("approveQuality", product_id, expiry_timestamp)

    async def sell_to_consumer(self, product_id: int, address: str) -> TxHandle:
        return await self._transact("sellToConsumer", product_id, address)
