"""JSON-RPC backend built on web3.py's asyncio API.

Signing is delegated to the node (``eth_accounts`` / ``eth_sendTransaction``),
which is how local development chains such as Hardhat or anvil expose their
funded accounts. Browser-style injected wallets are outside this package.
"""

from __future__ import annotations

from typing import Any, Dict

from web3 import AsyncHTTPProvider, AsyncWeb3, Web3

from supplychain.core.errors import NotConnectedError

from .abi import SUPPLY_CHAIN_ABI
from .gateway import AddressSigner, Signer


def build_web3(rpc_url: str) -> AsyncWeb3:
    return AsyncWeb3(AsyncHTTPProvider(rpc_url))


class Web3TxHandle:
    def __init__(self, w3: AsyncWeb3, tx_hash: Any) -> None:
        self._w3 = w3
        self._raw_hash = tx_hash
        self.tx_hash = Web3.to_hex(tx_hash)

    async def wait(self) -> Dict[str, Any]:
        receipt = await self._w3.eth.wait_for_transaction_receipt(self._raw_hash)
        return dict(receipt)


class Web3ContractBinding:
    def __init__(self, w3: AsyncWeb3, contract_address: str, signer: Signer | None) -> None:
        self._w3 = w3
        self._contract = w3.eth.contract(address=Web3.to_checksum_address(contract_address), abi=SUPPLY_CHAIN_ABI)
        self._signer = signer

    async def call(self, function: str, *args: Any) -> Any:
        return await getattr(self._contract.functions, function)(*args).call()

    async def transact(self, function: str, *args: Any) -> Web3TxHandle:
        if self._signer is None:
            raise NotConnectedError()
        sender = await self._signer.get_address()
        tx_hash = await getattr(self._contract.functions, function)(*args).transact({"from": sender})
        return Web3TxHandle(self._w3, tx_hash)


class Web3LedgerProvider:
    def __init__(self, w3: AsyncWeb3) -> None:
        self.w3 = w3

    def bind(self, contract_address: str, signer: Signer | None) -> Web3ContractBinding:
        return Web3ContractBinding(self.w3, contract_address, signer)


class Web3WalletProvider:
    """Wallet backed by the node's unlocked accounts; the first account signs."""

    def __init__(self, w3: AsyncWeb3) -> None:
        self._w3 = w3
        self._accounts: list[str] = []

    async def request_accounts(self) -> list[str]:
        self._accounts = [Web3.to_checksum_address(a) for a in await self._w3.eth.accounts]
        return list(self._accounts)

    async def get_signer(self) -> AddressSigner:
        if not self._accounts:
            await self.request_accounts()
        if not self._accounts:
            raise NotConnectedError("No accounts available from the node")
        return AddressSigner(self._accounts[0])
