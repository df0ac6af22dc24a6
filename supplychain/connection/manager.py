"""Wallet/signer lifecycle.

The wallet itself is an external collaborator (node accounts, a browser
wallet bridge, a test double). The manager only sequences it:
request accounts → get signer → read address → rebind the gateway.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Optional, Protocol

from supplychain.core.accounts import require_address, short_address
from supplychain.core.errors import NotConnectedError, extract_error_message
from supplychain.ledger.gateway import ContractGateway, Signer
from supplychain.transactions.status import StatusBanner


logger = logging.getLogger(__name__)

ConnectCallback = Callable[[str], Awaitable[Any]]


class WalletProvider(Protocol):
    async def request_accounts(self) -> list[str]:
        ...

    async def get_signer(self) -> Signer:
        ...


class ConnectionManager:
    def __init__(
        self,
        wallet: Optional[WalletProvider],
        gateway: ContractGateway,
        banner: StatusBanner,
    ) -> None:
        self._wallet = wallet
        self._gateway = gateway
        self._banner = banner
        self._callbacks: list[ConnectCallback] = []
        self.account: str | None = None

    @property
    def connected(self) -> bool:
        return self.account is not None

    def on_connect(self, callback: ConnectCallback) -> None:
        self._callbacks.append(callback)

    async def connect(self) -> str | None:
        """Connect the wallet; returns the checksum account or None on failure."""

        if self._wallet is None:
            self._banner.failure("Failed to connect wallet: no wallet provider configured")
            return None
        try:
            accounts = await self._wallet.request_accounts()
            if not accounts:
                raise NotConnectedError("no accounts available")
            signer = await self._wallet.get_signer()
            address = require_address(await signer.get_address(), field="wallet address")
        except Exception as e:
            message = extract_error_message(e)
            logger.error("wallet_connect_failed", extra={"error": message})
            self._banner.failure(f"Failed to connect wallet: {message}")
            return None

        self._gateway.set_signer(signer)
        self.account = address
        logger.info("wallet_connected", extra={"account": address})
        self._banner.success(f"Wallet connected: {short_address(address)}")

        for callback in list(self._callbacks):
            try:
                await callback(address)
            except Exception as e:
                logger.error("on_connect_callback_failed", extra={"error": extract_error_message(e)})
        return address

    def disconnect(self) -> None:
        self._gateway.set_signer(None)
        self.account = None
        logger.info("wallet_disconnected")

    def require_account(self) -> str:
        """Connected account for "use my address" inputs."""

        if self.account is None:
            raise NotConnectedError()
        return self.account
