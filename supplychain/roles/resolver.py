"""Participant role resolution.

Precedence is fixed: the first registry that reports the address wins, so an
address registered as both distributor and retailer resolves to Distributor.
A failing registry query counts as "not registered" and the chain continues.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from supplychain.core.accounts import normalize_account, same_account
from supplychain.core.errors import extract_error_message
from supplychain.core.models import ParticipantRole
from supplychain.ledger.gateway import ContractGateway


logger = logging.getLogger(__name__)


# (role, gateway predicate name) in precedence order.
ROLE_PRECEDENCE: tuple[tuple[ParticipantRole, str], ...] = (
    (ParticipantRole.PRODUCER, "is_producer_registered"),
    (ParticipantRole.QUALITY_INSPECTOR, "is_quality_inspector_registered"),
    (ParticipantRole.DISTRIBUTOR, "is_distributor_registered"),
    (ParticipantRole.RETAILER, "is_retailer_registered"),
)


class RoleResolver:
    def __init__(
        self,
        gateway: ContractGateway,
        *,
        current_account: Callable[[], Optional[str]] = lambda: None,
    ) -> None:
        self._gateway = gateway
        self._current_account = current_account

    async def _registered(self, predicate: str, address: str) -> bool:
        try:
            return bool(await getattr(self._gateway, predicate)(address))
        except Exception as e:
            logger.warning(
                "role_check_failed",
                extra={"predicate": predicate, "address": address, "error": extract_error_message(e)},
            )
            return False

    async def resolve(self, address: str) -> ParticipantRole:
        """Role of ``address``; malformed input is a plain participant and queries nothing."""

        account = normalize_account(address)
        if account is None:
            return ParticipantRole.PARTICIPANT
        for role, predicate in ROLE_PRECEDENCE:
            if await self._registered(predicate, account):
                return role
        if same_account(account, self._current_account()):
            return ParticipantRole.SELF_ACCOUNT
        return ParticipantRole.PARTICIPANT
