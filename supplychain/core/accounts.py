from __future__ import annotations

from typing import Any

from web3 import Web3

from .errors import ValidationError


def is_valid_address(value: Any) -> bool:
    """Hex address check; mixed-case input must carry a valid EIP-55 checksum."""

    if not isinstance(value, str) or not value.strip():
        return False
    return bool(Web3.is_address(value.strip()))


def require_address(value: Any, *, field: str = "address") -> str:
    """Validate and return the checksum form of ``value``."""

    if not is_valid_address(value):
        raise ValidationError(f"Invalid {field}")
    return Web3.to_checksum_address(value.strip())


def normalize_account(value: Any) -> str | None:
    """Checksum form of a valid address, ``None`` for anything else."""

    if not is_valid_address(value):
        return None
    return Web3.to_checksum_address(value.strip())


def same_account(a: Any, b: Any) -> bool:
    na = normalize_account(a)
    return na is not None and na == normalize_account(b)


def short_address(address: str) -> str:
    return f"{address[:6]}...{address[-4:]}"
