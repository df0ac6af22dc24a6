"""Mutating ledger operations and their local validation.

Each operation maps keyword input (as typed into a form) to the positional
arguments of one gateway method. ``prepare`` is synchronous and raises
``ValidationError`` before anything reaches the network.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, Mapping, Tuple

from supplychain.core.accounts import is_valid_address, require_address
from supplychain.core.errors import ValidationError
from supplychain.registry.scanner import parse_product_id


def _text(args: Mapping[str, Any], key: str) -> str:
    value = args.get(key)
    if value is None:
        return ""
    return str(value).strip()


def to_epoch_seconds(value: Any) -> int:
    """Coerce a date input to whole UTC epoch seconds.

    Accepts ``datetime`` (naive means UTC), ``date`` (midnight UTC), epoch
    integers, and ISO 8601 strings such as ``2025-03-01`` from a date picker.
    """

    if isinstance(value, bool):
        raise ValidationError("Invalid date")
    if isinstance(value, int):
        if value < 0:
            raise ValidationError("Invalid date")
        return value
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        try:
            dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError(f"Invalid date: {value}") from None
    else:
        raise ValidationError("Invalid date")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return math.floor(dt.timestamp())


def _registration(label: str) -> Callable[[Mapping[str, Any]], Tuple[Any, ...]]:
    def prepare(args: Mapping[str, Any]) -> Tuple[Any, ...]:
        details = _text(args, "details")
        if not is_valid_address(args.get("address")) or not details:
            raise ValidationError(f"Invalid {label} address or details")
        return require_address(args.get("address")), details

    return prepare


def _prepare_create_product(args: Mapping[str, Any]) -> Tuple[Any, ...]:
    name = _text(args, "name")
    batch_id = _text(args, "batch_id")
    category = _text(args, "category")
    production_date = args.get("production_date")
    if not name or not batch_id or not category or production_date in (None, ""):
        raise ValidationError("Please fill all product fields")
    return name, batch_id, category, to_epoch_seconds(production_date), _text(args, "metadata_uri")


def _product_id(args: Mapping[str, Any]) -> int:
    try:
        return parse_product_id(args.get("product_id"))
    except ValidationError:
        raise ValidationError("Invalid input") from None


def _prepare_product_and_address(args: Mapping[str, Any]) -> Tuple[Any, ...]:
    product_id = _product_id(args)
    if not is_valid_address(args.get("address")):
        raise ValidationError("Invalid input")
    return product_id, require_address(args.get("address"))


def _prepare_certification(args: Mapping[str, Any]) -> Tuple[Any, ...]:
    product_id = _product_id(args)
    certification = _text(args, "certification")
    if not certification:
        raise ValidationError("Invalid input")
    return product_id, certification


def _prepare_approval(args: Mapping[str, Any]) -> Tuple[Any, ...]:
    product_id = _product_id(args)
    expiry = args.get("expiry_date")
    if expiry in (None, ""):
        raise ValidationError("Invalid input")
    return product_id, to_epoch_seconds(expiry)


@dataclass(frozen=True)
class Operation:
    name: str
    method: str
    pending_message: str
    success_message: str
    prepare: Callable[[Mapping[str, Any]], Tuple[Any, ...]]


OPERATIONS: Dict[str, Operation] = {
    op.name: op
    for op in (
        Operation(
            "register_producer",
            "register_producer",
            "Sending registerProducer tx...",
            "Producer registered ✓",
            _registration("producer"),
        ),
        Operation(
            "register_quality_inspector",
            "register_quality_inspector",
            "Registering inspector...",
            "Inspector registered ✓",
            _registration("inspector"),
        ),
        Operation(
            "register_distributor",
            "register_distributor",
            "Registering distributor...",
            "Distributor registered ✓",
            _registration("distributor"),
        ),
        Operation(
            "register_retailer",
            "register_retailer",
            "Registering retailer...",
            "Retailer registered ✓",
            _registration("retailer"),
        ),
        Operation("create_product", "create_product", "Creating product...", "Product created ✓", _prepare_create_product),
        Operation(
            "assign_distributor",
            "assign_distributor",
            "Assigning distributor...",
            "Distributor assigned ✓",
            _prepare_product_and_address,
        ),
        Operation(
            "assign_retailer",
            "assign_retailer",
            "Assigning retailer...",
            "Retailer assigned ✓",
            _prepare_product_and_address,
        ),
        Operation(
            "add_certification",
            "add_certification",
            "Adding certification...",
            "Certification added ✓",
            _prepare_certification,
        ),
        Operation("approve_quality", "approve_quality", "Approving quality...", "Quality approved ✓", _prepare_approval),
        Operation(
            "sell_to_consumer",
            "sell_to_consumer",
            "Selling to consumer...",
            "Sold to consumer ✓",
            _prepare_product_and_address,
        ),
    )
}
