from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable

from . import streams


ENVELOPE_KEYS = frozenset({"event_id", "trace_id", "produced_at", "schema", "schema_version", "payload"})


def _check_keys(obj: dict[str, Any], keys: Iterable[str], *, optional: Iterable[str] = ()) -> None:
    expected = set(keys)
    present = set(obj)
    missing = sorted(expected - present)
    unexpected = sorted(present - expected - set(optional))
    if missing or unexpected:
        raise ValueError(f"v1 key mismatch: missing={missing} unexpected={unexpected}")


def _text(d: dict[str, Any], k: str) -> str:
    v = d.get(k)
    if isinstance(v, str) and v.strip():
        return v
    raise ValueError(f"{k}: expected non-empty string")


def _int(d: dict[str, Any], k: str) -> int:
    v = d.get(k)
    if isinstance(v, bool) or not isinstance(v, int):
        raise ValueError(f"{k}: expected int")
    return v


def _count(d: dict[str, Any], k: str) -> int:
    v = _int(d, k)
    if v < 0:
        raise ValueError(f"{k}: expected count >= 0")
    return v


def validate_envelope_dict(event: dict[str, Any]) -> None:
    """Strict v1 envelope: no extra keys, tz-aware timestamp, payload checked per schema."""

    _check_keys(event, ENVELOPE_KEYS, optional=("source_service",))
    _text(event, "event_id")
    _text(event, "trace_id")
    try:
        produced_at = datetime.fromisoformat(_text(event, "produced_at").replace("Z", "+00:00"))
    except ValueError as e:
        raise ValueError(f"produced_at: {e}") from None
    if produced_at.tzinfo is None:
        raise ValueError("produced_at: timezone required")

    schema = _text(event, "schema")
    if _int(event, "schema_version") != 1 or not schema.endswith(".v1"):
        raise ValueError("only schema_version 1 on .v1 streams")

    payload = event.get("payload")
    if not isinstance(payload, dict):
        raise ValueError("payload: expected object")
    validate_payload(schema, payload)


_PAYLOAD_KEYS: dict[str, frozenset[str]] = {
    streams.LEDGER_TX_SUBMITTED_V1: frozenset({"operation", "message"}),
    streams.LEDGER_TX_CONFIRMED_V1: frozenset({"operation", "message", "tx_hash"}),
    streams.LEDGER_TX_FAILED_V1: frozenset({"operation", "message", "stage"}),
    streams.REGISTRY_SCAN_COMPLETED_V1: frozenset({"registry_size", "loaded", "unreadable"}),
    streams.DASHBOARD_STATS_COMPUTED_V1: frozenset(
        {
            "total_products",
            "approved_products",
            "owned_by_caller",
            "registered_participants",
            "transfer_estimate",
            "unreadable_products",
        }
    ),
}

TX_STAGES = ("validation", "submission", "confirmation")


def validate_payload(schema: str, payload: dict[str, Any]) -> None:
    keys = _PAYLOAD_KEYS.get(schema)
    if keys is None:
        raise ValueError(f"unknown schema: {schema}")
    _check_keys(payload, keys)

    if schema.startswith("ledger.tx."):
        _text(payload, "operation")
        _text(payload, "message")
        # Some backends do not report a hash; empty string is allowed.
        if schema == streams.LEDGER_TX_CONFIRMED_V1 and not isinstance(payload["tx_hash"], str):
            raise ValueError("tx_hash: expected string")
        if schema == streams.LEDGER_TX_FAILED_V1 and _text(payload, "stage") not in TX_STAGES:
            raise ValueError(f"stage: expected one of {TX_STAGES}")
    elif schema == streams.REGISTRY_SCAN_COMPLETED_V1:
        if _count(payload, "loaded") + _count(payload, "unreadable") != _count(payload, "registry_size"):
            raise ValueError("loaded + unreadable must equal registry_size")
    else:
        if _count(payload, "approved_products") > _count(payload, "total_products"):
            raise ValueError("approved_products must be <= total_products")
        _count(payload, "owned_by_caller")
        _count(payload, "registered_participants")
        for k in ("transfer_estimate", "unreadable_products"):
            if payload[k] is not None:
                _count(payload, k)


def validate_many(events: Iterable[dict[str, Any]]) -> None:
    for ev in events:
        validate_envelope_dict(ev)
