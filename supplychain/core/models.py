from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class EventEnvelope:
    event_id: str
    trace_id: str
    produced_at: datetime
    schema: str
    schema_version: int
    payload: Dict[str, Any]
    source_service: Optional[str] = None


# Fixed positions inside the getBasicProductInfo tuple.
BASIC_INFO_PRODUCER_INDEX = 1
BASIC_INFO_APPROVED_INDEX = 6


@dataclass(frozen=True)
class ProductRecord:
    """Decoded getBasicProductInfo result. Fields other than producer/approved are opaque."""

    id: int
    producer: str
    approved: bool
    fields: Tuple[Any, ...] = ()


@dataclass(frozen=True)
class ProductDetails:
    id: int
    fields: Tuple[Any, ...]


class ParticipantRole(str, Enum):
    PRODUCER = "Producer"
    QUALITY_INSPECTOR = "Quality Inspector"
    DISTRIBUTOR = "Distributor"
    RETAILER = "Retailer"
    PARTICIPANT = "Participant"
    SELF_ACCOUNT = "You"
