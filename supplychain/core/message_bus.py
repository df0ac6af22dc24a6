from __future__ import annotations

import json
import logging
import uuid
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .models import EventEnvelope

from supplychain.contracts.validation import validate_envelope_dict


logger = logging.getLogger(__name__)


def new_trace_id() -> str:
    return str(uuid.uuid4())


def build_event(
    *,
    schema: str,
    payload: Dict[str, Any],
    trace_id: str | None = None,
    source_service: str = "supplychain-client",
) -> EventEnvelope:
    """Build a v1 envelope; the stream name equals the schema name in v1."""

    return EventEnvelope(
        event_id=str(uuid.uuid4()),
        trace_id=trace_id or new_trace_id(),
        produced_at=datetime.now(timezone.utc),
        schema=schema,
        schema_version=1,
        payload=payload,
        source_service=source_service,
    )


def envelope_to_wire_dict(event: EventEnvelope) -> dict:
    d = asdict(event)
    produced_at = event.produced_at
    if produced_at.tzinfo is None:
        produced_at = produced_at.replace(tzinfo=timezone.utc)
    d["produced_at"] = produced_at.isoformat()
    return d


class MessageBus:
    """Abstraction for publishing client events to other processes."""

    async def publish(self, stream: str, event: EventEnvelope) -> None:  # pragma: no cover
        raise NotImplementedError


class RedisStreamBus(MessageBus):
    """Redis Streams publisher.

    The client core only produces events; consumers (dashboards, audit
    tooling) live in other processes.
    """

    def __init__(self, redis_url: str, *, maxlen: Optional[int] = 10_000):
        self.redis_url = redis_url
        self.maxlen = maxlen
        self._client = None

    def _get_client(self):
        if self._client is None:
            import redis.asyncio as aioredis  # type: ignore

            self._client = aioredis.Redis.from_url(self.redis_url, decode_responses=True)
        return self._client

    async def publish(self, stream: str, event: EventEnvelope) -> None:
        wire = envelope_to_wire_dict(event)
        validate_envelope_dict(wire)
        body = json.dumps(wire, ensure_ascii=False)
        await self._get_client().xadd(stream, {"event": body}, maxlen=self.maxlen, approximate=True)


async def publish_quietly(bus: MessageBus | None, event: EventEnvelope) -> None:
    """Publish if a bus is configured; a bus outage must not fail the user action."""

    if bus is None:
        return
    try:
        await bus.publish(event.schema, event)
    except Exception as e:
        logger.warning("event_publish_failed", extra={"schema": event.schema, "error": str(e)})
