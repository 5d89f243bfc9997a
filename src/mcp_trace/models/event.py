"""Trace events and the read-side shapes built from them.

A TraceEvent wraps exactly one observed JSON-RPC message. It is created by
create_trace_event(), which derives the correlation fields from the payload,
and is immutable afterwards.
"""

from __future__ import annotations

__all__ = [
    "EventFilter",
    "RequestResponsePair",
    "TraceEvent",
    "create_trace_event",
]

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, field_validator

from mcp_trace.constants import DEFAULT_PROTOCOL
from mcp_trace.models.enums import Direction, Protocol
from mcp_trace.models.envelope import (
    JsonRpcMessage,
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
    RequestId,
    parse_message,
    serialized_size,
)
from mcp_trace.models.session import utc_now


def _assume_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes as UTC so comparisons never mix naive and aware."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class TraceEvent(BaseModel):
    """One recorded message.

    Attributes:
        id: Unique event id (uuid4).
        session_id: Owning session.
        timestamp: Capture time (UTC).
        direction: inbound (from endpoint) or outbound (toward endpoint).
        protocol: Message dialect.
        payload: The JSON-RPC message.
        method: Copied from the payload when it has one.
        request_id: Copied from the payload when it has a non-null id.
        size: Byte length of the compact JSON payload.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    session_id: str
    timestamp: datetime
    direction: Direction
    protocol: Protocol = Protocol(DEFAULT_PROTOCOL)
    payload: JsonRpcMessage
    method: str | None = None
    request_id: RequestId | None = None
    size: int

    @field_validator("timestamp")
    @classmethod
    def timestamp_as_utc(cls, value: datetime) -> datetime:
        return _assume_utc(value)

    @property
    def has_error(self) -> bool:
        """True when the payload is a response carrying an error member."""
        return isinstance(self.payload, JsonRpcResponse) and self.payload.error is not None


def create_trace_event(
    session_id: str,
    direction: Direction | str,
    payload: JsonRpcRequest | JsonRpcResponse | JsonRpcNotification | Mapping[str, Any],
    protocol: Protocol | str = DEFAULT_PROTOCOL,
    timestamp: datetime | None = None,
) -> TraceEvent:
    """Capture a message as a TraceEvent.

    Args:
        session_id: Session the message belongs to.
        direction: Direction relative to the observed endpoint.
        payload: Parsed message or raw decoded JSON object.
        protocol: Message dialect tag.
        timestamp: Capture time; now if omitted.

    Returns:
        Immutable TraceEvent with method, request_id and size derived.

    Raises:
        ValidationError: If a raw payload is not a valid JSON-RPC envelope.
    """
    message = parse_message(payload)

    method = getattr(message, "method", None)
    request_id = getattr(message, "id", None)

    return TraceEvent(
        id=str(uuid.uuid4()),
        session_id=session_id,
        timestamp=utc_now() if timestamp is None else timestamp,
        direction=Direction(direction),
        protocol=Protocol(protocol),
        payload=message,
        method=method,
        request_id=request_id,
        size=serialized_size(message),
    )


@dataclass(frozen=True)
class RequestResponsePair:
    """An outbound request and its inbound response, if one was seen.

    Computed on demand by EventStore.correlate(); never stored.

    Attributes:
        request: The outbound request event.
        response: The inbound response event, or None.
        latency_ms: response.timestamp - request.timestamp in milliseconds,
            None unless both events exist. Negative when the response was
            captured before the request.
    """

    request: TraceEvent
    response: TraceEvent | None = None

    @property
    def latency_ms(self) -> float | None:
        if self.response is None:
            return None
        return (self.response.timestamp - self.request.timestamp).total_seconds() * 1000


class EventFilter(BaseModel):
    """Conjunction of optional constraints for EventStore.query().

    A field left as None places no constraint on that dimension. Time bounds
    are inclusive on both ends.
    """

    model_config = ConfigDict(frozen=True)

    session_id: str | None = None
    direction: Direction | None = None
    method: str | None = None
    has_error: bool | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def bounds_as_utc(cls, value: datetime | None) -> datetime | None:
        return _assume_utc(value)

    def matches(self, event: TraceEvent) -> bool:
        """Check one event against every set constraint."""
        if self.session_id is not None and event.session_id != self.session_id:
            return False
        if self.direction is not None and event.direction != self.direction:
            return False
        if self.method is not None and event.method != self.method:
            return False
        if self.has_error is not None and event.has_error != self.has_error:
            return False
        if self.start_time is not None and event.timestamp < self.start_time:
            return False
        if self.end_time is not None and event.timestamp > self.end_time:
            return False
        return True
