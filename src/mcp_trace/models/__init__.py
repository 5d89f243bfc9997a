"""Pydantic data contracts: envelopes, sessions, trace events."""

from mcp_trace.models.enums import Direction, Protocol, SessionState
from mcp_trace.models.envelope import (
    JsonRpcMessage,
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
    RequestId,
    message_to_dict,
    parse_message,
    serialized_size,
)
from mcp_trace.models.event import (
    EventFilter,
    RequestResponsePair,
    TraceEvent,
    create_trace_event,
)
from mcp_trace.models.session import Session, create_session, utc_now

__all__ = [
    # Enums
    "Direction",
    "Protocol",
    "SessionState",
    # Envelopes
    "JsonRpcMessage",
    "JsonRpcNotification",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "RequestId",
    "message_to_dict",
    "parse_message",
    "serialized_size",
    # Sessions
    "Session",
    "create_session",
    "utc_now",
    # Events
    "EventFilter",
    "RequestResponsePair",
    "TraceEvent",
    "create_trace_event",
]
