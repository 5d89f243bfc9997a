"""Pydantic models for wire-level trace logs (logs/debug/wire.jsonl).

IMPORTANT: The 'time' field is Optional[str] = None because:
- Model instances are created WITHOUT timestamps (time=None)
- ISO8601Formatter adds the timestamp during log serialization
- Logged events ALWAYS have a 'time' field in ISO 8601 format

'captured_at' is different: it is the TraceEvent's own capture timestamp,
which may differ from the time the record was written.
"""

from __future__ import annotations

__all__ = ["TraceLogEvent"]

from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class TraceLogEvent(BaseModel):
    """
    One observed message, as written to the wire log.

    Emitted once per pipeline run by the wire logging handler. When the
    downstream handlers raised, the error fields are populated.

    Note: 'time' is None when created, populated by ISO8601Formatter during logging.
    """

    time: Optional[str] = Field(
        None,
        description="ISO 8601 timestamp, added by formatter during serialization",
    )
    event: Literal["trace_event", "trace_event_error"] = "trace_event"
    direction: Literal["inbound", "outbound"]
    protocol: str

    # Correlation IDs
    event_id: str
    session_id: str
    request_id: Optional[Union[int, str]] = None

    method: Optional[str] = None
    captured_at: str  # ISO 8601 capture time of the TraceEvent
    size: int  # Serialized payload length in bytes
    has_error: bool = False  # JSON-RPC error response

    # Time spent in downstream handlers
    duration_ms: float

    # Payload (optional, can be large)
    payload: Optional[str] = None  # Serialized JSON string

    # Handler failure details
    error: Optional[str] = None
    error_type: Optional[str] = None

    model_config = ConfigDict(extra="allow")
