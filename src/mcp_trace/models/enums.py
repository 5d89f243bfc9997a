"""Enumerations shared by the trace models.

All enums inherit from str so they compare equal to, and serialize as,
their wire values.
"""

from __future__ import annotations

__all__ = [
    "Direction",
    "Protocol",
    "SessionState",
]

from enum import Enum


class SessionState(str, Enum):
    """Lifecycle state of an observed session.

    CREATED -> INITIALIZING -> ACTIVE -> CLOSED, with ERROR reachable from
    any non-terminal state. CLOSED and ERROR are terminal.
    """

    CREATED = "CREATED"
    INITIALIZING = "INITIALIZING"
    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"
    ERROR = "ERROR"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.CLOSED, SessionState.ERROR)


class Direction(str, Enum):
    """Direction of a message relative to the observed endpoint.

    Attributes:
        INBOUND: Captured arriving from the endpoint.
        OUTBOUND: Captured leaving toward the endpoint.
    """

    INBOUND = "inbound"
    OUTBOUND = "outbound"


class Protocol(str, Enum):
    """Message dialect spoken on a session."""

    MCP = "mcp"
    ACP = "acp"
    A2A = "a2a"
