"""Session model: one observed conversation between a client and an endpoint."""

from __future__ import annotations

__all__ = [
    "Session",
    "create_session",
    "utc_now",
]

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel

from mcp_trace.config import ServerConfig
from mcp_trace.constants import DEFAULT_PROTOCOL
from mcp_trace.models.enums import Protocol, SessionState


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class Session(BaseModel):
    """One tracked conversation.

    Mutated only by SessionRegistry; anything handed out by the registry is
    an observational snapshot from the caller's point of view.

    Attributes:
        id: Process-unique identifier (uuid4).
        state: Lifecycle state.
        created_at: When the session was created (UTC).
        updated_at: Last mutation time (UTC), never before created_at.
        config: How the endpoint is reached.
        protocol: Message dialect, "mcp" unless configured otherwise.
        protocol_version: Version agreed during negotiation, if known.
        client_capabilities: Capabilities the client announced, if known.
        server_capabilities: Capabilities the server announced, if known.
    """

    id: str
    state: SessionState = SessionState.CREATED
    created_at: datetime
    updated_at: datetime
    config: ServerConfig
    protocol: Protocol = Protocol(DEFAULT_PROTOCOL)
    protocol_version: str | None = None
    client_capabilities: dict[str, Any] | None = None
    server_capabilities: dict[str, Any] | None = None

    @property
    def is_active(self) -> bool:
        """True unless the session is CLOSED or ERROR."""
        return not self.state.is_terminal


def create_session(config: ServerConfig, protocol: Protocol | str = DEFAULT_PROTOCOL) -> Session:
    """Build a fresh CREATED session with a new uuid.

    Args:
        config: Already-validated server config.
        protocol: Message dialect tag.

    Returns:
        New Session with created_at == updated_at.
    """
    now = utc_now()
    return Session(
        id=str(uuid.uuid4()),
        state=SessionState.CREATED,
        created_at=now,
        updated_at=now,
        config=config,
        protocol=Protocol(protocol),
    )

