"""Session registry: lifecycle of observed sessions.

The registry owns every Session it creates. Sessions are mutated only through
registry operations, each of which bumps updated_at. Lookups of unknown ids
return None and mutations of unknown ids are silent no-ops.

State machine:
    CREATED -> INITIALIZING -> ACTIVE -> CLOSED
    ERROR reachable from any non-terminal state

By default the registry records whatever state it is asked to. A registry
built with strict_transitions=True checks _ALLOWED_TRANSITIONS first and
raises InvalidTransitionError for anything else.
"""

from __future__ import annotations

__all__ = [
    "SessionRegistry",
    "is_allowed_transition",
]

import logging
from datetime import timedelta
from typing import Any, Mapping

from mcp_trace.config import ServerConfig, validate_server_config
from mcp_trace.constants import DEFAULT_PROTOCOL, SESSIONS_LOGGER_NAME
from mcp_trace.exceptions import InvalidTransitionError
from mcp_trace.models.enums import Protocol, SessionState
from mcp_trace.models.session import Session, create_session, utc_now

_logger = logging.getLogger(SESSIONS_LOGGER_NAME)

# Smallest step used to keep updated_at strictly increasing
_CLOCK_TICK = timedelta(microseconds=1)

_ALLOWED_TRANSITIONS: dict[SessionState, frozenset[SessionState]] = {
    SessionState.CREATED: frozenset(
        {SessionState.CREATED, SessionState.INITIALIZING, SessionState.CLOSED, SessionState.ERROR}
    ),
    SessionState.INITIALIZING: frozenset(
        {SessionState.INITIALIZING, SessionState.ACTIVE, SessionState.CLOSED, SessionState.ERROR}
    ),
    SessionState.ACTIVE: frozenset({SessionState.ACTIVE, SessionState.CLOSED, SessionState.ERROR}),
    SessionState.CLOSED: frozenset(),
    SessionState.ERROR: frozenset(),
}


def is_allowed_transition(current: SessionState, requested: SessionState) -> bool:
    """Check an edge against the lifecycle state machine.

    Args:
        current: State the session is in.
        requested: State being requested.

    Returns:
        True if strict registries accept the change.
    """
    return requested in _ALLOWED_TRANSITIONS[current]


class SessionRegistry:
    """In-memory registry of observed sessions.

    Not thread-safe; intended for a single event loop.

    Usage:
        registry = SessionRegistry()
        session = registry.create({"name": "fs", "transport": "stdio", "command": "node"})
        registry.update_state(session.id, SessionState.ACTIVE)
        registry.close(session.id)
    """

    def __init__(
        self,
        *,
        strict_transitions: bool = False,
        default_protocol: Protocol | str = DEFAULT_PROTOCOL,
    ) -> None:
        """Initialize an empty registry.

        Args:
            strict_transitions: Reject illegal state changes instead of recording them.
            default_protocol: Protocol tag for sessions created without one.
        """
        self._sessions: dict[str, Session] = {}
        self._strict = strict_transitions
        self._default_protocol = Protocol(default_protocol)

    @property
    def strict_transitions(self) -> bool:
        return self._strict

    def create(
        self,
        config: ServerConfig | Mapping[str, Any],
        protocol: Protocol | str | None = None,
    ) -> Session:
        """Create and register a new session in state CREATED.

        Args:
            config: Server config, as a model or raw mapping.
            protocol: Protocol tag; the registry default if omitted.

        Returns:
            The new session.

        Raises:
            ValidationError: If config is malformed.
        """
        server_config = validate_server_config(config)
        session = create_session(server_config, protocol or self._default_protocol)
        self._sessions[session.id] = session

        _logger.debug(
            {
                "event": "session_created",
                "message": f"Session created for server '{server_config.name}'",
                "session_id": session.id,
                "transport": server_config.transport,
                "protocol": session.protocol.value,
            }
        )
        return session

    def get(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def list_active(self) -> list[Session]:
        """Sessions that are neither CLOSED nor ERROR, in creation order."""
        return [s for s in self._sessions.values() if s.is_active]

    def list_all(self) -> list[Session]:
        """All sessions regardless of state, in creation order."""
        return list(self._sessions.values())

    def close(self, session_id: str) -> None:
        """Mark a session CLOSED. Unknown ids are ignored.

        Raises:
            InvalidTransitionError: Strict registries only, if the session is
                already terminal.
        """
        self.update_state(session_id, SessionState.CLOSED)

    def update_state(self, session_id: str, state: SessionState | str) -> None:
        """Record a new lifecycle state. Unknown ids are ignored.

        Args:
            session_id: Session to update.
            state: New state (enum or its string value).

        Raises:
            ValueError: If state is not a SessionState value.
            InvalidTransitionError: Strict registries only, for edges outside
                the state machine.
        """
        requested = SessionState(state)
        session = self._sessions.get(session_id)
        if session is None:
            return

        previous = session.state
        if self._strict and not is_allowed_transition(previous, requested):
            _logger.warning(
                {
                    "event": "session_transition_rejected",
                    "message": f"Rejected transition {previous.value} -> {requested.value}",
                    "session_id": session_id,
                }
            )
            raise InvalidTransitionError(session_id, previous, requested)

        session.state = requested
        self._touch(session)

        _logger.debug(
            {
                "event": "session_state_changed",
                "session_id": session_id,
                "from_state": previous.value,
                "to_state": requested.value,
            }
        )

    def update_capabilities(
        self,
        session_id: str,
        client: Mapping[str, Any] | None = None,
        server: Mapping[str, Any] | None = None,
    ) -> None:
        """Record negotiated capabilities. Only the sides given are replaced.

        Args:
            session_id: Session to update; unknown ids are ignored.
            client: Capabilities announced by the client.
            server: Capabilities announced by the server.
        """
        session = self._sessions.get(session_id)
        if session is None:
            return

        if client is not None:
            session.client_capabilities = dict(client)
        if server is not None:
            session.server_capabilities = dict(server)
        self._touch(session)

    def update_protocol_version(self, session_id: str, protocol_version: str) -> None:
        """Record the protocol version agreed during negotiation. Unknown ids are ignored."""
        session = self._sessions.get(session_id)
        if session is None:
            return

        session.protocol_version = protocol_version
        self._touch(session)

    def delete(self, session_id: str) -> bool:
        """Remove a session entirely.

        Returns:
            True if the session existed.
        """
        existed = self._sessions.pop(session_id, None) is not None
        if existed:
            _logger.debug({"event": "session_deleted", "session_id": session_id})
        return existed

    def count(self) -> int:
        """Number of sessions, including CLOSED and ERROR ones."""
        return len(self._sessions)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    @staticmethod
    def _touch(session: Session) -> None:
        # updated_at must strictly increase even if the clock has not moved
        now = utc_now()
        if now <= session.updated_at:
            now = session.updated_at + _CLOCK_TICK
        session.updated_at = now
