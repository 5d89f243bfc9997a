"""Shared fixtures for mcp-trace tests."""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Callable

import pytest

from mcp_trace.models import Direction, Session, TraceEvent, create_trace_event
from mcp_trace.pipeline import Pipeline
from mcp_trace.session import SessionRegistry
from mcp_trace.store import EventStore
from rpc_messages import BASE_TIME


@pytest.fixture
def stdio_config() -> dict[str, Any]:
    """Minimal valid stdio server config."""
    return {"name": "srv", "transport": "stdio", "command": "node", "args": ["server.js"]}


@pytest.fixture
def http_config() -> dict[str, Any]:
    """Minimal valid http server config."""
    return {"name": "remote", "transport": "http", "url": "http://localhost:3010/mcp"}


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture
def store() -> EventStore:
    return EventStore()


@pytest.fixture
def pipeline() -> Pipeline:
    return Pipeline()


@pytest.fixture
def session(registry: SessionRegistry, stdio_config: dict[str, Any]) -> Session:
    """A CREATED session registered in the registry fixture."""
    return registry.create(stdio_config)


@pytest.fixture
def make_event() -> Callable[..., TraceEvent]:
    """Factory for events at BASE_TIME + offset_ms."""

    def _make(
        session_id: str,
        direction: Direction | str,
        payload: dict[str, Any],
        offset_ms: float = 0,
    ) -> TraceEvent:
        return create_trace_event(
            session_id,
            direction,
            payload,
            timestamp=BASE_TIME + timedelta(milliseconds=offset_ms),
        )

    return _make
