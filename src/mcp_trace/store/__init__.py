"""Append-only trace event storage."""

from mcp_trace.store.event_store import EventStore

__all__ = ["EventStore"]
