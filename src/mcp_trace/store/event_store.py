"""In-memory, append-only store of trace events.

Events are kept in one ordered list per session plus a secondary index keyed
by (session_id, request_id) for O(1) lookup. Stored events are never mutated;
the only removals are clear_session() and clear().

The store performs no locking. Appends for the same session must be
serialized by the caller or their relative order is a race.
"""

from __future__ import annotations

__all__ = ["EventStore"]

import logging
from typing import Any, Iterable, Mapping

from mcp_trace.constants import STORE_LOGGER_NAME
from mcp_trace.models.enums import Direction
from mcp_trace.models.envelope import RequestId
from mcp_trace.models.event import EventFilter, RequestResponsePair, TraceEvent

_logger = logging.getLogger(STORE_LOGGER_NAME)

# (session_id, request_id); 1 and "1" are different keys
_RequestKey = tuple[str, RequestId]


class EventStore:
    """Per-session event logs with request-id correlation and filtered queries.

    Usage:
        store = EventStore()
        store.store(event)
        pair = store.correlate(session_id, 1)
        errors = store.query(EventFilter(session_id=session_id, has_error=True))
    """

    def __init__(self) -> None:
        self._events: dict[str, list[TraceEvent]] = {}
        self._by_request_id: dict[_RequestKey, TraceEvent] = {}

    def store(self, event: TraceEvent) -> None:
        """Append an event to its session's log and index its request id.

        A later event with the same (session_id, request_id) replaces the
        earlier one in the index; both stay in the log.

        Args:
            event: Already-validated event.
        """
        self._events.setdefault(event.session_id, []).append(event)

        if event.request_id is not None:
            self._by_request_id[(event.session_id, event.request_id)] = event

        _logger.debug(
            {
                "event": "trace_event_stored",
                "session_id": event.session_id,
                "event_id": event.id,
                "direction": event.direction.value,
                "method": event.method,
                "request_id": event.request_id,
            }
        )

    def get_by_session(self, session_id: str) -> list[TraceEvent]:
        """Events of one session in append order; empty if there are none."""
        return list(self._events.get(session_id, ()))

    def get_by_request_id(self, session_id: str, request_id: RequestId) -> TraceEvent | None:
        """Most recently stored event carrying this request id in the session."""
        return self._by_request_id.get((session_id, request_id))

    def query(
        self,
        event_filter: EventFilter | Mapping[str, Any] | None = None,
        **criteria: Any,
    ) -> list[TraceEvent]:
        """Select events matching every given constraint.

        Constraints come either from an EventFilter (or mapping of its fields)
        or from keyword arguments, not both.

        Args:
            event_filter: Filter to apply.
            **criteria: EventFilter fields as keywords.

        Returns:
            Matching events. Order is preserved within a session; across
            sessions it follows session creation in the store.

        Raises:
            TypeError: If both a filter and keyword criteria are given.
            pydantic.ValidationError: If the criteria are malformed.
        """
        if event_filter is not None and criteria:
            raise TypeError("pass either an EventFilter or keyword criteria, not both")
        if event_filter is None:
            event_filter = EventFilter(**criteria)
        elif not isinstance(event_filter, EventFilter):
            event_filter = EventFilter.model_validate(event_filter)

        candidates: Iterable[TraceEvent]
        if event_filter.session_id is not None:
            candidates = self._events.get(event_filter.session_id, ())
        else:
            candidates = (event for events in self._events.values() for event in events)

        return [event for event in candidates if event_filter.matches(event)]

    def correlate(self, session_id: str, request_id: RequestId) -> RequestResponsePair | None:
        """Pair the outbound request with its inbound response.

        The request is the first outbound event with this id; the response
        is the first inbound one. Direction is never relaxed: a second
        outbound event is not a response, and an inbound event is never a
        request.

        Args:
            session_id: Session to search.
            request_id: JSON-RPC id shared by request and response.

        Returns:
            The pair (response may be None), or None when no outbound event
            carries this id.
        """
        request: TraceEvent | None = None
        response: TraceEvent | None = None

        for event in self._events.get(session_id, ()):
            if event.request_id != request_id:
                continue
            if request is None and event.direction == Direction.OUTBOUND:
                request = event
            elif response is None and event.direction == Direction.INBOUND:
                response = event
            if request is not None and response is not None:
                break

        if request is None:
            return None
        return RequestResponsePair(request=request, response=response)

    def count_by_session(self, session_id: str) -> int:
        return len(self._events.get(session_id, ()))

    def count(self) -> int:
        """Total number of events across all sessions."""
        return sum(len(events) for events in self._events.values())

    def __len__(self) -> int:
        return self.count()

    def session_ids(self) -> list[str]:
        """Ids of sessions that have at least one stored event."""
        return list(self._events)

    def clear_session(self, session_id: str) -> None:
        """Drop a session's log and its request-id index entries."""
        events = self._events.pop(session_id, [])
        for event in events:
            if event.request_id is not None:
                self._by_request_id.pop((session_id, event.request_id), None)

        if events:
            _logger.debug(
                {
                    "event": "session_events_cleared",
                    "session_id": session_id,
                    "removed": len(events),
                }
            )

    def clear(self) -> None:
        """Drop everything."""
        self._events.clear()
        self._by_request_id.clear()
