"""Ready-made pipeline handlers.

- StoreHandler: appends the event to an EventStore, then continues
- WireLoggingHandler: writes one JSONL record per event once the rest of
  the chain has finished (or failed)
- MethodFilterHandler: stops the chain for events whose method is filtered

Typical order: WireLogging (outer) -> MethodFilter -> Store (inner), so the
wire log sees every event and its outcome, while filtered events are never
stored.
"""

from __future__ import annotations

__all__ = [
    "MethodFilterHandler",
    "StoreHandler",
    "WireLoggingHandler",
    "create_store_handler",
    "create_wire_logging_handler",
]

import json
import logging
import time
import uuid
from pathlib import Path
from typing import Iterable

from mcp_trace.constants import WIRE_LOGGER_NAME
from mcp_trace.models.envelope import message_to_dict
from mcp_trace.models.event import TraceEvent
from mcp_trace.pipeline.context import Context
from mcp_trace.pipeline.pipeline import CallNext
from mcp_trace.store.event_store import EventStore
from mcp_trace.telemetry.models import TraceLogEvent
from mcp_trace.utils.logging.iso_formatter import format_iso8601
from mcp_trace.utils.logging.logger_setup import setup_jsonl_logger


class StoreHandler:
    """Records context.event in an EventStore before continuing the chain.

    Storing happens on the way in, so the event is kept even if a later
    handler raises.
    """

    def __init__(self, store: EventStore) -> None:
        self.store = store

    async def __call__(self, context: Context, call_next: CallNext) -> None:
        self.store.store(context.event)
        await call_next()


class WireLoggingHandler:
    """Writes a TraceLogEvent for every event that passes through.

    The record is written after the rest of the chain completes, so
    duration_ms covers all downstream handlers. When they raise, the record
    carries the error and the exception is re-raised unchanged.
    """

    def __init__(
        self,
        logger: logging.Logger | None = None,
        *,
        include_payloads: bool = True,
        log_level: int = logging.INFO,
    ) -> None:
        """Initialize wire logging handler.

        Args:
            logger: Logger to write to (default: the mcp-trace wire logger).
            include_payloads: Whether to include serialized payloads.
            log_level: Level records are logged at.
        """
        self.logger = logger or logging.getLogger(WIRE_LOGGER_NAME)
        self.include_payloads = include_payloads
        self.log_level = log_level

    async def __call__(self, context: Context, call_next: CallNext) -> None:
        start_time = time.perf_counter()
        try:
            await call_next()
        except Exception as e:
            self._log(context.event, start_time, error=e)
            raise
        self._log(context.event, start_time)

    def _log(self, event: TraceEvent, start_time: float, error: Exception | None = None) -> None:
        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)

        payload = None
        if self.include_payloads:
            payload = json.dumps(message_to_dict(event.payload), separators=(",", ":"))

        record = TraceLogEvent(
            event="trace_event" if error is None else "trace_event_error",
            direction=event.direction.value,
            protocol=event.protocol.value,
            event_id=event.id,
            session_id=event.session_id,
            request_id=event.request_id,
            method=event.method,
            captured_at=format_iso8601(event.timestamp),
            size=event.size,
            has_error=event.has_error,
            duration_ms=duration_ms,
            payload=payload,
            error=str(error) if error is not None else None,
            error_type=type(error).__name__ if error is not None else None,
        )
        self.logger.log(self.log_level, record.model_dump(exclude_none=True))


class MethodFilterHandler:
    """Stops the chain for events whose method is (or is not) in a set.

    Events without a method (responses) always continue.

    Attributes:
        methods: Method names to match.
        exclude: If True, matching events are dropped; otherwise only
            matching events continue.
    """

    def __init__(self, methods: Iterable[str], *, exclude: bool = False) -> None:
        self.methods = frozenset(methods)
        self.exclude = exclude

    async def __call__(self, context: Context, call_next: CallNext) -> None:
        method = context.event.method
        if method is None or (method in self.methods) != self.exclude:
            await call_next()


def create_store_handler(store: EventStore) -> StoreHandler:
    """Create a handler that records events in store.

    Returns:
        Configured StoreHandler.
    """
    return StoreHandler(store)


def create_wire_logging_handler(
    log_path: Path,
    *,
    include_payloads: bool = True,
) -> WireLoggingHandler:
    """Create a wire logging handler writing JSONL to log_path.

    Each call gets its own child of the wire logger, so handlers built for
    different engines never write to each other's files.

    Args:
        log_path: Path to the wire log file (directories are created).
        include_payloads: Whether to include serialized payloads.

    Returns:
        Configured WireLoggingHandler.

    Raises:
        PermissionError: If the log directory cannot be created.
        OSError: If the log file cannot be opened.
    """
    logger_name = f"{WIRE_LOGGER_NAME}.{uuid.uuid4().hex[:12]}"
    logger = setup_jsonl_logger(logger_name, log_path, logging.DEBUG)
    return WireLoggingHandler(logger, include_payloads=include_payloads, log_level=logging.DEBUG)
