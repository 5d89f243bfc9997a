"""Trace engine: one explicitly constructed registry, store and pipeline.

There are no module-level shared instances. The hosting application builds
one engine (usually from a TraceConfig) and hands it to its transport
adapters and query layer; tests build as many isolated engines as they like.

Example usage:
    engine = TraceEngine.from_config(TraceConfig.load_from_file(path))
    session = engine.registry.create({"name": "fs", "transport": "stdio", "command": "node"})
    await engine.observe(session.id, "outbound", {"jsonrpc": "2.0", "id": 1, "method": "tools/list"})
"""

from __future__ import annotations

__all__ = ["TraceEngine"]

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from mcp_trace.config import TraceConfig
from mcp_trace.constants import APP_NAME
from mcp_trace.models.enums import Direction, Protocol
from mcp_trace.models.envelope import JsonRpcNotification, JsonRpcRequest, JsonRpcResponse
from mcp_trace.models.event import TraceEvent, create_trace_event
from mcp_trace.pipeline.handlers import create_store_handler, create_wire_logging_handler
from mcp_trace.pipeline.pipeline import Pipeline
from mcp_trace.session.registry import SessionRegistry
from mcp_trace.store.event_store import EventStore
from mcp_trace.telemetry.system_logger import configure_system_logger_file, get_system_logger

_logger = logging.getLogger(f"{APP_NAME}.engine")


@dataclass
class TraceEngine:
    """Registry, store and pipeline wired together.

    Attributes:
        registry: Session registry.
        store: Event store.
        pipeline: Handler chain run by observe().
    """

    registry: SessionRegistry = field(default_factory=SessionRegistry)
    store: EventStore = field(default_factory=EventStore)
    pipeline: Pipeline = field(default_factory=Pipeline)

    @classmethod
    def from_config(cls, config: TraceConfig | None = None) -> "TraceEngine":
        """Build an engine from configuration.

        The pipeline is pre-loaded with a wire logging handler (DEBUG
        log level only) followed by a store handler. Observers add their
        own handlers after these with engine.pipeline.use().

        Args:
            config: Engine settings; defaults if omitted.

        Returns:
            New engine with fresh, empty state.
        """
        config = config or TraceConfig()

        registry = SessionRegistry(
            strict_transitions=config.sessions.strict_transitions,
            default_protocol=config.sessions.default_protocol,
        )
        store = EventStore()
        pipeline = Pipeline()

        if config.logging.log_level == "DEBUG":
            configure_system_logger_file(config.logging.system_log_path)
            pipeline.use(
                create_wire_logging_handler(
                    config.logging.wire_log_path,
                    include_payloads=config.logging.include_payloads,
                )
            )
        pipeline.use(create_store_handler(store))

        get_system_logger().info(
            {
                "event": "trace_engine_started",
                "message": f"Trace engine ready ({len(pipeline)} handlers)",
                "strict_transitions": config.sessions.strict_transitions,
                "log_level": config.logging.log_level,
            }
        )
        return cls(registry=registry, store=store, pipeline=pipeline)

    async def observe(
        self,
        session_id: str,
        direction: Direction | str,
        message: JsonRpcRequest | JsonRpcResponse | JsonRpcNotification | Mapping[str, Any],
        protocol: Protocol | str | None = None,
    ) -> TraceEvent | None:
        """Capture one message and run it through the pipeline.

        Args:
            session_id: Session the message belongs to.
            direction: Direction relative to the observed endpoint.
            message: Parsed message or raw decoded JSON object.
            protocol: Message dialect; the session's protocol if omitted.

        Returns:
            The captured event, or None if the session is unknown.

        Raises:
            ValidationError: If message is not a valid JSON-RPC envelope.
            Exception: Whatever a pipeline handler raised.
        """
        session = self.registry.get(session_id)
        if session is None:
            _logger.debug({"event": "observe_unknown_session", "session_id": session_id})
            return None

        event = create_trace_event(
            session.id,
            direction,
            message,
            protocol=protocol or session.protocol,
        )
        await self.pipeline.process(event, session)
        return event
