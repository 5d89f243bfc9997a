"""mcp-trace: in-process trace engine for JSON-RPC agent traffic.

Records messages exchanged between an agent client and a tool endpoint,
groups them per session, correlates requests with responses, and lets
observers hook into every message through an async handler pipeline.

Usage:
    from mcp_trace import TraceEngine, SessionState

    engine = TraceEngine.from_config()
    session = engine.registry.create({"name": "srv", "transport": "stdio", "command": "node"})
    engine.registry.update_state(session.id, SessionState.ACTIVE)
"""

from mcp_trace.config import LoggingConfig, ServerConfig, SessionsConfig, TraceConfig
from mcp_trace.engine import TraceEngine
from mcp_trace.exceptions import (
    ConfigurationError,
    ContinuationReusedError,
    InvalidTransitionError,
    TraceError,
    ValidationError,
)
from mcp_trace.models import (
    Direction,
    EventFilter,
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
    Protocol,
    RequestResponsePair,
    Session,
    SessionState,
    TraceEvent,
    create_trace_event,
    parse_message,
)
from mcp_trace.pipeline import (
    Context,
    ContextKey,
    MethodFilterHandler,
    Pipeline,
    StoreHandler,
    WireLoggingHandler,
    create_context_key,
    create_pipeline,
)
from mcp_trace.session import SessionRegistry
from mcp_trace.store import EventStore

__version__ = "0.1.0"

__all__ = [
    # Engine
    "TraceEngine",
    # Config
    "LoggingConfig",
    "ServerConfig",
    "SessionsConfig",
    "TraceConfig",
    # Errors
    "ConfigurationError",
    "ContinuationReusedError",
    "InvalidTransitionError",
    "TraceError",
    "ValidationError",
    # Models
    "Direction",
    "EventFilter",
    "JsonRpcNotification",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "Protocol",
    "RequestResponsePair",
    "Session",
    "SessionState",
    "TraceEvent",
    "create_trace_event",
    "parse_message",
    # Pipeline
    "Context",
    "ContextKey",
    "MethodFilterHandler",
    "Pipeline",
    "StoreHandler",
    "WireLoggingHandler",
    "create_context_key",
    "create_pipeline",
    # Components
    "EventStore",
    "SessionRegistry",
]
