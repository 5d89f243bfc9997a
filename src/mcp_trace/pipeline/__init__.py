"""Interception pipeline: context, composition, and ready-made handlers."""

from mcp_trace.pipeline.context import Context, ContextKey, create_context_key
from mcp_trace.pipeline.handlers import (
    MethodFilterHandler,
    StoreHandler,
    WireLoggingHandler,
    create_store_handler,
    create_wire_logging_handler,
)
from mcp_trace.pipeline.pipeline import CallNext, Handler, Pipeline, compose, create_pipeline

__all__ = [
    # Context
    "Context",
    "ContextKey",
    "create_context_key",
    # Pipeline
    "CallNext",
    "Handler",
    "Pipeline",
    "compose",
    "create_pipeline",
    # Handlers
    "MethodFilterHandler",
    "StoreHandler",
    "WireLoggingHandler",
    "create_store_handler",
    "create_wire_logging_handler",
]
