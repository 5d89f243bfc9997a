"""Telemetry domain: wire trace logs and system events.

Structure:
    models          Pydantic models for log records (wire.jsonl)
    system_logger   System operational logs (stderr + system.jsonl)

The handler that writes wire logs lives with the other pipeline handlers in
mcp_trace.pipeline.handlers.
"""

__all__: list[str] = []
