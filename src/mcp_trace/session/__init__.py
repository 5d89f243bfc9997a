"""Session lifecycle tracking."""

from mcp_trace.session.registry import SessionRegistry, is_allowed_transition

__all__ = [
    "SessionRegistry",
    "is_allowed_transition",
]
