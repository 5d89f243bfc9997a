"""Per-run context shared by pipeline handlers.

Handlers written independently of each other exchange data through typed
ContextKeys. A key is identified by an opaque token, never by its name, so
two keys created with the same name do not collide.

Example:
    TOOL_NAME = create_context_key("tool_name", default=None)

    async def tag_tools(context, call_next):
        if context.event.method == "tools/call":
            context.set(TOOL_NAME, context.event.payload.params["name"])
        await call_next()
"""

from __future__ import annotations

__all__ = [
    "Context",
    "ContextKey",
    "create_context_key",
]

from typing import Any, Generic, TypeVar

from mcp_trace.models.event import TraceEvent
from mcp_trace.models.session import Session

T = TypeVar("T")


class ContextKey(Generic[T]):
    """Handle for one slot in a Context's extension map.

    Attributes:
        name: Label for debugging; plays no part in lookups.
        default: Returned by Context.get() when the slot was never set.
    """

    __slots__ = ("name", "default", "_token")

    def __init__(self, name: str, default: T | None = None) -> None:
        self.name = name
        self.default = default
        self._token = object()

    @property
    def token(self) -> object:
        """Process-unique identity of this key."""
        return self._token

    def __repr__(self) -> str:
        return f"ContextKey({self.name!r})"


def create_context_key(name: str, default: T | None = None) -> ContextKey[T]:
    """Create a new, unique ContextKey.

    Args:
        name: Label for debugging.
        default: Value Context.get() returns before the key is set.

    Returns:
        A key distinct from every other key, whatever its name.
    """
    return ContextKey(name, default)


class Context:
    """Binds one TraceEvent to its Session for a single pipeline run.

    Attributes:
        event: The event being processed.
        session: The session that owns the event.
    """

    __slots__ = ("event", "session", "_extensions")

    def __init__(self, event: TraceEvent, session: Session) -> None:
        self.event = event
        self.session = session
        self._extensions: dict[object, Any] = {}

    def get(self, key: ContextKey[T]) -> T | None:
        """Value stored under key, or the key's default if never set.

        A value explicitly set to None is returned as None.
        """
        try:
            return self._extensions[key.token]
        except KeyError:
            return key.default

    def set(self, key: ContextKey[T], value: T) -> None:
        """Store a value visible to handlers that run later in this run."""
        self._extensions[key.token] = value

    def has(self, key: ContextKey[Any]) -> bool:
        """True if key was set during this run."""
        return key.token in self._extensions

    def __repr__(self) -> str:
        return f"Context(event_id={self.event.id!r}, session_id={self.session.id!r})"
