"""Interception pipeline: an ordered chain of async handlers per trace event.

Each handler receives the run's Context and a call_next continuation:

    async def handler(context: Context, call_next: CallNext) -> None:
        ...                 # before: runs in registration order
        await call_next()   # rest of the chain
        ...                 # after: runs in reverse registration order

A handler that never awaits call_next ends the run early; later handlers do
not run. This is how filtering is done and is not an error.

Handler exceptions propagate to the caller of run()/process() unchanged.
Nothing is retried and side effects of handlers that already ran are kept.
"""

from __future__ import annotations

__all__ = [
    "CallNext",
    "Handler",
    "Pipeline",
    "compose",
    "create_pipeline",
]

import logging
from typing import Awaitable, Callable, Sequence

from mcp_trace.constants import PIPELINE_LOGGER_NAME
from mcp_trace.exceptions import ContinuationReusedError
from mcp_trace.models.event import TraceEvent
from mcp_trace.models.session import Session
from mcp_trace.pipeline.context import Context
from mcp_trace.telemetry.system_logger import get_system_logger

CallNext = Callable[[], Awaitable[None]]
Handler = Callable[[Context, CallNext], Awaitable[None]]
ComposedChain = Callable[[Context], Awaitable[None]]

_logger = logging.getLogger(PIPELINE_LOGGER_NAME)
_system_logger = get_system_logger()


def compose(handlers: Sequence[Handler]) -> ComposedChain:
    """Fold handlers into one callable with nested continuations.

    The handler sequence is copied, so later changes to it do not affect
    the returned chain.

    Args:
        handlers: Handlers in registration order.

    Returns:
        Async callable running the whole chain against a context.
    """
    chain = tuple(handlers)

    async def run_chain(context: Context) -> None:
        last_dispatched = -1

        async def dispatch(index: int) -> None:
            nonlocal last_dispatched
            if index <= last_dispatched:
                raise ContinuationReusedError("call_next() called multiple times")
            last_dispatched = index

            if index == len(chain):
                return
            handler = chain[index]
            await handler(context, lambda: dispatch(index + 1))

        await dispatch(0)

    return run_chain


class Pipeline:
    """Ordered handler chain run once per trace event.

    The composed chain is cached and rebuilt only after use() or clear().

    Usage:
        pipeline = Pipeline().use(log_handler).use(store_handler)
        await pipeline.process(event, session)
    """

    def __init__(self) -> None:
        self._handlers: list[Handler] = []
        self._composed: ComposedChain | None = None

    def use(self, handler: Handler) -> "Pipeline":
        """Append a handler.

        Args:
            handler: Async callable (context, call_next) -> None.

        Returns:
            This pipeline, for chaining.

        Raises:
            TypeError: If handler is not callable.
        """
        if not callable(handler):
            raise TypeError(f"handler must be callable, got {type(handler).__name__}")
        self._handlers.append(handler)
        self._composed = None
        return self

    async def run(self, context: Context) -> None:
        """Run the chain against an existing context.

        Raises:
            Exception: Whatever a handler raised, unchanged.
        """
        if self._composed is None:
            self._composed = compose(self._handlers)

        try:
            await self._composed(context)
        except Exception as e:
            _system_logger.warning(
                {
                    "event": "pipeline_handler_failed",
                    "message": f"Handler failed while processing event {context.event.id}: {e}",
                    "error_type": type(e).__name__,
                    "session_id": context.session.id,
                    "event_id": context.event.id,
                    "method": context.event.method,
                }
            )
            raise

    async def process(self, event: TraceEvent, session: Session) -> Context:
        """Run the chain for one event with a fresh context.

        Args:
            event: Fully formed trace event.
            session: Session owning the event.

        Returns:
            The context used for the run, with whatever handlers stored in it.
        """
        context = Context(event, session)
        _logger.debug(
            {
                "event": "pipeline_run",
                "session_id": session.id,
                "event_id": event.id,
                "handlers": len(self._handlers),
            }
        )
        await self.run(context)
        return context

    @property
    def length(self) -> int:
        return len(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)

    def clear(self) -> None:
        """Remove all handlers."""
        self._handlers.clear()
        self._composed = None


def create_pipeline(*handlers: Handler) -> Pipeline:
    """Create a pipeline, optionally pre-loaded with handlers.

    Factory function for consistency with the handler factories.

    Returns:
        New Pipeline.
    """
    pipeline = Pipeline()
    for handler in handlers:
        pipeline.use(handler)
    return pipeline
