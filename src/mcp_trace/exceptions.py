"""Custom exceptions for mcp-trace.

This module contains all custom exceptions used throughout the package.
Not-found conditions are never exceptions: lookups return None.

Boundary Errors (raised synchronously to the caller):
    - ValidationError: Malformed ServerConfig or JSON-RPC envelope
    - ConfigurationError: Trace config file missing or invalid

State Errors:
    - InvalidTransitionError: Illegal session state change (strict registries only)
    - ContinuationReusedError: A handler invoked its continuation twice

Handler exceptions raised inside the pipeline are NOT wrapped; they reach
the caller of Pipeline.run/process as the original exception object.

Usage:
    from mcp_trace.exceptions import ValidationError, InvalidTransitionError
"""

from __future__ import annotations

__all__ = [
    "ConfigurationError",
    "ContinuationReusedError",
    "InvalidTransitionError",
    "TraceError",
    "ValidationError",
]

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pydantic import ValidationError as PydanticValidationError

    from mcp_trace.models.enums import SessionState


class TraceError(Exception):
    """Base class for all mcp-trace errors."""


# =============================================================================
# Boundary Errors
# =============================================================================


class ValidationError(TraceError, ValueError):
    """Input rejected at the boundary.

    Raised when a ServerConfig or JSON-RPC envelope fails validation.
    Carries the field-level violations so API layers can translate them
    without parsing the message.

    Attributes:
        subject: What was being validated (e.g., "server config").
        errors: List of violations, each {"loc": str, "msg": str, "type": str}.
    """

    def __init__(self, subject: str, errors: list[dict[str, Any]]) -> None:
        """Initialize ValidationError.

        Args:
            subject: What was being validated.
            errors: Field-level violations.
        """
        self.subject = subject
        self.errors = errors
        lines = [f"  - {e['loc'] or '<root>'}: {e['msg']}" for e in errors]
        super().__init__(f"Invalid {subject}:\n" + "\n".join(lines))

    @classmethod
    def from_pydantic(cls, subject: str, error: "PydanticValidationError") -> "ValidationError":
        """Build from a pydantic ValidationError.

        Args:
            subject: What was being validated.
            error: The pydantic error to convert.

        Returns:
            ValidationError with one entry per pydantic violation.
        """
        errors = [
            {
                "loc": ".".join(str(part) for part in detail["loc"]),
                "msg": detail["msg"],
                "type": detail["type"],
            }
            for detail in error.errors()
        ]
        return cls(subject, errors)


class ConfigurationError(TraceError):
    """Trace configuration is invalid or unreadable.

    Raised when:
    - Config file does not exist
    - Config file contains invalid JSON
    - Config file fails Pydantic validation
    """


# =============================================================================
# State Errors
# =============================================================================


class InvalidTransitionError(TraceError):
    """Requested session state change is not an allowed edge.

    Only raised by registries constructed with strict_transitions=True.

    Attributes:
        session_id: Session whose state change was rejected.
        current: State the session is in.
        requested: State that was requested.
    """

    def __init__(
        self,
        session_id: str,
        current: "SessionState",
        requested: "SessionState",
    ) -> None:
        self.session_id = session_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"Session {session_id}: transition {current.value} -> {requested.value} is not allowed"
        )


class ContinuationReusedError(TraceError, RuntimeError):
    """A handler called its continuation more than once in a single run."""
