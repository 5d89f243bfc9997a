"""Configuration models for mcp-trace.

Two kinds of configuration live here:

- ServerConfig: how the observed endpoint is reached. Attached to every
  Session and validated when the session is created.
- TraceConfig: settings for the trace engine itself (logging, session
  registry behavior). Optionally loaded from a JSON file.

Example usage:
    # Validate a server config from raw data
    server = validate_server_config({"name": "fs", "transport": "stdio", "command": "node"})

    # Load engine settings
    config = TraceConfig.load_from_file(config_path)
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_LOG_DIR",
    "LoggingConfig",
    "ServerConfig",
    "SessionsConfig",
    "TraceConfig",
    "validate_server_config",
]

import json
import os
import sys
from pathlib import Path
from typing import Any, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

from mcp_trace.constants import APP_NAME, SYSTEM_LOG_RELATIVE_PATH, WIRE_LOG_RELATIVE_PATH
from mcp_trace.exceptions import ValidationError
from mcp_trace.utils.file_helpers import load_validated_json


# =============================================================================
# Platform-specific defaults
# =============================================================================


def _get_platform_log_dir() -> str:
    """Get platform-appropriate base log directory following OS conventions.

    Returns:
        Platform-specific base log directory path (unexpanded).

    Platform conventions:
        - macOS: ~/Library/Logs
        - Linux: ~/.local/state (XDG Base Directory Specification)
        - Windows: ~/AppData/Local
    """
    if sys.platform == "darwin":
        return "~/Library/Logs"
    elif sys.platform == "win32":
        return "~/AppData/Local"
    else:
        return os.environ.get("XDG_STATE_HOME", "~/.local/state")


DEFAULT_LOG_DIR = _get_platform_log_dir()


# =============================================================================
# Server Configuration (observed endpoint)
# =============================================================================


class ServerConfig(BaseModel):
    """Describes how the far-end endpoint of a session is reached.

    Immutable once created. Transport-specific fields are flat, matching
    the shape clients put in their server lists.

    Attributes:
        name: Display name of the server.
        transport: "stdio" (spawned process) or "http" (network endpoint).
        command: Executable to launch (required for stdio).
        args: Arguments for the command.
        env: Extra environment variables for the process.
        url: Endpoint URL (required for http).
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    transport: Literal["stdio", "http"]

    # STDIO transport
    command: str | None = Field(default=None, min_length=1)
    args: tuple[str, ...] | None = None
    env: dict[str, str] | None = None

    # HTTP transport
    url: str | None = Field(default=None, pattern=r"^https?://\S+$")

    @model_validator(mode="after")
    def require_transport_fields(self) -> "ServerConfig":
        if self.transport == "stdio" and self.command is None:
            raise ValueError("stdio transport requires 'command'")
        if self.transport == "http" and self.url is None:
            raise ValueError("http transport requires 'url'")
        return self


def validate_server_config(config: ServerConfig | Mapping[str, Any]) -> ServerConfig:
    """Validate raw server config data.

    Args:
        config: An existing ServerConfig (returned as is) or a mapping.

    Returns:
        Validated, frozen ServerConfig.

    Raises:
        ValidationError: With one entry per field-level violation.
    """
    if isinstance(config, ServerConfig):
        return config
    try:
        return ServerConfig.model_validate(config)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic("server config", e) from e


# =============================================================================
# Trace Engine Configuration
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging configuration settings.

    Logs are stored under <log_dir>/mcp-trace/:
        <log_dir>/
        └── mcp-trace/
            ├── debug/              # Only written when log_level=DEBUG
            │   └── wire.jsonl
            └── system/
                └── system.jsonl

    Attributes:
        log_dir: Base directory for logs (platform-specific default).
        log_level: DEBUG or INFO. DEBUG enables the wire log.
        include_payloads: Whether wire log records carry full payloads.
    """

    log_dir: str = Field(default=DEFAULT_LOG_DIR, min_length=1)
    log_level: Literal["DEBUG", "INFO"] = "INFO"
    include_payloads: bool = True

    @property
    def base_path(self) -> Path:
        """Expanded <log_dir>/mcp-trace directory."""
        return Path(self.log_dir).expanduser() / APP_NAME

    @property
    def wire_log_path(self) -> Path:
        return self.base_path / WIRE_LOG_RELATIVE_PATH

    @property
    def system_log_path(self) -> Path:
        return self.base_path / SYSTEM_LOG_RELATIVE_PATH


class SessionsConfig(BaseModel):
    """Session registry behavior.

    Attributes:
        strict_transitions: Reject illegal state changes with
            InvalidTransitionError instead of recording them.
        default_protocol: Protocol tag given to new sessions.
    """

    strict_transitions: bool = False
    default_protocol: Literal["mcp", "acp", "a2a"] = "mcp"


class TraceConfig(BaseModel):
    """Top-level trace engine configuration.

    Every section has defaults, so an empty JSON object is a valid config.
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    sessions: SessionsConfig = Field(default_factory=SessionsConfig)

    @classmethod
    def load_from_file(cls, config_path: Path) -> "TraceConfig":
        """Load configuration from a JSON file.

        Args:
            config_path: Path to the config file.

        Returns:
            Validated TraceConfig.

        Raises:
            ConfigurationError: If the file is missing, unreadable or invalid.
        """
        return load_validated_json(config_path, cls, file_type="config")

    def save_to_file(self, config_path: Path) -> None:
        """Write configuration as indented JSON, creating parent directories.

        Args:
            config_path: Destination path.
        """
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(json.dumps(self.model_dump(mode="json"), indent=2) + "\n", encoding="utf-8")
