"""Application-wide constants for mcp-trace.

Constants that define application behavior.
For user-configurable settings per deployment, see config.py.
"""

__all__ = [
    # Application identity
    "APP_NAME",
    # Protocol
    "DEFAULT_PROTOCOL",
    # Logger names
    "SYSTEM_LOGGER_NAME",
    "SESSIONS_LOGGER_NAME",
    "STORE_LOGGER_NAME",
    "PIPELINE_LOGGER_NAME",
    "WIRE_LOGGER_NAME",
    # Log file layout
    "WIRE_LOG_RELATIVE_PATH",
    "SYSTEM_LOG_RELATIVE_PATH",
]

# =============================================================================
# Application identity
# =============================================================================

APP_NAME = "mcp-trace"

# =============================================================================
# Protocol
# =============================================================================

# Dialect assumed for a session unless told otherwise
DEFAULT_PROTOCOL = "mcp"

# =============================================================================
# Logger names
# =============================================================================

SYSTEM_LOGGER_NAME = f"{APP_NAME}.system"
SESSIONS_LOGGER_NAME = f"{APP_NAME}.sessions"
STORE_LOGGER_NAME = f"{APP_NAME}.store"
PIPELINE_LOGGER_NAME = f"{APP_NAME}.pipeline"
WIRE_LOGGER_NAME = f"{APP_NAME}.debug.wire"

# =============================================================================
# Log file layout (relative to <log_dir>/mcp-trace/)
# =============================================================================

WIRE_LOG_RELATIVE_PATH = "debug/wire.jsonl"
SYSTEM_LOG_RELATIVE_PATH = "system/system.jsonl"
