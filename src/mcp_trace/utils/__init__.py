"""Shared utilities (file loading, logging setup)."""

__all__: list[str] = []
