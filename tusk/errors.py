"""Error types surfaced to the operator."""

from __future__ import annotations


class TuskError(RuntimeError):
    """Base error for failures that end an invocation."""


class InvalidQuantity(TuskError, ValueError):
    """Raised when a duration or storage size string cannot be parsed."""

    def __init__(self, kind: str, value: str) -> None:
        super().__init__(f"Invalid {kind}: {value!r}")
        self.kind = kind
        self.value = value


class ConfigError(TuskError):
    """Raised when the configuration file is missing or malformed."""


class ProfileNotFound(TuskError):
    """Raised when no connection profile matches the requested name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Connection profile '{name}' does not exist.")
        self.name = name


class DatabaseConnectionError(TuskError):
    """Raised when a session to the server cannot be established."""


class QueryExecutionError(TuskError):
    """Raised when an administrative query fails to execute."""


class RenderError(TuskError):
    """Raised when result rows cannot be serialized."""


__all__ = [
    "ConfigError",
    "DatabaseConnectionError",
    "InvalidQuantity",
    "ProfileNotFound",
    "QueryExecutionError",
    "RenderError",
    "TuskError",
]
