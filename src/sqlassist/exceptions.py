"""Custom exceptions for SQLAssist.

Only failures the caller has to act on are raised. SQL that cannot be parsed,
statements rejected by validation and driver errors during execution are
reported inside the returned result objects instead.
"""

from __future__ import annotations

from typing import Any


class SQLAssistError(Exception):
    """Base exception for all SQLAssist errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Return error as JSON-serializable dict for API consumers."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
        }


class ConnectivityError(SQLAssistError):
    """The target database could not be opened or introspected."""

    def __init__(self, message: str, vendor_code: str | int | None = None) -> None:
        context: dict[str, Any] = {}
        if vendor_code is not None:
            context["vendor_code"] = vendor_code
        super().__init__(message, context)
        self.vendor_code = vendor_code


class ModelError(SQLAssistError):
    """The language model could not be reached or answered with an error."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        context: dict[str, Any] = {}
        if status_code is not None:
            context["status_code"] = status_code
        super().__init__(message, context)
        self.status_code = status_code


class ConfigurationError(SQLAssistError):
    """Missing or inconsistent configuration."""

    pass
