"""Errors raised by the conversation and interview controllers."""
from __future__ import annotations


class InvalidMessage(ValueError):
    """Visitor text is empty once role markers and control tokens are stripped."""

    def __init__(self, message: str, field: str = "message") -> None:
        super().__init__(message)
        self.field = field


class SessionNotFound(LookupError):
    pass


__all__ = ["InvalidMessage", "SessionNotFound"]
