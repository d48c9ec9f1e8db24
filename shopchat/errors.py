"""Exceptions shared by the chat pipeline and its store adapters."""
from __future__ import annotations

from typing import Any, Dict, Optional


class ChatError(Exception):
    """Base error carrying a user-safe message and internal details."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ForbiddenError(ChatError):
    """The caller is not allowed to see the requested order data."""


class StoreError(ChatError):
    """A catalog or order store call failed."""


class RateLimitExceeded(ChatError):
    """The caller used up its request budget for the current window."""

    def __init__(self, message: str, retry_after: int, details: Optional[Dict[str, Any]] = None) -> None:
        self.retry_after = retry_after
        super().__init__(message, details)
