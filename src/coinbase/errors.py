"""Errors raised by the Coinbase public API client."""

from __future__ import annotations

from typing import Any, Optional


class CoinbaseError(Exception):
    """Base class; also used for transport failures (timeouts, DNS, bad JSON)."""


class CoinbaseAPIError(CoinbaseError):
    """Coinbase answered with an HTTP error status."""

    def __init__(self, message: str, status: int, response: Any = None):
        super().__init__(message)
        self.status = status
        self.response = response

    def __str__(self) -> str:
        return f"{self.args[0]} (HTTP {self.status})"


class RateLimitError(CoinbaseError):
    """The client-side request budget for the current window is spent."""

    def __init__(self, message: str, retry_after: Optional[int] = None):
        super().__init__(message)
        self.retry_after = retry_after
