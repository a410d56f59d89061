"""Errors raised while talking to the Trafikverket API."""

from typing import Optional


class PendlarnError(Exception):
    """Base class for every error raised by pendlarn."""


class InvalidWindowError(PendlarnError, ValueError):
    """The search window is empty or inverted (after >= before)."""


class TransportError(PendlarnError):
    """The request never got a response (connection, TLS or timeout failure)."""


class UpstreamError(PendlarnError):
    """The API answered with something other than a successful result."""

    def __init__(self, status_code: int, message: Optional[str] = None):
        self.status_code = status_code
        if message is None:
            message = f"unexpected status code: {status_code}"
        super().__init__(message)


class AuthError(UpstreamError):
    """The API rejected our credentials."""

    def __init__(self, message: str = "unauthorized (check your API key)"):
        super().__init__(401, message)


class DecodeError(PendlarnError):
    """The response body does not have the shape we expect."""
