# hayvn/domain/errors.py
from __future__ import annotations


class HayvnError(Exception):
    """Base for errors this service raises on purpose."""


class ConfigurationError(HayvnError):
    """A sync target is missing something it needs (endpoint, credential)."""


class UpstreamError(HayvnError):
    """Non-2xx (or unreadable) response from a listing-query endpoint."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthError(HayvnError):
    """Request-fatal auth/scope failure; status_code is the HTTP status to answer with."""

    def __init__(self, message: str, *, status_code: int = 401) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(HayvnError):
    pass
