"""
Error taxonomy for the Landing Engine.

Gateway errors are recovered inside the session (surfaced as notifications),
the rest are translated to HTTP errors by the routers.
"""
from typing import Optional


class LandingEngineError(Exception):
    """Base error for the Landing Engine."""


class ConfigurationError(LandingEngineError):
    """A required setting (usually a credential) is missing."""


class GatewayError(LandingEngineError):
    """A remote collaborator was unreachable or answered with a failure."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CompletionError(GatewayError):
    """The completion endpoint failed."""


class PersistenceError(GatewayError):
    """The record store failed."""


class RecordNotFoundError(PersistenceError):
    """No persisted record exists for the given id."""

    def __init__(self, record_id: str):
        super().__init__(f"Landing page {record_id} not found", status_code=404)
        self.record_id = record_id


class SessionNotFoundError(LandingEngineError):
    """No chat session exists for the given id."""

    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id} not found")
        self.session_id = session_id


class NoContentError(LandingEngineError):
    """An edit was requested before any landing page was generated."""
