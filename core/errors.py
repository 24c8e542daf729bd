"""
Exception taxonomy shared by the connectors, stores and request handlers.

Client input errors carry the exact message returned to the caller.
Upstream failures carry operator detail that is only ever logged.
"""

from __future__ import annotations

GENERIC_FAILURE_MESSAGE = "Something went wrong; check the logs."


class NotifierError(Exception):
    """Base class for every error raised by this service."""

    status_code: int = 500


class BadRequestError(NotifierError):
    status_code = 400


class InvalidEmailError(BadRequestError):

    MISSING = "No emailAddress specified."
    INVALID = "Invalid emailAddress."


class IdentityVerificationError(NotifierError):
    status_code = 403


class MethodNotAllowedError(NotifierError):
    status_code = 405

    def __init__(self, allowed: str = "GET, POST"):
        super().__init__("Method not allowed.")
        self.allowed = allowed


class CredentialNotFoundError(NotifierError):
    def __init__(self, email: str):
        super().__init__(f"No stored credential for {email}")
        self.email = email


class TokenExchangeError(NotifierError):
    """Authorization code could not be exchanged or refreshed."""


class ProfileLookupError(NotifierError):
    """The Gmail profile for the current credential could not be resolved."""


class SchedulingError(NotifierError):
    """Topic or job registration failed."""
