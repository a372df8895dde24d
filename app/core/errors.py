"""
Error taxonomy shared by services and routes.

- DelegateUnavailable: the LLM or search delegate failed, timed out, or returned
  content that did not parse/validate.
- ValidationError: malformed input, rejected before any delegate call.
- PersistenceError: a storage write failed.
- NotFoundError: a referenced record does not exist.
"""


class CoachError(Exception):
    """Base class for Pathwise service errors."""

    def __init__(self, message: str = "", *, detail: str = None):
        super().__init__(message)
        self.message = message
        self.detail = detail or message


class DelegateUnavailable(CoachError):
    """An external delegate (LLM or search) could not produce a usable result."""

    def __init__(self, message: str = "Delegate unavailable", *, delegate: str = "llm", feature: str = None):
        super().__init__(message)
        self.delegate = delegate
        self.feature = feature


class ValidationError(CoachError):
    """Client input is missing or malformed."""

    def __init__(self, message: str = "Invalid request", *, field: str = None):
        super().__init__(message)
        self.field = field


class PersistenceError(CoachError):
    """A database write failed."""


class NotFoundError(CoachError):
    """A referenced record does not exist."""
