"""
bazaar.errors — Exception Taxonomy
===================================

Services raise these; :mod:`bazaar.services.actions` turns them into
``{"success": False, "message": ...}`` results for the web layer.
"Not found" on stats or notifications is *not* an error — those return
zero-state or ``None`` instead.
"""

from __future__ import annotations


class BazaarError(Exception):
    """Base class for every domain error raised by the core."""


class NotFoundError(BazaarError):
    """A referenced conversation, application or user does not exist."""


class PermissionDeniedError(BazaarError):
    """The caller is not the participant an operation requires."""


class AccessDeniedError(PermissionDeniedError):
    """Viewer does not match the conversation participant for their role."""


class UnauthorizedError(PermissionDeniedError):
    """Sender is neither participant of the conversation."""


class ValidationError(BazaarError):
    """Input rejected by a business rule."""


class InvalidTransitionError(ValidationError):
    """Application status change not allowed from its current status."""


class DuplicateApplicationError(ValidationError):
    """Volunteer has already applied to this opportunity."""

    def __init__(self, message: str = "You have already applied to this opportunity.") -> None:
        super().__init__(message)


class PersistenceError(BazaarError):
    """Dataset load or save failed.  Fatal for the current request."""
