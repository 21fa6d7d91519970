"""
Error taxonomy for the registration engine.

Every error carries a ``message`` that is safe to show to the user verbatim.
Handlers catch ``CourtsideError`` and report ``exc.message``; anything else is
left to the dispatcher's global error handler.
"""
from __future__ import annotations

from typing import Optional


class CourtsideError(Exception):
    """Base class for all domain errors."""

    message: str = "Something went wrong. Please try again."

    def __init__(self, message: Optional[str] = None) -> None:
        if message:
            self.message = message
        super().__init__(self.message)


# ── Input ─────────────────────────────────────────────────────────────────────

class ValidationError(CourtsideError):
    """
    Payload failed a field constraint. Recovered locally, no state was mutated.

    ``errors`` maps field name → human readable reason.
    """

    message = "Some details are invalid."

    def __init__(self, message: Optional[str] = None, errors: Optional[dict] = None) -> None:
        self.errors = errors or {}
        super().__init__(message)


# ── Business rules ────────────────────────────────────────────────────────────

class DuplicateRequest(CourtsideError):
    message = "You already have an active request for this event."


class CapacityExceeded(CourtsideError):
    message = "This event is full. No more entries can be accepted."


class InsufficientEntries(CourtsideError):
    message = "At least two approved entries are needed to form a bracket."


class RegistrationClosed(CourtsideError):
    message = "Registration for this tournament is closed."


class BracketAlreadyFormed(CourtsideError):
    message = "The round 1 bracket for this event already exists."


class InvalidTransition(CourtsideError):
    message = "This request has already been reviewed."


class PermissionDenied(CourtsideError):
    message = "Only the tournament organizer can do this."


class TournamentNotFound(CourtsideError):
    message = "Tournament not found."


class SportEventNotFound(CourtsideError):
    message = "Event not found."


class MatchNotFound(CourtsideError):
    message = "Match not found."


class RequestNotFound(CourtsideError):
    message = "Join request not found."


# ── Evidence store ────────────────────────────────────────────────────────────

class UploadError(CourtsideError):
    message = "Upload failed. Please try again."


class DeleteError(CourtsideError):
    message = "Could not delete the uploaded file."


# ── Persistence ───────────────────────────────────────────────────────────────

class PersistenceError(CourtsideError):
    """Store failure. Nothing was applied, so the operation is safe to retry."""

    message = "Could not save your changes. Please try again."


class PartialApprovalError(CourtsideError):
    """
    The request was approved and the slot was counted, but the participant
    record could not be written. Retry with ``complete_approval``.
    """

    message = (
        "The request was approved but the participant entry could not be created. "
        "Retry to finish the approval."
    )

    def __init__(self, request_id: int, message: Optional[str] = None) -> None:
        self.request_id = request_id
        super().__init__(message)
