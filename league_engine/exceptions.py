"""
league_engine/exceptions.py
Typed exceptions raised by the bracket and roster-change services.

Each carries an HTTP status and a machine-readable code so the routes can
turn it into a {success: false, ...} response without inspecting messages.
"""
from typing import Any, Dict, Optional


class LeagueException(Exception):
    """Base exception for the league engine"""
    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message
        if code:
            self.code = code
        self.details = details
        super().__init__(self.message)


class ValidationError(LeagueException):
    """
    Raised when input fails a constraint before anything is written.

    Examples:
    - Missing reason
    - Gender mismatch between a player and a sport
    - Swapping a registration with itself
    - Scoring a match whose team slots are not both filled
    """
    status_code = 400
    code = "VALIDATION_ERROR"


class ForbiddenError(LeagueException):
    """Raised when a registration does not belong to the requesting club."""
    status_code = 403
    code = "FORBIDDEN"


class NotFoundError(LeagueException):
    """Raised when requested resource doesn't exist."""
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, resource: str, identifier: Any = None, code: Optional[str] = None, message: Optional[str] = None):
        if message is None:
            message = f"{resource} not found"
            if identifier is not None:
                message = f"{resource} with id '{identifier}' not found"
        super().__init__(message, code)


class ConflictError(LeagueException):
    """Raised when a pending request already exists for a registration."""
    status_code = 409
    code = "CONFLICT"


class InvalidTransitionError(LeagueException):
    """Raised when a ledger entry is approved or rejected after it was settled."""
    status_code = 400
    code = "STATE_TRANSITION_INVALID"


class PersistenceError(LeagueException):
    """Raised when a write fails; the surrounding transaction has been rolled back."""
    status_code = 500
    code = "PERSISTENCE_ERROR"
