"""Exception hierarchy for the ticket sync engine."""

from enum import Enum
from typing import Optional


class TicketSyncError(Exception):
    """Base class for all ticket sync errors."""


class PreconditionFailure(str, Enum):
    """Conditions that must hold before a sync batch may start."""

    MISSING_MAIL_SESSION = "missing_mail_session"
    MISSING_STORE_SESSION = "missing_store_session"
    NO_MESSAGES_SELECTED = "no_messages_selected"
    NO_DESTINATION = "no_destination"
    INVALID_MAPPING = "invalid_mapping"
    SYNC_IN_PROGRESS = "sync_in_progress"


class PreconditionError(TicketSyncError):
    """Raised before any work is attempted when a precondition is unmet."""

    def __init__(self, condition: PreconditionFailure, message: str):
        super().__init__(message)
        self.condition = condition
        self.message = message


class GraphAPIError(TicketSyncError):
    """A Graph request failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class WriteError(GraphAPIError):
    """The destination list rejected a record."""


class AckError(GraphAPIError):
    """Marking a source message as read failed."""
