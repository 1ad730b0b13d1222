"""
Domain-specific exceptions for ledger app.

Views catch these and convert them to HTTP responses.
"""


class LedgerServiceError(Exception):
    """Base exception for all ledger service errors."""
    pass


class EntryNotFoundError(LedgerServiceError):
    """Raised when a deposit or expense does not exist in the room."""
    pass


class EntryAlreadyReviewedError(LedgerServiceError):
    """Raised when approving or rejecting an entry that is no longer Pending."""
    pass


class InsufficientPermissionsError(LedgerServiceError):
    """Raised when a user lacks required permissions for an action."""
    pass


class NotRoomMemberError(LedgerServiceError):
    """Raised when the target user does not belong to the room."""
    pass


class MealDateFinalizedError(LedgerServiceError):
    """Raised when a member edits meals on a date the manager has finalized."""
    pass
