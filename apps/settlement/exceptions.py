"""
Domain exceptions for settlement app.

Exception Hierarchy:
    SettlementServiceError (base)
    ├── InvalidPeriodError
    └── NotRoomMemberError
"""


class SettlementServiceError(Exception):
    """Base exception for all settlement errors."""

    pass


class InvalidPeriodError(SettlementServiceError):
    """
    Raised when a requested calculation period does not exist or belongs to
    another room. Never falls back to the Active period.
    """

    pass


class NotRoomMemberError(SettlementServiceError):
    """Raised when a summary is requested for someone outside the room."""

    pass
