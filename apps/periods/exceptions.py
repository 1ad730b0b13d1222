"""
Domain exceptions for periods app.
"""


class PeriodServiceError(Exception):
    """Base exception for calculation period errors."""
    pass


class ActivePeriodExistsError(PeriodServiceError):
    """Raised when a room already has an Active period."""
    pass


class PeriodNotFoundError(PeriodServiceError):
    """Raised when a calculation period does not exist."""
    pass


class PeriodAlreadyEndedError(PeriodServiceError):
    """Raised when ending a period that is no longer Active."""
    pass


class PeriodAccessDeniedError(PeriodServiceError):
    """Raised when a period belongs to another room or the caller is not its manager."""
    pass
