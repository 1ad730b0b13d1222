"""
Domain-specific exceptions for rooms app.

These exceptions represent business rule violations and should be
caught in views and converted to appropriate HTTP responses.
"""


class RoomsServiceError(Exception):
    """Base exception for all rooms service errors."""
    pass


class RoomNotFoundError(RoomsServiceError):
    """Raised when a room does not exist or is inaccessible."""
    pass


class AlreadyInRoomError(RoomsServiceError):
    """Raised when a user who already has a room tries to take another seat."""
    pass


class NotMemberError(RoomsServiceError):
    """Raised when a user is not a member of the room."""
    pass


class InsufficientPermissionsError(RoomsServiceError):
    """Raised when a user lacks required permissions for an action."""
    pass
