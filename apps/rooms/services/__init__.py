"""
Rooms app services layer.

Services contain business logic and orchestrate operations across models.
"""

from .exceptions import (
    RoomsServiceError,
    RoomNotFoundError,
    AlreadyInRoomError,
    NotMemberError,
    InsufficientPermissionsError,
)

from .room_management import (
    create_room,
    get_room_by_id,
    add_member,
    get_room_members,
    get_user_room,
)


__all__ = [
    # Exceptions
    'RoomsServiceError',
    'RoomNotFoundError',
    'AlreadyInRoomError',
    'NotMemberError',
    'InsufficientPermissionsError',

    # Room management
    'create_room',
    'get_room_by_id',
    'add_member',
    'get_room_members',
    'get_user_room',
]
