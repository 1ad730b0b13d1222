"""
Room management service.

Handles room creation and seat assignment with transaction safety.
"""

from typing import Optional
from uuid import UUID

from django.db import transaction, IntegrityError
from django.db.models import QuerySet

from apps.accounts.models import User
from apps.rooms.models import Room, RoomMembership, RoomRole

from .exceptions import (
    RoomNotFoundError,
    AlreadyInRoomError,
    InsufficientPermissionsError,
)


@transaction.atomic
def create_room(*, name: str, manager: User) -> Room:
    """
    Create a new room and seat the creator as its manager.

    Args:
        name: Room name
        manager: User who will manage the room

    Returns:
        Created Room instance

    Raises:
        AlreadyInRoomError: If the manager already belongs to a room
    """
    if RoomMembership.objects.filter(user=manager).exists():
        raise AlreadyInRoomError("You already belong to a room")

    room = Room.objects.create(name=name, manager=manager)
    RoomMembership.objects.create(user=manager, room=room, role=RoomRole.MANAGER)
    return room


def get_room_by_id(*, room_id: UUID) -> Room:
    """
    Get a room by ID.

    Raises:
        RoomNotFoundError: If room doesn't exist
    """
    try:
        return Room.objects.select_related('manager').get(id=room_id)
    except Room.DoesNotExist:
        raise RoomNotFoundError(f"Room with ID {room_id} not found")


@transaction.atomic
def add_member(*, room_id: UUID, user: User, added_by: User) -> RoomMembership:
    """
    Seat an existing user in a room (manager only).

    Raises:
        RoomNotFoundError: If room doesn't exist
        InsufficientPermissionsError: If added_by is not the manager
        AlreadyInRoomError: If the user already belongs to a room
    """
    try:
        room = Room.objects.select_for_update().get(id=room_id)
    except Room.DoesNotExist:
        raise RoomNotFoundError(f"Room with ID {room_id} not found")

    if not room.is_manager(added_by):
        raise InsufficientPermissionsError("Only the room manager can add members")

    try:
        with transaction.atomic():
            return RoomMembership.objects.create(user=user, room=room, role=RoomRole.MEMBER)
    except IntegrityError:
        raise AlreadyInRoomError(f"{user.get_display_name()} already belongs to a room")


def get_room_members(*, room_id: UUID) -> QuerySet[RoomMembership]:
    """
    Get all memberships of a room in join order.

    Raises:
        RoomNotFoundError: If room doesn't exist
    """
    if not Room.objects.filter(id=room_id).exists():
        raise RoomNotFoundError(f"Room with ID {room_id} not found")

    return (
        RoomMembership.objects
        .filter(room_id=room_id)
        .select_related('user')
        .order_by('joined_at')
    )


def get_user_room(*, user: User) -> Optional[Room]:
    """Return the room the user sits in, or None."""
    membership = (
        RoomMembership.objects
        .select_related('room')
        .filter(user=user)
        .first()
    )
    return membership.room if membership else None
