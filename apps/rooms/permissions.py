"""
Room-scoped permission classes shared by every app.

Endpoints that carry a ``room_id`` URL kwarg (or ``room`` query param) use
these to short-circuit with 403 before any query or aggregation runs.
"""

from django.core.exceptions import ValidationError
from rest_framework.permissions import BasePermission

from .models import Room


def _resolve_room_id(request, view):
    room_id = view.kwargs.get('room_id')
    if not room_id:
        room_id = request.query_params.get('room')
    return room_id


class IsRoomMember(BasePermission):
    """
    Permission: user must be a member of the room in the URL.

    Requests without a room id are allowed through; the view decides what
    to do with them.
    """

    message = 'You must be a member of this room.'

    def has_permission(self, request, view):
        room_id = _resolve_room_id(request, view)
        if not room_id:
            return True

        try:
            room = Room.objects.get(id=room_id)
        except (Room.DoesNotExist, ValidationError):
            return False
        return room.has_member(request.user)

    def has_object_permission(self, request, view, obj):
        room = obj if isinstance(obj, Room) else obj.room
        return room.has_member(request.user)


class IsRoomManager(BasePermission):
    """
    Permission: user must be the manager of the room in the URL.
    """

    message = 'Only the room manager can perform this action.'

    def has_permission(self, request, view):
        room_id = _resolve_room_id(request, view)
        if not room_id:
            return True

        try:
            room = Room.objects.get(id=room_id)
        except (Room.DoesNotExist, ValidationError):
            return False
        return room.is_manager(request.user)

    def has_object_permission(self, request, view, obj):
        room = obj if isinstance(obj, Room) else obj.room
        return room.is_manager(request.user)
