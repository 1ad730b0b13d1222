"""
Object-level permissions for bills.
"""
from rest_framework.permissions import BasePermission


class IsBillRoomMember(BasePermission):
    """User must belong to the bill's room."""

    message = 'Not authorized to view this room\'s bills.'

    def has_object_permission(self, request, view, obj):
        return obj.room.has_member(request.user)


class IsBillRoomManager(BasePermission):
    """
    User must manage the bill's room.

    Usage:
        def get_permissions(self):
            if self.action == 'destroy':
                return [IsAuthenticated(), IsBillRoomManager()]
            return super().get_permissions()
    """

    message = 'Only the room manager can manage bills.'

    def has_object_permission(self, request, view, obj):
        return obj.room.is_manager(request.user)
