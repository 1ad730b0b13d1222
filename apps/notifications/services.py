"""
Best-effort notification writers.

Callers fire these after their primary write has succeeded. A failure is
logged and swallowed so it never fails or rolls back the primary request.
"""

import logging
from typing import Optional
from uuid import UUID

from django.db import transaction

from apps.accounts.models import User
from apps.rooms.models import Room

from .models import Notification, NotificationType

logger = logging.getLogger(__name__)


def notify_user(
    *,
    user: User,
    room: Optional[Room],
    type: str,
    title: str,
    message: str,
    link: str = '',
    related_id: Optional[UUID] = None,
) -> Optional[Notification]:
    """
    Write a notification for one user.

    Runs in its own savepoint, so a failed insert leaves the surrounding
    transaction usable.

    Returns:
        The created Notification, or None if writing it failed
    """
    try:
        with transaction.atomic():
            return Notification.objects.create(
                user=user,
                room=room,
                type=type,
                title=title,
                message=message,
                link=link,
                related_id=related_id,
            )
    except Exception:
        logger.exception("Failed to write %s notification for user %s", type, user.pk)
        return None


def notify_room_manager(
    *,
    room: Room,
    type: str,
    title: str,
    message: str,
    link: str = '',
    related_id: Optional[UUID] = None,
) -> Optional[Notification]:
    """Write a notification addressed to the room's manager."""
    return notify_user(
        user=room.manager,
        room=room,
        type=type,
        title=title,
        message=message,
        link=link,
        related_id=related_id,
    )


def mark_read(*, notification: Notification) -> Notification:
    if not notification.read:
        notification.read = True
        notification.save(update_fields=['read'])
    return notification


def mark_all_read(*, user: User) -> int:
    """Mark every unread notification of a user as read. Returns the count."""
    return Notification.objects.filter(user=user, read=False).update(read=True)


__all__ = [
    'NotificationType',
    'notify_user',
    'notify_room_manager',
    'mark_read',
    'mark_all_read',
]
