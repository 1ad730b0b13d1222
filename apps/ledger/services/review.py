"""
Approve / reject workflow shared by deposits and expenses.
"""

from typing import Type
from uuid import UUID

from django.db import models
from django.utils import timezone

from apps.accounts.models import User
from apps.rooms.models import Room
from apps.ledger.models import ApprovalStatus

from .exceptions import (
    EntryNotFoundError,
    EntryAlreadyReviewedError,
    InsufficientPermissionsError,
)


def lock_pending_entry(*, model: Type[models.Model], room: Room, entry_id: UUID, reviewer: User):
    """
    Fetch a room's entry for review with a row lock.

    Must be called inside a transaction.

    Raises:
        InsufficientPermissionsError: If reviewer is not the room manager
        EntryNotFoundError: If the entry doesn't exist in the room
        EntryAlreadyReviewedError: If the entry is no longer Pending
    """
    label = model._meta.verbose_name.capitalize()

    if not room.is_manager(reviewer):
        raise InsufficientPermissionsError("Not authorized as Manager")

    try:
        entry = (
            model.objects
            .select_for_update()
            .select_related('user')
            .get(id=entry_id, room=room)
        )
    except model.DoesNotExist:
        raise EntryNotFoundError(f"{label} not found")

    if entry.status != ApprovalStatus.PENDING:
        raise EntryAlreadyReviewedError(f"{label} has already been {entry.status.lower()}")

    return entry


def mark_reviewed(entry, *, reviewer: User, status: str, reason: str = '') -> None:
    entry.status = status
    entry.approved_by = reviewer
    entry.approved_at = timezone.now()
    entry.rejection_reason = reason if status == ApprovalStatus.REJECTED else ''
    entry.save(update_fields=['status', 'approved_by', 'approved_at', 'rejection_reason', 'updated_at'])
