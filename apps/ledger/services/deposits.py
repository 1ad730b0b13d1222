"""
Deposit service.

Members submit deposits into the meal fund; the manager approves or rejects
them. Only Approved deposits count toward balances.
"""

import logging
from decimal import Decimal
from uuid import UUID

from django.db import transaction
from django.db.models import QuerySet

from apps.accounts.models import User
from apps.rooms.models import Room
from apps.periods.services import get_active_period
from apps.notifications.services import notify_user, notify_room_manager
from apps.notifications.models import NotificationType
from apps.ledger.models import Deposit, ApprovalStatus

from .review import lock_pending_entry, mark_reviewed

logger = logging.getLogger(__name__)


def list_deposits(*, room: Room) -> QuerySet[Deposit]:
    return (
        Deposit.objects
        .filter(room=room)
        .select_related('user', 'approved_by')
        .order_by('-created_at')
    )


@transaction.atomic
def submit_deposit(
    *,
    room: Room,
    user: User,
    amount: Decimal,
    payment_method: str,
    transaction_id: str = '',
    notes: str = '',
) -> Deposit:
    """
    Record a Pending deposit in the room's Active period (NULL if none).
    """
    deposit = Deposit.objects.create(
        room=room,
        user=user,
        calculation_period=get_active_period(room=room),
        amount=amount,
        payment_method=payment_method,
        transaction_id=transaction_id,
        notes=notes,
        status=ApprovalStatus.PENDING,
    )
    logger.info("Deposit %s of %s submitted in room %s", deposit.id, amount, room.id)

    notify_room_manager(
        room=room,
        type=NotificationType.DEPOSIT,
        title='New Deposit Pending',
        message=f"{user.get_display_name()} submitted a deposit of ৳{amount} for approval.",
        link='/shopping',
        related_id=deposit.id,
    )
    return deposit


@transaction.atomic
def approve_deposit(*, room: Room, deposit_id: UUID, approved_by: User) -> Deposit:
    """
    Approve a Pending deposit (manager only).

    Raises:
        InsufficientPermissionsError: If approved_by is not the manager
        EntryNotFoundError: If the deposit doesn't exist in the room
        EntryAlreadyReviewedError: If the deposit is not Pending
    """
    deposit = lock_pending_entry(model=Deposit, room=room, entry_id=deposit_id, reviewer=approved_by)
    mark_reviewed(deposit, reviewer=approved_by, status=ApprovalStatus.APPROVED)

    notify_user(
        user=deposit.user,
        room=room,
        type=NotificationType.DEPOSIT,
        title='Deposit Approved',
        message=f"Your deposit of ৳{deposit.amount} has been approved by the manager.",
        link='/shopping',
        related_id=deposit.id,
    )
    return deposit


@transaction.atomic
def reject_deposit(*, room: Room, deposit_id: UUID, rejected_by: User, reason: str = '') -> Deposit:
    """
    Reject a Pending deposit (manager only).

    Raises:
        Same as approve_deposit
    """
    deposit = lock_pending_entry(model=Deposit, room=room, entry_id=deposit_id, reviewer=rejected_by)
    mark_reviewed(deposit, reviewer=rejected_by, status=ApprovalStatus.REJECTED, reason=reason)

    suffix = f" Reason: {reason}" if reason else ''
    notify_user(
        user=deposit.user,
        room=room,
        type=NotificationType.DEPOSIT,
        title='Deposit Rejected',
        message=f"Your deposit of ৳{deposit.amount} was rejected.{suffix}",
        link='/shopping',
        related_id=deposit.id,
    )
    return deposit
