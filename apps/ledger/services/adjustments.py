"""
Manager fund adjustments.

A manual correction to one member's standing in the meal fund. ADD writes an
Approved deposit paid by 'Manager Adjustment'; DEDUCT writes an Approved
expense in the Adjustment category, which is charged to that member alone
and never counts as room shopping.
"""

import logging
from decimal import Decimal
from typing import Union

from django.db import transaction
from django.utils import timezone

from apps.accounts.models import User
from apps.rooms.models import Room
from apps.periods.services import get_active_period
from apps.notifications.services import notify_user
from apps.notifications.models import NotificationType
from apps.ledger.models import (
    Deposit,
    Expense,
    ApprovalStatus,
    PaymentMethod,
    ExpenseCategory,
)

from .exceptions import (
    LedgerServiceError,
    InsufficientPermissionsError,
    NotRoomMemberError,
)

logger = logging.getLogger(__name__)

ADJUST_ADD = 'ADD'
ADJUST_DEDUCT = 'DEDUCT'
ADJUSTMENT_TYPES = (ADJUST_ADD, ADJUST_DEDUCT)


@transaction.atomic
def adjust_fund(
    *,
    room: Room,
    user: User,
    adjusted_by: User,
    type: str,
    amount: Decimal,
    reason: str = '',
) -> Union[Deposit, Expense]:
    """
    Add to or deduct from a member's fund (manager only).

    The row is Approved on creation, reviewed by adjusted_by, and joins the
    room's Active period (NULL if none).

    Returns:
        The created Deposit (ADD) or Expense (DEDUCT)

    Raises:
        InsufficientPermissionsError: If adjusted_by is not the manager
        NotRoomMemberError: If user is not in the room
        LedgerServiceError: If type is not ADD or DEDUCT
    """
    if not room.is_manager(adjusted_by):
        raise InsufficientPermissionsError("Only managers can adjust funds")

    if type not in ADJUSTMENT_TYPES:
        raise LedgerServiceError("Invalid type")

    if not room.has_member(user):
        raise NotRoomMemberError(f"{user.get_display_name()} is not a member of this room")

    common = {
        'room': room,
        'user': user,
        'calculation_period': get_active_period(room=room),
        'amount': amount,
        'status': ApprovalStatus.APPROVED,
        'approved_by': adjusted_by,
        'approved_at': timezone.now(),
    }

    if type == ADJUST_ADD:
        entry = Deposit.objects.create(
            **common,
            payment_method=PaymentMethod.MANAGER_ADJUSTMENT,
            transaction_id='MANUAL',
            notes=reason or 'Fund added by manager',
        )
        message = f"Manager added ৳{amount} to your fund. Reason: {reason or 'Adjustment'}"
        notification_type = NotificationType.DEPOSIT
    else:
        entry = Expense.objects.create(
            **common,
            items=reason or 'Fund Deduction',
            category=ExpenseCategory.ADJUSTMENT,
            notes='Fund deducted by manager',
        )
        message = f"Manager deducted ৳{amount} from your fund. Reason: {reason or 'Adjustment'}"
        notification_type = NotificationType.EXPENSE

    logger.info("Fund adjustment %s of %s for user %s in room %s", type, amount, user.pk, room.id)

    notify_user(
        user=user,
        room=room,
        type=notification_type,
        title='Fund Adjustment',
        message=message,
        link='/shopping',
        related_id=entry.id,
    )
    return entry
