"""
Shopping expense service.

Members log shopping spend; once Approved it feeds the period's meal rate.
BillPayment expenses are not submitted here, the bills app records them.
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
from apps.ledger.models import Expense, ExpenseCategory, ApprovalStatus

from .review import lock_pending_entry, mark_reviewed

logger = logging.getLogger(__name__)


def list_expenses(*, room: Room) -> QuerySet[Expense]:
    return (
        Expense.objects
        .filter(room=room)
        .select_related('user', 'approved_by')
        .order_by('-created_at')
    )


@transaction.atomic
def submit_expense(*, room: Room, user: User, amount: Decimal, items: str, notes: str = '') -> Expense:
    expense = Expense.objects.create(
        room=room,
        user=user,
        calculation_period=get_active_period(room=room),
        amount=amount,
        items=items,
        notes=notes,
        category=ExpenseCategory.SHOPPING,
        status=ApprovalStatus.PENDING,
    )
    logger.info("Expense %s of %s submitted in room %s", expense.id, amount, room.id)

    notify_room_manager(
        room=room,
        type=NotificationType.EXPENSE,
        title='New Expense Pending',
        message=f"{user.get_display_name()} logged a shopping expense of ৳{amount} for approval.",
        link='/shopping',
        related_id=expense.id,
    )
    return expense


@transaction.atomic
def approve_expense(*, room: Room, expense_id: UUID, approved_by: User) -> Expense:
    expense = lock_pending_entry(model=Expense, room=room, entry_id=expense_id, reviewer=approved_by)
    mark_reviewed(expense, reviewer=approved_by, status=ApprovalStatus.APPROVED)

    notify_user(
        user=expense.user,
        room=room,
        type=NotificationType.EXPENSE,
        title='Expense Approved',
        message=f"Your expense of ৳{expense.amount} has been approved by the manager.",
        link='/shopping',
        related_id=expense.id,
    )
    return expense


@transaction.atomic
def reject_expense(*, room: Room, expense_id: UUID, rejected_by: User, reason: str = '') -> Expense:
    expense = lock_pending_entry(model=Expense, room=room, entry_id=expense_id, reviewer=rejected_by)
    mark_reviewed(expense, reviewer=rejected_by, status=ApprovalStatus.REJECTED, reason=reason)

    suffix = f" Reason: {reason}" if reason else ''
    notify_user(
        user=expense.user,
        room=room,
        type=NotificationType.EXPENSE,
        title='Expense Rejected',
        message=f"Your expense of ৳{expense.amount} was rejected.{suffix}",
        link='/shopping',
        related_id=expense.id,
    )
    return expense
