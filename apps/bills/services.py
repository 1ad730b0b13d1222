"""
Bill Services Module
====================

Business logic for household bills: paisa-precise splitting among room
members and the per-share payment state machine.

Classes:
    BillSplitService: Creates bills with their shares, deletes bills, and
        summarizes a member's bill standing.
    BillShareStateMachine: Applies status transitions to a single share,
        recording the meal-fund payment when a share becomes Paid.

Example:
    Creating a bill split equally among every member::

        from apps.bills.services import BillSplitService
        from decimal import Decimal

        bill = BillSplitService.create_bill(
            room=room,
            created_by=manager,
            title='October Rent',
            category='Rent',
            total_amount=Decimal('1200.00'),
            due_date=date(2024, 10, 10),
        )

        # Each member gets a BillShare with a paisa-precise amount
        for share in bill.shares.all():
            print(f"{share.user_name}: {share.amount}")

    Member submits, manager approves from the meal fund::

        BillShareStateMachine.transition(
            bill=bill, user_id=member.id, actor=member,
            new_status='Pending Approval',
        )
        BillShareStateMachine.transition(
            bill=bill, user_id=member.id, actor=manager,
            new_status='Paid', paid_from_meal_fund=True,
        )
"""

import datetime
import logging
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Sum, Count, Q
from django.utils import timezone

from apps.ledger.models import Expense, ExpenseCategory, ApprovalStatus
from apps.notifications.models import NotificationType
from apps.notifications.services import notify_user, notify_room_manager
from apps.periods.services import get_active_period

from .exceptions import (
    NoParticipantsError,
    InvalidSplitError,
    BillShareNotFoundError,
    InvalidStateTransitionError,
    InsufficientPermissionsError,
)
from .models import Bill, BillShare, BillCategory, ShareStatus

logger = logging.getLogger(__name__)


def record_fund_payment(*, share, approved_by):
    """
    Record an auto-approved BillPayment expense for a share paid from the
    meal fund.

    The expense is keyed by the share through a unique foreign key, so
    calling this again for the same share returns the existing expense.

    Returns:
        tuple: (Expense, created)
    """
    bill = share.bill
    return Expense.objects.get_or_create(
        bill_share=share,
        defaults={
            'room_id': bill.room_id,
            'user_id': share.user_id,
            'calculation_period': get_active_period(room=bill.room),
            'amount': share.amount,
            'items': f"Bill Payment: {bill.title}",
            'notes': f"Paid from meal fund for {bill.category} bill",
            'category': ExpenseCategory.BILL_PAYMENT,
            'status': ApprovalStatus.APPROVED,
            'approved_by': approved_by,
            'approved_at': timezone.now(),
        },
    )


class BillSplitService:
    """
    Service for creating bills with paisa-precise splitting.

    The paisa is the smallest Bangladeshi taka unit (1 BDT = 100 paisa).
    Amounts are converted to paisa, divided as integers, and the remainder
    handed out one paisa at a time, so shares always sum exactly to the
    bill total.

    Methods:
        create_bill: Create a bill and its shares.
        delete_bill: Delete a bill (manager only).
        get_member_stats: Totals of one member's shares in a room.
    """

    @staticmethod
    def create_bill(
        room,
        created_by,
        title,
        category,
        total_amount,
        due_date,
        description='',
        shares=None,  # List of {'user_id', 'amount'}, or None for an equal split
        auto_deduct_from_meal_fund=False,
    ):
        """
        Create a bill and its member shares.

        With explicit ``shares`` every named user must be a room member and
        the amounts must add up to ``total_amount``. Without them the total
        is split equally among all current members in join order.

        When ``auto_deduct_from_meal_fund`` is set on an ``Others`` bill,
        every share starts Paid and gets its BillPayment expense right away.

        Args:
            room (Room): The room the bill belongs to.
            created_by (User): The manager creating the bill.
            title (str): Bill title.
            category (str): One of BillCategory.
            total_amount (Decimal): Bill total in taka.
            due_date (date): When the bill is due.
            description (str, optional): Free text.
            shares (list[dict], optional): Explicit split.
            auto_deduct_from_meal_fund (bool, optional): Settle every share
                from the meal fund (``Others`` bills only).

        Returns:
            Bill: The created bill with shares.

        Raises:
            InsufficientPermissionsError: If created_by is not the manager.
            NoParticipantsError: If there is nobody to split among.
            InvalidSplitError: If explicit shares are inconsistent.

        Note:
            This method is wrapped in a database transaction. If any step
            fails, all changes are rolled back.
        """
        if not room.is_manager(created_by):
            raise InsufficientPermissionsError('Only the room manager can create bills.')

        with transaction.atomic():
            members = list(room.get_members())

            if shares:
                split = BillSplitService._validate_explicit_shares(total_amount, shares, members)
            else:
                split = BillSplitService._calculate_splits(total_amount, members)

            bill = Bill.objects.create(
                room=room,
                title=title,
                category=category,
                total_amount=total_amount,
                due_date=due_date,
                description=description,
                created_by=created_by,
            )

            auto_paid = bool(auto_deduct_from_meal_fund) and category == BillCategory.OTHERS
            now = timezone.now()

            bill_shares = []
            for user, amount in split:
                share = BillShare.objects.create(
                    bill=bill,
                    user=user,
                    user_name=user.get_display_name(),
                    amount=amount,
                    status=ShareStatus.PAID if auto_paid else ShareStatus.UNPAID,
                    paid_from_meal_fund=auto_paid,
                    paid_at=now if auto_paid else None,
                )
                bill_shares.append(share)

            if auto_paid:
                for share in bill_shares:
                    record_fund_payment(share=share, approved_by=created_by)
                logger.info(
                    "Bill %s auto-deducted from meal fund for %d members",
                    bill.id, len(bill_shares),
                )

        for share in bill_shares:
            if share.user_id == created_by.id:
                continue
            notify_user(
                user=share.user,
                room=room,
                type=NotificationType.BILL,
                title='New Bill Added',
                message=f'A new bill "{title}" of ৳{total_amount} has been added.',
                link=f'/bills/{bill.id}',
                related_id=bill.id,
            )

        return bill

    @staticmethod
    def _calculate_splits(total_amount, participants):
        """
        Split an amount with paisa precision (no rounding errors).

        Algorithm:
            1. Convert to paisa: ``total_paisa = int(total * 100)``
            2. Base share: ``base = total_paisa // N``
            3. Remainder: ``remainder = total_paisa % N``
            4. First 'remainder' participants get ``(base + 1)`` paisa
            5. Rest get 'base' paisa

        Example:
            100.00 split among 3 people gives 33.34, 33.33, 33.33.

        Raises:
            NoParticipantsError: If participants is empty.
            InvalidSplitError: If the split doesn't sum to the total.
        """
        if not participants:
            raise NoParticipantsError("No members to split the bill among")

        total_paisa = int(Decimal(total_amount) * 100)
        base_paisa, remainder_paisa = divmod(total_paisa, len(participants))

        shares = []
        for i, user in enumerate(participants):
            user_paisa = base_paisa + 1 if i < remainder_paisa else base_paisa
            shares.append((user, Decimal(user_paisa) / Decimal(100)))

        total_check = sum(amount for _, amount in shares)
        if total_check != total_amount:
            raise InvalidSplitError(f"Split calculation error: {total_check} != {total_amount}")

        return shares

    @staticmethod
    def _validate_explicit_shares(total_amount, shares, members):
        members_by_id = {member.id: member for member in members}

        split = []
        for entry in shares:
            user = members_by_id.get(entry['user_id'])
            if user is None:
                raise InvalidSplitError(f"User {entry['user_id']} is not a member of this room")
            split.append((user, entry['amount']))

        if not split:
            raise NoParticipantsError("No members to split the bill among")

        total_check = sum(amount for _, amount in split)
        if total_check != total_amount:
            raise InvalidSplitError(
                f"Shares add up to {total_check} but the bill total is {total_amount}"
            )
        return split

    @staticmethod
    def delete_bill(bill, deleted_by):
        """
        Delete a bill and its shares (manager only).

        BillPayment expenses already recorded stay in the ledger; their
        share link is cleared.
        """
        if not bill.room.is_manager(deleted_by):
            raise InsufficientPermissionsError('Only the room manager can delete bills.')
        logger.info("Bill %s deleted by %s", bill.id, deleted_by.id)
        bill.delete()

    @staticmethod
    def get_member_stats(room, user):
        """Totals of one member's shares across the room's bills, by status."""
        shares = BillShare.objects.filter(bill__room=room, user=user)
        totals = shares.aggregate(
            total_unpaid=Sum('amount', filter=Q(status=ShareStatus.UNPAID)),
            total_paid=Sum('amount', filter=Q(status=ShareStatus.PAID)),
            total_overdue=Sum('amount', filter=Q(status=ShareStatus.OVERDUE)),
            pending_approvals=Count('id', filter=Q(status=ShareStatus.PENDING_APPROVAL)),
        )
        return {
            'total_unpaid': totals['total_unpaid'] or Decimal('0.00'),
            'total_paid': totals['total_paid'] or Decimal('0.00'),
            'total_overdue': totals['total_overdue'] or Decimal('0.00'),
            'pending_approvals': totals['pending_approvals'] or 0,
        }


class BillShareStateMachine:
    """
    Status lifecycle of a single bill share.

    ::

        Unpaid ──member──> Pending Approval ──manager──> Paid
          ^  |                    |
          |  v                    └──manager──> Unpaid (rejected)
        Overdue ──manager──────────────────────> Paid (direct)

    The share owner may only submit a payment for approval. Everything else
    is the manager's. Paid is terminal. Whenever a share becomes Paid with
    ``paid_from_meal_fund`` set, one BillPayment expense is recorded in the
    same transaction.
    """

    OWNER_TRANSITIONS = {
        (ShareStatus.UNPAID, ShareStatus.PENDING_APPROVAL),
        (ShareStatus.OVERDUE, ShareStatus.PENDING_APPROVAL),
    }

    MANAGER_TRANSITIONS = {
        (ShareStatus.PENDING_APPROVAL, ShareStatus.PAID),
        (ShareStatus.PENDING_APPROVAL, ShareStatus.UNPAID),
        (ShareStatus.UNPAID, ShareStatus.PAID),
        (ShareStatus.OVERDUE, ShareStatus.PAID),
        (ShareStatus.UNPAID, ShareStatus.OVERDUE),
        (ShareStatus.OVERDUE, ShareStatus.UNPAID),
    }

    @classmethod
    def transition(cls, bill, user_id, actor, new_status, paid_from_meal_fund=None):
        """
        Move a member's share on ``bill`` to ``new_status``.

        Args:
            bill (Bill): The bill holding the share.
            user_id (UUID): Whose share to update.
            actor (User): Who is asking.
            new_status (str): Target ShareStatus.
            paid_from_meal_fund (bool, optional): Stored on the share when
                submitting or marking Paid.

        Returns:
            BillShare: The updated share (unchanged for a repeated request).

        Raises:
            BillShareNotFoundError: If the user has no share on the bill.
            InsufficientPermissionsError: Member acting on another's share,
                or setting anything but Pending Approval.
            InvalidStateTransitionError: Leaving Paid, or a transition not
                in the table.
        """
        room = bill.room
        is_manager = room.is_manager(actor)

        with transaction.atomic():
            try:
                share = (
                    BillShare.objects
                    .select_for_update()
                    .select_related('bill', 'bill__room', 'user')
                    .get(bill=bill, user_id=user_id)
                )
            except (BillShare.DoesNotExist, ValidationError):
                raise BillShareNotFoundError()

            is_owner = share.user_id == actor.id

            if not is_manager:
                if not is_owner:
                    raise InsufficientPermissionsError('You can only update your own bill share.')
                if new_status != ShareStatus.PENDING_APPROVAL:
                    raise InsufficientPermissionsError(
                        f'Only the room manager can mark a share as {new_status}.'
                    )

            current = share.status

            if current == new_status:
                return share

            if current == ShareStatus.PAID:
                raise InvalidStateTransitionError('This share is already paid.')

            allowed = set(cls.MANAGER_TRANSITIONS) if is_manager else set()
            if is_owner:
                allowed |= cls.OWNER_TRANSITIONS
            if (current, new_status) not in allowed:
                raise InvalidStateTransitionError(
                    f'Cannot change share status from {current} to {new_status}.'
                )

            update_fields = ['status', 'updated_at']
            share.status = new_status

            if paid_from_meal_fund is not None and new_status in (
                ShareStatus.PENDING_APPROVAL, ShareStatus.PAID
            ):
                share.paid_from_meal_fund = paid_from_meal_fund
                update_fields.append('paid_from_meal_fund')

            if new_status == ShareStatus.PAID:
                share.paid_at = timezone.now()
                update_fields.append('paid_at')

            share.save(update_fields=update_fields)

            if new_status == ShareStatus.PAID and share.paid_from_meal_fund:
                expense, created = record_fund_payment(share=share, approved_by=actor)
                if created:
                    logger.info(
                        "Recorded meal-fund payment %s for share %s", expense.id, share.id
                    )

        logger.info(
            "Bill share %s: %s -> %s by %s", share.id, current, new_status, actor.id
        )
        cls._notify(share=share, actor=actor, previous=current)
        return share

    @staticmethod
    def _notify(share, actor, previous):
        bill = share.bill
        room = bill.room
        status = share.status

        if status == ShareStatus.PENDING_APPROVAL:
            if room.manager_id != actor.id:
                notify_room_manager(
                    room=room,
                    type=NotificationType.PAYMENT,
                    title='Payment Pending Approval',
                    message=(
                        f'{share.user_name} has paid their share (৳{share.amount}) '
                        f'for "{bill.title}" and is waiting for approval.'
                    ),
                    link='/bills',
                    related_id=bill.id,
                )
            return

        if share.user_id == actor.id:
            return

        if status == ShareStatus.PAID:
            title = 'Payment Approved' if previous == ShareStatus.PENDING_APPROVAL else 'Payment Recorded'
            message = f'Your payment of ৳{share.amount} for "{bill.title}" has been confirmed.'
        elif status == ShareStatus.UNPAID and previous == ShareStatus.PENDING_APPROVAL:
            title = 'Payment Rejected'
            message = f'Your payment for "{bill.title}" was not approved. Please check with the manager.'
        elif status == ShareStatus.OVERDUE:
            title = 'Bill Overdue'
            message = f'Your share (৳{share.amount}) of "{bill.title}" is overdue.'
        else:
            return

        notify_user(
            user=share.user,
            room=room,
            type=NotificationType.PAYMENT,
            title=title,
            message=message,
            link='/bills',
            related_id=bill.id,
        )

    @staticmethod
    def mark_overdue_shares(today=None):
        """
        Flip every Unpaid share whose bill is past due to Overdue.

        Args:
            today (date, optional): Reference date. Defaults to the local date.

        Returns:
            int: Number of shares updated.
        """
        if today is None:
            today = timezone.localdate()
        if isinstance(today, datetime.datetime):
            today = today.date()

        updated = BillShare.objects.filter(
            status=ShareStatus.UNPAID,
            bill__due_date__lt=today,
        ).update(status=ShareStatus.OVERDUE, updated_at=timezone.now())

        if updated:
            logger.info("Marked %d bill share(s) overdue as of %s", updated, today)
        return updated
