"""
Meal service.

Meals are upserted per (room, user, date) and are never reviewed. Once the
manager finalizes a date, members can no longer change their counts on it.
"""

import datetime
import logging
from typing import Optional, Tuple

from django.db import transaction
from django.db.models import QuerySet, Sum

from apps.accounts.models import User
from apps.rooms.models import Room
from apps.periods.models import CalculationPeriod
from apps.periods.services import get_active_period
from apps.ledger.models import Meal, MealFinalization, MealHistory

from .exceptions import (
    InsufficientPermissionsError,
    NotRoomMemberError,
    MealDateFinalizedError,
)

logger = logging.getLogger(__name__)

MEAL_FIELDS = ('breakfast', 'lunch', 'dinner')


def list_meals(
    *,
    room: Room,
    start_date: Optional[datetime.date] = None,
    end_date: Optional[datetime.date] = None,
) -> QuerySet[Meal]:
    """Room meals, newest date first, optionally bounded (inclusive)."""
    meals = Meal.objects.filter(room=room).select_related('user')
    if start_date:
        meals = meals.filter(date__gte=start_date)
    if end_date:
        meals = meals.filter(date__lte=end_date)
    return meals.order_by('-date', 'user__email')


def is_date_finalized(*, room: Room, date: datetime.date) -> bool:
    return MealFinalization.objects.filter(room=room, date=date).exists()


def _log_history(*, meal: Meal, changed_by: User) -> None:
    try:
        with transaction.atomic():
            MealHistory.objects.create(
                room_id=meal.room_id,
                target_user_id=meal.user_id,
                changed_by=changed_by,
                date=meal.date,
                breakfast=meal.breakfast,
                lunch=meal.lunch,
                dinner=meal.dinner,
            )
    except Exception:
        logger.exception("Failed to log meal history for meal %s", meal.id)


@transaction.atomic
def upsert_meal(
    *,
    room: Room,
    actor: User,
    date: datetime.date,
    breakfast: Optional[int] = None,
    lunch: Optional[int] = None,
    dinner: Optional[int] = None,
    target_user: Optional[User] = None,
) -> Tuple[Meal, bool]:
    """
    Create or update a member's meal counts for a date.

    Counts left as None keep their stored value on update and start at 0 on
    create. New rows join the room's Active period (NULL if none).

    Returns:
        Tuple of (meal, created)

    Raises:
        InsufficientPermissionsError: If a member writes another member's meals
        NotRoomMemberError: If target_user is not in the room
        MealDateFinalizedError: If a member writes on a finalized date
    """
    target = target_user or actor
    is_manager = room.is_manager(actor)

    if target.pk != actor.pk and not is_manager:
        raise InsufficientPermissionsError("Only managers can update other members' meals")

    if not room.has_member(target):
        raise NotRoomMemberError(f"{target.get_display_name()} is not a member of this room")

    if not is_manager and is_date_finalized(room=room, date=date):
        raise MealDateFinalizedError(
            "This date has been finalized by the manager. You cannot update your meals."
        )

    counts = {'breakfast': breakfast, 'lunch': lunch, 'dinner': dinner}

    meal, created = Meal.objects.select_for_update().get_or_create(
        room=room,
        user=target,
        date=date,
        defaults={
            **{field: value or 0 for field, value in counts.items()},
            'calculation_period': get_active_period(room=room),
        },
    )

    if not created:
        changed = [field for field, value in counts.items() if value is not None]
        for field in changed:
            setattr(meal, field, counts[field])
        if changed:
            meal.save(update_fields=changed + ['updated_at'])

    _log_history(meal=meal, changed_by=actor)
    return meal, created


@transaction.atomic
def finalize_meal_date(*, room: Room, date: datetime.date, finalized_by: User) -> Tuple[MealFinalization, bool]:
    """
    Close a date for member edits (manager only). Finalizing twice is a no-op.

    Raises:
        InsufficientPermissionsError: If finalized_by is not the manager
    """
    if not room.is_manager(finalized_by):
        raise InsufficientPermissionsError("Only managers can finalize meals")

    finalization, created = MealFinalization.objects.get_or_create(
        room=room,
        date=date,
        defaults={'finalized_by': finalized_by},
    )
    if created:
        logger.info("Meals for %s finalized in room %s", date, room.id)
    return finalization, created


def get_meal_history(
    *,
    room: Room,
    target_user: Optional[User] = None,
    date: Optional[datetime.date] = None,
) -> QuerySet[MealHistory]:
    history = MealHistory.objects.filter(room=room).select_related('target_user', 'changed_by')
    if target_user:
        history = history.filter(target_user=target_user)
    if date:
        history = history.filter(date=date)
    return history.order_by('-created_at')


def meal_summary(*, room: Room, user: User, period: Optional[CalculationPeriod]) -> dict:
    """
    Meal counts for a calculation period, per member and for the caller.

    With period None the counts cover meals not yet adopted by any period.
    Every current member gets a row, in join order, even with no meals.
    """
    rows = (
        Meal.objects
        .filter(room=room, calculation_period=period)
        .values('user_id')
        .annotate(
            breakfast=Sum('breakfast'),
            lunch=Sum('lunch'),
            dinner=Sum('dinner'),
            total_meals=Sum('total_meals'),
        )
        .order_by()
    )
    by_user = {row['user_id']: row for row in rows}

    user_meals = []
    for member in room.get_members():
        counts = by_user.get(member.id, {})
        user_meals.append({
            'user_id': member.id,
            'name': member.get_display_name(),
            'breakfast': counts.get('breakfast') or 0,
            'lunch': counts.get('lunch') or 0,
            'dinner': counts.get('dinner') or 0,
            'total_meals': counts.get('total_meals') or 0,
        })

    return {
        'calculation_period': (
            {'id': period.id, 'name': period.name, 'status': period.status} if period else None
        ),
        'total_meals': sum(row['total_meals'] or 0 for row in by_user.values()),
        'current_user_meals': (by_user.get(user.id) or {}).get('total_meals') or 0,
        'user_meals': user_meals,
    }
