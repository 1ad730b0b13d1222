"""
Calculation period services.

Starting and ending periods, plus adoption of ledger rows that were recorded
while no period was Active.
"""

import logging
from typing import Optional
from uuid import UUID

from django.db import transaction, IntegrityError
from django.db.models import QuerySet
from django.utils import timezone

from apps.accounts.models import User
from apps.rooms.models import Room

from .exceptions import (
    ActivePeriodExistsError,
    PeriodNotFoundError,
    PeriodAlreadyEndedError,
    PeriodAccessDeniedError,
)
from .models import CalculationPeriod, PeriodStatus

logger = logging.getLogger(__name__)


def list_periods(*, room: Room) -> QuerySet[CalculationPeriod]:
    """All periods of a room, newest first."""
    return (
        CalculationPeriod.objects
        .filter(room=room)
        .select_related('started_by', 'ended_by')
        .order_by('-start_date')
    )


def get_active_period(*, room: Room) -> Optional[CalculationPeriod]:
    return (
        CalculationPeriod.objects
        .filter(room=room, status=PeriodStatus.ACTIVE)
        .select_related('started_by')
        .first()
    )


def adopt_unassigned_rows(*, period: CalculationPeriod) -> dict:
    """
    Attach every NULL-period deposit, expense and meal of the period's room
    to the period.

    Returns:
        Mapping of row kind to number of adopted rows
    """
    from apps.ledger.models import Deposit, Expense, Meal

    adopted = {}
    for key, model in (('deposits', Deposit), ('expenses', Expense), ('meals', Meal)):
        adopted[key] = (
            model.objects
            .filter(room_id=period.room_id, calculation_period__isnull=True)
            .update(calculation_period=period)
        )
    return adopted


@transaction.atomic
def start_period(*, room: Room, name: str, started_by: User) -> CalculationPeriod:
    """
    Start a new Active period for a room (manager only).

    The room row is locked so two concurrent starts serialize; the partial
    unique constraint on (room, status='Active') backs the check.

    Raises:
        PeriodAccessDeniedError: If started_by is not the room manager
        ActivePeriodExistsError: If the room already has an Active period
    """
    room = Room.objects.select_for_update().get(id=room.id)

    if not room.is_manager(started_by):
        raise PeriodAccessDeniedError("Only managers can start calculation periods")

    if CalculationPeriod.objects.filter(room=room, status=PeriodStatus.ACTIVE).exists():
        raise ActivePeriodExistsError(
            "An active calculation period already exists. Please end it before starting a new one."
        )

    try:
        with transaction.atomic():
            period = CalculationPeriod.objects.create(
                room=room,
                name=name,
                status=PeriodStatus.ACTIVE,
                started_by=started_by,
            )
    except IntegrityError:
        raise ActivePeriodExistsError("An active calculation period already exists for this room")

    adopted = adopt_unassigned_rows(period=period)
    logger.info(
        "Started period %s in room %s (adopted %s)",
        period.id, room.id, adopted,
    )
    return period


@transaction.atomic
def end_period(*, period_id: UUID, ended_by: User) -> CalculationPeriod:
    """
    End an Active period. Ended periods are immutable.

    Raises:
        PeriodNotFoundError: If the period doesn't exist
        PeriodAccessDeniedError: If the caller does not manage the period's room
        PeriodAlreadyEndedError: If the period has already ended
    """
    try:
        period = (
            CalculationPeriod.objects
            .select_for_update()
            .select_related('room')
            .get(id=period_id)
        )
    except CalculationPeriod.DoesNotExist:
        raise PeriodNotFoundError("Calculation period not found")

    if not period.room.is_manager(ended_by):
        raise PeriodAccessDeniedError("Unauthorized to modify this period")

    if period.status == PeriodStatus.ENDED:
        raise PeriodAlreadyEndedError("This period has already ended")

    period.status = PeriodStatus.ENDED
    period.end_date = timezone.now()
    period.ended_by = ended_by
    period.save(update_fields=['status', 'end_date', 'ended_by'])

    logger.info("Ended period %s in room %s", period.id, period.room_id)
    return period
