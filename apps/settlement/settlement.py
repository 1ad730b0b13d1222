"""
Settlement Module
=================

Period-scoped meal rate and per-member balances for a room.

Classes:
    SettlementQueries: Static methods computing the balance sheet.

The meal rate is the period's approved shopping spend divided by every meal
eaten in it, published to 4 decimal places. Each member is charged their
own meals at that published rate, plus any bill shares settled from the meal
fund and any manager deductions, against their approved deposits::

    rate    = round(total_shopping / total_meals, 4)   (0 when no meals)
    balance = deposits - round(meals * rate, 2) - bill_payments - adjustments

Balances across members do not sum to zero. The sum is the fund's surplus
or deficit.

Example:
    Balances for the Active period::

        from apps.settlement.settlement import SettlementQueries

        sheet = SettlementQueries.room_balances(room)
        for row in sheet['balances']:
            print(f"{row['name']}: {row['balance']}")

Note:
    Read-only and never cached; every call reflects the current ledger.
"""

from decimal import Decimal, ROUND_HALF_UP

from django.core.exceptions import ValidationError
from django.db.models import Sum, Q
from django.db.models.functions import Coalesce

from apps.ledger.models import Deposit, Expense, Meal, ApprovalStatus, ExpenseCategory
from apps.periods.models import CalculationPeriod, PeriodStatus

from .exceptions import InvalidPeriodError, NotRoomMemberError

ZERO = Decimal('0.00')
MONEY = Decimal('0.01')
RATE = Decimal('0.0001')


def _money(value):
    return Decimal(value).quantize(MONEY, rounding=ROUND_HALF_UP)


class SettlementQueries:
    """
    Balance sheet queries for one room and one calculation period.

    Methods:
        resolve_period: Pick the period a request refers to.
        period_totals: Room-wide shopping, meals and rate.
        room_balances: Full balance sheet with one row per member.
        fund_summary: Fund position plus one member's row.
    """

    SHOPPING_FILTER = Q(category=ExpenseCategory.SHOPPING) | Q(category__isnull=True)

    @staticmethod
    def resolve_period(room, calculation_period_id=None):
        """
        Return the period to aggregate over.

        An explicit id must name a period of this room. Without one the
        room's Active period is used, or None if nothing is Active.

        Raises:
            InvalidPeriodError: If the id is unknown or belongs to another room.
        """
        if calculation_period_id:
            try:
                period = CalculationPeriod.objects.get(id=calculation_period_id)
            except (CalculationPeriod.DoesNotExist, ValidationError):
                raise InvalidPeriodError("Calculation period not found")
            if period.room_id != room.id:
                raise InvalidPeriodError("Calculation period does not belong to this room")
            return period

        return CalculationPeriod.objects.filter(room=room, status=PeriodStatus.ACTIVE).first()

    @staticmethod
    def period_totals(room, period):
        """
        Room-wide figures for a period.

        Returns:
            dict: total_shopping (Decimal), total_meals (int) and rate
            (Decimal, unrounded).
        """
        total_shopping = Expense.objects.filter(
            SettlementQueries.SHOPPING_FILTER,
            room=room,
            calculation_period=period,
            status=ApprovalStatus.APPROVED,
        ).aggregate(total=Coalesce(Sum('amount'), ZERO))['total']

        total_meals = Meal.objects.filter(
            room=room,
            calculation_period=period,
        ).aggregate(total=Sum('total_meals'))['total'] or 0

        rate = Decimal(total_shopping) / Decimal(total_meals) if total_meals > 0 else Decimal('0')

        return {
            'total_shopping': _money(total_shopping),
            'total_meals': total_meals,
            'rate': rate,
        }

    @staticmethod
    def _sum_by_user(queryset, field):
        rows = queryset.values('user_id').annotate(total=Sum(field)).order_by()
        return {row['user_id']: row['total'] for row in rows}


    @staticmethod
    def _period_ref(period):
        if period is None:
            return None
        return {'id': period.id, 'name': period.name, 'status': period.status}

    @staticmethod
    def room_balances(room, calculation_period_id=None):
        """
        Compute the balance sheet for a room.

        Args:
            room (Room): The room.
            calculation_period_id (UUID, optional): Period to report on.
                Defaults to the Active period.

        Returns:
            dict: A dictionary containing:
                - calculation_period (dict | None): id, name, status.
                - rate (Decimal): Meal rate, 4 decimal places. Meal costs are
                  priced at this rate.
                - total_shopping (Decimal): Approved shopping spend.
                - total_meals (int): Meals eaten by everyone.
                - balances (list[dict]): One row per current member in join
                  order with user_id, name, email, total_deposits,
                  total_meals, meal_cost, total_bill_payments,
                  total_adjustments, balance.

            With no explicit period and nothing Active, every figure is zero
            and calculation_period is None.

        Raises:
            InvalidPeriodError: If calculation_period_id is invalid for the room.
        """
        period = SettlementQueries.resolve_period(room, calculation_period_id)
        members = list(room.get_members())

        if period is None:
            return {
                'calculation_period': None,
                'rate': Decimal('0.0000'),
                'total_shopping': ZERO,
                'total_meals': 0,
                'balances': [
                    SettlementQueries._row(member, ZERO, 0, ZERO, ZERO, ZERO)
                    for member in members
                ],
            }

        totals = SettlementQueries.period_totals(room, period)
        rate = totals['rate'].quantize(RATE, rounding=ROUND_HALF_UP)

        approved_expenses = Expense.objects.filter(
            room=room,
            calculation_period=period,
            status=ApprovalStatus.APPROVED,
        )
        deposits = SettlementQueries._sum_by_user(
            Deposit.objects.filter(room=room, calculation_period=period, status=ApprovalStatus.APPROVED),
            'amount',
        )
        meals = SettlementQueries._sum_by_user(
            Meal.objects.filter(room=room, calculation_period=period),
            'total_meals',
        )
        bill_payments = SettlementQueries._sum_by_user(
            approved_expenses.filter(category=ExpenseCategory.BILL_PAYMENT),
            'amount',
        )
        adjustments = SettlementQueries._sum_by_user(
            approved_expenses.filter(category=ExpenseCategory.ADJUSTMENT),
            'amount',
        )

        balances = []
        for member in members:
            my_meals = meals.get(member.id) or 0
            balances.append(SettlementQueries._row(
                member,
                deposits.get(member.id) or ZERO,
                my_meals,
                _money(Decimal(my_meals) * rate),
                bill_payments.get(member.id) or ZERO,
                adjustments.get(member.id) or ZERO,
            ))

        return {
            'calculation_period': SettlementQueries._period_ref(period),
            'rate': rate,
            'total_shopping': totals['total_shopping'],
            'total_meals': totals['total_meals'],
            'balances': balances,
        }

    @staticmethod
    def fund_summary(room, user, calculation_period_id=None):
        """
        Fund position for the room plus one member's own standing.

        fund_status covers every approved deposit and expense of the period,
        including those of members who have since left. Its balance is the
        cash still in the fund. member_summary is the user's balance sheet
        row.

        Raises:
            InvalidPeriodError: If calculation_period_id is invalid for the room.
            NotRoomMemberError: If user is not a current member.
        """
        sheet = SettlementQueries.room_balances(room, calculation_period_id)

        member_row = next(
            (row for row in sheet['balances'] if row['user_id'] == user.id),
            None,
        )
        if member_row is None:
            raise NotRoomMemberError(f"{user.get_display_name()} is not a member of this room")

        total_deposits = total_expenses = ZERO
        period = sheet['calculation_period']
        if period is not None:
            total_deposits = Deposit.objects.filter(
                room=room,
                calculation_period_id=period['id'],
                status=ApprovalStatus.APPROVED,
            ).aggregate(total=Coalesce(Sum('amount'), ZERO))['total']
            total_expenses = Expense.objects.filter(
                room=room,
                calculation_period_id=period['id'],
                status=ApprovalStatus.APPROVED,
            ).aggregate(total=Coalesce(Sum('amount'), ZERO))['total']

        return {
            'calculation_period': period,
            'fund_status': {
                'total_deposits': _money(total_deposits),
                'total_shopping': sheet['total_shopping'],
                'total_expenses': _money(total_expenses),
                'balance': _money(total_deposits) - _money(total_expenses),
                'rate': sheet['rate'],
            },
            'member_summary': member_row,
        }

    @staticmethod
    def _row(member, total_deposits, total_meals, meal_cost, total_bill_payments, total_adjustments):
        total_deposits = _money(total_deposits)
        total_bill_payments = _money(total_bill_payments)
        total_adjustments = _money(total_adjustments)
        return {
            'user_id': member.id,
            'name': member.get_display_name(),
            'email': member.email,
            'total_deposits': total_deposits,
            'total_meals': total_meals,
            'meal_cost': meal_cost,
            'total_bill_payments': total_bill_payments,
            'total_adjustments': total_adjustments,
            'balance': total_deposits - meal_cost - total_bill_payments - total_adjustments,
        }
