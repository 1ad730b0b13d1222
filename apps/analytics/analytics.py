"""
Analytics Module
=================

Range-scoped dashboard figures for a room: spend, deposits, meals, bill
categories and a six-month trend.

Classes:
    AnalyticsQueries: Static methods for the room dashboard.

Key Features:
    - Headline totals for "This Month" or "Last 6 Months"
    - Fund health (deposits minus shopping spend, bills excluded)
    - Bill category buckets with colors stable by category name
    - Six-month trend with one series per bill category
    - Per-(room, range) caching through Django's cache framework

Example:
    Getting the dashboard bundle::

        from apps.analytics.analytics import AnalyticsQueries

        data = AnalyticsQueries.cached_room_dashboard(room, 'Last 6 Months')
        print(f"Fund health: {data['fund_health']}")

Note:
    Unlike settlement, nothing here is scoped to a calculation period. All
    windows are calendar based: created_at for deposits and expenses,
    due_date for bills, date for meals.
"""

import calendar
import datetime
import zlib
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.core.cache import cache
from django.db.models import Sum
from django.db.models.functions import Coalesce, TruncMonth
from django.utils import timezone

from apps.bills.models import Bill
from apps.ledger.models import Deposit, Expense, Meal, ApprovalStatus

from .exceptions import InvalidRangeError

THIS_MONTH = 'This Month'
LAST_6_MONTHS = 'Last 6 Months'
VALID_RANGES = (THIS_MONTH, LAST_6_MONTHS)

TREND_MONTHS = 6

CATEGORY_COLORS = [
    '#3b82f6', '#8b5cf6', '#10b981', '#f59e0b',
    '#ef4444', '#ec4899', '#6366f1', '#14b8a6',
]

ZERO = Decimal('0.00')
MONEY = Decimal('0.01')


def _money(value):
    return Decimal(value or 0).quantize(MONEY, rounding=ROUND_HALF_UP)


def _shift_months(year, month, delta):
    """(year, month) moved by delta months."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def _month_start(year, month):
    return datetime.date(year, month, 1)


def _month_end(year, month):
    return datetime.date(year, month, calendar.monthrange(year, month)[1])


def _aware_start(day):
    """Start of a local calendar day as an aware datetime."""
    return timezone.make_aware(datetime.datetime.combine(day, datetime.time.min))


class AnalyticsQueries:
    """
    Dashboard queries for one room.

    Methods:
        category_color: Palette color for a category name.
        range_window: First and last day of a named range.
        room_dashboard: Compute the dashboard bundle.
        cached_room_dashboard: Same, memoized per (room, range).
    """

    @staticmethod
    def category_color(name):
        """
        Palette color for a category.

        Derived from a CRC32 of the name, so a category keeps its color no
        matter which other categories are present.
        """
        return CATEGORY_COLORS[zlib.crc32(name.encode('utf-8')) % len(CATEGORY_COLORS)]

    @staticmethod
    def range_window(range_name, today=None):
        """
        Resolve a named range to inclusive (start_date, end_date).

        "This Month" covers the current calendar month; "Last 6 Months"
        starts on the first of the month five months back. Both end on the
        last day of the current month.

        Raises:
            InvalidRangeError: If range_name is not a known range.
        """
        if range_name not in VALID_RANGES:
            raise InvalidRangeError(
                f"Invalid range: '{range_name}'. Valid options: {', '.join(VALID_RANGES)}"
            )

        today = today or timezone.localdate()
        end = _month_end(today.year, today.month)

        if range_name == THIS_MONTH:
            return _month_start(today.year, today.month), end

        year, month = _shift_months(today.year, today.month, -(TREND_MONTHS - 1))
        return _month_start(year, month), end

    @staticmethod
    def room_dashboard(room, range_name=THIS_MONTH, today=None):
        """
        Compute the dashboard bundle for a room.

        Args:
            room (Room): The room.
            range_name (str): "This Month" or "Last 6 Months".
            today (date, optional): Reference date, defaults to the local date.

        Returns:
            dict: A dictionary containing:
                - range (str): The resolved range name.
                - start_date, end_date (date): The inclusive window.
                - total_shopping_expenses (Decimal): Approved expenses of
                  every category created in the window.
                - total_bill_amount (Decimal): Bills due in the window.
                - total_deposits (Decimal): Approved deposits created in
                  the window.
                - total_meals_count (int): Meals dated in the window.
                - avg_meal_cost (Decimal): Shopping per meal, 0 without meals.
                - fund_health (Decimal): Deposits minus shopping.
                - bill_category_data (list[dict]): {label, value, color}
                  per bill category plus "Shopping" when non-zero.
                - trend_data (list[dict]): Six monthly entries, oldest first.
                - stats (dict): active_members and total_bills.

        Raises:
            InvalidRangeError: If range_name is not a known range.
        """
        today = today or timezone.localdate()
        start_date, end_date = AnalyticsQueries.range_window(range_name, today)
        start_at = _aware_start(start_date)
        end_before = _aware_start(end_date + datetime.timedelta(days=1))

        expenses = Expense.objects.filter(
            room=room,
            status=ApprovalStatus.APPROVED,
            created_at__gte=start_at,
            created_at__lt=end_before,
        )
        deposits = Deposit.objects.filter(
            room=room,
            status=ApprovalStatus.APPROVED,
            created_at__gte=start_at,
            created_at__lt=end_before,
        )
        bills = Bill.objects.filter(room=room, due_date__gte=start_date, due_date__lte=end_date)

        total_shopping = _money(expenses.aggregate(total=Coalesce(Sum('amount'), ZERO))['total'])
        total_deposits = _money(deposits.aggregate(total=Coalesce(Sum('amount'), ZERO))['total'])
        total_bills = _money(bills.aggregate(total=Coalesce(Sum('total_amount'), ZERO))['total'])
        total_meals = Meal.objects.filter(
            room=room,
            date__gte=start_date,
            date__lte=end_date,
        ).aggregate(total=Sum('total_meals'))['total'] or 0

        avg_meal_cost = _money(total_shopping / total_meals) if total_meals > 0 else ZERO

        # Category buckets
        category_data = [
            {
                'label': row['category'],
                'value': _money(row['value']),
                'color': AnalyticsQueries.category_color(row['category']),
            }
            for row in bills.values('category').annotate(value=Sum('total_amount')).order_by('category')
        ]
        if total_shopping > 0:
            category_data.append({
                'label': 'Shopping',
                'value': total_shopping,
                'color': AnalyticsQueries.category_color('Shopping'),
            })

        return {
            'range': range_name,
            'start_date': start_date,
            'end_date': end_date,
            'total_shopping_expenses': total_shopping,
            'total_bill_amount': total_bills,
            'total_deposits': total_deposits,
            'total_meals_count': total_meals,
            'avg_meal_cost': avg_meal_cost,
            'fund_health': total_deposits - total_shopping,
            'bill_category_data': category_data,
            'trend_data': AnalyticsQueries.monthly_trend(room, today),
            'stats': {
                'active_members': room.memberships.count(),
                'total_bills': Bill.objects.filter(room=room).count(),
            },
        }

    @staticmethod
    def monthly_trend(room, today=None):
        """
        Six calendar months ending with the current one, oldest first.

        Each entry has label, year, month, Deposits, Shopping and All Bills,
        plus one key per bill category seen anywhere in the six months
        (zero where a month has none). Series are summed independently by
        (year, month).
        """
        today = today or timezone.localdate()
        months = [
            _shift_months(today.year, today.month, offset)
            for offset in range(-(TREND_MONTHS - 1), 1)
        ]
        first_day = _month_start(*months[0])
        last_day = _month_end(*months[-1])
        start_at = _aware_start(first_day)
        end_before = _aware_start(last_day + datetime.timedelta(days=1))

        def by_month(queryset, date_field, amount_field, *extra):
            rows = (
                queryset
                .annotate(bucket=TruncMonth(date_field))
                .values('bucket', *extra)
                .annotate(total=Sum(amount_field))
                .order_by()
            )
            result = {}
            for row in rows:
                key = (row['bucket'].year, row['bucket'].month) + tuple(row[f] for f in extra)
                result[key] = result.get(key, ZERO) + row['total']
            return result

        deposits = by_month(
            Deposit.objects.filter(
                room=room, status=ApprovalStatus.APPROVED,
                created_at__gte=start_at, created_at__lt=end_before,
            ),
            'created_at', 'amount',
        )
        shopping = by_month(
            Expense.objects.filter(
                room=room, status=ApprovalStatus.APPROVED,
                created_at__gte=start_at, created_at__lt=end_before,
            ),
            'created_at', 'amount',
        )
        bills_qs = Bill.objects.filter(room=room, due_date__gte=first_day, due_date__lte=last_day)
        all_bills = by_month(bills_qs, 'due_date', 'total_amount')
        bills_by_category = by_month(bills_qs, 'due_date', 'total_amount', 'category')

        categories = sorted({key[2] for key in bills_by_category})

        trend = []
        for year, month in months:
            entry = {
                'label': calendar.month_abbr[month],
                'year': year,
                'month': month,
                'Deposits': _money(deposits.get((year, month), ZERO)),
                'Shopping': _money(shopping.get((year, month), ZERO)),
                'All Bills': _money(all_bills.get((year, month), ZERO)),
            }
            for category in categories:
                entry[category] = _money(bills_by_category.get((year, month, category), ZERO))
            trend.append(entry)
        return trend

    @staticmethod
    def cache_key(room_id, range_name):
        return f"analytics:room:{room_id}:{range_name}"

    @staticmethod
    def cached_room_dashboard(room, range_name=THIS_MONTH):
        """
        room_dashboard memoized per (room, range) for ANALYTICS_CACHE_TTL
        seconds. A hit returns the stored snapshot as is, even if the ledger
        changed since.
        """
        AnalyticsQueries.range_window(range_name)

        key = AnalyticsQueries.cache_key(room.id, range_name)
        data = cache.get(key)
        if data is None:
            data = AnalyticsQueries.room_dashboard(room, range_name)
            cache.set(key, data, getattr(settings, 'ANALYTICS_CACHE_TTL', 180))
        return data
