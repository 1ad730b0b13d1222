import pytest
import datetime
from decimal import Decimal
from django.core.cache import cache
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from apps.analytics.analytics import AnalyticsQueries, CATEGORY_COLORS, THIS_MONTH, LAST_6_MONTHS
from apps.analytics.exceptions import InvalidRangeError
from apps.bills.models import Bill
from apps.ledger.models import Deposit, Expense, Meal, ApprovalStatus, ExpenseCategory


def _months_ago(months, day=15):
    """Aware noon on `day` of the month `months` before the current one."""
    today = timezone.localdate()
    index = today.year * 12 + (today.month - 1) - months
    naive = datetime.datetime(index // 12, index % 12 + 1, day, 12, 0)
    return timezone.make_aware(naive)


def _backdate(row, months):
    type(row).objects.filter(pk=row.pk).update(created_at=_months_ago(months))


@pytest.fixture
def dashboard_data(db, room, manager, member, make_deposit, make_expense):
    """
    This month: deposits 2000, shopping 600 + a 300 bill payment, a 1200
    Rent bill, 12 meals. Three months ago: deposit 1000, shopping 400,
    a 500 Electricity bill.
    """
    today = timezone.localdate()

    make_deposit(room, member, 1500)
    make_deposit(room, manager, 500)
    make_deposit(room, member, 9999, status=ApprovalStatus.PENDING)
    make_expense(room, member, 600)
    make_expense(room, manager, 300, category=ExpenseCategory.BILL_PAYMENT, items='Bill Payment: Maid')
    Bill.objects.create(
        room=room, title='Rent', category='Rent',
        total_amount=Decimal('1200.00'), due_date=today, created_by=manager,
    )
    for offset in range(3):
        Meal.objects.create(
            room=room, user=member, date=today.replace(day=1) + datetime.timedelta(days=offset),
            breakfast=1, lunch=2, dinner=1,
        )

    old_deposit = make_deposit(room, member, 1000)
    old_expense = make_expense(room, member, 400)
    _backdate(old_deposit, 3)
    _backdate(old_expense, 3)
    Bill.objects.create(
        room=room, title='Old Electricity', category='Electricity',
        total_amount=Decimal('500.00'), due_date=_months_ago(3).date(), created_by=manager,
    )


# =============================================================================
# Dashboard endpoint Tests
# =============================================================================

@pytest.mark.django_db
class TestRoomDashboard:
    """Tests for GET /api/analytics/{room_id}/"""

    def test_this_month_totals(self, member_client, room, dashboard_data):
        url = reverse('analytics:room-dashboard', args=[room.id])
        response = member_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        data = response.data
        assert data['range'] == THIS_MONTH
        assert data['total_deposits'] == Decimal('2000.00')
        assert data['total_shopping_expenses'] == Decimal('900.00')
        assert data['total_bill_amount'] == Decimal('1200.00')
        assert data['total_meals_count'] == 12
        assert data['avg_meal_cost'] == Decimal('75.00')
        assert data['fund_health'] == Decimal('1100.00')
        assert data['stats'] == {'active_members': 2, 'total_bills': 2}

    def test_last_six_months_totals(self, member_client, room, dashboard_data):
        url = reverse('analytics:room-dashboard', args=[room.id])
        response = member_client.get(url, {'range': LAST_6_MONTHS})

        data = response.data
        assert data['total_deposits'] == Decimal('3000.00')
        assert data['total_shopping_expenses'] == Decimal('1300.00')
        assert data['total_bill_amount'] == Decimal('1700.00')
        assert data['fund_health'] == Decimal('1700.00')

    def test_category_buckets(self, member_client, room, dashboard_data):
        url = reverse('analytics:room-dashboard', args=[room.id])
        data = member_client.get(url).data

        buckets = {b['label']: b for b in data['bill_category_data']}
        assert set(buckets) == {'Rent', 'Shopping'}
        assert buckets['Rent']['value'] == Decimal('1200.00')
        assert buckets['Shopping']['value'] == Decimal('900.00')
        assert buckets['Rent']['color'] == AnalyticsQueries.category_color('Rent')

    def test_trend_has_six_months(self, member_client, room, dashboard_data):
        url = reverse('analytics:room-dashboard', args=[room.id])
        trend = member_client.get(url).data['trend_data']

        assert len(trend) == 6
        today = timezone.localdate()
        assert (trend[-1]['year'], trend[-1]['month']) == (today.year, today.month)
        assert trend[-1]['Deposits'] == Decimal('2000.00')
        assert trend[-1]['Rent'] == Decimal('1200.00')
        assert trend[-1]['Electricity'] == Decimal('0.00')

        three_back = trend[-4]
        assert three_back['Deposits'] == Decimal('1000.00')
        assert three_back['Shopping'] == Decimal('400.00')
        assert three_back['All Bills'] == Decimal('500.00')
        assert three_back['Electricity'] == Decimal('500.00')

    def test_empty_room(self, member_client, room):
        url = reverse('analytics:room-dashboard', args=[room.id])
        data = member_client.get(url).data

        assert data['total_meals_count'] == 0
        assert data['avg_meal_cost'] == Decimal('0.00')
        assert data['bill_category_data'] == []
        assert len(data['trend_data']) == 6

    def test_invalid_range(self, member_client, room):
        url = reverse('analytics:room-dashboard', args=[room.id])
        response = member_client.get(url, {'range': 'Last Year'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_outsider_forbidden(self, outsider_client, room):
        url = reverse('analytics:room-dashboard', args=[room.id])
        response = outsider_client.get(url)

        assert response.status_code == status.HTTP_403_FORBIDDEN


# =============================================================================
# Caching Tests
# =============================================================================

@pytest.mark.django_db
class TestDashboardCache:

    def test_cached_snapshot_survives_writes(self, member_client, room, member, make_deposit):
        url = reverse('analytics:room-dashboard', args=[room.id])
        make_deposit(room, member, 100)

        first = member_client.get(url).data
        make_deposit(room, member, 900)
        second = member_client.get(url).data

        assert first['total_deposits'] == Decimal('100.00')
        assert second['total_deposits'] == Decimal('100.00')

        cache.clear()
        third = member_client.get(url).data
        assert third['total_deposits'] == Decimal('1000.00')

    def test_ranges_cached_separately(self, member_client, room, member, make_deposit):
        url = reverse('analytics:room-dashboard', args=[room.id])
        make_deposit(room, member, 100)

        member_client.get(url)
        make_deposit(room, member, 900)
        six_months = member_client.get(url, {'range': LAST_6_MONTHS}).data

        assert six_months['total_deposits'] == Decimal('1000.00')

    def test_cache_key(self, room):
        assert AnalyticsQueries.cache_key(room.id, THIS_MONTH) == f'analytics:room:{room.id}:This Month'


# =============================================================================
# Query helpers
# =============================================================================

class TestAnalyticsHelpers:

    def test_category_color_is_stable(self):
        assert AnalyticsQueries.category_color('Rent') == AnalyticsQueries.category_color('Rent')
        assert AnalyticsQueries.category_color('Wi-Fi') in CATEGORY_COLORS

    def test_range_window_this_month(self):
        start, end = AnalyticsQueries.range_window(THIS_MONTH, today=datetime.date(2026, 2, 10))

        assert start == datetime.date(2026, 2, 1)
        assert end == datetime.date(2026, 2, 28)

    def test_range_window_six_months_crosses_year(self):
        start, end = AnalyticsQueries.range_window(LAST_6_MONTHS, today=datetime.date(2026, 3, 10))

        assert start == datetime.date(2025, 10, 1)
        assert end == datetime.date(2026, 3, 31)

    def test_unknown_range(self):
        with pytest.raises(InvalidRangeError):
            AnalyticsQueries.range_window('Forever')
