import pytest
import uuid
from decimal import Decimal
from datetime import date, timedelta
from unittest.mock import patch
from django.urls import reverse
from rest_framework import status
from apps.bills.models import ShareStatus
from apps.bills.services import BillSplitService, BillShareStateMachine
from apps.ledger.models import Deposit, Expense, Meal, ApprovalStatus, ExpenseCategory, PaymentMethod
from apps.ledger.services import adjust_fund, InsufficientPermissionsError
from apps.notifications.models import Notification
from apps.periods.models import CalculationPeriod, PeriodStatus
from apps.settlement.settlement import SettlementQueries
from apps.settlement.exceptions import InvalidPeriodError


def _balance_for(data, user):
    return next(row for row in data['balances'] if row['user_id'] == user.id)


@pytest.fixture
def october_ledger(db, room, manager, member, active_period, make_deposit, make_expense):
    """
    Shopping 1000 over 20 meals (rate 50). The member deposited 1250 and ate
    10 meals; the manager deposited 300 and ate 10.
    """
    make_expense(room, manager, 600, period=active_period)
    make_expense(room, member, 400, period=active_period)
    make_expense(room, member, 999, period=active_period, status=ApprovalStatus.PENDING)
    make_deposit(room, member, 1250, period=active_period)
    make_deposit(room, manager, 300, period=active_period)
    make_deposit(room, manager, 5000, period=active_period, status=ApprovalStatus.REJECTED)

    for day in range(1, 6):
        Meal.objects.create(
            room=room, user=member, calculation_period=active_period,
            date=date(2026, 10, day), lunch=1, dinner=1,
        )
        Meal.objects.create(
            room=room, user=manager, calculation_period=active_period,
            date=date(2026, 10, day), breakfast=1, lunch=1,
        )
    return active_period


# =============================================================================
# Balance sheet Tests
# =============================================================================

@pytest.mark.django_db
class TestRoomBalances:
    """Tests for GET /api/shopping/{room_id}/balances/"""

    def test_rate_and_balances(self, member_client, room, manager, member, october_ledger):
        url = reverse('settlement:room-balances', args=[room.id])
        response = member_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        data = response.data
        assert data['rate'] == Decimal('50.0000')
        assert data['total_shopping'] == Decimal('1000.00')
        assert data['total_meals'] == 20
        assert data['calculation_period']['id'] == october_ledger.id

        mine = _balance_for(data, member)
        assert mine['total_deposits'] == Decimal('1250.00')
        assert mine['total_meals'] == 10
        assert mine['meal_cost'] == Decimal('500.00')
        assert mine['balance'] == Decimal('750.00')

        theirs = _balance_for(data, manager)
        assert theirs['balance'] == Decimal('-200.00')

    def test_fund_paid_bill_share_is_charged_not_shopping(
        self, member_client, room, manager, member, october_ledger
    ):
        bill = BillSplitService.create_bill(
            room=room,
            created_by=manager,
            title='October Rent',
            category='Rent',
            total_amount=Decimal('1200.00'),
            due_date=date.today() + timedelta(days=3),
        )
        BillShareStateMachine.transition(
            bill=bill, user_id=member.id, actor=manager,
            new_status=ShareStatus.PAID, paid_from_meal_fund=True,
        )

        url = reverse('settlement:room-balances', args=[room.id])
        data = member_client.get(url).data

        assert data['total_shopping'] == Decimal('1000.00')
        assert data['rate'] == Decimal('50.0000')
        mine = _balance_for(data, member)
        assert mine['total_bill_payments'] == Decimal('600.00')
        assert mine['balance'] == Decimal('150.00')
        assert _balance_for(data, manager)['total_bill_payments'] == Decimal('0.00')

    def test_no_active_period_gives_zero_rows(self, member_client, room, manager, member, make_deposit):
        make_deposit(room, member, 500)

        url = reverse('settlement:room-balances', args=[room.id])
        data = member_client.get(url).data

        assert data['calculation_period'] is None
        assert data['rate'] == Decimal('0')
        assert len(data['balances']) == 2
        assert all(row['balance'] == Decimal('0.00') for row in data['balances'])

    def test_no_meals_means_zero_rate(self, member_client, room, member, active_period, make_expense):
        make_expense(room, member, 300, period=active_period)

        url = reverse('settlement:room-balances', args=[room.id])
        data = member_client.get(url).data

        assert data['rate'] == Decimal('0')
        assert data['total_shopping'] == Decimal('300.00')
        assert _balance_for(data, member)['meal_cost'] == Decimal('0.00')

    def test_explicit_ended_period(self, member_client, room, manager, member, make_deposit):
        ended = CalculationPeriod.objects.create(
            room=room, name='September', status=PeriodStatus.ENDED, started_by=manager,
        )
        make_deposit(room, member, 800, period=ended)

        url = reverse('settlement:room-balances', args=[room.id])
        data = member_client.get(url, {'calculation_period_id': str(ended.id)}).data

        assert data['calculation_period']['name'] == 'September'
        assert _balance_for(data, member)['total_deposits'] == Decimal('800.00')

    def test_period_of_other_room(self, member_client, room, other_room, other_manager):
        foreign = CalculationPeriod.objects.create(
            room=other_room, name='Theirs', status=PeriodStatus.ACTIVE, started_by=other_manager,
        )

        url = reverse('settlement:room-balances', args=[room.id])
        response = member_client.get(url, {'calculation_period_id': str(foreign.id)})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'error' in response.data

    def test_unknown_period(self, member_client, room):
        url = reverse('settlement:room-balances', args=[room.id])
        response = member_client.get(url, {'calculation_period_id': str(uuid.uuid4())})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_malformed_period_id(self, member_client, room):
        url = reverse('settlement:room-balances', args=[room.id])
        response = member_client.get(url, {'calculation_period_id': 'not-a-uuid'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_outsider_forbidden(self, outsider_client, room):
        url = reverse('settlement:room-balances', args=[room.id])
        response = outsider_client.get(url)

        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.django_db
class TestSettlementQueries:

    def test_resolve_defaults_to_active(self, room, active_period):
        assert SettlementQueries.resolve_period(room) == active_period

    def test_resolve_none_without_active(self, room):
        assert SettlementQueries.resolve_period(room) is None

    def test_resolve_rejects_foreign_period(self, room, other_room, other_manager):
        foreign = CalculationPeriod.objects.create(
            room=other_room, name='Theirs', started_by=other_manager,
        )

        with pytest.raises(InvalidPeriodError):
            SettlementQueries.resolve_period(room, foreign.id)

    def test_rate_rounds_to_four_places(self, room, member, active_period, make_expense):
        make_expense(room, member, 100, period=active_period)
        Meal.objects.create(
            room=room, user=member, calculation_period=active_period,
            date=date(2026, 10, 1), breakfast=1, lunch=1, dinner=1,
        )

        data = SettlementQueries.room_balances(room)

        assert data['rate'] == Decimal('33.3333')
        assert _balance_for(data, member)['meal_cost'] == Decimal('100.00')

    def test_uncategorized_expense_counts_as_shopping(self, room, member, active_period, make_expense):
        make_expense(room, member, 300, period=active_period, category=None)
        make_expense(room, member, 100, period=active_period)
        Meal.objects.create(
            room=room, user=member, calculation_period=active_period,
            date=date(2026, 10, 1), lunch=2, dinner=2,
        )

        data = SettlementQueries.room_balances(room)

        assert data['total_shopping'] == Decimal('400.00')
        assert data['rate'] == Decimal('100.0000')
        assert _balance_for(data, member)['meal_cost'] == Decimal('400.00')

    def test_meal_cost_uses_published_rate(self, room, member, active_period, make_expense):
        # 200 over 300 meals: 0.6666... published as 0.6667
        make_expense(room, member, 200, period=active_period)
        start = date(2026, 10, 1)
        for offset in range(50):
            Meal.objects.create(
                room=room, user=member, calculation_period=active_period,
                date=start + timedelta(days=offset), breakfast=2, lunch=2, dinner=2,
            )

        data = SettlementQueries.room_balances(room)
        row = _balance_for(data, member)

        assert data['rate'] == Decimal('0.6667')
        assert row['total_meals'] == 300
        assert row['meal_cost'] == Decimal('200.01')
        assert row['meal_cost'] == (row['total_meals'] * data['rate']).quantize(Decimal('0.01'))

    def test_adjustment_deduction_is_charged_not_shopping(
        self, room, manager, member, october_ledger, make_expense
    ):
        make_expense(
            room, member, 150, period=october_ledger,
            category=ExpenseCategory.ADJUSTMENT, items='Broken plate',
        )

        data = SettlementQueries.room_balances(room)

        assert data['total_shopping'] == Decimal('1000.00')
        assert data['rate'] == Decimal('50.0000')
        mine = _balance_for(data, member)
        assert mine['total_adjustments'] == Decimal('150.00')
        assert mine['balance'] == Decimal('600.00')
        assert _balance_for(data, manager)['total_adjustments'] == Decimal('0.00')


# =============================================================================
# Fund summary Tests
# =============================================================================

@pytest.mark.django_db
class TestFundSummary:
    """Tests for GET /api/shopping/{room_id}/summary/"""

    def test_fund_status_and_own_row(self, member_client, room, member, october_ledger):
        url = reverse('settlement:fund-summary', args=[room.id])
        response = member_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        fund = response.data['fund_status']
        assert fund['total_deposits'] == Decimal('1550.00')
        assert fund['total_shopping'] == Decimal('1000.00')
        assert fund['total_expenses'] == Decimal('1000.00')
        assert fund['balance'] == Decimal('550.00')
        assert fund['rate'] == Decimal('50.0000')

        mine = response.data['member_summary']
        assert mine['user_id'] == member.id
        assert mine['meal_cost'] == Decimal('500.00')
        assert mine['balance'] == Decimal('750.00')

    def test_manager_reads_member_summary(self, manager_client, room, member, october_ledger):
        url = reverse('settlement:fund-summary', args=[room.id])
        response = manager_client.get(url, {'user_id': str(member.id)})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['member_summary']['user_id'] == member.id

    def test_member_cannot_read_other_summary(self, member_client, room, manager, october_ledger):
        url = reverse('settlement:fund-summary', args=[room.id])
        response = member_client.get(url, {'user_id': str(manager.id)})

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_summary_of_non_member(self, manager_client, room, outsider, october_ledger):
        url = reverse('settlement:fund-summary', args=[room.id])
        response = manager_client.get(url, {'user_id': str(outsider.id)})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'error' in response.data

    def test_no_active_period(self, member_client, room, member, make_deposit):
        make_deposit(room, member, 500)

        url = reverse('settlement:fund-summary', args=[room.id])
        data = member_client.get(url).data

        assert data['calculation_period'] is None
        assert data['fund_status']['balance'] == Decimal('0.00')
        assert data['member_summary']['balance'] == Decimal('0.00')


# =============================================================================
# Fund adjustment Tests
# =============================================================================

@pytest.mark.django_db
class TestFundAdjust:
    """Tests for POST /api/shopping/{room_id}/adjust/"""

    def test_add_creates_approved_deposit(self, manager_client, room, manager, member, active_period):
        url = reverse('settlement:fund-adjust', args=[room.id])
        response = manager_client.post(url, {
            'user_id': str(member.id),
            'type': 'ADD',
            'amount': '250.00',
            'reason': 'Cash handed over',
        })

        assert response.status_code == status.HTTP_201_CREATED
        deposit = Deposit.objects.get(id=response.data['id'])
        assert deposit.user == member
        assert deposit.status == ApprovalStatus.APPROVED
        assert deposit.approved_by == manager
        assert deposit.payment_method == PaymentMethod.MANAGER_ADJUSTMENT
        assert deposit.transaction_id == 'MANUAL'
        assert deposit.notes == 'Cash handed over'
        assert deposit.calculation_period == active_period

        notification = Notification.objects.get(user=member)
        assert notification.title == 'Fund Adjustment'
        assert '৳250.00' in notification.message

    def test_deduct_creates_adjustment_expense(self, manager_client, room, member, active_period):
        url = reverse('settlement:fund-adjust', args=[room.id])
        response = manager_client.post(url, {
            'user_id': str(member.id),
            'type': 'DEDUCT',
            'amount': '80',
        })

        assert response.status_code == status.HTTP_201_CREATED
        expense = Expense.objects.get(id=response.data['id'])
        assert expense.category == ExpenseCategory.ADJUSTMENT
        assert expense.status == ApprovalStatus.APPROVED
        assert expense.items == 'Fund Deduction'

        data = SettlementQueries.room_balances(room)
        assert data['total_shopping'] == Decimal('0.00')
        assert _balance_for(data, member)['balance'] == Decimal('-80.00')

    def test_member_forbidden(self, member_client, room, member):
        url = reverse('settlement:fund-adjust', args=[room.id])
        response = member_client.post(url, {'user_id': str(member.id), 'type': 'ADD', 'amount': '10'})

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert not Deposit.objects.exists()

    def test_invalid_type(self, manager_client, room, member):
        url = reverse('settlement:fund-adjust', args=[room.id])
        response = manager_client.post(url, {'user_id': str(member.id), 'type': 'DOUBLE', 'amount': '10'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_target_outside_room(self, manager_client, room, outsider):
        url = reverse('settlement:fund-adjust', args=[room.id])
        response = manager_client.post(url, {'user_id': str(outsider.id), 'type': 'ADD', 'amount': '10'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'error' in response.data
        assert not Deposit.objects.exists()

    def test_notification_failure_does_not_fail_adjustment(self, manager_client, room, member):
        url = reverse('settlement:fund-adjust', args=[room.id])

        with patch.object(Notification.objects, 'create', side_effect=Exception('boom')):
            response = manager_client.post(url, {'user_id': str(member.id), 'type': 'ADD', 'amount': '10'})

        assert response.status_code == status.HTTP_201_CREATED
        assert Deposit.objects.filter(user=member).exists()
        assert not Notification.objects.exists()

    def test_service_requires_manager(self, room, member):
        with pytest.raises(InsufficientPermissionsError):
            adjust_fund(room=room, user=member, adjusted_by=member, type='ADD', amount=Decimal('10'))
