import pytest
import uuid
from django.urls import reverse
from rest_framework import status
from apps.periods.models import CalculationPeriod, PeriodStatus
from apps.ledger.models import Meal


@pytest.mark.django_db
class TestPeriodStart:
    """Tests for POST /api/calculation-periods/"""

    def test_start_adopts_unassigned_rows(
        self, manager_client, room, manager, member, make_deposit, make_expense
    ):
        deposit = make_deposit(room, member, 500)
        expense = make_expense(room, manager, 200)
        meal = Meal.objects.create(room=room, user=member, date='2026-10-01', lunch=1)

        url = reverse('periods:period-list')
        response = manager_client.post(url, {'name': 'October'})

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['status'] == PeriodStatus.ACTIVE
        period_id = response.data['id']

        for row in (deposit, expense, meal):
            row.refresh_from_db()
            assert str(row.calculation_period_id) == str(period_id)

    def test_rows_of_other_rooms_not_adopted(
        self, manager_client, room, other_room, other_manager, make_deposit
    ):
        foreign = make_deposit(other_room, other_manager, 100)

        url = reverse('periods:period-list')
        manager_client.post(url, {'name': 'October'})

        foreign.refresh_from_db()
        assert foreign.calculation_period_id is None

    def test_second_active_period_rejected(self, manager_client, active_period):
        url = reverse('periods:period-list')
        response = manager_client.post(url, {'name': 'Another'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert CalculationPeriod.objects.filter(status=PeriodStatus.ACTIVE).count() == 1

    def test_member_cannot_start(self, member_client, room):
        url = reverse('periods:period-list')
        response = member_client.post(url, {'name': 'October'})

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_name_too_long(self, manager_client, room):
        url = reverse('periods:period-list')
        response = manager_client.post(url, {'name': 'x' * 51})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_user_without_room(self, outsider_client):
        url = reverse('periods:period-list')
        response = outsider_client.post(url, {'name': 'October'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error'] == 'User not in a room'


@pytest.mark.django_db
class TestPeriodRead:
    """Tests for GET /api/calculation-periods/ and /active/"""

    def test_list_periods(self, member_client, active_period):
        url = reverse('periods:period-list')
        response = member_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data) == 1
        assert response.data[0]['name'] == 'October'

    def test_active_period(self, member_client, active_period):
        url = reverse('periods:period-active')
        response = member_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert str(response.data['active_period']['id']) == str(active_period.id)

    def test_no_active_period(self, member_client, room):
        url = reverse('periods:period-active')
        response = member_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['active_period'] is None


@pytest.mark.django_db
class TestPeriodEnd:
    """Tests for POST /api/calculation-periods/{id}/end/"""

    def test_end_period(self, manager_client, manager, active_period):
        url = reverse('periods:period-end', args=[active_period.id])
        response = manager_client.post(url)

        assert response.status_code == status.HTTP_200_OK
        active_period.refresh_from_db()
        assert active_period.status == PeriodStatus.ENDED
        assert active_period.end_date is not None
        assert active_period.ended_by == manager

    def test_end_twice(self, manager_client, active_period):
        url = reverse('periods:period-end', args=[active_period.id])
        manager_client.post(url)
        response = manager_client.post(url)

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_end_unknown(self, manager_client):
        url = reverse('periods:period-end', args=[uuid.uuid4()])
        response = manager_client.post(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_member_cannot_end(self, member_client, active_period):
        url = reverse('periods:period-end', args=[active_period.id])
        response = member_client.post(url)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_other_room_manager_cannot_end(self, client_for, other_room, other_manager, active_period):
        url = reverse('periods:period-end', args=[active_period.id])
        response = client_for(other_manager).post(url)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_new_period_after_end(self, manager_client, active_period):
        manager_client.post(reverse('periods:period-end', args=[active_period.id]))
        response = manager_client.post(reverse('periods:period-list'), {'name': 'November'})

        assert response.status_code == status.HTTP_201_CREATED
