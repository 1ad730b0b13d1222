import pytest
from decimal import Decimal
from datetime import date, timedelta
from apps.accounts.models import User
from apps.rooms.models import RoomMembership, RoomRole
from apps.bills.services import BillSplitService


@pytest.fixture
def third_member(db, room):
    """Seat a third member so splits leave a remainder."""
    user = User.objects.create_user(
        email='third@example.com',
        password='TestPass123!',
        display_name='Third Member',
    )
    RoomMembership.objects.create(user=user, room=room, role=RoomRole.MEMBER)
    return user


@pytest.fixture
def rent_bill(db, room, manager, member):
    """1200 Rent bill split equally between manager and member."""
    return BillSplitService.create_bill(
        room=room,
        created_by=manager,
        title='October Rent',
        category='Rent',
        total_amount=Decimal('1200.00'),
        due_date=date.today() + timedelta(days=10),
    )


@pytest.fixture
def past_due_bill(db, room, manager, member):
    """Electricity bill that was due last week."""
    return BillSplitService.create_bill(
        room=room,
        created_by=manager,
        title='September Electricity',
        category='Electricity',
        total_amount=Decimal('800.00'),
        due_date=date.today() - timedelta(days=7),
    )
