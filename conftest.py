import pytest
from decimal import Decimal
from django.core.cache import cache
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.rooms.models import Room, RoomMembership, RoomRole
from apps.periods.models import CalculationPeriod, PeriodStatus
from apps.ledger.models import Deposit, Expense, ApprovalStatus, PaymentMethod


def authenticated_client(user):
    """Return a fresh API client carrying a JWT for user."""
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture(autouse=True)
def clear_cache():
    """Dashboard snapshots must not leak between tests."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


# =============================================================================
# Users
# =============================================================================

@pytest.fixture
def manager(db):
    """Create the room manager."""
    return User.objects.create_user(
        email='manager@example.com',
        password='TestPass123!',
        display_name='Rahim Manager',
    )


@pytest.fixture
def member(db):
    """Create a regular room member."""
    return User.objects.create_user(
        email='member@example.com',
        password='TestPass123!',
        display_name='Karim Member',
    )


@pytest.fixture
def outsider(db):
    """Create a user who sits in no room."""
    return User.objects.create_user(
        email='outsider@example.com',
        password='TestPass123!',
        display_name='Outsider',
    )


@pytest.fixture
def other_manager(db):
    """Create the manager of a second room."""
    return User.objects.create_user(
        email='other_manager@example.com',
        password='TestPass123!',
        display_name='Other Manager',
    )


@pytest.fixture
def manager_client(manager, room):
    return authenticated_client(manager)


@pytest.fixture
def member_client(member, room):
    return authenticated_client(member)


@pytest.fixture
def outsider_client(outsider):
    return authenticated_client(outsider)


# =============================================================================
# Rooms and periods
# =============================================================================

@pytest.fixture
def room(db, manager, member):
    """Create a room with the manager and one member seated."""
    room = Room.objects.create(name='Dhanmondi Flat', manager=manager)
    RoomMembership.objects.create(user=manager, room=room, role=RoomRole.MANAGER)
    RoomMembership.objects.create(user=member, room=room, role=RoomRole.MEMBER)
    return room


@pytest.fixture
def other_room(db, other_manager):
    """Create a second room for cross-room checks."""
    room = Room.objects.create(name='Mirpur Flat', manager=other_manager)
    RoomMembership.objects.create(user=other_manager, room=room, role=RoomRole.MANAGER)
    return room


@pytest.fixture
def active_period(db, room, manager):
    """Create the Active calculation period of room."""
    return CalculationPeriod.objects.create(
        room=room,
        name='October',
        status=PeriodStatus.ACTIVE,
        started_by=manager,
    )


# =============================================================================
# Ledger rows
# =============================================================================

@pytest.fixture
def make_deposit(db):
    """Factory for deposits; approved by default."""
    def _make(room, user, amount, period=None, status=ApprovalStatus.APPROVED, **extra):
        return Deposit.objects.create(
            room=room,
            user=user,
            calculation_period=period,
            amount=Decimal(str(amount)),
            payment_method=extra.pop('payment_method', PaymentMethod.BKASH),
            status=status,
            **extra,
        )
    return _make


@pytest.fixture
def make_expense(db):
    """Factory for expenses; approved Shopping by default."""
    def _make(room, user, amount, period=None, status=ApprovalStatus.APPROVED, **extra):
        return Expense.objects.create(
            room=room,
            user=user,
            calculation_period=period,
            amount=Decimal(str(amount)),
            items=extra.pop('items', 'Rice, lentils'),
            status=status,
            **extra,
        )
    return _make


@pytest.fixture
def client_for(db):
    """Factory fixture: authenticated client for any user."""
    return authenticated_client
