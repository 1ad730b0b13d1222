import pytest
from django.urls import reverse
from rest_framework import status
from apps.notifications.models import Notification, NotificationType
from apps.notifications.services import notify_user, notify_room_manager


@pytest.fixture
def notifications(db, room, member, manager):
    """Two unread and one read notification for member, one for manager."""
    created = [
        notify_user(user=member, room=room, type=NotificationType.BILL, title='New Bill Added', message='Rent'),
        notify_user(user=member, room=room, type=NotificationType.DEPOSIT, title='Deposit Approved', message='500'),
        notify_user(user=member, room=room, type=NotificationType.MEAL, title='Old', message='Read already'),
        notify_user(user=manager, room=room, type=NotificationType.DEPOSIT, title='New Deposit Pending', message='x'),
    ]
    created[2].read = True
    created[2].save()
    return created


@pytest.mark.django_db
class TestNotificationList:
    """Tests for GET /api/notifications/"""

    def test_only_own_notifications(self, member_client, notifications):
        url = reverse('notifications:notification-list')
        response = member_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 3

    def test_unread_filter(self, member_client, notifications):
        url = reverse('notifications:notification-list')
        response = member_client.get(url, {'unread': 'true'})

        assert response.data['count'] == 2

    def test_cannot_read_others(self, member_client, notifications):
        url = reverse('notifications:notification-detail', args=[notifications[3].id])
        response = member_client.get(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_unauthenticated(self, api_client):
        response = api_client.get(reverse('notifications:notification-list'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestNotificationActions:

    def test_mark_read(self, member_client, notifications):
        url = reverse('notifications:notification-read', args=[notifications[0].id])
        response = member_client.put(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['read'] is True

    def test_mark_all_read(self, member_client, member, notifications):
        url = reverse('notifications:notification-mark-all-read')
        response = member_client.put(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['updated'] == 2
        assert not Notification.objects.filter(user=member, read=False).exists()

    def test_unread_count(self, member_client, notifications):
        url = reverse('notifications:notification-unread-count')
        response = member_client.get(url)

        assert response.data['count'] == 2


@pytest.mark.django_db
class TestNotifyServices:

    def test_notify_room_manager(self, room, manager):
        note = notify_room_manager(room=room, type=NotificationType.ROOM, title='Hi', message='Hello')

        assert note.user == manager
        assert note.read is False

    def test_notify_swallows_errors(self, room, member, monkeypatch):
        def broken(**kwargs):
            raise RuntimeError('db down')

        monkeypatch.setattr(Notification.objects, 'create', broken)

        assert notify_user(user=member, room=room, type=NotificationType.BILL, title='x', message='y') is None
