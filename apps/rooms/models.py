# ==========================================
# apps/rooms/models.py
# ==========================================

from django.db import models
import uuid


class RoomRole(models.TextChoices):
    MANAGER = 'manager', 'Manager'
    MEMBER = 'member', 'Member'


class Room(models.Model):
    """A shared household ("khata") that owns every ledger row."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    manager = models.ForeignKey('accounts.User', on_delete=models.PROTECT, related_name='managed_rooms')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'rooms'
        indexes = [
            models.Index(fields=['manager', 'created_at']),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return self.name

    def has_member(self, user):
        return self.memberships.filter(user=user).exists()

    def is_manager(self, user):
        return self.manager_id == getattr(user, 'id', None)

    def get_members(self):
        """Current members in join order."""
        from apps.accounts.models import User
        return User.objects.filter(room_membership__room=self).order_by('room_membership__joined_at')


class RoomMembership(models.Model):
    """A user's seat in a room. A user lives in at most one room."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField('accounts.User', on_delete=models.CASCADE, related_name='room_membership')
    room = models.ForeignKey(Room, on_delete=models.CASCADE, related_name='memberships')
    role = models.CharField(max_length=20, choices=RoomRole.choices, default=RoomRole.MEMBER)
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'room_memberships'
        indexes = [
            models.Index(fields=['room', 'role']),
        ]
        ordering = ['joined_at']

    def __str__(self):
        return f"{self.user.get_display_name()} in {self.room.name} ({self.role})"

    def save(self, *args, **kwargs):
        if self.room.manager_id == self.user_id:
            self.role = RoomRole.MANAGER
        super().save(*args, **kwargs)
