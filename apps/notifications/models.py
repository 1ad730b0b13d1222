from django.db import models
import uuid


class NotificationType(models.TextChoices):
    BILL = 'bill', 'Bill'
    PAYMENT = 'payment', 'Payment'
    MEAL = 'meal', 'Meal'
    ROOM = 'room', 'Room'
    DEPOSIT = 'deposit', 'Deposit'
    EXPENSE = 'expense', 'Expense'


class Notification(models.Model):
    """In-app notification record. Nothing is pushed anywhere."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='notifications')
    room = models.ForeignKey(
        'rooms.Room',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='notifications',
    )
    type = models.CharField(max_length=20, choices=NotificationType.choices)
    title = models.CharField(max_length=200)
    message = models.TextField()
    link = models.CharField(max_length=200, blank=True)
    related_id = models.UUIDField(null=True, blank=True)
    read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'notifications'
        indexes = [
            models.Index(fields=['user', 'read', '-created_at']),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.title} -> {self.user.email}"
