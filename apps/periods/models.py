from django.db import models
from django.db.models import Q
from django.utils import timezone
import uuid


class PeriodStatus(models.TextChoices):
    ACTIVE = 'Active', 'Active'
    ENDED = 'Ended', 'Ended'


class CalculationPeriod(models.Model):
    """
    Accounting window that scopes meal rate and balance aggregation.

    A room has at most one Active period at a time. Deposits, expenses and
    meals recorded while no period is Active carry a NULL period and are
    adopted by the next period that starts.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    room = models.ForeignKey('rooms.Room', on_delete=models.CASCADE, related_name='calculation_periods')
    name = models.CharField(max_length=50)

    start_date = models.DateTimeField(default=timezone.now)
    end_date = models.DateTimeField(null=True, blank=True)
    status = models.CharField(max_length=10, choices=PeriodStatus.choices, default=PeriodStatus.ACTIVE)

    started_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        related_name='started_periods',
    )
    ended_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='ended_periods',
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'calculation_periods'
        constraints = [
            models.UniqueConstraint(
                fields=['room'],
                condition=Q(status='Active'),
                name='unique_active_period_per_room',
            ),
        ]
        indexes = [
            models.Index(fields=['room', 'status']),
            models.Index(fields=['room', '-start_date']),
        ]
        ordering = ['-start_date']

    def __str__(self):
        return f"{self.name} ({self.status})"

    @property
    def is_active(self):
        return self.status == PeriodStatus.ACTIVE
