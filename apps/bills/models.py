from django.db import models
from django.core.validators import MinValueValidator
from decimal import Decimal
import uuid


class BillCategory(models.TextChoices):
    RENT = 'Rent', 'Rent'
    ELECTRICITY = 'Electricity', 'Electricity'
    WATER = 'Water', 'Water'
    GAS = 'Gas', 'Gas'
    WIFI = 'Wi-Fi', 'Wi-Fi'
    MAID = 'Maid', 'Maid'
    OTHERS = 'Others', 'Others'


class ShareStatus(models.TextChoices):
    UNPAID = 'Unpaid', 'Unpaid'
    PENDING_APPROVAL = 'Pending Approval', 'Pending Approval'
    PAID = 'Paid', 'Paid'
    OVERDUE = 'Overdue', 'Overdue'


class Bill(models.Model):
    """A recurring household bill split among room members."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    room = models.ForeignKey('rooms.Room', on_delete=models.CASCADE, related_name='bills')

    title = models.CharField(max_length=200)
    category = models.CharField(max_length=20, choices=BillCategory.choices)
    total_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    due_date = models.DateField()
    description = models.TextField(blank=True)

    created_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        related_name='bills_created'
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'bills'
        indexes = [
            models.Index(fields=['room', '-due_date']),
            models.Index(fields=['room', 'category', '-due_date']),
        ]
        ordering = ['-due_date', '-created_at']

    def __str__(self):
        return f"{self.title} ({self.category}) - {self.total_amount}"

    def get_outstanding_amount(self):
        """Sum of shares not yet Paid."""
        from django.db.models import Sum

        outstanding = self.shares.exclude(
            status=ShareStatus.PAID
        ).aggregate(total=Sum('amount'))['total']
        return outstanding or Decimal('0.00')


class BillShare(models.Model):
    """One member's portion of a bill and where its payment stands."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    bill = models.ForeignKey(Bill, on_delete=models.CASCADE, related_name='shares')
    user = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='bill_shares')
    user_name = models.CharField(max_length=100)

    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    status = models.CharField(max_length=20, choices=ShareStatus.choices, default=ShareStatus.UNPAID)
    paid_from_meal_fund = models.BooleanField(default=False)
    paid_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'bill_shares'
        unique_together = [['bill', 'user']]
        indexes = [
            models.Index(fields=['user', 'status']),
            models.Index(fields=['bill', 'status']),
        ]
        ordering = ['created_at']

    def __str__(self):
        return f"{self.user_name} owes {self.amount} for {self.bill.title} ({self.status})"

    def save(self, *args, **kwargs):
        if not self.user_name:
            self.user_name = self.user.get_display_name()
        super().save(*args, **kwargs)
