from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator
from decimal import Decimal
import uuid


class ApprovalStatus(models.TextChoices):
    PENDING = 'Pending', 'Pending'
    APPROVED = 'Approved', 'Approved'
    REJECTED = 'Rejected', 'Rejected'


class PaymentMethod(models.TextChoices):
    BKASH = 'bKash', 'bKash'
    NAGAD = 'Nagad', 'Nagad'
    ROCKET = 'Rocket', 'Rocket'
    CASH = 'Cash', 'Cash'
    BANK_TRANSFER = 'Bank Transfer', 'Bank Transfer'
    MANAGER_ADJUSTMENT = 'Manager Adjustment', 'Manager Adjustment'


class ExpenseCategory(models.TextChoices):
    SHOPPING = 'Shopping', 'Shopping'
    BILL_PAYMENT = 'BillPayment', 'Bill Payment'
    ADJUSTMENT = 'Adjustment', 'Adjustment'


class Deposit(models.Model):
    """Money a member paid into the room's meal fund."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    room = models.ForeignKey('rooms.Room', on_delete=models.CASCADE, related_name='deposits')
    user = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='deposits')
    calculation_period = models.ForeignKey(
        'periods.CalculationPeriod',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='deposits'
    )

    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    payment_method = models.CharField(max_length=30, choices=PaymentMethod.choices)
    transaction_id = models.CharField(max_length=100, blank=True)
    notes = models.TextField(blank=True)

    # Review
    status = models.CharField(max_length=10, choices=ApprovalStatus.choices, default=ApprovalStatus.PENDING)
    approved_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='reviewed_deposits'
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.CharField(max_length=500, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'deposits'
        indexes = [
            models.Index(fields=['room', 'status']),
            models.Index(fields=['room', 'user']),
            models.Index(fields=['calculation_period', 'status']),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.user.get_display_name()} deposited {self.amount} ({self.status})"


class Expense(models.Model):
    """
    Money spent on behalf of the room.

    Shopping expenses feed the meal rate. BillPayment expenses are recorded
    when a bill share is settled from the meal fund and are charged to that
    member only. A NULL category is treated as Shopping.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    room = models.ForeignKey('rooms.Room', on_delete=models.CASCADE, related_name='expenses')
    user = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='expenses')
    calculation_period = models.ForeignKey(
        'periods.CalculationPeriod',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='expenses'
    )

    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    items = models.CharField(max_length=500)
    notes = models.TextField(blank=True)
    category = models.CharField(
        max_length=20,
        choices=ExpenseCategory.choices,
        null=True,
        blank=True,
        default=ExpenseCategory.SHOPPING
    )

    # The bill share settled by this expense; at most one expense per share
    bill_share = models.OneToOneField(
        'bills.BillShare',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='fund_expense'
    )

    # Review
    status = models.CharField(max_length=10, choices=ApprovalStatus.choices, default=ApprovalStatus.PENDING)
    approved_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='reviewed_expenses'
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.CharField(max_length=500, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'expenses'
        indexes = [
            models.Index(fields=['room', 'status']),
            models.Index(fields=['room', 'user']),
            models.Index(fields=['calculation_period', 'status', 'category']),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.items} - {self.amount} ({self.status})"


class Meal(models.Model):
    """One member's meal counts for one day. Always live, never reviewed."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    room = models.ForeignKey('rooms.Room', on_delete=models.CASCADE, related_name='meals')
    user = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='meals')
    calculation_period = models.ForeignKey(
        'periods.CalculationPeriod',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='meals'
    )
    date = models.DateField()

    breakfast = models.PositiveSmallIntegerField(default=0, validators=[MaxValueValidator(2)])
    lunch = models.PositiveSmallIntegerField(default=0, validators=[MaxValueValidator(2)])
    dinner = models.PositiveSmallIntegerField(default=0, validators=[MaxValueValidator(2)])
    total_meals = models.PositiveSmallIntegerField(default=0, editable=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'meals'
        unique_together = [['room', 'user', 'date']]
        indexes = [
            models.Index(fields=['room', 'date']),
            models.Index(fields=['calculation_period', 'user']),
        ]
        ordering = ['-date']

    def __str__(self):
        return f"{self.user.get_display_name()} {self.date}: {self.total_meals}"

    def save(self, *args, **kwargs):
        self.total_meals = (self.breakfast or 0) + (self.lunch or 0) + (self.dinner or 0)
        update_fields = kwargs.get('update_fields')
        if update_fields is not None and 'total_meals' not in update_fields:
            kwargs['update_fields'] = list(update_fields) + ['total_meals']
        super().save(*args, **kwargs)


class MealFinalization(models.Model):
    """Marks a date as closed; afterwards only the manager edits its meals."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    room = models.ForeignKey('rooms.Room', on_delete=models.CASCADE, related_name='meal_finalizations')
    date = models.DateField()
    finalized_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        related_name='meal_finalizations'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'meal_finalizations'
        unique_together = [['room', 'date']]
        ordering = ['-date']

    def __str__(self):
        return f"{self.room.name} {self.date} finalized"


class MealHistory(models.Model):
    """Append-only audit row written on every meal change."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    room = models.ForeignKey('rooms.Room', on_delete=models.CASCADE, related_name='meal_history')
    target_user = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='meal_history')
    changed_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        related_name='meal_changes'
    )
    date = models.DateField()
    breakfast = models.PositiveSmallIntegerField(default=0)
    lunch = models.PositiveSmallIntegerField(default=0)
    dinner = models.PositiveSmallIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'meal_history'
        indexes = [
            models.Index(fields=['room', 'target_user', 'date']),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.target_user.get_display_name()} {self.date} by {self.changed_by}"
