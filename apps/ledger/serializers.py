from decimal import Decimal
from rest_framework import serializers

from apps.rooms.serializers import UserMinimalSerializer
from .models import (
    Deposit,
    Expense,
    Meal,
    MealFinalization,
    MealHistory,
    PaymentMethod,
)


# =============================================================================
# Deposits
# =============================================================================

class DepositSerializer(serializers.ModelSerializer):
    user = UserMinimalSerializer(read_only=True)
    approved_by = UserMinimalSerializer(read_only=True)

    class Meta:
        model = Deposit
        fields = [
            'id', 'room', 'user', 'calculation_period', 'amount', 'payment_method',
            'transaction_id', 'notes', 'status', 'approved_by', 'approved_at',
            'rejection_reason', 'created_at',
        ]
        read_only_fields = fields


class DepositCreateSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))
    # Manager Adjustment rows are written only by the fund adjustment endpoint
    payment_method = serializers.ChoiceField(choices=[
        choice for choice in PaymentMethod.choices
        if choice[0] != PaymentMethod.MANAGER_ADJUSTMENT
    ])
    transaction_id = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class RejectSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')


# =============================================================================
# Expenses
# =============================================================================

class ExpenseSerializer(serializers.ModelSerializer):
    user = UserMinimalSerializer(read_only=True)
    approved_by = UserMinimalSerializer(read_only=True)

    class Meta:
        model = Expense
        fields = [
            'id', 'room', 'user', 'calculation_period', 'amount', 'items', 'notes',
            'category', 'bill_share', 'status', 'approved_by', 'approved_at',
            'rejection_reason', 'created_at',
        ]
        read_only_fields = fields


class ExpenseCreateSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.00'))
    items = serializers.CharField(max_length=500)
    notes = serializers.CharField(required=False, allow_blank=True, default='')


# =============================================================================
# Meals
# =============================================================================

class MealSerializer(serializers.ModelSerializer):
    user = UserMinimalSerializer(read_only=True)

    class Meta:
        model = Meal
        fields = [
            'id', 'room', 'user', 'calculation_period', 'date',
            'breakfast', 'lunch', 'dinner', 'total_meals', 'updated_at',
        ]
        read_only_fields = fields


class MealUpsertSerializer(serializers.Serializer):
    """Counts that are omitted keep their stored value."""

    date = serializers.DateField()
    breakfast = serializers.IntegerField(min_value=0, max_value=2, required=False)
    lunch = serializers.IntegerField(min_value=0, max_value=2, required=False)
    dinner = serializers.IntegerField(min_value=0, max_value=2, required=False)
    user_id = serializers.UUIDField(required=False, allow_null=True)


class MealListQuerySerializer(serializers.Serializer):
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)

    def validate(self, attrs):
        start, end = attrs.get('start_date'), attrs.get('end_date')
        if start and end and start > end:
            raise serializers.ValidationError("start_date must be on or before end_date")
        return attrs


class MealFinalizeSerializer(serializers.Serializer):
    date = serializers.DateField()


class MealHistoryQuerySerializer(serializers.Serializer):
    user_id = serializers.UUIDField(required=False)
    date = serializers.DateField(required=False)


class MealSummaryQuerySerializer(serializers.Serializer):
    calculation_period_id = serializers.UUIDField(required=False, allow_null=True)


class MealFinalizationSerializer(serializers.ModelSerializer):
    finalized_by = UserMinimalSerializer(read_only=True)

    class Meta:
        model = MealFinalization
        fields = ['id', 'room', 'date', 'finalized_by', 'created_at']
        read_only_fields = fields


class MealHistorySerializer(serializers.ModelSerializer):
    target_user = UserMinimalSerializer(read_only=True)
    changed_by = UserMinimalSerializer(read_only=True)

    class Meta:
        model = MealHistory
        fields = [
            'id', 'target_user', 'changed_by', 'date',
            'breakfast', 'lunch', 'dinner', 'created_at',
        ]
        read_only_fields = fields
