from decimal import Decimal
from rest_framework import serializers

from apps.ledger.services import ADJUSTMENT_TYPES


# =============================================================================
# Input serializers
# =============================================================================

class BalancesQuerySerializer(serializers.Serializer):
    calculation_period_id = serializers.UUIDField(required=False, allow_null=True)


class SummaryQuerySerializer(BalancesQuerySerializer):
    """user_id other than the caller's own is for the manager only."""

    user_id = serializers.UUIDField(required=False)


class FundAdjustmentSerializer(serializers.Serializer):
    user_id = serializers.UUIDField()
    type = serializers.ChoiceField(choices=ADJUSTMENT_TYPES)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')


# =============================================================================
# Response serializers (API documentation)
# =============================================================================

class PeriodRefSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    name = serializers.CharField()
    status = serializers.CharField()


class MemberBalanceSerializer(serializers.Serializer):
    user_id = serializers.UUIDField()
    name = serializers.CharField()
    email = serializers.EmailField()
    total_deposits = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_meals = serializers.IntegerField()
    meal_cost = serializers.DecimalField(
        max_digits=14,
        decimal_places=2,
        help_text="total_meals times the published rate, rounded half up to 2 places",
    )
    total_bill_payments = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_adjustments = serializers.DecimalField(
        max_digits=14,
        decimal_places=2,
        help_text="Manager deductions from this member's fund",
    )
    balance = serializers.DecimalField(max_digits=14, decimal_places=2)


class BalanceSheetSerializer(serializers.Serializer):
    calculation_period = PeriodRefSerializer(allow_null=True)
    rate = serializers.DecimalField(
        max_digits=14,
        decimal_places=4,
        help_text="total_shopping / total_meals rounded half up to 4 places; meal costs use this value",
    )
    total_shopping = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_meals = serializers.IntegerField()
    balances = MemberBalanceSerializer(many=True)


class FundStatusSerializer(serializers.Serializer):
    total_deposits = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_shopping = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_expenses = serializers.DecimalField(max_digits=14, decimal_places=2)
    balance = serializers.DecimalField(
        max_digits=14,
        decimal_places=2,
        help_text="Approved deposits minus every approved expense of the period",
    )
    rate = serializers.DecimalField(max_digits=14, decimal_places=4)


class FundSummarySerializer(serializers.Serializer):
    calculation_period = PeriodRefSerializer(allow_null=True)
    fund_status = FundStatusSerializer()
    member_summary = MemberBalanceSerializer()


class ErrorSerializer(serializers.Serializer):
    error = serializers.CharField()
