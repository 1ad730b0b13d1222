from rest_framework import serializers

from .analytics import VALID_RANGES, THIS_MONTH


# =============================================================================
# Input serializers
# =============================================================================

class RangeQuerySerializer(serializers.Serializer):
    """Validate the dashboard ``range`` query parameter."""

    range = serializers.ChoiceField(choices=VALID_RANGES, required=False, default=THIS_MONTH)


# =============================================================================
# Response serializers (API documentation)
# =============================================================================

class CategoryBucketSerializer(serializers.Serializer):
    label = serializers.CharField()
    value = serializers.DecimalField(max_digits=14, decimal_places=2)
    color = serializers.CharField()


class TrendEntrySerializer(serializers.Serializer):
    """
    One month of the trend. Besides the fixed fields, every bill category
    seen in the six months appears as an extra key.
    """

    label = serializers.CharField()
    year = serializers.IntegerField()
    month = serializers.IntegerField()
    Deposits = serializers.DecimalField(max_digits=14, decimal_places=2)
    Shopping = serializers.DecimalField(max_digits=14, decimal_places=2)
    all_bills = serializers.DecimalField(max_digits=14, decimal_places=2, source='All Bills')


class DashboardStatsSerializer(serializers.Serializer):
    active_members = serializers.IntegerField()
    total_bills = serializers.IntegerField()


class DashboardResponseSerializer(serializers.Serializer):
    range = serializers.CharField()
    start_date = serializers.DateField()
    end_date = serializers.DateField()
    total_shopping_expenses = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_bill_amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_deposits = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_meals_count = serializers.IntegerField()
    avg_meal_cost = serializers.DecimalField(max_digits=14, decimal_places=2)
    fund_health = serializers.DecimalField(max_digits=14, decimal_places=2)
    bill_category_data = CategoryBucketSerializer(many=True)
    trend_data = TrendEntrySerializer(many=True)
    stats = DashboardStatsSerializer()


class ErrorSerializer(serializers.Serializer):
    error = serializers.CharField()
