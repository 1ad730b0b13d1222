from decimal import Decimal
from rest_framework import serializers

from apps.rooms.serializers import UserMinimalSerializer
from .models import Bill, BillShare, BillCategory, ShareStatus


class BillShareSerializer(serializers.ModelSerializer):
    """Serializer for one member's share."""

    user_id = serializers.UUIDField(source='user.id', read_only=True)

    class Meta:
        model = BillShare
        fields = [
            'id', 'user_id', 'user_name', 'amount', 'status',
            'paid_from_meal_fund', 'paid_at', 'updated_at',
        ]
        read_only_fields = fields


class BillSerializer(serializers.ModelSerializer):
    """Main serializer for bills, shares included."""

    created_by = UserMinimalSerializer(read_only=True)
    shares = BillShareSerializer(many=True, read_only=True)

    class Meta:
        model = Bill
        fields = [
            'id', 'room', 'title', 'category', 'total_amount', 'due_date',
            'description', 'created_by', 'shares', 'created_at',
        ]
        read_only_fields = fields


class BillShareInputSerializer(serializers.Serializer):
    user_id = serializers.UUIDField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))


class BillCreateSerializer(serializers.Serializer):
    """
    Validate input for creating a bill.

    Omit ``shares`` to split the total equally among every room member.
    """

    title = serializers.CharField(max_length=200, trim_whitespace=True)
    category = serializers.ChoiceField(choices=BillCategory.choices)
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))
    due_date = serializers.DateField()
    description = serializers.CharField(required=False, allow_blank=True, default='')
    shares = BillShareInputSerializer(many=True, required=False)
    auto_deduct_from_meal_fund = serializers.BooleanField(required=False, default=False)

    def validate_shares(self, value):
        user_ids = [entry['user_id'] for entry in value]
        if len(user_ids) != len(set(user_ids)):
            raise serializers.ValidationError("Each member can only have one share.")
        return value


class ShareStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=ShareStatus.choices)
    paid_from_meal_fund = serializers.BooleanField(required=False)


class BillStatsSerializer(serializers.Serializer):
    """The caller's own bill standing in a room."""

    total_unpaid = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_paid = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_overdue = serializers.DecimalField(max_digits=12, decimal_places=2)
    pending_approvals = serializers.IntegerField()
