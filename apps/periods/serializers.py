from rest_framework import serializers

from apps.rooms.serializers import UserMinimalSerializer
from .models import CalculationPeriod


class CalculationPeriodSerializer(serializers.ModelSerializer):
    started_by = UserMinimalSerializer(read_only=True)
    ended_by = UserMinimalSerializer(read_only=True)

    class Meta:
        model = CalculationPeriod
        fields = [
            'id', 'room', 'name', 'start_date', 'end_date', 'status',
            'started_by', 'ended_by', 'created_at',
        ]
        read_only_fields = fields


class PeriodStartSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=50, trim_whitespace=True)
