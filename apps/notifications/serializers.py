from rest_framework import serializers
from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = [
            'id', 'room', 'type', 'title', 'message', 'link',
            'related_id', 'read', 'created_at',
        ]
        read_only_fields = fields
