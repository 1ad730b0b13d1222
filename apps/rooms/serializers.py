from rest_framework import serializers
from .models import Room, RoomMembership
from apps.accounts.models import User


class UserMinimalSerializer(serializers.ModelSerializer):
    """Minimal user info for nested serialization."""

    display_name = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'email', 'display_name']
        read_only_fields = fields

    def get_display_name(self, obj):
        return obj.get_display_name()


class RoomMembershipSerializer(serializers.ModelSerializer):
    """Serializer for room memberships."""

    user = UserMinimalSerializer(read_only=True)

    class Meta:
        model = RoomMembership
        fields = ['id', 'user', 'room', 'role', 'joined_at']
        read_only_fields = fields


class RoomSerializer(serializers.ModelSerializer):
    """Main serializer for rooms."""

    manager = UserMinimalSerializer(read_only=True)
    member_count = serializers.SerializerMethodField()

    class Meta:
        model = Room
        fields = ['id', 'name', 'manager', 'member_count', 'created_at', 'updated_at']
        read_only_fields = ['id', 'manager', 'created_at', 'updated_at']

    def get_member_count(self, obj):
        return obj.memberships.count()


class RoomCreateSerializer(serializers.Serializer):
    """Validate input for creating a room."""

    name = serializers.CharField(max_length=200)


class AddMemberSerializer(serializers.Serializer):
    """Validate input for seating an existing user in a room."""

    user_id = serializers.UUIDField()
