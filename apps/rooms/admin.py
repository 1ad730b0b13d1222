# ==========================================
# apps/rooms/admin.py
# ==========================================

from django.contrib import admin
from .models import Room, RoomMembership


class RoomMembershipInline(admin.TabularInline):
    """Inline admin for members within a room."""
    model = RoomMembership
    extra = 0
    fields = ['user', 'role', 'joined_at']
    readonly_fields = ['joined_at']


@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
    list_display = ['name', 'manager', 'get_member_count', 'created_at']
    search_fields = ['name', 'manager__email']
    readonly_fields = ['id', 'created_at', 'updated_at']
    inlines = [RoomMembershipInline]

    def get_member_count(self, obj):
        return obj.memberships.count()
    get_member_count.short_description = 'Members'


@admin.register(RoomMembership)
class RoomMembershipAdmin(admin.ModelAdmin):
    list_display = ['user', 'room', 'role', 'joined_at']
    list_filter = ['role']
    search_fields = ['user__email', 'room__name']
    list_select_related = ['user', 'room']
