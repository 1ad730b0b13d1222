from django.contrib import admin
from .models import Bill, BillShare


class BillShareInline(admin.TabularInline):
    model = BillShare
    extra = 0
    fields = ['user', 'user_name', 'amount', 'status', 'paid_from_meal_fund', 'paid_at']
    readonly_fields = ['paid_at']


@admin.register(Bill)
class BillAdmin(admin.ModelAdmin):
    list_display = ['title', 'room', 'category', 'total_amount', 'due_date', 'get_outstanding']
    list_filter = ['category', 'due_date']
    search_fields = ['title', 'room__name']
    readonly_fields = ['id', 'created_at', 'updated_at']
    date_hierarchy = 'due_date'
    inlines = [BillShareInline]

    def get_outstanding(self, obj):
        return obj.get_outstanding_amount()
    get_outstanding.short_description = 'Outstanding'


@admin.register(BillShare)
class BillShareAdmin(admin.ModelAdmin):
    list_display = ['user_name', 'bill', 'amount', 'status', 'paid_from_meal_fund', 'paid_at']
    list_filter = ['status', 'paid_from_meal_fund']
    search_fields = ['user__email', 'user_name', 'bill__title']
    list_select_related = ['bill']
