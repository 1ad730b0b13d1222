from django.contrib import admin
from .models import Deposit, Expense, Meal, MealFinalization, MealHistory


@admin.register(Deposit)
class DepositAdmin(admin.ModelAdmin):
    list_display = ['user', 'room', 'amount', 'payment_method', 'status', 'calculation_period', 'created_at']
    list_filter = ['status', 'payment_method']
    search_fields = ['user__email', 'transaction_id']
    readonly_fields = ['id', 'created_at', 'updated_at', 'approved_at']
    list_select_related = ['user', 'room', 'calculation_period']


@admin.register(Expense)
class ExpenseAdmin(admin.ModelAdmin):
    list_display = ['items', 'user', 'room', 'amount', 'category', 'status', 'created_at']
    list_filter = ['status', 'category']
    search_fields = ['items', 'user__email']
    readonly_fields = ['id', 'bill_share', 'created_at', 'updated_at', 'approved_at']
    list_select_related = ['user', 'room']


@admin.register(Meal)
class MealAdmin(admin.ModelAdmin):
    list_display = ['user', 'room', 'date', 'breakfast', 'lunch', 'dinner', 'total_meals']
    list_filter = ['date']
    search_fields = ['user__email']
    readonly_fields = ['total_meals']
    date_hierarchy = 'date'


@admin.register(MealFinalization)
class MealFinalizationAdmin(admin.ModelAdmin):
    list_display = ['room', 'date', 'finalized_by', 'created_at']


@admin.register(MealHistory)
class MealHistoryAdmin(admin.ModelAdmin):
    list_display = ['target_user', 'date', 'changed_by', 'breakfast', 'lunch', 'dinner', 'created_at']
    search_fields = ['target_user__email']

    def has_change_permission(self, request, obj=None):
        return False
