from django.urls import path
from . import views

app_name = 'ledger'

urlpatterns = [
    # Deposits
    # GET|POST /api/deposits/{room_id}/                   - List / submit
    # PUT      /api/deposits/{room_id}/{id}/approve/      - Approve (manager)
    # PUT      /api/deposits/{room_id}/{id}/reject/       - Reject (manager)
    path('deposits/<uuid:room_id>/', views.deposit_list_create, name='deposit-list'),
    path('deposits/<uuid:room_id>/<uuid:deposit_id>/approve/', views.deposit_approve, name='deposit-approve'),
    path('deposits/<uuid:room_id>/<uuid:deposit_id>/reject/', views.deposit_reject, name='deposit-reject'),

    # Expenses
    path('expenses/<uuid:room_id>/', views.expense_list_create, name='expense-list'),
    path('expenses/<uuid:room_id>/<uuid:expense_id>/approve/', views.expense_approve, name='expense-approve'),
    path('expenses/<uuid:room_id>/<uuid:expense_id>/reject/', views.expense_reject, name='expense-reject'),

    # Meals
    # GET|POST /api/meals/{room_id}/                       - List / upsert
    # POST     /api/meals/{room_id}/finalize/              - Finalize a date (manager)
    # GET      /api/meals/{room_id}/finalization/{date}/   - Finalization status
    # GET      /api/meals/{room_id}/history/               - Change log
    # GET      /api/meals/{room_id}/summary/               - Per-member totals
    path('meals/<uuid:room_id>/', views.meal_list_upsert, name='meal-list'),
    path('meals/<uuid:room_id>/finalize/', views.meal_finalize, name='meal-finalize'),
    path('meals/<uuid:room_id>/finalization/<str:date>/', views.meal_finalization_status, name='meal-finalization'),
    path('meals/<uuid:room_id>/history/', views.meal_history, name='meal-history'),
    path('meals/<uuid:room_id>/summary/', views.meal_summary_view, name='meal-summary'),
]
