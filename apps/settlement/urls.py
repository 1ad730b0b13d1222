from django.urls import path
from . import views

app_name = 'settlement'

urlpatterns = [
    # GET  /api/shopping/{room_id}/balances/?calculation_period_id=...
    # GET  /api/shopping/{room_id}/summary/?calculation_period_id=...&user_id=...
    # POST /api/shopping/{room_id}/adjust/   - Manager fund adjustment
    path('<uuid:room_id>/balances/', views.room_balances, name='room-balances'),
    path('<uuid:room_id>/summary/', views.fund_summary, name='fund-summary'),
    path('<uuid:room_id>/adjust/', views.fund_adjust, name='fund-adjust'),
]
