from django.urls import path
from . import views

app_name = 'analytics'

urlpatterns = [
    # GET /api/analytics/{room_id}/?range=This%20Month|Last%206%20Months
    path('<uuid:room_id>/', views.room_dashboard, name='room-dashboard'),
]
