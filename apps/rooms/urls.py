from django.urls import path
from . import views

app_name = 'rooms'

urlpatterns = [
    # POST /api/rooms/                      - Create room
    # GET  /api/rooms/{id}/                 - Room details
    # GET  /api/rooms/{id}/members/         - List members
    # POST /api/rooms/{id}/members/         - Add member (manager)
    path('', views.room_create, name='room-create'),
    path('<uuid:room_id>/', views.room_detail, name='room-detail'),
    path('<uuid:room_id>/members/', views.room_members, name='room-members'),
]
