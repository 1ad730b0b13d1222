from django.urls import path, include
from rest_framework.routers import SimpleRouter
from . import views

app_name = 'notifications'

router = SimpleRouter()
router.register(r'', views.NotificationViewSet, basename='notification')

urlpatterns = [
    # GET /api/notifications/                  - List own notifications
    # GET /api/notifications/{id}/             - Get notification
    # PUT /api/notifications/{id}/read/        - Mark as read
    # PUT /api/notifications/mark-all-read/    - Mark all as read
    # GET /api/notifications/unread-count/     - Unread count
    path('', include(router.urls)),
]
