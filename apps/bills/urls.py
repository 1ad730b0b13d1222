from django.urls import path, include
from rest_framework.routers import SimpleRouter
from . import views

app_name = 'bills'

router = SimpleRouter()
router.register(r'', views.BillViewSet, basename='bill')

urlpatterns = [
    # Bill ViewSet routes
    # POST   /api/bills/                          - Create bill (manager)
    # GET    /api/bills/{id}/                     - Get bill with shares
    # DELETE /api/bills/{id}/                     - Delete bill (manager)
    # PUT    /api/bills/{id}/share/{user_id}/     - Change share status

    # Room endpoints
    path('room/<uuid:room_id>/', views.room_bills, name='room-bills'),
    path('room/<uuid:room_id>/stats/', views.room_bill_stats, name='room-bill-stats'),

    path('', include(router.urls)),
]
