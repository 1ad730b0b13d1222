from django.urls import path
from . import views

app_name = 'periods'

urlpatterns = [
    path('', views.period_list_create, name='period-list'),
    path('active/', views.period_active, name='period-active'),
    path('<uuid:period_id>/end/', views.period_end, name='period-end'),
]
