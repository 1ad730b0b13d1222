from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from .models import Notification
from .serializers import NotificationSerializer
from . import services


class NotificationPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class NotificationViewSet(viewsets.ReadOnlyModelViewSet):
    """
    The caller's own notifications, newest first.

    list: Paginated notifications (filter with ?unread=true)
    retrieve: One notification
    """

    serializer_class = NotificationSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = NotificationPagination

    def get_queryset(self):
        queryset = Notification.objects.filter(user=self.request.user)
        if self.request.query_params.get('unread') in ('1', 'true', 'True'):
            queryset = queryset.filter(read=False)
        return queryset.order_by('-created_at')

    @extend_schema(request=None, responses={200: NotificationSerializer})
    @action(detail=True, methods=['put'])
    def read(self, request, pk=None):
        """Mark one notification as read."""
        notification = services.mark_read(notification=self.get_object())
        return Response(NotificationSerializer(notification).data)

    @extend_schema(request=None)
    @action(detail=False, methods=['put'], url_path='mark-all-read')
    def mark_all_read(self, request):
        """Mark all of the caller's notifications as read."""
        updated = services.mark_all_read(user=request.user)
        return Response({'updated': updated})

    @action(detail=False, methods=['get'], url_path='unread-count')
    def unread_count(self, request):
        count = Notification.objects.filter(user=request.user, read=False).count()
        return Response({'count': count})
