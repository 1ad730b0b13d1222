from django.shortcuts import get_object_or_404
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema, OpenApiParameter
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.rooms.models import Room
from apps.rooms.permissions import IsRoomMember

from .analytics import AnalyticsQueries, VALID_RANGES
from .exceptions import AnalyticsServiceError
from .serializers import RangeQuerySerializer, DashboardResponseSerializer, ErrorSerializer


@extend_schema(
    parameters=[
        OpenApiParameter(
            'range',
            OpenApiTypes.STR,
            enum=list(VALID_RANGES),
            description='Dashboard window (default: This Month)',
        ),
    ],
    responses={
        200: DashboardResponseSerializer,
        400: ErrorSerializer,
        403: ErrorSerializer,
    },
    description="Room dashboard: totals, fund health, bill categories and a six-month trend.",
    tags=['analytics'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsRoomMember])
def room_dashboard(request, room_id):
    """Room dashboard - thin HTTP handler."""
    room = get_object_or_404(Room, id=room_id)

    query_serializer = RangeQuerySerializer(data=request.query_params)
    query_serializer.is_valid(raise_exception=True)

    try:
        data = AnalyticsQueries.cached_room_dashboard(
            room,
            query_serializer.validated_data['range'],
        )
    except AnalyticsServiceError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(data)
