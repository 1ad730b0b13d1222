from django.shortcuts import get_object_or_404
from drf_spectacular.utils import extend_schema, OpenApiResponse
from rest_framework import viewsets, mixins, status
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.rooms.models import Room
from apps.rooms.permissions import IsRoomMember

from .exceptions import NoParticipantsError, InvalidSplitError
from .models import Bill
from .permissions import IsBillRoomMember, IsBillRoomManager
from .serializers import (
    BillSerializer,
    BillCreateSerializer,
    BillShareSerializer,
    ShareStatusUpdateSerializer,
    BillStatsSerializer,
)
from .services import BillSplitService, BillShareStateMachine


class BillPagination(PageNumberPagination):
    """Custom pagination for bills."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class BillViewSet(mixins.CreateModelMixin,
                  mixins.RetrieveModelMixin,
                  mixins.DestroyModelMixin,
                  viewsets.GenericViewSet):
    """
    ViewSet for bills.

    create: Create a bill in the caller's room (manager only)
    retrieve: Get a bill with its shares (room members)
    destroy: Delete a bill (manager only)
    share: Change one member's share status
    """

    queryset = Bill.objects.select_related('room', 'created_by').prefetch_related('shares')
    serializer_class = BillSerializer
    permission_classes = [IsAuthenticated, IsBillRoomMember]
    lookup_value_regex = '[0-9a-f-]{36}'

    def get_permissions(self):
        """Use different permissions for different actions."""
        if self.action == 'destroy':
            return [IsAuthenticated(), IsBillRoomManager()]
        return super().get_permissions()

    @extend_schema(
        request=BillCreateSerializer,
        responses={
            201: BillSerializer,
            400: OpenApiResponse(description='Invalid split or caller not in a room'),
            403: OpenApiResponse(description='Not the room manager'),
        },
    )
    def create(self, request, *args, **kwargs):
        """Create a bill and split it among members."""
        serializer = BillCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        room = request.user.room
        if room is None:
            return Response(
                {'error': 'You must be in a room to create bills'},
                status=status.HTTP_400_BAD_REQUEST
            )

        try:
            bill = BillSplitService.create_bill(
                room=room,
                created_by=request.user,
                **serializer.validated_data
            )
        except (NoParticipantsError, InvalidSplitError) as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        bill = self.get_queryset().get(pk=bill.pk)
        return Response(BillSerializer(bill).data, status=status.HTTP_201_CREATED)

    def perform_destroy(self, instance):
        BillSplitService.delete_bill(instance, deleted_by=self.request.user)

    @extend_schema(
        request=ShareStatusUpdateSerializer,
        responses={200: BillShareSerializer},
        description=(
            "Change a member's share status. Members may only submit their own "
            "share for approval; the manager approves, rejects, records payment "
            "directly, or toggles Overdue."
        ),
    )
    @action(detail=True, methods=['put'], url_path=r'share/(?P<user_id>[0-9a-f-]+)')
    def share(self, request, pk=None, user_id=None):
        """
        Update a bill share's payment status.

        PUT /api/bills/{id}/share/{user_id}/
        Body: {"status": "Paid", "paid_from_meal_fund": true}
        """
        bill = self.get_object()

        input_serializer = ShareStatusUpdateSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        share = BillShareStateMachine.transition(
            bill=bill,
            user_id=user_id,
            actor=request.user,
            new_status=input_serializer.validated_data['status'],
            paid_from_meal_fund=input_serializer.validated_data.get('paid_from_meal_fund'),
        )
        return Response(BillShareSerializer(share).data)


@extend_schema(
    responses={200: BillSerializer(many=True)},
    description="List a room's bills, latest due date first.",
    tags=['bills'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsRoomMember])
def room_bills(request, room_id):
    """Paginated bills of a room."""
    room = get_object_or_404(Room, id=room_id)
    bills = (
        Bill.objects
        .filter(room=room)
        .select_related('created_by')
        .prefetch_related('shares')
        .order_by('-due_date', '-created_at')
    )

    paginator = BillPagination()
    page = paginator.paginate_queryset(bills, request)
    serializer = BillSerializer(page, many=True)
    return paginator.get_paginated_response(serializer.data)


@extend_schema(
    responses={200: BillStatsSerializer},
    description="The caller's unpaid, paid and overdue totals in a room.",
    tags=['bills'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsRoomMember])
def room_bill_stats(request, room_id):
    room = get_object_or_404(Room, id=room_id)
    stats = BillSplitService.get_member_stats(room=room, user=request.user)
    return Response(BillStatsSerializer(stats).data)
