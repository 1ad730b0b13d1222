from django.shortcuts import get_object_or_404
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema, OpenApiParameter
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.accounts.models import User
from apps.ledger.models import Deposit
from apps.ledger.serializers import DepositSerializer, ExpenseSerializer
from apps.ledger.services import (
    adjust_fund,
    LedgerServiceError,
    InsufficientPermissionsError,
)
from apps.rooms.models import Room
from apps.rooms.permissions import IsRoomMember, IsRoomManager

from .exceptions import SettlementServiceError
from .serializers import (
    BalancesQuerySerializer,
    BalanceSheetSerializer,
    SummaryQuerySerializer,
    FundSummarySerializer,
    FundAdjustmentSerializer,
    ErrorSerializer,
)
from .settlement import SettlementQueries


@extend_schema(
    parameters=[
        OpenApiParameter(
            'calculation_period_id',
            OpenApiTypes.UUID,
            description='Period to report on; defaults to the Active period',
        ),
    ],
    responses={
        200: BalanceSheetSerializer,
        400: ErrorSerializer,
        403: ErrorSerializer,
    },
    description="Meal rate and per-member balances for a calculation period.",
    tags=['settlement'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsRoomMember])
def room_balances(request, room_id):
    """Balance sheet for a room - thin HTTP handler."""
    room = get_object_or_404(Room, id=room_id)

    query_serializer = BalancesQuerySerializer(data=request.query_params)
    query_serializer.is_valid(raise_exception=True)

    try:
        data = SettlementQueries.room_balances(
            room,
            calculation_period_id=query_serializer.validated_data.get('calculation_period_id'),
        )
    except SettlementServiceError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(data)


@extend_schema(
    parameters=[
        OpenApiParameter(
            'calculation_period_id',
            OpenApiTypes.UUID,
            description='Period to report on; defaults to the Active period',
        ),
        OpenApiParameter(
            'user_id',
            OpenApiTypes.UUID,
            description="Member to summarize; defaults to the caller (others: manager only)",
        ),
    ],
    responses={
        200: FundSummarySerializer,
        400: ErrorSerializer,
        403: ErrorSerializer,
    },
    description="Room fund position plus one member's deposits, meal cost and balance.",
    tags=['settlement'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsRoomMember])
def fund_summary(request, room_id):
    room = get_object_or_404(Room, id=room_id)

    query_serializer = SummaryQuerySerializer(data=request.query_params)
    query_serializer.is_valid(raise_exception=True)
    params = query_serializer.validated_data

    target = request.user
    if params.get('user_id') and params['user_id'] != request.user.id:
        if not room.is_manager(request.user):
            return Response(
                {'error': "Only managers can view other members' summaries"},
                status=status.HTTP_403_FORBIDDEN,
            )
        target = get_object_or_404(User, id=params['user_id'])

    try:
        data = SettlementQueries.fund_summary(
            room,
            target,
            calculation_period_id=params.get('calculation_period_id'),
        )
    except SettlementServiceError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(data)


@extend_schema(
    request=FundAdjustmentSerializer,
    responses={
        201: DepositSerializer,
        400: ErrorSerializer,
        403: ErrorSerializer,
    },
    description=(
        "Add to (approved deposit) or deduct from (approved Adjustment expense) "
        "a member's fund. Manager only."
    ),
    tags=['settlement'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsRoomManager])
def fund_adjust(request, room_id):
    room = get_object_or_404(Room, id=room_id)

    serializer = FundAdjustmentSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    target = get_object_or_404(User, id=data['user_id'])

    try:
        entry = adjust_fund(
            room=room,
            user=target,
            adjusted_by=request.user,
            type=data['type'],
            amount=data['amount'],
            reason=data['reason'],
        )
    except InsufficientPermissionsError as e:
        return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
    except LedgerServiceError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    output = DepositSerializer if isinstance(entry, Deposit) else ExpenseSerializer
    return Response(output(entry).data, status=status.HTTP_201_CREATED)
