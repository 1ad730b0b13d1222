from drf_spectacular.utils import extend_schema, OpenApiResponse
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .exceptions import (
    ActivePeriodExistsError,
    PeriodNotFoundError,
    PeriodAlreadyEndedError,
    PeriodAccessDeniedError,
)
from .serializers import CalculationPeriodSerializer, PeriodStartSerializer
from .services import list_periods, get_active_period, start_period, end_period


NOT_IN_ROOM = {'error': 'User not in a room'}


@extend_schema(
    methods=['GET'],
    responses={200: CalculationPeriodSerializer(many=True)},
    description="List calculation periods of the caller's room, newest first.",
    tags=['periods'],
)
@extend_schema(
    methods=['POST'],
    request=PeriodStartSerializer,
    responses={
        201: CalculationPeriodSerializer,
        400: OpenApiResponse(description='Active period already exists'),
        403: OpenApiResponse(description='Not the room manager'),
    },
    description="Start a calculation period (manager only). Adopts unassigned ledger rows.",
    tags=['periods'],
)
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def period_list_create(request):
    room = request.user.room
    if room is None:
        return Response(NOT_IN_ROOM, status=status.HTTP_400_BAD_REQUEST)

    if request.method == 'GET':
        periods = list_periods(room=room)
        return Response(CalculationPeriodSerializer(periods, many=True).data)

    if not room.is_manager(request.user):
        return Response(
            {'error': 'Only managers can start calculation periods'},
            status=status.HTTP_403_FORBIDDEN,
        )

    serializer = PeriodStartSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        period = start_period(
            room=room,
            name=serializer.validated_data['name'],
            started_by=request.user,
        )
    except PeriodAccessDeniedError as e:
        return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
    except ActivePeriodExistsError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(CalculationPeriodSerializer(period).data, status=status.HTTP_201_CREATED)


@extend_schema(
    responses={200: OpenApiResponse(description='{"active_period": period or null}')},
    description="Get the Active calculation period of the caller's room.",
    tags=['periods'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def period_active(request):
    room = request.user.room
    if room is None:
        return Response(NOT_IN_ROOM, status=status.HTTP_400_BAD_REQUEST)

    period = get_active_period(room=room)
    data = CalculationPeriodSerializer(period).data if period else None
    return Response({'active_period': data})


@extend_schema(
    request=None,
    responses={
        200: CalculationPeriodSerializer,
        400: OpenApiResponse(description='Already ended'),
        403: OpenApiResponse(description='Other room or not manager'),
        404: OpenApiResponse(description='Not found'),
    },
    description="End an Active calculation period (manager only).",
    tags=['periods'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def period_end(request, period_id):
    try:
        period = end_period(period_id=period_id, ended_by=request.user)
    except PeriodNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except PeriodAccessDeniedError as e:
        return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
    except PeriodAlreadyEndedError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(CalculationPeriodSerializer(period).data)
