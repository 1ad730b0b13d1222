from django.shortcuts import get_object_or_404
from drf_spectacular.utils import extend_schema, OpenApiParameter
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.accounts.models import User
from apps.rooms.models import Room
from apps.rooms.permissions import IsRoomMember, IsRoomManager
from apps.settlement.exceptions import SettlementServiceError
from apps.settlement.settlement import SettlementQueries

from .models import MealFinalization
from .serializers import (
    DepositSerializer,
    DepositCreateSerializer,
    RejectSerializer,
    ExpenseSerializer,
    ExpenseCreateSerializer,
    MealSerializer,
    MealUpsertSerializer,
    MealListQuerySerializer,
    MealFinalizeSerializer,
    MealFinalizationSerializer,
    MealHistorySerializer,
    MealHistoryQuerySerializer,
    MealSummaryQuerySerializer,
)
from .services import (
    list_deposits,
    submit_deposit,
    approve_deposit,
    reject_deposit,
    list_expenses,
    submit_expense,
    approve_expense,
    reject_expense,
    list_meals,
    upsert_meal,
    finalize_meal_date,
    get_meal_history,
    meal_summary,
    # Exceptions
    EntryNotFoundError,
    EntryAlreadyReviewedError,
    InsufficientPermissionsError,
    NotRoomMemberError,
    MealDateFinalizedError,
)


def _review_error_response(e):
    """Map review workflow errors to HTTP responses."""
    if isinstance(e, EntryNotFoundError):
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    if isinstance(e, InsufficientPermissionsError):
        return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
    return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)


# =============================================================================
# Deposits
# =============================================================================

@extend_schema(
    methods=['GET'],
    responses={200: DepositSerializer(many=True)},
    description="List the room's deposits, newest first.",
    tags=['deposits'],
)
@extend_schema(
    methods=['POST'],
    request=DepositCreateSerializer,
    responses={201: DepositSerializer},
    description="Submit a deposit for manager approval.",
    tags=['deposits'],
)
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsRoomMember])
def deposit_list_create(request, room_id):
    room = get_object_or_404(Room, id=room_id)

    if request.method == 'GET':
        return Response(DepositSerializer(list_deposits(room=room), many=True).data)

    serializer = DepositCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    deposit = submit_deposit(room=room, user=request.user, **serializer.validated_data)
    return Response(DepositSerializer(deposit).data, status=status.HTTP_201_CREATED)


@extend_schema(request=None, responses={200: DepositSerializer}, tags=['deposits'])
@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsRoomManager])
def deposit_approve(request, room_id, deposit_id):
    room = get_object_or_404(Room, id=room_id)
    try:
        deposit = approve_deposit(room=room, deposit_id=deposit_id, approved_by=request.user)
    except (EntryNotFoundError, EntryAlreadyReviewedError, InsufficientPermissionsError) as e:
        return _review_error_response(e)
    return Response(DepositSerializer(deposit).data)


@extend_schema(request=RejectSerializer, responses={200: DepositSerializer}, tags=['deposits'])
@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsRoomManager])
def deposit_reject(request, room_id, deposit_id):
    room = get_object_or_404(Room, id=room_id)
    serializer = RejectSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        deposit = reject_deposit(
            room=room,
            deposit_id=deposit_id,
            rejected_by=request.user,
            reason=serializer.validated_data['reason'],
        )
    except (EntryNotFoundError, EntryAlreadyReviewedError, InsufficientPermissionsError) as e:
        return _review_error_response(e)
    return Response(DepositSerializer(deposit).data)


# =============================================================================
# Expenses
# =============================================================================

@extend_schema(
    methods=['GET'],
    responses={200: ExpenseSerializer(many=True)},
    description="List the room's expenses (shopping and bill payments), newest first.",
    tags=['expenses'],
)
@extend_schema(
    methods=['POST'],
    request=ExpenseCreateSerializer,
    responses={201: ExpenseSerializer},
    description="Log a shopping expense for manager approval.",
    tags=['expenses'],
)
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsRoomMember])
def expense_list_create(request, room_id):
    room = get_object_or_404(Room, id=room_id)

    if request.method == 'GET':
        return Response(ExpenseSerializer(list_expenses(room=room), many=True).data)

    serializer = ExpenseCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    expense = submit_expense(room=room, user=request.user, **serializer.validated_data)
    return Response(ExpenseSerializer(expense).data, status=status.HTTP_201_CREATED)


@extend_schema(request=None, responses={200: ExpenseSerializer}, tags=['expenses'])
@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsRoomManager])
def expense_approve(request, room_id, expense_id):
    room = get_object_or_404(Room, id=room_id)
    try:
        expense = approve_expense(room=room, expense_id=expense_id, approved_by=request.user)
    except (EntryNotFoundError, EntryAlreadyReviewedError, InsufficientPermissionsError) as e:
        return _review_error_response(e)
    return Response(ExpenseSerializer(expense).data)


@extend_schema(request=RejectSerializer, responses={200: ExpenseSerializer}, tags=['expenses'])
@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsRoomManager])
def expense_reject(request, room_id, expense_id):
    room = get_object_or_404(Room, id=room_id)
    serializer = RejectSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        expense = reject_expense(
            room=room,
            expense_id=expense_id,
            rejected_by=request.user,
            reason=serializer.validated_data['reason'],
        )
    except (EntryNotFoundError, EntryAlreadyReviewedError, InsufficientPermissionsError) as e:
        return _review_error_response(e)
    return Response(ExpenseSerializer(expense).data)


# =============================================================================
# Meals
# =============================================================================

@extend_schema(
    methods=['GET'],
    parameters=[
        OpenApiParameter(name='start_date', type=str, description='YYYY-MM-DD, inclusive'),
        OpenApiParameter(name='end_date', type=str, description='YYYY-MM-DD, inclusive'),
    ],
    responses={200: MealSerializer(many=True)},
    description="List the room's meals, newest date first.",
    tags=['meals'],
)
@extend_schema(
    methods=['POST'],
    request=MealUpsertSerializer,
    responses={200: MealSerializer, 201: MealSerializer},
    description=(
        "Create or update meal counts for a date. Managers may pass user_id "
        "to write for any member; members are blocked on finalized dates."
    ),
    tags=['meals'],
)
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsRoomMember])
def meal_list_upsert(request, room_id):
    room = get_object_or_404(Room, id=room_id)

    if request.method == 'GET':
        query = MealListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        meals = list_meals(room=room, **query.validated_data)
        return Response(MealSerializer(meals, many=True).data)

    serializer = MealUpsertSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    target_user = None
    if data.get('user_id'):
        target_user = get_object_or_404(User, id=data['user_id'])

    try:
        meal, created = upsert_meal(
            room=room,
            actor=request.user,
            date=data['date'],
            breakfast=data.get('breakfast'),
            lunch=data.get('lunch'),
            dinner=data.get('dinner'),
            target_user=target_user,
        )
    except MealDateFinalizedError as e:
        return Response({'error': str(e), 'is_finalized': True}, status=status.HTTP_403_FORBIDDEN)
    except InsufficientPermissionsError as e:
        return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
    except NotRoomMemberError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(
        MealSerializer(meal).data,
        status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
    )


@extend_schema(
    request=MealFinalizeSerializer,
    responses={201: MealFinalizationSerializer, 200: MealFinalizationSerializer},
    description="Finalize a date so members can no longer change its meals (manager only).",
    tags=['meals'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsRoomManager])
def meal_finalize(request, room_id):
    room = get_object_or_404(Room, id=room_id)
    serializer = MealFinalizeSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        finalization, created = finalize_meal_date(
            room=room,
            date=serializer.validated_data['date'],
            finalized_by=request.user,
        )
    except InsufficientPermissionsError as e:
        return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

    return Response(
        MealFinalizationSerializer(finalization).data,
        status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
    )


@extend_schema(tags=['meals'], description="Whether a date is finalized.")
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsRoomMember])
def meal_finalization_status(request, room_id, date):
    room = get_object_or_404(Room, id=room_id)
    serializer = MealFinalizeSerializer(data={'date': date})
    serializer.is_valid(raise_exception=True)

    finalization = (
        MealFinalization.objects
        .select_related('finalized_by')
        .filter(room=room, date=serializer.validated_data['date'])
        .first()
    )
    return Response({
        'date': serializer.validated_data['date'],
        'is_finalized': finalization is not None,
        'finalization': MealFinalizationSerializer(finalization).data if finalization else None,
    })


@extend_schema(
    parameters=[
        OpenApiParameter(name='user_id', type=str, description='UUID'),
        OpenApiParameter(name='date', type=str, description='YYYY-MM-DD'),
    ],
    responses={200: MealHistorySerializer(many=True)},
    description="Audit log of meal changes in the room.",
    tags=['meals'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsRoomMember])
def meal_history(request, room_id):
    room = get_object_or_404(Room, id=room_id)

    query_serializer = MealHistoryQuerySerializer(data=request.query_params)
    query_serializer.is_valid(raise_exception=True)
    params = query_serializer.validated_data

    target_user = None
    if params.get('user_id'):
        target_user = get_object_or_404(User, id=params['user_id'])

    history = get_meal_history(room=room, target_user=target_user, date=params.get('date'))
    return Response(MealHistorySerializer(history, many=True).data)


@extend_schema(
    parameters=[
        OpenApiParameter(
            name='calculation_period_id',
            type=str,
            description='Period to count; defaults to the Active period',
        ),
    ],
    description="Meal totals per member and for the caller in a calculation period.",
    tags=['meals'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsRoomMember])
def meal_summary_view(request, room_id):
    room = get_object_or_404(Room, id=room_id)

    query_serializer = MealSummaryQuerySerializer(data=request.query_params)
    query_serializer.is_valid(raise_exception=True)

    try:
        period = SettlementQueries.resolve_period(
            room,
            query_serializer.validated_data.get('calculation_period_id'),
        )
    except SettlementServiceError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(meal_summary(room=room, user=request.user, period=period))
