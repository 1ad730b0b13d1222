from django.shortcuts import get_object_or_404
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.accounts.models import User
from .models import Room
from .permissions import IsRoomMember
from .serializers import (
    RoomSerializer,
    RoomCreateSerializer,
    RoomMembershipSerializer,
    AddMemberSerializer,
)
from .services import (
    create_room,
    add_member,
    get_room_members,
    AlreadyInRoomError,
    InsufficientPermissionsError,
)


@extend_schema(
    request=RoomCreateSerializer,
    responses={201: RoomSerializer},
    description="Create a room and become its manager.",
    tags=['rooms'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def room_create(request):
    """Create a new room - thin HTTP handler."""
    serializer = RoomCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        room = create_room(name=serializer.validated_data['name'], manager=request.user)
    except AlreadyInRoomError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(RoomSerializer(room).data, status=status.HTTP_201_CREATED)


@extend_schema(
    responses={200: RoomSerializer},
    description="Get room details.",
    tags=['rooms'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsRoomMember])
def room_detail(request, room_id):
    room = get_object_or_404(Room.objects.select_related('manager'), id=room_id)
    return Response(RoomSerializer(room).data)


@extend_schema(
    methods=['GET'],
    responses={200: RoomMembershipSerializer(many=True)},
    description="List room members in join order.",
    tags=['rooms'],
)
@extend_schema(
    methods=['POST'],
    request=AddMemberSerializer,
    responses={201: RoomMembershipSerializer},
    description="Seat an existing user in the room (manager only).",
    tags=['rooms'],
)
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsRoomMember])
def room_members(request, room_id):
    """List or add room members."""
    if request.method == 'GET':
        memberships = get_room_members(room_id=room_id)
        return Response(RoomMembershipSerializer(memberships, many=True).data)

    serializer = AddMemberSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    user = get_object_or_404(User, id=serializer.validated_data['user_id'])

    try:
        membership = add_member(room_id=room_id, user=user, added_by=request.user)
    except InsufficientPermissionsError as e:
        return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
    except AlreadyInRoomError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(RoomMembershipSerializer(membership).data, status=status.HTTP_201_CREATED)
