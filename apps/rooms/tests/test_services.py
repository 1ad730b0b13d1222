import pytest
from apps.rooms.services import (
    create_room,
    add_member,
    get_room_members,
    get_user_room,
    AlreadyInRoomError,
    InsufficientPermissionsError,
    RoomNotFoundError,
)
import uuid


@pytest.mark.django_db
class TestRoomServices:

    def test_create_room(self, outsider):
        room = create_room(name='New Mess', manager=outsider)

        assert room.is_manager(outsider)
        assert get_user_room(user=outsider) == room

    def test_create_room_twice(self, outsider):
        create_room(name='First', manager=outsider)

        with pytest.raises(AlreadyInRoomError):
            create_room(name='Second', manager=outsider)

    def test_add_member_requires_manager(self, room, member, outsider):
        with pytest.raises(InsufficientPermissionsError):
            add_member(room_id=room.id, user=outsider, added_by=member)

    def test_add_member_unknown_room(self, manager, outsider):
        with pytest.raises(RoomNotFoundError):
            add_member(room_id=uuid.uuid4(), user=outsider, added_by=manager)

    def test_user_lives_in_one_room(self, room, other_room, manager, other_manager):
        with pytest.raises(AlreadyInRoomError):
            add_member(room_id=room.id, user=other_manager, added_by=manager)

    def test_get_members(self, room):
        assert get_room_members(room_id=room.id).count() == 2

    def test_get_user_room_none(self, outsider):
        assert get_user_room(user=outsider) is None
