"""
Tests for room naming and fan-out.
"""

from chat.rooms import RoomRegistry, rooms


class TestRoomNames:
    def test_conversation_room(self):
        assert RoomRegistry.conversation_room(12) == "chat.conversation.12"

    def test_user_room(self):
        assert RoomRegistry.user_room(5) == "chat.user.5"

    def test_rooms_do_not_collide(self):
        assert rooms.conversation_room(5) != rooms.user_room(5)


class TestBroadcast:
    def test_broadcast_reaches_every_member(self, room_probe):
        room = rooms.conversation_room(1)
        first, second = room_probe(room), room_probe(room)

        rooms.broadcast_sync(room, {"type": "chat.typing", "user_id": 1})

        assert first.receive()["user_id"] == 1
        assert second.receive()["user_id"] == 1

    def test_broadcast_stays_in_its_room(self, room_probe):
        outsider = room_probe(rooms.conversation_room(2))

        rooms.broadcast_sync(rooms.conversation_room(1), {"type": "chat.typing"})

        outsider.assert_nothing_received()
