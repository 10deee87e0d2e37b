"""
Tests for chat Celery tasks.

Tasks are called directly (synchronously); delivery is observed on the
in-memory channel layer.
"""

from chat.rooms import rooms
from chat.tasks import notify_user


class TestNotifyUser:
    def test_delivers_to_user_room(self, alice, room_probe):
        probe = room_probe(rooms.user_room(alice.pk))

        notify_user(alice.pk, "application.status_changed", {"status": "interview"})

        assert probe.receive() == {
            "type": "chat.notification",
            "event": "application.status_changed",
            "data": {"status": "interview"},
        }

    def test_data_defaults_to_empty_dict(self, alice, room_probe):
        probe = room_probe(rooms.user_room(alice.pk))

        notify_user(alice.pk, "job.closed")

        assert probe.receive()["data"] == {}

    def test_other_users_are_not_notified(self, alice, bob, room_probe):
        probe = room_probe(rooms.user_room(bob.pk))

        notify_user(alice.pk, "job.closed")

        probe.assert_nothing_received()

    def test_user_without_connections_is_a_no_op(self, alice):
        # Nobody is subscribed to the room: nothing to deliver, nothing raised
        notify_user(alice.pk, "job.closed")
