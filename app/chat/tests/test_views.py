"""
Tests for chat REST endpoints.

Endpoints:
    GET/POST /api/v1/chat/conversations/
    GET      /api/v1/chat/conversations/{id}/
    POST     /api/v1/chat/conversations/{id}/read/
    POST     /api/v1/chat/conversations/{id}/deactivate/
    GET/POST /api/v1/chat/conversations/{id}/messages/
"""

from unittest.mock import patch

import pytest
from django.db import OperationalError
from rest_framework import status

from authentication.tests.factories import UserFactory
from chat.constants import MESSAGE_CONFIG
from chat.models import Conversation, Message
from chat.rooms import rooms
from chat.services import MessageService

CONVERSATIONS_URL = "/api/v1/chat/conversations/"


def conversation_url(conversation_id):
    return f"{CONVERSATIONS_URL}{conversation_id}/"


def messages_url(conversation_id):
    return f"{CONVERSATIONS_URL}{conversation_id}/messages/"


# =============================================================================
# Conversations
# =============================================================================


class TestConversationList:
    def test_requires_authentication(self, api_client, db):
        response = api_client.get(CONVERSATIONS_URL)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_lists_summaries_with_other_participant(
        self, alice_client, alice, bob, conversation
    ):
        MessageService.append(conversation.pk, bob, "Thanks for applying!")

        response = alice_client.get(CONVERSATIONS_URL)

        assert response.status_code == status.HTTP_200_OK
        [summary] = response.data
        assert summary["id"] == conversation.pk
        assert summary["other_participant"] == {
            "id": bob.pk,
            "name": "Bob Recruiter",
            "email": "bob@acme.example",
        }
        assert summary["last_message_preview"] == "Thanks for applying!"
        assert summary["unread_count"] == 1
        assert summary["is_active"] is True

    def test_most_recent_first(self, alice_client, alice, bob, carol):
        older = Conversation.objects.create(
            user_lower=min(alice, bob, key=lambda u: u.pk),
            user_higher=max(alice, bob, key=lambda u: u.pk),
        )
        newer = Conversation.objects.create(
            user_lower=min(alice, carol, key=lambda u: u.pk),
            user_higher=max(alice, carol, key=lambda u: u.pk),
        )

        response = alice_client.get(CONVERSATIONS_URL)

        assert [row["id"] for row in response.data] == [newer.pk, older.pk]

    def test_excludes_other_users_conversations(self, carol_client, conversation):
        response = carol_client.get(CONVERSATIONS_URL)

        assert response.status_code == status.HTTP_200_OK
        assert response.data == []


class TestConversationCreate:
    def test_starts_conversation_with_peer(self, alice_client, alice, bob):
        response = alice_client.post(
            CONVERSATIONS_URL, {"peer_id": bob.pk}, format="json"
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["other_participant"]["id"] == bob.pk
        assert response.data["unread_count"] == 0
        assert Conversation.objects.count() == 1

    def test_returns_existing_conversation(self, bob_client, alice, conversation):
        response = bob_client.post(
            CONVERSATIONS_URL, {"peer_id": alice.pk}, format="json"
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["id"] == conversation.pk
        assert Conversation.objects.count() == 1

    def test_unknown_peer(self, alice_client):
        response = alice_client.post(
            CONVERSATIONS_URL, {"peer_id": 999999}, format="json"
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data["error_code"] == "NOT_FOUND"

    def test_peer_is_self(self, alice_client, alice):
        response = alice_client.post(
            CONVERSATIONS_URL, {"peer_id": alice.pk}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "INVALID_PARTICIPANTS"

    def test_peer_id_required(self, alice_client):
        response = alice_client.post(CONVERSATIONS_URL, {}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "peer_id" in response.data


class TestConversationDetail:
    def test_participant_can_retrieve(self, bob_client, alice, conversation):
        response = bob_client.get(conversation_url(conversation.pk))

        assert response.status_code == status.HTTP_200_OK
        assert response.data["other_participant"]["id"] == alice.pk

    def test_non_participant_gets_404(self, carol_client, conversation):
        """
        Why it matters: Returning 403 would confirm that the conversation
        exists.
        """
        response = carol_client.get(conversation_url(conversation.pk))

        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestConversationActions:
    def test_read_marks_received_messages(self, alice_client, alice, bob, conversation):
        MessageService.append(conversation.pk, bob, "one")
        MessageService.append(conversation.pk, bob, "two")
        MessageService.append(conversation.pk, alice, "mine")

        response = alice_client.post(f"{conversation_url(conversation.pk)}read/")

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {"updated": 2}
        assert alice_client.get(CONVERSATIONS_URL).data[0]["unread_count"] == 0

    def test_read_by_non_participant(self, carol_client, conversation):
        response = carol_client.post(f"{conversation_url(conversation.pk)}read/")

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_deactivate_hides_from_list(self, alice_client, conversation):
        response = alice_client.post(f"{conversation_url(conversation.pk)}deactivate/")

        assert response.status_code == status.HTTP_200_OK
        assert response.data["is_active"] is False
        assert alice_client.get(CONVERSATIONS_URL).data == []
        # Still reachable directly, history intact
        detail = alice_client.get(conversation_url(conversation.pk))
        assert detail.status_code == status.HTTP_200_OK

    def test_starting_again_reactivates(
        self, alice_client, bob_client, alice, conversation
    ):
        alice_client.post(f"{conversation_url(conversation.pk)}deactivate/")

        response = bob_client.post(
            CONVERSATIONS_URL, {"peer_id": alice.pk}, format="json"
        )

        assert response.data["id"] == conversation.pk
        assert response.data["is_active"] is True


# =============================================================================
# Messages
# =============================================================================


class TestMessageList:
    def test_returns_history_oldest_first(self, alice_client, alice, bob, conversation):
        MessageService.append(conversation.pk, alice, "Hi Bob")
        MessageService.append(conversation.pk, bob, "Hi Alice")

        response = alice_client.get(messages_url(conversation.pk))

        assert response.status_code == status.HTTP_200_OK
        assert [m["body"] for m in response.data["results"]] == ["Hi Bob", "Hi Alice"]
        assert response.data["results"][0]["sender"]["id"] == alice.pk
        assert response.data["results"][0]["conversation_id"] == conversation.pk
        assert response.data["next_cursor"] is None

    def test_follows_cursor_to_the_end(self, alice_client, alice, conversation):
        for i in range(5):
            MessageService.append(conversation.pk, alice, f"m{i}")

        bodies, params = [], {"page_size": 2}
        while True:
            response = alice_client.get(messages_url(conversation.pk), params)
            assert response.status_code == status.HTTP_200_OK
            bodies.extend(m["body"] for m in response.data["results"])
            if response.data["next_cursor"] is None:
                break
            params = {"page_size": 2, "cursor": response.data["next_cursor"]}

        assert bodies == ["m0", "m1", "m2", "m3", "m4"]

    def test_invalid_cursor(self, alice_client, conversation):
        response = alice_client.get(messages_url(conversation.pk), {"cursor": "garbage"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "INVALID_CURSOR"

    @pytest.mark.parametrize("page_size", [0, MESSAGE_CONFIG.HISTORY_MAX_PAGE_SIZE + 1])
    def test_page_size_out_of_range(self, alice_client, conversation, page_size):
        response = alice_client.get(
            messages_url(conversation.pk), {"page_size": page_size}
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_non_participant_gets_404(self, carol_client, bob, conversation):
        MessageService.append(conversation.pk, bob, "private")

        response = carol_client.get(messages_url(conversation.pk))

        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestMessageCreate:
    def test_sends_and_broadcasts(
        self,
        alice_client,
        alice,
        conversation,
        room_probe,
        django_capture_on_commit_callbacks,
    ):
        probe = room_probe(rooms.conversation_room(conversation.pk))

        with django_capture_on_commit_callbacks(execute=True):
            response = alice_client.post(
                messages_url(conversation.pk), {"body": "Hi Bob"}, format="json"
            )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["body"] == "Hi Bob"
        assert response.data["kind"] == "text"
        assert response.data["sender"]["id"] == alice.pk
        event = probe.receive()
        assert event["message"]["id"] == response.data["id"]

    def test_attachment_message(self, alice_client, conversation):
        response = alice_client.post(
            messages_url(conversation.pk),
            {"body": "uploads/chat/portfolio.png", "kind": "image"},
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        conversation.refresh_from_db()
        assert conversation.last_message_preview == "[image]"

    @pytest.mark.parametrize(
        "payload,error_code",
        [
            ({"body": "   "}, "EMPTY_BODY"),
            ({"body": "x" * (MESSAGE_CONFIG.MAX_CONTENT_LENGTH + 1)}, "BODY_TOO_LONG"),
            ({"body": "hi", "kind": "video"}, "INVALID_KIND"),
        ],
    )
    def test_rejected_messages(self, alice_client, conversation, payload, error_code):
        response = alice_client.post(
            messages_url(conversation.pk), payload, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == error_code
        assert Message.objects.count() == 0

    def test_non_participant_cannot_send(self, carol_client, conversation):
        response = carol_client.post(
            messages_url(conversation.pk), {"body": "hello"}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "INVALID_SENDER"

    def test_unknown_conversation(self, alice_client):
        response = alice_client.post(messages_url(424242), {"body": "hello"}, format="json")

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_storage_outage_is_503(self, alice_client, conversation):
        with patch("chat.services.time.sleep"), patch.object(
            MessageService, "append", side_effect=OperationalError("connection lost")
        ):
            response = alice_client.post(
                messages_url(conversation.pk), {"body": "hello"}, format="json"
            )

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response.data["error_code"] == "TRANSIENT"
        assert response.data["retryable"] is True

    def test_requires_authentication(self, api_client, conversation):
        response = api_client.post(
            messages_url(conversation.pk), {"body": "hello"}, format="json"
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestDeactivatedUsers:
    def test_cannot_start_conversation_with_deactivated_user(self, alice_client):
        gone = UserFactory(is_active=False)

        response = alice_client.post(
            CONVERSATIONS_URL, {"peer_id": gone.pk}, format="json"
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
