"""
Test configuration and fixtures for chat tests.

This module provides:
- Users: alice (candidate), bob (HR), carol (unrelated third user)
- A conversation between alice and bob
- API clients and raw access tokens for WebSocket handshakes

Usage:
    def test_example(conversation, alice_client):
        response = alice_client.get(f"/api/v1/chat/conversations/{conversation.id}/")
        assert response.status_code == 200
"""

import asyncio

import pytest
from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from authentication.tests.factories import UserFactory
from chat.services import ConversationService


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def alice(db):
    """A candidate."""
    return UserFactory(email="alice@example.com", name="Alice Candidate")


@pytest.fixture
def bob(db):
    """An HR user at a hiring company."""
    return UserFactory(email="bob@acme.example", name="Bob Recruiter")


@pytest.fixture
def carol(db):
    """A user who takes no part in alice and bob's conversation."""
    return UserFactory(email="carol@example.com", name="Carol Outsider")


# =============================================================================
# Conversation Fixtures
# =============================================================================


@pytest.fixture
def conversation(alice, bob):
    """The conversation between alice and bob, created the production way."""
    return ConversationService.get_or_create(alice, bob).data


# =============================================================================
# Client Fixtures
# =============================================================================


def _client_for(user):
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {AccessToken.for_user(user)}")
    return client


@pytest.fixture
def api_client():
    """Unauthenticated API client."""
    return APIClient()


@pytest.fixture
def alice_client(alice):
    return _client_for(alice)


@pytest.fixture
def bob_client(bob):
    return _client_for(bob)


@pytest.fixture
def carol_client(carol):
    return _client_for(carol)


@pytest.fixture
def token_for():
    """Encoded access token for a user, for WebSocket handshakes."""

    def _token_for(user):
        return str(AccessToken.for_user(user))

    return _token_for


# =============================================================================
# Channel Layer Fixtures
# =============================================================================


class RoomProbe:
    """
    A bare channel-layer channel subscribed to a room.

    Lets synchronous tests observe what a WebSocket connection in that
    room would be sent.
    """

    def __init__(self, room):
        self.layer = get_channel_layer()
        self.channel = async_to_sync(self.layer.new_channel)()
        async_to_sync(self.layer.group_add)(room, self.channel)

    def receive(self, timeout=1):
        """Next event delivered to the room, or TimeoutError."""

        async def _receive():
            return await asyncio.wait_for(self.layer.receive(self.channel), timeout)

        return async_to_sync(_receive)()

    def assert_nothing_received(self):
        with pytest.raises(asyncio.TimeoutError):
            self.receive(timeout=0.1)


@pytest.fixture(autouse=True)
def _flush_channel_layer():
    """Drop groups and queued events between tests."""
    yield
    async_to_sync(get_channel_layer().flush)()


@pytest.fixture
def room_probe():
    """Factory: room_probe(room_name) -> RoomProbe."""
    return RoomProbe
