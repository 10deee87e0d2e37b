"""
WebSocket URL routing for the chat application.

URL Patterns:
    ws/chat/ - One connection per client; conversations are joined with
               join-room events

Authentication:
    JWT access token via ?token=, the "jwt" subprotocol, or an
    Authorization header. See middleware.py.
"""

from django.urls import path

from chat import consumers

websocket_urlpatterns = [
    path("ws/chat/", consumers.ChatConsumer.as_asgi()),
]
