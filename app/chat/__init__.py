"""
Chat app for realtime two-party messaging.

This app handles:
- Conversations between exactly two users (candidate, HR, company)
- Message sending and history
- Read state and unread counts
- WebSocket realtime delivery, typing indicators and private notifications

Related apps:
    - authentication: User model and JWT identity verification

WebSocket Support:
    Uses Django Channels for real-time communication.
    See consumers.py for WebSocket handlers.
    See routing.py for WebSocket URL patterns.
    See rooms.py for room naming and fan-out.

Usage:
    from chat.services import ChatService

    conversation = ChatService.get_or_create_conversation(alice, bob.id).data
    ChatService.send(conversation.id, alice, "Hello!")
"""
