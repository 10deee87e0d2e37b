"""
Tests for chat app.

This package contains test modules for:
- test_models.py: Conversation, Message model tests
- test_services.py: Conversation, message and chat service tests
- test_consumers.py: WebSocket consumer tests
- test_views.py: REST API endpoint tests
- test_middleware.py, test_tasks.py, test_rooms.py: gateway plumbing

Usage:
    pytest chat/tests/
    pytest chat/tests/test_consumers.py
"""
