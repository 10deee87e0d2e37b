"""
ASGI config for the job-board chat backend.

This file exposes the ASGI callable as a module-level variable named
`application`. It serves:
- HTTP requests (REST API, admin, docs) via Django
- WebSocket connections at ws/chat/ via Django Channels

Run with an ASGI server, e.g.:
    uvicorn config.asgi:application

For more information on this file, see:
https://docs.djangoproject.com/en/5.2/howto/deployment/asgi/
"""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

# Initialize Django before importing anything that touches models
django_asgi_app = get_asgi_application()

from channels.routing import ProtocolTypeRouter, URLRouter  # noqa: E402
from channels.security.websocket import AllowedHostsOriginValidator  # noqa: E402

from chat.middleware import JWTAuthMiddleware  # noqa: E402
from chat.routing import websocket_urlpatterns  # noqa: E402

# WebSocket connections are routed through:
# 1. AllowedHostsOriginValidator - ensures origin matches ALLOWED_HOSTS
# 2. JWTAuthMiddleware - authenticates user via JWT token
# 3. URLRouter - routes to ChatConsumer
application = ProtocolTypeRouter(
    {
        "http": django_asgi_app,
        "websocket": AllowedHostsOriginValidator(
            JWTAuthMiddleware(URLRouter(websocket_urlpatterns))
        ),
    }
)
