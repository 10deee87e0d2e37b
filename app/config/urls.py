"""
URL configuration for the job-board chat backend.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/auth/                  - Authentication endpoints
        token/                     - Obtain JWT access/refresh pair
        token/refresh/             - Rotate refresh token
        me/                        - Current user (GET/PATCH)
    /api/v1/chat/                  - Chat endpoints
        conversations/             - Conversation list / start with a peer
        conversations/{id}/        - Conversation summary
        conversations/{id}/read/   - Mark conversation as read
        conversations/{id}/deactivate/ - Hide conversation from lists
        conversations/{id}/messages/   - Message history / send

WebSocket routes live in chat/routing.py.
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
api_v1_patterns = [
    path("auth/", include("authentication.urls")),
    path("chat/", include("chat.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Job Board Chat Admin"
admin.site.site_title = "Chat Admin"
admin.site.index_title = "Conversations and users"
