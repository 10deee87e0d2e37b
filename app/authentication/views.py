"""
Views for authentication endpoints.

Token issuance is delegated to rest_framework_simplejwt's
TokenObtainPairView / TokenRefreshView (wired in urls.py). This module
only adds the current-user endpoint.
"""

from drf_spectacular.utils import extend_schema
from rest_framework import generics
from rest_framework.permissions import IsAuthenticated

from authentication.serializers import UserSerializer


@extend_schema(tags=["Auth"])
class CurrentUserView(generics.RetrieveUpdateAPIView):
    """
    Get or update the authenticated user.

    GET returns the user's account; PATCH may change the display name.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = UserSerializer
    http_method_names = ["get", "patch", "head", "options"]

    def get_object(self):
        return self.request.user
