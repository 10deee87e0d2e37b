"""
Serializers for authentication models.

Related files:
    - models.py: User model
    - views.py: CurrentUserView
    - chat/serializers.py: Reuses UserSummarySerializer for conversation peers
"""

from rest_framework import serializers

from authentication.models import User


class UserSummarySerializer(serializers.ModelSerializer):
    """
    Public identity fields of a user.

    This is what one chat participant may see about the other.
    """

    class Meta:
        model = User
        fields = ["id", "name", "email"]
        read_only_fields = fields


class UserSerializer(serializers.ModelSerializer):
    """Serializer for the authenticated user's own account."""

    display_name = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "name",
            "display_name",
            "date_joined",
        ]
        read_only_fields = ["id", "email", "display_name", "date_joined"]
