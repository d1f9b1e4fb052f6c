from typing import Any, Dict

from django.contrib.auth.models import User
from ninja_jwt.tokens import RefreshToken


def create_token_pair(user: User) -> Dict[str, Any]:
    """Generate access and refresh tokens for a user."""
    refresh = RefreshToken.for_user(user)
    return {
        "access": str(refresh.access_token),
        "refresh": str(refresh),
        "user_id": user.id,
        "email": user.email,
    }
