from typing import Any, Optional

from django.http import HttpRequest
from ninja.security import HttpBearer
from ninja_jwt.authentication import JWTAuth
from ninja_jwt.exceptions import AuthenticationFailed, InvalidToken, TokenError


class AuthBearer(HttpBearer):
    def authenticate(self, request: HttpRequest, token: str) -> Optional[Any]:
        auth = JWTAuth()
        try:
            # Validate the bare token string that HttpBearer pulled off the header
            validated_token = auth.get_validated_token(token)
            user = auth.get_user(validated_token)
        except (InvalidToken, AuthenticationFailed, TokenError):
            return None

        if user and user.is_active:
            request.user = user
            return user
        return None
