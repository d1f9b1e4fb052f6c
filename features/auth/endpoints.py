import logging

from asgiref.sync import sync_to_async
from django.contrib.auth import authenticate, get_user_model
from ninja import Router
from ninja_jwt.exceptions import InvalidToken, TokenError
from ninja_jwt.tokens import RefreshToken

from core.utils.responses import error_response

from .schemas import AuthErrorSchema, LoginSchema, RefreshSchema, RegisterSchema, TokenSchema
from .utils import create_token_pair

logger = logging.getLogger(__name__)
router = Router()
User = get_user_model()

AUTH_ERRORS = frozenset({400, 401})


@router.post("/register", response={200: TokenSchema, AUTH_ERRORS: AuthErrorSchema})
async def register(request, payload: RegisterSchema):
    """
    Create an account and return access/refresh tokens. A placeholder user
    created when a budget was shared with this email is claimed instead.
    """
    email = payload.email.strip().lower()
    if "@" not in email:
        return 400, error_response("A valid email is required")

    @sync_to_async
    def do_register():
        user = User.objects.filter(email__iexact=email).order_by("id").first()
        if user is not None:
            if user.has_usable_password():
                return None
            user.set_password(payload.password)
            user.save(update_fields=["password"])
            return create_token_pair(user)
        user = User.objects.create_user(username=email, email=email, password=payload.password)
        return create_token_pair(user)

    tokens = await do_register()
    if tokens is None:
        return 400, error_response("An account with this email already exists")
    logger.info("Registered user %s", tokens["user_id"])
    return tokens


@router.post("/login", response={200: TokenSchema, AUTH_ERRORS: AuthErrorSchema})
async def login(request, payload: LoginSchema):
    """
    Authenticate user with email and password, return access/refresh tokens.
    """
    user_obj = await User.objects.filter(email__iexact=payload.email.strip()).order_by("id").afirst()
    if user_obj is None:
        return 401, error_response("Invalid credentials", code=401)

    # authenticate() is sync, must wrap
    @sync_to_async
    def do_authenticate():
        return authenticate(username=user_obj.username, password=payload.password)

    user = await do_authenticate()
    if not user:
        return 401, error_response("Invalid credentials", code=401)

    if not user.is_active:
        return 401, error_response("User account is disabled", code=401)

    return await sync_to_async(create_token_pair)(user)


@router.post("/refresh", response={200: TokenSchema, AUTH_ERRORS: AuthErrorSchema})
async def refresh_token(request, payload: RefreshSchema):
    """
    Refresh access token using a valid refresh token.
    """

    # Token operations involve JWT library which is sync
    @sync_to_async
    def refresh_access_token():
        try:
            refresh = RefreshToken(payload.refresh)
        except (TokenError, InvalidToken) as e:
            return None, f"Invalid refresh token: {e}"

        user = User.objects.filter(id=refresh.payload.get("user_id")).first()
        if user is None:
            return None, "User not found"
        if not user.is_active:
            return None, "User account is disabled"

        return {
            "access": str(refresh.access_token),
            "refresh": str(refresh),
            "user_id": user.id,
            "email": user.email,
        }, None

    result, error = await refresh_access_token()
    if error:
        return 401, error_response(error, code=401)
    return result
