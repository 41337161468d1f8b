"""
Auth Endpoints

    - POST /api/auth/register
    - POST /api/auth/login
    - POST /api/auth/check-user
    - GET  /api/auth/verify-email?token=...
    - POST /api/auth/resend-verification
    - GET  /api/auth/me
"""

import logging

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import create_access_token
from app.database import get_db
from app.dependencies import AuthContext, RateLimit, client_identifier, get_current_auth
from app.schemas import (
    AccountResponse,
    CheckUserRequest,
    CheckUserResponse,
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
    ResendVerificationRequest,
    SessionResponse,
    UserResponse,
    VerifyEmailResponse,
)
from app.services import accounts, verification
from app.services.notifications import BaseNotificationService, get_notification_service
from app.services.rate_limit import BaseRateLimiter, get_rate_limiter, get_tiers

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    dependencies=[Depends(RateLimit("auth"))],
    summary="Register a user and its account",
)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    notifier: BaseNotificationService = Depends(get_notification_service),
) -> RegisterResponse:
    """
    Create a new user together with the account it owns, then send the
    email verification link.

    If the email cannot be sent the registration still succeeds and the
    response carries ``warning: "EmailDispatchFailure"``.
    """
    logger.info(f"Registering user: {body.email}")

    result = await accounts.register(db, body.name, body.email, body.password, notifier)

    message = "Registration successful. Please check your email to verify your account."
    if result.warning:
        message = "Registration successful, but the verification email could not be sent."

    return RegisterResponse(
        message=message,
        user=UserResponse.model_validate(result.user),
        account=AccountResponse.model_validate(result.account),
        warning=result.warning,
    )


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
    dependencies=[Depends(RateLimit("auth"))],
)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    """Exchange email and password for a session token."""
    user, account = await accounts.authenticate(db, body.email, body.password)
    token = create_access_token(user.id, user.email, account.id)

    return LoginResponse(
        token=token,
        user=UserResponse.model_validate(user),
        account=AccountResponse.model_validate(account),
    )


@router.post(
    "/check-user",
    response_model=CheckUserResponse,
    responses={401: {"model": ErrorResponse}},
    dependencies=[Depends(RateLimit("auth"))],
)
async def check_user(
    body: CheckUserRequest,
    db: AsyncSession = Depends(get_db),
) -> CheckUserResponse:
    """Validate credentials and report the verification state, without logging in."""
    user = await accounts.check_credentials(db, body.email, body.password)
    return CheckUserResponse(exists=True, email_verified=user.email_verified)


@router.get(
    "/verify-email",
    response_model=VerifyEmailResponse,
    responses={400: {"model": ErrorResponse}},
)
async def verify_email(
    token: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
) -> VerifyEmailResponse:
    """Redeem a verification token from the emailed link."""
    user_id = await verification.consume_token(db, token)
    user, _ = await accounts.get_user_with_account(db, user_id)

    return VerifyEmailResponse(
        message="Email verified successfully",
        user=UserResponse.model_validate(user),
    )


@router.post(
    "/resend-verification",
    response_model=MessageResponse,
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
    },
    dependencies=[Depends(RateLimit("resend"))],
)
async def resend_verification(
    body: ResendVerificationRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    notifier: BaseNotificationService = Depends(get_notification_service),
    limiter: BaseRateLimiter = Depends(get_rate_limiter),
) -> MessageResponse:
    """Send a new verification link, invalidating the previous one."""
    tier = get_tiers()["resend"]

    async def gate(email: str) -> bool:
        return await limiter.allow(tier, f"{email}:{client_identifier(request)}")

    warning = await verification.resend(db, body.email, notifier, gate=gate)

    if warning:
        return MessageResponse(
            message="A new verification token was issued, but the email could not be sent.",
            warning=warning,
        )
    return MessageResponse(message="Verification email sent")


@router.get(
    "/me",
    response_model=SessionResponse,
    responses={401: {"model": ErrorResponse}},
)
async def me(auth: AuthContext = Depends(get_current_auth)) -> SessionResponse:
    """Return the authenticated user and account."""
    return SessionResponse(
        user=UserResponse.model_validate(auth.user),
        account=AccountResponse.model_validate(auth.account),
    )
