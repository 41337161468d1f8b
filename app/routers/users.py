"""
Profile Endpoints

    - GET /api/users/profile
    - PUT /api/users/profile
    - PUT /api/users/password
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import AuthContext, RateLimit, get_current_auth
from app.schemas import (
    ChangePasswordRequest,
    ErrorResponse,
    MessageResponse,
    ProfileResponse,
    UpdateProfileRequest,
    UserResponse,
)
from app.services import accounts
from app.services.notifications import BaseNotificationService, get_notification_service

router = APIRouter(
    prefix="/api/users",
    tags=["Users"],
    dependencies=[Depends(RateLimit("api"))],
    responses={401: {"model": ErrorResponse}},
)


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(auth: AuthContext = Depends(get_current_auth)) -> ProfileResponse:
    return ProfileResponse(user=UserResponse.model_validate(auth.user))


@router.put(
    "/profile",
    response_model=ProfileResponse,
    responses={409: {"model": ErrorResponse}},
)
async def update_profile(
    body: UpdateProfileRequest,
    auth: AuthContext = Depends(get_current_auth),
    db: AsyncSession = Depends(get_db),
    notifier: BaseNotificationService = Depends(get_notification_service),
) -> ProfileResponse:
    """
    Update name and/or email. Changing the email clears the verified flag
    and sends a verification link to the new address.
    """
    warning = await accounts.update_profile(
        db,
        auth.user,
        notifier,
        name=body.name,
        email=body.email,
    )
    return ProfileResponse(user=UserResponse.model_validate(auth.user), warning=warning)


@router.put(
    "/password",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}},
)
async def change_password(
    body: ChangePasswordRequest,
    auth: AuthContext = Depends(get_current_auth),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    await accounts.change_password(db, auth.user, body.current_password, body.new_password)
    return MessageResponse(message="Password changed successfully")
