"""
Development Utilities

Only served when ENV_MODE=development. Lets local scripts finish the
verification flow without a mailbox.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.errors import Forbidden, TokenNotFound, UserNotFound
from app.database import get_db
from app.models import User
from app.schemas import DevTokenResponse, ErrorResponse
from app.services import verification

router = APIRouter(prefix="/api/dev", tags=["Development"])


@router.get(
    "/verification-token",
    response_model=DevTokenResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_verification_token(
    email: str = Query(..., min_length=3),
    db: AsyncSession = Depends(get_db),
) -> DevTokenResponse:
    """Return the live verification token of a user."""
    if not get_settings().is_development:
        raise Forbidden("Development endpoints only available in development mode")

    result = await db.execute(select(User).where(User.email == email.strip().lower()))
    user = result.scalar_one_or_none()
    if user is None:
        raise UserNotFound()

    record = await verification.find_live_token(db, user.id)
    if record is None:
        raise TokenNotFound("No pending verification token")

    return DevTokenResponse(token=record.token, expires_at=record.expires_at)
