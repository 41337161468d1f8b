"""
Email Verification Workflow

Lifecycle of single-use verification tokens:

    Unverified --issue_token--> Unverified + pending token
               --consume_token--> Verified (terminal)

Issuing a token deletes any earlier token of the same user, so at most one
token is live per user. Consuming deletes the token and flips the user's
verified flag in the same transaction.

Author: Khalil Bannouri
Version: 3.0.0
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.errors import (
    EMAIL_DISPATCH_FAILURE,
    AlreadyVerified,
    PersistenceFailure,
    RateLimited,
    TokenExpired,
    TokenNotFound,
    UserNotFound,
)
from app.core.security import generate_verification_token
from app.database import transaction
from app.models import User, VerificationToken
from app.services.notifications import BaseNotificationService

logger = logging.getLogger(__name__)

# Rate-limit check point for resends. Receives the user's email and returns
# False to reject before any token is generated.
ResendGate = Callable[[str], Awaitable[bool]]


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


async def stage_token(
    session: AsyncSession,
    user_id: str,
    ttl: Optional[timedelta] = None,
) -> str:
    """
    Replace any token of ``user_id`` with a fresh one, inside the caller's
    open transaction. Nothing is committed here.

    Args:
        session: Database session with an open unit of work
        user_id: Owner of the token
        ttl: Token lifetime (defaults to VERIFICATION_TOKEN_TTL_HOURS)

    Returns:
        The 64-character hex token
    """
    if ttl is None:
        ttl = timedelta(hours=get_settings().verification_token_ttl_hours)

    token = generate_verification_token()
    expires_at = datetime.now(timezone.utc) + ttl

    await session.execute(
        delete(VerificationToken).where(VerificationToken.user_id == user_id)
    )
    session.add(VerificationToken(token=token, user_id=user_id, expires_at=expires_at))
    return token


async def issue_token(
    session: AsyncSession,
    user_id: str,
    ttl: Optional[timedelta] = None,
) -> str:
    """Create a fresh verification token for ``user_id`` and commit it."""
    try:
        async with transaction(session):
            token = await stage_token(session, user_id, ttl)
    except IntegrityError as e:
        logger.exception(f"Could not store verification token for user {user_id}")
        raise PersistenceFailure() from e

    logger.info(f"Verification token issued for user {user_id}")
    return token


async def consume_token(session: AsyncSession, token: str) -> str:
    """
    Redeem a verification token.

    Raises:
        TokenNotFound: Unknown or already used token
        TokenExpired: Token past its expiry (the row is deleted)

    Returns:
        Id of the now verified user
    """
    expired = False

    async with transaction(session):
        result = await session.execute(
            select(VerificationToken).where(VerificationToken.token == token)
        )
        record = result.scalar_one_or_none()
        if record is None:
            raise TokenNotFound()

        user_id = record.user_id
        expired = _as_utc(record.expires_at) <= datetime.now(timezone.utc)

        # Row count guards against a concurrent consume of the same token
        deleted = await session.execute(
            delete(VerificationToken).where(VerificationToken.id == record.id)
        )
        if deleted.rowcount != 1:
            raise TokenNotFound()

        if not expired:
            user = await session.get(User, user_id)
            if user is None:
                raise TokenNotFound()
            user.email_verified = True

    if expired:
        logger.info(f"Expired verification token removed for user {user_id}")
        raise TokenExpired()

    logger.info(f"Email verified for user {user_id}")
    return user_id


async def find_live_token(session: AsyncSession, user_id: str) -> Optional[VerificationToken]:
    result = await session.execute(
        select(VerificationToken).where(VerificationToken.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def send_verification_email(
    notifier: BaseNotificationService,
    user: User,
    token: str,
) -> Optional[str]:
    """
    Dispatch the verification link.

    Dispatch failures never propagate: they are logged and reported back as
    the EmailDispatchFailure warning kind.

    Returns:
        None on success, "EmailDispatchFailure" otherwise
    """
    try:
        result = await notifier.send_verification_email(
            to_email=user.email,
            name=user.name,
            token=token,
        )
    except Exception as e:
        logger.exception(f"Verification email to {user.email} raised: {e}")
        return EMAIL_DISPATCH_FAILURE

    if not result.success:
        logger.warning(
            f"Verification email to {user.email} failed via {result.provider}: "
            f"{result.error_message}"
        )
        return EMAIL_DISPATCH_FAILURE

    return None


async def resend(
    session: AsyncSession,
    email: str,
    notifier: BaseNotificationService,
    gate: Optional[ResendGate] = None,
) -> Optional[str]:
    """
    Re-issue a verification token for the user registered with ``email``.

    The lookup, the checks and the new token share one transaction, so a
    refused resend releases the session like any other failure.

    Raises:
        UserNotFound: No user with this email
        AlreadyVerified: Email already verified, no token issued
        RateLimited: ``gate`` refused the resend

    Returns:
        The dispatch warning, if any
    """
    normalized = email.strip().lower()

    try:
        async with transaction(session):
            result = await session.execute(select(User).where(User.email == normalized))
            user = result.scalar_one_or_none()

            if user is None:
                raise UserNotFound()
            if user.email_verified:
                raise AlreadyVerified()
            if gate is not None and not await gate(user.email):
                raise RateLimited()

            token = await stage_token(session, user.id)
    except IntegrityError as e:
        logger.exception(f"Could not store verification token for {normalized}")
        raise PersistenceFailure() from e

    logger.info(f"Verification token re-issued for user {user.id}")
    return await send_verification_email(notifier, user, token)
