"""
FastAPI Dependencies

Session-credential authentication and rate-limit tiers shared by the routers.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import RateLimited, Unauthorized, UserNotFound
from app.core.security import decode_access_token
from app.database import get_db
from app.models import Account, User
from app.services import accounts
from app.services.rate_limit import BaseRateLimiter, get_rate_limiter, get_tiers

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class AuthContext:
    """The authenticated user and the account it belongs to."""
    user: User
    account: Account


def client_identifier(request: Request) -> str:
    return request.client.host if request.client else "unknown"


async def get_current_auth(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> AuthContext:
    """Resolve the bearer session credential into the caller's user and account."""
    if credentials is None:
        raise Unauthorized()

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise Unauthorized("Invalid or expired token")

    try:
        user, account = await accounts.get_user_with_account(db, payload["userId"])
    except UserNotFound:
        raise Unauthorized("User no longer exists")

    return AuthContext(user=user, account=account)


class RateLimit:
    """
    Dependency rejecting requests over a tier's limit, keyed by client address.

    Usage:
        @router.post("/login", dependencies=[Depends(RateLimit("auth"))])
    """

    def __init__(self, tier_name: str):
        self.tier_name = tier_name

    async def __call__(
        self,
        request: Request,
        limiter: BaseRateLimiter = Depends(get_rate_limiter),
    ) -> None:
        tier = get_tiers()[self.tier_name]
        if not await limiter.allow(tier, client_identifier(request)):
            raise RateLimited()
