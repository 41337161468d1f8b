"""
Security Utilities

Credential and token helpers:
    - Password hashing / verification (passlib, argon2)
    - Password strength policy
    - Session credentials (signed JWT carrying userId, email, accountId)
    - Single-use email verification tokens

Author: Khalil Bannouri
Version: 3.0.0
"""

import re
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import Settings, get_settings

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")

# 32 random bytes, rendered as 64 hex characters
VERIFICATION_TOKEN_BYTES = 32

SPECIAL_CHARACTERS = re.compile(r"[^A-Za-z0-9]")


# =============================================================================
# PASSWORDS
# =============================================================================

def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def password_policy_violations(
    password: str,
    settings: Optional[Settings] = None,
) -> list[str]:
    """
    Check a plaintext password against the configured strength policy.

    Returns:
        Human-readable list of unmet requirements (empty if the password passes)
    """
    settings = settings or get_settings()
    problems = []

    if len(password) < settings.password_min_length:
        problems.append(f"at least {settings.password_min_length} characters")
    if settings.password_require_uppercase and not re.search(r"[A-Z]", password):
        problems.append("an uppercase letter")
    if settings.password_require_lowercase and not re.search(r"[a-z]", password):
        problems.append("a lowercase letter")
    if settings.password_require_digit and not re.search(r"\d", password):
        problems.append("a digit")
    if settings.password_require_special and not SPECIAL_CHARACTERS.search(password):
        problems.append("a special character")

    return problems


# =============================================================================
# SESSION CREDENTIALS
# =============================================================================

def create_access_token(
    user_id: str,
    email: str,
    account_id: Optional[str],
    expires_delta: Optional[timedelta] = None,
    settings: Optional[Settings] = None,
) -> str:
    """
    Sign a session credential for an authenticated user.

    Args:
        user_id: Subject of the token
        email: User email at issuance
        account_id: Owning account id
        expires_delta: Custom lifetime (defaults to ACCESS_TOKEN_EXPIRE_MINUTES)
    """
    settings = settings or get_settings()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    claims = {
        "sub": user_id,
        "userId": user_id,
        "email": email,
        "accountId": account_id,
        "exp": expire,
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(
    token: str,
    settings: Optional[Settings] = None,
) -> Optional[dict[str, Any]]:
    """
    Validate signature and expiry of a session credential.

    Returns:
        The claims, or None when the token is invalid or expired
    """
    settings = settings or get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        return None

    if not payload.get("userId"):
        return None
    return payload


# =============================================================================
# VERIFICATION TOKENS
# =============================================================================

def generate_verification_token() -> str:
    """Cryptographically random, fixed-length hex token (256 bits)."""
    return secrets.token_hex(VERIFICATION_TOKEN_BYTES)
