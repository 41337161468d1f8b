"""
Account Bootstrap & Profile Services

Registration creates a User and its owning Account together. The two rows
reference each other (users.account_id / accounts.owner_id), so they are
written in three steps inside one transaction:

    1. insert the user with no account
    2. insert the account owned by that user
    3. point the user at the account

Any failure rolls back all three steps. There is no public way to create
a user or an account on its own.

Author: Khalil Bannouri
Version: 3.0.0
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.errors import (
    DuplicateEmail,
    EmailNotVerified,
    InvalidCredentials,
    UserNotFound,
    WeakPassword,
)
from app.core.security import hash_password, password_policy_violations, verify_password
from app.database import transaction
from app.models import Account, Order, OrderItem, User, VerificationToken
from app.services import verification
from app.services.notifications import BaseNotificationService

logger = logging.getLogger(__name__)


@dataclass
class RegistrationResult:
    """Outcome of a registration: the new pair plus an optional soft warning."""
    user: User
    account: Account
    warning: Optional[str] = None


def normalize_email(email: str) -> str:
    return email.strip().lower()


def check_password_policy(password: str) -> None:
    problems = password_policy_violations(password)
    if problems:
        raise WeakPassword(
            "Password must contain " + ", ".join(problems),
            detail=problems,
        )


def default_account_name(user_name: str) -> str:
    return f"{user_name}'s Restaurant"


async def _email_taken(
    session: AsyncSession,
    email: str,
    exclude_user_id: Optional[str] = None,
) -> bool:
    query = select(User.id).where(User.email == email)
    if exclude_user_id:
        query = query.where(User.id != exclude_user_id)
    result = await session.execute(query)
    return result.first() is not None


# =============================================================================
# ACCOUNT BOOTSTRAP
# =============================================================================

async def _insert_user(
    session: AsyncSession,
    name: str,
    email: str,
    password_hash: str,
) -> User:
    user = User(
        name=name,
        email=email,
        password_hash=password_hash,
        email_verified=False,
        account_id=None,
    )
    session.add(user)
    await session.flush()
    return user


async def _insert_account(session: AsyncSession, name: str, owner_id: str) -> Account:
    account = Account(name=name, owner_id=owner_id)
    session.add(account)
    await session.flush()
    return account


async def _link_user(session: AsyncSession, user: User, account: Account) -> None:
    user.account_id = account.id
    await session.flush()


async def _bootstrap(
    session: AsyncSession,
    name: str,
    email: str,
    password: str,
    with_token: bool,
) -> tuple[User, Account, Optional[str]]:
    email = normalize_email(email)
    check_password_policy(password)
    password_hash = hash_password(password)
    token = None

    try:
        async with transaction(session):
            # Checked inside the transaction; the unique index settles races
            if await _email_taken(session, email):
                raise DuplicateEmail()

            user = await _insert_user(session, name, email, password_hash)
            account = await _insert_account(session, default_account_name(name), user.id)
            await _link_user(session, user, account)

            if with_token:
                token = await verification.stage_token(session, user.id)
    except IntegrityError as e:
        logger.info(f"Registration for {email} lost a race on the unique email index")
        raise DuplicateEmail() from e

    logger.info(f"Bootstrapped user {user.id} with account {account.id}")
    return user, account, token


async def bootstrap_account(
    session: AsyncSession,
    name: str,
    email: str,
    password: str,
) -> tuple[User, Account]:
    """
    Atomically create a user and the account it owns.

    Args:
        session: Database session with no pending writes
        name: Display name of the user
        email: Email address (compared case-insensitively)
        password: Plaintext password, checked against the strength policy

    Raises:
        WeakPassword: Policy check failed (nothing was written)
        DuplicateEmail: Email already registered
        PersistenceFailure: Any other storage error (nothing was written)

    Returns:
        The mutually referencing (user, account) pair
    """
    user, account, _ = await _bootstrap(session, name, email, password, with_token=False)
    return user, account


async def register(
    session: AsyncSession,
    name: str,
    email: str,
    password: str,
    notifier: BaseNotificationService,
) -> RegistrationResult:
    """
    Full registration: bootstrap the pair, issue a verification token and
    send the verification email.

    The token is stored in the bootstrap transaction; the email is sent
    after it commits. A failed dispatch leaves the new account in place and
    is reported as a warning; the user can ask for a new link through
    resend-verification.
    """
    user, account, token = await _bootstrap(session, name, email, password, with_token=True)
    warning = await verification.send_verification_email(notifier, user, token)
    return RegistrationResult(user=user, account=account, warning=warning)


# =============================================================================
# AUTHENTICATION
# =============================================================================

async def _match_credentials(session: AsyncSession, email: str, password: str) -> User:
    result = await session.execute(select(User).where(User.email == normalize_email(email)))
    user = result.scalar_one_or_none()

    if user is None or not verify_password(password, user.password_hash):
        raise InvalidCredentials()
    return user


async def check_credentials(session: AsyncSession, email: str, password: str) -> User:
    """
    Return the user matching email and password.

    Raises:
        InvalidCredentials: Unknown email or wrong password
    """
    async with transaction(session):
        return await _match_credentials(session, email, password)


async def authenticate(
    session: AsyncSession,
    email: str,
    password: str,
) -> tuple[User, Account]:
    """
    Log a user in.

    Raises:
        InvalidCredentials: Unknown email or wrong password
        EmailNotVerified: Verification required and not done yet
    """
    async with transaction(session):
        user = await _match_credentials(session, email, password)

        if get_settings().require_verified_email and not user.email_verified:
            raise EmailNotVerified()

        account = await session.get(Account, user.account_id)
        if account is None:
            logger.error(f"User {user.id} has no account")
            raise InvalidCredentials()

    logger.info(f"User {user.id} logged in")
    return user, account


async def get_user_with_account(session: AsyncSession, user_id: str) -> tuple[User, Account]:
    async with transaction(session):
        user = await session.get(User, user_id)
        if user is None or user.account_id is None:
            raise UserNotFound()

        account = await session.get(Account, user.account_id)
        if account is None:
            raise UserNotFound()
    return user, account


# =============================================================================
# PROFILE
# =============================================================================

async def update_profile(
    session: AsyncSession,
    user: User,
    notifier: BaseNotificationService,
    name: Optional[str] = None,
    email: Optional[str] = None,
) -> Optional[str]:
    """
    Change the display name and/or email of ``user``.

    A new email address must be verified again: the verified flag is
    cleared and a fresh token, stored in the same transaction as the new
    address, is sent to it.

    Returns:
        The dispatch warning, if a verification email was attempted and failed
    """
    new_email = normalize_email(email) if email is not None else None
    email_changed = new_email is not None and new_email != user.email
    token = None

    try:
        async with transaction(session):
            if email_changed:
                if await _email_taken(session, new_email, exclude_user_id=user.id):
                    raise DuplicateEmail()
                user.email = new_email
                user.email_verified = False
                token = await verification.stage_token(session, user.id)
            if name is not None:
                user.name = name
    except IntegrityError as e:
        raise DuplicateEmail() from e

    if token is None:
        return None

    logger.info(f"User {user.id} changed email, verification required")
    return await verification.send_verification_email(notifier, user, token)


async def change_password(
    session: AsyncSession,
    user: User,
    current_password: str,
    new_password: str,
) -> None:
    """
    Raises:
        InvalidCredentials: ``current_password`` is wrong
        WeakPassword: ``new_password`` fails the policy
    """
    if not verify_password(current_password, user.password_hash):
        raise InvalidCredentials("Current password is incorrect")
    check_password_policy(new_password)

    async with transaction(session):
        user.password_hash = hash_password(new_password)

    logger.info(f"Password changed for user {user.id}")


# =============================================================================
# ACCOUNT
# =============================================================================

async def rename_account(session: AsyncSession, account: Account, name: str) -> Account:
    async with transaction(session):
        account.name = name
    return account


async def delete_account(session: AsyncSession, account: Account) -> None:
    """
    Remove an account with its orders, users and their tokens.

    The user -> account references are cleared first so that the cycle can
    be taken apart under enforced foreign keys.
    """
    async with transaction(session):
        result = await session.execute(select(User.id).where(User.account_id == account.id))
        user_ids = set(result.scalars().all())
        user_ids.add(account.owner_id)

        order_ids = select(Order.id).where(Order.account_id == account.id)
        await session.execute(
            delete(OrderItem).where(OrderItem.order_id.in_(order_ids)),
            execution_options={"synchronize_session": False},
        )
        await session.execute(
            delete(Order).where(Order.account_id == account.id),
            execution_options={"synchronize_session": False},
        )
        await session.execute(
            delete(VerificationToken).where(VerificationToken.user_id.in_(user_ids)),
            execution_options={"synchronize_session": False},
        )
        await session.execute(
            update(User).where(User.id.in_(user_ids)).values(account_id=None),
            execution_options={"synchronize_session": False},
        )
        await session.execute(
            delete(Account).where(Account.id == account.id),
            execution_options={"synchronize_session": False},
        )
        await session.execute(
            delete(User).where(User.id.in_(user_ids)),
            execution_options={"synchronize_session": False},
        )

    session.expunge_all()
    logger.info(f"Account {account.id} deleted with {len(user_ids)} user(s)")
