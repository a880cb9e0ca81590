"""
Authentication Service

Password hashing and account lookup. Error messages returned to clients
stay generic so they never reveal whether an email is registered.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from werkzeug.security import check_password_hash, generate_password_hash

from storefront.models import User

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
SIGNUP_FAILED = "Unable to create account"


class AccountExistsError(Exception):
    """Raised when signing up with an email that already has an account."""


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    return check_password_hash(password_hash, password)


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


async def create_account(
    db: AsyncSession,
    name: str,
    email: str,
    password: str,
    phone: Optional[str] = None,
) -> User:
    """
    Add a new account to the session (not committed).

    Raises:
        AccountExistsError: If the email is already registered
    """
    if await get_user_by_email(db, email) is not None:
        raise AccountExistsError(email)

    user = User(
        name=name,
        email=email.lower(),
        password_hash=hash_password(password),
        phone=phone,
        reward_points=0,
        welcome_bonus_granted=False,
    )
    db.add(user)
    await db.flush()
    logger.info(f"Account created: {user.id}")
    return user


async def authenticate(db: AsyncSession, email: str, password: str) -> Optional[User]:
    """Return the user for valid credentials, None otherwise."""
    user = await get_user_by_email(db, email)
    if user is None or not verify_password(user.password_hash, password):
        logger.info("Failed login attempt")
        return None
    return user
