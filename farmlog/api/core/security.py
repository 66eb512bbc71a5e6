from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from farmlog.api.config import settings
from farmlog.api.core.database import get_db
from farmlog.api.models.user import User
from farmlog.errors import AuthError

# Password hashing context
# Configure bcrypt to truncate passwords at 72 bytes automatically
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__truncate_error=False,  # Don't raise error on long passwords
    bcrypt__ident="2b"  # Use 2b variant to avoid wrap-around bugs
)

# HTTP Bearer token scheme; a missing header is reported as 401 below
security = HTTPBearer(auto_error=False)

INVALID_CREDENTIALS = "Invalid credentials"


def _truncate(password: str) -> str:
    password_bytes = password.encode('utf-8')[:72]
    return password_bytes.decode('utf-8', errors='ignore')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against a hash

    Applies same 72-byte truncation as get_password_hash for consistency
    """
    return pwd_context.verify(_truncate(plain_password), hashed_password)


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt

    Note: bcrypt has a 72-byte limit. We truncate to 72 bytes to avoid errors.
    """
    return pwd_context.hash(_truncate(password))


@lru_cache()
def _dummy_hash() -> str:
    return get_password_hash("farmlog-unknown-user")


def verify_unknown_user(password: str) -> bool:
    """
    Burn one hash verification for a username that does not exist

    Keeps login timing the same whether or not the user exists. Always False.
    """
    verify_password(password, _dummy_hash())
    return False


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create JWT access token

    Args:
        data: Data to encode in token (typically {"sub": user_id})
        expires_delta: Token expiration time (default: 7 days)

    Returns:
        Encoded JWT token
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            days=settings.ACCESS_TOKEN_EXPIRE_DAYS
        )

    to_encode.update({"exp": expire, "type": "access"})

    encoded_jwt = jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )

    return encoded_jwt


def decode_token(token: str) -> dict:
    """
    Decode and validate JWT token

    Args:
        token: JWT token string

    Returns:
        Decoded token payload

    Raises:
        AuthError: If token is invalid or expired
    """
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
    except JWTError:
        raise AuthError("Could not validate credentials")


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> str:
    """
    Dependency to get current user ID from JWT token

    Usage:
        @router.get("/protected")
        async def protected_route(user_id: str = Depends(get_current_user_id)):
            ...
    """
    if credentials is None:
        raise AuthError("Not authenticated")

    payload = decode_token(credentials.credentials)

    # Verify token type
    if payload.get("type") != "access":
        raise AuthError("Could not validate credentials")

    user_id = payload.get("sub")
    if user_id is None:
        raise AuthError("Could not validate credentials")

    # Tokens outlive deleted accounts
    result = await db.execute(select(User.id).where(User.id == str(user_id)))
    if result.scalar_one_or_none() is None:
        raise AuthError("Could not validate credentials")

    return str(user_id)
