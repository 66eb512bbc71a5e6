from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from farmlog.api.core.database import get_db
from farmlog.api.core.security import (
    INVALID_CREDENTIALS,
    create_access_token,
    get_password_hash,
    verify_password,
    verify_unknown_user,
)
from farmlog.api.models.user import User
from farmlog.api.schemas.user import MessageResponse, TokenResponse, UserCreate, UserLogin
from farmlog.errors import AuthError, ConflictError
from farmlog.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.post("/register", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserCreate,
    db: AsyncSession = Depends(get_db)
):
    """
    Register a new user

    Only a salted bcrypt hash of the password is stored.
    """
    result = await db.execute(select(User).where(User.username == user_data.username))
    if result.scalar_one_or_none():
        raise ConflictError("Username already exists")

    user = User(
        username=user_data.username,
        hashed_password=get_password_hash(user_data.password)
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration
        await db.rollback()
        raise ConflictError("Username already exists")

    logger.info(f"Registered user {user.username}")
    return MessageResponse(message="User registered")


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """
    Exchange username and password for a 7-day bearer token

    Unknown users and wrong passwords get the same response.
    """
    result = await db.execute(select(User).where(User.username == credentials.username.strip()))
    user = result.scalar_one_or_none()

    if user is None:
        verify_unknown_user(credentials.password)
        raise AuthError(INVALID_CREDENTIALS)

    if not verify_password(credentials.password, user.hashed_password):
        raise AuthError(INVALID_CREDENTIALS)

    return TokenResponse(token=create_access_token(data={"sub": user.id}))
