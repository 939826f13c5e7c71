"""
User Service

Registration, credential checks and self-service profile updates.
Passwords are only ever stored as bcrypt hashes.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from typing import Optional
import bcrypt
import logging

from bizvest.exceptions import BadRequestError, ErrorCode, NotFoundError
from bizvest.models.user import User
from bizvest.schemas.auth import UserCreate
from bizvest.schemas.user import UserUpdate

logger = logging.getLogger(__name__)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash."""
    return bcrypt.checkpw(
        plain_password.encode('utf-8'),
        hashed_password.encode('utf-8')
    )


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return bcrypt.hashpw(
        password.encode('utf-8'),
        bcrypt.gensalt()
    ).decode('utf-8')


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user(self, user_id: int) -> User:
        result = await self.db.execute(
            select(User).where(User.id == user_id, User.deleted_at.is_(None))
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    async def _ensure_unique(self, username: Optional[str], email: Optional[str], exclude_id: Optional[int] = None):
        conditions = []
        if username:
            conditions.append(User.username == username)
        if email:
            conditions.append(User.email == email)
        if not conditions:
            return

        query = select(User).where(or_(*conditions))
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)
        result = await self.db.execute(query)
        existing = result.scalars().first()
        if existing is not None:
            field = "Username" if username and existing.username == username else "Email"
            raise BadRequestError(f"{field} already registered", code=ErrorCode.ALREADY_EXISTS)

    async def register(self, data: UserCreate) -> User:
        await self._ensure_unique(data.username, data.email)

        user = User(
            username=data.username,
            email=data.email,
            hashed_password=get_password_hash(data.password),
        )
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        logger.info(f"Registered user {user.id}")
        return user

    async def authenticate(self, username: str, password: str) -> Optional[User]:
        """The matching active user, or None for bad credentials."""
        result = await self.db.execute(
            select(User).where(User.username == username, User.deleted_at.is_(None))
        )
        user = result.scalar_one_or_none()
        if user is None or not verify_password(password, user.hashed_password):
            return None
        if not user.is_active:
            return None
        return user

    async def update_user(self, user: User, data: UserUpdate) -> User:
        update_data = data.model_dump(exclude_unset=True, exclude_none=True)
        await self._ensure_unique(update_data.get("username"), update_data.get("email"), exclude_id=user.id)

        password = update_data.pop("password", None)
        if password:
            user.hashed_password = get_password_hash(password)
        for field, value in update_data.items():
            setattr(user, field, value)

        await self.db.commit()
        await self.db.refresh(user)
        return user
