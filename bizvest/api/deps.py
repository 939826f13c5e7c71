"""
FastAPI Dependencies

Provides dependency injection for database sessions, authentication,
ownership checks and the AI gateway.

SECURITY NOTES:
- JWT payloads are never logged
- Bearer token is the only auth method
"""

from typing import Annotated
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from jose import JWTError, jwt
from datetime import datetime, timedelta, timezone
import logging

from bizvest.database import get_db
from bizvest.config import settings
from bizvest.exceptions import AIServiceError, UnauthorizedError, ForbiddenError
from bizvest.models.business import Business
from bizvest.models.user import User
from bizvest.schemas.auth import TokenData
from bizvest.services.ai_gateway import AIGateway
from bizvest.services.business_service import BusinessService

logger = logging.getLogger(__name__)


security = HTTPBearer(auto_error=False)


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Create a JWT access token."""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return encoded_jwt


async def get_current_user(
    db: Annotated[AsyncSession, Depends(get_db)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)] = None,
) -> User:
    """
    Get current user from the Bearer JWT.

    SECURITY:
    - JWT payloads are NOT logged to prevent credential leakage
    """
    credentials_exception = UnauthorizedError("Could not validate credentials")

    if not credentials:
        raise credentials_exception

    try:
        payload = jwt.decode(credentials.credentials, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        # SECURITY: Never log JWT payloads
        sub = payload.get("sub")
        if sub is None:
            raise credentials_exception
        token_data = TokenData(user_id=int(sub))
    except JWTError:
        logger.warning("JWT validation failed")
        raise credentials_exception
    except ValueError:
        logger.warning("Invalid token format")
        raise credentials_exception

    result = await db.execute(
        select(User).where(User.id == token_data.user_id, User.deleted_at.is_(None))
    )
    user = result.scalar_one_or_none()

    if user is None:
        raise credentials_exception
    if not user.is_active:
        raise ForbiddenError("User account is disabled")

    logger.debug("User authenticated", extra={"user_id": user.id})
    return user


async def get_owned_business(
    business_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> Business:
    """Resolve the ``business_id`` path parameter to a business the caller owns."""
    return await BusinessService(db).get_owned_business(business_id, current_user)


def get_ai_gateway(request: Request) -> AIGateway:
    """Dependency injection for the AI gateway built in the app lifespan."""
    gateway = getattr(request.app.state, "ai_gateway", None)
    if gateway is None:
        logger.error("AI gateway requested before application startup")
        raise AIServiceError("AI gateway is not available")
    return gateway


# Type aliases for dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db)]
CurrentUser = Annotated[User, Depends(get_current_user)]
OwnedBusiness = Annotated[Business, Depends(get_owned_business)]
Gateway = Annotated[AIGateway, Depends(get_ai_gateway)]
