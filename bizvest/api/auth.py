from fastapi import APIRouter, status
from datetime import timedelta

from bizvest.api.deps import DbSession, create_access_token
from bizvest.config import settings
from bizvest.exceptions import UnauthorizedError
from bizvest.schemas.auth import UserCreate, LoginRequest, Token
from bizvest.schemas.user import UserResponse
from bizvest.services.user_service import UserService

router = APIRouter()


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserCreate,
    db: DbSession,
):
    """Register a new user."""
    user = await UserService(db).register(user_data)
    return user


@router.post("/login", response_model=Token)
async def login(
    login_data: LoginRequest,
    db: DbSession,
):
    """Authenticate user and return JWT token."""
    user = await UserService(db).authenticate(login_data.username, login_data.password)
    if user is None:
        raise UnauthorizedError("Incorrect username or password")

    access_token = create_access_token(
        data={"sub": str(user.id)},
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    return Token(access_token=access_token, token=access_token, token_type="bearer")
