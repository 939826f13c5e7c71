from fastapi import APIRouter

from bizvest.api.deps import DbSession, CurrentUser
from bizvest.exceptions import ForbiddenError
from bizvest.schemas.user import UserResponse, UserUpdate
from bizvest.services.user_service import UserService

router = APIRouter()


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: int, db: DbSession):
    """Get a single user by ID."""
    return await UserService(db).get_user(user_id)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    user_data: UserUpdate,
    db: DbSession,
    current_user: CurrentUser,
):
    """Update your own account."""
    if user_id != current_user.id:
        raise ForbiddenError("You can only update your own account")
    return await UserService(db).update_user(current_user, user_data)
