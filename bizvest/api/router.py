from fastapi import APIRouter
from bizvest.api import (
    auth,
    users,
    business,
    investment,
    genai,
)

api_router = APIRouter()

# Routes are mounted at the application root
api_router.include_router(auth.router, tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(business.router, prefix="/business", tags=["business"])
api_router.include_router(investment.router, prefix="/investment", tags=["investment"])
api_router.include_router(genai.router, prefix="/genai", tags=["genai"])
