"""Profile API routes."""

from fastapi import APIRouter

from src.api.deps import CurrentUser
from src.schemas.auth import ProfileResponse
from src.services.profile_service import ProfileService

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get(
    "/me",
    response_model=ProfileResponse,
    summary="Get current user's profile",
    description="Returns the caller's profile, creating a parent profile on first use.",
)
async def get_my_profile(user: CurrentUser) -> ProfileResponse:
    service = ProfileService()
    profile = await service.get_or_create_profile(user.user_id, user.email, user.name)
    return ProfileResponse(**profile)
