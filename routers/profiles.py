from fastapi import APIRouter, Depends, HTTPException

from core.roles import has_permission
from dependencies.auth import get_current_user, requires_permission
from dependencies.services import get_profile_store
from models.profile import ProfileRead, ProfileUpdate
from models.session import CurrentUser
from services.profile_store import ProfileStore


router = APIRouter(
    prefix="/profiles",
    tags=["Profiles"],
)


@router.get("/me", response_model=ProfileRead, summary="Own profile")
def read_my_profile(
    current_user: CurrentUser = Depends(get_current_user),
    store: ProfileStore = Depends(get_profile_store),
):
    profile = store.get_profile(current_user.id)
    if not profile:
        raise HTTPException(404, "Profile not found")
    return profile


@router.patch("/me", response_model=ProfileRead, summary="Edit own profile (residents)")
def update_my_profile(
    payload: ProfileUpdate,
    current_user: CurrentUser = Depends(requires_permission("profile:edit")),
    store: ProfileStore = Depends(get_profile_store),
):
    """
    A changed e-mail is also pushed to the identity provider; if that is
    refused the profile row is restored and the error returned.
    """
    return store.update_profile(current_user.id, payload.model_dump(exclude_unset=True))


@router.get("/{profile_id}", response_model=ProfileRead, summary="Read a profile")
def read_profile(
    profile_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    store: ProfileStore = Depends(get_profile_store),
):
    if profile_id != current_user.id and not has_permission(current_user.role, "profiles:read_any"):
        raise HTTPException(403, "You can only view your own profile")

    profile = store.get_profile(profile_id)
    if not profile:
        raise HTTPException(404, "Profile not found")
    return profile
