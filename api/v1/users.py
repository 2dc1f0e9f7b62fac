"""
User endpoints.

Profile self-edits, public profiles and administrative account overrides.
"""

import logging
from typing import Optional, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from clubhub.auth.validation import ROLE_SUPER_ADMIN

from ..deps import ServicesDep, CurrentUser, require_role

logger = logging.getLogger(__name__)

router = APIRouter()


class ProfileUpdateRequest(BaseModel):
    """Self-editable profile fields; anything else is ignored."""
    full_name: Optional[str] = None
    phone: Optional[str] = None
    bio: Optional[str] = None
    skills: Optional[List[str]] = None
    interests: Optional[List[str]] = None


class ProfilePictureRequest(BaseModel):
    """Avatar reference."""
    profile_picture: Optional[str] = Field(None, description="Image URL, or null to clear")


class AccountStatusRequest(BaseModel):
    """Administrative override."""
    is_active: Optional[bool] = Field(None, description="Activate or deactivate the account")
    revoke_verification: bool = Field(False, description="Require email verification again")
    role: Optional[str] = Field(None, description="student, club_admin or super_admin")


@router.put("/profile")
async def update_profile(
    request: ProfileUpdateRequest,
    current_user: CurrentUser,
    services: ServicesDep
):
    """Update the caller's own profile."""
    account = services.accounts.update_profile(
        current_user.user_id,
        request.model_dump(exclude_unset=True)
    )
    return {"success": True, "message": "Profile updated successfully", "user": account.to_public_dict()}


@router.post("/profile-picture")
async def set_profile_picture(
    request: ProfilePictureRequest,
    current_user: CurrentUser,
    services: ServicesDep
):
    """Set or clear the caller's avatar."""
    account = services.accounts.set_profile_picture(current_user.user_id, request.profile_picture)
    return {"success": True, "user": account.to_public_dict()}


@router.get("/{user_id}")
async def get_user(user_id: str, current_user: CurrentUser, services: ServicesDep):
    """Public profile of any account."""
    account = services.accounts.get_account(user_id)
    return {"success": True, "user": account.to_public_dict()}


@router.patch("/{user_id}/status")
async def update_account_status(
    user_id: str,
    request: AccountStatusRequest,
    services: ServicesDep,
    admin=Depends(require_role(ROLE_SUPER_ADMIN))
):
    """
    Administrative override (super_admin only).

    Can deactivate, reactivate, revoke verification or change the role.
    Verification itself can only be granted through the OTP flow.
    """
    account = services.accounts.admin_update(
        admin,
        user_id,
        is_active=request.is_active,
        revoke_verification=request.revoke_verification,
        role=request.role
    )
    return {"success": True, "user": account.to_public_dict()}
