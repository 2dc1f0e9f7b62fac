"""
Club endpoints.

Public listing and detail pages; creation and updates by club admins.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Query, status

from ..deps import ServicesDep, CurrentUser, VerifiedUser

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def list_clubs(
    services: ServicesDep,
    category: Optional[str] = Query(None, description="Category, or 'all'"),
    search: Optional[str] = Query(None, description="Search name, description and tags"),
    status_: str = Query("active", alias="status", description="active or inactive"),
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100)
):
    """List clubs, newest first."""
    result = services.clubs.list_clubs(
        category=category,
        search=search,
        status=status_,
        page=page,
        limit=limit
    )
    return {
        "success": True,
        "items": [club.to_dict() for club in result.items],
        "pagination": result.to_dict()
    }


@router.get("/managed")
async def managed_clubs(current_user: CurrentUser, services: ServicesDep):
    """Clubs the caller administers."""
    clubs = services.clubs.managed_clubs(current_user)
    return {"success": True, "items": [club.to_dict() for club in clubs]}


@router.get("/{club_id}")
async def get_club(club_id: str, services: ServicesDep):
    """Club detail. Each call counts as a view."""
    club = services.clubs.get_club(club_id, count_view=True)
    return {"success": True, "club": services.clubs.club_detail(club)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_club(
    current_user: VerifiedUser,
    services: ServicesDep,
    data: Dict[str, Any] = Body(...)
):
    """
    Create a club.

    Requires a verified club_admin or super_admin; the creator becomes
    the club's "Super Admin".
    """
    club = services.clubs.create_club(current_user, data)
    return {"success": True, "message": "Club created successfully", "club": club.to_dict()}


@router.put("/{club_id}")
async def update_club(
    club_id: str,
    current_user: VerifiedUser,
    services: ServicesDep,
    data: Dict[str, Any] = Body(...)
):
    """Update a club (its admins or a super_admin)."""
    club = services.clubs.update_club(current_user, club_id, data)
    return {"success": True, "message": "Club updated successfully", "club": club.to_dict()}
