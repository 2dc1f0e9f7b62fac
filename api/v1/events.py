"""
Event endpoints.

Public listing and detail pages; creation, updates, likes and comments
by verified users.
"""

import logging
from datetime import date
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Query, status
from pydantic import BaseModel, Field

from ..deps import CurrentUserOptional, ServicesDep, VerifiedUser

logger = logging.getLogger(__name__)

router = APIRouter()


class CommentRequest(BaseModel):
    """New comment."""
    text: str = Field(..., description="Comment text (max 500 chars)")


@router.get("")
async def list_events(
    services: ServicesDep,
    category: Optional[str] = None,
    event_type: Optional[str] = None,
    organizer_club: Optional[str] = None,
    start_date: Optional[date] = Query(None, description="Earliest start date (inclusive)"),
    end_date: Optional[date] = Query(None, description="Latest start date (inclusive)"),
    status_: str = Query("Published", alias="status"),
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100)
):
    """List events: featured first, then by priority, then soonest."""
    result = services.events.list_events(
        category=category,
        event_type=event_type,
        organizer_club=organizer_club,
        start_date=start_date,
        end_date=end_date,
        status=status_,
        search=search,
        page=page,
        limit=limit
    )
    return {
        "success": True,
        "items": [event.to_public_dict() for event in result.items],
        "pagination": result.to_dict()
    }


@router.get("/{event_id}")
async def get_event(event_id: str, current_user: CurrentUserOptional, services: ServicesDep):
    """
    Event detail. Each call counts as a view.

    With a bearer token, ``is_liked`` reflects the caller.
    """
    event = services.events.get_event(event_id, count_view=True)
    return {"success": True, "event": services.events.event_detail(event, viewer=current_user)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_event(
    current_user: VerifiedUser,
    services: ServicesDep,
    data: Dict[str, Any] = Body(...)
):
    """Create an event for a club the caller administers."""
    event = services.events.create_event(current_user, data)
    return {"success": True, "message": "Event created successfully", "event": event.to_public_dict()}


@router.put("/{event_id}")
async def update_event(
    event_id: str,
    current_user: VerifiedUser,
    services: ServicesDep,
    data: Dict[str, Any] = Body(...)
):
    """Update an event (its creator or a super_admin)."""
    event = services.events.update_event(current_user, event_id, data)
    return {"success": True, "message": "Event updated successfully", "event": event.to_public_dict()}


@router.delete("/{event_id}")
async def delete_event(event_id: str, current_user: VerifiedUser, services: ServicesDep):
    """Soft-delete an event (its creator or a super_admin)."""
    services.events.delete_event(current_user, event_id)
    return {"success": True, "message": "Event deleted successfully"}


@router.post("/{event_id}/like")
async def toggle_like(event_id: str, current_user: VerifiedUser, services: ServicesDep):
    """Like an event, or remove the caller's like."""
    is_liked, likes_count = services.events.toggle_like(current_user, event_id)
    return {
        "success": True,
        "message": "Event liked" if is_liked else "Event unliked",
        "is_liked": is_liked,
        "likes_count": likes_count
    }


@router.post("/{event_id}/comments", status_code=status.HTTP_201_CREATED)
async def add_comment(
    event_id: str,
    request: CommentRequest,
    current_user: VerifiedUser,
    services: ServicesDep
):
    """Comment on an event."""
    comment = services.events.add_comment(current_user, event_id, request.text)
    return {"success": True, "message": "Comment added successfully", "comment": comment}
