"""
Event service.

Events organized by clubs: creation, filtering and search, updates and
soft deletion by their creator, likes and comments.
"""

import logging
import re
import secrets
import string
import uuid
from datetime import date, datetime, timezone
from typing import List, Optional, Tuple
from dataclasses import dataclass, asdict, field

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from ..auth import Account
from ..auth.validation import ROLE_SUPER_ADMIN, clean_tags, parse_form
from ..errors import ForbiddenError, NotFoundError, ValidationError
from .base import BaseService, Page, ServiceContext, contains_text, paginate, slugify
from .club_service import CATEGORIES, ClubService

logger = logging.getLogger(__name__)

COLLECTION = "events"

EVENT_TYPES = (
    "Workshop", "Seminar", "Competition", "Meeting", "Social",
    "Networking", "Conference", "Training", "Hackathon", "Other",
)
STATUSES = ("Draft", "Published", "Cancelled", "Completed")

TIME_PATTERN = re.compile(r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$")
URL_PATTERN = re.compile(r"^https?://.+")
EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")

MAX_TAGS = 20
MAX_TAG_LENGTH = 50
MAX_COMMENT_LENGTH = 500

EDITABLE_FIELDS = (
    "title", "short_description", "description", "event_type", "category",
    "start_date", "end_date", "start_time", "end_time", "venue", "address",
    "max_participants", "registration_required", "registration_deadline",
    "registration_link", "registration_fee", "agenda", "eligibility",
    "requirements", "contact_email", "tags", "banner_image", "status",
    "is_featured", "priority",
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _today() -> date:
    return datetime.now(timezone.utc).date()


def _text(value: Optional[str], label: str, max_length: int, required: bool = False) -> str:
    value = (value or "").strip()
    if required and not value:
        raise ValueError(f"{label} is required")
    if len(value) > max_length:
        raise ValueError(f"{label} cannot exceed {max_length} characters")
    return value


def _optional_url(value: Optional[str], label: str) -> str:
    value = (value or "").strip()
    if value and not URL_PATTERN.match(value):
        raise ValueError(f"{label} must be a valid URL")
    return value


class EventForm(BaseModel):
    """Create or (merged) update of an event."""

    model_config = ConfigDict(extra="ignore")

    title: str
    description: str
    event_type: str
    category: str
    start_date: date
    end_date: Optional[date] = None
    start_time: str
    end_time: str
    venue: str
    organizer_club: str
    short_description: str = ""
    address: str = ""
    max_participants: Optional[int] = None
    registration_required: bool = True
    registration_deadline: Optional[date] = None
    registration_link: str = ""
    registration_fee: float = 0
    agenda: List[dict] = []
    eligibility: List[str] = []
    requirements: List[str] = []
    contact_email: str = ""
    tags: List[str] = []
    banner_image: str = ""
    status: str = "Published"
    is_featured: bool = False
    priority: int = 0

    @field_validator("title")
    @classmethod
    def _title(cls, v):
        return _text(v, "Event title", 200, required=True)

    @field_validator("description")
    @classmethod
    def _description(cls, v):
        return _text(v, "Event description", 2000, required=True)

    @field_validator("short_description")
    @classmethod
    def _short(cls, v):
        return _text(v, "Short description", 200)

    @field_validator("venue")
    @classmethod
    def _venue(cls, v):
        return _text(v, "Venue", 200, required=True)

    @field_validator("address")
    @classmethod
    def _address(cls, v):
        return _text(v, "Address", 500)

    @field_validator("event_type")
    @classmethod
    def _type(cls, v):
        if v not in EVENT_TYPES:
            raise ValueError("Please select a valid event type")
        return v

    @field_validator("category")
    @classmethod
    def _category(cls, v):
        if v not in CATEGORIES:
            raise ValueError("Please select a valid category")
        return v

    @field_validator("status")
    @classmethod
    def _status(cls, v):
        if v not in STATUSES:
            raise ValueError(f"Status must be one of: {', '.join(STATUSES)}")
        return v

    @field_validator("start_time", "end_time")
    @classmethod
    def _time(cls, v):
        if not TIME_PATTERN.match(v):
            raise ValueError("Time must be in HH:MM format (24-hour)")
        return v

    @field_validator("registration_link")
    @classmethod
    def _registration_link(cls, v):
        return _optional_url(v, "Registration link")

    @field_validator("contact_email")
    @classmethod
    def _contact_email(cls, v):
        v = (v or "").strip().lower()
        if v and not EMAIL_PATTERN.match(v):
            raise ValueError("Please enter a valid email address")
        return v

    @field_validator("max_participants")
    @classmethod
    def _max_participants(cls, v):
        if v is not None and not 1 <= v <= 10000:
            raise ValueError("Max participants must be between 1 and 10000")
        return v

    @field_validator("registration_fee")
    @classmethod
    def _fee(cls, v):
        if not 0 <= v <= 100000:
            raise ValueError("Registration fee must be between 0 and 100000")
        return v

    @field_validator("priority")
    @classmethod
    def _priority(cls, v):
        if not 0 <= v <= 10:
            raise ValueError("Priority must be between 0 and 10")
        return v

    @field_validator("tags")
    @classmethod
    def _tags(cls, v):
        v = clean_tags(v)
        if len(v) > MAX_TAGS or any(len(t) > MAX_TAG_LENGTH for t in v):
            raise ValueError(
                f"Maximum {MAX_TAGS} tags allowed, each tag cannot exceed {MAX_TAG_LENGTH} characters"
            )
        return v

    @field_validator("eligibility", "requirements")
    @classmethod
    def _criteria(cls, v):
        v = clean_tags(v)
        if any(len(item) > 500 for item in v):
            raise ValueError("Each item cannot exceed 500 characters")
        return v

    @field_validator("agenda")
    @classmethod
    def _agenda(cls, v):
        # items without both an activity and a time are dropped
        cleaned = []
        for item in v:
            activity = str(item.get("activity") or "").strip()
            time_ = str(item.get("time") or "").strip()
            if not activity or not time_:
                continue
            if not TIME_PATTERN.match(time_):
                raise ValueError("Agenda time must be in HH:MM format (24-hour)")
            cleaned.append({
                "date": item.get("date") or None,
                "time": time_,
                "activity": activity[:200],
                "duration": str(item.get("duration") or "").strip()
            })
        return cleaned

    @model_validator(mode="after")
    def _dates(self):
        if self.end_date is None:
            self.end_date = self.start_date
        if self.end_date < self.start_date:
            raise ValueError("End date cannot be before start date")
        if self.registration_required and self.registration_deadline:
            if self.registration_deadline > self.start_date:
                raise ValueError("Registration deadline must be before the event start date")
        return self

    def to_document(self) -> dict:
        data = self.model_dump()
        data["start_date"] = self.start_date.isoformat()
        data["end_date"] = self.end_date.isoformat()
        data["registration_deadline"] = (
            self.registration_deadline.isoformat() if self.registration_deadline else None
        )
        return data


@dataclass
class Event:
    """Event data model."""
    event_id: str
    slug: str
    title: str
    description: str
    event_type: str
    category: str
    start_date: str
    end_date: str
    start_time: str
    end_time: str
    venue: str
    organizer_club: str
    created_by: str
    short_description: str = ""
    address: str = ""
    max_participants: Optional[int] = None
    registration_required: bool = True
    registration_deadline: Optional[str] = None
    registration_link: str = ""
    registration_fee: float = 0
    registration_count: int = 0
    agenda: List[dict] = field(default_factory=list)
    eligibility: List[str] = field(default_factory=list)
    requirements: List[str] = field(default_factory=list)
    contact_email: str = ""
    tags: List[str] = field(default_factory=list)
    banner_image: str = ""
    status: str = "Published"
    is_active: bool = True
    is_featured: bool = False
    priority: int = 0
    view_count: int = 0
    likes: List[dict] = field(default_factory=list)
    comments: List[dict] = field(default_factory=list)
    created_at: str = field(default_factory=_now_iso)
    updated_at: str = field(default_factory=_now_iso)

    def to_dict(self) -> dict:
        return asdict(self)

    def to_public_dict(self) -> dict:
        data = self.to_dict()
        data["likes_count"] = self.likes_count
        data["comments_count"] = self.comments_count
        data["registration_status"] = self.registration_status()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Event":
        known = cls.__dataclass_fields__
        return cls(**{k: v for k, v in data.items() if k in known})

    @property
    def likes_count(self) -> int:
        return len(self.likes)

    @property
    def comments_count(self) -> int:
        return len(self.comments)

    def is_liked_by(self, user_id: str) -> bool:
        return any(like["user_id"] == user_id for like in self.likes)

    def registration_status(self, today: Optional[date] = None) -> str:
        """not-required, closed (past deadline), full (at capacity) or open."""
        if not self.registration_required:
            return "not-required"
        today = today or _today()
        if self.registration_deadline and today > date.fromisoformat(self.registration_deadline):
            return "closed"
        if self.max_participants and self.registration_count >= self.max_participants:
            return "full"
        return "open"

    def can_edit(self, account: Account) -> bool:
        return account.role == ROLE_SUPER_ADMIN or self.created_by == account.user_id


def _slug_for(title: str) -> str:
    suffix = "".join(secrets.choice(string.ascii_lowercase + string.digits) for _ in range(6))
    return f"{slugify(title)}-{suffix}"


def _sort_key(doc: dict):
    # featured first, then higher priority, then soonest
    return (not doc.get("is_featured", False), -doc.get("priority", 0), doc.get("start_date", ""))


class EventService(BaseService):
    """Service for club events."""

    def __init__(self, context: ServiceContext, clubs: ClubService):
        super().__init__(context)
        self.club_service = clubs
        self.events = self.store.collection(COLLECTION, id_field="event_id", unique=("slug",))

    def _get_doc(self, event_id: str) -> dict:
        data = self.events.get(event_id)
        if data is None:
            raise NotFoundError("Event not found")
        return data

    def create_event(self, creator: Account, data: dict) -> Event:
        """
        Create an event for a club the creator administers.

        Raises:
            ValidationError: On malformed fields, a past start date or an
                unknown organizing club
            ForbiddenError: If the creator doesn't administer the club
        """
        form = parse_form(EventForm, data)
        if form.start_date < _today():
            raise ValidationError.for_field("start_date", "Event date cannot be in the past")
        if form.registration_deadline and form.registration_deadline < _today():
            raise ValidationError.for_field(
                "registration_deadline", "Registration deadline cannot be in the past"
            )

        try:
            club = self.club_service.get_club(form.organizer_club)
        except NotFoundError:
            raise ValidationError.for_field("organizer_club", "Invalid organizing club")

        if not club.is_admin(creator):
            raise ForbiddenError("You are not authorized to create events for this club")

        event = Event(
            event_id=str(uuid.uuid4()),
            slug=_slug_for(form.title),
            created_by=creator.user_id,
            **form.to_document()
        )
        self.events.insert_one(event.to_dict())

        logger.info(f"Event created: {event.title} ({event.event_id}) for club {club.name}")
        return event

    def event_detail(self, event: Event, viewer: Optional[Account] = None) -> dict:
        """
        Public event fields with the creator and comment authors resolved
        to name cards, plus whether ``viewer`` likes the event.
        """
        cards = self.name_cards([event.created_by, *(c["user_id"] for c in event.comments)])
        data = event.to_public_dict()
        data["created_by"] = cards[event.created_by]
        data["comments"] = [dict(c, user=cards[c["user_id"]]) for c in event.comments]
        data["is_liked"] = viewer is not None and event.is_liked_by(viewer.user_id)
        return data

    def get_event(self, event_id: str, count_view: bool = False) -> Event:
        """
        Get an event by id.

        Raises:
            NotFoundError: If the event doesn't exist
        """
        data = self._get_doc(event_id)
        if not count_view:
            return Event.from_dict(data)

        def _view(doc: dict):
            doc["view_count"] = doc.get("view_count", 0) + 1

        return Event.from_dict(self.events.update_one(event_id, mutator=_view))

    def list_events(
        self,
        category: Optional[str] = None,
        event_type: Optional[str] = None,
        organizer_club: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: str = "Published",
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 20
    ) -> Page:
        """
        List active events.

        Args:
            category, event_type, organizer_club, status: Exact filters
            start_date, end_date: Inclusive range on the event start date
            search: Case-insensitive match on title, description, venue and tags
            page: 1-based page number
            limit: Page size
        """
        filters = {"is_active": True, "status": status}
        if category:
            filters["category"] = category
        if event_type:
            filters["event_type"] = event_type
        if organizer_club:
            filters["organizer_club"] = organizer_club

        def predicate(doc: dict) -> bool:
            starts = doc.get("start_date", "")
            if start_date and starts < start_date.isoformat():
                return False
            if end_date and starts > end_date.isoformat():
                return False
            if search and not contains_text(
                search, doc.get("title"), doc.get("description"), doc.get("venue"), doc.get("tags")
            ):
                return False
            return True

        docs = self.events.find(filters, predicate)
        docs.sort(key=_sort_key)
        result = paginate(docs, page, limit)
        result.items = [Event.from_dict(d) for d in result.items]
        return result

    def update_event(self, account: Account, event_id: str, data: dict) -> Event:
        """
        Update an event's editable fields.

        Raises:
            NotFoundError: If the event doesn't exist
            ForbiddenError: If the caller is neither creator nor super_admin
            ValidationError: On malformed fields
        """
        event = Event.from_dict(self._get_doc(event_id))
        if not event.can_edit(account):
            raise ForbiddenError("Not authorized to update this event")

        patch = {k: v for k, v in (data or {}).items() if k in EDITABLE_FIELDS}
        current = {k: getattr(event, k) for k in EDITABLE_FIELDS}
        current["organizer_club"] = event.organizer_club
        form = parse_form(EventForm, {**current, **patch})

        if "start_date" in patch and form.start_date < _today():
            raise ValidationError.for_field("start_date", "Event date cannot be in the past")

        changes = form.to_document()
        # the organizing club is fixed at creation
        changes.pop("organizer_club", None)
        if form.title != event.title:
            changes["slug"] = _slug_for(form.title)
        changes["updated_at"] = _now_iso()

        updated = Event.from_dict(self.events.update_one(event_id, changes))
        logger.info(f"Event updated: {updated.title} by {account.email}")
        return updated

    def delete_event(self, account: Account, event_id: str) -> None:
        """
        Soft-delete an event.

        Raises:
            NotFoundError: If the event doesn't exist
            ForbiddenError: If the caller is neither creator nor super_admin
        """
        event = Event.from_dict(self._get_doc(event_id))
        if not event.can_edit(account):
            raise ForbiddenError("Not authorized to delete this event")

        self.events.update_one(event_id, {"is_active": False, "updated_at": _now_iso()})
        logger.info(f"Event deleted: {event.title} by {account.email}")

    def toggle_like(self, account: Account, event_id: str) -> Tuple[bool, int]:
        """
        Like the event, or remove an existing like.

        Returns:
            (is_liked, likes_count) after the toggle
        """
        self._get_doc(event_id)
        state = {}

        def _toggle(doc: dict):
            likes = doc.setdefault("likes", [])
            kept = [like for like in likes if like["user_id"] != account.user_id]
            if len(kept) == len(likes):
                kept.append({"user_id": account.user_id, "liked_at": _now_iso()})
                state["liked"] = True
            else:
                state["liked"] = False
            doc["likes"] = kept

        updated = self.events.update_one(event_id, mutator=_toggle)
        return state["liked"], len(updated["likes"])

    def add_comment(self, account: Account, event_id: str, text: str) -> dict:
        """
        Comment on an event.

        Raises:
            NotFoundError: If the event doesn't exist
            ValidationError: If the text is empty or too long
        """
        text = (text or "").strip()
        if not text:
            raise ValidationError.for_field("text", "Comment cannot be empty")
        if len(text) > MAX_COMMENT_LENGTH:
            raise ValidationError.for_field(
                "text", f"Comment cannot exceed {MAX_COMMENT_LENGTH} characters"
            )

        self._get_doc(event_id)
        comment = {
            "comment_id": str(uuid.uuid4()),
            "user_id": account.user_id,
            "text": text,
            "commented_at": _now_iso()
        }

        def _comment(doc: dict):
            doc.setdefault("comments", []).append(comment)

        self.events.update_one(event_id, mutator=_comment)
        return comment
