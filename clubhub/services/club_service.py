"""
Club service.

Club pages: creation by organization/site administrators, public listing
with category filter, text search and pagination, per-club admin lists.
"""

import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional
from dataclasses import dataclass, asdict, field

from pydantic import BaseModel, ConfigDict, field_validator

from ..auth import Account
from ..auth.validation import ROLE_CLUB_ADMIN, ROLE_SUPER_ADMIN, clean_tags, parse_form
from ..errors import ForbiddenError, NotFoundError
from .base import BaseService, Page, ServiceContext, contains_text, paginate, slugify

logger = logging.getLogger(__name__)

COLLECTION = "clubs"

CATEGORIES = (
    "Technical", "Cultural", "Sports", "Academic", "Social Service",
    "Entrepreneurship", "Arts & Crafts", "Music & Dance", "Literary",
    "Science & Research", "Gaming", "Photography", "Other",
)
RECRUITMENT_STATUSES = ("Open", "Closed", "Coming Soon")
ADMIN_ROLES = ("Super Admin", "Admin", "Moderator")
SOCIAL_NETWORKS = ("instagram", "facebook", "twitter", "linkedin", "youtube")

CONTACT_EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")
URL_PATTERN = re.compile(r"^https?://.+")
PHONE_PATTERN = re.compile(r"^\d{10}$")

# Fields a club admin can edit after creation
EDITABLE_FIELDS = (
    "name", "short_description", "full_description", "category", "tags",
    "email", "phone", "website", "social_media", "logo", "cover_image",
    "meeting_location", "meeting_time", "eligibility", "recruitment_status",
    "member_count", "founded_year",
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _text(value: Optional[str], label: str, max_length: int, required: bool = False) -> Optional[str]:
    if value is None:
        if required:
            raise ValueError(f"{label} is required")
        return None
    value = value.strip()
    if required and not value:
        raise ValueError(f"{label} is required")
    if len(value) > max_length:
        raise ValueError(f"{label} cannot exceed {max_length} characters")
    return value


class ClubForm(BaseModel):
    """Create or (merged) update of a club."""

    model_config = ConfigDict(extra="ignore")

    name: str
    short_description: str
    full_description: str
    category: str
    email: str
    tags: List[str] = []
    phone: Optional[str] = None
    website: Optional[str] = None
    social_media: Dict[str, str] = {}
    logo: Optional[str] = None
    cover_image: Optional[str] = None
    meeting_location: Optional[str] = None
    meeting_time: Optional[str] = None
    eligibility: List[str] = []
    recruitment_status: str = "Closed"
    member_count: int = 0
    founded_year: Optional[int] = None

    @field_validator("name")
    @classmethod
    def _name(cls, v):
        return _text(v, "Club name", 100, required=True)

    @field_validator("short_description")
    @classmethod
    def _short(cls, v):
        return _text(v, "Short description", 200, required=True)

    @field_validator("full_description")
    @classmethod
    def _full(cls, v):
        return _text(v, "Full description", 2000, required=True)

    @field_validator("meeting_location")
    @classmethod
    def _location(cls, v):
        return _text(v, "Meeting location", 200)

    @field_validator("meeting_time")
    @classmethod
    def _time(cls, v):
        return _text(v, "Meeting time", 100)

    @field_validator("category")
    @classmethod
    def _category(cls, v):
        if v not in CATEGORIES:
            raise ValueError("Please select a valid category")
        return v

    @field_validator("recruitment_status")
    @classmethod
    def _recruitment(cls, v):
        if v not in RECRUITMENT_STATUSES:
            raise ValueError(f"Recruitment status must be one of: {', '.join(RECRUITMENT_STATUSES)}")
        return v

    @field_validator("email")
    @classmethod
    def _email(cls, v):
        v = v.strip()
        if not CONTACT_EMAIL_PATTERN.match(v):
            raise ValueError("Please enter a valid email")
        return v

    @field_validator("phone")
    @classmethod
    def _phone(cls, v):
        if v and not PHONE_PATTERN.match(v):
            raise ValueError("Phone number must be 10 digits")
        return v or None

    @field_validator("website")
    @classmethod
    def _website(cls, v):
        if v and not URL_PATTERN.match(v):
            raise ValueError("Please enter a valid website URL")
        return v or None

    @field_validator("social_media")
    @classmethod
    def _social(cls, v):
        return {k: s for k, s in v.items() if k in SOCIAL_NETWORKS and s}

    @field_validator("tags", "eligibility")
    @classmethod
    def _lists(cls, v):
        return clean_tags(v)

    @field_validator("member_count")
    @classmethod
    def _members(cls, v):
        if v < 0:
            raise ValueError("Member count cannot be negative")
        return v

    @field_validator("founded_year")
    @classmethod
    def _founded(cls, v):
        if v is None:
            return v
        if v < 2000:
            raise ValueError("Founded year must be 2000 or later")
        if v > datetime.now(timezone.utc).year:
            raise ValueError("Founded year cannot be in the future")
        return v


@dataclass
class Club:
    """Club data model."""
    club_id: str
    name: str
    slug: str
    short_description: str
    full_description: str
    category: str
    email: str
    created_by: str
    tags: List[str] = field(default_factory=list)
    phone: Optional[str] = None
    website: Optional[str] = None
    social_media: Dict[str, str] = field(default_factory=dict)
    logo: Optional[str] = None
    cover_image: Optional[str] = None
    meeting_location: Optional[str] = None
    meeting_time: Optional[str] = None
    eligibility: List[str] = field(default_factory=list)
    recruitment_status: str = "Closed"
    member_count: int = 0
    founded_year: Optional[int] = None
    admins: List[dict] = field(default_factory=list)
    is_active: bool = True
    is_verified: bool = False
    views: int = 0
    created_at: str = field(default_factory=_now_iso)
    updated_at: str = field(default_factory=_now_iso)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Club":
        known = cls.__dataclass_fields__
        return cls(**{k: v for k, v in data.items() if k in known})

    def admin_ids(self) -> List[str]:
        return [a["user_id"] for a in self.admins]

    def is_admin(self, account: Account) -> bool:
        """Club admins and site administrators may manage the club."""
        return account.role == ROLE_SUPER_ADMIN or account.user_id in self.admin_ids()


class ClubService(BaseService):
    """Service for club pages."""

    def __init__(self, context: ServiceContext):
        super().__init__(context)
        self.clubs = self.store.collection(COLLECTION, id_field="club_id", unique=("name", "slug"))

    def create_club(self, creator: Account, data: dict) -> Club:
        """
        Create a club; the creator becomes its "Super Admin".

        Raises:
            ForbiddenError: If the creator is neither club_admin nor super_admin
            ValidationError: On malformed fields
            DuplicateKeyError: If the name is taken
        """
        if creator.role not in (ROLE_CLUB_ADMIN, ROLE_SUPER_ADMIN):
            raise ForbiddenError(
                "You are not authorized to create clubs. Contact admin for permissions."
            )

        form = parse_form(ClubForm, data)
        club = Club(
            club_id=str(uuid.uuid4()),
            slug=slugify(form.name),
            created_by=creator.user_id,
            admins=[{"user_id": creator.user_id, "role": ADMIN_ROLES[0], "added_at": _now_iso()}],
            **form.model_dump()
        )

        self.clubs.insert_one(club.to_dict())
        logger.info(f"Club created: {club.name} ({club.club_id}) by {creator.email}")
        return club

    def get_club(self, club_id: str, count_view: bool = False) -> Club:
        """
        Get a club by id.

        Args:
            club_id: Club id
            count_view: Increment the view counter

        Raises:
            NotFoundError: If the club doesn't exist
        """
        if count_view:
            if self.clubs.get(club_id) is None:
                raise NotFoundError("Club not found")

            def _view(doc: dict):
                doc["views"] = doc.get("views", 0) + 1

            return Club.from_dict(self.clubs.update_one(club_id, mutator=_view))

        data = self.clubs.get(club_id)
        if data is None:
            raise NotFoundError("Club not found")
        return Club.from_dict(data)

    def club_detail(self, club: Club) -> dict:
        """Club fields with the creator and admins resolved to name cards."""
        cards = self.name_cards([club.created_by, *club.admin_ids()])
        data = club.to_dict()
        data["created_by"] = cards[club.created_by]
        data["admins"] = [dict(admin, user=cards[admin["user_id"]]) for admin in club.admins]
        return data

    def list_clubs(
        self,
        category: Optional[str] = None,
        search: Optional[str] = None,
        status: str = "active",
        page: int = 1,
        limit: int = 12
    ) -> Page:
        """
        List clubs, newest first.

        Args:
            category: Exact category, or None/"all" for every category
            search: Case-insensitive match on name, short description and tags
            status: "active" for active clubs, anything else for inactive
            page: 1-based page number
            limit: Page size
        """
        filters = {"is_active": status == "active"}
        if category and category != "all":
            filters["category"] = category

        predicate = None
        if search:
            def predicate(doc: dict) -> bool:
                return contains_text(search, doc.get("name"), doc.get("short_description"), doc.get("tags"))

        docs = self.clubs.find(filters, predicate)
        docs.sort(key=lambda d: d.get("created_at", ""), reverse=True)
        result = paginate(docs, page, limit)
        result.items = [Club.from_dict(d) for d in result.items]
        return result

    def update_club(self, account: Account, club_id: str, data: dict) -> Club:
        """
        Update a club's editable fields.

        Raises:
            NotFoundError: If the club doesn't exist
            ForbiddenError: If the caller doesn't administer the club
            ValidationError: On malformed fields
        """
        club = self.get_club(club_id)
        if not club.is_admin(account):
            raise ForbiddenError("You are not authorized to update this club")

        current = {k: getattr(club, k) for k in EDITABLE_FIELDS}
        patch = {k: v for k, v in (data or {}).items() if k in EDITABLE_FIELDS}
        form = parse_form(ClubForm, {**current, **patch})

        changes = form.model_dump()
        changes["slug"] = slugify(form.name)
        changes["updated_at"] = _now_iso()

        updated = Club.from_dict(self.clubs.update_one(club_id, changes))
        logger.info(f"Club updated: {updated.name} by {account.email}")
        return updated

    def managed_clubs(self, account: Account) -> List[Club]:
        """Clubs listing ``account`` among their admins."""
        docs = self.clubs.find(predicate=lambda d: any(
            a.get("user_id") == account.user_id for a in d.get("admins", [])
        ))
        return [Club.from_dict(d) for d in docs]
