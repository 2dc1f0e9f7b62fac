"""
Account storage and management.

The credential store: one document per account in the ``users``
collection, with unique indexes on email and enrollment number.
The password hash never leaves this module unless explicitly requested.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, List, Optional
from dataclasses import dataclass, asdict, field

from ..errors import NotFoundError, ValidationError
from ..storage import DocumentStore
from .password import PasswordHandler, normalize_email
from .validation import (
    ROLES,
    ROLE_STUDENT,
    ProfileUpdate,
    RegistrationForm,
    parse_form,
)

logger = logging.getLogger(__name__)

COLLECTION = "users"
UNIQUE_FIELDS = ("email", "enrollment_number")

# Never returned to clients
PRIVATE_FIELDS = ("password_hash", "otp_code", "otp_expires_at")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _now_iso() -> str:
    return utcnow().isoformat()


@dataclass
class Account:
    """Account data model."""
    user_id: str
    email: str
    enrollment_number: str
    full_name: str
    phone: str
    branch: str
    year: str
    role: str = ROLE_STUDENT
    password_hash: Optional[str] = None  # only populated when explicitly requested
    is_email_verified: bool = False
    otp_code: Optional[str] = None
    otp_expires_at: Optional[str] = None
    is_active: bool = True
    bio: Optional[str] = None
    profile_picture: Optional[str] = None
    skills: List[str] = field(default_factory=list)
    interests: List[str] = field(default_factory=list)
    created_at: str = field(default_factory=_now_iso)
    updated_at: str = field(default_factory=_now_iso)
    last_login: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)

    def to_public_dict(self) -> dict:
        """Account fields safe to send to a client."""
        data = self.to_dict()
        for key in PRIVATE_FIELDS:
            data.pop(key, None)
        return data

    @classmethod
    def from_dict(cls, data: dict, include_secret: bool = False) -> "Account":
        return cls(
            user_id=data["user_id"],
            email=data["email"],
            enrollment_number=data["enrollment_number"],
            full_name=data["full_name"],
            phone=data["phone"],
            branch=data["branch"],
            year=data["year"],
            role=data.get("role", ROLE_STUDENT),
            password_hash=data.get("password_hash") if include_secret else None,
            is_email_verified=data.get("is_email_verified", False),
            otp_code=data.get("otp_code"),
            otp_expires_at=data.get("otp_expires_at"),
            is_active=data.get("is_active", True),
            bio=data.get("bio"),
            profile_picture=data.get("profile_picture"),
            skills=data.get("skills", []),
            interests=data.get("interests", []),
            created_at=data.get("created_at", _now_iso()),
            updated_at=data.get("updated_at", _now_iso()),
            last_login=data.get("last_login")
        )

    @property
    def otp_expiry(self) -> Optional[datetime]:
        if not self.otp_expires_at:
            return None
        return datetime.fromisoformat(self.otp_expires_at)

    def has_pending_otp(self) -> bool:
        return self.otp_code is not None and self.otp_expires_at is not None


class AccountStore:
    """
    Document-backed account storage.

    Accounts are never hard-deleted; ``set_active(False)`` is the only way
    to retire one.
    """

    def __init__(
        self,
        store: DocumentStore,
        password_handler: Optional[PasswordHandler] = None
    ):
        """
        Initialize account store.

        Args:
            store: Document store holding the ``users`` collection
            password_handler: Hashing capability (default: bcrypt, 12 rounds)
        """
        self.collection = store.collection(COLLECTION, id_field="user_id", unique=UNIQUE_FIELDS)
        self.password_handler = password_handler or PasswordHandler()

    def create_account(self, fields: dict) -> Account:
        """
        Create a new, unverified account.

        Args:
            fields: full_name, email, phone, enrollment_number, branch,
                year and password

        Returns:
            Created Account, without its password hash

        Raises:
            ValidationError: If a field is missing or malformed
            DuplicateKeyError: If email or enrollment number is taken
        """
        form = parse_form(RegistrationForm, fields)

        account = Account(
            user_id=str(uuid.uuid4()),
            email=form.email,
            enrollment_number=form.enrollment_number,
            full_name=form.full_name,
            phone=form.phone,
            branch=form.branch,
            year=form.year,
            password_hash=self.password_handler.hash(form.password)
        )

        self.collection.insert_one(account.to_dict())

        logger.info(f"Created account: {account.email} ({account.user_id})")
        account.password_hash = None
        return account

    def get_by_email(self, email: str, include_secret: bool = False) -> Optional[Account]:
        """
        Get account by email (case-insensitive).

        Args:
            email: Email address
            include_secret: Also load the password hash

        Returns:
            Account if found, None otherwise
        """
        normalized = normalize_email(email)
        if not normalized:
            return None

        data = self.collection.find_one({"email": normalized})
        if data:
            return Account.from_dict(data, include_secret=include_secret)
        return None

    def get_by_id(self, user_id: str, include_secret: bool = False) -> Optional[Account]:
        """
        Get account by id.

        Args:
            user_id: Account's unique id
            include_secret: Also load the password hash

        Returns:
            Account if found, None otherwise
        """
        if not user_id:
            return None
        data = self.collection.get(user_id)
        if data:
            return Account.from_dict(data, include_secret=include_secret)
        return None

    def verify_secret(self, account: Account, candidate: str) -> bool:
        """
        Check a candidate password against the account's hash.

        Never raises on mismatch. A hash made with different bcrypt rounds
        is replaced after a successful match.
        """
        hashed = account.password_hash
        if hashed is None:
            full = self.get_by_id(account.user_id, include_secret=True)
            hashed = full.password_hash if full else None
        if not hashed or not self.password_handler.verify(candidate, hashed):
            return False

        if self.password_handler.needs_rehash(hashed):
            self._set(account.user_id, {"password_hash": self.password_handler.hash(candidate)})
            logger.info(f"Rehashed password for {account.email}")
        return True

    def apply(self, user_id: str, mutator: Callable[[dict], None]) -> Account:
        """
        Atomically edit the raw account document.

        If ``mutator`` raises, nothing is written.
        """
        def _stamped(doc: dict):
            mutator(doc)
            doc["updated_at"] = _now_iso()

        data = self.collection.update_one(user_id, mutator=_stamped)
        return Account.from_dict(data)

    def _set(self, user_id: str, changes: dict) -> Account:
        changes = dict(changes, updated_at=_now_iso())
        data = self.collection.update_one(user_id, changes)
        return Account.from_dict(data)

    def update_profile(self, user_id: str, patch: dict) -> Account:
        """
        Apply a self-service profile edit.

        Only full_name, phone, bio, skills and interests are applied;
        anything else in ``patch`` is ignored.

        Raises:
            ValidationError: If a kept field is malformed
            NotFoundError: If the account doesn't exist
        """
        changes = parse_form(ProfileUpdate, patch or {}).changes()
        if not changes:
            account = self.get_by_id(user_id)
            if account is None:
                raise NotFoundError("User not found")
            return account

        account = self._set(user_id, changes)
        logger.info(f"Updated profile for {account.email}: {sorted(changes)}")
        return account

    def set_profile_picture(self, user_id: str, url: Optional[str]) -> Account:
        return self._set(user_id, {"profile_picture": url or None})

    def set_active(self, user_id: str, is_active: bool) -> Account:
        """Activate or soft-deactivate an account."""
        account = self._set(user_id, {"is_active": bool(is_active)})
        logger.info(f"Account {account.email} {'activated' if is_active else 'deactivated'}")
        return account

    def revoke_verification(self, user_id: str) -> Account:
        """
        Mark the email unverified again.

        The account must then go through the OTP flow to become verified;
        there is no way to set the flag to True here.
        """
        account = self._set(user_id, {
            "is_email_verified": False,
            "otp_code": None,
            "otp_expires_at": None
        })
        logger.info(f"Email verification revoked for {account.email}")
        return account

    def set_role(self, user_id: str, role: str) -> Account:
        if role not in ROLES:
            raise ValidationError.for_field("role", f"Role must be one of: {', '.join(ROLES)}")
        account = self._set(user_id, {"role": role})
        logger.info(f"Role of {account.email} set to {role}")
        return account

    def record_login(self, user_id: str) -> Account:
        return self._set(user_id, {"last_login": _now_iso()})

    def account_exists(self, email: str) -> bool:
        return self.get_by_email(email) is not None
