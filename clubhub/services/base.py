"""
Base service classes and shared context.

The ServiceContext holds every shared dependency (configuration, document
store, credential store, token issuer, OTP manager, mail capability).
It is built once at process start and handed to each service.
"""

import logging
import math
import re
from typing import Dict, Iterable, Optional
from dataclasses import dataclass

from ..config import Config, load_config
from ..storage import DocumentStore
from ..auth import AccountStore, JWTHandler, OTPManager
from .email_service import EmailService

logger = logging.getLogger(__name__)


@dataclass
class ServiceContext:
    """Shared context for all services."""
    config: Config
    store: DocumentStore
    accounts: AccountStore
    jwt: JWTHandler
    otp: OTPManager
    email: EmailService

    @classmethod
    def create(
        cls,
        config: Optional[Config] = None,
        store: Optional[DocumentStore] = None,
        email: Optional[EmailService] = None
    ) -> "ServiceContext":
        """
        Factory method to create a ServiceContext with all dependencies.

        Args:
            config: Optional config (loads from env if not provided)
            store: Optional document store (defaults to config.app.data_dir)
            email: Optional mail capability (defaults to SMTP from config)

        Returns:
            Configured ServiceContext
        """
        cfg = config or load_config()
        store = store or DocumentStore(cfg.app.data_dir)
        accounts = AccountStore(store)
        jwt = JWTHandler(
            secret_key=cfg.jwt.secret_key or None,
            expires_in=cfg.jwt.access_token_expire_seconds
        )
        otp = OTPManager(
            accounts,
            ttl_seconds=cfg.otp.ttl_seconds,
            length=cfg.otp.length
        )
        email = email or EmailService(cfg.email, environment=cfg.app.environment)

        logger.info(f"Service context ready (environment={cfg.app.environment}, data={store.data_dir})")
        return cls(
            config=cfg,
            store=store,
            accounts=accounts,
            jwt=jwt,
            otp=otp,
            email=email
        )


class BaseService:
    """
    Base class for all services.

    Each service receives the shared context and provides focused functionality.
    """

    def __init__(self, context: ServiceContext):
        self.context = context

    @property
    def config(self) -> Config:
        return self.context.config

    @property
    def store(self) -> DocumentStore:
        return self.context.store

    @property
    def accounts(self) -> AccountStore:
        return self.context.accounts

    def name_cards(self, user_ids: Iterable[str]) -> Dict[str, dict]:
        """
        Resolve account ids to public name cards for detail pages.

        An id whose account no longer exists maps to a card with empty
        name and email.
        """
        cards = {}
        for user_id in user_ids:
            if user_id in cards:
                continue
            account = self.accounts.get_by_id(user_id)
            cards[user_id] = {
                "user_id": user_id,
                "full_name": account.full_name if account else None,
                "email": account.email if account else None,
                "branch": account.branch if account else None,
                "year": account.year if account else None
            }
        return cards


@dataclass
class Page:
    """One page of a listing."""
    items: list
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return max(1, math.ceil(self.total / self.limit))

    def to_dict(self) -> dict:
        return {
            "page": self.page,
            "pages": self.pages,
            "total": self.total,
            "has_next": self.page < self.pages,
            "has_prev": self.page > 1
        }


def paginate(items: list, page: int = 1, limit: int = 20) -> Page:
    """Slice an already sorted list. ``page`` is 1-based."""
    page = max(1, int(page))
    limit = max(1, min(int(limit), 100))
    start = (page - 1) * limit
    return Page(items=items[start:start + limit], page=page, limit=limit, total=len(items))


def slugify(text: str) -> str:
    """
    URL slug from a title.

    Examples:
        slugify("Robotics & AI Club!") -> "robotics-ai-club"
    """
    slug = re.sub(r"[^\w\s-]", "", text.lower())
    slug = re.sub(r"[\s_-]+", "-", slug)
    return slug.strip("-")


def contains_text(needle: str, *haystacks) -> bool:
    """Case-insensitive substring search over strings and lists of strings."""
    needle = needle.strip().lower()
    for value in haystacks:
        if isinstance(value, (list, tuple)):
            if any(needle in str(v).lower() for v in value):
                return True
        elif value and needle in str(value).lower():
            return True
    return False
