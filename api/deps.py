"""
API dependencies.

Provides dependency injection for services, authentication, and common utilities.
"""

import logging
from typing import Optional, Annotated
from dataclasses import dataclass

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from clubhub.config import load_config, Config
from clubhub.errors import ForbiddenError
from clubhub.services import (
    ServiceContext,
    AccountService,
    ClubService,
    EventService,
    create_services,
)
from clubhub.auth import Account

logger = logging.getLogger(__name__)

# Security scheme
security = HTTPBearer(auto_error=False)


@dataclass
class Services:
    """Container for all services."""
    config: Config
    context: ServiceContext
    accounts: AccountService
    clubs: ClubService
    events: EventService


# Global services instance (singleton)
_services: Optional[Services] = None


def get_services() -> Services:
    """
    Get or create the services singleton.

    This initializes all services on first call.
    """
    global _services

    if _services is None:
        logger.info("Initializing services...")

        config = load_config()
        context = ServiceContext.create(config=config)
        context, accounts, clubs, events = create_services(context)

        _services = Services(
            config=config,
            context=context,
            accounts=accounts,
            clubs=clubs,
            events=events
        )

        logger.info("Services initialized successfully")

    return _services


def close_services():
    """Drop the services singleton."""
    global _services
    if _services:
        _services = None
        logger.info("Services closed")


# Dependency for getting services
def services_dep() -> Services:
    """FastAPI dependency for services."""
    return get_services()


ServicesDep = Annotated[Services, Depends(services_dep)]


# Authentication dependencies

def _bearer(credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    if credentials is None or credentials.scheme.lower() != "bearer":
        return None
    return credentials.credentials


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    services: ServicesDep
) -> Account:
    """
    Resolve the bearer token to the calling account (required).

    Missing, malformed or expired tokens and unknown accounts give 401;
    a deactivated account gives 403.
    """
    return services.accounts.authenticate(_bearer(credentials))


async def get_current_user_optional(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    services: ServicesDep
) -> Optional[Account]:
    """
    Resolve the bearer token if one is sent.

    Returns None when no token is provided; a bad token still fails.
    """
    token = _bearer(credentials)
    if token is None:
        return None
    return services.accounts.authenticate(token)


CurrentUser = Annotated[Account, Depends(get_current_user)]
CurrentUserOptional = Annotated[Optional[Account], Depends(get_current_user_optional)]


async def require_verified_email(current_user: CurrentUser) -> Account:
    """Reject callers whose email is not verified (403)."""
    if not current_user.is_email_verified:
        raise ForbiddenError("Please verify your email address first")
    return current_user


VerifiedUser = Annotated[Account, Depends(require_verified_email)]


def require_role(*roles: str):
    """
    Dependency factory restricting an endpoint to the given roles.

    Usage:
        @router.patch("/x", dependencies=[Depends(require_role("super_admin"))])
    """
    async def _check(current_user: CurrentUser) -> Account:
        if current_user.role not in roles:
            raise ForbiddenError(f"Requires role: {', '.join(roles)}")
        return current_user

    return _check
