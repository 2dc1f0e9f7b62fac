"""
Services layer for ClubHub.

This module provides the core business logic as reusable services
that can be consumed by the API, admin scripts, or any other interface.
"""

from .base import BaseService, ServiceContext, Page, paginate
from .email_service import EmailService
from .account_service import AccountService, AuthResult
from .club_service import ClubService, Club, ClubForm
from .event_service import EventService, Event, EventForm

__all__ = [
    # Base
    "BaseService",
    "ServiceContext",
    "Page",
    "paginate",
    # Services
    "EmailService",
    "AccountService",
    "ClubService",
    "EventService",
    # Data classes
    "AuthResult",
    "Club",
    "ClubForm",
    "Event",
    "EventForm",
]


def create_services(context: ServiceContext = None):
    """
    Factory function to create all services with proper dependencies.

    Args:
        context: Optional ServiceContext (creates one if not provided)

    Returns:
        Tuple of (context, accounts, clubs, events)
    """
    if context is None:
        context = ServiceContext.create()

    account_service = AccountService(context)
    club_service = ClubService(context)
    event_service = EventService(context, club_service)

    return context, account_service, club_service, event_service
