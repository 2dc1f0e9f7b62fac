"""
Pytest configuration and shared fixtures.

This module provides common fixtures for testing:
- JWT authentication
- Account storage and OTP lifecycle
- Real services over a temporary data directory
- Service mocking
- API clients
"""

import os
import sys
import tempfile
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Generator, AsyncGenerator
from unittest.mock import MagicMock, AsyncMock

import pytest
import httpx
from fastapi.testclient import TestClient

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Set test environment variables before imports
os.environ["JWT_SECRET_KEY"] = "test_jwt_secret_key_for_testing_only_32bytes!"
os.environ["ENVIRONMENT"] = "test"

from clubhub.config import Config, AppConfig, JWTConfig
from clubhub.storage import DocumentStore
from clubhub.auth import JWTHandler, PasswordHandler, AccountStore, OTPManager, Account
from clubhub.auth.validation import ROLE_STUDENT
from clubhub.services import ServiceContext, AccountService, ClubService, EventService


# =============================================================================
# Configuration
# =============================================================================

@pytest.fixture(scope="session")
def test_config():
    """Test configuration values."""
    return {
        "jwt_secret": "test_jwt_secret_key_for_testing_only_32bytes!",
        "test_email": "alice@cs.iitr.ac.in",
        "test_enrollment": "20231234",
        "test_password": "SecurePass123",
        "test_user_name": "Alice Sharma",
    }


@pytest.fixture
def registration_data(test_config) -> dict:
    """Valid registration fields."""
    return {
        "full_name": test_config["test_user_name"],
        "email": test_config["test_email"],
        "phone": "9876543210",
        "enrollment_number": test_config["test_enrollment"],
        "branch": "Computer Science Engineering",
        "year": "2nd Year",
        "password": test_config["test_password"],
    }


# =============================================================================
# JWT Fixtures
# =============================================================================

@pytest.fixture
def jwt_handler(test_config) -> JWTHandler:
    """Create a JWTHandler with test secret."""
    return JWTHandler(secret_key=test_config["jwt_secret"])


@pytest.fixture
def valid_access_token(jwt_handler) -> str:
    """Create a valid access token."""
    return jwt_handler.create_access_token(user_id="test-user-id-123", role=ROLE_STUDENT)


@pytest.fixture
def expired_token(jwt_handler) -> str:
    """Create an expired access token."""
    return jwt_handler.create_access_token(
        user_id="test-user-id-123",
        expires_in=-1  # Already expired
    )


# =============================================================================
# Storage Fixtures
# =============================================================================

@pytest.fixture
def temp_data_dir() -> Generator[Path, None, None]:
    """Create a temporary data directory."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def document_store(temp_data_dir) -> DocumentStore:
    """Create a DocumentStore in the temporary directory."""
    return DocumentStore(temp_data_dir)


@pytest.fixture
def password_handler() -> PasswordHandler:
    """Create a PasswordHandler with a low work factor for speed."""
    return PasswordHandler(rounds=4)


@pytest.fixture
def account_store(document_store, password_handler) -> AccountStore:
    """Create an AccountStore over the temporary document store."""
    return AccountStore(document_store, password_handler=password_handler)


class FakeClock:
    """Controllable UTC clock."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int):
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 1, 10, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def otp_manager(account_store, clock) -> OTPManager:
    """OTP manager with a 10 minute lifetime and a controllable clock."""
    return OTPManager(account_store, ttl_seconds=600, clock=clock)


@pytest.fixture
def sample_account(account_store, registration_data) -> Account:
    """Create an unverified account in the store."""
    return account_store.create_account(registration_data)


# =============================================================================
# Service Fixtures
# =============================================================================

@pytest.fixture
def mock_email():
    """Mail capability that records calls instead of sending."""
    email = MagicMock()
    email.send_otp_email = AsyncMock(return_value="dev-mode")
    email.send_welcome_email = AsyncMock(return_value="dev-mode")
    email.is_configured = MagicMock(return_value=False)
    return email


@pytest.fixture
def app_config(temp_data_dir) -> Config:
    return Config(
        app=AppConfig(environment="test", data_dir=temp_data_dir),
        jwt=JWTConfig(secret_key="test_jwt_secret_key_for_testing_only_32bytes!")
    )


@pytest.fixture
def service_context(app_config, document_store, account_store, jwt_handler, otp_manager, mock_email):
    """ServiceContext wired to the temporary store and mock mail."""
    return ServiceContext(
        config=app_config,
        store=document_store,
        accounts=account_store,
        jwt=jwt_handler,
        otp=otp_manager,
        email=mock_email
    )


@pytest.fixture
def account_service(service_context) -> AccountService:
    return AccountService(service_context)


@pytest.fixture
def club_service(service_context) -> ClubService:
    return ClubService(service_context)


@pytest.fixture
def event_service(service_context, club_service) -> EventService:
    return EventService(service_context, club_service)


@pytest.fixture
def make_account(account_store, otp_manager):
    """
    Factory creating accounts.

    Usage:
        admin = make_account("bob@ee.iitr.ac.in", "20230001", role="club_admin")
    """
    def _make(email: str, enrollment: str, role: str = ROLE_STUDENT, verified: bool = True) -> Account:
        account = account_store.create_account({
            "full_name": email.split("@")[0].title(),
            "email": email,
            "phone": "9876543210",
            "enrollment_number": enrollment,
            "branch": "Other",
            "year": "1st Year",
            "password": "SecurePass123",
        })
        if role != ROLE_STUDENT:
            account = account_store.set_role(account.user_id, role)
        if verified:
            account = otp_manager.validate(account.user_id, otp_manager.issue(account.user_id))
        return account

    return _make


@pytest.fixture
def club_data() -> dict:
    """Valid club fields."""
    return {
        "name": "Robotics Club",
        "short_description": "Build robots together",
        "full_description": "We design, build and race robots every semester.",
        "category": "Technical",
        "email": "robotics@iitr.ac.in",
        "tags": ["robots", " ai ", ""],
        "recruitment_status": "Open",
    }


@pytest.fixture
def event_data() -> dict:
    """Valid event fields; ``organizer_club`` must be filled in by the test."""
    start = date.today() + timedelta(days=30)
    return {
        "title": "Intro to ROS",
        "description": "Hands-on workshop on the Robot Operating System.",
        "event_type": "Workshop",
        "category": "Technical",
        "start_date": start.isoformat(),
        "start_time": "10:00",
        "end_time": "12:30",
        "venue": "LHC 101",
        "tags": ["ros", "robotics"],
    }


# =============================================================================
# Mock Services
# =============================================================================

@pytest.fixture
def api_account() -> Account:
    """Verified student account for mocked endpoints."""
    return Account(
        user_id="test-user-id-123",
        email="alice@cs.iitr.ac.in",
        enrollment_number="20231234",
        full_name="Alice Sharma",
        phone="9876543210",
        branch="Computer Science Engineering",
        year="2nd Year",
        is_email_verified=True
    )


@pytest.fixture
def mock_services(api_account):
    """Create mock services container."""
    services = MagicMock()

    # Mock account service
    services.accounts = MagicMock()
    services.accounts.register = AsyncMock()
    services.accounts.request_otp = AsyncMock(return_value=None)
    services.accounts.verify_otp = AsyncMock()
    services.accounts.login = MagicMock()
    services.accounts.authenticate = MagicMock(return_value=api_account)

    # Mock club and event services
    services.clubs = MagicMock()
    services.events = MagicMock()

    # Mock config
    services.config = MagicMock()
    services.config.app.environment = "test"
    services.context.email.is_configured = MagicMock(return_value=False)

    return services


@pytest.fixture
def live_services(app_config, service_context, account_service, club_service, event_service):
    """Real services container over the temporary store."""
    from api.deps import Services
    return Services(
        config=app_config,
        context=service_context,
        accounts=account_service,
        clubs=club_service,
        events=event_service
    )


# =============================================================================
# API Client Fixtures
# =============================================================================

@pytest.fixture
def api_app():
    """Create FastAPI app for testing."""
    from api.main import app
    return app


@pytest.fixture
def api_client(api_app) -> TestClient:
    """Create synchronous test client for API."""
    return TestClient(api_app)


@pytest.fixture
async def async_api_client(api_app) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Create async test client for API."""
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=api_app),
        base_url="http://test"
    ) as client:
        yield client


@pytest.fixture
def authenticated_client(api_client, valid_access_token) -> TestClient:
    """Create authenticated test client."""
    api_client.headers["Authorization"] = f"Bearer {valid_access_token}"
    return api_client


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as integration test"
    )
    config.addinivalue_line(
        "markers", "api: mark test as API endpoint test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )
