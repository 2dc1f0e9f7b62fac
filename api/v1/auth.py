"""
Authentication endpoints.

Handles registration, email verification, login and the current profile.
"""

import logging

from fastapi import APIRouter, status
from pydantic import BaseModel, Field

from ..deps import ServicesDep, CurrentUser

logger = logging.getLogger(__name__)

router = APIRouter()


# Request models

class RegisterRequest(BaseModel):
    """User registration request."""
    full_name: str = Field(..., description="Display name")
    email: str = Field(..., description="IITR email address (e.g., user@cs.iitr.ac.in)")
    phone: str = Field(..., description="10-digit phone number")
    enrollment_number: str = Field(..., description="8-digit enrollment number")
    branch: str = Field(..., description="Branch of study")
    year: str = Field(..., description="Year of study (e.g., 2nd Year)")
    password: str = Field(..., description="Password (min 6 chars)")


class EmailRequest(BaseModel):
    """Request carrying only an email."""
    email: str = Field(..., description="Registered email address")


class VerifyEmailRequest(BaseModel):
    """OTP verification request."""
    email: str = Field(..., description="Registered email address")
    otp: str = Field(..., description="6-digit code from the verification email")


class LoginRequest(BaseModel):
    """Login request."""
    email: str = Field(..., description="Registered email address")
    password: str = Field(..., description="Password")


# Endpoints

@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(request: RegisterRequest, services: ServicesDep):
    """
    Register a new user.

    The account starts unverified and a verification code is emailed.
    No token is returned until the email is verified.
    """
    account = await services.accounts.register(request.model_dump())
    return {
        "success": True,
        "message": "Registration successful. Please check your email for the verification code.",
        "user_id": account.user_id,
        "email": account.email
    }


@router.post("/verify-email")
async def verify_email(request: VerifyEmailRequest, services: ServicesDep):
    """
    Verify the email with its OTP.

    Returns an access token and the public profile on success.
    """
    result = await services.accounts.verify_otp(request.email, request.otp)
    return {"success": True, "message": "Email verified successfully", **result.to_dict()}


@router.post("/resend-otp")
async def resend_otp(request: EmailRequest, services: ServicesDep):
    """
    Send a fresh verification code.

    Any previously sent code stops working.
    """
    await services.accounts.request_otp(request.email)
    return {"success": True, "message": "OTP sent successfully"}


@router.post("/login")
async def login(request: LoginRequest, services: ServicesDep):
    """
    Login with email and password.

    Returns an access token and the public profile on success.
    """
    result = services.accounts.login(request.email, request.password)
    return {"success": True, "message": "Login successful", **result.to_dict()}


@router.get("/profile")
async def get_profile(current_user: CurrentUser):
    """
    Get current authenticated user.

    Requires valid access token.
    """
    return {"success": True, "user": current_user.to_public_dict()}
