"""Configuration module for ClubHub."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"


@dataclass
class AppConfig:
    """Application-wide settings."""
    # development | production | test
    environment: str = field(default_factory=lambda: os.getenv("ENVIRONMENT", "development").lower())
    data_dir: Path = field(default_factory=lambda: Path(os.getenv("DATA_DIR", str(DEFAULT_DATA_DIR))))

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@dataclass
class JWTConfig:
    """Session token settings."""
    secret_key: str = field(default_factory=lambda: os.getenv("JWT_SECRET_KEY", ""))
    # 7 days, matching the web client's "remember me" session
    access_token_expire_seconds: int = field(default_factory=lambda: int(os.getenv("ACCESS_TOKEN_EXPIRE_SECONDS", str(86400 * 7))))


@dataclass
class OTPConfig:
    """One-time code settings."""
    length: int = field(default_factory=lambda: int(os.getenv("OTP_LENGTH", "6")))
    ttl_seconds: int = field(default_factory=lambda: int(os.getenv("OTP_TTL_SECONDS", "600")))


@dataclass
class EmailConfig:
    """Outgoing mail settings."""
    smtp_host: str = field(default_factory=lambda: os.getenv("SMTP_HOST", ""))
    smtp_port: int = field(default_factory=lambda: int(os.getenv("SMTP_PORT", "587")))
    smtp_user: str = field(default_factory=lambda: os.getenv("SMTP_USER", ""))
    smtp_password: str = field(default_factory=lambda: os.getenv("SMTP_PASSWORD", ""))
    from_email: str = field(default_factory=lambda: os.getenv("EMAIL_FROM", os.getenv("SMTP_USER", "")))
    from_name: str = field(default_factory=lambda: os.getenv("EMAIL_FROM_NAME", "Club Recruitment IITR"))
    frontend_url: str = field(default_factory=lambda: os.getenv("FRONTEND_URL", "http://localhost:5173"))


@dataclass
class Config:
    """Main configuration container."""
    app: AppConfig = field(default_factory=AppConfig)
    jwt: JWTConfig = field(default_factory=JWTConfig)
    otp: OTPConfig = field(default_factory=OTPConfig)
    email: EmailConfig = field(default_factory=EmailConfig)


def load_config() -> Config:
    """Load configuration from environment variables."""
    return Config()
