"""
User Model

Stores user credentials, profile fields and API keys for authentication.
"""
import secrets
import hashlib
import uuid
from datetime import datetime, timezone
from typing import Optional
from sqlmodel import SQLModel, Field


def hash_password(password: str) -> str:
    """Hash password using SHA-256 with salt."""
    salt = secrets.token_hex(16)
    hashed = hashlib.sha256((salt + password).encode()).hexdigest()
    return f"{salt}:{hashed}"


def verify_password(password: str, stored_hash: str) -> bool:
    """Verify password against stored hash."""
    try:
        salt, hashed = stored_hash.split(":")
        check = hashlib.sha256((salt + password).encode()).hexdigest()
        return secrets.compare_digest(check, hashed)
    except ValueError:
        return False


def new_api_key() -> str:
    return f"sk-cb-{secrets.token_urlsafe(32)}"


class User(SQLModel, table=True):
    """User model for authentication."""
    id: Optional[str] = Field(default=None, primary_key=True)
    username: str = Field(unique=True, index=True)
    hashed_password: str
    api_key: str = Field(default_factory=new_api_key, index=True)
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def create(cls, username: str, password: str, full_name: Optional[str] = None) -> "User":
        """Create a new user with hashed password."""
        return cls(
            id=str(uuid.uuid4()),
            username=username,
            hashed_password=hash_password(password),
            full_name=full_name,
        )

    def verify_password(self, password: str) -> bool:
        return verify_password(password, self.hashed_password)

    def regenerate_api_key(self) -> str:
        self.api_key = new_api_key()
        return self.api_key


class UserLogin(SQLModel):
    """Login request schema."""
    username: str
    password: str


class UserRegister(SQLModel):
    username: str = Field(min_length=3, max_length=64)
    password: str = Field(min_length=8)
    full_name: Optional[str] = None


class UserProfileUpdate(SQLModel):
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None


class UserResponse(SQLModel):
    """User response schema (without sensitive fields)."""
    id: str
    username: str
    api_key: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: datetime
