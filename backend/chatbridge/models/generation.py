"""
Generation Log Model

Records every image generation attempt made on behalf of a user,
successful or not.
"""
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime, timezone


class GenerationLog(SQLModel, table=True):
    """Log entry for each image generation call."""
    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)
    user_id: str = Field(foreign_key="user.id", index=True)
    conversation_id: Optional[str] = None
    message_id: Optional[int] = None

    # Request info
    provider: str  # "replicate", "openai"
    model_used: str
    prompt: str
    aspect_ratio: Optional[str] = None
    safety_filter_level: Optional[str] = None
    output_format: Optional[str] = None

    # Response info
    success: bool
    status_code: int
    image_url: Optional[str] = None
    prediction_id: Optional[str] = None
    generation_time_ms: int = 0

    # Error kind from chatbridge.core.errors (if any)
    error_kind: Optional[str] = None


class GenerationLogRead(SQLModel):
    id: int
    created_at: datetime
    conversation_id: Optional[str] = None
    provider: str
    model_used: str
    prompt: str
    aspect_ratio: Optional[str] = None
    success: bool
    status_code: int
    image_url: Optional[str] = None
    prediction_id: Optional[str] = None
    generation_time_ms: int
    error_kind: Optional[str] = None
