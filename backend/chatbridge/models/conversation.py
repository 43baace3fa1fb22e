"""
Conversation & Message Models

A conversation belongs to exactly one user; messages belong to exactly
one conversation and are removed together with it.
"""
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional
from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field, Relationship

MessageRole = Literal["user", "assistant", "system"]
MessageType = Literal["text", "image"]


class Conversation(SQLModel, table=True):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    user_id: str = Field(foreign_key="user.id", index=True)
    title: str = "New Chat"
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)

    messages: List["Message"] = Relationship(
        back_populates="conversation",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )


class Message(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    conversation_id: str = Field(foreign_key="conversation.id", index=True)
    user_id: str = Field(foreign_key="user.id")
    role: str  # "user", "assistant", "system"
    content: str
    message_type: str = "text"  # "text", "image"
    image_url: Optional[str] = None
    # image model/settings on success, error_kind on failure
    details: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)

    conversation: Optional[Conversation] = Relationship(back_populates="messages")


class ConversationCreate(SQLModel):
    title: str = "New Chat"


class ConversationUpdate(SQLModel):
    title: str = Field(min_length=1, max_length=200)


class ConversationRead(SQLModel):
    id: str
    title: str
    created_at: datetime
    updated_at: datetime


class MessageRead(SQLModel):
    id: int
    conversation_id: str
    role: str
    content: str
    message_type: str
    image_url: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    created_at: datetime
