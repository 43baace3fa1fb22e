"""
Conversation Store

Owner-scoped persistence for conversations, messages and generation logs.
The owning identity is bound once; every operation only sees rows that
belong to it.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlmodel import Session, select

from chatbridge.models.conversation import Conversation, Message, MessageRole, MessageType
from chatbridge.models.generation import GenerationLog

logger = logging.getLogger(__name__)


class ConversationNotFound(LookupError):
    """Missing, or owned by somebody else. The two cases are indistinguishable."""


class ConversationStore:
    def __init__(self, session: Session, owner_id: str):
        self.session = session
        self.owner_id = owner_id

    def _owned(self, conversation_id: str) -> Conversation:
        conversation = self.session.get(Conversation, conversation_id)
        if conversation is None or conversation.user_id != self.owner_id:
            raise ConversationNotFound(conversation_id)
        return conversation

    def create_conversation(self, title: str = "New Chat") -> Conversation:
        conversation = Conversation(user_id=self.owner_id, title=title or "New Chat")
        self.session.add(conversation)
        self.session.commit()
        self.session.refresh(conversation)
        return conversation

    def list_conversations(self) -> List[Conversation]:
        """Most recently active first."""
        statement = (
            select(Conversation)
            .where(Conversation.user_id == self.owner_id)
            .order_by(Conversation.updated_at.desc())
        )
        return list(self.session.exec(statement).all())

    def get_conversation(self, conversation_id: str) -> Conversation:
        return self._owned(conversation_id)

    def list_messages(self, conversation_id: str) -> List[Message]:
        self._owned(conversation_id)
        statement = (
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(Message.created_at, Message.id)
        )
        return list(self.session.exec(statement).all())

    def add_message(
        self,
        conversation_id: str,
        role: MessageRole,
        content: str,
        message_type: MessageType = "text",
        image_url: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> Message:
        conversation = self._owned(conversation_id)
        message = Message(
            conversation_id=conversation.id,
            user_id=self.owner_id,
            role=role,
            content=content,
            message_type=message_type,
            image_url=image_url,
            details=details,
        )
        conversation.updated_at = datetime.now(timezone.utc)
        self.session.add(message)
        self.session.add(conversation)
        self.session.commit()
        self.session.refresh(message)
        return message

    def rename_conversation(self, conversation_id: str, title: str) -> Conversation:
        conversation = self._owned(conversation_id)
        conversation.title = title
        self.session.add(conversation)
        self.session.commit()
        self.session.refresh(conversation)
        return conversation

    def delete_conversation(self, conversation_id: str) -> None:
        """Delete a conversation together with its messages."""
        conversation = self._owned(conversation_id)
        self.session.delete(conversation)
        self.session.commit()

    def record_generation(self, **fields: Any) -> Optional[GenerationLog]:
        """
        Add a generation log row for the owner.

        A failure here is logged and never breaks the request that
        produced the image.
        """
        try:
            entry = GenerationLog(user_id=self.owner_id, **fields)
            self.session.add(entry)
            self.session.commit()
            self.session.refresh(entry)
            return entry
        except Exception as e:
            self.session.rollback()
            logger.error(f"[Store] Failed to record generation: {e}")
            return None

    def list_generations(self, limit: int = 50) -> List[GenerationLog]:
        statement = (
            select(GenerationLog)
            .where(GenerationLog.user_id == self.owner_id)
            .order_by(GenerationLog.created_at.desc(), GenerationLog.id.desc())
            .limit(limit)
        )
        return list(self.session.exec(statement).all())
