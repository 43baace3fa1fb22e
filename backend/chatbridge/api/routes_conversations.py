"""
Conversation API Routes

CRUD for the caller's conversations and the chat endpoint that turns a
user message into an assistant reply.
"""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from chatbridge.api.dependencies import cancel_on_disconnect, get_chat_service, get_store
from chatbridge.core.bridge import ImageSettings
from chatbridge.core.chat_service import ChatService
from chatbridge.core.store import ConversationNotFound, ConversationStore
from chatbridge.models.conversation import (
    ConversationCreate,
    ConversationRead,
    ConversationUpdate,
    MessageRead,
)

router = APIRouter()


class SendMessageRequest(BaseModel):
    content: str = Field(..., min_length=1)
    image_settings: Optional[ImageSettings] = None


class SendMessageResponse(BaseModel):
    user_message: MessageRead
    assistant_message: MessageRead


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail="Conversation not found")


@router.get("/", response_model=list[ConversationRead])
def list_conversations(store: ConversationStore = Depends(get_store)):
    return store.list_conversations()


@router.post("/", response_model=ConversationRead, status_code=201)
def create_conversation(
    data: Optional[ConversationCreate] = None,
    store: ConversationStore = Depends(get_store),
):
    return store.create_conversation((data or ConversationCreate()).title)


@router.patch("/{conversation_id}", response_model=ConversationRead)
def rename_conversation(
    conversation_id: str,
    data: ConversationUpdate,
    store: ConversationStore = Depends(get_store),
):
    try:
        return store.rename_conversation(conversation_id, data.title)
    except ConversationNotFound:
        raise _not_found()


@router.delete("/{conversation_id}")
def delete_conversation(conversation_id: str, store: ConversationStore = Depends(get_store)):
    try:
        store.delete_conversation(conversation_id)
    except ConversationNotFound:
        raise _not_found()
    return {"ok": True}


@router.get("/{conversation_id}/messages", response_model=list[MessageRead])
def list_messages(conversation_id: str, store: ConversationStore = Depends(get_store)):
    try:
        return store.list_messages(conversation_id)
    except ConversationNotFound:
        raise _not_found()


@router.post("/{conversation_id}/messages", response_model=SendMessageResponse)
async def send_message(
    conversation_id: str,
    data: SendMessageRequest,
    request: Request,
    store: ConversationStore = Depends(get_store),
    chat: ChatService = Depends(get_chat_service),
):
    """
    Store the user message, generate a text or image reply and store it.

    Generation failures do not fail the request: they come back as an
    assistant message whose details carry the error kind.
    """
    try:
        async with cancel_on_disconnect(request) as cancel_event:
            user_msg, assistant_msg = await chat.process_message(
                store, conversation_id, data.content, data.image_settings, cancel_event
            )
    except ConversationNotFound:
        raise _not_found()
    return SendMessageResponse(
        user_message=MessageRead.model_validate(user_msg, from_attributes=True),
        assistant_message=MessageRead.model_validate(assistant_msg, from_attributes=True),
    )
