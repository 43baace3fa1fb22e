"""
Shared FastAPI dependencies.

Provider clients hold read-only configuration only, so one instance of
each is shared by every request.
"""
import asyncio
from contextlib import asynccontextmanager, suppress
from functools import lru_cache
from typing import AsyncIterator

from fastapi import Depends, Request
from sqlmodel import Session

from chatbridge.core.auth import get_current_user
from chatbridge.core.bridge import JobBridge, OpenAIClient
from chatbridge.core.chat_service import ChatService
from chatbridge.core.config import get_settings
from chatbridge.core.database import get_session
from chatbridge.core.store import ConversationStore
from chatbridge.models.user import User


@lru_cache()
def get_image_bridge() -> JobBridge:
    return JobBridge.from_settings(get_settings())


@lru_cache()
def get_openai_client() -> OpenAIClient:
    return OpenAIClient.from_settings(get_settings())


def get_chat_service(
    bridge: JobBridge = Depends(get_image_bridge),
    openai: OpenAIClient = Depends(get_openai_client),
) -> ChatService:
    return ChatService(bridge, openai)


def get_store(
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> ConversationStore:
    return ConversationStore(session, current_user.id)


DISCONNECT_CHECK_INTERVAL = 1.0


async def _watch_disconnect(request: Request, cancel_event: asyncio.Event):
    """Set ``cancel_event`` once the client has gone away."""
    while not cancel_event.is_set():
        if await request.is_disconnected():
            cancel_event.set()
            return
        await asyncio.sleep(DISCONNECT_CHECK_INTERVAL)


@asynccontextmanager
async def cancel_on_disconnect(request: Request) -> AsyncIterator[asyncio.Event]:
    """Yield an event that is set when the client disconnects mid-request."""
    cancel_event = asyncio.Event()
    watcher = asyncio.create_task(_watch_disconnect(request, cancel_event))
    try:
        yield cancel_event
    finally:
        watcher.cancel()
        with suppress(asyncio.CancelledError):
            await watcher
