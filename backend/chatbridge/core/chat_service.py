"""
Chat Service

Handles one user message end to end:
    1. Store the user message.
    2. Classify it as an image or a text request.
    3. Image: primary bridge, falling back once to the secondary provider.
       A caller that went away gets no fallback.
       Text: one chat completion.
    4. Store the assistant reply. Failures become a plain-text reply with
       the error kind kept in the message details.
"""
import asyncio
import logging
import time
from typing import Any, Dict, Optional, Tuple

from chatbridge.core.bridge import GenerationRequest, ImageSettings, JobBridge, OpenAIClient
from chatbridge.core.classifier import Intent, IntentClassifier, default_classifier
from chatbridge.core.errors import GenerationError, RequestAbandonedError
from chatbridge.core.store import ConversationStore
from chatbridge.models.conversation import Message

logger = logging.getLogger(__name__)

IMAGE_UNAVAILABLE = "Image generation is currently unavailable. Please try again later."


def error_reply(message: str) -> str:
    return f"Sorry, I encountered an error: {message}"


class ChatService:
    def __init__(
        self,
        bridge: JobBridge,
        openai: OpenAIClient,
        classifier: IntentClassifier = default_classifier,
    ):
        self.bridge = bridge
        self.openai = openai
        self.classifier = classifier

    async def process_message(
        self,
        store: ConversationStore,
        conversation_id: str,
        content: str,
        image_settings: Optional[ImageSettings] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Tuple[Message, Message]:
        """Returns (user message, assistant message), both persisted."""
        user_msg = store.add_message(conversation_id, "user", content)

        if self.classifier.classify(content) == Intent.IMAGE:
            reply = await self._image_reply(
                store, conversation_id, content, image_settings, cancel_event
            )
        else:
            reply = await self._text_reply(content)

        assistant_msg = store.add_message(conversation_id, "assistant", **reply)
        return user_msg, assistant_msg

    async def _text_reply(self, content: str) -> Dict[str, Any]:
        try:
            text = await self.openai.generate_text(content)
        except GenerationError as e:
            logger.error(f"[Chat] Text generation failed ({e.kind}): {e}")
            return {
                "content": error_reply(e.message),
                "details": {"error_kind": e.kind},
            }
        return {"content": text}

    async def _image_reply(
        self,
        store: ConversationStore,
        conversation_id: str,
        content: str,
        image_settings: Optional[ImageSettings],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Dict[str, Any]:
        settings = image_settings.model_dump() if image_settings else {}
        request = GenerationRequest.build(content, **settings)
        model_name = self.bridge.model_name

        start_time = time.monotonic()
        try:
            result = await self.bridge.generate(request, cancel_event=cancel_event)
        except GenerationError as primary:
            elapsed = int((time.monotonic() - start_time) * 1000)
            store.record_generation(
                conversation_id=conversation_id,
                provider="replicate",
                model_used=model_name,
                prompt=request.prompt.strip(),
                aspect_ratio=request.aspect_ratio,
                safety_filter_level=request.safety_filter_level,
                output_format=request.output_format,
                success=False,
                status_code=primary.status_code,
                generation_time_ms=elapsed,
                error_kind=primary.kind,
            )
            if isinstance(primary, RequestAbandonedError):
                logger.warning(f"[Chat] Caller went away during {model_name} generation, no fallback")
                return {
                    "content": error_reply(primary.message),
                    "details": {"error_kind": primary.kind, "error": primary.message},
                }
            logger.warning(f"[Chat] {model_name} failed ({primary.kind}), falling back to DALL-E: {primary}")
            return await self._fallback_reply(store, conversation_id, content, model_name, primary)

        store.record_generation(
            conversation_id=conversation_id,
            provider="replicate",
            model_used=result.metadata.model_used,
            prompt=result.metadata.prompt.strip(),
            aspect_ratio=result.metadata.aspect_ratio,
            safety_filter_level=result.metadata.safety_filter_level,
            output_format=result.metadata.output_format,
            success=True,
            status_code=200,
            image_url=result.image_url,
            prediction_id=result.prediction_id,
            generation_time_ms=result.generation_time_ms,
        )
        return {
            "content": f'I\'ve created an image using the {model_name} model based on your request: "{content}"',
            "message_type": "image",
            "image_url": result.image_url,
            "details": {
                "image_model": model_name,
                "image_settings": {
                    "aspect_ratio": request.aspect_ratio,
                    "safety_filter": request.safety_filter_level,
                    "output_format": request.output_format,
                },
                "prediction_id": result.prediction_id,
            },
        }

    async def _fallback_reply(
        self,
        store: ConversationStore,
        conversation_id: str,
        content: str,
        model_name: str,
        primary: GenerationError,
    ) -> Dict[str, Any]:
        start_time = time.monotonic()
        try:
            image_url = await self.openai.generate_image(content)
        except GenerationError as fallback:
            logger.error(f"[Chat] Both image providers failed: {primary.kind}, {fallback.kind}")
            store.record_generation(
                conversation_id=conversation_id,
                provider="openai",
                model_used=self.openai.image_model,
                prompt=content,
                success=False,
                status_code=fallback.status_code,
                generation_time_ms=int((time.monotonic() - start_time) * 1000),
                error_kind=fallback.kind,
            )
            return {
                "content": error_reply(IMAGE_UNAVAILABLE),
                "details": {
                    "error_kind": primary.kind,
                    "error": primary.message,
                    "fallback_error_kind": fallback.kind,
                    "fallback_error": fallback.message,
                },
            }

        store.record_generation(
            conversation_id=conversation_id,
            provider="openai",
            model_used=self.openai.image_model,
            prompt=content,
            success=True,
            status_code=200,
            image_url=image_url,
            generation_time_ms=int((time.monotonic() - start_time) * 1000),
        )
        return {
            "content": f'I\'ve generated an image using DALL-E based on your request: "{content}" ({model_name} was unavailable)',
            "message_type": "image",
            "image_url": image_url,
            "details": {
                "image_model": self.openai.image_model,
                "primary_error_kind": primary.kind,
            },
        }
