"""
Image Generation API Routes

Runs one Imagen job through the bridge and answers synchronously.
Errors are returned as {"error", "kind"} with the status of the error kind.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel

from chatbridge.api.dependencies import cancel_on_disconnect, get_image_bridge, get_store
from chatbridge.core.bridge import GenerationRequest, GenerationResult, JobBridge
from chatbridge.core.bridge.models import AspectRatio, OutputFormat, SafetyFilterLevel
from chatbridge.core.classifier import suggest_aspect_ratio
from chatbridge.core.errors import GenerationError
from chatbridge.core.store import ConversationStore
from chatbridge.models.generation import GenerationLogRead

logger = logging.getLogger(__name__)

router = APIRouter()


class ImageGenerationBody(BaseModel):
    prompt: Optional[str] = None
    aspect_ratio: Optional[AspectRatio] = None
    safety_filter_level: Optional[SafetyFilterLevel] = None
    output_format: Optional[OutputFormat] = None
    conversation_id: Optional[str] = None
    message_id: Optional[int] = None


@router.post("/generate-image", response_model=GenerationResult)
async def generate_image(
    body: ImageGenerationBody,
    request: Request,
    bridge: JobBridge = Depends(get_image_bridge),
    store: ConversationStore = Depends(get_store),
):
    """
    Generate an image with the configured Imagen model.

    Blocks until the remote job is terminal or the attempt budget is spent.
    """
    generation_request = GenerationRequest.build(
        body.prompt,
        aspect_ratio=body.aspect_ratio,
        safety_filter_level=body.safety_filter_level,
        output_format=body.output_format,
    )

    try:
        async with cancel_on_disconnect(request) as cancel_event:
            result = await bridge.generate(generation_request, cancel_event=cancel_event)
    except GenerationError as e:
        if generation_request.prompt.strip():
            store.record_generation(
                conversation_id=body.conversation_id,
                message_id=body.message_id,
                provider="replicate",
                model_used=bridge.model_name,
                prompt=generation_request.prompt.strip(),
                aspect_ratio=generation_request.aspect_ratio,
                safety_filter_level=generation_request.safety_filter_level,
                output_format=generation_request.output_format,
                success=False,
                status_code=e.status_code,
                error_kind=e.kind,
            )
        raise

    store.record_generation(
        conversation_id=body.conversation_id,
        message_id=body.message_id,
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
    return result


@router.get("/images", response_model=list[GenerationLogRead])
def list_generated_images(
    limit: int = Query(50, ge=1, le=100),
    store: ConversationStore = Depends(get_store),
):
    """The caller's generation history, newest first."""
    return store.list_generations(limit)


@router.get("/images/aspect-ratio")
def get_suggested_aspect_ratio(prompt: str = Query(..., min_length=1)):
    return {"aspect_ratio": suggest_aspect_ratio(prompt)}
