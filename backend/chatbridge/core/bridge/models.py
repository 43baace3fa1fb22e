"""
Bridge Models

Request, job snapshot and result shapes for asynchronous image generation.
"""
from typing import Any, List, Literal, Optional, Union
from pydantic import BaseModel, Field

AspectRatio = Literal["1:1", "4:3", "3:4", "16:9", "9:16"]
SafetyFilterLevel = Literal["block_low_and_above", "block_medium_and_above", "block_only_high"]
OutputFormat = Literal["png", "jpg", "webp"]

DEFAULT_ASPECT_RATIO = "4:3"
DEFAULT_SAFETY_FILTER_LEVEL = "block_medium_and_above"
DEFAULT_OUTPUT_FORMAT = "png"

# Job statuses reported by the prediction API
STARTING = "starting"
PROCESSING = "processing"
SUCCEEDED = "succeeded"
FAILED = "failed"
CANCELED = "canceled"

IN_FLIGHT_STATUSES = frozenset({STARTING, PROCESSING})
TERMINAL_STATUSES = frozenset({SUCCEEDED, FAILED, CANCELED})


class GenerationRequest(BaseModel):
    """A single image generation request. The prompt is checked by the bridge."""
    prompt: str = ""
    aspect_ratio: AspectRatio = DEFAULT_ASPECT_RATIO
    safety_filter_level: SafetyFilterLevel = DEFAULT_SAFETY_FILTER_LEVEL
    output_format: OutputFormat = DEFAULT_OUTPUT_FORMAT

    @classmethod
    def build(cls, prompt: Optional[str], **options: Any) -> "GenerationRequest":
        """Create a request, letting unset (None) options fall back to defaults."""
        values = {k: v for k, v in options.items() if v is not None}
        return cls(prompt=prompt or "", **values)

    def to_input(self) -> dict:
        """Input payload for the prediction API."""
        return {
            "prompt": self.prompt.strip(),
            "aspect_ratio": self.aspect_ratio,
            "safety_filter_level": self.safety_filter_level,
            "output_format": self.output_format,
        }


class Job(BaseModel):
    """Snapshot of a remote prediction. Only the provider mutates it."""
    id: str
    status: str
    output: Optional[Union[str, List[Optional[str]]]] = None
    error: Optional[Any] = None

    @property
    def in_flight(self) -> bool:
        return self.status in IN_FLIGHT_STATUSES

    @property
    def output_url(self) -> Optional[str]:
        # Some models return a single URL, others a list of URLs
        if isinstance(self.output, list):
            return self.output[0] if self.output else None
        return self.output or None


class GenerationMetadata(BaseModel):
    prompt: str
    aspect_ratio: str
    safety_filter_level: str
    output_format: str
    model_used: str


class GenerationResult(BaseModel):
    success: bool = True
    image_url: str
    prediction_id: Optional[str] = None
    generation_time_ms: int = 0
    attempts: int = Field(0, description="Number of status checks made")
    metadata: GenerationMetadata


class ImageSettings(BaseModel):
    """Per-message image options chosen in the chat UI. Unset means default."""
    aspect_ratio: Optional[AspectRatio] = None
    safety_filter_level: Optional[SafetyFilterLevel] = None
    output_format: Optional[OutputFormat] = None
