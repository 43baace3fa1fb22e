"""
Bridge module initialization.
"""
from .models import GenerationRequest, GenerationResult, GenerationMetadata, ImageSettings, Job
from .job_bridge import JobBridge
from .openai_client import OpenAIClient

__all__ = [
    "GenerationRequest",
    "GenerationResult",
    "GenerationMetadata",
    "ImageSettings",
    "Job",
    "JobBridge",
    "OpenAIClient",
]
