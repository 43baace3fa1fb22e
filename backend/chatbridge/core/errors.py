"""
Generation Errors

Typed failures raised by the image bridge and the provider clients.
Every error carries a ``kind`` (persisted with failed assistant messages)
and the HTTP status the API answers with.
"""
from typing import Optional


class GenerationError(Exception):
    """Base class for every generation failure."""
    kind = "GenerationError"
    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        return {"error": self.message, "kind": self.kind}


class ConfigurationError(GenerationError):
    """A required credential or setting is missing."""
    kind = "ConfigurationError"


class ValidationError(GenerationError):
    kind = "ValidationError"
    status_code = 400


class SubmissionError(GenerationError):
    """The provider rejected job creation."""
    kind = "SubmissionError"


class PollTransportError(GenerationError):
    """A status check failed. Earlier polls do not count."""
    kind = "PollTransportError"

    def __init__(self, message: str, job_id: str, attempts: int, status_code: Optional[int] = None):
        super().__init__(message, status_code)
        self.job_id = job_id
        self.attempts = attempts


class RemoteFailureError(GenerationError):
    kind = "RemoteFailure"

    def __init__(self, message: str, job_id: Optional[str] = None):
        super().__init__(message)
        self.job_id = job_id


class CanceledError(GenerationError):
    kind = "Canceled"

    def __init__(self, message: str = "Image generation was canceled", job_id: Optional[str] = None):
        super().__init__(message)
        self.job_id = job_id


class MissingOutputError(GenerationError):
    kind = "MissingOutput"

    def __init__(self, message: str = "No image URL returned", job_id: Optional[str] = None):
        super().__init__(message)
        self.job_id = job_id


class JobTimeoutError(GenerationError):
    kind = "Timeout"
    status_code = 408

    def __init__(self, job_id: str, attempts: int):
        super().__init__("Image generation timed out. Please try again.")
        self.job_id = job_id
        self.attempts = attempts


class RequestAbandonedError(GenerationError):
    """The caller went away while the job was still running."""
    kind = "RequestAbandoned"
    status_code = 499

    def __init__(self, job_id: str, attempts: int):
        super().__init__(f"Request abandoned while waiting for job {job_id}")
        self.job_id = job_id
        self.attempts = attempts


class UpstreamError(GenerationError):
    """Non-2xx answer from a synchronous provider (text or fallback image)."""
    kind = "UpstreamError"
