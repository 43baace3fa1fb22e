"""
Job Bridge

Turns the asynchronous prediction API (submit a job, poll its status)
into one awaitable call with a bounded number of status checks.

Protocol:
    1. Submit the job once. A rejected submission fails immediately.
    2. While the job is starting/processing and the attempt budget is not
       spent: wait, check status once, replace the snapshot.
    3. Map the final snapshot to a GenerationResult or a typed error.

No retries, no caching and no deduplication: two identical requests
create two remote jobs. A failed status check ends the whole operation.
"""
import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, Tuple

import httpx

from chatbridge.core.errors import (
    CanceledError,
    ConfigurationError,
    JobTimeoutError,
    MissingOutputError,
    PollTransportError,
    RemoteFailureError,
    RequestAbandonedError,
    SubmissionError,
    ValidationError,
)
from .models import (
    FAILED,
    SUCCEEDED,
    TERMINAL_STATUSES,
    GenerationMetadata,
    GenerationRequest,
    GenerationResult,
    Job,
)

logger = logging.getLogger(__name__)

REPLICATE_BASE_URL = "https://api.replicate.com/v1"


class JobBridge:
    """
    Submit-then-poll adapter for a job based image API.

    Instances only hold read-only configuration and can be shared by
    concurrent requests.
    """

    def __init__(
        self,
        api_token: Optional[str],
        model_version: str,
        model_name: str = "imagen-4",
        base_url: str = REPLICATE_BASE_URL,
        poll_interval: float = 5.0,
        max_attempts: int = 60,
        backoff_factor: float = 1.0,
        max_poll_interval: float = 30.0,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if not api_token:
            raise ConfigurationError("Replicate API token not configured")
        if max_attempts < 1:
            raise ConfigurationError("max_attempts must be at least 1")
        self.api_token = api_token
        self.model_version = model_version
        self.model_name = model_name
        self.base_url = base_url.rstrip("/")
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self.backoff_factor = backoff_factor
        self.max_poll_interval = max_poll_interval
        self.timeout = timeout
        self._transport = transport
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings, **kwargs) -> "JobBridge":
        options = dict(
            api_token=settings.replicate_api_token,
            model_version=settings.imagen_model_version,
            model_name=settings.imagen_model_name,
            base_url=settings.replicate_api_base,
            poll_interval=settings.poll_interval,
            max_attempts=settings.max_attempts,
            backoff_factor=settings.poll_backoff,
            max_poll_interval=settings.max_poll_interval,
            timeout=settings.http_timeout,
        )
        options.update(kwargs)
        return cls(**options)

    @property
    def submit_url(self) -> str:
        return f"{self.base_url}/predictions"

    def status_url(self, job_id: str) -> str:
        return f"{self.base_url}/predictions/{job_id}"

    def poll_delay(self, attempt: int) -> float:
        """Delay before status check number ``attempt`` (0-based)."""
        cap = max(self.max_poll_interval, self.poll_interval)
        delay = self.poll_interval
        for _ in range(attempt):
            if delay >= cap:
                break
            delay *= self.backoff_factor
        return min(delay, cap)

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_token}",
            "Content-Type": "application/json",
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def generate(
        self,
        request: GenerationRequest,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> GenerationResult:
        """
        Run one generation to a terminal state.

        Args:
            request: What to generate.
            cancel_event: Set by the caller when nobody is waiting for the
                result any more. The remote job keeps running.

        Raises:
            ValidationError, SubmissionError, PollTransportError,
            RemoteFailureError, CanceledError, MissingOutputError,
            JobTimeoutError, RequestAbandonedError
        """
        if not request.prompt or not request.prompt.strip():
            raise ValidationError("Prompt is required and cannot be empty")

        start_time = time.monotonic()
        logger.info(
            f"[Bridge] Generating image with {self.model_name}: "
            f"aspect_ratio={request.aspect_ratio} "
            f"safety_filter_level={request.safety_filter_level} "
            f"output_format={request.output_format}"
        )

        async with self._client() as client:
            job = await self._submit(client, request)
            job, attempts = await self._poll(client, job, cancel_event)

        generation_time_ms = int((time.monotonic() - start_time) * 1000)
        return self._to_result(request, job, attempts, generation_time_ms)

    async def _submit(self, client: httpx.AsyncClient, request: GenerationRequest) -> Job:
        payload = {"version": self.model_version, "input": request.to_input()}
        try:
            response = await client.post(self.submit_url, json=payload, headers=self._headers())
        except httpx.RequestError as e:
            logger.error(f"[Bridge] Submission transport error: {e}")
            raise SubmissionError(f"Failed to reach image API: {e}")

        if not response.is_success:
            detail = _error_detail(response)
            logger.error(f"[Bridge] Submission rejected ({response.status_code}): {detail}")
            raise SubmissionError(
                detail or f"Replicate API error: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            job = Job.model_validate(response.json())
        except ValueError as e:
            raise SubmissionError(f"Invalid job returned by image API: {e}")

        logger.info(f"[Bridge] Prediction created: {job.id} ({job.status})")
        return job

    async def _poll(
        self,
        client: httpx.AsyncClient,
        job: Job,
        cancel_event: Optional[asyncio.Event],
    ) -> Tuple[Job, int]:
        attempts = 0
        while job.in_flight and attempts < self.max_attempts:
            if await self._wait(self.poll_delay(attempts), cancel_event):
                logger.warning(f"[Bridge] Caller went away, leaving {job.id} running remotely")
                raise RequestAbandonedError(job.id, attempts)

            try:
                response = await client.get(self.status_url(job.id), headers=self._headers())
            except httpx.RequestError as e:
                raise PollTransportError(
                    f"Failed to check prediction status: {e}", job.id, attempts + 1
                )
            attempts += 1

            if not response.is_success:
                raise PollTransportError(
                    f"Failed to check prediction status: {response.status_code}",
                    job.id,
                    attempts,
                    status_code=response.status_code,
                )
            try:
                job = Job.model_validate(response.json())
            except ValueError as e:
                raise PollTransportError(f"Invalid prediction status: {e}", job.id, attempts)

            logger.info(f"[Bridge] Prediction status: {job.status} (attempt {attempts}/{self.max_attempts})")

        return job, attempts

    async def _wait(self, delay: float, cancel_event: Optional[asyncio.Event]) -> bool:
        """Sleep for ``delay``. Returns True if the caller abandoned the request."""
        if cancel_event is None:
            await self._sleep(delay)
            return False
        if not cancel_event.is_set():
            try:
                await asyncio.wait_for(cancel_event.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass
        return cancel_event.is_set()

    def _to_result(
        self,
        request: GenerationRequest,
        job: Job,
        attempts: int,
        generation_time_ms: int,
    ) -> GenerationResult:
        if job.in_flight:
            logger.error(f"[Bridge] Prediction {job.id} timed out after {attempts} checks")
            raise JobTimeoutError(job.id, attempts)

        if job.status not in TERMINAL_STATUSES:
            raise RemoteFailureError(f"Unexpected prediction status: {job.status}", job_id=job.id)

        if job.status == SUCCEEDED:
            image_url = job.output_url
            if not image_url:
                raise MissingOutputError(job_id=job.id)
            logger.info(f"[Bridge] Image generated successfully: {image_url}")
            return GenerationResult(
                image_url=image_url,
                prediction_id=job.id,
                generation_time_ms=generation_time_ms,
                attempts=attempts,
                metadata=GenerationMetadata(
                    prompt=request.prompt,
                    aspect_ratio=request.aspect_ratio,
                    safety_filter_level=request.safety_filter_level,
                    output_format=request.output_format,
                    model_used=self.model_name,
                ),
            )

        if job.status == FAILED:
            message = str(job.error) if job.error else "Image generation failed"
            logger.error(f"[Bridge] Image generation failed: {message}")
            raise RemoteFailureError(message, job_id=job.id)

        logger.warning(f"[Bridge] Prediction {job.id} was canceled")
        raise CanceledError(job_id=job.id)


def _error_detail(response: httpx.Response) -> Optional[str]:
    try:
        data = response.json()
    except ValueError:
        return None
    if isinstance(data, dict):
        detail = data.get("error") or data.get("detail")
        if detail:
            return str(detail)
    return None
