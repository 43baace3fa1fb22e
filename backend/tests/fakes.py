"""In-process stand-ins for the prediction and OpenAI HTTP APIs."""
import json

import httpx

from chatbridge.core.bridge import JobBridge


class FakePredictionAPI:
    """
    Scripted prediction endpoint.

    ``polls`` is the sequence of snapshots returned by successive status
    checks; the last one repeats. An int entry answers with that HTTP status.
    """

    def __init__(self, polls=None, submit_status=201, submit_body=None, initial_status="starting"):
        self.polls = list(polls or [{"status": "succeeded", "output": "https://img.test/out.png"}])
        self.submit_status = submit_status
        self.submit_body = submit_body
        self.initial_status = initial_status
        self.submitted = []
        self.submit_headers = []
        self.poll_urls = []

    @property
    def submit_calls(self):
        return len(self.submitted)

    @property
    def poll_calls(self):
        return len(self.poll_urls)

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            self.submitted.append(json.loads(request.content))
            self.submit_headers.append(request.headers)
            if self.submit_status >= 400:
                return httpx.Response(self.submit_status, json=self.submit_body or {})
            body = {"id": f"job-{self.submit_calls}", "status": self.initial_status}
            if self.submit_body:
                body.update(self.submit_body)
            return httpx.Response(self.submit_status, json=body)

        self.poll_urls.append(str(request.url))
        job_id = request.url.path.rsplit("/", 1)[-1]
        snapshot = self.polls[min(self.poll_calls - 1, len(self.polls) - 1)]
        if isinstance(snapshot, int):
            return httpx.Response(snapshot, json={"detail": "status check failed"})
        return httpx.Response(200, json={"id": job_id, **snapshot})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def bridge(self, **kwargs) -> JobBridge:
        options = dict(
            api_token="r8_test_token",
            model_version="google/imagen-4",
            model_name="imagen-4",
            base_url="https://replicate.test/v1",
            poll_interval=0,
            max_attempts=60,
            transport=self.transport,
        )
        options.update(kwargs)
        return JobBridge(**options)


class FakeOpenAIAPI:
    def __init__(self, text="Paris is the capital of France.", image_url="https://dalle.test/img.png",
                 text_status=200, image_status=200):
        self.text = text
        self.image_url = image_url
        self.text_status = text_status
        self.image_status = image_status
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        self.requests.append((request.url.path, payload))
        if request.url.path.endswith("/chat/completions"):
            if self.text_status >= 400:
                return httpx.Response(self.text_status, json={"error": {"message": "text model unavailable"}})
            return httpx.Response(200, json={"choices": [{"message": {"content": self.text}}]})
        if self.image_status >= 400:
            return httpx.Response(self.image_status, json={"error": {"message": "image model unavailable"}})
        return httpx.Response(200, json={"data": [{"url": self.image_url}]})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)
