import asyncio

import pytest

from chatbridge.core.bridge import GenerationMetadata, GenerationResult, ImageSettings, OpenAIClient
from chatbridge.core.chat_service import ChatService
from chatbridge.core.errors import JobTimeoutError, RemoteFailureError, UpstreamError
from chatbridge.core.store import ConversationNotFound
from fakes import FakeOpenAIAPI, FakePredictionAPI


class StubBridge:
    model_name = "imagen-4"

    def __init__(self, error=None, image_url="https://img.test/imagen.png"):
        self.error = error
        self.image_url = image_url
        self.requests = []

    async def generate(self, request, cancel_event=None):
        self.requests.append(request)
        if self.error:
            raise self.error
        return GenerationResult(
            image_url=self.image_url,
            prediction_id="pred-1",
            generation_time_ms=1200,
            attempts=2,
            metadata=GenerationMetadata(
                prompt=request.prompt,
                aspect_ratio=request.aspect_ratio,
                safety_filter_level=request.safety_filter_level,
                output_format=request.output_format,
                model_used=self.model_name,
            ),
        )


class StubOpenAI:
    image_model = "dall-e-3"

    def __init__(self, text="Paris.", image_url="https://img.test/dalle.png", text_error=None, image_error=None):
        self.text = text
        self.image_url = image_url
        self.text_error = text_error
        self.image_error = image_error
        self.image_prompts = []

    async def generate_text(self, prompt):
        if self.text_error:
            raise self.text_error
        return self.text

    async def generate_image(self, prompt):
        self.image_prompts.append(prompt)
        if self.image_error:
            raise self.image_error
        return self.image_url


def send(service, store, conversation_id, content, image_settings=None):
    return asyncio.run(service.process_message(store, conversation_id, content, image_settings))


@pytest.fixture
def conversation(store):
    return store.create_conversation()


def test_text_message(store, conversation):
    bridge = StubBridge()
    service = ChatService(bridge, StubOpenAI(text="Paris is the capital of France."))

    user_msg, assistant_msg = send(service, store, conversation.id, "what is the capital of France")

    assert user_msg.role == "user"
    assert assistant_msg.role == "assistant"
    assert assistant_msg.message_type == "text"
    assert assistant_msg.content == "Paris is the capital of France."
    assert bridge.requests == []
    assert [m.id for m in store.list_messages(conversation.id)] == [user_msg.id, assistant_msg.id]


def test_image_message_uses_primary_provider(store, conversation):
    bridge = StubBridge()
    openai = StubOpenAI()
    service = ChatService(bridge, openai)

    _, assistant_msg = send(service, store, conversation.id, "draw a sunset over mountains",
                            ImageSettings(aspect_ratio="16:9"))

    assert assistant_msg.message_type == "image"
    assert assistant_msg.image_url == "https://img.test/imagen.png"
    assert assistant_msg.details["image_model"] == "imagen-4"
    assert assistant_msg.details["image_settings"] == {
        "aspect_ratio": "16:9",
        "safety_filter": "block_medium_and_above",
        "output_format": "png",
    }
    assert bridge.requests[0].aspect_ratio == "16:9"
    assert openai.image_prompts == []

    [log] = store.list_generations()
    assert log.success is True
    assert log.provider == "replicate"
    assert log.prediction_id == "pred-1"


def test_primary_failure_falls_back_once(store, conversation):
    bridge = StubBridge(error=RemoteFailureError("NSFW content detected", job_id="pred-9"))
    openai = StubOpenAI()
    service = ChatService(bridge, openai)

    _, assistant_msg = send(service, store, conversation.id, "draw a sunset over mountains")

    assert assistant_msg.message_type == "image"
    assert assistant_msg.image_url == "https://img.test/dalle.png"
    assert "DALL-E" in assistant_msg.content
    assert assistant_msg.details["primary_error_kind"] == "RemoteFailure"
    assert openai.image_prompts == ["draw a sunset over mountains"]

    logs = store.list_generations()
    assert [(log.provider, log.success) for log in logs] == [("openai", True), ("replicate", False)]
    assert logs[1].error_kind == "RemoteFailure"


def test_both_image_providers_failing(store, conversation):
    bridge = StubBridge(error=JobTimeoutError("pred-3", 60))
    openai = StubOpenAI(image_error=UpstreamError("Billing hard limit reached", status_code=400))
    service = ChatService(bridge, openai)

    _, assistant_msg = send(service, store, conversation.id, "그려줘 고양이")

    assert assistant_msg.message_type == "text"
    assert assistant_msg.image_url is None
    assert assistant_msg.content == (
        "Sorry, I encountered an error: Image generation is currently unavailable. Please try again later."
    )
    assert assistant_msg.details["error_kind"] == "Timeout"
    assert assistant_msg.details["fallback_error_kind"] == "UpstreamError"


def test_text_failure_is_stored_with_kind(store, conversation):
    service = ChatService(StubBridge(), StubOpenAI(text_error=UpstreamError("Rate limit reached")))

    _, assistant_msg = send(service, store, conversation.id, "tell me a joke")

    assert assistant_msg.content == "Sorry, I encountered an error: Rate limit reached"
    assert assistant_msg.details == {"error_kind": "UpstreamError"}


def test_foreign_conversation_is_rejected_before_any_call(store, other_store):
    foreign = other_store.create_conversation()
    bridge = StubBridge()
    service = ChatService(bridge, StubOpenAI())

    with pytest.raises(ConversationNotFound):
        send(service, store, foreign.id, "draw a cat")

    assert bridge.requests == []
    assert other_store.list_messages(foreign.id) == []


def test_end_to_end_with_http_fakes(store, conversation):
    prediction_api = FakePredictionAPI(polls=[
        {"status": "processing"},
        {"status": "succeeded", "output": "https://img.test/e2e.png"},
    ])
    openai_api = FakeOpenAIAPI()
    openai = OpenAIClient(api_key="sk-test", base_url="https://openai.test/v1", transport=openai_api.transport)
    service = ChatService(prediction_api.bridge(), openai)

    _, image_msg = send(service, store, conversation.id, "generate a lighthouse in a storm")
    _, text_msg = send(service, store, conversation.id, "what is the capital of France")

    assert image_msg.image_url == "https://img.test/e2e.png"
    assert image_msg.details["prediction_id"] == "job-1"
    assert text_msg.content == "Paris is the capital of France."
    assert [path for path, _ in openai_api.requests] == ["/v1/chat/completions"]


def test_abandoned_image_request_skips_fallback(store, conversation):
    prediction_api = FakePredictionAPI(polls=[{"status": "processing"}])
    openai = StubOpenAI()
    service = ChatService(prediction_api.bridge(), openai)
    cancel_event = asyncio.Event()
    cancel_event.set()

    _, assistant_msg = asyncio.run(service.process_message(
        store, conversation.id, "draw a cat", cancel_event=cancel_event
    ))

    assert assistant_msg.details["error_kind"] == "RequestAbandoned"
    assert assistant_msg.content.startswith("Sorry, I encountered an error:")
    assert prediction_api.poll_calls == 0
    assert openai.image_prompts == []
    [entry] = store.list_generations()
    assert entry.error_kind == "RequestAbandoned"
    assert entry.status_code == 499
