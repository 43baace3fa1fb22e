"""
OpenAI Client

Synchronous request/response calls for text replies and the fallback
image provider. No polling happens here.
"""
import logging
from typing import Optional

import httpx

from chatbridge.core.errors import ConfigurationError, MissingOutputError, UpstreamError

logger = logging.getLogger(__name__)

OPENAI_BASE_URL = "https://api.openai.com/v1"


class OpenAIClient:
    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = OPENAI_BASE_URL,
        text_model: str = "gpt-3.5-turbo",
        image_model: str = "dall-e-3",
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not api_key:
            raise ConfigurationError("OpenAI API key not configured")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.text_model = text_model
        self.image_model = image_model
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings, **kwargs) -> "OpenAIClient":
        options = dict(
            api_key=settings.openai_api_key,
            base_url=settings.openai_api_base,
            text_model=settings.openai_text_model,
            image_model=settings.openai_image_model,
        )
        options.update(kwargs)
        return cls(**options)

    async def _post(self, path: str, payload: dict) -> dict:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.post(f"{self.base_url}{path}", json=payload, headers=headers)
            except httpx.RequestError as e:
                raise UpstreamError(f"Failed to reach OpenAI API: {e}")

        if not response.is_success:
            message = None
            try:
                message = (response.json().get("error") or {}).get("message")
            except (ValueError, AttributeError):
                pass
            raise UpstreamError(
                message or f"OpenAI API error: {response.status_code}",
                status_code=response.status_code,
            )
        return response.json()

    async def generate_text(self, prompt: str) -> str:
        """Single-turn chat completion."""
        data = await self._post("/chat/completions", {
            "model": self.text_model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": 1000,
            "temperature": 0.7,
        })
        choices = data.get("choices") or []
        if choices:
            content = (choices[0].get("message") or {}).get("content")
            if content:
                return content
        return "No response generated"

    async def generate_image(self, prompt: str) -> str:
        """Generate one 1024x1024 image and return its URL."""
        logger.info(f"[OpenAI] Generating fallback image with {self.image_model}")
        data = await self._post("/images/generations", {
            "model": self.image_model,
            "prompt": prompt,
            "n": 1,
            "size": "1024x1024",
            "quality": "standard",
        })
        images = data.get("data") or []
        url = images[0].get("url") if images else None
        if not url:
            raise MissingOutputError("No image URL returned from OpenAI")
        return url
