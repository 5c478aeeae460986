"""
Client for the AI generation gateway (OpenAI-compatible chat completions).

Responsibilities:
- Send text and image+text message lists to image and text models
- Map gateway failures to typed errors (429 rate limit, 402 depleted)
- Extract the generated image URL or text content
"""

from typing import Any, Dict, List, Optional

import requests

from design_studio.core.config import settings
from design_studio.core.errors import (
    CreditsDepletedError,
    GatewayError,
    MissingImageError,
    RateLimitedError,
    ServiceNotConfiguredError,
)
from design_studio.core.logger import get_logger

logger = get_logger(__name__)


class AIGatewayClient:
    """Blocking gateway client; the orchestrator runs it in an executor."""

    def __init__(
        self,
        url: str = None,
        api_key: str = None,
        image_model: str = None,
        text_model: str = None,
        timeout: float = None,
        session: Optional[requests.Session] = None,
    ):
        self.url = url or settings.AI_GATEWAY_URL
        self.api_key = api_key if api_key is not None else settings.AI_GATEWAY_API_KEY
        self.image_model = image_model or settings.IMAGE_MODEL
        self.text_model = text_model or settings.TEXT_MODEL
        self.timeout = timeout or settings.REQUEST_TIMEOUT
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        if not self.api_key:
            raise ServiceNotConfiguredError("AI service not configured")
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def chat(
        self,
        model: str,
        messages: List[Dict[str, Any]],
        modalities: Optional[List[str]] = None,
        response_format: Optional[Dict[str, str]] = None,
        temperature: Optional[float] = None,
    ) -> Dict[str, Any]:
        """
        POST one chat completion request.

        Raises:
            RateLimitedError: HTTP 429
            CreditsDepletedError: HTTP 402
            GatewayError: Any other non-2xx status, network error or non-JSON body
        """
        payload: Dict[str, Any] = {"model": model, "messages": messages}
        if modalities:
            payload["modalities"] = modalities
        if response_format:
            payload["response_format"] = response_format
        if temperature is not None:
            payload["temperature"] = temperature

        try:
            response = self.session.post(
                self.url, headers=self._headers(), json=payload, timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error(f"AI gateway unreachable: {e}")
            raise GatewayError(f"AI gateway unreachable: {e}")

        if response.status_code == 429:
            logger.warning("AI gateway rate limit hit")
            raise RateLimitedError(status_code=429)
        if response.status_code == 402:
            logger.warning("AI gateway credits depleted")
            raise CreditsDepletedError()
        if not response.ok:
            logger.error(f"AI gateway error: {response.status_code} {response.text[:500]}")
            raise GatewayError(f"AI gateway error: {response.status_code}", status_code=response.status_code)

        try:
            return response.json()
        except ValueError:
            raise GatewayError("AI gateway returned a non-JSON body")

    def generate_image(self, messages: List[Dict[str, Any]]) -> str:
        """Generate one image; returns its URL (usually a base64 data URL)."""
        data = self.chat(self.image_model, messages, modalities=["image", "text"])

        try:
            image_url = data["choices"][0]["message"]["images"][0]["image_url"]["url"]
        except (KeyError, IndexError, TypeError):
            image_url = None

        if not image_url:
            logger.error("No image in AI gateway response")
            raise MissingImageError()
        return image_url

    def complete_text(
        self,
        messages: List[Dict[str, Any]],
        response_format: Optional[Dict[str, str]] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """Run the text model; returns the first choice's content."""
        data = self.chat(
            self.text_model, messages, response_format=response_format, temperature=temperature
        )

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None

        if not content or not str(content).strip():
            raise GatewayError("AI gateway returned no content")
        return str(content)
