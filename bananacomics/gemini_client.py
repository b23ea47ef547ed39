"""
Gemini API client for script, prose and panel image generation.

This module is the only place that talks to Google's Gemini API. It submits
prompts (optionally constrained by a response schema) and returns raw text or
inline image payloads; callers own retries and error policy.
"""

import base64
import logging
from typing import Optional, List

from google import genai
from google.genai import types

from bananacomics.config import Config


logger = logging.getLogger(__name__)


class GeminiError(Exception):
    """Gemini API error."""
    pass


def encode_image_data(data) -> str:
    """
    Normalize an inline image payload to a base64 string.

    The SDK returns raw bytes; already-encoded strings pass through.
    """
    if isinstance(data, (bytes, bytearray)):
        return base64.b64encode(bytes(data)).decode("ascii")
    return str(data)


class GeminiClient:
    """Thin async wrapper around the Gemini models API."""

    def __init__(self, config: Config):
        """
        Initialize Gemini client.

        Args:
            config: Application configuration
        """
        self.config = config
        self.client: Optional[genai.Client] = None
        self._connect()

    def _connect(self):
        """Connect to Gemini API."""
        try:
            self.client = genai.Client(api_key=self.config.gemini_api_key)
            logger.info("Connected to Gemini API")
        except Exception as e:
            raise GeminiError(f"Failed to connect to Gemini: {e}")

    async def generate_structured(
        self,
        prompt: str,
        schema: types.Schema,
        model: Optional[str] = None,
    ) -> str:
        """
        Generate JSON text constrained by a response schema.

        Args:
            prompt: Prompt text
            schema: Response schema
            model: Model override, defaults to the configured text model

        Returns:
            Raw response text (may be empty)
        """
        model = model or self.config.text_model
        logger.debug(f"Structured request to {model} ({len(prompt)} chars)")

        response = await self.client.aio.models.generate_content(
            model=model,
            contents=prompt,
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=schema,
            ),
        )
        return response.text or ""

    async def generate_text(self, prompt: str, model: Optional[str] = None) -> str:
        """
        Generate free text.

        Args:
            prompt: Prompt text
            model: Model override, defaults to the configured text model

        Returns:
            Response text (may be empty)
        """
        model = model or self.config.text_model
        logger.debug(f"Text request to {model} ({len(prompt)} chars)")

        response = await self.client.aio.models.generate_content(
            model=model,
            contents=prompt,
        )
        return response.text or ""

    async def generate_images(
        self,
        prompt: str,
        aspect_ratio: Optional[str] = None,
        model: Optional[str] = None,
    ) -> List[str]:
        """
        Request an image and collect every inline payload in the response.

        Args:
            prompt: Image prompt
            aspect_ratio: Aspect ratio override, defaults to configuration
            model: Model override, defaults to the configured image model

        Returns:
            Base64-encoded payloads, possibly empty
        """
        model = model or self.config.image_model
        generate_config = types.GenerateContentConfig(
            response_modalities=["IMAGE"],
            image_config=types.ImageConfig(
                aspect_ratio=aspect_ratio or self.config.aspect_ratio,
            ),
        )

        response = await self.client.aio.models.generate_content(
            model=model,
            contents=prompt,
            config=generate_config,
        )

        payloads = []
        if response.candidates and response.candidates[0].content:
            for part in response.candidates[0].content.parts or []:
                inline = getattr(part, "inline_data", None)
                if inline and inline.data:
                    payloads.append(encode_image_data(inline.data))
        return payloads

    async def test_connection(self) -> bool:
        """
        Test connection to Gemini API.

        Returns:
            True if connection successful
        """
        try:
            response = await self.client.aio.models.generate_content(
                model=self.config.text_model,
                contents="Hello, testing connection",
            )
            return response is not None

        except Exception as e:
            logger.error(f"Connection test failed: {e}")
            return False
