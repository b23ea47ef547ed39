"""
Panel illustration with character reference sheets and bounded retry.
"""

import asyncio
import logging
from typing import Optional, Sequence

from bananacomics.config import Config
from bananacomics.gemini_client import GeminiClient, GeminiError
from bananacomics.narrative import CharacterProfile
from bananacomics.prompts import build_image_prompt, find_relevant_characters


logger = logging.getLogger(__name__)


class ImageGenerationError(GeminiError):
    """Illustration failed on every attempt."""

    def __init__(self, message: str, last_error: Optional[BaseException] = None):
        super().__init__(message)
        self.last_error = last_error


class PanelIllustrator:
    """Generates one image per panel description."""

    def __init__(self, config: Config, client: Optional[GeminiClient] = None):
        """
        Initialize panel illustrator.

        Args:
            config: Application configuration
            client: Shared Gemini client, created from config if omitted
        """
        self.config = config
        self.client = client or GeminiClient(config)

    async def generate_image(
        self,
        visual_description: str,
        characters: Sequence[CharacterProfile],
        style: str,
    ) -> str:
        """
        Illustrate a single panel.

        Only characters mentioned in the description get their sheets
        injected. Each failed attempt waits ``attempt * retry_delay`` seconds
        before the next one.

        Args:
            visual_description: Scene description
            characters: Full running character set
            style: Story visual style

        Returns:
            Base64-encoded image

        Raises:
            ImageGenerationError: If every attempt fails
        """
        relevant = find_relevant_characters(visual_description, characters)
        prompt = build_image_prompt(visual_description, relevant, style)
        logger.debug(
            f"Illustrating with {len(relevant)} reference sheet(s): "
            f"{', '.join(c.name for c in relevant) or 'none'}"
        )

        max_retries = self.config.max_retries
        last_error: Optional[BaseException] = None

        for attempt in range(max_retries):
            try:
                payloads = await self.client.generate_images(prompt)
                if not payloads:
                    raise GeminiError("No image data found in API response")
                return payloads[0]

            except Exception as e:
                last_error = e
                logger.warning(f"Image generation attempt {attempt + 1} failed: {e}")

                if attempt < max_retries - 1:
                    # Linear backoff
                    wait_time = (attempt + 1) * self.config.retry_delay
                    logger.info(f"Waiting {wait_time} seconds before retry")
                    await asyncio.sleep(wait_time)

        raise ImageGenerationError(
            f"Failed to generate image after {max_retries} attempts: {last_error}",
            last_error=last_error,
        ) from last_error
