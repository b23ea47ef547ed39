"""
Full-story prose generation.

Adapts the committed panels into novel-style prose and invents the rest of
the story through to an ending.
"""

import logging
from typing import Optional, Sequence

from bananacomics.config import Config
from bananacomics.gemini_client import GeminiClient
from bananacomics.narrative import ComicPanelData
from bananacomics.prompts import build_prose_prompt
from bananacomics.scriptwriter import GenerationError


logger = logging.getLogger(__name__)


class ProseWriter:
    """Expands comic panels into a complete prose story."""

    def __init__(self, config: Config, client: Optional[GeminiClient] = None):
        self.config = config
        self.client = client or GeminiClient(config)

    async def generate_prose(
        self,
        topic: str,
        language: str,
        panels: Sequence[ComicPanelData],
        user_directive: Optional[str] = None,
    ) -> str:
        """
        Write the full story for the panels so far.

        Args:
            topic: Story topic
            language: Language tag for the prose
            panels: Every panel in the story, treated as canon
            user_directive: Latest user plot directive steering the ending

        Returns:
            Prose text

        Raises:
            GenerationError: If the model fails or returns nothing
        """
        prompt = build_prose_prompt(topic, language, panels, user_directive)
        logger.info(f"Requesting full story prose for {len(panels)} panels")

        try:
            text = await self.client.generate_text(prompt)
        except Exception as e:
            raise GenerationError("prose", f"prose generation failed: {e}") from e

        if not text.strip():
            raise GenerationError("prose", "prose response was empty")
        return text
