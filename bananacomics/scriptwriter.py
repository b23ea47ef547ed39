"""
Script and plot suggestion generation.

Turns a topic plus the story so far into the next batch of panels, the
updated cast and fresh plot-branch ideas, using Gemini structured output.
"""

import json
import logging
import re
from typing import List, Optional, Sequence, Dict, Any

from bananacomics.config import Config
from bananacomics.gemini_client import GeminiClient, GeminiError
from bananacomics.narrative import CharacterProfile, ComicPanelData, ComicScript
from bananacomics.prompts import (
    PANELS_PER_CYCLE,
    SCRIPT_SCHEMA,
    SUGGESTIONS_PER_CYCLE,
    SUGGESTIONS_SCHEMA,
    build_script_prompt,
    build_suggestions_prompt,
)


logger = logging.getLogger(__name__)


class GenerationError(GeminiError):
    """A text generation step produced no usable result."""

    def __init__(self, stage: str, message: Optional[str] = None):
        self.stage = stage
        super().__init__(message or f"{stage} generation failed")


def parse_json_response(text: str) -> Dict[str, Any]:
    """
    Parse a JSON object from model output.

    Args:
        text: Raw response text

    Returns:
        Parsed object

    Raises:
        ValueError: If the text is empty or not a JSON object
    """
    if not text or not text.strip():
        raise ValueError("empty response")
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        # The model sometimes returns the JSON wrapped in markdown, so we extract it
        json_match = re.search(r"```(?:json)?\s*\n(.*?)\n```", text, re.DOTALL)
        if not json_match:
            raise
        data = json.loads(json_match.group(1))
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    return data


class ScriptWriter:
    """Generates comic script batches and plot suggestions."""

    def __init__(self, config: Config, client: Optional[GeminiClient] = None):
        """
        Initialize script writer.

        Args:
            config: Application configuration
            client: Shared Gemini client, created from config if omitted
        """
        self.config = config
        self.client = client or GeminiClient(config)

    async def generate_script(
        self,
        topic: str,
        language: str,
        prior_panels: Sequence[ComicPanelData] = (),
        user_directive: Optional[str] = None,
        known_characters: Sequence[CharacterProfile] = (),
        current_style: Optional[str] = None,
    ) -> ComicScript:
        """
        Generate the next batch of panels.

        Args:
            topic: Story topic
            language: Reader-facing language tag
            prior_panels: Panels already in the story
            user_directive: Optional plot event the user wants next
            known_characters: Running character set
            current_style: Style to preserve on continuation

        Returns:
            Script holding only the new panels, numbered after ``prior_panels``

        Raises:
            GenerationError: If the response is empty, unparseable or short of panels
        """
        prompt = build_script_prompt(
            topic,
            language,
            prior_panels,
            user_directive=user_directive,
            known_characters=known_characters,
            current_style=current_style,
            history_window=self.config.history_window,
        )

        logger.info(
            f"Requesting script panels starting at {len(prior_panels) + 1} "
            f"({'continuation' if prior_panels else 'new story'})"
        )
        try:
            text = await self.client.generate_structured(prompt, SCRIPT_SCHEMA)
        except Exception as e:
            raise GenerationError("script", f"script generation failed: {e}") from e

        try:
            script = ComicScript.from_dict(parse_json_response(text))
        except (ValueError, TypeError, AttributeError) as e:
            raise GenerationError("script", f"unusable script response: {e}") from e

        if len(script.panels) < PANELS_PER_CYCLE:
            raise GenerationError(
                "script",
                f"script response contained {len(script.panels)} panels, "
                f"expected {PANELS_PER_CYCLE}",
            )

        # Panel numbers are assigned here so the story stays contiguous
        script.panels = script.panels[:PANELS_PER_CYCLE]
        start_number = len(prior_panels) + 1
        for offset, panel in enumerate(script.panels):
            panel.panel_number = start_number + offset
            panel.image_base64 = None

        script.suggested_options = script.suggested_options[:SUGGESTIONS_PER_CYCLE]

        logger.info(
            f"Script ready: {len(script.panels)} panels, "
            f"{len(script.characters)} characters"
        )
        return script

    async def generate_suggestions(
        self,
        topic: str,
        language: str,
        recent: Sequence[ComicPanelData],
    ) -> List[str]:
        """
        Generate up to three new plot-branch ideas.

        Failures are logged and yield an empty list.

        Args:
            topic: Story topic
            language: Reader-facing language tag
            recent: Story panels (the prompt shows the last few)

        Returns:
            Suggestion strings
        """
        prompt = build_suggestions_prompt(
            topic, language, recent, history_window=self.config.history_window
        )
        try:
            text = await self.client.generate_structured(prompt, SUGGESTIONS_SCHEMA)
            if not text:
                return []
            options = parse_json_response(text).get("suggestedOptions") or []
        except Exception as e:
            logger.warning(f"Suggestion generation failed: {e}")
            return []

        return [str(o) for o in options if str(o).strip()][:SUGGESTIONS_PER_CYCLE]
