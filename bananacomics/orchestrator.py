"""
Story orchestration for Banana Comics.

This module sequences script, prose and illustration generation for each
story cycle and owns the accumulated story state.
"""

import asyncio
import copy
import functools
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Set, Sequence

from bananacomics.config import Config
from bananacomics.gemini_client import GeminiClient
from bananacomics.illustrator import ImageGenerationError, PanelIllustrator
from bananacomics.narrative import (
    CharacterProfile,
    ComicPanelData,
    ComicScript,
    merge_characters,
)
from bananacomics.prompts import DEFAULT_VISUAL_STYLE
from bananacomics.prose import ProseWriter
from bananacomics.scriptwriter import GenerationError, ScriptWriter
from bananacomics.translations import TRANSLATIONS, get_text


logger = logging.getLogger(__name__)


class CycleStatus(str, Enum):
    """Status of the current story cycle."""

    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


@dataclass(frozen=True)
class StoryView:
    """Read-only snapshot of the story for presentation."""

    script: ComicScript
    prose: str
    status: CycleStatus
    status_message: str
    topic: str = ""
    language: str = "en"
    characters: List[CharacterProfile] = field(default_factory=list)


class StoryOrchestrator:
    """Drives story cycles and accumulates their results."""

    def __init__(
        self,
        config: Config,
        script_writer: Optional[ScriptWriter] = None,
        prose_writer: Optional[ProseWriter] = None,
        illustrator: Optional[PanelIllustrator] = None,
        language: Optional[str] = None,
    ):
        """
        Initialize story orchestrator.

        Args:
            config: Application configuration
            script_writer: Script client, built from config if omitted
            prose_writer: Prose client, built from config if omitted
            illustrator: Illustration client, built from config if omitted
            language: Story language, defaults to ``config.language``
        """
        self.config = config

        client = None
        if script_writer is None or prose_writer is None or illustrator is None:
            client = GeminiClient(config)
        self.script_writer = script_writer or ScriptWriter(config, client)
        self.prose_writer = prose_writer or ProseWriter(config, client)
        self.illustrator = illustrator or PanelIllustrator(config, client)

        self.language = config.language
        self.set_language(language or config.language)

        self.topic = ""
        self.script = ComicScript()
        self.prose = ""
        self.status = CycleStatus.IDLE
        self.status_message = ""

        # Bumped on reset so late background results are dropped
        self._epoch = 0
        self._prose_seq = 0
        self._applied_prose_seq = 0
        self._prose_tasks: Set[asyncio.Task] = set()

    @property
    def characters(self) -> List[CharacterProfile]:
        return self.script.characters

    @property
    def view(self) -> StoryView:
        """Snapshot of the current state."""
        script = copy.deepcopy(self.script)
        return StoryView(
            script=script,
            prose=self.prose,
            status=self.status,
            status_message=self.status_message,
            topic=self.topic,
            language=self.language,
            characters=list(script.characters),
        )

    def set_language(self, language: str) -> None:
        """Switch the language used by subsequent cycles."""
        if language not in TRANSLATIONS:
            raise ValueError(f"Unsupported language: {language}")
        self.language = language

    def _set_status(self, status: CycleStatus, message_key: Optional[str] = None):
        self.status = status
        self.status_message = get_text(self.language, message_key) if message_key else ""
        logger.debug(f"Status -> {status.value}: {self.status_message}")

    async def start_story(self, topic: str) -> StoryView:
        """
        Start a new story from a topic.

        Args:
            topic: Story topic

        Returns:
            View of the resulting state; ``status`` is ERROR if the script
            could not be generated
        """
        topic = topic.strip()
        if not topic:
            raise ValueError("Story topic must not be empty")

        self.reset()
        self.topic = topic
        epoch = self._epoch
        logger.info(f"Starting story: {topic}")

        # Step 1: Script establishes the canon
        self._set_status(CycleStatus.LOADING, "status_writing")
        try:
            script = await self.script_writer.generate_script(topic, self.language)
        except GenerationError as e:
            return self._fail_cycle(e, epoch)

        if epoch != self._epoch:
            logger.info("Story was reset while writing; dropping new story")
            return self.view

        # Step 2: Commit scaffold, panels still unillustrated
        script.characters = merge_characters([], script.characters)
        script.visual_style = script.visual_style.strip() or DEFAULT_VISUAL_STYLE
        self.script = script

        # Step 3: Prose in the background
        self._spawn_prose(list(self.script.panels))

        # Step 4: Illustrate new panels one by one
        self._set_status(CycleStatus.LOADING, "status_illustrating")
        await self._illustrate(self.script.panels, epoch)

        return self._finish_cycle(epoch)

    async def continue_story(self, directive: str = "") -> StoryView:
        """
        Extend the current story by one cycle.

        Args:
            directive: Optional plot event the user wants to happen next

        Returns:
            View of the resulting state; on script failure the previous
            panels are untouched and ``status`` is ERROR
        """
        if self.script.is_empty:
            raise RuntimeError("No story to continue; call start_story first")

        directive = (directive or "").strip()
        epoch = self._epoch
        logger.info(
            f"Continuing story from panel {len(self.script.panels)}"
            + (f" with directive: {directive}" if directive else "")
        )

        self._set_status(CycleStatus.LOADING, "status_writing")
        try:
            part = await self.script_writer.generate_script(
                self.topic,
                self.language,
                list(self.script.panels),
                user_directive=directive or None,
                known_characters=list(self.script.characters),
                current_style=self.script.visual_style,
            )
        except GenerationError as e:
            return self._fail_cycle(e, epoch)

        if epoch != self._epoch:
            logger.info("Story was reset while writing; dropping continuation")
            return self.view

        # Commit scaffold
        new_panels = part.panels
        self.script.panels.extend(new_panels)
        self.script.characters = merge_characters(self.script.characters, part.characters)
        if part.visual_style.strip():
            if part.visual_style != self.script.visual_style:
                logger.info(f"Visual style changed to: {part.visual_style}")
            self.script.visual_style = part.visual_style
        self.script.suggested_options = list(part.suggested_options)
        if not self.script.title:
            self.script.title = part.title

        self._spawn_prose(list(self.script.panels), directive or None)

        self._set_status(CycleStatus.LOADING, "status_illustrating")
        await self._illustrate(new_panels, epoch)

        return self._finish_cycle(epoch)

    async def load_more_suggestions(self) -> List[str]:
        """
        Fetch more plot ideas and append them to the current list.

        Returns:
            The newly added suggestions (empty on failure)
        """
        if self.script.is_empty:
            return []

        epoch = self._epoch
        try:
            more = await self.script_writer.generate_suggestions(
                self.topic, self.language, list(self.script.panels)
            )
        except Exception as e:
            logger.warning(f"Failed to load more suggestions: {e}")
            return []

        if epoch != self._epoch:
            return []

        self.script.suggested_options = self.script.suggested_options + list(more)
        return list(more)

    def reset(self) -> None:
        """Discard the story and return to idle."""
        self._epoch += 1
        for task in list(self._prose_tasks):
            task.cancel()
        self._prose_tasks.clear()

        self.topic = ""
        self.script = ComicScript()
        self.prose = ""
        self._set_status(CycleStatus.IDLE)

    async def wait_for_prose(self) -> str:
        """Wait for any pending prose generation and return the prose."""
        pending = list(self._prose_tasks)
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            # Let done-callbacks run before reading the result
            await asyncio.sleep(0)
        return self.prose

    async def _illustrate(self, panels: Sequence[ComicPanelData], epoch: int) -> None:
        """Illustrate panels sequentially, keeping failed ones unillustrated."""
        for panel in panels:
            if epoch != self._epoch:
                logger.info("Story was reset while illustrating; stopping")
                return

            try:
                image = await self.illustrator.generate_image(
                    panel.visual_description,
                    self.script.characters,
                    self.script.visual_style,
                )
            except ImageGenerationError as e:
                logger.error(f"Failed to generate image for panel {panel.panel_number}: {e}")
                continue

            if epoch != self._epoch:
                logger.info("Story was reset while illustrating; stopping")
                return

            panel.image_base64 = image
            logger.info(f"Panel {panel.panel_number} illustrated")

    def _spawn_prose(
        self,
        panels: List[ComicPanelData],
        directive: Optional[str] = None,
    ) -> asyncio.Task:
        """Launch prose generation without awaiting it."""
        self._prose_seq += 1
        task = asyncio.create_task(
            self.prose_writer.generate_prose(self.topic, self.language, panels, directive)
        )
        self._prose_tasks.add(task)
        task.add_done_callback(
            functools.partial(self._deliver_prose, self._epoch, self._prose_seq)
        )
        return task

    def _deliver_prose(self, epoch: int, seq: int, task: asyncio.Task) -> None:
        """Apply a finished prose task to the state if it is still current."""
        self._prose_tasks.discard(task)
        if task.cancelled():
            return

        error = task.exception()
        if error is not None:
            logger.error(f"Story prose generation failed: {error}")
            return

        if epoch != self._epoch or seq < self._applied_prose_seq:
            logger.debug(f"Discarding stale prose result #{seq}")
            return

        self.prose = task.result()
        self._applied_prose_seq = seq
        logger.info(f"Story prose updated ({len(self.prose)} chars)")

    def _fail_cycle(self, error: GenerationError, epoch: int) -> StoryView:
        logger.error(f"Story cycle failed: {error}")
        if epoch == self._epoch:
            self._set_status(CycleStatus.ERROR, "error_generic")
        return self.view

    def _finish_cycle(self, epoch: int) -> StoryView:
        if epoch == self._epoch:
            self._set_status(CycleStatus.READY, "status_ready")
        return self.view
