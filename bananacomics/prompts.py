"""
Prompt generation system for Banana Comics.

This module formats story history and character sheets into compact text
blocks and builds the prompts and response schemas sent to Gemini.
"""

import re
from typing import List, Optional, Sequence

from google.genai import types

from bananacomics.narrative import CharacterProfile, ComicPanelData
from bananacomics.translations import get_text


PANELS_PER_CYCLE = 2
SUGGESTIONS_PER_CYCLE = 3
HISTORY_WINDOW = 6

DEFAULT_VISUAL_STYLE = (
    "Classic Western Comic Book Art, vibrant flat colors, clear outlines, detailed shading"
)

# Name tokens this short ("Dr", "D.") are ignored by the relevance matcher
MIN_NAME_TOKEN_LENGTH = 3

_NAME_SPLIT = re.compile(r"[\s\-_]+")


SCRIPT_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "title": types.Schema(type=types.Type.STRING),
        "visual_style": types.Schema(type=types.Type.STRING),
        "characters": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "name": types.Schema(type=types.Type.STRING),
                    "appearance": types.Schema(type=types.Type.STRING),
                },
                required=["name", "appearance"],
            ),
        ),
        "panels": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "panel_number": types.Schema(type=types.Type.INTEGER),
                    "visual_description": types.Schema(type=types.Type.STRING),
                    "narrative_caption": types.Schema(type=types.Type.STRING),
                    "dialogue": types.Schema(type=types.Type.STRING),
                },
                required=[
                    "panel_number",
                    "visual_description",
                    "narrative_caption",
                    "dialogue",
                ],
            ),
        ),
        "suggestedOptions": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(type=types.Type.STRING),
            description="3 highly creative and unexpected suggestions for what happens next.",
        ),
    },
    required=["title", "visual_style", "panels", "characters", "suggestedOptions"],
)

SUGGESTIONS_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "suggestedOptions": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(type=types.Type.STRING),
        ),
    },
    required=["suggestedOptions"],
)


def format_history(panels: Sequence[ComicPanelData]) -> str:
    """
    Render panels as one line each, in panel order.

    Truncating to the most recent panels is the caller's job, see
    ``recent_panels``.

    Args:
        panels: Panels to render

    Returns:
        Text block, or an empty string for no panels
    """
    if not panels:
        return ""

    return "\n".join(
        f"Panel {p.panel_number}: [Visual: {p.visual_description}] "
        f"[Narrative: {p.narrative_caption}] [Dialogue: {p.dialogue}]"
        for p in panels
    )


def format_characters(characters: Sequence[CharacterProfile]) -> str:
    """Render character sheets as ``Name: X | Appearance: Y`` lines."""
    if not characters:
        return ""
    return "\n".join(f"Name: {c.name} | Appearance: {c.appearance}" for c in characters)


def recent_panels(
    panels: Sequence[ComicPanelData], window: int = HISTORY_WINDOW
) -> List[ComicPanelData]:
    """Return the last ``window`` panels."""
    if window <= 0:
        return []
    return list(panels)[-window:]


def is_character_relevant(description: str, character: CharacterProfile) -> bool:
    """
    Decide whether a character appears in a scene description.

    Best-effort heuristic: matches the full name as a substring, or any name
    token of 3+ characters as a whole word, case-insensitively. Compound
    names can over- or under-match.

    Args:
        description: Panel visual description
        character: Character sheet to test

    Returns:
        True if the character is judged to be in the scene
    """
    lower_desc = description.lower()
    name = character.name.strip().lower()
    if not name:
        return False

    if name in lower_desc:
        return True

    for token in _NAME_SPLIT.split(name):
        if len(token) < MIN_NAME_TOKEN_LENGTH:
            continue
        if re.search(rf"\b{re.escape(token)}\b", lower_desc):
            return True
    return False


def find_relevant_characters(
    description: str, characters: Sequence[CharacterProfile]
) -> List[CharacterProfile]:
    """Filter ``characters`` down to those mentioned in ``description``."""
    return [c for c in characters if is_character_relevant(description, c)]


def build_script_prompt(
    topic: str,
    language: str,
    prior_panels: Sequence[ComicPanelData],
    user_directive: Optional[str] = None,
    known_characters: Sequence[CharacterProfile] = (),
    current_style: Optional[str] = None,
    history_window: int = HISTORY_WINDOW,
) -> str:
    """
    Build the prompt for the next batch of script panels.

    Args:
        topic: Story topic entered by the user
        language: Reader-facing language tag
        prior_panels: Every panel generated so far
        user_directive: Optional plot event requested by the user
        known_characters: Running character set
        current_style: Visual style to preserve on continuation
        history_window: Number of recent panels shown to the model

    Returns:
        Prompt text
    """
    is_continuation = len(prior_panels) > 0
    start_number = len(prior_panels) + 1
    directive = (user_directive or "").strip()

    context_prompt = ""
    character_prompt = ""
    style_instruction = ""

    if is_continuation:
        if directive:
            context_prompt = (
                f'CONTINUE the story. The user explicitly requests this event to happen next: '
                f'"{directive}". You MUST incorporate this action/event into these next '
                f"{PANELS_PER_CYCLE} panels naturally but immediately."
            )
        else:
            context_prompt = (
                "CONTINUE the story based on the history provided below. Do NOT restart the "
                "story. Do NOT rush to a conclusion yet. Introduce new challenges or plot "
                "twists to keep it engaging."
            )

        if known_characters:
            character_prompt = (
                "EXISTING CHARACTERS (YOU MUST MAINTAIN THESE EXACT DESCRIPTIONS):\n"
                f"{format_characters(known_characters)}\n"
                "IMPORTANT: You may add new characters to the list if they are introduced, "
                "but DO NOT change the appearance of existing characters."
            )

        if current_style:
            style_instruction = (
                f'CURRENT ART STYLE: "{current_style}".\n'
                "CRITICAL REQUIREMENT: You MUST use this exact string for the 'visual_style' "
                "field. Do not change it unless the user's action explicitly demands a style "
                'change (e.g. "become pixel art").'
            )
    else:
        context_prompt = (
            f'Start a new, engaging story about: "{topic}". Build a strong foundation for a '
            "long-running story. Define the main characters visually."
        )
        style_instruction = (
            "EXTRACT THE ART STYLE from the topic (e.g. 'The Simpsons', 'Anime', 'Noir', "
            "'Pixel Art').\n"
            "- If a style is mentioned, describe it in detail in the 'visual_style' field.\n"
            f"- If NO style is mentioned, default 'visual_style' to: \"{DEFAULT_VISUAL_STYLE}\"."
        )

    history = format_history(recent_panels(prior_panels, history_window))

    return f"""You are a professional comic book writer.

Task: Write the next {PANELS_PER_CYCLE} panels for a comic strip.
Topic/Theme: "{topic}"
{context_prompt}

{style_instruction}

{character_prompt}

STORY HISTORY (Context):
{history}
(Note: Only the last {history_window} panels are shown for context, but keep the overall arc consistent).

{get_text(language, "script_language")}

IMPORTANT REQUIREMENTS:
1. This is a continuous story. Each batch of {PANELS_PER_CYCLE} panels is a "chapter".
2. The plot must be deep, logical, and captivating. Avoid generic or abrupt endings.
3. Visual descriptions must be in English.
4. Panel numbers must start from {start_number}.
5. TEXT LENGTH:
   - Dialogue MUST be extremely short and punchy (max 24 words).
   - Narrative captions must be very brief (max 20 words).
6. FORMATTING:
   - Do NOT include the character's name in the 'dialogue' field.
7. VISUAL CONSISTENCY RULES (STRICT):
   - The 'visual_style' must be consistent.
   - In 'visual_description', ALWAYS start with the phrase: "In the style of [visual_style], ...".
   - ALWAYS use the character's EXACT name. NEVER use pronouns like "he", "she", "they" when referring to a known character.
   - 'characters' array: The 'appearance' field MUST be extremely specific and used as a visual prompt.
     - MUST INCLUDE: Gender, Age, Race/Skin Tone (e.g. "pale skin", "dark brown skin"), Hair Style & Color, Facial Hair, DISTINCTIVE CLOTHING (Top, Bottom, Shoes, Headwear) and THEIR COLORS.
     - Example: "Name: Captain Zane | Appearance: Tall rugged male, olive skin, scar on left cheek, messy black hair, wearing a white sleeveless undershirt, brown leather vest, dark green cargo pants, and heavy black combat boots."
8. SUGGESTIONS:
   - Provide {SUGGESTIONS_PER_CYCLE} VERY DISTINCT, UNPREDICTABLE, and CREATIVE options for what happens next.
   - AVOID generic linear steps (e.g., "They walk through the door").
   - INSTEAD, focus on:
     * Plot Twists: Someone betrays them, a secret identity is revealed, or a main character disappears.
     * Surreal/Weird Events: Gravity fails, a talking animal appears, reality glitches, or they enter a different dimension.
     * Genre Shifts: Suddenly it becomes horror, or a musical, or sci-fi.
   - LENGTH: MAXIMUM 4-5 WORDS per suggestion. Keep it extremely concise, like a title or a sudden action (e.g. "Dragon attacks", "He is a ghost", "Planet explodes").

Return a JSON object with:
- 'title' (string)
- 'visual_style' (string)
- 'characters': Array of objects {{ name, appearance }} (all existing characters plus any new ones)
- 'panels': Array of {PANELS_PER_CYCLE} objects.
- 'suggestedOptions': Array of {SUGGESTIONS_PER_CYCLE} strings (The future plot suggestions).

Panel Structure:
- 'panel_number' (integer, starting at {start_number})
- 'visual_description' (string, English)
- 'narrative_caption' (string, {language})
- 'dialogue' (string, {language})
"""


def build_suggestions_prompt(
    topic: str,
    language: str,
    panels: Sequence[ComicPanelData],
    history_window: int = HISTORY_WINDOW,
) -> str:
    """Build the prompt for a fresh set of plot-branch ideas."""
    return f"""You are a creative director for a comic series.

Task: Generate {SUGGESTIONS_PER_CYCLE} NEW, EXTRAORDINARY plot directions for the story below.
Current Story Topic: "{topic}"

Story History (Last {history_window} panels):
{format_history(recent_panels(panels, history_window))}

{get_text(language, "suggestions_language")}

REQUIREMENTS:
1. High Creativity: Do NOT offer boring or predictable next steps.
2. Plot Twists: Focus on shocking revelations, sudden genre shifts, or character betrayals.
3. Brevity: MAXIMUM 4-5 WORDS per option. Must be extremely concise.
4. Diversity: The options must be completely different from each other.

Return a JSON object with:
- 'suggestedOptions': Array of {SUGGESTIONS_PER_CYCLE} strings.
"""


def build_prose_prompt(
    topic: str,
    language: str,
    panels: Sequence[ComicPanelData],
    user_directive: Optional[str] = None,
) -> str:
    """
    Build the prompt that adapts the comic into a complete prose story.

    All panels are passed, not a recent window: they are the canon the prose
    must narrate before inventing the rest.
    """
    directive = (user_directive or "").strip()
    if directive:
        intervention = (
            "MAJOR PLOT TWIST: The user has explicitly intervened with this instruction: "
            f'"{directive}".\n'
            "You MUST change the ending and the future direction of the story to match "
            "this new instruction."
        )
    else:
        intervention = (
            "Keep the story flow natural. You do not need to radically change the ending "
            "unless the recent panels suggest a new direction."
        )

    return f"""You are a professional novelist adapting a comic book into a full text story.

CORE TASK: Write a COMPLETE story (Beginning, Middle, and End) based on the comic panels provided below.

RULES:
1. The Past (Canon): The story MUST start by narrating the events exactly as they happened in the "Comic Panels History". Do not contradict the panels. Use the dialogue from the panels if it fits.
2. The Future (Prediction): After narrating the existing panels, you must WRITE THE REST OF THE STORY until the end. Reveal the plot, the climax, and the conclusion.
3. Format & Pacing:
   - Break paragraphs frequently. Do NOT write long walls of text.
   - Put spoken dialogue on its own line to make it impactful.
   - Use **bold** for loud sounds or intense emphasis. Use *italics* for internal thoughts, soft whispers, or flashbacks.
   - Describe the tone of voice and micro-expressions.

Comic Panels History (These have already happened):
{format_history(panels)}

Original Topic: "{topic}"

{intervention}

{get_text(language, "prose_language")}
"""


def build_image_prompt(
    visual_description: str,
    characters: Sequence[CharacterProfile],
    style: str,
) -> str:
    """
    Build the illustration prompt for one panel.

    The style is stated both first and last. ``characters`` should already be
    filtered down to the ones relevant to this scene.

    Args:
        visual_description: Scene description from the script
        characters: Reference sheets to inject
        style: Visual style of the story

    Returns:
        Image generation prompt
    """
    character_block = ""
    if characters:
        sheets = "\n\n".join(
            f"CHARACTER: {c.name}\nVISUAL APPEARANCE: {c.appearance}" for c in characters
        )
        character_block = f"""
REFERENCE CHARACTER SHEETS (Apply these visual details EXACTLY to the characters in the scene):
{sheets}

DRAWING INSTRUCTIONS FOR CHARACTERS:
- If a character listed above appears in the scene, you MUST draw them exactly as described in their Visual Appearance.
- Do NOT change their skin tone, hair color, or clothing colors.
- Maintain their specific accessories.
"""

    return f"""SYSTEM: You are a professional comic artist who maintains strict visual consistency.

ART STYLE: {style}
{character_block}
SCENE ACTION & COMPOSITION:
{visual_description}

FINAL CHECK:
- Render the scene EXACTLY in the style of: {style}
- Ensure all characters match their Reference Sheets above.
"""
