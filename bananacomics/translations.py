"""
Localized text for the two supported story languages.

Tables are read-only mappings built once at import time and looked up by
language tag.
"""

from types import MappingProxyType
from typing import Mapping

DEFAULT_LANGUAGE = "en"


TRANSLATIONS: Mapping[str, Mapping[str, str]] = MappingProxyType({
    "en": MappingProxyType({
        "language_name": "English",
        "status_writing": "Writing the story...",
        "status_illustrating": "Illustrating the panels...",
        "status_ready": "Your story is ready.",
        "error_generic": "The AI writer got stuck. Please try again.",
        "suggestions_label": "Plot Twist Ideas:",
        "load_more": "More Ideas",
        "drawing": "Drawing...",
        "page": "PAGE",
        "full_story": "Full Story",
        "story_unavailable": "Could not generate story.",
        # Prompt fragments
        "script_language": (
            "The 'narrative_caption', 'dialogue', and 'suggestedOptions' MUST be in English."
        ),
        "suggestions_language": "The 'suggestedOptions' MUST be in English.",
        "prose_language": (
            "Write the story in English. Tone: Emotional, engaging, novel-style."
        ),
    }),
    "vi": MappingProxyType({
        "language_name": "Vietnamese",
        "status_writing": "Đang viết kịch bản...",
        "status_illustrating": "Đang vẽ tranh (vui lòng đợi)...",
        "status_ready": "Truyện của bạn đã sẵn sàng.",
        "error_generic": "AI gặp chút trục trặc khi sáng tác. Vui lòng thử lại.",
        "suggestions_label": "Gợi ý Plot Twist:",
        "load_more": "Thêm Gợi Ý",
        "drawing": "Đang vẽ...",
        "page": "TRANG",
        "full_story": "Cốt Truyện",
        "story_unavailable": "Không thể tạo cốt truyện.",
        "script_language": (
            "The 'narrative_caption', 'dialogue', and 'suggestedOptions' MUST be in Vietnamese. "
            "The story tone should be natural and engaging for Vietnamese readers."
        ),
        "suggestions_language": "The 'suggestedOptions' MUST be in Vietnamese.",
        "prose_language": (
            "Write the story in Vietnamese. Tone: Emotional, engaging, novel-style."
        ),
    }),
})


def get_text(language: str, key: str) -> str:
    """
    Look up a localized string, falling back to English.

    Args:
        language: Language tag ("en" or "vi")
        key: Text key

    Returns:
        Localized string
    """
    table = TRANSLATIONS.get(language, TRANSLATIONS[DEFAULT_LANGUAGE])
    return table[key]
