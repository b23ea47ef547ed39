from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Iterable


@dataclass
class CharacterProfile:
    """Character sheet used to keep a likeness consistent across panels."""

    name: str
    appearance: str  # visual prompt fragment: gender, age, skin, hair, clothing

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {"name": self.name, "appearance": self.appearance}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CharacterProfile":
        return cls(
            name=str(data.get("name", "")).strip(),
            appearance=str(data.get("appearance", "")),
        )


@dataclass
class ComicPanelData:
    """Data for a single comic panel."""

    panel_number: int
    visual_description: str  # English, model-facing
    narrative_caption: str
    dialogue: str
    image_base64: Optional[str] = None

    @property
    def has_image(self) -> bool:
        return bool(self.image_base64)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data = {
            "panel_number": self.panel_number,
            "visual_description": self.visual_description,
            "narrative_caption": self.narrative_caption,
            "dialogue": self.dialogue,
        }
        if self.image_base64:
            data["image_base64"] = self.image_base64
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ComicPanelData":
        return cls(
            panel_number=int(data.get("panel_number", 0)),
            visual_description=str(data.get("visual_description", "")),
            narrative_caption=str(data.get("narrative_caption", "")),
            dialogue=str(data.get("dialogue", "")),
            image_base64=data.get("image_base64"),
        )


@dataclass
class ComicScript:
    """Accumulated story: title, style, panels, cast and plot suggestions."""

    title: str = ""
    visual_style: str = ""
    panels: List[ComicPanelData] = field(default_factory=list)
    characters: List[CharacterProfile] = field(default_factory=list)
    suggested_options: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.panels

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary using the wire field names."""
        return {
            "title": self.title,
            "visual_style": self.visual_style,
            "panels": [p.to_dict() for p in self.panels],
            "characters": [c.to_dict() for c in self.characters],
            "suggestedOptions": list(self.suggested_options),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ComicScript":
        """
        Build a script from a model response payload.

        Args:
            data: Parsed JSON object; optional lists may be missing or null

        Returns:
            ComicScript instance
        """
        return cls(
            title=str(data.get("title") or ""),
            visual_style=str(data.get("visual_style") or ""),
            panels=[ComicPanelData.from_dict(p) for p in data.get("panels") or []],
            characters=[
                CharacterProfile.from_dict(c) for c in data.get("characters") or []
            ],
            suggested_options=[
                str(s) for s in data.get("suggestedOptions") or [] if str(s).strip()
            ],
        )


def merge_characters(
    existing: Iterable[CharacterProfile],
    incoming: Iterable[CharacterProfile],
) -> List[CharacterProfile]:
    """
    Union two character lists keyed by name.

    The first occurrence of a name wins, so entries already in ``existing``
    keep their appearance text even if ``incoming`` redefines them.

    Args:
        existing: Running character set
        incoming: Characters returned by the latest cycle

    Returns:
        New merged list, existing entries first
    """
    merged: List[CharacterProfile] = []
    seen = set()
    for character in list(existing) + list(incoming):
        if not character.name or character.name in seen:
            continue
        seen.add(character.name)
        merged.append(character)
    return merged
