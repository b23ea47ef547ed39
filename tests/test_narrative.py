"""
Tests for the story data model.
"""

import pytest

from bananacomics.narrative import (
    CharacterProfile,
    ComicPanelData,
    ComicScript,
    merge_characters,
)


class TestComicPanelData:
    """Test ComicPanelData class."""

    def test_panel_without_image(self):
        """Test an unillustrated panel is valid."""
        panel = ComicPanelData(1, "A street", "Night falls.", "Who's there?")

        assert panel.image_base64 is None
        assert panel.has_image is False
        assert "image_base64" not in panel.to_dict()

    def test_panel_with_image(self):
        """Test image payload is kept in the dictionary."""
        panel = ComicPanelData(2, "A roof", "Dawn.", "Finally.", image_base64="aGVsbG8=")

        assert panel.has_image is True
        assert panel.to_dict()["image_base64"] == "aGVsbG8="

    def test_panel_from_dict(self):
        """Test building a panel from a response payload."""
        panel = ComicPanelData.from_dict({
            "panel_number": "3",
            "visual_description": "In the style of noir, Kaito runs",
            "narrative_caption": "Rain.",
            "dialogue": "Stop!",
        })

        assert panel.panel_number == 3
        assert panel.visual_description.startswith("In the style of")
        assert panel.image_base64 is None


class TestComicScript:
    """Test ComicScript class."""

    def test_empty_script(self):
        """Test a new script starts empty."""
        script = ComicScript()

        assert script.is_empty
        assert script.panels == []
        assert script.characters == []
        assert script.suggested_options == []

    def test_from_dict_wire_names(self):
        """Test suggestions are read from the suggestedOptions field."""
        script = ComicScript.from_dict({
            "title": "Neon Rain",
            "visual_style": "Noir",
            "panels": [
                {"panel_number": 1, "visual_description": "v", "narrative_caption": "n", "dialogue": "d"},
            ],
            "characters": [{"name": "Kaito", "appearance": "tall man, grey coat"}],
            "suggestedOptions": ["Dragon attacks", "", "Planet explodes"],
        })

        assert script.title == "Neon Rain"
        assert len(script.panels) == 1
        assert script.characters[0].name == "Kaito"
        assert script.suggested_options == ["Dragon attacks", "Planet explodes"]

    def test_from_dict_missing_lists(self):
        """Test optional lists may be missing or null."""
        script = ComicScript.from_dict({"title": "T", "panels": None})

        assert script.visual_style == ""
        assert script.panels == []
        assert script.characters == []
        assert script.suggested_options == []

    def test_to_dict(self):
        """Test converting script to dictionary."""
        script = ComicScript(
            title="T",
            visual_style="S",
            panels=[ComicPanelData(1, "v", "n", "d")],
            characters=[CharacterProfile("A", "a")],
            suggested_options=["x"],
        )

        data = script.to_dict()

        assert data["suggestedOptions"] == ["x"]
        assert data["characters"] == [{"name": "A", "appearance": "a"}]
        assert data["panels"][0]["panel_number"] == 1


class TestMergeCharacters:
    """Test merging character lists by name."""

    def test_new_characters_are_appended(self):
        """Test unseen names are added after existing ones."""
        existing = [CharacterProfile("Kaito", "grey coat")]
        incoming = [CharacterProfile("Mira", "red scarf")]

        merged = merge_characters(existing, incoming)

        assert [c.name for c in merged] == ["Kaito", "Mira"]

    def test_existing_appearance_is_kept(self):
        """Test a redefined name does not alter the existing entry."""
        existing = [CharacterProfile("Kaito", "grey coat")]
        incoming = [
            CharacterProfile("Kaito", "blue coat, now bald"),
            CharacterProfile("Mira", "red scarf"),
        ]

        merged = merge_characters(existing, incoming)

        assert len(merged) == 2
        assert merged[0].appearance == "grey coat"

    def test_merge_is_idempotent(self):
        """Test merging the same list twice changes nothing."""
        existing = [CharacterProfile("Kaito", "grey coat"), CharacterProfile("Mira", "red scarf")]

        once = merge_characters(existing, existing)
        twice = merge_characters(once, existing)

        assert once == existing
        assert twice == existing

    def test_duplicates_within_incoming(self):
        """Test the first occurrence wins inside a single list too."""
        merged = merge_characters([], [
            CharacterProfile("Zane", "first"),
            CharacterProfile("Zane", "second"),
        ])

        assert merged == [CharacterProfile("Zane", "first")]

    def test_nameless_characters_dropped(self):
        """Test entries without a name are ignored."""
        merged = merge_characters([], [CharacterProfile("", "ghost")])

        assert merged == []


@pytest.mark.parametrize("count", [0, 1, 5])
def test_merge_with_empty_incoming(count):
    """Test merging nothing keeps the existing set."""
    existing = [CharacterProfile(f"C{i}", f"look {i}") for i in range(count)]

    assert merge_characters(existing, []) == existing
