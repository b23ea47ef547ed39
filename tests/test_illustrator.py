"""
Tests for panel illustration.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, call, patch

import pytest

from bananacomics.config import Config
from bananacomics.gemini_client import GeminiError
from bananacomics.illustrator import ImageGenerationError, PanelIllustrator
from bananacomics.narrative import CharacterProfile


class TestPanelIllustrator:
    """Test PanelIllustrator."""

    @pytest.fixture
    def config(self):
        return Config(gemini_api_key="test", max_retries=3, retry_delay=2.0)

    @pytest.fixture
    def client(self):
        client = MagicMock()
        client.generate_images = AsyncMock()
        return client

    @pytest.fixture
    def illustrator(self, config, client):
        return PanelIllustrator(config, client)

    @pytest.fixture
    def characters(self):
        return [
            CharacterProfile("Captain Zane", "olive skin, brown leather vest"),
            CharacterProfile("Mira", "pale skin, red scarf"),
        ]

    @patch("bananacomics.illustrator.asyncio.sleep", new_callable=AsyncMock)
    def test_success_first_attempt(self, mock_sleep, illustrator, client, characters):
        """Test a successful first attempt never waits."""
        client.generate_images.return_value = ["aW1n"]

        result = asyncio.run(
            illustrator.generate_image("Zane walks into the bar", characters, "Noir ink")
        )

        assert result == "aW1n"
        mock_sleep.assert_not_called()
        assert client.generate_images.call_count == 1

    @patch("bananacomics.illustrator.asyncio.sleep", new_callable=AsyncMock)
    def test_only_relevant_sheets_injected(self, mock_sleep, illustrator, client, characters):
        """Test unrelated characters stay out of the prompt."""
        client.generate_images.return_value = ["aW1n"]

        asyncio.run(illustrator.generate_image("Zane walks into the bar", characters, "Noir ink"))

        prompt = client.generate_images.call_args.args[0]
        assert "CHARACTER: Captain Zane" in prompt
        assert "Mira" not in prompt
        assert "ART STYLE: Noir ink" in prompt

    @patch("bananacomics.illustrator.asyncio.sleep", new_callable=AsyncMock)
    def test_no_sheets_when_nobody_matches(self, mock_sleep, illustrator, client, characters):
        """Test scenes without named characters get no reference block."""
        client.generate_images.return_value = ["aW1n"]

        asyncio.run(illustrator.generate_image("the hero walks in", characters, "Noir ink"))

        prompt = client.generate_images.call_args.args[0]
        assert "REFERENCE CHARACTER SHEETS" not in prompt

    @patch("bananacomics.illustrator.asyncio.sleep", new_callable=AsyncMock)
    def test_fails_twice_then_succeeds(self, mock_sleep, illustrator, client):
        """Test linear backoff of 2s then 4s before the third attempt."""
        client.generate_images.side_effect = [
            Exception("429 rate limited"),
            Exception("connection reset"),
            ["c3VjY2Vzcw=="],
        ]

        result = asyncio.run(illustrator.generate_image("scene", [], "Noir ink"))

        assert result == "c3VjY2Vzcw=="
        assert mock_sleep.await_args_list == [call(2.0), call(4.0)]
        assert sum(c.args[0] for c in mock_sleep.await_args_list) == 6.0

    @patch("bananacomics.illustrator.asyncio.sleep", new_callable=AsyncMock)
    def test_empty_payload_counts_as_failure(self, mock_sleep, illustrator, client):
        """Test responses without an image are retried."""
        client.generate_images.side_effect = [[], ["aW1n"]]

        result = asyncio.run(illustrator.generate_image("scene", [], "Noir ink"))

        assert result == "aW1n"
        assert client.generate_images.call_count == 2
        mock_sleep.assert_awaited_once_with(2.0)

    @patch("bananacomics.illustrator.asyncio.sleep", new_callable=AsyncMock)
    def test_always_failing(self, mock_sleep, illustrator, client):
        """Test exactly three attempts, then the last error is raised."""
        errors = [Exception("first"), Exception("second"), Exception("third")]
        client.generate_images.side_effect = errors

        with pytest.raises(ImageGenerationError, match="after 3 attempts") as exc_info:
            asyncio.run(illustrator.generate_image("scene", [], "Noir ink"))

        assert client.generate_images.call_count == 3
        assert exc_info.value.last_error is errors[2]
        assert exc_info.value.__cause__ is errors[2]
        # No wait after the final attempt
        assert mock_sleep.await_count == 2

    @patch("bananacomics.illustrator.asyncio.sleep", new_callable=AsyncMock)
    def test_always_empty(self, mock_sleep, illustrator, client):
        """Test a model that never returns images exhausts retries."""
        client.generate_images.return_value = []

        with pytest.raises(ImageGenerationError) as exc_info:
            asyncio.run(illustrator.generate_image("scene", [], "Noir ink"))

        assert isinstance(exc_info.value.last_error, GeminiError)
        assert client.generate_images.call_count == 3


@pytest.mark.parametrize("max_retries", [1, 2, 5])
def test_attempt_count_follows_config(max_retries):
    """Test the number of attempts comes from configuration."""
    client = MagicMock()
    client.generate_images = AsyncMock(side_effect=Exception("down"))
    illustrator = PanelIllustrator(
        Config(gemini_api_key="test", max_retries=max_retries, retry_delay=0), client
    )

    with patch("bananacomics.illustrator.asyncio.sleep", new_callable=AsyncMock):
        with pytest.raises(ImageGenerationError):
            asyncio.run(illustrator.generate_image("scene", [], "style"))

    assert client.generate_images.call_count == max_retries
