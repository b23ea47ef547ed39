"""
Tests for the Gemini API client.
"""

import asyncio
import base64
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from bananacomics.config import Config
from bananacomics.gemini_client import GeminiClient, GeminiError, encode_image_data
from bananacomics.prompts import SCRIPT_SCHEMA


def make_image_response(*payloads):
    """Build a mock response with one inline-data part per payload."""
    parts = []
    for data in payloads:
        part = MagicMock()
        part.inline_data = MagicMock()
        part.inline_data.data = data
        part.inline_data.mime_type = "image/png"
        parts.append(part)

    mock_content = MagicMock()
    mock_content.parts = parts

    mock_candidate = MagicMock()
    mock_candidate.content = mock_content

    mock_response = MagicMock()
    mock_response.candidates = [mock_candidate]
    return mock_response


class TestEncodeImageData:
    """Test inline payload normalization."""

    def test_bytes_are_encoded(self):
        """Test raw bytes become base64 text."""
        assert encode_image_data(b"hello") == base64.b64encode(b"hello").decode("ascii")

    def test_strings_pass_through(self):
        """Test already-encoded strings are unchanged."""
        assert encode_image_data("aGVsbG8=") == "aGVsbG8="


class TestGeminiClient:
    """Test Gemini client."""

    @pytest.fixture
    def config(self):
        """Create test configuration."""
        return Config(gemini_api_key="test_gemini_key", aspect_ratio="1:1")

    @pytest.fixture
    def mock_client(self):
        """Create mock Gemini SDK client with async models."""
        client = MagicMock()
        client.aio.models.generate_content = AsyncMock()
        return client

    @patch("bananacomics.gemini_client.genai.Client")
    def test_client_initialization(self, mock_client_class, config, mock_client):
        """Test client initialization."""
        mock_client_class.return_value = mock_client

        client = GeminiClient(config)

        assert client.config == config
        assert client.client == mock_client
        mock_client_class.assert_called_once_with(api_key="test_gemini_key")

    @patch("bananacomics.gemini_client.genai.Client")
    def test_connection_failure(self, mock_client_class, config):
        """Test handling connection failure."""
        mock_client_class.side_effect = Exception("Connection failed")

        with pytest.raises(GeminiError, match="Failed to connect"):
            GeminiClient(config)

    @patch("bananacomics.gemini_client.genai.Client")
    def test_generate_structured(self, mock_client_class, config, mock_client):
        """Test structured requests send the schema and JSON mime type."""
        mock_client_class.return_value = mock_client
        mock_response = MagicMock()
        mock_response.text = '{"title": "T"}'
        mock_client.aio.models.generate_content.return_value = mock_response

        client = GeminiClient(config)
        text = asyncio.run(client.generate_structured("prompt", SCRIPT_SCHEMA))

        assert text == '{"title": "T"}'
        call_kwargs = mock_client.aio.models.generate_content.call_args.kwargs
        assert call_kwargs["model"] == "gemini-2.5-flash"
        assert call_kwargs["contents"] == "prompt"
        assert call_kwargs["config"].response_mime_type == "application/json"
        assert call_kwargs["config"].response_schema == SCRIPT_SCHEMA

    @patch("bananacomics.gemini_client.genai.Client")
    def test_generate_text_empty(self, mock_client_class, config, mock_client):
        """Test a missing text body comes back as an empty string."""
        mock_client_class.return_value = mock_client
        mock_response = MagicMock()
        mock_response.text = None
        mock_client.aio.models.generate_content.return_value = mock_response

        client = GeminiClient(config)

        assert asyncio.run(client.generate_text("prompt")) == ""

    @patch("bananacomics.gemini_client.genai.Client")
    def test_generate_images(self, mock_client_class, config, mock_client):
        """Test image payloads are collected and base64-encoded."""
        mock_client_class.return_value = mock_client
        mock_client.aio.models.generate_content.return_value = make_image_response(b"img")

        client = GeminiClient(config)
        payloads = asyncio.run(client.generate_images("draw"))

        assert payloads == [base64.b64encode(b"img").decode("ascii")]
        call_kwargs = mock_client.aio.models.generate_content.call_args.kwargs
        assert call_kwargs["model"] == "gemini-2.5-flash-image"
        assert call_kwargs["config"].image_config.aspect_ratio == "1:1"

    @patch("bananacomics.gemini_client.genai.Client")
    def test_generate_images_without_payload(self, mock_client_class, config, mock_client):
        """Test text-only responses yield no payloads."""
        mock_client_class.return_value = mock_client
        part = MagicMock()
        part.inline_data = None
        response = make_image_response()
        response.candidates[0].content.parts = [part]
        mock_client.aio.models.generate_content.return_value = response

        client = GeminiClient(config)

        assert asyncio.run(client.generate_images("draw")) == []

    @patch("bananacomics.gemini_client.genai.Client")
    def test_generate_images_no_candidates(self, mock_client_class, config, mock_client):
        """Test an empty candidate list yields no payloads."""
        mock_client_class.return_value = mock_client
        response = MagicMock()
        response.candidates = []
        mock_client.aio.models.generate_content.return_value = response

        client = GeminiClient(config)

        assert asyncio.run(client.generate_images("draw")) == []

    @patch("bananacomics.gemini_client.genai.Client")
    def test_test_connection_success(self, mock_client_class, config, mock_client):
        """Test successful connection test."""
        mock_client_class.return_value = mock_client
        mock_client.aio.models.generate_content.return_value = MagicMock()

        client = GeminiClient(config)

        assert asyncio.run(client.test_connection()) is True

    @patch("bananacomics.gemini_client.genai.Client")
    def test_test_connection_failure(self, mock_client_class, config, mock_client):
        """Test failed connection test."""
        mock_client_class.return_value = mock_client
        mock_client.aio.models.generate_content.side_effect = Exception("API error")

        client = GeminiClient(config)

        assert asyncio.run(client.test_connection()) is False
