"""Unit tests for Gemini backend."""

import pytest
import requests
from unittest.mock import Mock, patch

from genimage.backends.gemini import GeminiBackend, NO_IMAGE_MESSAGE
from genimage.core.errors import ProviderError
from genimage.core.models import GeneratedAsset, ProviderConfig


def make_response(payload, status_code=200):
    """Build a fake requests.Response returning the given JSON."""
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload
    return response


def image_payload(mime_type="image/png", data="aW1hZ2U="):
    return {
        "candidates": [{
            "content": {
                "parts": [{"inlineData": {"mimeType": mime_type, "data": data}}]
            }
        }]
    }


def make_backend(model="gemini-2.5-flash-image", api_key="test-api-key"):
    return GeminiBackend(ProviderConfig(api_key=api_key, model_id=model))


class TestGeminiBackend:
    """Tests for GeminiBackend."""

    def test_initialization(self):
        """Test backend initialization."""
        backend = make_backend()

        assert backend.name == "Gemini"
        assert backend.model == "gemini-2.5-flash-image"
        assert backend.timeout == 120

    def test_initialization_empty_api_key(self):
        """Test that initialization fails with empty API key."""
        with pytest.raises(ValueError, match="API key is required"):
            make_backend(api_key="")

    def test_repr_hides_api_key(self):
        backend = make_backend(api_key="super-secret-value-1234567890")

        assert "super-secret" not in repr(backend)
        assert "super-secret" not in repr(backend.config)

    def test_supported_models(self):
        models = make_backend().supported_models

        assert "gemini-2.5-flash-image" in models
        assert "gemini-3-pro-image-preview" in models

    @patch('genimage.backends.gemini.requests.post')
    def test_makes_correct_request(self, mock_post):
        """Test URL, headers and body of the request."""
        mock_post.return_value = make_response(image_payload())

        backend = make_backend()
        backend.generate_image("System prompt", "User text", "16:9", "2K")

        mock_post.assert_called_once()
        args, kwargs = mock_post.call_args
        assert args[0] == (
            "https://generativelanguage.googleapis.com/v1beta/models/"
            "gemini-2.5-flash-image:generateContent"
        )
        assert kwargs["headers"] == {
            "Content-Type": "application/json",
            "x-goog-api-key": "test-api-key",
        }
        assert kwargs["timeout"] == 120
        assert kwargs["json"]["generationConfig"]["responseModalities"] == ["TEXT", "IMAGE"]

    @patch('genimage.backends.gemini.requests.post')
    def test_combines_system_prompt_and_user_text(self, mock_post):
        mock_post.return_value = make_response(image_payload())

        make_backend().generate_image("System instructions", "User content", "1:1", "1K")

        body = mock_post.call_args.kwargs["json"]
        assert body["contents"][0]["parts"][0]["text"] == "System instructions\n\n---\n\nUser content"

    @patch('genimage.backends.gemini.requests.post')
    def test_aspect_ratio_only_model_omits_image_size(self, mock_post):
        mock_post.return_value = make_response(image_payload())

        make_backend("gemini-2.5-flash-image").generate_image("p", "t", "21:9", "4K")

        body = mock_post.call_args.kwargs["json"]
        assert body["generationConfig"]["imageConfig"] == {"aspectRatio": "21:9"}

    @patch('genimage.backends.gemini.requests.post')
    def test_full_config_model_sends_both(self, mock_post):
        mock_post.return_value = make_response(image_payload())

        make_backend("gemini-3-pro-image-preview").generate_image("p", "t", "21:9", "4K")

        body = mock_post.call_args.kwargs["json"]
        assert body["generationConfig"]["imageConfig"] == {"aspectRatio": "21:9", "imageSize": "4K"}

    @patch('genimage.backends.gemini.requests.post')
    def test_unknown_model_sends_no_image_config(self, mock_post):
        mock_post.return_value = make_response(image_payload())

        make_backend("gemini-2.0-flash-exp").generate_image("p", "t", "21:9", "4K")

        body = mock_post.call_args.kwargs["json"]
        assert "imageConfig" not in body["generationConfig"]

    @patch('genimage.backends.gemini.requests.post')
    def test_returns_generated_asset(self, mock_post):
        mock_post.return_value = make_response(image_payload("image/jpeg", "SGVsbG8gV29ybGQ="))

        result = make_backend().generate_image("prompt", "text", "1:1", "1K")

        assert result == GeneratedAsset(mime_type="image/jpeg", data="SGVsbG8gV29ybGQ=")

    @patch('genimage.backends.gemini.requests.post')
    def test_skips_text_parts_before_image(self, mock_post):
        payload = {
            "candidates": [{
                "content": {
                    "parts": [
                        {"text": "Here is your image"},
                        {"inlineData": {"mimeType": "image/webp", "data": "Zmlyc3Q="}},
                        {"inlineData": {"mimeType": "image/png", "data": "c2Vjb25k"}},
                    ]
                }
            }]
        }
        mock_post.return_value = make_response(payload)

        result = make_backend().generate_image("prompt", "text", "1:1", "1K")

        assert result.mime_type == "image/webp"
        assert result.data == "Zmlyc3Q="

    @patch('genimage.backends.gemini.requests.post')
    def test_api_error_message_is_passed_through(self, mock_post):
        """Test that the provider's error message is used verbatim."""
        mock_post.return_value = make_response(
            {"error": {"code": 400, "message": "Invalid request", "status": "INVALID_ARGUMENT"}},
            status_code=400,
        )

        with pytest.raises(ProviderError) as exc_info:
            make_backend().generate_image("prompt", "text", "1:1", "1K")

        assert str(exc_info.value) == "Invalid request"
        assert exc_info.value.code == 400
        assert exc_info.value.status == "INVALID_ARGUMENT"

    @patch('genimage.backends.gemini.requests.post')
    def test_text_only_response_fails(self, mock_post):
        mock_post.return_value = make_response(
            {"candidates": [{"content": {"parts": [{"text": "Text only response"}]}}]}
        )

        with pytest.raises(ProviderError, match="No image was generated"):
            make_backend().generate_image("prompt", "text", "1:1", "1K")

    @patch('genimage.backends.gemini.requests.post')
    def test_empty_candidates_fails(self, mock_post):
        mock_post.return_value = make_response({"candidates": []})

        with pytest.raises(ProviderError) as exc_info:
            make_backend().generate_image("prompt", "text", "1:1", "1K")

        assert str(exc_info.value) == NO_IMAGE_MESSAGE

    @patch('genimage.backends.gemini.requests.post')
    def test_candidate_without_content_fails(self, mock_post):
        mock_post.return_value = make_response({"candidates": [{"finishReason": "SAFETY"}]})

        with pytest.raises(ProviderError, match="No image was generated"):
            make_backend().generate_image("prompt", "text", "1:1", "1K")

    @patch('genimage.backends.gemini.requests.post')
    def test_network_failure(self, mock_post):
        mock_post.side_effect = requests.exceptions.ConnectionError("connection refused")

        with pytest.raises(ProviderError, match="Request to Gemini API failed"):
            make_backend().generate_image("prompt", "text", "1:1", "1K")

    @patch('genimage.backends.gemini.requests.post')
    def test_non_json_response(self, mock_post):
        response = Mock()
        response.status_code = 502
        response.json.side_effect = ValueError("Expecting value")
        mock_post.return_value = response

        with pytest.raises(ProviderError, match="HTTP 502"):
            make_backend().generate_image("prompt", "text", "1:1", "1K")

    @patch('genimage.backends.gemini.requests.post')
    def test_single_request_no_retry(self, mock_post):
        """Test that a failure is not retried."""
        mock_post.return_value = make_response({"error": {"code": 500, "message": "Internal"}})

        with pytest.raises(ProviderError):
            make_backend().generate_image("prompt", "text", "1:1", "1K")

        assert mock_post.call_count == 1

    @patch('genimage.backends.gemini.requests.post')
    def test_api_key_not_logged(self, mock_post, caplog):
        mock_post.return_value = make_response(image_payload())
        backend = make_backend(api_key="AIzaSyVerySecretKeyValue123456")

        with caplog.at_level("DEBUG"):
            backend.generate_image("secret system prompt", "private user text", "1:1", "1K")

        assert "AIzaSyVerySecretKeyValue123456" not in caplog.text
        assert "private user text" not in caplog.text
