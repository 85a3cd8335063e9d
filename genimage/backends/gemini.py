"""Gemini generateContent backend implementation."""

import logging
from typing import Any, Optional
import requests

from genimage.core.base_backend import BaseBackend
from genimage.core.capabilities import build_image_config
from genimage.core.errors import ProviderError
from genimage.core.models import DEFAULT_API_BASE, GeneratedAsset, ProviderConfig

logger = logging.getLogger(__name__)

NO_IMAGE_MESSAGE = "No image was generated. The API may have returned text only."


class GeminiBackend(BaseBackend):
    """Backend implementation using the Gemini generateContent API.

    Attributes:
        config: Provider credentials and model
        timeout: HTTP timeout in seconds
        api_base: Base URL of the models endpoint
    """

    def __init__(
        self,
        config: ProviderConfig,
        timeout: float = 120,
        api_base: str = DEFAULT_API_BASE
    ):
        """Initialize the Gemini backend.

        Args:
            config: Provider credentials and model
            timeout: HTTP timeout in seconds
            api_base: Base URL of the models endpoint

        Raises:
            ValueError: If the API key is empty
        """
        super().__init__(config)

        if not config.api_key.get_secret_value():
            raise ValueError("Gemini API key is required")

        self.timeout = timeout
        self.api_base = api_base.rstrip("/")
        logger.info(f"Initialized Gemini backend with model: {self.model}")

    @property
    def endpoint(self) -> str:
        """URL of the generateContent call for the configured model."""
        return f"{self.api_base}/{self.model}:generateContent"

    def build_request_body(
        self,
        system_prompt: str,
        user_text: str,
        aspect_ratio: str,
        image_size: str
    ) -> dict[str, Any]:
        """Build the JSON body for one generateContent call."""
        generation_config: dict[str, Any] = {
            "responseModalities": ["TEXT", "IMAGE"],
        }

        image_config = build_image_config(self.model, aspect_ratio, image_size)
        if image_config is not None:
            generation_config["imageConfig"] = image_config

        return {
            "contents": [{
                "parts": [{"text": self.combine_prompt(system_prompt, user_text)}]
            }],
            "generationConfig": generation_config,
        }

    def generate_image(
        self,
        system_prompt: str,
        user_text: str,
        aspect_ratio: str,
        image_size: str
    ) -> GeneratedAsset:
        """Generate an image using the Gemini API.

        Args:
            system_prompt: Template body
            user_text: Selected document text
            aspect_ratio: Requested aspect ratio (sent only if the model supports it)
            image_size: Requested image size (sent only if the model supports it)

        Returns:
            GeneratedAsset taken from the first inline-data part of the first candidate

        Raises:
            ProviderError: If the request fails, the API reports an error,
                or the response carries no image
        """
        body = self.build_request_body(system_prompt, user_text, aspect_ratio, image_size)
        image_config = body["generationConfig"].get("imageConfig", {})

        logger.info(
            f"Sending request to Gemini API (model={self.model}, "
            f"aspect_ratio={image_config.get('aspectRatio', 'N/A')}, "
            f"image_size={image_config.get('imageSize', 'N/A')}, "
            f"prompt_length={len(body['contents'][0]['parts'][0]['text'])})"
        )

        try:
            response = requests.post(
                self.endpoint,
                headers={
                    "Content-Type": "application/json",
                    "x-goog-api-key": self.config.api_key.get_secret_value(),
                },
                json=body,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Request to Gemini API failed: {e}")
            raise ProviderError(f"Request to Gemini API failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Gemini API returned a non-JSON response (HTTP {response.status_code})")
            raise ProviderError(
                f"Gemini API returned an unreadable response (HTTP {response.status_code})"
            ) from e

        if not isinstance(data, dict):
            raise ProviderError(
                f"Gemini API returned an unexpected response (HTTP {response.status_code})"
            )

        error = data.get("error")
        if error:
            if not isinstance(error, dict):
                error = {"message": str(error)}
            message = error.get("message") or f"Gemini API error (HTTP {response.status_code})"
            logger.error(
                f"Gemini API error: code={error.get('code')}, "
                f"status={error.get('status')}, message={message}"
            )
            raise ProviderError(message, code=error.get("code"), status=error.get("status"))

        image = self.extract_image(data)
        if image is None:
            logger.error("No image in Gemini response")
            raise ProviderError(NO_IMAGE_MESSAGE)

        logger.info(
            f"Image generated successfully (mime_type={image.mime_type}, "
            f"data_length={len(image.data)})"
        )
        return image

    @staticmethod
    def extract_image(data: dict[str, Any]) -> Optional[GeneratedAsset]:
        """Find the first inline image in the first candidate.

        Text parts are skipped; a response with only text yields None.
        """
        candidates = data.get("candidates") or []
        if not candidates:
            return None

        content = (candidates[0] or {}).get("content") or {}
        for part in content.get("parts") or []:
            inline_data = part.get("inlineData")
            if inline_data:
                return GeneratedAsset(
                    mime_type=inline_data.get("mimeType", ""),
                    data=inline_data.get("data", ""),
                )

        return None

    @property
    def name(self) -> str:
        """Get the backend name.

        Returns:
            The string "Gemini"
        """
        return "Gemini"

    @property
    def supported_models(self) -> list[str]:
        """Get a list of image-capable Gemini models.

        Returns:
            Model identifiers known to return inline images
        """
        return [
            "gemini-2.5-flash-image",
            "gemini-3-pro-image-preview",
        ]
