"""Core data models for document image generation."""

import base64
import binascii
from pathlib import Path
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

from genimage.core.errors import ProviderError


VALID_ASPECT_RATIOS: tuple[str, ...] = (
    "1:1", "2:3", "3:2", "3:4", "4:3", "4:5", "5:4", "9:16", "16:9", "21:9"
)
VALID_IMAGE_SIZES: tuple[str, ...] = ("1K", "2K", "4K")

DEFAULT_ASPECT_RATIO = "1:1"
DEFAULT_IMAGE_SIZE = "1K"

DEFAULT_API_BASE = "https://generativelanguage.googleapis.com/v1beta/models"


class ProviderConfig(BaseModel):
    """Provider credentials loaded from the credential file.

    Attributes:
        provider_name: Which provider backend to use
        api_key: API key for the provider (never shown in repr or logs)
        model_id: Model identifier to send requests to
    """

    model_config = ConfigDict(frozen=True)

    provider_name: str = Field(default="gemini", description="Provider backend name")
    api_key: SecretStr = Field(..., description="Provider API key")
    model_id: str = Field(..., min_length=1, description="Model identifier")


class PromptTemplate(BaseModel):
    """A named prompt template with its generation parameters.

    Attributes:
        name: Template name (file name without extension)
        path: Where the template was read from, if it came from a file
        aspect_ratio: Aspect ratio of the generated image
        image_size: Size/quality of the generated image
        body: Instruction text sent as the system prompt
    """

    model_config = ConfigDict(frozen=True)

    name: str
    path: Optional[str] = None
    aspect_ratio: str = DEFAULT_ASPECT_RATIO
    image_size: str = DEFAULT_IMAGE_SIZE
    body: str = ""

    @field_validator("aspect_ratio")
    @classmethod
    def _check_aspect_ratio(cls, value: str) -> str:
        if value not in VALID_ASPECT_RATIOS:
            raise ValueError(f"aspect_ratio must be one of {', '.join(VALID_ASPECT_RATIOS)}")
        return value

    @field_validator("image_size")
    @classmethod
    def _check_image_size(cls, value: str) -> str:
        if value not in VALID_IMAGE_SIZES:
            raise ValueError(f"image_size must be one of {', '.join(VALID_IMAGE_SIZES)}")
        return value


class GeneratedAsset(BaseModel):
    """Image returned by the provider.

    Attributes:
        mime_type: MIME type reported by the provider (e.g. image/png)
        data: Base64 encoded image payload
    """

    model_config = ConfigDict(frozen=True)

    mime_type: str
    data: str

    def to_bytes(self) -> bytes:
        """Decode the base64 payload.

        Raises:
            ProviderError: If the payload is not valid base64
        """
        try:
            return base64.b64decode(self.data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ProviderError("Generated image data is not valid base64") from e


class PersistedAssetRef(BaseModel):
    """Location of a saved asset, relative to the storage root."""

    model_config = ConfigDict(frozen=True)

    relative_path: str


class GenerationRequest(BaseModel):
    """Everything captured at the moment a generation is requested.

    Attributes:
        source_text: Selected text, or the whole document without a selection
        document_id: Identity of the document the result goes back into
        document_name: Document name without extension, used for asset naming
        position: Character offset the marker was planted at
    """

    model_config = ConfigDict(frozen=True)

    source_text: str = Field(..., min_length=1)
    document_id: str
    document_name: str
    position: int = Field(..., ge=0)


class InsertionMarker(BaseModel):
    """Placeholder token planted in a document while a generation is pending."""

    model_config = ConfigDict(frozen=True)

    token: str
    document_id: str


class GenerationResult(BaseModel):
    """Successful outcome of one generation.

    Attributes:
        insertion_text: Markdown image reference to put in place of the marker
        template_name: Name of the template the user picked
        asset: Where the image was saved
    """

    model_config = ConfigDict(frozen=True)

    insertion_text: str
    template_name: str
    asset: PersistedAssetRef


class Cancelled(BaseModel):
    """The user aborted the generation. Not an error."""

    model_config = ConfigDict(frozen=True)

    stage: Literal["template_selection"] = "template_selection"


class GenerationSettings(BaseModel):
    """Immutable configuration snapshot for the generation pipeline.

    Attributes:
        env_file_path: Credential file path (supports ~)
        prompt_directory: Template directory, relative to storage_root
        image_output_directory: Base directory for assets, relative to storage_root
        storage_root: Root directory documents and assets live under
        notification_delay_seconds: Delay before the progress notification
        request_timeout: HTTP timeout for the provider call in seconds
        api_base: Provider endpoint base URL
    """

    model_config = ConfigDict(frozen=True)

    env_file_path: str = ""
    prompt_directory: str = ""
    image_output_directory: str = ""
    storage_root: Path = Path(".")
    notification_delay_seconds: float = Field(default=3, ge=0)
    request_timeout: float = Field(default=120, gt=0)
    api_base: str = DEFAULT_API_BASE
