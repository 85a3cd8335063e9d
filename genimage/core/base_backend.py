"""Abstract base class for image generation backends."""

from abc import ABC, abstractmethod
from genimage.core.models import GeneratedAsset, ProviderConfig


PROMPT_SEPARATOR = "\n\n---\n\n"


class BaseBackend(ABC):
    """Abstract interface that all image generation backends must implement.

    A backend performs exactly one provider call per ``generate_image`` and
    never retries.

    Attributes:
        config: Provider credentials and model for this invocation
    """

    def __init__(self, config: ProviderConfig):
        """Initialize the backend.

        Args:
            config: Provider credentials and model identifier
        """
        self.config = config

    @property
    def model(self) -> str:
        """Model identifier requests are sent to."""
        return self.config.model_id

    @staticmethod
    def combine_prompt(system_prompt: str, user_text: str) -> str:
        """Join the template instructions and the user's text into one prompt."""
        return f"{system_prompt}{PROMPT_SEPARATOR}{user_text}"

    @abstractmethod
    def generate_image(
        self,
        system_prompt: str,
        user_text: str,
        aspect_ratio: str,
        image_size: str
    ) -> GeneratedAsset:
        """Generate an image from a template and the user's text.

        Args:
            system_prompt: Template body describing how to draw
            user_text: Selected document text describing what to draw
            aspect_ratio: Aspect ratio requested by the template
            image_size: Image size requested by the template

        Returns:
            GeneratedAsset with the MIME type and base64 payload

        Raises:
            ProviderError: If the provider reports an error or returns no image
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the human-readable name of this backend."""
        pass

    @property
    @abstractmethod
    def supported_models(self) -> list[str]:
        """Get a list of models known to work with this backend."""
        pass

    def __repr__(self) -> str:
        """String representation of the backend."""
        return f"{self.__class__.__name__}(name='{self.name}', model='{self.model}')"
