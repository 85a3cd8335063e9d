"""Image generation orchestrator."""

import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional, Protocol, Union

from genimage.core.backend_factory import BackendFactory
from genimage.core.base_backend import BaseBackend
from genimage.core.errors import ConfigError, GenImageError
from genimage.core.models import (
    Cancelled,
    GenerationResult,
    GenerationSettings,
    PersistedAssetRef,
    PromptTemplate,
    ProviderConfig,
)
from genimage.utils.asset_store import AssetStore
from genimage.utils.env_loader import load_provider_config
from genimage.utils.prompt_parser import load_prompt_catalog

logger = logging.getLogger(__name__)

PROGRESS_MESSAGE = "Generating image..."


class TemplateSelector(Protocol):
    """Asks the user to pick a template. Returns Cancelled if they decline."""

    async def select(self, templates: list[PromptTemplate]) -> Union[PromptTemplate, Cancelled]: ...


class Notifier(Protocol):
    """Shows short status messages to the user."""

    def notify(self, message: str) -> None: ...


class LoggingNotifier:
    """Notifier that only writes to the log."""

    def notify(self, message: str) -> None:
        logger.info(f"Notification: {message}")


BackendBuilder = Callable[[ProviderConfig, float, str], BaseBackend]


def _default_backend_builder(config: ProviderConfig, timeout: float, api_base: str) -> BaseBackend:
    return BackendFactory.create_backend(config, timeout=timeout, api_base=api_base)


def build_insertion_text(asset: PersistedAssetRef) -> str:
    """Markdown image reference on its own line.

    The path is wrapped in angle brackets so spaces and parentheses survive.
    """
    return f"\n![](<{asset.relative_path}>)\n"


class ImageGenerator:
    """Runs one generation from selected text to a saved image.

    Each call to ``generate`` is independent: credentials and templates are
    read fresh, nothing is shared between calls, and any number of calls may
    be in flight at once.

    Attributes:
        settings: Current configuration snapshot
        selector: Template picker
        notifier: User-facing status messages
    """

    def __init__(
        self,
        settings: GenerationSettings,
        selector: TemplateSelector,
        notifier: Optional[Notifier] = None,
        backend_builder: BackendBuilder = _default_backend_builder,
        clock: Callable[[], datetime] = datetime.now
    ):
        """Initialize the image generator.

        Args:
            settings: Configuration snapshot
            selector: Template picker
            notifier: Status message sink, log only by default
            backend_builder: Creates the provider backend for a config
            clock: Source of the generation timestamp
        """
        self.settings = settings
        self.selector = selector
        self.notifier = notifier or LoggingNotifier()
        self.backend_builder = backend_builder
        self.clock = clock

    def reconfigure(self, settings: GenerationSettings) -> None:
        """Replace the configuration snapshot used by later generations.

        Generations already running keep the snapshot they started with.
        """
        self.settings = settings
        logger.info("Image generator settings updated")

    async def generate(
        self,
        source_text: str,
        document_name: str
    ) -> Union[GenerationResult, Cancelled]:
        """Generate an image for the given text.

        Args:
            source_text: Selected text, or the whole document
            document_name: Document name without extension

        Returns:
            GenerationResult on success, Cancelled if the user aborted
            template selection

        Raises:
            GenImageError: On any configuration, catalog, provider or
                storage failure, after a failure notification was shown
        """
        settings = self.settings
        progress: Optional[asyncio.TimerHandle] = None

        try:
            self._validate_settings(settings)

            config = await asyncio.to_thread(load_provider_config, settings.env_file_path)
            logger.info("Env config loaded successfully")

            prompt_directory = settings.storage_root / settings.prompt_directory
            templates = await asyncio.to_thread(load_prompt_catalog, prompt_directory)

            selection = await self.selector.select(templates)
            if isinstance(selection, Cancelled):
                logger.info("User cancelled prompt selection")
                return selection

            template = selection
            logger.info(f"Selected prompt: {template.name}")

            progress = self._schedule_progress(settings.notification_delay_seconds)

            backend = self.backend_builder(config, settings.request_timeout, settings.api_base)
            asset = await asyncio.to_thread(
                backend.generate_image,
                template.body,
                source_text,
                template.aspect_ratio,
                template.image_size,
            )

            store = AssetStore(settings.storage_root, settings.image_output_directory)
            saved = await asyncio.to_thread(store.save, asset, document_name, self.clock())

            result = GenerationResult(
                insertion_text=build_insertion_text(saved),
                template_name=template.name,
                asset=saved,
            )

        except GenImageError as e:
            logger.error(f"Image generation failed: {e}")
            self.notifier.notify(f"Failed to generate image: {e}")
            raise

        except Exception as e:
            logger.exception(f"Unexpected error during image generation: {e}")
            self.notifier.notify(f"Failed to generate image: {e}")
            raise

        finally:
            if progress is not None:
                progress.cancel()

        self.notifier.notify(f'Image generated with "{result.template_name}"')
        logger.info("Image generation completed successfully")
        return result

    @staticmethod
    def _validate_settings(settings: GenerationSettings) -> None:
        if not settings.env_file_path:
            raise ConfigError(".env file path is not configured. Please check the settings.")
        if not settings.prompt_directory:
            raise ConfigError("Prompt directory is not configured. Please check the settings.")

    def _schedule_progress(self, delay: float) -> Optional[asyncio.TimerHandle]:
        if delay <= 0:
            self.notifier.notify(PROGRESS_MESSAGE)
            return None
        return asyncio.get_running_loop().call_later(delay, self.notifier.notify, PROGRESS_MESSAGE)
