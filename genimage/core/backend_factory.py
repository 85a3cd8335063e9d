"""Factory for creating backend instances from provider configuration."""

import logging
from typing import Type

from genimage.backends.gemini import GeminiBackend
from genimage.core.base_backend import BaseBackend
from genimage.core.errors import ConfigError
from genimage.core.models import DEFAULT_API_BASE, ProviderConfig

logger = logging.getLogger(__name__)


class BackendFactory:
    """Factory class for creating backend instances.

    Maps the ``LLM_PROVIDER`` value of the credential file to a backend
    class. A fresh backend is built for every generation so credential
    changes apply on the next call.
    """

    _backends: dict[str, Type[BaseBackend]] = {
        "gemini": GeminiBackend,
    }

    @classmethod
    def create_backend(
        cls,
        config: ProviderConfig,
        timeout: float = 120,
        api_base: str = DEFAULT_API_BASE
    ) -> BaseBackend:
        """Create a backend instance for the configured provider.

        Args:
            config: Provider credentials and model
            timeout: HTTP timeout in seconds
            api_base: Provider endpoint base URL

        Returns:
            An instance of the requested backend

        Raises:
            ConfigError: If the provider is not supported
        """
        provider = config.provider_name.lower()
        backend_class = cls._backends.get(provider)
        if backend_class is None:
            supported = ", ".join(cls.get_supported_backends())
            raise ConfigError(
                f"Unsupported provider: '{config.provider_name}'. "
                f"Supported providers: {supported}"
            )

        logger.debug(f"Creating {provider} backend for model {config.model_id}")
        return backend_class(config, timeout=timeout, api_base=api_base)

    @classmethod
    def get_supported_backends(cls) -> list[str]:
        """Get list of supported provider names."""
        return sorted(cls._backends)

    @classmethod
    def is_supported(cls, provider_name: str) -> bool:
        """Check if a provider name is supported."""
        return provider_name.lower() in cls._backends
