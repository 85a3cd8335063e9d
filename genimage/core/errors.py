"""Exceptions raised by the generation pipeline."""

from typing import Optional


class GenImageError(Exception):
    """Base class for all generation failures.

    The message is meant to be shown to the user as is.
    """

    @property
    def message(self) -> str:
        return str(self)


class ConfigError(GenImageError):
    """A configured path is unset or a resource lacks required fields."""


class MissingApiKeyError(ConfigError):
    """The credential file has no API key."""


class MissingModelError(ConfigError):
    """The credential file has no model identifier."""


class CatalogError(GenImageError):
    """No usable prompt templates were found."""


class ProviderError(GenImageError):
    """The provider reported an error or returned no image.

    Attributes:
        code: Numeric error code from the provider, if any
        status: Status string from the provider, if any
    """

    def __init__(self, message: str, code: Optional[int] = None, status: Optional[str] = None):
        super().__init__(message)
        self.code = code
        self.status = status


class PersistenceError(GenImageError):
    """The generated image could not be written to storage."""


class DocumentNotFoundError(GenImageError):
    """The target document no longer exists."""
