"""Application configuration management."""

from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

from genimage.core.errors import ConfigError
from genimage.core.models import DEFAULT_API_BASE, GenerationSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Values come from GENIMAGE_* environment variables or the local .env file.
    Provider credentials are not settings: they live in the separate file
    named by ``env_file_path`` and are read on every generation.

    Attributes:
        env_file_path: Credential file with GEMINI_API_KEY and GEMINI_MODEL
        prompt_directory: Template directory, relative to storage_root
        image_output_directory: Base directory for images, relative to storage_root
        storage_root: Root directory documents and images live under
        notification_delay_seconds: Seconds before "Generating image..." is shown
        request_timeout: HTTP timeout for the provider call in seconds
        api_base: Provider endpoint base URL
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional file to append log lines to
        run_integration_tests: Whether to run integration tests
    """

    model_config = SettingsConfigDict(
        env_prefix='GENIMAGE_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore'
    )

    # Paths
    env_file_path: str = ""
    prompt_directory: str = ""
    image_output_directory: str = ""
    storage_root: Path = Path(".")

    # Generation
    notification_delay_seconds: float = 3
    request_timeout: float = 120
    api_base: str = DEFAULT_API_BASE

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    # Testing
    run_integration_tests: bool = False

    def validate_paths(self) -> None:
        """Validate that the required paths are configured.

        Raises:
            ConfigError: If the credential file or prompt directory is unset
        """
        if not self.env_file_path:
            raise ConfigError(
                "GENIMAGE_ENV_FILE_PATH is required. Point it at a file containing "
                "GEMINI_API_KEY and GEMINI_MODEL, kept outside your documents."
            )

        if not self.prompt_directory:
            raise ConfigError(
                "GENIMAGE_PROMPT_DIRECTORY is required. It should contain one .md "
                "file per prompt template."
            )

    def generation_settings(self) -> GenerationSettings:
        """Snapshot of the values the generation pipeline needs."""
        return GenerationSettings(
            env_file_path=self.env_file_path,
            prompt_directory=self.prompt_directory.strip().rstrip("/"),
            image_output_directory=self.image_output_directory.strip(),
            storage_root=self.storage_root,
            notification_delay_seconds=max(self.notification_delay_seconds, 0),
            request_timeout=self.request_timeout,
            api_base=self.api_base,
        )


# Global settings instance
settings = Settings()
