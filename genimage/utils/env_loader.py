"""Credential file loading."""

import logging
from pathlib import Path
from dotenv import dotenv_values

from genimage.core.errors import ConfigError, MissingApiKeyError, MissingModelError
from genimage.core.models import ProviderConfig

logger = logging.getLogger(__name__)

API_KEY_VAR = "GEMINI_API_KEY"
MODEL_VAR = "GEMINI_MODEL"
PROVIDER_VAR = "LLM_PROVIDER"
DEFAULT_PROVIDER = "gemini"


def resolve_env_path(env_file_path: str) -> Path:
    """Expand ``~`` in the configured credential file path."""
    return Path(env_file_path).expanduser()


def load_provider_config(env_file_path: str) -> ProviderConfig:
    """Load provider credentials from a dotenv-style file.

    The file is read on every call so edits apply to the next generation.

    Args:
        env_file_path: Path to the credential file, ``~`` is expanded

    Returns:
        ProviderConfig with the API key, model and provider name

    Raises:
        ConfigError: If the path is unset or the file does not exist
        MissingApiKeyError: If GEMINI_API_KEY is absent or empty
        MissingModelError: If GEMINI_MODEL is absent or empty
    """
    if not env_file_path:
        raise ConfigError(".env file path is not configured")

    resolved_path = resolve_env_path(env_file_path)
    if not resolved_path.is_file():
        raise ConfigError(f".env file not found: {resolved_path}")

    try:
        values = dotenv_values(resolved_path, encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Could not read .env file {resolved_path}: {e}") from e

    api_key = (values.get(API_KEY_VAR) or "").strip()
    if not api_key:
        raise MissingApiKeyError(f"{API_KEY_VAR} is not set in .env file")

    model = (values.get(MODEL_VAR) or "").strip()
    if not model:
        raise MissingModelError(f"{MODEL_VAR} is not set in .env file")

    provider = (values.get(PROVIDER_VAR) or "").strip() or DEFAULT_PROVIDER

    logger.info(f"Loaded provider config (provider={provider}, model={model})")
    return ProviderConfig(provider_name=provider, api_key=api_key, model_id=model)
