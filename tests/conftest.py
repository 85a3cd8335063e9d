"""Shared test fixtures and configuration."""

import base64
import pytest
from datetime import datetime
from unittest.mock import Mock

from app.config import Settings
from genimage.core.models import (
    Cancelled,
    GeneratedAsset,
    GenerationSettings,
    PromptTemplate,
    ProviderConfig,
)


# PNG signature plus padding, never decoded as an image
FAKE_PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


@pytest.fixture
def test_api_key():
    """Return a test API key."""
    return "test-api-key"


@pytest.fixture
def provider_config(test_api_key):
    """Return a ProviderConfig for an aspect-ratio-only model."""
    return ProviderConfig(
        provider_name="gemini",
        api_key=test_api_key,
        model_id="gemini-2.5-flash-image",
    )


@pytest.fixture
def sample_asset():
    """Return a GeneratedAsset carrying fake PNG bytes."""
    return GeneratedAsset(mime_type="image/png", data=base64.b64encode(FAKE_PNG).decode("ascii"))


@pytest.fixture
def sample_template():
    """Return a sample PromptTemplate."""
    return PromptTemplate(
        name="watercolor",
        aspect_ratio="16:9",
        image_size="2K",
        body="Paint the scene as a soft watercolor.",
    )


@pytest.fixture
def fixed_clock():
    """Return a clock pinned to 2026-02-07 14:30:52."""
    return lambda: datetime(2026, 2, 7, 14, 30, 52)


@pytest.fixture
def workspace(tmp_path):
    """Create a storage root with a credential file and two prompt templates."""
    env_file = tmp_path / "secrets" / ".env"
    env_file.parent.mkdir()
    env_file.write_text(
        "GEMINI_API_KEY=test-api-key\n"
        "GEMINI_MODEL=gemini-3-pro-image-preview\n",
        encoding="utf-8",
    )

    root = tmp_path / "vault"
    prompts = root / "prompts"
    prompts.mkdir(parents=True)
    (prompts / "watercolor.md").write_text(
        '---\naspect_ratio: "16:9"\nimage_size: "2K"\n---\nPaint the scene as a soft watercolor.\n',
        encoding="utf-8",
    )
    (prompts / "sketch.md").write_text("Draw a pencil sketch.", encoding="utf-8")

    return tmp_path


@pytest.fixture
def generation_settings(workspace):
    """Return GenerationSettings pointing at the workspace fixture."""
    return GenerationSettings(
        env_file_path=str(workspace / "secrets" / ".env"),
        prompt_directory="prompts",
        image_output_directory="assets/generated",
        storage_root=workspace / "vault",
        notification_delay_seconds=0,
    )


@pytest.fixture
def first_template_selector():
    """Return a selector that always picks the first template."""
    selector = Mock()

    async def select(templates):
        selector.offered = templates
        return templates[0]

    selector.select = select
    return selector


@pytest.fixture
def cancelling_selector():
    """Return a selector that always cancels."""
    selector = Mock()

    async def select(templates):
        return Cancelled()

    selector.select = select
    return selector


# Skip integration tests unless explicitly requested
def pytest_collection_modifyitems(config, items):
    """Automatically skip integration tests unless GENIMAGE_RUN_INTEGRATION_TESTS is set."""
    if Settings().run_integration_tests:
        return

    skip_integration = pytest.mark.skip(
        reason="Integration tests disabled (set GENIMAGE_RUN_INTEGRATION_TESTS=true to enable)"
    )
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)
