"""Which optional image parameters each model accepts.

This is the only place that decides request shape per model. Backends ask
``build_image_config`` and never compare model names themselves.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ModelCapabilities:
    """Image configuration options a model honors."""
    supports_aspect_ratio: bool = False
    supports_image_size: bool = False


FULL_CONFIG = ModelCapabilities(supports_aspect_ratio=True, supports_image_size=True)
ASPECT_RATIO_ONLY = ModelCapabilities(supports_aspect_ratio=True)
NO_IMAGE_CONFIG = ModelCapabilities()

# Longer identifiers first so the most specific family wins
MODEL_CAPABILITIES: dict[str, ModelCapabilities] = {
    "gemini-3-pro-image-preview": FULL_CONFIG,
    "gemini-3-pro-image": FULL_CONFIG,
    "gemini-2.5-flash-image": ASPECT_RATIO_ONLY,
}


def get_capabilities(model_id: str) -> ModelCapabilities:
    """Look up the capabilities of a model.

    An exact match wins; otherwise the first table entry contained in the
    identifier is used, so prefixed or dated variants map to their family.

    Args:
        model_id: Model identifier as configured

    Returns:
        Capabilities for the model, NO_IMAGE_CONFIG when unknown
    """
    if model_id in MODEL_CAPABILITIES:
        return MODEL_CAPABILITIES[model_id]

    for known_model, capabilities in MODEL_CAPABILITIES.items():
        if known_model in model_id:
            return capabilities

    return NO_IMAGE_CONFIG


def build_image_config(
    model_id: str,
    aspect_ratio: str,
    image_size: str
) -> Optional[dict[str, str]]:
    """Build the ``imageConfig`` request block for a model.

    Returns:
        The block to send, or None when the model takes no image configuration
    """
    capabilities = get_capabilities(model_id)
    if not capabilities.supports_aspect_ratio:
        return None

    image_config = {"aspectRatio": aspect_ratio}
    if capabilities.supports_image_size:
        image_config["imageSize"] = image_size
    return image_config
