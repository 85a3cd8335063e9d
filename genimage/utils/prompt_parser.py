"""Prompt template parsing and catalog loading.

A template is a markdown file whose body is the instruction text. An optional
front-matter block sets the generation parameters::

    ---
    aspect_ratio: "16:9"
    image_size: 2K
    ---
    Draw the scene as a watercolor painting.
"""

import logging
import re
from pathlib import Path
from typing import Optional

from genimage.core.errors import CatalogError, ConfigError
from genimage.core.models import (
    DEFAULT_ASPECT_RATIO,
    DEFAULT_IMAGE_SIZE,
    VALID_ASPECT_RATIOS,
    VALID_IMAGE_SIZES,
    PromptTemplate,
)

logger = logging.getLogger(__name__)

FRONTMATTER_PATTERN = re.compile(r"^---\s*\n(.*?)\n---\s*(?:\n|$)", re.DOTALL)
TEMPLATE_SUFFIX = ".md"


def parse_frontmatter(text: str) -> dict[str, str]:
    """Parse simple ``key: value`` lines.

    Blank lines, ``#`` comments and lines without a colon are skipped.
    Matching single or double quotes around a value are removed.
    """
    result: dict[str, str] = {}

    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue

        key, sep, value = stripped.partition(":")
        if not sep:
            continue

        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
            value = value[1:-1]

        result[key.strip()] = value

    return result


def _validated(
    frontmatter: dict[str, str],
    key: str,
    valid_values: tuple[str, ...],
    default: str,
    template_name: str
) -> str:
    value = frontmatter.get(key)
    if value is None:
        return default
    if value in valid_values:
        return value
    logger.warning(f"Invalid {key} '{value}' in {template_name}, using default {default}")
    return default


def parse_prompt_template(name: str, content: str, path: Optional[str] = None) -> PromptTemplate:
    """Turn raw template text into a PromptTemplate.

    Invalid or missing parameters fall back to the defaults (1:1, 1K); an
    invalid value is logged as a warning but never fails the parse.

    Args:
        name: Template name (file name without extension)
        content: Raw file content
        path: Where the content came from, kept for display

    Returns:
        PromptTemplate with the front matter stripped and the body trimmed
    """
    aspect_ratio = DEFAULT_ASPECT_RATIO
    image_size = DEFAULT_IMAGE_SIZE
    body = content

    match = FRONTMATTER_PATTERN.match(content)
    if match:
        frontmatter = parse_frontmatter(match.group(1))
        aspect_ratio = _validated(
            frontmatter, "aspect_ratio", VALID_ASPECT_RATIOS, DEFAULT_ASPECT_RATIO, name
        )
        image_size = _validated(
            frontmatter, "image_size", VALID_IMAGE_SIZES, DEFAULT_IMAGE_SIZE, name
        )
        body = content[match.end():]

    return PromptTemplate(
        name=name,
        path=path,
        aspect_ratio=aspect_ratio,
        image_size=image_size,
        body=body.strip(),
    )


def load_prompt_catalog(directory: Path) -> list[PromptTemplate]:
    """Load every template in a directory.

    Only ``*.md`` files directly inside the directory are read. The result is
    sorted by name so the selection order is stable.

    Args:
        directory: Template directory

    Returns:
        Templates sorted by name

    Raises:
        ConfigError: If the directory does not exist
        CatalogError: If the directory holds no templates
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise ConfigError(f"Prompt directory not found: {directory}")

    templates = []
    for file_path in directory.iterdir():
        if not file_path.is_file() or file_path.suffix.lower() != TEMPLATE_SUFFIX:
            continue
        try:
            content = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Skipping unreadable prompt file {file_path}: {e}")
            continue
        templates.append(parse_prompt_template(file_path.stem, content, str(file_path)))

    if not templates:
        raise CatalogError(f"No prompt files found in: {directory}")

    templates.sort(key=lambda t: (t.name.casefold(), t.name))
    logger.info(f"Found {len(templates)} prompt files in {directory}")
    return templates
