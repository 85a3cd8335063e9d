"""Saving generated images next to their documents."""

import logging
import re
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import Optional

from genimage.core.errors import PersistenceError
from genimage.core.models import GeneratedAsset, PersistedAssetRef

logger = logging.getLogger(__name__)

MIME_EXTENSIONS: dict[str, str] = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/webp": ".webp",
    "image/gif": ".gif",
}
DEFAULT_EXTENSION = ".png"

TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"

_INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*]')
_WHITESPACE = re.compile(r"\s+")


def extension_for_mime(mime_type: str) -> str:
    """Map a MIME type to a file extension, ``.png`` when unknown."""
    return MIME_EXTENSIONS.get(mime_type.lower().strip(), DEFAULT_EXTENSION)


def sanitize_filename(name: str) -> str:
    """Replace characters not allowed in file names and whitespace runs with ``_``."""
    return _WHITESPACE.sub("_", _INVALID_FILENAME_CHARS.sub("_", name))


def generation_timestamp(now: Optional[datetime] = None) -> str:
    """Format a local timestamp as ``yyyyMMddHHmmss``."""
    return (now or datetime.now()).strftime(TIMESTAMP_FORMAT)


def build_asset_path(
    output_directory: str,
    document_name: str,
    timestamp: str,
    mime_type: str
) -> str:
    """Compute the relative path an asset is saved to.

    Layout is ``{output_directory}/{document_name}/{timestamp}_{sanitized}{ext}``.
    An empty output directory puts the document folder at the storage root.

    Example:
        >>> build_asset_path("assets/generated", "My Travels", "20260207143052", "image/png")
        'assets/generated/My Travels/20260207143052_My_Travels.png'
    """
    filename = f"{timestamp}_{sanitize_filename(document_name)}{extension_for_mime(mime_type)}"
    return str(document_folder(output_directory, document_name) / filename)


def document_folder(output_directory: str, document_name: str) -> PurePosixPath:
    """Relative folder holding all assets of one document."""
    base = output_directory.strip().strip("/")
    return PurePosixPath(base, document_name) if base else PurePosixPath(document_name)


class AssetStore:
    """Writes generated images under a storage root.

    Attributes:
        root: Directory all relative paths are resolved against
        output_directory: Base directory for assets, relative to root
    """

    def __init__(self, root: Path, output_directory: str = ""):
        self.root = Path(root)
        self.output_directory = output_directory

    def ensure_directory(self, document_name: str) -> Path:
        """Create the per-document folder if needed. Existing folders are left as is."""
        relative = document_folder(self.output_directory, document_name)
        folder = self.root / relative
        if not folder.is_dir():
            folder.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created output directory: {relative}")
        return folder

    def save(
        self,
        asset: GeneratedAsset,
        document_name: str,
        now: Optional[datetime] = None
    ) -> PersistedAssetRef:
        """Decode and write an asset.

        When another generation already wrote the same name (same document,
        same second) a ``_1``, ``_2``, ... suffix is added instead of
        overwriting it.

        Args:
            asset: Image returned by the provider
            document_name: Document name without extension
            now: Generation time, defaults to the current time

        Returns:
            Reference to the saved file, relative to the storage root

        Raises:
            ProviderError: If the payload is not valid base64
            PersistenceError: If the file cannot be written
        """
        payload = asset.to_bytes()
        relative = PurePosixPath(
            build_asset_path(self.output_directory, document_name, generation_timestamp(now), asset.mime_type)
        )

        try:
            self.ensure_directory(document_name)
            candidate = relative
            attempt = 0
            while True:
                try:
                    with open(self.root / candidate, "xb") as f:
                        f.write(payload)
                    break
                except FileExistsError:
                    attempt += 1
                    candidate = relative.with_name(f"{relative.stem}_{attempt}{relative.suffix}")
        except OSError as e:
            logger.error(f"Failed to save image {relative}: {e}")
            raise PersistenceError(f"Failed to save image to {relative}: {e}") from e

        logger.info(f"Image saved to: {candidate} ({len(payload)} bytes)")
        return PersistedAssetRef(relative_path=str(candidate))
