"""Placing asynchronous results back into a document.

A position captured when the user asks for an image is stale by the time the
image arrives. Instead of holding it, a unique marker token is written into
the document right away and the result later replaces that token in whatever
the document looks like then.
"""

import asyncio
import logging
import secrets
import time
from dataclasses import dataclass
from typing import Optional

from genimage.core.errors import DocumentNotFoundError
from genimage.core.image_generator import ImageGenerator
from genimage.core.models import Cancelled, GenerationRequest, GenerationResult, InsertionMarker
from genimage.utils.documents import DocumentStore, EditorSurface

logger = logging.getLogger(__name__)


@dataclass
class InsertionOutcome:
    """How one submitted generation ended.

    Attributes:
        marker: The marker that was planted
        result: The generation result, None unless it succeeded
        cancelled: Whether the user cancelled template selection
        error: Failure message, if the generation failed
        resolved: Whether the marker was found and replaced
    """
    marker: InsertionMarker
    result: Optional[GenerationResult] = None
    cancelled: bool = False
    error: Optional[str] = None
    resolved: bool = False

    @property
    def succeeded(self) -> bool:
        return self.result is not None


def new_marker_token() -> str:
    """Create a placeholder that cannot collide with another pending one."""
    return f"<!-- genimage-pending-{time.time_ns()}-{secrets.token_hex(6)} -->"


class MarkerInserter:
    """Plants marker tokens and swaps them for generation results.

    Attributes:
        generator: Orchestrator producing the insertion text
        store: Document store used when results arrive
    """

    def __init__(self, generator: ImageGenerator, store: DocumentStore):
        self.generator = generator
        self.store = store
        self._pending: set[asyncio.Task] = set()
        self._resolved: set[str] = set()

    @property
    def pending_count(self) -> int:
        """Number of generations still in flight."""
        return len(self._pending)

    def submit(self, editor: EditorSurface) -> Optional[asyncio.Task]:
        """Start a generation for the editor's selection.

        The marker is inserted immediately at the end of the selection, or at
        the end of the document when nothing is selected. Must be called from
        a running event loop.

        Args:
            editor: The editing surface the request comes from

        Returns:
            A task resolving to an InsertionOutcome, or None if there was
            nothing to do
        """
        if not editor.document_id:
            logger.warning("No document associated with the editor")
            return None

        selected_text = editor.get_selection()
        document_text = editor.get_value()
        source_text = selected_text or document_text
        if not source_text.strip():
            logger.warning("No text to generate image from")
            return None

        position = editor.selection_end() if selected_text else None
        if position is None:
            position = len(document_text)

        request = GenerationRequest(
            source_text=source_text,
            document_id=editor.document_id,
            document_name=editor.document_name,
            position=position,
        )
        marker = InsertionMarker(token=new_marker_token(), document_id=request.document_id)

        editor.insert(request.position, marker.token)
        logger.debug(f"Marker inserted: {marker.token}")

        task = asyncio.get_running_loop().create_task(self._execute(request, marker))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _execute(self, request: GenerationRequest, marker: InsertionMarker) -> InsertionOutcome:
        outcome = InsertionOutcome(marker=marker)
        try:
            result = await self.generator.generate(request.source_text, request.document_name)
            if isinstance(result, Cancelled):
                outcome.cancelled = True
            else:
                outcome.result = result
        except asyncio.CancelledError:
            logger.info(f"Generation for {request.document_id} was interrupted")
            raise
        except Exception as e:
            # Already reported to the user by the generator; the marker still goes
            logger.error(f"Generation failed for {request.document_id}: {e}")
            outcome.error = str(e)
        finally:
            replacement = outcome.result.insertion_text if outcome.result else ""
            outcome.resolved = await self.resolve(marker, replacement)
        return outcome

    async def resolve(self, marker: InsertionMarker, replacement: str) -> bool:
        """Replace a marker with the final text.

        The document is re-read at this point. A missing marker or a missing
        document is logged and otherwise ignored.

        Args:
            marker: The marker planted at submission time
            replacement: Insertion text, or "" to just remove the marker

        Returns:
            True if the document was changed
        """
        if marker.token in self._resolved:
            logger.warning(f"Marker already resolved, ignoring: {marker.token}")
            return False
        self._resolved.add(marker.token)

        found = False

        def substitute(content: str) -> str:
            nonlocal found
            if marker.token not in content:
                return content
            found = True
            return content.replace(marker.token, replacement, 1)

        try:
            await self.store.process(marker.document_id, substitute)
        except DocumentNotFoundError as e:
            logger.warning(f"Could not update document (may have been deleted or renamed): {e}")
            return False
        except OSError as e:
            logger.warning(f"Could not update document {marker.document_id}: {e}")
            return False

        if not found:
            logger.warning(f"Marker not found in {marker.document_id}, skipping insertion")
            return False

        logger.debug(
            f"Replaced marker in {marker.document_id} with "
            f"{'image link' if replacement else 'nothing (removal)'}"
        )
        return True

    async def wait_all(self) -> None:
        """Wait until every submitted generation has settled."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
