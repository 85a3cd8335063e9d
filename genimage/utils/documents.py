"""Document surfaces the insertion protocol works against.

Two roles are separated:

* an ``EditorSurface`` is what the user is looking at when they ask for an
  image. It is only used synchronously, at submission time.
* a ``DocumentStore`` owns the persisted content and offers an atomic
  read-modify-write. It is used when the result arrives, possibly after the
  user has moved on to another document.
"""

import asyncio
import logging
import threading
from pathlib import Path
from typing import Callable, Optional, Protocol

from genimage.core.errors import DocumentNotFoundError

logger = logging.getLogger(__name__)

Transform = Callable[[str], str]


class EditorSurface(Protocol):
    """The editing view a generation is started from."""

    document_id: Optional[str]
    document_name: str

    def get_selection(self) -> str: ...

    def get_value(self) -> str: ...

    def selection_end(self) -> Optional[int]: ...

    def insert(self, offset: int, text: str) -> None: ...


class DocumentStore(Protocol):
    """Persisted documents, addressed by id."""

    async def process(self, document_id: str, transform: Transform) -> str: ...


class TextDocument:
    """In-memory document with an optional selection.

    Serves as both the editor surface and the stored content of an
    ``InMemoryDocumentStore``.
    """

    def __init__(
        self,
        document_id: Optional[str],
        text: str = "",
        selection: Optional[tuple[int, int]] = None,
        document_name: Optional[str] = None
    ):
        self.document_id = document_id
        self.text = text
        self.selection = selection
        self.document_name = document_name or Path(document_id or "untitled").stem

    def get_selection(self) -> str:
        if self.selection is None:
            return ""
        start, end = self.selection
        return self.text[start:end]

    def get_value(self) -> str:
        return self.text

    def selection_end(self) -> Optional[int]:
        if self.selection is None or self.selection[0] == self.selection[1]:
            return None
        return self.selection[1]

    def insert(self, offset: int, text: str) -> None:
        self.text = self.text[:offset] + text + self.text[offset:]

    def __repr__(self) -> str:
        return f"TextDocument(document_id={self.document_id!r}, length={len(self.text)})"


class InMemoryDocumentStore:
    """Document store keeping TextDocuments in a dict."""

    def __init__(self):
        self.documents: dict[str, TextDocument] = {}

    def open(self, document_id: str, text: str = "", selection: Optional[tuple[int, int]] = None) -> TextDocument:
        """Create a document and register it."""
        document = TextDocument(document_id, text, selection)
        self.documents[document_id] = document
        return document

    def delete(self, document_id: str) -> None:
        self.documents.pop(document_id, None)

    def rename(self, document_id: str, new_id: str) -> None:
        document = self.documents.pop(document_id)
        document.document_id = new_id
        self.documents[new_id] = document

    async def process(self, document_id: str, transform: Transform) -> str:
        document = self.documents.get(document_id)
        if document is None:
            raise DocumentNotFoundError(f"Document not found: {document_id}")
        document.text = transform(document.text)
        return document.text


def read_document(path: Path) -> str:
    """Read a document without translating its line endings."""
    with open(path, "r", encoding="utf-8", newline="") as f:
        return f.read()


def write_document(path: Path, content: str) -> None:
    """Write a document without translating its line endings."""
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(content)


class FileDocumentStore:
    """Documents stored as UTF-8 files under a root directory.

    Every read-modify-write of a file, whether from ``process`` or from an
    editor created by ``editor``, holds that file's lock. Updates finishing in
    a worker thread therefore never overwrite a marker planted meanwhile.
    """

    def __init__(self, root: Path):
        self.root = Path(root)
        self._locks: dict[Path, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def resolve(self, document_id: str) -> Path:
        return self.root / document_id

    def lock_for(self, path: Path) -> threading.Lock:
        """The lock guarding one file, created on first use."""
        with self._locks_guard:
            return self._locks.setdefault(Path(path), threading.Lock())

    def editor(self, document_id: str, selection: Optional[tuple[int, int]] = None) -> "FileEditor":
        """Editor surface over one of this store's files, sharing its lock."""
        return FileEditor(self.root, document_id, selection, lock=self.lock_for(self.resolve(document_id)))

    async def process(self, document_id: str, transform: Transform) -> str:
        return await asyncio.to_thread(self._process_sync, self.resolve(document_id), transform)

    def _process_sync(self, path: Path, transform: Transform) -> str:
        with self.lock_for(path):
            try:
                content = read_document(path)
            except FileNotFoundError as e:
                raise DocumentNotFoundError(f"Document not found: {path}") from e

            updated = transform(content)
            if updated != content:
                write_document(path, updated)
            return updated


class FileEditor:
    """Editor surface over a file, with an optional character selection.

    Used by the command line, where the "editor" is the file itself. Build it
    with ``FileDocumentStore.editor`` so inserts and store updates exclude
    each other.
    """

    def __init__(
        self,
        root: Path,
        document_id: str,
        selection: Optional[tuple[int, int]] = None,
        lock: Optional[threading.Lock] = None
    ):
        self.root = Path(root)
        self.document_id = document_id
        self.document_name = Path(document_id).stem
        self.selection = selection
        self.lock = lock or threading.Lock()

    @property
    def path(self) -> Path:
        return self.root / self.document_id

    def get_value(self) -> str:
        with self.lock:
            return read_document(self.path)

    def get_selection(self) -> str:
        if self.selection is None:
            return ""
        start, end = self.selection
        return self.get_value()[start:end]

    def selection_end(self) -> Optional[int]:
        if self.selection is None or self.selection[0] == self.selection[1]:
            return None
        return min(self.selection[1], len(self.get_value()))

    def insert(self, offset: int, text: str) -> None:
        with self.lock:
            content = read_document(self.path)
            write_document(self.path, content[:offset] + text + content[offset:])
