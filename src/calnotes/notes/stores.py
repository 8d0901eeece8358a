"""
calnotes Document Stores

Document storage interface plus a local-directory implementation. Notes are
plain markdown files addressed by an opaque id.
"""

import logging
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterator, Optional

from calnotes.exceptions import DocumentError

logger = logging.getLogger(__name__)

TRASH_DIR = ".trash"


class Document(ABC):
    """Handle on one stored note."""

    id: str
    name: str

    @abstractmethod
    def read(self) -> str:
        pass

    @abstractmethod
    def write(self, name: str, content: str):
        """Replace name and content in one update."""

    @abstractmethod
    def trash(self):
        pass


class DocumentStore(ABC):
    """Note document storage."""

    @abstractmethod
    def create_document(self, name: str, content: str) -> Document:
        pass

    @abstractmethod
    def get_document_by_id(self, document_id: str) -> Optional[Document]:
        """Return the document, or None if it does not exist or is trashed."""

    @abstractmethod
    def find_documents_by_name(self, name: str) -> Iterator[Document]:
        pass


class LocalDocument(Document):
    """A markdown file inside a LocalDocumentStore directory."""

    def __init__(self, store: "LocalDocumentStore", name: str):
        self.store = store
        self.name = name

    @property
    def id(self) -> str:
        return self.name

    @property
    def path(self) -> Path:
        return self.store.root / self.name

    def read(self) -> str:
        try:
            return self.path.read_text(encoding="utf-8")
        except IOError as e:
            raise DocumentError(f"Cannot read note {self.name}", document=self.name, details=str(e))

    def write(self, name: str, content: str):
        target = self.store.root / name
        try:
            target.write_text(content, encoding="utf-8")
            if name != self.name and self.path.exists():
                self.path.unlink()
        except IOError as e:
            raise DocumentError(f"Cannot write note {name}", document=name, details=str(e))
        self.name = name

    def trash(self):
        trash_dir = self.store.root / TRASH_DIR
        trash_dir.mkdir(parents=True, exist_ok=True)
        try:
            shutil.move(str(self.path), str(trash_dir / self.name))
        except (IOError, shutil.Error) as e:
            raise DocumentError(f"Cannot trash note {self.name}", document=self.name, details=str(e))
        logger.debug("Moved %s to %s", self.name, trash_dir)


class LocalDocumentStore(DocumentStore):
    """Notes kept as files in one directory; the file name is the id."""

    def __init__(self, root: Path):
        self.root = Path(root).expanduser()
        self.root.mkdir(parents=True, exist_ok=True)

    def create_document(self, name: str, content: str) -> Document:
        document = LocalDocument(self, name)
        try:
            document.path.write_text(content, encoding="utf-8")
        except IOError as e:
            raise DocumentError(f"Cannot create note {name}", document=name, details=str(e))
        return document

    def get_document_by_id(self, document_id: str) -> Optional[Document]:
        if not document_id or "/" in document_id or document_id.startswith("."):
            return None
        if not (self.root / document_id).is_file():
            return None
        return LocalDocument(self, document_id)

    def find_documents_by_name(self, name: str) -> Iterator[Document]:
        document = self.get_document_by_id(name)
        if document is not None:
            yield document
