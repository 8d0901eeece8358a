"""
calnotes Google Drive Notes

DocumentStore backed by markdown files in one Google Drive folder.
"""

import io
import logging
from typing import Any, Dict, Iterator, Optional

from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseUpload

from calnotes.exceptions import DocumentError
from calnotes.notes.stores import Document, DocumentStore

logger = logging.getLogger(__name__)

MARKDOWN_MIME = "text/markdown"
FILE_FIELDS = "id, name, trashed"


def _media(content: str) -> MediaIoBaseUpload:
    return MediaIoBaseUpload(io.BytesIO(content.encode("utf-8")), mimetype=MARKDOWN_MIME)


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


class DriveDocument(Document):
    """One markdown file in Drive."""

    def __init__(self, service, file_id: str, name: str):
        self.service = service
        self.id = file_id
        self.name = name

    def read(self) -> str:
        try:
            data = self.service.files().get_media(fileId=self.id).execute()
        except HttpError as e:
            raise DocumentError(f"Cannot read note {self.name}", document=self.name, details=str(e))
        if isinstance(data, bytes):
            return data.decode("utf-8")
        return data or ""

    def write(self, name: str, content: str):
        try:
            self.service.files().update(
                fileId=self.id,
                body={"name": name},
                media_body=_media(content),
            ).execute()
        except HttpError as e:
            raise DocumentError(f"Cannot update note {name}", document=name, details=str(e))
        self.name = name

    def trash(self):
        try:
            self.service.files().update(fileId=self.id, body={"trashed": True}).execute()
        except HttpError as e:
            raise DocumentError(f"Cannot trash note {self.name}", document=self.name, details=str(e))


class DriveDocumentStore(DocumentStore):
    """Notes folder on Google Drive."""

    def __init__(self, service, folder_id: str):
        self.service = service
        self.folder_id = folder_id

    def _document(self, item: Dict[str, Any]) -> DriveDocument:
        return DriveDocument(self.service, item["id"], item.get("name", ""))

    def create_document(self, name: str, content: str) -> Document:
        metadata = {"name": name, "mimeType": MARKDOWN_MIME}
        if self.folder_id:
            metadata["parents"] = [self.folder_id]
        try:
            item = (
                self.service.files()
                .create(body=metadata, media_body=_media(content), fields=FILE_FIELDS)
                .execute()
            )
        except HttpError as e:
            raise DocumentError(f"Cannot create note {name}", document=name, details=str(e))
        logger.debug("Created Drive file %s (%s)", name, item.get("id"))
        return self._document({"name": name, **item})

    def get_document_by_id(self, document_id: str) -> Optional[Document]:
        try:
            item = self.service.files().get(fileId=document_id, fields=FILE_FIELDS).execute()
        except HttpError as e:
            if e.resp.status == 404:
                return None
            raise DocumentError(
                f"Cannot look up note {document_id}", document=document_id, details=str(e)
            )
        if item.get("trashed"):
            return None
        return self._document(item)

    def find_documents_by_name(self, name: str) -> Iterator[Document]:
        query = f"name = '{_escape(name)}' and trashed = false"
        if self.folder_id:
            query += f" and '{self.folder_id}' in parents"

        page_token = None
        while True:
            try:
                results = (
                    self.service.files()
                    .list(q=query, fields=f"nextPageToken, files({FILE_FIELDS})", pageToken=page_token)
                    .execute()
                )
            except HttpError as e:
                raise DocumentError(f"Cannot search notes named {name}", document=name, details=str(e))
            for item in results.get("files", []):
                yield self._document(item)
            page_token = results.get("nextPageToken")
            if not page_token:
                break
