"""Tests for the Google Drive note store."""

import json
from unittest.mock import MagicMock

import pytest
from googleapiclient.errors import HttpError

from calnotes.exceptions import DocumentError
from calnotes.notes.drive import DriveDocumentStore


def http_error(status: int) -> HttpError:
    resp = MagicMock(status=status, reason="error")
    return HttpError(resp=resp, content=json.dumps({"error": {"message": "error"}}).encode())


@pytest.fixture
def service():
    return MagicMock()


@pytest.fixture
def store(service):
    return DriveDocumentStore(service, "folder-1")


def files(service):
    return service.files.return_value


class TestDriveDocumentStore:
    """Test Drive file operations."""

    def test_create_in_folder(self, store, service):
        files(service).create.return_value.execute.return_value = {"id": "f1", "name": "a.md"}

        document = store.create_document("a.md", "# A")

        kwargs = files(service).create.call_args.kwargs
        assert kwargs["body"] == {"name": "a.md", "mimeType": "text/markdown", "parents": ["folder-1"]}
        assert kwargs["media_body"].mimetype() == "text/markdown"
        assert document.id == "f1"
        assert document.name == "a.md"

    def test_get_by_id(self, store, service):
        files(service).get.return_value.execute.return_value = {"id": "f1", "name": "a.md", "trashed": False}
        document = store.get_document_by_id("f1")
        assert document.id == "f1"
        assert document.name == "a.md"

    def test_get_trashed_is_none(self, store, service):
        files(service).get.return_value.execute.return_value = {"id": "f1", "name": "a.md", "trashed": True}
        assert store.get_document_by_id("f1") is None

    def test_get_missing_is_none(self, store, service):
        files(service).get.return_value.execute.side_effect = http_error(404)
        assert store.get_document_by_id("f1") is None

    def test_get_other_error(self, store, service):
        files(service).get.return_value.execute.side_effect = http_error(500)
        with pytest.raises(DocumentError):
            store.get_document_by_id("f1")

    def test_find_by_name_paginates(self, store, service):
        files(service).list.return_value.execute.side_effect = [
            {"files": [{"id": "f1", "name": "it's.md"}], "nextPageToken": "p1"},
            {"files": [{"id": "f2", "name": "it's.md"}]},
        ]

        found = list(store.find_documents_by_name("it's.md"))

        assert [d.id for d in found] == ["f1", "f2"]
        first = files(service).list.call_args_list[0].kwargs
        assert first["q"] == "name = 'it\\'s.md' and trashed = false and 'folder-1' in parents"
        assert files(service).list.call_args_list[1].kwargs["pageToken"] == "p1"


class TestDriveDocument:
    """Test reads and writes on one file."""

    @pytest.fixture
    def document(self, store, service):
        files(service).get.return_value.execute.return_value = {"id": "f1", "name": "a.md"}
        return store.get_document_by_id("f1")

    def test_read_decodes(self, document, service):
        files(service).get_media.return_value.execute.return_value = "café".encode("utf-8")
        assert document.read() == "café"

    def test_write_renames_and_uploads(self, document, service):
        document.write("b.md", "# B")

        kwargs = files(service).update.call_args.kwargs
        assert kwargs["fileId"] == "f1"
        assert kwargs["body"] == {"name": "b.md"}
        assert kwargs["media_body"].getbytes(0, 3) == b"# B"
        assert document.name == "b.md"

    def test_trash(self, document, service):
        document.trash()
        files(service).update.assert_called_once_with(fileId="f1", body={"trashed": True})

    def test_write_error(self, document, service):
        files(service).update.return_value.execute.side_effect = http_error(403)
        with pytest.raises(DocumentError):
            document.write("b.md", "x")
        assert document.name == "a.md"
