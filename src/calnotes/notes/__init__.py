"""
calnotes Notes

Meeting note templates, the structure-preserving merger and note storage.
"""

from calnotes.notes.merger import NoteMerger, mark_cancelled, merge_note
from calnotes.notes.template import NoteTemplate, build_template
from calnotes.notes.stores import Document, DocumentStore, LocalDocumentStore

__all__ = [
    'NoteMerger',
    'mark_cancelled',
    'merge_note',
    'NoteTemplate',
    'build_template',
    'Document',
    'DocumentStore',
    'LocalDocumentStore',
]
