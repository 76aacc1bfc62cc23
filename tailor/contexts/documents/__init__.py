"""
Documents Context

Responsibilities:
- Defines the capability interface the core needs from the document service
- Implements it against Google Drive (revisions, export) and Google Docs (edits)

Owns: All calls to the remote document service
Never: Reads or writes the local version log
"""

from tailor.contexts.documents.service import (
    DocumentService,
    ExportFormat,
    Revision,
    RevisionContent,
)

__all__ = ["DocumentService", "ExportFormat", "Revision", "RevisionContent"]
