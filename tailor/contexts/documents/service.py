"""
Document service interface.

The core never talks to Google directly; coordinators receive a DocumentService
instance constructed once at process start. Tests substitute an in-memory fake.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Sequence

from tailor.exceptions import ExternalServiceError


@dataclass(frozen=True)
class Revision:
    """
    Immutable snapshot identifier owned by the document service.

    Attributes:
        id: Opaque service-assigned revision id
        modified_time: ISO 8601 time the revision was created
        mime_type: MIME type reported for the revision
    """

    id: str
    modified_time: str = ""
    mime_type: str = ""


@dataclass(frozen=True)
class RevisionContent:
    """
    Text of a document as of some revision.

    Attributes:
        text: Plain-text content
        revision_id: Revision that was requested
        is_fallback: True if the service could not return that revision and the
            current live content was substituted instead
    """

    text: str
    revision_id: str
    is_fallback: bool = False


class ExportFormat(str, Enum):
    """File formats the document can be exported to."""

    PDF = "pdf"
    DOCX = "docx"

    @property
    def mime_type(self) -> str:
        return EXPORT_MIME_TYPES[self]


EXPORT_MIME_TYPES = {
    ExportFormat.PDF: "application/pdf",
    ExportFormat.DOCX: "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}


class DocumentService(ABC):
    """
    Capabilities the core consumes from the external document service.

    Every method addresses the document by id and reads/writes live state;
    there is no snapshot isolation or locking between calls.
    """

    @abstractmethod
    def export_text(self, document_id: str) -> str:
        """Return the current document as plain text."""

    @abstractmethod
    def list_revisions(self, document_id: str) -> list[Revision]:
        """Return all revisions, oldest first (the last one is current)."""

    @abstractmethod
    def get_revision_content(self, document_id: str, revision_id: str) -> RevisionContent:
        """
        Return document text as of revision_id (best effort).

        Implementations that cannot retrieve historical content return the
        current content with is_fallback=True rather than failing.
        """

    @abstractmethod
    def apply_text_substitutions(
        self, document_id: str, pairs: Sequence[tuple[str, str]]
    ) -> int:
        """
        Replace every occurrence of each original with its replacement in one atomic batch.

        Matching is exact and case-sensitive; formatting is preserved.

        Returns:
            Total occurrences changed across all pairs
        """

    @abstractmethod
    def overwrite_body(self, document_id: str, text: str) -> None:
        """Replace the entire document body with text (discards formatting)."""

    @abstractmethod
    def export_file(self, document_id: str, fmt: ExportFormat, output_path: Path) -> Path:
        """Export the current document to a file and return its path."""

    def latest_revision(self, document_id: str) -> Revision:
        """
        Return the current (newest) revision.

        Raises:
            ExternalServiceError: If the service reports no revisions at all
        """
        revisions = self.list_revisions(document_id)
        if not revisions:
            raise ExternalServiceError(
                f"No revisions reported for document {document_id}", service="documents"
            )
        return revisions[-1]
