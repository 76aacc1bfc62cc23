"""
Google Drive / Google Docs implementation of the document service.

Drive v3 provides plain-text export, the revision list, historical revision
content and file export. Docs v1 provides the formatting-preserving
replaceAllText batch and the full-body overwrite used by revert.

Clients are built once in the constructor from a service account key file and
reused for the life of the process.
"""

from pathlib import Path
from typing import Optional, Sequence

from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseDownload
from httplib2 import HttpLib2Error
from loguru import logger

from tailor.contexts.documents.service import (
    DocumentService,
    ExportFormat,
    Revision,
    RevisionContent,
)
from tailor.exceptions import ExternalServiceError

SCOPES = [
    "https://www.googleapis.com/auth/drive",
    "https://www.googleapis.com/auth/documents",
]

SERVICE_NAME = "google-docs"
REVISION_FIELDS = "nextPageToken, revisions(id, modifiedTime, mimeType)"
REVISION_PAGE_SIZE = 200

# Raised by execute() and AuthorizedHttp: API errors, expired or revoked
# credentials (RefreshError), and transport failures including socket timeouts
API_ERRORS = (HttpError, GoogleAuthError, HttpLib2Error, OSError)


def _service_error(error: Exception, action: str) -> ExternalServiceError:
    """Wrap an API, auth or transport error with what we were trying to do."""
    status = getattr(error.resp, "status", None) if isinstance(error, HttpError) else None
    reason = getattr(error, "reason", None) or str(error) or type(error).__name__
    return ExternalServiceError(
        f"Failed to {action}: {reason}",
        service=SERVICE_NAME,
        status_code=int(status) if status is not None else None,
        original_error=error,
    )


def _normalize_newlines(text: str) -> str:
    # Drive's text/plain export starts with a BOM and uses CRLF line endings
    return text.lstrip("\ufeff").replace("\r\n", "\n")


class GoogleDocsService(DocumentService):
    """
    DocumentService backed by the Google Drive and Docs APIs.

    Example:
        documents = GoogleDocsService(Path("service-account.json"))
        text = documents.export_text(document_id)
    """

    def __init__(self, credentials_path: Path, credentials=None):
        """
        Args:
            credentials_path: Service account JSON key file
            credentials: Pre-built google.auth credentials (skips the key file)
        """
        if credentials is None:
            credentials = service_account.Credentials.from_service_account_file(
                str(credentials_path), scopes=SCOPES
            )
        self._credentials = credentials
        self._drive = build("drive", "v3", credentials=credentials, cache_discovery=False)
        self._docs = build("docs", "v1", credentials=credentials, cache_discovery=False)

    # =========================================================================
    # READS
    # =========================================================================

    def export_text(self, document_id: str) -> str:
        try:
            data = self._drive.files().export(fileId=document_id, mimeType="text/plain").execute()
        except API_ERRORS as e:
            raise _service_error(e, f"export document {document_id} as text")

        if isinstance(data, bytes):
            data = data.decode("utf-8")
        if not isinstance(data, str):
            raise ExternalServiceError(
                "Expected text response from Drive export", service=SERVICE_NAME
            )
        return _normalize_newlines(data)

    def list_revisions(self, document_id: str) -> list[Revision]:
        revisions = []
        page_token = None
        while True:
            try:
                response = (
                    self._drive.revisions()
                    .list(
                        fileId=document_id,
                        fields=REVISION_FIELDS,
                        pageSize=REVISION_PAGE_SIZE,
                        pageToken=page_token,
                    )
                    .execute()
                )
            except API_ERRORS as e:
                raise _service_error(e, f"list revisions of {document_id}")

            for rev in response.get("revisions", []):
                revisions.append(
                    Revision(
                        id=rev.get("id", ""),
                        modified_time=rev.get("modifiedTime", ""),
                        mime_type=rev.get("mimeType", ""),
                    )
                )
            page_token = response.get("nextPageToken")
            if not page_token:
                return revisions

    def get_revision_content(self, document_id: str, revision_id: str) -> RevisionContent:
        """
        Fetch text as of a revision, falling back to the current content.

        Docs editor files expose per-revision export links; binary files can be
        downloaded directly. If neither works the current text is returned with
        is_fallback=True so the caller can warn.
        """
        try:
            text = self._fetch_revision_text(document_id, revision_id)
            return RevisionContent(text=_normalize_newlines(text), revision_id=revision_id)
        except API_ERRORS + (ExternalServiceError, UnicodeDecodeError) as e:
            logger.debug(f"Revision {revision_id} export failed: {e}")

        logger.warning(
            f"Could not export revision {revision_id} directly. Using current document content."
        )
        return RevisionContent(
            text=self.export_text(document_id), revision_id=revision_id, is_fallback=True
        )

    def _fetch_revision_text(self, document_id: str, revision_id: str) -> str:
        metadata = (
            self._drive.revisions()
            .get(fileId=document_id, revisionId=revision_id, fields="exportLinks, mimeType")
            .execute()
        )
        link = (metadata.get("exportLinks") or {}).get("text/plain")
        if link:
            return self._download(link)

        data = self._drive.revisions().get_media(fileId=document_id, revisionId=revision_id).execute()
        return data.decode("utf-8") if isinstance(data, bytes) else str(data)

    def _download(self, url: str) -> str:
        http = AuthorizedHttp(self._credentials)
        response, content = http.request(url, "GET")
        if response.status != 200:
            raise ExternalServiceError(
                f"Revision export link returned {response.status}",
                service=SERVICE_NAME,
                status_code=response.status,
            )
        return content.decode("utf-8")

    # =========================================================================
    # WRITES
    # =========================================================================

    def apply_text_substitutions(
        self, document_id: str, pairs: Sequence[tuple[str, str]]
    ) -> int:
        requests = [
            {
                "replaceAllText": {
                    "containsText": {"text": original, "matchCase": True},
                    "replaceText": replacement,
                }
            }
            for original, replacement in pairs
        ]
        if not requests:
            return 0

        try:
            response = (
                self._docs.documents()
                .batchUpdate(documentId=document_id, body={"requests": requests})
                .execute()
            )
        except API_ERRORS as e:
            raise _service_error(e, f"apply {len(requests)} replacements")

        total = 0
        for reply in response.get("replies", []):
            total += (reply.get("replaceAllText") or {}).get("occurrencesChanged", 0)
        return total

    def overwrite_body(self, document_id: str, text: str) -> None:
        try:
            doc = self._docs.documents().get(documentId=document_id).execute()
        except API_ERRORS as e:
            raise _service_error(e, f"read structure of {document_id}")

        content = (doc.get("body") or {}).get("content")
        if not content:
            raise ExternalServiceError("Unable to read document structure", service=SERVICE_NAME)

        requests = []
        # Keep the final newline; Docs refuses to delete the last paragraph mark
        end_index: Optional[int] = content[-1].get("endIndex")
        if end_index and end_index - 1 > 1:
            requests.append(
                {"deleteContentRange": {"range": {"startIndex": 1, "endIndex": end_index - 1}}}
            )

        text = _normalize_newlines(text)
        if text:
            requests.append({"insertText": {"location": {"index": 1}, "text": text}})

        if not requests:
            return

        try:
            self._docs.documents().batchUpdate(
                documentId=document_id, body={"requests": requests}
            ).execute()
        except API_ERRORS as e:
            raise _service_error(e, f"overwrite body of {document_id}")

    def export_file(self, document_id: str, fmt: ExportFormat, output_path: Path) -> Path:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        request = self._drive.files().export_media(fileId=document_id, mimeType=fmt.mime_type)

        try:
            with open(output_path, "wb") as fh:
                downloader = MediaIoBaseDownload(fh, request)
                done = False
                while not done:
                    _, done = downloader.next_chunk()
        except API_ERRORS as e:
            output_path.unlink(missing_ok=True)
            raise _service_error(e, f"export {document_id} as {fmt.value}")

        return output_path
