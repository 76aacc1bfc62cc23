"""
Export of a logged version to PDF or DOCX.

The document service can only export the live document, so exporting an older
entry produces the current content plus a warning. Revert first to export an
older version faithfully.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from tailor.contexts.coordination.logger import _log_success, _log_warning
from tailor.contexts.documents.service import DocumentService, ExportFormat
from tailor.contexts.history.version_log import Selector, VersionLog, VersionLogEntry


@dataclass
class ExportResult:
    path: Path
    target: VersionLogEntry
    is_current: bool
    warnings: list[str] = field(default_factory=list)


def default_export_path(target: VersionLogEntry, fmt: ExportFormat) -> Path:
    """resume_<revisionId>.<ext> in the working directory."""
    safe_id = "".join(c if c.isalnum() or c in "-_" else "_" for c in target.revision_id)
    return Path(f"resume_{safe_id}.{fmt.value}")


def export_version(
    version_log: VersionLog,
    documents: DocumentService,
    document_id: str,
    selector: Selector,
    fmt: ExportFormat = ExportFormat.PDF,
    output_path: Optional[Path] = None,
) -> ExportResult:
    """
    Export the document for a logged version.

    Args:
        version_log: Local version log used to resolve the selector
        documents: Document service
        document_id: Tracked document id
        selector: Log index or revision id
        fmt: Output format
        output_path: Destination file (default: resume_<revisionId>.<ext>)

    Raises:
        NotFoundError: If the selector resolves to nothing (before any external call)
        ExternalServiceError: If listing revisions or exporting fails
    """
    _, target = version_log.resolve(selector)
    output_path = Path(output_path) if output_path else default_export_path(target, fmt)

    warnings = []
    latest = documents.latest_revision(document_id)
    is_current = latest.id == target.revision_id
    if not is_current:
        warning = (
            f"Revision {target.revision_id} is not the current revision ({latest.id}); "
            "exporting current content. Revert first to export that version."
        )
        _log_warning(warning)
        warnings.append(warning)

    path = documents.export_file(document_id, fmt, output_path)
    _log_success(f"Exported {fmt.value.upper()} to {path}")
    return ExportResult(path=path, target=target, is_current=is_current, warnings=warnings)
