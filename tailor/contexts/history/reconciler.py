"""
Reconciliation between the local version log and remote revisions.

The document's revision sequence is the source of truth for what versions
exist; the log is the source of truth for why a version exists. Drift between
them (edits made outside the tool, hand-edited or lost logs) is reported,
never repaired.
"""

from dataclasses import dataclass, field
from typing import Sequence

from tailor.contexts.documents.service import DocumentService, Revision
from tailor.contexts.history.logger import log_desync
from tailor.contexts.history.version_log import VersionLog, VersionLogEntry


@dataclass(frozen=True)
class DesyncReport:
    """
    Differences between the local log and the remote revision sequence.

    Attributes:
        extra: Logged revision ids that no remote revision has
        missing: Remote revisions (baseline excluded) with no log entry
        remote_ids: Every remote revision id, for per-entry lookups
    """

    extra: list[str] = field(default_factory=list)
    missing: list[Revision] = field(default_factory=list)
    remote_ids: frozenset = frozenset()

    @property
    def in_sync(self) -> bool:
        return not self.extra and not self.missing

    def is_tracked(self, revision_id: str) -> bool:
        """True if the remote service still reports this revision."""
        return revision_id in self.remote_ids


def reconcile(entries: Sequence[VersionLogEntry], revisions: Sequence[Revision]) -> DesyncReport:
    """
    Compare log entries against remote revisions (oldest first).

    The first remote revision is the pre-tool baseline and is never counted
    as missing. Extra ids are checked against every remote revision.
    """
    logged_ids = {entry.revision_id for entry in entries}
    remote_ids = frozenset(rev.id for rev in revisions)

    missing = [rev for rev in list(revisions)[1:] if rev.id not in logged_ids]

    extra = []
    for entry in entries:
        if entry.revision_id not in remote_ids and entry.revision_id not in extra:
            extra.append(entry.revision_id)

    return DesyncReport(extra=extra, missing=missing, remote_ids=remote_ids)


def check_sync(
    version_log: VersionLog, documents: DocumentService, document_id: str
) -> DesyncReport:
    """
    Fetch fresh revisions, reconcile against the log, and warn on drift.

    Raises:
        ExternalServiceError: If the revision list cannot be fetched
    """
    report = reconcile(version_log.read(), documents.list_revisions(document_id))
    log_desync(report)
    return report
