"""
Update cycle coordination.

One cycle: fetch the current document text, ask for job-aligned suggestions,
validate them against that exact text, apply the accepted set in one batch,
then record the resulting revision in the version log. A log entry is written
if and only if the apply step returned successfully; dry runs stop after
validation and write nothing anywhere.

Cycles against one document are strictly sequential. Batches run items one at
a time and isolate failures per item.
"""

from dataclasses import dataclass, field, replace
from typing import Callable, Iterable, Optional

from tailor.contexts.alignment.applier import ReplacementApplier
from tailor.contexts.alignment.suggestions import SuggestionClient
from tailor.contexts.alignment.validator import (
    ReplacementValidator,
    ValidationResult,
    WordReplacement,
)
from tailor.contexts.coordination.logger import (
    _log_error,
    _log_info,
    _log_warning,
    log_alignments,
    log_batch_item,
    log_batch_summary,
    log_cycle_result,
    log_cycle_start,
)
from tailor.contexts.documents.service import DocumentService
from tailor.contexts.history.version_log import VersionLog, VersionLogEntry
from tailor.exceptions import ExternalServiceError


@dataclass(frozen=True)
class JobTags:
    """Denormalized job metadata written onto an update's log entry."""

    company: Optional[str] = None
    job_title: Optional[str] = None
    job_url: Optional[str] = None

    @classmethod
    def from_metadata(cls, metadata: dict, job_url: Optional[str] = None) -> "JobTags":
        """Build tags from extracted {"Company": ..., "Role": ...} metadata."""
        return cls(company=metadata.get("Company"), job_title=metadata.get("Role"), job_url=job_url)

    @property
    def complete(self) -> bool:
        return bool(self.company and self.job_title)

    def fill_from(self, other: "JobTags") -> "JobTags":
        """Return a copy with unset fields taken from other (set fields win)."""
        return JobTags(
            company=self.company or other.company,
            job_title=self.job_title or other.job_title,
            job_url=self.job_url or other.job_url,
        )


def describe_replacement(replacement: WordReplacement) -> str:
    """Change-narrative line recorded for one accepted replacement."""
    return f'Replaced "{replacement.original}" with "{replacement.replacement}"'


@dataclass
class UpdateResult:
    """
    Outcome of one update cycle.

    Attributes:
        validation: Accepted and rejected suggestions
        summary: Alignment strategy lines from the generation service
        dry_run: True if nothing was applied or logged
        occurrences_changed: Total substitutions made in the document
        entry: The appended log entry (None for dry runs)
        tags: Metadata the entry was tagged with
    """

    validation: ValidationResult
    summary: list[str]
    dry_run: bool = False
    occurrences_changed: int = 0
    entry: Optional[VersionLogEntry] = None
    tags: JobTags = field(default_factory=JobTags)


@dataclass
class BatchItem:
    """
    One job description in a batch.

    load_description is called inside the item's own failure boundary, so a
    missing file or failed scrape only fails that item.
    """

    label: str
    load_description: Callable[[], str]
    tags: JobTags = field(default_factory=JobTags)


@dataclass
class BatchItemResult:
    label: str
    result: Optional[UpdateResult] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class BatchReport:
    items: list[BatchItemResult] = field(default_factory=list)

    @property
    def succeeded(self) -> list[BatchItemResult]:
        return [item for item in self.items if item.succeeded]

    @property
    def failed(self) -> list[BatchItemResult]:
        return [item for item in self.items if not item.succeeded]

    @property
    def all_failed(self) -> bool:
        """True only for a non-empty batch in which every item failed."""
        return bool(self.items) and not self.succeeded


class UpdateCoordinator:
    """
    Runs update cycles against one document.

    Collaborators are constructed once by the caller and injected here.

    Example:
        coordinator = UpdateCoordinator(documents, document_id, suggestions, version_log)
        result = coordinator.run(job_description, JobTags(company="Acme"))
    """

    def __init__(
        self,
        documents: DocumentService,
        document_id: str,
        suggestions: SuggestionClient,
        version_log: VersionLog,
        validator: Optional[ReplacementValidator] = None,
        tagger: Optional[Callable[[str], JobTags]] = None,
    ):
        """
        Args:
            documents: Document service for the tracked document
            document_id: Id of the tracked document
            suggestions: Generation collaborator
            version_log: Local version log
            validator: Replacement filter (default: ReplacementValidator())
            tagger: Optional metadata extractor used to fill missing company/job title
        """
        self.documents = documents
        self.document_id = document_id
        self.suggestions = suggestions
        self.version_log = version_log
        self.validator = validator or ReplacementValidator()
        self.applier = ReplacementApplier(documents, document_id)
        self.tagger = tagger

    def run(
        self, job_description: str, tags: Optional[JobTags] = None, dry_run: bool = False
    ) -> UpdateResult:
        """
        Run one update cycle.

        Args:
            job_description: Target job description text
            tags: Caller-supplied metadata for the log entry
            dry_run: Stop after validation; no document change and no log entry

        Returns:
            UpdateResult

        Raises:
            ValueError: If the job description is empty
            ExternalServiceError: If fetching, suggesting, or applying fails
                (nothing is logged in that case)
        """
        if not job_description or not job_description.strip():
            raise ValueError("Job description is empty")
        tags = tags or JobTags()
        log_cycle_start(job_description, tags, dry_run)

        _log_info("Fetching current resume...")
        text = self.documents.export_text(self.document_id)

        suggestions = self.suggestions.suggest(text, job_description)
        validation = self.validator.validate(text, suggestions.replacements)
        log_alignments(validation.accepted, suggestions.summary)

        result = UpdateResult(validation=validation, summary=suggestions.summary, dry_run=dry_run)
        if dry_run:
            log_cycle_result(result)
            return result

        _log_info("Applying replacements to the document (formatting preserved)...")
        applied = self.applier.apply(validation.accepted)

        # Re-read after the write; the batch creates the revision we record
        latest = self.documents.latest_revision(self.document_id)
        tags = self._complete_tags(tags, job_description)

        entry = VersionLogEntry(
            revision_id=latest.id,
            timestamp=latest.modified_time,
            changes=[describe_replacement(r) for r in validation.accepted] + suggestions.summary,
            is_revert=False,
            job_title=tags.job_title,
            company=tags.company,
            job_url=tags.job_url,
        )
        self.version_log.append(entry)

        result = replace(
            result, occurrences_changed=applied.occurrences_changed, entry=entry, tags=tags
        )
        log_cycle_result(result)
        return result

    def _complete_tags(self, tags: JobTags, job_description: str) -> JobTags:
        if tags.complete or self.tagger is None:
            return tags
        try:
            extracted = self.tagger(job_description)
        except ExternalServiceError as e:
            _log_warning(f"Auto-tagging failed, logging without metadata: {e}")
            return tags
        filled = tags.fill_from(extracted)
        _log_info(f"Auto-tagged: {filled.job_title or '-'} at {filled.company or '-'}")
        return filled

    def run_batch(self, items: Iterable[BatchItem], dry_run: bool = False) -> BatchReport:
        """
        Run one update cycle per item, strictly in order.

        A failing item (load, suggest, apply, or log) is recorded and the batch
        moves on to the next item.

        Returns:
            BatchReport (check all_failed for the overall exit status)
        """
        items = list(items)
        report = BatchReport()
        for position, item in enumerate(items, 1):
            log_batch_item(position, len(items), item.label)
            try:
                job_description = item.load_description()
                result = self.run(job_description, item.tags, dry_run=dry_run)
            except Exception as e:
                _log_error(f"{item.label} failed: {e}")
                report.items.append(BatchItemResult(label=item.label, error=str(e)))
                continue
            report.items.append(BatchItemResult(label=item.label, result=result))

        log_batch_summary(report)
        return report
