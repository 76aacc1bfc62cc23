"""
Atomic application of validated replacements.

All pairs of one cycle go to the document service as a single batch, so either
every substitution lands or none does. There is no snapshot isolation: the
batch runs against whatever the live content is at that moment.
"""

from dataclasses import dataclass
from typing import Sequence

from tailor.contexts.alignment.logger import _log_debug, _log_info
from tailor.contexts.alignment.validator import WordReplacement
from tailor.contexts.documents.service import DocumentService


@dataclass(frozen=True)
class ApplyResult:
    """Outcome of one batch submission."""

    submitted: int
    occurrences_changed: int


class ReplacementApplier:
    """
    Submits validated replacements to the document service.

    Example:
        applier = ReplacementApplier(documents, document_id)
        result = applier.apply(validation.accepted)
    """

    def __init__(self, documents: DocumentService, document_id: str):
        self.documents = documents
        self.document_id = document_id

    def apply(self, replacements: Sequence[WordReplacement]) -> ApplyResult:
        """
        Apply every replacement in one batch.

        An empty sequence is a no-op that makes no external call.

        Raises:
            ExternalServiceError: If the batch is rejected (nothing was applied)
        """
        if not replacements:
            _log_debug("No replacements to apply; skipping document update")
            return ApplyResult(submitted=0, occurrences_changed=0)

        pairs = [replacement.as_pair() for replacement in replacements]
        changed = self.documents.apply_text_substitutions(self.document_id, pairs)
        _log_info(f"Applied {len(pairs)} replacement(s), {changed} occurrence(s) changed")
        return ApplyResult(submitted=len(pairs), occurrences_changed=changed)
