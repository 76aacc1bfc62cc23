"""
Replacement validation.

Generation output is untrusted. Each candidate replacement is checked on its own
against one immutable snapshot of the document text; a candidate that fails any
filter is recorded (never raised) and left out of the applied set.

Filters, in order:
    1. original must occur verbatim (case-sensitive, contiguous) in the text
    2. trimmed original and replacement must differ
    3. word counts may differ by at most max_word_delta (reword, don't rewrite)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from tailor.config import DEFAULT_MAX_WORD_DELTA
from tailor.contexts.alignment.logger import log_rejection, log_validation_result
from tailor.utils.text_processing import count_words


@dataclass(frozen=True)
class WordReplacement:
    """
    One (original, replacement) pair proposed for a single update cycle.

    Attributes:
        original: Exact text expected in the document
        replacement: Proposed rewording
        rationale: Job requirement the rewording targets (informational)
    """

    original: str
    replacement: str
    rationale: Optional[str] = None

    @property
    def word_delta(self) -> int:
        return abs(count_words(self.original) - count_words(self.replacement))

    def as_pair(self) -> tuple[str, str]:
        return self.original, self.replacement


class RejectionReason(str, Enum):
    NOT_FOUND = "not found in source"
    NO_OP = "no-op"
    REWRITE_TOO_LARGE = "rewrite too large"


@dataclass(frozen=True)
class ValidationRejection:
    """A candidate excluded from the applied set, with the filter that excluded it."""

    candidate: WordReplacement
    reason: RejectionReason
    detail: str = ""


@dataclass
class ValidationResult:
    """Accepted candidates in input order, plus every rejection."""

    accepted: list[WordReplacement] = field(default_factory=list)
    rejected: list[ValidationRejection] = field(default_factory=list)


class ReplacementValidator:
    """
    Filters candidate replacements against a document snapshot.

    The result depends only on (text, candidates), so validating the same
    inputs twice yields the same accepted set. Candidates whose originals
    overlap are all kept; the document service resolves actual occurrences.
    """

    def __init__(self, max_word_delta: int = DEFAULT_MAX_WORD_DELTA):
        if max_word_delta < 0:
            raise ValueError(f"max_word_delta must be >= 0, got {max_word_delta}")
        self.max_word_delta = max_word_delta

    def check(self, text: str, candidate: WordReplacement) -> Optional[ValidationRejection]:
        """Return the first failing filter for candidate, or None if it passes."""
        if not candidate.original or candidate.original not in text:
            return ValidationRejection(candidate, RejectionReason.NOT_FOUND, "not in resume")

        if candidate.original.strip() == candidate.replacement.strip():
            return ValidationRejection(candidate, RejectionReason.NO_OP, "replacement is identical")

        original_words = count_words(candidate.original)
        replacement_words = count_words(candidate.replacement)
        if abs(original_words - replacement_words) > self.max_word_delta:
            return ValidationRejection(
                candidate,
                RejectionReason.REWRITE_TOO_LARGE,
                f"word count {original_words} -> {replacement_words}, "
                f"max {self.max_word_delta} allowed",
            )

        return None

    def validate(self, text: str, candidates: Iterable[WordReplacement]) -> ValidationResult:
        """
        Split candidates into accepted and rejected, preserving input order.

        Args:
            text: Document text snapshot the candidates were generated against
            candidates: Suggested replacements

        Returns:
            ValidationResult
        """
        result = ValidationResult()
        for candidate in candidates:
            rejection = self.check(text, candidate)
            if rejection is None:
                result.accepted.append(candidate)
            else:
                result.rejected.append(rejection)
                log_rejection(rejection)

        log_validation_result(result)
        return result
