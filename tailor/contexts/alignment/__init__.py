"""
Alignment Context

Responsibilities:
- Asks the generation service for job-aligned rewordings of resume text
- Filters untrusted suggestions down to a safe, bounded substitution set
- Applies the accepted substitutions to the live document in one atomic batch

Owns: Prompting, suggestion decoding, replacement validation and application
Never: Writes the version log or decides when a cycle is complete
"""

from tailor.contexts.alignment.applier import ReplacementApplier
from tailor.contexts.alignment.suggestions import AlignmentSuggestions, SuggestionClient
from tailor.contexts.alignment.validator import (
    RejectionReason,
    ReplacementValidator,
    ValidationRejection,
    ValidationResult,
    WordReplacement,
)

__all__ = [
    "WordReplacement",
    "ReplacementValidator",
    "ValidationResult",
    "ValidationRejection",
    "RejectionReason",
    "ReplacementApplier",
    "SuggestionClient",
    "AlignmentSuggestions",
]
