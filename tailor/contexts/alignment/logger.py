"""
Alignment context logger.

Provides logging interface for the alignment context with automatic [align] prefix.
All alignment modules should import from this module, not from loguru directly.
"""

from loguru import logger

from tailor.utils.text_processing import truncate_display

CONTEXT_PREFIX = "[align]"


def _log_info(message: str) -> None:
    """Log info message with [align] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [align] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [align] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [align] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level alignment-specific logging helpers


def log_rejection(rejection) -> None:
    """Log one filtered suggestion (ValidationRejection) with its reason."""
    original = truncate_display(rejection.candidate.original, 40)
    _log_info(f'  Skipped: "{original}" ({rejection.reason.value}: {rejection.detail})')


def log_validation_result(result) -> None:
    """
    Log the accepted/rejected split for one validation pass.

    Args:
        result: ValidationResult from ReplacementValidator.validate()
    """
    _log_info(
        f"Found {len(result.accepted)} responsibility-aligned updates "
        f"({len(result.rejected)} suggestion(s) rejected)"
    )
    for replacement in result.accepted:
        if replacement.rationale:
            _log_debug(f'  -> Demonstrates managing: "{replacement.rationale}"')


def log_sections_found(sections) -> None:
    """Log which prioritized job description sections were extracted."""
    if sections.responsibilities:
        _log_info("Extracted Responsibilities section (highest priority)")
    if sections.qualifications:
        _log_info("Extracted Qualifications section (high priority)")
    if not sections.responsibilities and not sections.qualifications:
        _log_debug("No Responsibilities/Qualifications headings found; using full description")
