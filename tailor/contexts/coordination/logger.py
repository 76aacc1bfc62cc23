"""
Coordination context logger.

Provides logging interface for the coordination context with automatic [cycle] prefix.
All coordination modules should import from this module, not from loguru directly.
"""

from pathlib import Path

from loguru import logger

from tailor.utils.logger import setup_logger as _setup_logger
from tailor.utils.text_processing import truncate_display

CONTEXT_PREFIX = "[cycle]"


def setup_cycle_logger(command: str, log_dir: Path, document_id: str = None) -> Path:
    """
    Setup logger for one CLI session (update, batch, revert, ...).

    Args:
        command: CLI command name, used as the log file name
        log_dir: Directory for this session
        document_id: Tracked document id, recorded in the provenance header

    Returns:
        Path to log file
    """
    return _setup_logger(
        context_name=command,
        log_dir=log_dir,
        extra_provenance={"Document": document_id or "-"},
    )


def _log_info(message: str) -> None:
    """Log info message with [cycle] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [cycle] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [cycle] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [cycle] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [cycle] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level coordination-specific logging helpers


def log_cycle_start(job_description: str, tags, dry_run: bool) -> None:
    """Log start of an update cycle."""
    mode = " (dry run)" if dry_run else ""
    _log_info(f"Starting update cycle{mode}")
    _log_info(f"Job description: {truncate_display(' '.join(job_description.split()), 150)}")
    if tags and (tags.company or tags.job_title):
        _log_info(f"Target: {tags.job_title or '-'} at {tags.company or '-'}")


def log_alignments(replacements, summary) -> None:
    """Log the accepted replacements and the alignment strategy."""
    _log_info("=" * 60)
    _log_info("SEMANTIC ALIGNMENTS:")
    _log_info("=" * 60)
    for i, replacement in enumerate(replacements, 1):
        _log_info(f'{i}. ORIGINAL: "{replacement.original}"')
        _log_info(f'   ALIGNED:  "{replacement.replacement}"')
    _log_info("ALIGNMENT STRATEGY:")
    for i, line in enumerate(summary, 1):
        _log_info(f"  {i}. {line}")


def log_cycle_result(result) -> None:
    """
    Log the outcome of one update cycle.

    Args:
        result: UpdateResult from UpdateCoordinator.run()
    """
    if result.dry_run:
        _log_info(
            f"[DRY RUN] Would apply {len(result.validation.accepted)} alignment(s) "
            "(formatting preserved). Nothing written."
        )
        return
    _log_success(
        f"Resume updated. Revision ID: {result.entry.revision_id} "
        f"({result.occurrences_changed} occurrence(s) changed)"
    )


def log_batch_item(position: int, total: int, label: str) -> None:
    _log_info("-" * 60)
    _log_info(f"[{position}/{total}] {label}")


def log_batch_summary(report) -> None:
    """Log succeeded/failed counts for a batch (BatchReport)."""
    succeeded = len(report.succeeded)
    failed = len(report.failed)
    if failed:
        _log_warning(f"Batch finished: {succeeded} succeeded, {failed} failed")
        for item in report.failed:
            _log_warning(f"  {item.label}: {item.error}")
    else:
        _log_success(f"Batch finished: {succeeded} succeeded")


def log_revert_transition(old_state, new_state) -> None:
    _log_debug(f"Revert: {old_state.value} -> {new_state.value}")
