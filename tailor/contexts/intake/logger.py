"""
Intake context logger.

Provides logging interface for the intake context with automatic [intake] prefix.
All intake modules should import from this module, not from loguru directly.
"""

from loguru import logger

CONTEXT_PREFIX = "[intake]"


def _log_info(message: str) -> None:
    """Log info message with [intake] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [intake] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [intake] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [intake] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [intake] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level intake-specific logging helpers


def log_company_result(company: str, found: int, matched: int) -> None:
    _log_info(f"  {company}: {found} posting(s) found, {matched} matching criteria")


def log_liveness_summary(results: dict) -> None:
    """Log active/inactive counts from a probe run (url -> bool)."""
    active = sum(1 for ok in results.values() if ok)
    _log_info(f"Validated {len(results)} posting(s): {active} active, {len(results) - active} inactive")
    for url, ok in results.items():
        if not ok:
            _log_debug(f"  Inactive: {url}")


def log_monitor_summary(report) -> None:
    """Log the outcome of a monitor run (MonitorReport)."""
    for name, error in report.failed_companies.items():
        _log_warning(f"  Skipped {name}: {error}")
    if report.added:
        _log_success(f"Added {len(report.added)} new job(s) to queue")
    else:
        _log_info("No new jobs found")
