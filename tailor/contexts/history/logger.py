"""
History context logger.

Provides logging interface for the history context with automatic [history] prefix.
All history modules should import from this module, not from loguru directly.
"""

from loguru import logger

CONTEXT_PREFIX = "[history]"


def _log_info(message: str) -> None:
    """Log info message with [history] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [history] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [history] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [history] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level history-specific logging helpers


def log_unreadable_log(path, error: Exception) -> None:
    """Warn that the version log could not be read and history is treated as empty."""
    _log_warning(f"Could not read version log {path}: {error}")
    _log_warning("Treating history as empty; the file is left untouched until the next write")


def log_desync(report) -> None:
    """
    Log desync between local log and remote revisions.

    Args:
        report: DesyncReport from reconcile()
    """
    if report.in_sync:
        _log_debug("Local log matches remote revisions")
        return

    _log_warning("Desync detected between local log and document revisions")
    if report.missing:
        ids = ", ".join(rev.id for rev in report.missing)
        _log_warning(f"  Missing in local log: {ids}")
    if report.extra:
        _log_warning(f"  Extra in local log: {', '.join(report.extra)}")
