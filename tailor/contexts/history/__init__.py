"""
History Context

Responsibilities:
- Persists the local, append-only version log of tool-driven updates and reverts
- Resolves version selectors (index or revision id) for revert, tag, and export
- Applies the metadata-only tag correction
- Reconciles the local log against the document service's revision sequence

Owns: Version log file, desync detection
Never: Mutates the remote document or repairs desync on its own
"""

from tailor.contexts.history.reconciler import DesyncReport, check_sync, reconcile
from tailor.contexts.history.version_log import VersionLog, VersionLogEntry

__all__ = [
    "VersionLog",
    "VersionLogEntry",
    "DesyncReport",
    "reconcile",
    "check_sync",
]
