"""
Coordination Context

Responsibilities:
- Runs one update cycle end to end (fetch, suggest, validate, apply, log)
- Runs batches of update cycles with per-item failure isolation
- Drives the revert state machine and records reverts as forward history
- Exports the current document for a resolved version

Owns: Cycle ordering, the only writes to the version log besides tag correction
Never: Talks to Google or the LLM except through the injected collaborators
"""

from tailor.contexts.coordination.export import ExportResult, export_version
from tailor.contexts.coordination.revert import RevertCoordinator, RevertResult, RevertState
from tailor.contexts.coordination.update import (
    BatchItem,
    BatchItemResult,
    BatchReport,
    JobTags,
    UpdateCoordinator,
    UpdateResult,
)

__all__ = [
    "UpdateCoordinator",
    "UpdateResult",
    "JobTags",
    "BatchItem",
    "BatchItemResult",
    "BatchReport",
    "RevertCoordinator",
    "RevertResult",
    "RevertState",
    "export_version",
    "ExportResult",
]
