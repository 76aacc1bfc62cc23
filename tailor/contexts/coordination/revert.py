"""
Revert coordination.

A revert never rewinds history: it restores an earlier text and records the
result as a new, forward revision with an isRevert entry. States:

    SELECT_TARGET -> FETCH_SNAPSHOT -> OVERWRITE -> APPEND_LOG -> DONE

Any non-terminal state may move to FAILED, after which the original exception
propagates to the caller. Target resolution happens before any external call,
so an unknown selector costs nothing and writes nothing.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from tailor.contexts.coordination.logger import (
    _log_error,
    _log_info,
    _log_success,
    _log_warning,
    log_revert_transition,
)
from tailor.contexts.documents.service import DocumentService
from tailor.contexts.history.version_log import Selector, VersionLog, VersionLogEntry


class RevertState(str, Enum):
    SELECT_TARGET = "select_target"
    FETCH_SNAPSHOT = "fetch_snapshot"
    OVERWRITE = "overwrite"
    APPEND_LOG = "append_log"
    DONE = "done"
    FAILED = "failed"


TRANSITIONS = {
    RevertState.SELECT_TARGET: {RevertState.FETCH_SNAPSHOT, RevertState.FAILED},
    RevertState.FETCH_SNAPSHOT: {RevertState.OVERWRITE, RevertState.FAILED},
    RevertState.OVERWRITE: {RevertState.APPEND_LOG, RevertState.FAILED},
    RevertState.APPEND_LOG: {RevertState.DONE, RevertState.FAILED},
    RevertState.DONE: set(),
    RevertState.FAILED: set(),
}


def revert_narrative(target: VersionLogEntry) -> str:
    return f"Reverted to revision {target.revision_id}"


@dataclass
class RevertResult:
    """
    Outcome of a completed revert.

    Attributes:
        target_index: Log index of the version that was restored
        target: The restored version's entry
        entry: The new isRevert entry appended to the log
        warnings: Fidelity warnings (e.g., historical content unavailable)
    """

    target_index: int
    target: VersionLogEntry
    entry: VersionLogEntry
    warnings: list[str] = field(default_factory=list)

    @property
    def new_revision_id(self) -> str:
        return self.entry.revision_id


class RevertCoordinator:
    """
    Restores a logged version of the document.

    Example:
        coordinator = RevertCoordinator(documents, document_id, version_log)
        result = coordinator.run("0")
        print(result.new_revision_id, result.warnings)
    """

    def __init__(self, documents: DocumentService, document_id: str, version_log: VersionLog):
        self.documents = documents
        self.document_id = document_id
        self.version_log = version_log
        self.state = RevertState.SELECT_TARGET
        self.history: list[RevertState] = [self.state]

    def _transition(self, new_state: RevertState) -> None:
        if new_state not in TRANSITIONS[self.state]:
            raise RuntimeError(
                f"Illegal revert transition: {self.state.value} -> {new_state.value}"
            )
        log_revert_transition(self.state, new_state)
        self.state = new_state
        self.history.append(new_state)

    def run(self, selector: Selector) -> RevertResult:
        """
        Revert the document to the version selected by index or revision id.

        Raises:
            NotFoundError: If the selector resolves to nothing (no external call made)
            ExternalServiceError: If fetching, overwriting, or listing revisions fails
            RuntimeError: If run() is called again on a finished coordinator
        """
        if self.state is not RevertState.SELECT_TARGET:
            raise RuntimeError(f"Revert already ran (state: {self.state.value})")

        try:
            return self._run(selector)
        except Exception as e:
            if self.state not in (RevertState.DONE, RevertState.FAILED):
                _log_error(f"Revert failed during {self.state.value}: {e}")
                self._transition(RevertState.FAILED)
            raise

    def _run(self, selector: Selector) -> RevertResult:
        warnings: list[str] = []

        target_index, target = self.version_log.resolve(selector)
        _log_info(f"Reverting to revision: {target.revision_id} (entry {target_index})")

        self._transition(RevertState.FETCH_SNAPSHOT)
        snapshot = self.documents.get_revision_content(self.document_id, target.revision_id)
        if snapshot.is_fallback:
            warning = (
                f"Content of revision {target.revision_id} was unavailable; "
                "the current document content was used instead"
            )
            _log_warning(warning)
            warnings.append(warning)

        self._transition(RevertState.OVERWRITE)
        _log_info("Restoring content...")
        self.documents.overwrite_body(self.document_id, snapshot.text)

        self._transition(RevertState.APPEND_LOG)
        latest = self.documents.latest_revision(self.document_id)
        entry = VersionLogEntry(
            revision_id=latest.id,
            timestamp=latest.modified_time,
            changes=[revert_narrative(target)],
            is_revert=True,
        )
        self.version_log.append(entry)

        self._transition(RevertState.DONE)
        _log_success(f"Revert completed. New revision ID: {latest.id}")
        return RevertResult(
            target_index=target_index, target=target, entry=entry, warnings=warnings
        )

    @property
    def failed(self) -> Optional[bool]:
        """None while running, else whether the run ended in FAILED."""
        if self.state is RevertState.DONE:
            return False
        if self.state is RevertState.FAILED:
            return True
        return None
