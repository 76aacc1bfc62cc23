"""
Local version log for the tracked resume document.

The log is a JSON array of VersionLogEntry objects (camelCase keys, stored in
resume_versions.json by default). It is append-only: the only permitted
in-place change is the tag correction, which rewrites an entry's denormalized
company/jobTitle/jobUrl fields.

Every write replaces the whole file atomically (temp file in the same directory,
then os.replace). There is no file locking: concurrent writers against one log
(e.g., two `tag` or `update` processes at once) are not safe.
"""

import json
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional, Union

from tailor.contexts.history.logger import _log_debug, log_unreadable_log
from tailor.exceptions import NotFoundError
from tailor.utils.atomic import atomic_write_json

Selector = Union[int, str]

# Fields the tag correction may overwrite
TAGGABLE_FIELDS = ("company", "job_title", "job_url")


@dataclass(frozen=True)
class VersionLogEntry:
    """
    One tool-driven update or revert of the document.

    Attributes:
        revision_id: Document service revision this entry describes (a reference, not ownership)
        timestamp: ISO 8601 time of that revision
        changes: Ordered human-readable change narrative
        is_revert: True if the entry records a revert (never changes after writing)
        job_title: Denormalized job title the update targeted
        company: Denormalized company name
        job_url: Denormalized job posting URL
    """

    revision_id: str
    timestamp: str
    changes: list[str] = field(default_factory=list)
    is_revert: bool = False
    job_title: Optional[str] = None
    company: Optional[str] = None
    job_url: Optional[str] = None

    def to_dict(self) -> dict:
        """Serialize with the on-disk camelCase keys, omitting unset optional fields."""
        data = {
            "revisionId": self.revision_id,
            "timestamp": self.timestamp,
        }
        for key, value in (
            ("jobTitle", self.job_title),
            ("company", self.company),
            ("jobUrl", self.job_url),
        ):
            if value is not None:
                data[key] = value
        data["changes"] = list(self.changes)
        data["isRevert"] = self.is_revert
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "VersionLogEntry":
        """
        Build an entry from its on-disk representation.

        Raises:
            ValueError: If required keys are missing or have the wrong type
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected an object, got {type(data).__name__}")
        try:
            revision_id = data["revisionId"]
            timestamp = data["timestamp"]
        except KeyError as e:
            raise ValueError(f"Entry missing required key {e}")
        changes = data.get("changes", [])
        is_revert = data.get("isRevert", False)
        if (
            not isinstance(revision_id, str)
            or not isinstance(changes, list)
            or not isinstance(is_revert, bool)
        ):
            raise ValueError(f"Malformed entry for revision {revision_id!r}")

        return cls(
            revision_id=revision_id,
            timestamp=str(timestamp),
            changes=[str(change) for change in changes],
            is_revert=is_revert,
            job_title=data.get("jobTitle"),
            company=data.get("company"),
            job_url=data.get("jobUrl"),
        )

    @property
    def kind(self) -> str:
        return "Revert" if self.is_revert else "Update"

    def matches(self, term: str) -> bool:
        """Case-insensitive match against metadata, revision id, and change narrative."""
        needle = term.lower()
        haystack = [self.revision_id, self.company, self.job_title, self.job_url, *self.changes]
        return any(needle in value.lower() for value in haystack if value)


class VersionLog:
    """
    File-backed, append-only sequence of VersionLogEntry.

    Example:
        log = VersionLog(Path("resume_versions.json"))
        log.append(VersionLogEntry(revision_id="42", timestamp=now_exact(), changes=["..."]))
        index, entry = log.resolve("0")
        log.patch("42", company="Acme")
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def read(self) -> list[VersionLogEntry]:
        """
        Read all entries in append order.

        Returns an empty list when the log does not exist yet, and also when it
        exists but cannot be parsed (a warning is logged and the file is not
        modified by the read).
        """
        if not self.path.exists():
            return []

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(raw, list):
                raise ValueError(f"Expected a JSON array, got {type(raw).__name__}")
            return [VersionLogEntry.from_dict(item) for item in raw]
        except (OSError, ValueError) as e:
            # json.JSONDecodeError is a ValueError
            log_unreadable_log(self.path, e)
            return []

    def append(self, entry: VersionLogEntry) -> list[VersionLogEntry]:
        """
        Append one entry and persist the full sequence atomically.

        Returns:
            The updated sequence
        """
        entries = self.read()
        entries.append(entry)
        self._write(entries)
        _log_debug(f"Appended {entry.kind.lower()} entry for revision {entry.revision_id}")
        return entries

    def resolve(self, selector: Selector, entries: Optional[list[VersionLogEntry]] = None):
        """
        Resolve a selector to (index, entry).

        An integer (or all-digit string) inside the log's range selects by
        0-based index, even when it is also another entry's revision id;
        otherwise the selector must equal exactly one entry's revision id. A
        revision id shared by several entries is ambiguous.

        Args:
            selector: Index or revision id
            entries: Pre-read entries (default: read the log)

        Returns:
            Tuple of (index, VersionLogEntry)

        Raises:
            NotFoundError: If the selector resolves to nothing or is ambiguous
        """
        if entries is None:
            entries = self.read()

        token = str(selector).strip()
        if not token:
            raise NotFoundError(token, "empty selector")

        if token.isdigit() and int(token) < len(entries):
            return int(token), entries[int(token)]

        by_id = [i for i, entry in enumerate(entries) if entry.revision_id == token]
        if not by_id:
            if token.isdigit():
                raise NotFoundError(token, f"index out of range (log has {len(entries)} entries)")
            raise NotFoundError(token)
        if len(by_id) > 1:
            # Happens after zero-change updates, which log the unchanged revision again
            raise NotFoundError(
                token, f"ambiguous: revision id shared by entries {by_id}; select by index"
            )
        return by_id[0], entries[by_id[0]]

    def patch(
        self,
        selector: Selector,
        company: Optional[str] = None,
        job_title: Optional[str] = None,
        job_url: Optional[str] = None,
    ) -> VersionLogEntry:
        """
        Overwrite the denormalized metadata of one entry.

        Only company, job_title and job_url can change; fields passed as None are
        left as they are. The whole sequence is rewritten atomically.

        Returns:
            The patched entry

        Raises:
            NotFoundError: If the selector resolves to nothing
        """
        entries = self.read()
        index, entry = self.resolve(selector, entries)

        updates = {
            name: value
            for name, value in zip(TAGGABLE_FIELDS, (company, job_title, job_url))
            if value is not None
        }
        patched = replace(entry, **updates)
        entries[index] = patched
        self._write(entries)
        _log_debug(f"Patched entry {index} ({entry.revision_id}): {sorted(updates)}")
        return patched

    def search(self, term: str) -> list[tuple[int, VersionLogEntry]]:
        """Return (index, entry) pairs whose metadata or changes contain term."""
        return [(i, entry) for i, entry in enumerate(self.read()) if entry.matches(term)]

    def _write(self, entries: list[VersionLogEntry]) -> None:
        """Write the full sequence via temp file + atomic rename."""
        atomic_write_json(self.path, [entry.to_dict() for entry in entries])
