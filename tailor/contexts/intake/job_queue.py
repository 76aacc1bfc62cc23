"""
Queue of discovered, not yet processed job postings.

Stored as a JSON array (jobs_queue.json by default) and deduplicated by URL.
Monitoring only ever adds entries; entries leave the queue only when an update
cycle for them succeeds.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from tailor.contexts.intake.logger import _log_debug, _log_warning
from tailor.utils.atomic import atomic_write_json
from tailor.utils.timestamp import now_exact


@dataclass(frozen=True)
class JobQueueEntry:
    company: str
    url: str
    job_title: str
    discovered_at: str = ""

    @classmethod
    def discovered(cls, company: str, url: str, job_title: str) -> "JobQueueEntry":
        return cls(company=company, url=url, job_title=job_title, discovered_at=now_exact())

    def to_dict(self) -> dict:
        return {
            "company": self.company,
            "url": self.url,
            "jobTitle": self.job_title,
            "discoveredAt": self.discovered_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "JobQueueEntry":
        """
        Raises:
            ValueError: If required keys are missing
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected an object, got {type(data).__name__}")
        try:
            return cls(
                company=str(data["company"]),
                url=str(data["url"]),
                job_title=str(data["jobTitle"]),
                discovered_at=str(data.get("discoveredAt", "")),
            )
        except KeyError as e:
            raise ValueError(f"Queue entry missing required key {e}")


class JobQueue:
    """File-backed job queue keyed by posting URL."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def read(self) -> list[JobQueueEntry]:
        """Read all entries; an absent or unreadable file is an empty queue."""
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(raw, list):
                raise ValueError(f"Expected a JSON array, got {type(raw).__name__}")
            return [JobQueueEntry.from_dict(item) for item in raw]
        except (OSError, ValueError) as e:
            _log_warning(f"Could not read job queue {self.path}: {e}")
            return []

    def merge(self, entries: Iterable[JobQueueEntry]) -> list[JobQueueEntry]:
        """
        Add entries whose URL is not queued yet.

        Returns:
            The entries that were actually added (the file is only written if any were)
        """
        queue = self.read()
        seen = {entry.url for entry in queue}
        added = []
        for entry in entries:
            if entry.url in seen:
                continue
            seen.add(entry.url)
            added.append(entry)

        if added:
            self._write(queue + added)
            _log_debug(f"Queued {len(added)} new posting(s)")
        return added

    def remove(self, urls: Iterable[str]) -> int:
        """Remove entries by URL; returns how many were removed."""
        urls = set(urls)
        queue = self.read()
        kept = [entry for entry in queue if entry.url not in urls]
        removed = len(queue) - len(kept)
        if removed:
            self._write(kept)
        return removed

    def _write(self, entries: list[JobQueueEntry]) -> None:
        atomic_write_json(self.path, [entry.to_dict() for entry in entries])
