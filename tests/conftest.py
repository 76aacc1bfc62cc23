"""Shared fixtures: in-memory document service and LLM provider."""

import json
from pathlib import Path

import pytest

from tailor.contexts.documents.service import (
    DocumentService,
    ExportFormat,
    Revision,
    RevisionContent,
)
from tailor.contexts.history.version_log import VersionLog
from tailor.utils.llm import LLMProvider, LLMResponse

RESUME_TEXT = (
    "Jane Doe\n"
    "Experience\n"
    "Built data pipelines in Python for analytics\n"
    "Led a team of four engineers\n"
    "Delivered database migration 3 months early\n"
)


class FakeDocumentService(DocumentService):
    """
    In-memory document with a revision history.

    Every successful write creates a new revision r<n> whose content is kept,
    so get_revision_content works for revisions created here. Set
    fail_on["method_name"] = exception to make a call fail.
    """

    def __init__(self, text: str = RESUME_TEXT, keep_history: bool = True):
        self.text = text
        self.keep_history = keep_history
        self.revisions = [Revision(id="r0", modified_time="2025-01-01T00:00:00.000Z")]
        self.contents = {"r0": text}
        self.calls: list[tuple] = []
        self.fail_on: dict[str, Exception] = {}

    def _check(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if name in self.fail_on:
            raise self.fail_on[name]

    def _new_revision(self) -> Revision:
        n = len(self.revisions)
        revision = Revision(id=f"r{n}", modified_time=f"2025-01-0{min(n + 1, 9)}T00:00:00.000Z")
        self.revisions.append(revision)
        self.contents[revision.id] = self.text
        return revision

    def export_text(self, document_id):
        self._check("export_text", document_id)
        return self.text

    def list_revisions(self, document_id):
        self._check("list_revisions", document_id)
        return list(self.revisions)

    def get_revision_content(self, document_id, revision_id):
        self._check("get_revision_content", document_id, revision_id)
        if self.keep_history and revision_id in self.contents:
            return RevisionContent(text=self.contents[revision_id], revision_id=revision_id)
        return RevisionContent(text=self.text, revision_id=revision_id, is_fallback=True)

    def apply_text_substitutions(self, document_id, pairs):
        self._check("apply_text_substitutions", document_id, list(pairs))
        total = 0
        for original, replacement in pairs:
            total += self.text.count(original)
            self.text = self.text.replace(original, replacement)
        self._new_revision()
        return total

    def overwrite_body(self, document_id, text):
        self._check("overwrite_body", document_id, text)
        self.text = text
        self._new_revision()

    def export_file(self, document_id, fmt: ExportFormat, output_path: Path) -> Path:
        self._check("export_file", document_id, fmt)
        output_path = Path(output_path)
        output_path.write_bytes(f"{fmt.value}:{self.text}".encode("utf-8"))
        return output_path

    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]


class FakeSDKError(Exception):
    """Stands in for a provider SDK's base exception."""

    status_code = 401


class FakeProvider(LLMProvider):
    """LLM provider that replays queued responses (strings or exceptions)."""

    _provider_prefix = "fake"

    def __init__(self, responses=None):
        self._sdk_error = FakeSDKError
        self.responses = list(responses or [])
        self.prompts: list[tuple[str, str, bool]] = []
        self.update_model("test-model")

    def _call_api(self, system_prompt, user_prompt, json_mode):
        self.prompts.append((system_prompt, user_prompt, json_mode))
        if not self.responses:
            raise AssertionError("FakeProvider ran out of responses")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, dict):
            item = json.dumps(item)
        return LLMResponse(content=item, model=self.model, input_tokens=10, output_tokens=5)


def suggestion_payload(replacements, summary=("Emphasized ownership of pipelines",)) -> dict:
    """Build a generation response body from (original, replacement) pairs."""
    return {
        "replacements": [
            {"original": original, "replacement": replacement, "jd_alignment": "Own pipelines"}
            for original, replacement in replacements
        ],
        "summary": list(summary),
    }


@pytest.fixture
def documents():
    return FakeDocumentService()


@pytest.fixture
def version_log(tmp_path):
    return VersionLog(tmp_path / "resume_versions.json")


@pytest.fixture(autouse=True)
def no_retry_sleep(monkeypatch):
    """Retries back off with time.sleep; skip the wait in tests."""
    monkeypatch.setattr("tailor.utils.llm.time.sleep", lambda seconds: None)
