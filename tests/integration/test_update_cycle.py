"""Update cycle and batch runs against the in-memory document service."""

import pytest
from conftest import RESUME_TEXT, FakeDocumentService, FakeProvider, suggestion_payload

from tailor.contexts.alignment import SuggestionClient
from tailor.contexts.alignment.applier import ReplacementApplier
from tailor.contexts.alignment.validator import RejectionReason, WordReplacement
from tailor.contexts.coordination.update import BatchItem, JobTags, UpdateCoordinator
from tailor.exceptions import ExternalServiceError

JOB_DESCRIPTION = """\
Senior Data Engineer at Acme

Responsibilities:
- Own and scale streaming data pipelines
- Mentor engineers

Qualifications:
- Python, SQL, Spark
"""

GOOD_PAIR = ("Built data pipelines in Python", "Built and scaled data pipelines in Python")
ABSENT_PAIR = ("Wrote COBOL for mainframes", "Wrote Python for clusters")


def make_coordinator(documents, version_log, responses, tagger=None):
    suggestions = SuggestionClient(FakeProvider(responses))
    return UpdateCoordinator(documents, "doc-1", suggestions, version_log, tagger=tagger)


@pytest.mark.integration
def test_update_applies_and_logs(documents, version_log):
    coordinator = make_coordinator(documents, version_log, [suggestion_payload([GOOD_PAIR])])

    result = coordinator.run(JOB_DESCRIPTION, JobTags(company="Acme", job_title="Data Engineer"))

    assert "Built and scaled data pipelines in Python" in documents.text
    assert result.occurrences_changed == 1
    entries = version_log.read()
    assert len(entries) == 1
    assert entries[0].revision_id == "r1"
    assert entries[0].is_revert is False
    assert entries[0].company == "Acme"
    assert entries[0].changes == [
        'Replaced "Built data pipelines in Python" with "Built and scaled data pipelines in Python"',
        "Emphasized ownership of pipelines",
    ]


@pytest.mark.integration
def test_rejected_candidate_applies_nothing_but_still_logs(documents, version_log):
    coordinator = make_coordinator(documents, version_log, [suggestion_payload([ABSENT_PAIR])])

    result = coordinator.run(JOB_DESCRIPTION)

    assert result.validation.accepted == []
    assert result.validation.rejected[0].reason is RejectionReason.NOT_FOUND
    assert "apply_text_substitutions" not in documents.call_names()
    assert documents.text == RESUME_TEXT
    [entry] = version_log.read()
    assert entry.revision_id == "r0"
    assert entry.changes == ["Emphasized ownership of pipelines"]


@pytest.mark.integration
def test_only_accepted_candidates_are_submitted(documents, version_log):
    too_large = ("Led a team", "Led and grew a cross-functional distributed team of many")
    coordinator = make_coordinator(
        documents, version_log, [suggestion_payload([GOOD_PAIR, ABSENT_PAIR, too_large])]
    )

    result = coordinator.run(JOB_DESCRIPTION)

    [call] = [c for c in documents.calls if c[0] == "apply_text_substitutions"]
    assert call[2] == [GOOD_PAIR]
    assert {r.reason for r in result.validation.rejected} == {
        RejectionReason.NOT_FOUND,
        RejectionReason.REWRITE_TOO_LARGE,
    }


@pytest.mark.integration
def test_dry_run_touches_nothing(documents, version_log):
    coordinator = make_coordinator(documents, version_log, [suggestion_payload([GOOD_PAIR])])

    result = coordinator.run(JOB_DESCRIPTION, dry_run=True)

    assert result.dry_run is True
    assert result.entry is None
    assert len(result.validation.accepted) == 1
    assert documents.call_names() == ["export_text"]
    assert not version_log.path.exists()


@pytest.mark.integration
def test_apply_failure_logs_nothing(documents, version_log):
    documents.fail_on["apply_text_substitutions"] = ExternalServiceError("quota", service="google-docs")
    coordinator = make_coordinator(documents, version_log, [suggestion_payload([GOOD_PAIR])])

    with pytest.raises(ExternalServiceError):
        coordinator.run(JOB_DESCRIPTION)

    assert version_log.read() == []


@pytest.mark.integration
def test_unparseable_response_is_retried(documents, version_log):
    provider_responses = ["not json at all", suggestion_payload([GOOD_PAIR])]
    coordinator = make_coordinator(documents, version_log, provider_responses)

    result = coordinator.run(JOB_DESCRIPTION)

    assert len(coordinator.suggestions.provider.prompts) == 2
    assert result.entry is not None


@pytest.mark.integration
def test_empty_job_description_rejected(documents, version_log):
    coordinator = make_coordinator(documents, version_log, [])

    with pytest.raises(ValueError):
        coordinator.run("   \n")

    assert documents.calls == []


@pytest.mark.integration
def test_auto_tag_fills_missing_fields(documents, version_log):
    def tagger(job_description):
        return JobTags(company="Acme Corp", job_title="Senior Data Engineer")

    coordinator = make_coordinator(
        documents, version_log, [suggestion_payload([GOOD_PAIR])], tagger=tagger
    )

    result = coordinator.run(JOB_DESCRIPTION, JobTags(company="Acme", job_url="https://acme.example/jobs/1"))

    assert result.tags == JobTags(
        company="Acme", job_title="Senior Data Engineer", job_url="https://acme.example/jobs/1"
    )
    assert version_log.read()[0].job_title == "Senior Data Engineer"


@pytest.mark.integration
def test_auto_tag_failure_does_not_fail_cycle(documents, version_log):
    def tagger(job_description):
        raise ExternalServiceError("rate limited", service="groq", status_code=429)

    coordinator = make_coordinator(
        documents, version_log, [suggestion_payload([GOOD_PAIR])], tagger=tagger
    )

    result = coordinator.run(JOB_DESCRIPTION)

    assert result.entry.company is None
    assert len(version_log.read()) == 1


@pytest.mark.integration
def test_applier_skips_empty_batch():
    documents = FakeDocumentService()

    result = ReplacementApplier(documents, "doc-1").apply([])

    assert result.submitted == 0
    assert documents.calls == []


@pytest.mark.integration
def test_applier_submits_all_pairs_in_one_call():
    documents = FakeDocumentService()
    replacements = [
        WordReplacement("Built data pipelines", "Built streaming pipelines"),
        WordReplacement("team of four", "team of five"),
    ]

    result = ReplacementApplier(documents, "doc-1").apply(replacements)

    assert result.submitted == 2
    assert documents.call_names() == ["apply_text_substitutions"]


# --- batches ---


@pytest.mark.integration
def test_batch_isolates_failures(documents, version_log):
    def missing_file():
        raise OSError("jd2.txt: No such file")

    coordinator = make_coordinator(
        documents,
        version_log,
        [suggestion_payload([GOOD_PAIR]), suggestion_payload([("team of four", "team of five")])],
    )
    items = [
        BatchItem("jd1.txt", lambda: JOB_DESCRIPTION),
        BatchItem("jd2.txt", missing_file),
        BatchItem("jd3.txt", lambda: JOB_DESCRIPTION),
    ]

    report = coordinator.run_batch(items)

    assert [item.label for item in report.succeeded] == ["jd1.txt", "jd3.txt"]
    assert [item.label for item in report.failed] == ["jd2.txt"]
    assert "No such file" in report.failed[0].error
    assert report.all_failed is False
    assert [entry.revision_id for entry in version_log.read()] == ["r1", "r2"]


@pytest.mark.integration
def test_batch_all_failed(documents, version_log):
    documents.fail_on["export_text"] = ExternalServiceError("unauthorized", status_code=401)
    coordinator = make_coordinator(documents, version_log, [])

    report = coordinator.run_batch(
        [BatchItem("a", lambda: JOB_DESCRIPTION), BatchItem("b", lambda: JOB_DESCRIPTION)]
    )

    assert report.all_failed is True
    assert version_log.read() == []


@pytest.mark.integration
def test_empty_batch_is_not_a_failure(documents, version_log):
    report = make_coordinator(documents, version_log, []).run_batch([])

    assert report.items == []
    assert report.all_failed is False
