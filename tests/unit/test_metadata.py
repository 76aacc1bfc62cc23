"""Unit tests for LLM job metadata extraction."""

import pytest
from conftest import FakeProvider

from tailor.contexts.coordination.update import JobTags
from tailor.contexts.intake.metadata import MAX_CONTENT_CHARS, extract_job_tags
from tailor.exceptions import ParseError


@pytest.mark.unit
def test_extracts_company_and_role():
    provider = FakeProvider([{"Company": " Acme Corp ", "Role": "AI/ML Engineer"}])

    assert extract_job_tags(provider, "We are hiring") == {
        "Company": "Acme Corp",
        "Role": "AI/ML Engineer",
    }
    assert provider.prompts[0][2] is True


@pytest.mark.unit
@pytest.mark.parametrize("value", [None, "null", "N/A", "  "])
def test_missing_values_become_none(value):
    provider = FakeProvider([{"Company": "Acme", "Role": value}])

    tags = JobTags.from_metadata(extract_job_tags(provider, "text"), job_url="https://a/jobs/1")

    assert tags == JobTags(company="Acme", job_title=None, job_url="https://a/jobs/1")
    assert tags.complete is False


@pytest.mark.unit
def test_long_postings_are_truncated():
    provider = FakeProvider([{"Company": "Acme", "Role": "Engineer"}])

    extract_job_tags(provider, "x" * (MAX_CONTENT_CHARS + 500))

    assert "x" * (MAX_CONTENT_CHARS + 1) not in provider.prompts[0][1]


@pytest.mark.unit
def test_no_json_raises_parse_error():
    with pytest.raises(ParseError):
        extract_job_tags(FakeProvider(["I could not find anything"]), "text")
