"""Unit tests for job description section extraction and the suggestion client."""

import pytest

from tailor.contexts.alignment.suggestions import (
    MAX_REPLACEMENTS,
    MAX_SUMMARY_LINES,
    SuggestionClient,
    build_alignment_prompt,
    extract_key_sections,
    parse_suggestions,
)
from tailor.exceptions import ExternalServiceError, ParseError

from conftest import FakeProvider, FakeSDKError, suggestion_payload

JOB_DESCRIPTION = """\
# ML Engineer at Acme

## Responsibilities
- Build and scale ML systems
- Own the training pipeline

## Qualifications
- 5+ years of Python

## About Acme
We make anvils.
"""


@pytest.mark.unit
def test_extract_markdown_sections():
    sections = extract_key_sections(JOB_DESCRIPTION)

    assert sections.responsibilities == "- Build and scale ML systems\n- Own the training pipeline"
    assert sections.qualifications == "- 5+ years of Python"
    assert sections.full_description == JOB_DESCRIPTION


@pytest.mark.unit
def test_extract_section_at_end_of_text():
    sections = extract_key_sections("## Responsibilities\n- Ship models")

    assert sections.responsibilities == "- Ship models"


@pytest.mark.unit
def test_extract_alternative_headings():
    text = "What you'll do:\nDesign data systems\nWhat you bring:\nSQL and Python"
    sections = extract_key_sections(text)

    assert sections.responsibilities == "Design data systems"
    assert sections.qualifications == "SQL and Python"


@pytest.mark.unit
def test_extract_without_sections():
    sections = extract_key_sections("We need a data person.")

    assert sections.responsibilities == ""
    assert sections.qualifications == ""


@pytest.mark.unit
def test_prompt_prioritizes_sections_and_states_limits():
    prompt = build_alignment_prompt("resume body", JOB_DESCRIPTION, max_word_delta=5)

    assert prompt.index("CRITICAL: RESPONSIBILITIES") < prompt.index("FULL JOB DESCRIPTION")
    assert "within 5 words" in prompt
    assert "at most 8 replacements" in prompt
    assert "resume body" in prompt


@pytest.mark.unit
def test_prompt_without_sections_uses_plain_description():
    prompt = build_alignment_prompt("resume body", "We need a data person.")

    assert "## JOB DESCRIPTION:\nWe need a data person." in prompt
    assert "CRITICAL" not in prompt


@pytest.mark.unit
def test_parse_truncates_to_caps():
    payload = suggestion_payload(
        [(f"orig {i}", f"new {i}") for i in range(14)], summary=[f"s{i}" for i in range(8)]
    )

    suggestions = parse_suggestions(payload)

    assert len(suggestions.replacements) == MAX_REPLACEMENTS
    assert len(suggestions.summary) == MAX_SUMMARY_LINES
    assert suggestions.replacements[0].rationale == "Own pipelines"


@pytest.mark.unit
@pytest.mark.parametrize(
    "payload",
    [
        {"summary": ["x"]},
        {"replacements": [], "summary": ["x"]},
        {"replacements": [{"original": "a"}], "summary": ["x"]},
        {"replacements": [{"original": "a", "replacement": "b"}]},
        {"replacements": ["not an object"], "summary": ["x"]},
    ],
)
def test_parse_rejects_malformed(payload):
    with pytest.raises(ValueError):
        parse_suggestions(payload)


@pytest.mark.unit
def test_client_decodes_and_uses_json_mode():
    provider = FakeProvider([suggestion_payload([("Built pipelines", "Built scalable pipelines")])])

    suggestions = SuggestionClient(provider).suggest("Built pipelines", JOB_DESCRIPTION)

    assert suggestions.replacements[0].original == "Built pipelines"
    assert suggestions.summary == ["Emphasized ownership of pipelines"]
    assert provider.prompts[0][2] is True


@pytest.mark.unit
def test_client_retries_unparseable_output():
    good = suggestion_payload([("a", "b")])
    provider = FakeProvider(["not json", '{"replacements": "wrong"}', good])

    suggestions = SuggestionClient(provider).suggest("a", JOB_DESCRIPTION)

    assert len(provider.prompts) == 3
    assert suggestions.replacements[0].replacement == "b"


@pytest.mark.unit
def test_client_gives_up_after_three_attempts():
    provider = FakeProvider(["nope", "still nope", "nope again", "never reached"])

    with pytest.raises(ParseError):
        SuggestionClient(provider).suggest("a", JOB_DESCRIPTION)
    assert len(provider.prompts) == 3


@pytest.mark.unit
def test_client_does_not_retry_provider_errors():
    provider = FakeProvider([FakeSDKError("invalid api key"), suggestion_payload([("a", "b")])])

    with pytest.raises(ExternalServiceError) as exc_info:
        SuggestionClient(provider).suggest("a", JOB_DESCRIPTION)

    assert not exc_info.value.retryable
    assert len(provider.prompts) == 1
