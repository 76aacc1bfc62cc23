"""
LLM-based company/role extraction for auto-tagging updates.
"""

from typing import Optional

from tailor.utils.llm import LLMProvider, decode_json_object

# =============================================================================
# PROMPT TEMPLATES
# =============================================================================

_SYSTEM_PROMPT = """\
You are a metadata extraction assistant. Extract job posting metadata from the provided text.
Return ONLY a JSON object with the requested fields. Use null for fields you cannot find.
Be precise and extract values as they appear in the text."""

_USER_PROMPT_TEMPLATE = """\
Extract the following fields from this job posting:

- "Company": The company/organization name. Use the full official name.
- "Role": The exact job title as written. Do not expand abbreviations \
(keep 'AI/ML Engineer' as-is).

Return a JSON object with these exact field names as keys.
Use null for any field you cannot find in the text.

---
Job Posting:
{content}"""

FIELDS = ("Company", "Role")
MAX_CONTENT_CHARS = 8000

_NULL_STRINGS = ("null", "none", "n/a", "")


def _normalize(data: dict) -> dict[str, Optional[str]]:
    normalized = {}
    for name in FIELDS:
        value = data.get(name)
        if value is not None and str(value).strip().lower() not in _NULL_STRINGS:
            normalized[name] = str(value).strip()
        else:
            normalized[name] = None
    return normalized


def extract_job_tags(provider: LLMProvider, content: str) -> dict[str, Optional[str]]:
    """
    Extract Company and Role from a job description.

    Args:
        provider: LLM provider
        content: Job description text (truncated to 8000 characters)

    Returns:
        {"Company": ..., "Role": ...} with None for fields not found

    Raises:
        ParseError: If the response has no JSON object
        ExternalServiceError: On provider failure
    """
    response = provider.generate(
        _SYSTEM_PROMPT,
        _USER_PROMPT_TEMPLATE.format(content=content[:MAX_CONTENT_CHARS]),
        json_mode=True,
    )
    return decode_json_object(response.content, validate=_normalize, service=provider.name)
