"""
Job-aligned replacement suggestions from an LLM.

The prompt leads with the job description's Responsibilities and
Qualifications (when they can be found) so the model rephrases existing bullets
to show matching duties instead of appending keywords. The response is untrusted:
it is decoded with the shared strategy list, schema-checked here, and handed to
ReplacementValidator before anything touches the document.
"""

import re
from dataclasses import dataclass, field

from tailor.config import DEFAULT_MAX_WORD_DELTA
from tailor.contexts.alignment.logger import _log_debug, _log_info, log_sections_found
from tailor.contexts.alignment.validator import WordReplacement
from tailor.exceptions import ParseError
from tailor.utils.llm import MAX_ATTEMPTS, LLMProvider, decode_json_object, retry_with_backoff

MAX_REPLACEMENTS = 10
MAX_SUMMARY_LINES = 5
TARGET_REPLACEMENTS = 8

# =============================================================================
# SECTION EXTRACTION
# =============================================================================

_RESPONSIBILITIES_PATTERN = re.compile(
    r"##?\s*Responsibilities?\s*\n(.*?)"
    r"(?=\n##?\s*(?:Qualifications?|Requirements?|About|Company)|\Z)",
    re.IGNORECASE | re.DOTALL,
)
_QUALIFICATIONS_PATTERN = re.compile(
    r"##?\s*Qualifications?\s*\n(.*?)"
    r"(?=\n##?\s*(?:Responsibilities?|Requirements?|About|Company|Salary)|\Z)",
    re.IGNORECASE | re.DOTALL,
)

# Unmarked headings used by postings that don't use markdown sections
_ALT_RESPONSIBILITIES_PATTERN = re.compile(
    r"(?:What you'll do|Key Responsibilities|You will|You'll)\s*[:\-]?\s*\n(.*?)"
    r"(?=\n(?:Qualifications?|Requirements?|What you bring)|\Z)",
    re.IGNORECASE | re.DOTALL,
)
_ALT_QUALIFICATIONS_PATTERN = re.compile(
    r"(?:Qualifications?|Requirements?|What you bring|You have)\s*[:\-]?\s*\n(.*?)"
    r"(?=\n(?:Responsibilities?|Salary|About)|\Z)",
    re.IGNORECASE | re.DOTALL,
)


@dataclass(frozen=True)
class KeySections:
    responsibilities: str
    qualifications: str
    full_description: str


def _first_group(pattern: re.Pattern, text: str) -> str:
    match = pattern.search(text)
    return match.group(1).strip() if match else ""


def extract_key_sections(job_description: str) -> KeySections:
    """
    Pull the Responsibilities and Qualifications sections out of a job description.

    Markdown headings ("## Responsibilities") are tried first, then common
    unmarked headings ("What you'll do", "What you bring"). Missing sections
    come back as empty strings.
    """
    responsibilities = _first_group(_RESPONSIBILITIES_PATTERN, job_description)
    qualifications = _first_group(_QUALIFICATIONS_PATTERN, job_description)

    if not responsibilities:
        responsibilities = _first_group(_ALT_RESPONSIBILITIES_PATTERN, job_description)
    if not qualifications:
        qualifications = _first_group(_ALT_QUALIFICATIONS_PATTERN, job_description)

    return KeySections(
        responsibilities=responsibilities,
        qualifications=qualifications,
        full_description=job_description,
    )


# =============================================================================
# PROMPT TEMPLATES
# =============================================================================

_SYSTEM_PROMPT = """\
You are an expert resume consultant using first-principles thinking. Your goal is to \
show that the candidate has MANAGED SIMILAR RESPONSIBILITIES, not just add keywords.
Return ONLY a JSON object in the requested format."""

_USER_PROMPT_TEMPLATE = """\
{job_description}

## CURRENT RESUME:
{resume_text}

## FIRST-PRINCIPLES ANALYSIS:

### Step 1: Identify Core Responsibilities
From the Responsibilities section above, extract the FUNDAMENTAL DUTIES:
- What must this person actually DO in this role?
- What outcomes must they deliver?
- What systems/processes must they manage?

### Step 2: Map Experience to Responsibilities
For each resume bullet, ask:
- Does this experience demonstrate managing a SIMILAR responsibility?
- Can this bullet be rephrased to show equivalent work?
- What is the CORE FUNCTION this bullet demonstrates?

### Step 3: Rephrase to Show Responsibility Match
- Lead with the RESPONSIBILITY/DUTY, not just the action
- Use language that mirrors the job's responsibility descriptions
- Keep ALL facts, numbers, and achievements intact

## RULES:

1. Responsibility first: rephrase to show similar responsibilities were managed; \
do not tack keywords onto the end of a bullet.
2. Word count: original and replacement must be within {max_word_delta} words of each \
other. This means REPHRASING, not adding phrases.
3. Factual integrity: keep the exact same facts, numbers and achievements. Never \
fabricate or exaggerate.
4. Exact originals: "original" must be copied character for character from the resume.
5. Prioritize bullets that match Responsibilities, then Qualifications. Ignore bullets \
unrelated to core duties.

## EXAMPLE:

Job responsibility: "Building and scaling advanced ML/AI systems that power core products"
- Original: "Built two full-stack applications integrated with Stripe, generating $80K in first 40 days"
- Bad: "Built two full-stack applications integrated with Stripe, generating $80K in first 40 days, \
demonstrating experience with ML/AI systems" (keywords appended)
- Good: "Built and scaled two full-stack AI applications integrated with Stripe, generating $80K \
in first 40 days" (leads with the responsibility)

## YOUR TASK:
Return at most {target_replacements} replacements (the highest-impact responsibility matches) \
as JSON:
{{
  "replacements": [
    {{
      "original": "exact text of the original bullet from the resume",
      "replacement": "rephrased version showing similar responsibilities were managed",
      "jd_alignment": "specific responsibility from the job description this matches"
    }}
  ],
  "summary": ["Brief description of how the resume demonstrates similar responsibilities"]
}}"""


def _prioritized_description(sections: KeySections) -> str:
    if not sections.responsibilities and not sections.qualifications:
        return f"## JOB DESCRIPTION:\n{sections.full_description}"

    parts = []
    if sections.responsibilities:
        parts.append(
            f"## CRITICAL: RESPONSIBILITIES (Highest Priority)\n{sections.responsibilities}"
        )
    if sections.qualifications:
        parts.append(f"## CRITICAL: QUALIFICATIONS (Highest Priority)\n{sections.qualifications}")
    parts.append(f"## FULL JOB DESCRIPTION (Reference)\n{sections.full_description}")
    return "\n\n".join(parts)


def build_alignment_prompt(
    resume_text: str, job_description: str, max_word_delta: int = DEFAULT_MAX_WORD_DELTA
) -> str:
    """
    Build the user prompt for one suggestion request.

    Args:
        resume_text: Current document text
        job_description: Target job description
        max_word_delta: Word count tolerance stated to the model

    Returns:
        User prompt string for the LLM
    """
    sections = extract_key_sections(job_description)
    return _USER_PROMPT_TEMPLATE.format(
        job_description=_prioritized_description(sections),
        resume_text=resume_text,
        max_word_delta=max_word_delta,
        target_replacements=TARGET_REPLACEMENTS,
    )


# =============================================================================
# RESPONSE SCHEMA
# =============================================================================


@dataclass
class AlignmentSuggestions:
    """Decoded suggestion set (still unvalidated against the document)."""

    replacements: list[WordReplacement] = field(default_factory=list)
    summary: list[str] = field(default_factory=list)


def parse_suggestions(data: dict) -> AlignmentSuggestions:
    """
    Check and normalize a decoded response object.

    Extra items beyond the replacement and summary caps are dropped rather than
    rejected.

    Raises:
        ValueError: If required fields are missing or have the wrong type
    """
    raw_replacements = data.get("replacements")
    raw_summary = data.get("summary")
    if not isinstance(raw_replacements, list) or not raw_replacements:
        raise ValueError("'replacements' must be a non-empty list")
    if isinstance(raw_summary, str):
        raw_summary = [raw_summary]
    if not isinstance(raw_summary, list) or not raw_summary:
        raise ValueError("'summary' must be a non-empty list")

    replacements = []
    for item in raw_replacements[:MAX_REPLACEMENTS]:
        if not isinstance(item, dict):
            raise ValueError(f"replacement must be an object, got {type(item).__name__}")
        original = item.get("original")
        replacement = item.get("replacement")
        if not isinstance(original, str) or not isinstance(replacement, str):
            raise ValueError("replacement needs string 'original' and 'replacement'")
        rationale = item.get("jd_alignment")
        replacements.append(
            WordReplacement(
                original=original,
                replacement=replacement,
                rationale=str(rationale) if rationale else None,
            )
        )

    summary = [str(line) for line in raw_summary[:MAX_SUMMARY_LINES]]
    return AlignmentSuggestions(replacements=replacements, summary=summary)


# =============================================================================
# CLIENT
# =============================================================================


class SuggestionClient:
    """
    Requests alignment suggestions from an LLM provider.

    Decode failures (ParseError) are retried with backoff up to max_attempts;
    any other provider failure propagates on the first occurrence.

    Example:
        client = SuggestionClient(get_provider("groq", api_key))
        suggestions = client.suggest(resume_text, job_description)
    """

    def __init__(
        self,
        provider: LLMProvider,
        max_attempts: int = MAX_ATTEMPTS,
        max_word_delta: int = DEFAULT_MAX_WORD_DELTA,
    ):
        self.provider = provider
        self.max_attempts = max_attempts
        self.max_word_delta = max_word_delta

    def suggest(self, resume_text: str, job_description: str) -> AlignmentSuggestions:
        """
        Get replacement suggestions for one resume/job description pair.

        Raises:
            ParseError: If every attempt returned undecodable output
            ExternalServiceError: On provider failure (not retried)
        """
        _log_info("Analyzing job description using first-principles approach...")
        log_sections_found(extract_key_sections(job_description))
        _log_info("Mapping resume experience to core responsibilities...")

        user_prompt = build_alignment_prompt(resume_text, job_description, self.max_word_delta)

        def attempt() -> AlignmentSuggestions:
            response = self.provider.generate(_SYSTEM_PROMPT, user_prompt, json_mode=True)
            _log_debug(
                f"{self.provider.name}: {response.input_tokens} in / "
                f"{response.output_tokens} out tokens"
            )
            return decode_json_object(
                response.content,
                validate=parse_suggestions,
                service=self.provider.name,
            )

        suggestions = retry_with_backoff(
            attempt,
            retryable_exception=ParseError,
            error_message="Unparseable suggestion response",
            max_attempts=self.max_attempts,
        )
        _log_info(
            f"Received {len(suggestions.replacements)} suggestion(s) from {self.provider.name}"
        )
        return suggestions
