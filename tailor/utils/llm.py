"""
LLM provider abstraction and response decoding utilities.

Provides a provider-agnostic interface for LLM API calls and an explicit,
prioritized list of strategies for pulling a JSON object out of free-form model
output. Providers never retry on their own: authentication, quota, and request
errors surface immediately as ExternalServiceError. Callers that want to retry
transient decode failures wrap their own attempt with retry_with_backoff().
"""

import json
import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar

from loguru import logger

from tailor.exceptions import ExternalServiceError, ParseError
from tailor.utils.text_processing import extract_balanced_delimiters

# Retry configuration for decode failures
MAX_ATTEMPTS = 3
BASE_DELAY = 1.0

GROQ_BASE_URL = "https://api.groq.com/openai/v1"

T = TypeVar("T")


def retry_with_backoff(
    operation: Callable[[], T],
    retryable_exception: type[Exception],
    error_message: str,
    max_attempts: int = MAX_ATTEMPTS,
    base_delay: float = BASE_DELAY,
) -> T:
    """
    Execute operation, retrying with linear backoff on one exception type.

    Any other exception propagates immediately. The final retryable failure is
    re-raised unchanged.

    Args:
        operation: Callable that performs one attempt and returns its result
        retryable_exception: Exception type that triggers retry
        error_message: Message prefix for retry logging (e.g., "Unparseable response")
        max_attempts: Total attempts including the first
        base_delay: Seconds to wait after attempt n is base_delay * n
    """
    for attempt in range(1, max_attempts + 1):
        try:
            return operation()
        except retryable_exception:
            if attempt == max_attempts:
                raise
            delay = base_delay * attempt
            logger.warning(
                f"{error_message}, retrying in {delay:.1f}s... (attempt {attempt}/{max_attempts})"
            )
            time.sleep(delay)
    raise RuntimeError("max_attempts must be at least 1")


# --- LLM Provider Classes ---


@dataclass
class LLMResponse:
    """Response from an LLM provider."""

    content: str
    model: str
    input_tokens: int
    output_tokens: int


class LLMProvider(ABC):
    """
    Abstract base for LLM providers.

    Subclasses must:
    - Set _provider_prefix class attribute (e.g., "groq", "openai")
    - Set self._sdk_error to the SDK's base API exception type
    - Implement _call_api() for the actual API call
    - Call update_model(model) in __init__ to set model and name
    """

    _provider_prefix: str
    _sdk_error: type[Exception]

    name: str
    model: str

    def update_model(self, model: str):
        """Update the model and refresh the provider name."""
        self.model = model
        self.name = f"{self._provider_prefix}/{model}"

    @abstractmethod
    def _call_api(self, system_prompt: str, user_prompt: str, json_mode: bool) -> LLMResponse:
        """Make a single API call. Implemented by subclasses."""
        pass

    def generate(self, system_prompt: str, user_prompt: str, json_mode: bool = False) -> LLMResponse:
        """
        Generate a response from the LLM (single attempt).

        Raises:
            ExternalServiceError: On any SDK failure (auth, quota, bad request, network)
        """
        try:
            return self._call_api(system_prompt, user_prompt, json_mode)
        except self._sdk_error as e:
            raise ExternalServiceError(
                str(getattr(e, "message", e)),
                service=self._provider_prefix,
                status_code=getattr(e, "status_code", None),
                original_error=e,
            ) from e


class OpenAICompatibleProvider(LLMProvider):
    """Chat-completions provider built on the openai SDK."""

    _provider_prefix = "openai"
    _default_model = "gpt-4o"
    _base_url: Optional[str] = None

    def __init__(self, api_key: str, model: Optional[str] = None, temperature: float = 0.4):
        import openai

        if not api_key:
            raise ValueError(f"{self._provider_prefix} API key is required")

        self.client = openai.OpenAI(api_key=api_key, base_url=self._base_url)
        self._sdk_error = openai.OpenAIError
        self.temperature = temperature
        self.update_model(model or self._default_model)

    def _call_api(self, system_prompt: str, user_prompt: str, json_mode: bool) -> LLMResponse:
        kwargs = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        response = self.client.chat.completions.create(
            model=self.model,
            temperature=self.temperature,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            **kwargs,
        )
        usage = response.usage
        return LLMResponse(
            content=response.choices[0].message.content or "",
            model=self.model,
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
        )


class GroqProvider(OpenAICompatibleProvider):
    """Groq provider via its OpenAI-compatible endpoint."""

    _provider_prefix = "groq"
    _default_model = "llama-3.3-70b-versatile"
    _base_url = GROQ_BASE_URL


class OpenAIProvider(OpenAICompatibleProvider):
    """OpenAI GPT provider."""

    _provider_prefix = "openai"
    _default_model = "gpt-4o"


class AnthropicProvider(LLMProvider):
    """Anthropic Claude provider."""

    _provider_prefix = "anthropic"

    def __init__(self, api_key: str, model: str = "claude-sonnet-4-20250514"):
        # Lazy import - anthropic SDK is heavy, only load if this provider is used
        try:
            import anthropic
        except ImportError:
            raise ImportError("anthropic package required. Install with: pip install anthropic")

        if not api_key:
            raise ValueError("anthropic API key is required")

        self.client = anthropic.Anthropic(api_key=api_key)
        self._sdk_error = anthropic.AnthropicError
        self.update_model(model)

    def _call_api(self, system_prompt: str, user_prompt: str, json_mode: bool) -> LLMResponse:
        # No native JSON mode; prompts already ask for a JSON object
        response = self.client.messages.create(
            model=self.model,
            max_tokens=4096,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
        )
        return LLMResponse(
            content=response.content[0].text,
            model=self.model,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )


# --- Provider Factory ---

PROVIDERS = {
    "groq": GroqProvider,
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
}


def get_provider(provider_name: str, api_key: str, model: Optional[str] = None) -> LLMProvider:
    """
    Build an LLM provider instance.

    Args:
        provider_name: "groq", "openai", or "anthropic"
        api_key: API key for that provider
        model: Model name (default: provider-specific default)

    Returns:
        LLMProvider instance
    """
    provider_cls = PROVIDERS.get(provider_name.lower())
    if provider_cls is None:
        raise ValueError(f"Unknown provider: {provider_name}. Use one of: {', '.join(PROVIDERS)}")
    return provider_cls(api_key=api_key, model=model) if model else provider_cls(api_key=api_key)


# --- Response Decoding ---


def _decode_direct(text: str) -> Optional[Any]:
    return json.loads(text)


_FENCE_PATTERN = re.compile(r"```(?:json|JSON)?\s*\n?(.*?)```", re.DOTALL)


def _decode_fenced(text: str) -> Optional[Any]:
    match = _FENCE_PATTERN.search(text)
    if not match:
        return None
    return json.loads(match.group(1).strip())


def _decode_brace_matched(text: str) -> Optional[Any]:
    start = text.find("{")
    while start != -1:
        try:
            content, _ = extract_balanced_delimiters(text, start + 1)
        except ValueError:
            return None
        try:
            return json.loads("{" + content + "}")
        except json.JSONDecodeError:
            start = text.find("{", start + 1)
    return None


# Tried in order; the first schema-valid result wins
DECODE_STRATEGIES: list[tuple[str, Callable[[str], Optional[Any]]]] = [
    ("direct", _decode_direct),
    ("fenced", _decode_fenced),
    ("brace-matched", _decode_brace_matched),
]


def decode_json_object(
    text: str,
    validate: Optional[Callable[[dict], T]] = None,
    service: Optional[str] = None,
) -> T:
    """
    Decode a JSON object from free-form LLM output.

    Strategies are tried in order (direct parse, fenced code block, first
    brace-matched substring). Each strategy must produce a dict that passes
    validate() (which may normalize and return a typed result, or raise
    ValueError/KeyError/TypeError to reject it); otherwise decoding falls
    through to the next strategy.

    Args:
        text: Raw model output
        validate: Optional schema check/normalizer (default: accept any dict)
        service: Provider name for error reporting

    Returns:
        The validated result of the first strategy that succeeds

    Raises:
        ParseError: If no strategy yields a schema-valid object
    """
    text = (text or "").strip()
    if not text:
        raise ParseError("Empty response from generation service", service=service)

    failures = []
    for name, strategy in DECODE_STRATEGIES:
        try:
            candidate = strategy(text)
        except json.JSONDecodeError as e:
            failures.append(f"{name}: {e.msg}")
            continue
        if not isinstance(candidate, dict):
            failures.append(f"{name}: no JSON object")
            continue
        if validate is None:
            return candidate
        try:
            return validate(candidate)
        except (ValueError, KeyError, TypeError) as e:
            failures.append(f"{name}: schema mismatch ({e})")

    raise ParseError(
        f"Could not decode JSON object ({'; '.join(failures)})", raw_text=text, service=service
    )
