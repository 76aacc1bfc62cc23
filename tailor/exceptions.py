"""Exception taxonomy shared across TAILOR contexts."""

from typing import Optional


class TailorError(Exception):
    """Base class for all errors raised by TAILOR."""


class NotFoundError(TailorError, LookupError):
    """
    Raised when a revert/tag/export target cannot be resolved.

    Always raised before any mutation, so no log entry is written.

    Attributes:
        selector: The index or revision id the caller supplied
        reason: Why resolution failed (absent, out of range, ambiguous)
    """

    def __init__(self, selector: str, reason: str = "no matching version"):
        self.selector = selector
        self.reason = reason
        super().__init__(
            f"Version not found: {selector!r} ({reason}). Use 'list' to see available versions."
        )


class ExternalServiceError(TailorError):
    """
    Raised when a collaborator service (document or generation) fails.

    Attributes:
        message: Error description
        service: Which collaborator failed (e.g., "google-docs", "groq", "firecrawl")
        retryable: Whether the caller may retry (only transient decode failures are)
        status_code: HTTP status code reported by the service, if any
        original_error: The underlying SDK/transport exception
    """

    retryable = False

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ):
        self.message = message
        self.service = service
        self.status_code = status_code
        self.original_error = original_error

        parts = []
        if service:
            parts.append(f"[{service}]")
        if status_code is not None:
            parts.append(f"HTTP {status_code}:")
        parts.append(message)

        super().__init__(" ".join(parts))


class ParseError(ExternalServiceError):
    """
    Raised when generation output cannot be decoded into a schema-valid result.

    This is the only retryable collaborator failure.

    Attributes:
        raw_text: The undecodable response (truncated in the message)
    """

    retryable = True

    def __init__(self, message: str, raw_text: str = "", service: Optional[str] = None):
        self.raw_text = raw_text
        if raw_text:
            snippet = raw_text[:200] + "..." if len(raw_text) > 200 else raw_text
            message = f"{message}\nResponse was:\n{snippet}"
        super().__init__(message, service=service)


class ConfigurationError(TailorError, ValueError):
    """
    Raised when required settings are missing or a config file is invalid.

    Attributes:
        missing: Names of missing settings (empty for invalid files)
    """

    def __init__(self, message: str, missing: Optional[list[str]] = None):
        self.missing = missing or []
        super().__init__(message)
