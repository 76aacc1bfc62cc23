"""
Process configuration for TAILOR.

Settings are read once from the environment (and a local .env file) at process
start and passed explicitly into the services that need them. Nothing in the
contexts reads environment variables on its own.

Environment variables:
    GROQ_API_KEY / OPENAI_API_KEY / ANTHROPIC_API_KEY: Generation provider keys
    LLM_PROVIDER: "groq" (default), "openai", or "anthropic"
    LLM_MODEL: Optional model override for the chosen provider
    GOOGLE_APPLICATION_CREDENTIALS: Service account key file for Drive/Docs
    RESUME_FILE_ID: Google Docs id of the resume
    FIRECRAWL_API_KEY: Needed for --jd-url, batch URLs, and monitor
    VERSION_LOG_PATH: Local version log (default: resume_versions.json)
    JOB_QUEUE_PATH: Discovered job queue (default: jobs_queue.json)
    COMPANIES_PATH: Companies to monitor (default: companies.yaml)
    LOGS_PATH: Session log root (default: outs/logs)
    TAILOR_MAX_WORD_DELTA: Allowed word count difference per replacement (default: 5)
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from tailor.exceptions import ConfigurationError

DEFAULT_MAX_WORD_DELTA = 5

# Which key each provider needs
PROVIDER_KEYS = {
    "groq": "groq_api_key",
    "openai": "openai_api_key",
    "anthropic": "anthropic_api_key",
}

# Attribute name -> environment variable name
ENV_NAMES = {
    "groq_api_key": "GROQ_API_KEY",
    "openai_api_key": "OPENAI_API_KEY",
    "anthropic_api_key": "ANTHROPIC_API_KEY",
    "google_credentials": "GOOGLE_APPLICATION_CREDENTIALS",
    "resume_file_id": "RESUME_FILE_ID",
    "firecrawl_api_key": "FIRECRAWL_API_KEY",
}


@dataclass
class Settings:
    """Validated process settings."""

    llm_provider: str = "groq"
    llm_model: Optional[str] = None
    groq_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    google_credentials: Optional[Path] = None
    resume_file_id: Optional[str] = None
    firecrawl_api_key: Optional[str] = None
    version_log_path: Path = Path("resume_versions.json")
    job_queue_path: Path = Path("jobs_queue.json")
    companies_path: Path = Path("companies.yaml")
    logs_path: Path = Path("outs/logs")
    max_word_delta: int = DEFAULT_MAX_WORD_DELTA

    def require(self, *names: str) -> None:
        """
        Ensure the named settings are present.

        Args:
            names: Attribute names (e.g., "resume_file_id", "google_credentials")

        Raises:
            ConfigurationError: Listing every missing environment variable at once
        """
        missing = [ENV_NAMES.get(name, name.upper()) for name in names if not getattr(self, name)]
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}. "
                "Add them to your environment or .env file.",
                missing=missing,
            )

    def require_llm(self) -> None:
        """Ensure the key for the configured generation provider is present."""
        if self.llm_provider not in PROVIDER_KEYS:
            raise ConfigurationError(
                f"Unknown LLM_PROVIDER '{self.llm_provider}'. "
                f"Use one of: {', '.join(sorted(PROVIDER_KEYS))}"
            )
        self.require(PROVIDER_KEYS[self.llm_provider])

    @property
    def llm_api_key(self) -> Optional[str]:
        attr = PROVIDER_KEYS.get(self.llm_provider)
        return getattr(self, attr) if attr else None


def _optional_path(value: Optional[str]) -> Optional[Path]:
    return Path(value) if value else None


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """
    Load settings from the environment (after reading .env).

    Only parses and applies defaults; required keys are checked per command
    via Settings.require() so read-only commands work without credentials.

    Args:
        env_file: Optional explicit .env path (default: search from cwd)

    Raises:
        ConfigurationError: If TAILOR_MAX_WORD_DELTA is not a non-negative integer
    """
    load_dotenv(env_file)

    raw_delta = os.getenv("TAILOR_MAX_WORD_DELTA", str(DEFAULT_MAX_WORD_DELTA))
    try:
        max_word_delta = int(raw_delta)
    except ValueError:
        raise ConfigurationError(f"TAILOR_MAX_WORD_DELTA must be an integer, got '{raw_delta}'")
    if max_word_delta < 0:
        raise ConfigurationError(f"TAILOR_MAX_WORD_DELTA must be >= 0, got {max_word_delta}")

    return Settings(
        llm_provider=os.getenv("LLM_PROVIDER", "groq").lower(),
        llm_model=os.getenv("LLM_MODEL") or None,
        groq_api_key=os.getenv("GROQ_API_KEY") or None,
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        anthropic_api_key=os.getenv("ANTHROPIC_API_KEY") or None,
        google_credentials=_optional_path(os.getenv("GOOGLE_APPLICATION_CREDENTIALS")),
        resume_file_id=os.getenv("RESUME_FILE_ID") or None,
        firecrawl_api_key=os.getenv("FIRECRAWL_API_KEY") or None,
        version_log_path=Path(os.getenv("VERSION_LOG_PATH", "resume_versions.json")),
        job_queue_path=Path(os.getenv("JOB_QUEUE_PATH", "jobs_queue.json")),
        companies_path=Path(os.getenv("COMPANIES_PATH", "companies.yaml")),
        logs_path=Path(os.getenv("LOGS_PATH", "outs/logs")),
        max_word_delta=max_word_delta,
    )
