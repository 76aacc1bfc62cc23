"""Unit tests for settings loading."""

from pathlib import Path

import pytest

from tailor.config import Settings, load_settings
from tailor.exceptions import ConfigurationError

ENV_KEYS = [
    "LLM_PROVIDER",
    "LLM_MODEL",
    "GROQ_API_KEY",
    "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
    "GOOGLE_APPLICATION_CREDENTIALS",
    "RESUME_FILE_ID",
    "FIRECRAWL_API_KEY",
    "VERSION_LOG_PATH",
    "JOB_QUEUE_PATH",
    "COMPANIES_PATH",
    "LOGS_PATH",
    "TAILOR_MAX_WORD_DELTA",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for key in ENV_KEYS:
        # setenv first so monkeypatch also undoes whatever load_dotenv sets
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    # Keep load_dotenv from picking up a developer's .env
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.mark.unit
def test_defaults(clean_env):
    settings = load_settings(env_file=clean_env / "absent.env")

    assert settings.llm_provider == "groq"
    assert settings.version_log_path == Path("resume_versions.json")
    assert settings.companies_path == Path("companies.yaml")
    assert settings.max_word_delta == 5
    assert settings.resume_file_id is None


@pytest.mark.unit
def test_reads_env_file(clean_env):
    env_file = clean_env / ".env"
    env_file.write_text(
        "RESUME_FILE_ID=doc123\nGROQ_API_KEY=gsk\nTAILOR_MAX_WORD_DELTA=3\nLLM_PROVIDER=OpenAI\n"
    )

    settings = load_settings(env_file=env_file)

    assert settings.resume_file_id == "doc123"
    assert settings.groq_api_key == "gsk"
    assert settings.max_word_delta == 3
    assert settings.llm_provider == "openai"


@pytest.mark.unit
@pytest.mark.parametrize("value", ["five", "-1"])
def test_invalid_word_delta(clean_env, monkeypatch, value):
    monkeypatch.setenv("TAILOR_MAX_WORD_DELTA", value)

    with pytest.raises(ConfigurationError):
        load_settings(env_file=clean_env / "absent.env")


@pytest.mark.unit
def test_require_lists_every_missing_key():
    settings = Settings(resume_file_id="doc")

    with pytest.raises(ConfigurationError) as exc_info:
        settings.require("resume_file_id", "google_credentials", "firecrawl_api_key")

    assert exc_info.value.missing == ["GOOGLE_APPLICATION_CREDENTIALS", "FIRECRAWL_API_KEY"]
    assert isinstance(exc_info.value, ValueError)


@pytest.mark.unit
def test_require_llm_checks_the_selected_provider():
    Settings(llm_provider="openai", openai_api_key="sk").require_llm()

    with pytest.raises(ConfigurationError, match="GROQ_API_KEY"):
        Settings(openai_api_key="sk").require_llm()
    with pytest.raises(ConfigurationError, match="Unknown LLM_PROVIDER"):
        Settings(llm_provider="mystery").require_llm()


@pytest.mark.unit
def test_llm_api_key_follows_provider():
    settings = Settings(llm_provider="anthropic", anthropic_api_key="ak", groq_api_key="gk")

    assert settings.llm_api_key == "ak"
