"""
Job description sources: inline text, a file, a URL, or pasted input.
"""

from pathlib import Path
from typing import Callable, Optional

from tailor.contexts.intake.logger import _log_info
from tailor.contexts.intake.scraper import FirecrawlScraper
from tailor.exceptions import ConfigurationError


def read_interactive(input_func: Callable[[], str] = input) -> str:
    """
    Read a pasted job description until two consecutive empty lines (or EOF).

    Empty lines are dropped from the result; a single empty line does not end input.
    """
    lines = []
    empty_count = 0
    while True:
        try:
            line = input_func()
        except EOFError:
            break
        if line.strip() == "":
            empty_count += 1
            if empty_count >= 2:
                break
        else:
            empty_count = 0
            lines.append(line)
    return "\n".join(lines).strip()


def resolve_job_description(
    text: Optional[str] = None,
    file: Optional[Path] = None,
    url: Optional[str] = None,
    scraper: Optional[FirecrawlScraper] = None,
    input_func: Callable[[], str] = input,
) -> str:
    """
    Resolve a job description from the first available source.

    Precedence: url, then inline text, then file, then interactive paste.

    Raises:
        ConfigurationError: If a URL is given without a configured scraper
        FileNotFoundError: If the file does not exist
        ValueError: If the resolved description is empty
        ExternalServiceError: If scraping fails
    """
    if url:
        if scraper is None:
            raise ConfigurationError(
                "FIRECRAWL_API_KEY is required for URL scraping. Add it to your .env file.",
                missing=["FIRECRAWL_API_KEY"],
            )
        description = scraper.scrape_markdown(url)
    elif text and text.strip():
        description = text
    elif file:
        description = Path(file).read_text(encoding="utf-8")
        _log_info(f"Read job description from {file}")
    else:
        description = read_interactive(input_func)

    description = description.strip()
    if not description:
        raise ValueError("Job description is empty")
    return description
