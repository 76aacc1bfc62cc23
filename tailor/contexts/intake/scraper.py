"""
Firecrawl scraping of job postings and career pages.

Talks to the Firecrawl REST API directly with httpx. Scraped markdown is
cleaned for prompting: image references are dropped and blank-line runs are
collapsed.
"""

import re
from typing import Optional
from urllib.parse import urlparse

import httpx

from tailor.contexts.intake.logger import _log_debug, _log_info
from tailor.exceptions import ExternalServiceError
from tailor.utils.text_processing import set_max_consecutive_blank_lines

FIRECRAWL_BASE_URL = "https://api.firecrawl.dev"
SERVICE_NAME = "firecrawl"
DEFAULT_TIMEOUT = 60.0

_IMAGE_PATTERN = re.compile(r"!\[.*?\]\([^)]+\)")


def validate_url(url: str) -> str:
    """
    Check that url is an absolute http(s) URL.

    Raises:
        ValueError: If the URL is malformed
    """
    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"Invalid URL format: {url}")
    return url.strip()


def clean_markdown(markdown: str) -> str:
    """Drop image references and collapse runs of blank lines."""
    text = _IMAGE_PATTERN.sub("", markdown.strip())
    return set_max_consecutive_blank_lines(text, max_consecutive=1).strip()


class FirecrawlScraper:
    """
    Scrapes web pages to markdown through Firecrawl.

    Example:
        scraper = FirecrawlScraper(api_key)
        markdown = scraper.scrape_markdown("https://jobs.example.com/123")
    """

    def __init__(
        self,
        api_key: str,
        client: Optional[httpx.Client] = None,
        base_url: str = FIRECRAWL_BASE_URL,
    ):
        """
        Args:
            api_key: Firecrawl API key
            client: Pre-built httpx client (tests pass one with a MockTransport)
            base_url: API root
        """
        if not api_key:
            raise ValueError("Firecrawl API key is required")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.Client(timeout=DEFAULT_TIMEOUT)

    def scrape_markdown(self, url: str) -> str:
        """
        Scrape one page and return cleaned markdown.

        Raises:
            ValueError: If url is malformed
            ExternalServiceError: On HTTP/transport failure or empty content
        """
        url = validate_url(url)
        _log_info(f"Fetching {url}")

        try:
            response = self.client.post(
                f"{self.base_url}/v1/scrape",
                json={"url": url, "formats": ["markdown"]},
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
        except httpx.HTTPError as e:
            raise ExternalServiceError(
                f"Failed to scrape URL: {e}", service=SERVICE_NAME, original_error=e
            ) from e

        if response.status_code >= 400:
            raise self._status_error(response, url)

        try:
            payload = response.json()
        except ValueError as e:
            raise ExternalServiceError(
                "Firecrawl returned a non-JSON response", service=SERVICE_NAME, original_error=e
            ) from e

        if not payload.get("success"):
            error = payload.get("error") or "Scrape operation was not successful"
            raise ExternalServiceError(f"Failed to scrape URL: {error}", service=SERVICE_NAME)

        markdown = (payload.get("data") or {}).get("markdown")
        if not markdown:
            raise ExternalServiceError("No markdown content extracted from URL", service=SERVICE_NAME)

        text = clean_markdown(markdown)
        if not text:
            raise ExternalServiceError(
                "Extracted content is empty after cleaning", service=SERVICE_NAME
            )

        _log_debug(f"Extracted {len(text)} characters from {url}")
        return text

    @staticmethod
    def _status_error(response: httpx.Response, url: str) -> ExternalServiceError:
        status = response.status_code
        if status == 401:
            message = "Invalid or missing Firecrawl API key. Check FIRECRAWL_API_KEY in .env"
        elif status == 404:
            message = f"URL not found: {url}"
        elif status == 429:
            message = "Firecrawl API rate limit exceeded. Please try again later."
        else:
            try:
                detail = response.json().get("error") or response.text
            except ValueError:
                detail = response.text
            message = f"Failed to scrape URL: {detail}"
        return ExternalServiceError(message, service=SERVICE_NAME, status_code=status)
