"""
Liveness probes for job posting URLs.

The only concurrent fan-out in the tool: postings are probed with an asyncio
semaphore cap and a per-request timeout. Probes never raise; a timeout or
transport error means the posting is treated as inactive. Nothing is retried.

Rules:
    HEAD 404/410              -> inactive
    HEAD 2xx, GET mentions a closed-posting phrase -> inactive
    HEAD 2xx, GET fails       -> active
    HEAD 2xx otherwise        -> active
    anything else             -> inactive
"""

import asyncio
from typing import Iterable, Optional

import httpx

from tailor.contexts.intake.logger import _log_debug, _log_warning

DEFAULT_CONCURRENCY = 10
DEFAULT_TIMEOUT = 5.0
MAX_REDIRECTS = 5

CLOSED_INDICATORS = (
    "position filled",
    "job closed",
    "no longer accepting",
    "position has been filled",
    "this position is closed",
    "application closed",
)

GONE_STATUSES = (404, 410)


def _mentions_closed(body: str) -> bool:
    content = body.lower()
    return any(indicator in content for indicator in CLOSED_INDICATORS)


async def probe_url(client: httpx.AsyncClient, url: str) -> bool:
    """Return True if the posting at url looks open."""
    try:
        head = await client.head(url)
    except httpx.HTTPError as e:
        _log_warning(f"Could not verify job URL {url}: {e}")
        return False

    if head.status_code in GONE_STATUSES:
        return False
    if not head.is_success:
        _log_debug(f"HEAD {url} returned {head.status_code}")
        return False

    try:
        page = await client.get(url)
    except httpx.HTTPError:
        # Reachable by HEAD is good enough
        return True
    return not _mentions_closed(page.text)


async def probe_all(
    urls: Iterable[str],
    concurrency: int = DEFAULT_CONCURRENCY,
    timeout: float = DEFAULT_TIMEOUT,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> dict[str, bool]:
    """
    Probe URLs concurrently, at most `concurrency` at a time.

    Returns:
        Mapping of url -> active, in input order (duplicates probed once)
    """
    urls = list(dict.fromkeys(urls))
    semaphore = asyncio.Semaphore(concurrency)

    async with httpx.AsyncClient(
        timeout=timeout,
        follow_redirects=True,
        max_redirects=MAX_REDIRECTS,
        transport=transport,
    ) as client:

        async def bounded(url: str) -> bool:
            async with semaphore:
                return await probe_url(client, url)

        results = await asyncio.gather(*(bounded(url) for url in urls))

    return dict(zip(urls, results))


def probe_urls(
    urls: Iterable[str],
    concurrency: int = DEFAULT_CONCURRENCY,
    timeout: float = DEFAULT_TIMEOUT,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> dict[str, bool]:
    """Synchronous wrapper around probe_all() for CLI and monitor use."""
    return asyncio.run(probe_all(urls, concurrency=concurrency, timeout=timeout, transport=transport))
