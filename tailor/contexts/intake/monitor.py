"""
Career page monitoring.

For each configured company (strictly one at a time, with a pause between
companies): scrape the career page, pull out posting links, keep the ones
matching the role filters, drop postings that fail the liveness probe, and merge
the rest into the job queue by URL. A company whose page cannot be scraped is
logged and skipped; it never aborts the run.
"""

import re
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional
from urllib.parse import urljoin

from tailor.contexts.intake.companies import CompanyConfig, CompanyFilters
from tailor.contexts.intake.job_queue import JobQueue, JobQueueEntry
from tailor.contexts.intake.liveness import probe_urls
from tailor.contexts.intake.logger import (
    _log_info,
    log_company_result,
    log_liveness_summary,
    log_monitor_summary,
)
from tailor.contexts.intake.scraper import FirecrawlScraper
from tailor.exceptions import ExternalServiceError

COMPANY_DELAY_SECONDS = 1.0

# URL path fragments that mark a link as a job posting
POSTING_MARKERS = ("/careers/", "/jobs/", "/openings/")
# Header-based postings only count careers/jobs URLs
HEADER_POSTING_MARKERS = ("/careers/", "/jobs/")
HEADER_LOOKAHEAD_LINES = 4

_LINK_PATTERN = re.compile(r"\[([^\]]+)\]\(([^)\s]+)[^)]*\)")
_BARE_URL_PATTERN = re.compile(r"https?://[^\s)]+")
_HEADER_PATTERN = re.compile(r"^#+\s*")


def _is_posting(url: str, markers: tuple = POSTING_MARKERS) -> bool:
    return any(marker in url for marker in markers)


def extract_job_postings(markdown: str, company: str, base_url: str = "") -> list[JobQueueEntry]:
    """
    Find job postings in career page markdown.

    Two shapes are recognized:
        - markdown links whose target contains /careers/, /jobs/ or /openings/
          (relative targets are resolved against base_url)
        - headers (title 6-99 characters) followed within four lines by an
          absolute /careers/ or /jobs/ URL

    Returns:
        Postings in page order, deduplicated by URL
    """
    found: dict[str, JobQueueEntry] = {}
    lines = markdown.split("\n")

    for i, raw_line in enumerate(lines):
        line = raw_line.strip()

        for match in _LINK_PATTERN.finditer(line):
            title, target = match.group(1).strip(), match.group(2)
            if not _is_posting(target):
                continue
            url = target if target.startswith("http") else urljoin(base_url, target)
            if url.startswith("http") and url not in found:
                found[url] = JobQueueEntry.discovered(company, url, title)

        if line.startswith("#") and len(line) > 3:
            title = _HEADER_PATTERN.sub("", line).strip()
            if not 5 < len(title) < 100:
                continue
            for next_line in lines[i + 1 : i + 1 + HEADER_LOOKAHEAD_LINES]:
                url_match = _BARE_URL_PATTERN.search(next_line)
                if url_match and _is_posting(url_match.group(0), HEADER_POSTING_MARKERS):
                    url = url_match.group(0)
                    if url not in found:
                        found[url] = JobQueueEntry.discovered(company, url, title)
                    break

    return list(found.values())


def filter_jobs(
    jobs: Iterable[JobQueueEntry], filters: Optional[CompanyFilters]
) -> list[JobQueueEntry]:
    """Keep jobs whose title contains any role keyword (case-insensitive)."""
    jobs = list(jobs)
    if filters is None or not filters.roles:
        return jobs
    roles = [role.lower() for role in filters.roles]
    return [job for job in jobs if any(role in job.job_title.lower() for role in roles)]


@dataclass
class MonitorReport:
    """
    Outcome of one monitoring run.

    Attributes:
        discovered: Matching postings across all companies
        added: Postings newly merged into the queue
        inactive: URLs dropped by the liveness probe
        failed_companies: Company name -> error message for skipped companies
    """

    discovered: list[JobQueueEntry] = field(default_factory=list)
    added: list[JobQueueEntry] = field(default_factory=list)
    inactive: list[str] = field(default_factory=list)
    failed_companies: dict[str, str] = field(default_factory=dict)


def discover_jobs(company: CompanyConfig, scraper: FirecrawlScraper) -> list[JobQueueEntry]:
    """
    Scrape one career page and return postings matching its filters.

    Raises:
        ExternalServiceError: If the page cannot be scraped
    """
    _log_info(f"Discovering jobs from {company.name}...")
    markdown = scraper.scrape_markdown(company.career_page_url)
    jobs = extract_job_postings(markdown, company.name, base_url=company.career_page_url)
    matched = filter_jobs(jobs, company.filters)
    log_company_result(company.name, len(jobs), len(matched))
    return matched


def monitor_companies(
    companies: list[CompanyConfig],
    scraper: FirecrawlScraper,
    queue: JobQueue,
    probe: Optional[Callable[[list[str]], dict[str, bool]]] = probe_urls,
    delay: float = COMPANY_DELAY_SECONDS,
    dry_run: bool = False,
) -> MonitorReport:
    """
    Monitor every company and merge active new postings into the queue.

    Args:
        companies: Companies to scrape, in order
        scraper: Firecrawl scraper
        queue: Job queue to merge into
        probe: Liveness checker (url list -> url -> active); None skips probing
        delay: Seconds to wait between companies
        dry_run: Discover and probe, but don't write the queue

    Returns:
        MonitorReport
    """
    report = MonitorReport()
    _log_info(f"Monitoring {len(companies)} company/companies...")

    for position, company in enumerate(companies):
        if position and delay:
            time.sleep(delay)
        try:
            report.discovered.extend(discover_jobs(company, scraper))
        except (ExternalServiceError, ValueError) as e:
            report.failed_companies[company.name] = str(e)

    candidates = report.discovered
    if probe is not None and candidates:
        _log_info("Validating job URLs are still active...")
        liveness = probe([job.url for job in candidates])
        log_liveness_summary(liveness)
        report.inactive = [url for url, active in liveness.items() if not active]
        candidates = [job for job in candidates if liveness.get(job.url, False)]

    if dry_run:
        seen = {entry.url for entry in queue.read()}
        for job in candidates:
            if job.url not in seen:
                seen.add(job.url)
                report.added.append(job)
        _log_info(f"[DRY RUN] Would add {len(report.added)} job(s) to queue")
    else:
        report.added = queue.merge(candidates)

    log_monitor_summary(report)
    return report
