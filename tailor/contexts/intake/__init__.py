"""
Intake Context

Responsibilities:
- Resolves job descriptions from inline text, files, URLs, or pasted input
- Scrapes job posting and career pages to markdown (Firecrawl)
- Extracts company/role metadata used to auto-tag updates
- Monitors configured career pages and keeps the discovered-job queue
- Probes posting URLs to drop closed or dead postings

Owns: Companies file, job queue file, scraping, liveness probes
Never: Touches the resume document or the version log
"""

from tailor.contexts.intake.companies import CompanyConfig, CompanyFilters, load_companies
from tailor.contexts.intake.job_description import read_interactive, resolve_job_description
from tailor.contexts.intake.job_queue import JobQueue, JobQueueEntry
from tailor.contexts.intake.liveness import probe_url, probe_urls
from tailor.contexts.intake.metadata import extract_job_tags
from tailor.contexts.intake.monitor import (
    MonitorReport,
    extract_job_postings,
    filter_jobs,
    monitor_companies,
)
from tailor.contexts.intake.scraper import FirecrawlScraper

__all__ = [
    "CompanyConfig",
    "CompanyFilters",
    "load_companies",
    "resolve_job_description",
    "read_interactive",
    "JobQueue",
    "JobQueueEntry",
    "probe_url",
    "probe_urls",
    "extract_job_tags",
    "MonitorReport",
    "extract_job_postings",
    "filter_jobs",
    "monitor_companies",
    "FirecrawlScraper",
]
