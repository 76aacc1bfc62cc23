#!/usr/bin/env python3
"""
Resume version manager CLI.

Aligns the Google Docs resume with job descriptions through LLM-suggested,
validated replacements, and keeps a local version log of every update and
revert alongside the document's own revision history.

Commands:
    update  - Align the resume with one job description
    batch   - Run update for several job description files/URLs in order
    list    - Show logged versions and desync against Drive revisions
    revert  - Restore a logged version (recorded as a new revision)
    export  - Export the current document as PDF or DOCX
    tag     - Correct company/job title/job URL on a logged version
    search  - Find logged versions by company, title, URL, or change text
    monitor - Discover postings on configured career pages (optionally process them)

Examples:\n

    manage_resume.py update --jd-url https://jobs.example.com/123 --dry-run

    manage_resume.py update --jd-file jd.txt --company Acme --job-title "ML Engineer"

    manage_resume.py list

    manage_resume.py revert 0

    manage_resume.py tag 1 --company Acme
"""

from datetime import datetime
from pathlib import Path
from typing import List, Optional

import typer
from typing_extensions import Annotated

from tailor.config import Settings, load_settings
from tailor.contexts.alignment import ReplacementValidator, SuggestionClient
from tailor.contexts.coordination import (
    BatchItem,
    BatchReport,
    JobTags,
    RevertCoordinator,
    UpdateCoordinator,
    export_version,
)
from tailor.contexts.coordination.logger import setup_cycle_logger
from tailor.contexts.documents import DocumentService, ExportFormat
from tailor.contexts.documents.google_docs import GoogleDocsService
from tailor.contexts.history import VersionLog, check_sync
from tailor.contexts.intake import (
    FirecrawlScraper,
    JobQueue,
    extract_job_tags,
    load_companies,
    monitor_companies,
    resolve_job_description,
)
from tailor.exceptions import ConfigurationError, TailorError
from tailor.utils.llm import LLMProvider, get_provider
from tailor.utils.report_formatter import Column, TableFormatter
from tailor.utils.timestamp import format_timestamp

app = typer.Typer(
    help="Align a Google Docs resume with job descriptions and track its versions",
    add_completion=False,
    invoke_without_command=True,
)

# Errors reported as a single message with exit code 1
HANDLED_ERRORS = (TailorError, ValueError, OSError)


@app.callback()
def main(ctx: typer.Context):
    """Show help by default when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


# =============================================================================
# COLLABORATOR FACTORIES (one instance each per process)
# =============================================================================


def build_documents(settings: Settings) -> DocumentService:
    settings.require("google_credentials", "resume_file_id")
    return GoogleDocsService(settings.google_credentials)


def build_provider(settings: Settings) -> LLMProvider:
    settings.require_llm()
    return get_provider(settings.llm_provider, settings.llm_api_key, settings.llm_model)


def build_scraper(settings: Settings) -> FirecrawlScraper:
    settings.require("firecrawl_api_key")
    return FirecrawlScraper(settings.firecrawl_api_key)


def _start_session(command: str, settings: Settings) -> Path:
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_dir = settings.logs_path / f"{command}_{timestamp}"
    return setup_cycle_logger(command, log_dir, settings.resume_file_id)


def _fail(error) -> None:
    typer.secho(f"Error: {error}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def _warn(message: str) -> None:
    typer.secho(f"Warning: {message}", fg=typer.colors.YELLOW, err=True)


def _update_coordinator(settings: Settings, auto_tag: bool = True) -> UpdateCoordinator:
    documents = build_documents(settings)
    provider = build_provider(settings)

    tagger = None
    if auto_tag:

        def tagger(job_description: str) -> JobTags:
            return JobTags.from_metadata(extract_job_tags(provider, job_description))

    return UpdateCoordinator(
        documents=documents,
        document_id=settings.resume_file_id,
        suggestions=SuggestionClient(provider, max_word_delta=settings.max_word_delta),
        version_log=VersionLog(settings.version_log_path),
        validator=ReplacementValidator(settings.max_word_delta),
        tagger=tagger,
    )


def _echo_batch_report(report: BatchReport) -> None:
    typer.echo("")
    for item in report.items:
        if item.succeeded:
            typer.secho(f"  ✓ {item.label}", fg=typer.colors.GREEN)
        else:
            typer.secho(f"  ✗ {item.label}: {item.error}", fg=typer.colors.RED)
    typer.echo(f"\n{len(report.succeeded)} succeeded, {len(report.failed)} failed")


# =============================================================================
# COMMANDS
# =============================================================================


@app.command("update")
def update_command(
    jd: Annotated[
        Optional[str], typer.Option("--jd", help="Job description text")
    ] = None,
    jd_file: Annotated[
        Optional[Path], typer.Option("--jd-file", help="File containing the job description")
    ] = None,
    jd_url: Annotated[
        Optional[str], typer.Option("--jd-url", help="Job posting URL (scraped via Firecrawl)")
    ] = None,
    company: Annotated[Optional[str], typer.Option("--company", help="Company name")] = None,
    job_title: Annotated[Optional[str], typer.Option("--job-title", help="Job title")] = None,
    job_url: Annotated[
        Optional[str], typer.Option("--job-url", help="Job posting URL to record")
    ] = None,
    auto_tag: Annotated[
        bool,
        typer.Option("--auto-tag/--no-auto-tag", help="Extract missing company/title with the LLM"),
    ] = True,
    dry_run: Annotated[
        bool, typer.Option("--dry-run", "-n", help="Show alignments without changing anything")
    ] = False,
):
    """
    Align the resume with one job description.

    Without --jd, --jd-file or --jd-url the description is read from stdin
    (finish with two empty lines).

    Examples:\n

        $ manage_resume.py update --jd-url https://jobs.example.com/123

        $ manage_resume.py update --jd-file jd.txt --dry-run
    """
    try:
        settings = load_settings()
        _start_session("update", settings)
        coordinator = _update_coordinator(settings, auto_tag=auto_tag and not dry_run)

        scraper = build_scraper(settings) if jd_url else None
        if not (jd or jd_file or jd_url):
            typer.echo("Paste job description (press Enter twice on an empty line to finish):")
        job_description = resolve_job_description(
            text=jd, file=jd_file, url=jd_url, scraper=scraper
        )

        tags = JobTags(company=company, job_title=job_title, job_url=job_url or jd_url)
        result = coordinator.run(job_description, tags, dry_run=dry_run)
    except HANDLED_ERRORS as e:
        _fail(e)

    if result.dry_run:
        typer.secho(
            f"\n[DRY RUN] {len(result.validation.accepted)} alignment(s) would be applied",
            fg=typer.colors.BLUE,
        )
        return
    typer.secho(
        f"\nResume updated. Revision ID: {result.entry.revision_id}", fg=typer.colors.GREEN
    )


@app.command("batch")
def batch_command(
    sources: Annotated[
        List[str], typer.Argument(help="Job description files and/or posting URLs")
    ],
    auto_tag: Annotated[
        bool,
        typer.Option("--auto-tag/--no-auto-tag", help="Extract company/title with the LLM"),
    ] = True,
    dry_run: Annotated[
        bool, typer.Option("--dry-run", "-n", help="Show alignments without changing anything")
    ] = False,
):
    """
    Run one update per source, strictly in order.

    A failing source is reported and skipped. Exits with an error only if
    every source failed.
    """
    try:
        settings = load_settings()
        _start_session("batch", settings)
        coordinator = _update_coordinator(settings, auto_tag=auto_tag and not dry_run)
        needs_scraper = any(source.startswith(("http://", "https://")) for source in sources)
        scraper = build_scraper(settings) if needs_scraper else None
    except HANDLED_ERRORS as e:
        _fail(e)

    items = []
    for source in sources:
        if source.startswith(("http://", "https://")):
            items.append(
                BatchItem(
                    label=source,
                    load_description=lambda url=source: scraper.scrape_markdown(url),
                    tags=JobTags(job_url=source),
                )
            )
        else:
            items.append(
                BatchItem(
                    label=source,
                    load_description=lambda path=source: resolve_job_description(file=Path(path)),
                )
            )

    report = coordinator.run_batch(items, dry_run=dry_run)
    _echo_batch_report(report)
    if report.all_failed:
        raise typer.Exit(code=1)


@app.command("list")
def list_command():
    """List logged versions and flag desync with the document's revisions."""
    try:
        settings = load_settings()
        documents = build_documents(settings)
        version_log = VersionLog(settings.version_log_path)
        entries = version_log.read()
        report = check_sync(version_log, documents, settings.resume_file_id)
    except HANDLED_ERRORS as e:
        _fail(e)

    if not report.in_sync:
        typer.secho("\n⚠️  Desync detected!", fg=typer.colors.YELLOW, bold=True)
        if report.missing:
            typer.echo(f"Missing in local log: {', '.join(rev.id for rev in report.missing)}")
        if report.extra:
            typer.echo(f"Extra in local log: {', '.join(report.extra)}")

    if not entries:
        typer.echo("\nNo versions logged yet.")
        return

    table = TableFormatter(
        [
            Column("Index", 5, ">"),
            Column("Revision ID", 14),
            Column("Timestamp", 19),
            Column("Job Title", 24),
            Column("Company", 16),
            Column("Changes", 7, ">"),
            Column("Type", 6),
            Column("In Drive", 8, "^"),
        ]
    )
    table.add_section_header("Version History").add_table_header().add_separator()
    for index, entry in enumerate(entries):
        table.add_row(
            [
                index,
                entry.revision_id,
                format_timestamp(entry.timestamp),
                entry.job_title,
                entry.company,
                len(entry.changes),
                entry.kind,
                "✓" if report.is_tracked(entry.revision_id) else "✗",
            ]
        )
    table.add_summary(f"{len(entries)} version(s) logged")
    typer.echo(table.render())


@app.command("revert")
def revert_command(
    selector: Annotated[str, typer.Argument(help="Version index or revision ID (see 'list')")],
):
    """
    Restore a logged version of the resume.

    The restored text is written as a new revision and logged as a revert;
    history is never rewound. Restoring replaces the whole body, so
    formatting is not preserved.
    """
    try:
        settings = load_settings()
        _start_session("revert", settings)
        documents = build_documents(settings)
        coordinator = RevertCoordinator(
            documents, settings.resume_file_id, VersionLog(settings.version_log_path)
        )
        result = coordinator.run(selector)
    except HANDLED_ERRORS as e:
        _fail(e)

    for warning in result.warnings:
        _warn(warning)
    typer.secho(
        f"Revert completed. New revision ID: {result.new_revision_id}", fg=typer.colors.GREEN
    )


@app.command("export")
def export_command(
    selector: Annotated[str, typer.Argument(help="Version index or revision ID (see 'list')")],
    fmt: Annotated[
        ExportFormat, typer.Option("--format", "-f", help="Output format")
    ] = ExportFormat.PDF,
    output: Annotated[
        Optional[Path], typer.Option("--output", "-o", help="Output file path")
    ] = None,
):
    """
    Export the resume as PDF or DOCX.

    Only the current document can be exported; selecting an older version
    exports current content with a warning.
    """
    try:
        settings = load_settings()
        documents = build_documents(settings)
        result = export_version(
            VersionLog(settings.version_log_path),
            documents,
            settings.resume_file_id,
            selector,
            fmt=fmt,
            output_path=output,
        )
    except HANDLED_ERRORS as e:
        _fail(e)

    for warning in result.warnings:
        _warn(warning)
    typer.secho(f"Exported to {result.path}", fg=typer.colors.GREEN)


@app.command("tag")
def tag_command(
    selector: Annotated[str, typer.Argument(help="Version index or revision ID (see 'list')")],
    company: Annotated[Optional[str], typer.Option("--company", help="Company name")] = None,
    job_title: Annotated[Optional[str], typer.Option("--job-title", help="Job title")] = None,
    job_url: Annotated[Optional[str], typer.Option("--job-url", help="Job posting URL")] = None,
):
    """
    Correct the company, job title, or job URL recorded for a version.

    Examples:\n

        $ manage_resume.py tag 1 --company Acme

        $ manage_resume.py tag 2c9f... --job-title "Data Scientist"
    """
    if company is None and job_title is None and job_url is None:
        _fail("Nothing to tag. Pass --company, --job-title and/or --job-url.")

    try:
        settings = load_settings()
        entry = VersionLog(settings.version_log_path).patch(
            selector, company=company, job_title=job_title, job_url=job_url
        )
    except HANDLED_ERRORS as e:
        _fail(e)

    typer.secho(
        f"Tagged {entry.revision_id}: {entry.job_title or '-'} at {entry.company or '-'}",
        fg=typer.colors.GREEN,
    )


@app.command("search")
def search_command(
    term: Annotated[str, typer.Argument(help="Text to find (case-insensitive)")],
):
    """Find logged versions by company, job title, URL, revision ID, or change text."""
    try:
        settings = load_settings()
        matches = VersionLog(settings.version_log_path).search(term)
    except HANDLED_ERRORS as e:
        _fail(e)

    if not matches:
        typer.echo(f"No versions match '{term}'.")
        return

    table = TableFormatter(
        [
            Column("Index", 5, ">"),
            Column("Revision ID", 14),
            Column("Timestamp", 19),
            Column("Job Title", 28),
            Column("Company", 20),
            Column("Type", 6),
        ]
    )
    table.add_section_header(f"Versions matching '{term}'").add_table_header().add_separator()
    for index, entry in matches:
        table.add_row(
            [
                index,
                entry.revision_id,
                format_timestamp(entry.timestamp),
                entry.job_title,
                entry.company,
                entry.kind,
            ]
        )
    table.add_summary(f"{len(matches)} match(es)")
    typer.echo(table.render())


@app.command("monitor")
def monitor_command(
    process: Annotated[
        bool, typer.Option("--process", help="Run an update for every queued posting")
    ] = False,
    dry_run: Annotated[
        bool, typer.Option("--dry-run", "-n", help="Don't write the queue or the resume")
    ] = False,
):
    """
    Discover postings on the configured career pages and queue new ones.

    With --process, every queued posting is then run through update; postings
    whose update succeeds leave the queue.
    """
    try:
        settings = load_settings()
        _start_session("monitor", settings)
        companies = load_companies(settings.companies_path)
        if not companies:
            raise ConfigurationError(
                f"No companies configured. Create {settings.companies_path} "
                "(see companies.example.yaml)."
            )
        scraper = build_scraper(settings)
        queue = JobQueue(settings.job_queue_path)
        report = monitor_companies(companies, scraper, queue, dry_run=dry_run)
    except HANDLED_ERRORS as e:
        _fail(e)

    if report.added:
        table = TableFormatter([Column("Company", 20), Column("Job Title", 36), Column("URL", 60)])
        label = "New postings (not queued: dry run)" if dry_run else "New postings queued"
        table.add_section_header(label).add_table_header().add_separator()
        for job in report.added:
            table.add_row([job.company, job.job_title, job.url])
        typer.echo(table.render())
    else:
        typer.echo("No new jobs found.")

    if not process:
        return

    try:
        coordinator = _update_coordinator(settings, auto_tag=False)
    except HANDLED_ERRORS as e:
        _fail(e)

    queued = queue.read()
    if not queued:
        typer.echo("Job queue is empty.")
        return

    items = [
        BatchItem(
            label=f"{entry.job_title} @ {entry.company}",
            load_description=lambda url=entry.url: scraper.scrape_markdown(url),
            tags=JobTags(company=entry.company, job_title=entry.job_title, job_url=entry.url),
        )
        for entry in queued
    ]
    batch = coordinator.run_batch(items, dry_run=dry_run)
    _echo_batch_report(batch)

    if not dry_run:
        done = [
            entry.url for entry, outcome in zip(queued, batch.items) if outcome.succeeded
        ]
        queue.remove(done)
    if batch.all_failed:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
