"""End-to-end CLI runs with the external collaborators swapped for in-memory fakes."""

import importlib.util
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from conftest import FakeDocumentService, FakeProvider, suggestion_payload
from google.auth.exceptions import RefreshError
from typer.testing import CliRunner

from tailor.config import Settings
from tailor.contexts.documents.google_docs import GoogleDocsService
from tailor.contexts.history.version_log import VersionLog, VersionLogEntry

SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "manage_resume.py"
GOOD_PAIR = ("Built data pipelines in Python", "Built and scaled data pipelines in Python")

runner = CliRunner()


def load_cli():
    spec = importlib.util.spec_from_file_location("manage_resume", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def settings(tmp_path):
    return Settings(
        groq_api_key="test-key",
        google_credentials=tmp_path / "credentials.json",
        resume_file_id="doc-1",
        version_log_path=tmp_path / "resume_versions.json",
        job_queue_path=tmp_path / "jobs_queue.json",
        companies_path=tmp_path / "companies.yaml",
        logs_path=tmp_path / "logs",
    )


@pytest.fixture
def cli(monkeypatch, settings, tmp_path):
    module = load_cli()
    module.fake_documents = FakeDocumentService()
    module.fake_provider = FakeProvider()
    monkeypatch.setattr(module, "load_settings", lambda: settings)
    monkeypatch.setattr(module, "setup_cycle_logger", lambda *args, **kwargs: tmp_path / "cli.log")
    monkeypatch.setattr(module, "build_documents", lambda s: module.fake_documents)
    monkeypatch.setattr(module, "build_provider", lambda s: module.fake_provider)
    return module


@pytest.fixture
def seeded_log(settings):
    log = VersionLog(settings.version_log_path)
    log.append(VersionLogEntry("r0", "2025-01-01T00:00:00.000Z", ["Initial"], company="Acme"))
    log.append(VersionLogEntry("r1", "2025-01-02T00:00:00.000Z", ["Tailored"], job_title="ML Engineer"))
    return log


@pytest.mark.integration
def test_no_command_shows_help(cli):
    result = runner.invoke(cli.app, [])

    assert result.exit_code == 0
    assert "update" in result.output and "revert" in result.output


@pytest.mark.integration
def test_tag_patches_one_field(cli, seeded_log):
    before = seeded_log.read()[1]

    result = runner.invoke(cli.app, ["tag", "1", "--company", "Initech"])

    assert result.exit_code == 0
    after = seeded_log.read()[1]
    assert after.company == "Initech"
    assert (after.revision_id, after.timestamp, after.changes, after.is_revert) == (
        before.revision_id,
        before.timestamp,
        before.changes,
        before.is_revert,
    )


@pytest.mark.integration
def test_tag_unknown_version_fails(cli, seeded_log):
    result = runner.invoke(cli.app, ["tag", "7", "--company", "Initech"])

    assert result.exit_code == 1
    assert "Version not found" in result.output
    assert len(seeded_log.read()) == 2


@pytest.mark.integration
def test_tag_without_fields_fails(cli, seeded_log):
    result = runner.invoke(cli.app, ["tag", "1"])

    assert result.exit_code == 1
    assert "Nothing to tag" in result.output


@pytest.mark.integration
def test_search(cli, seeded_log):
    found = runner.invoke(cli.app, ["search", "acme"])
    missing = runner.invoke(cli.app, ["search", "globex"])

    assert found.exit_code == 0
    assert "1 match(es)" in found.output
    assert "No versions match 'globex'" in missing.output


@pytest.mark.integration
def test_list_marks_untracked_revisions(cli, seeded_log):
    result = runner.invoke(cli.app, ["list"])

    assert result.exit_code == 0
    assert "Version History" in result.output
    assert "Extra in local log: r1" in result.output


@pytest.mark.integration
def test_list_requires_document_settings(cli, monkeypatch, settings):
    monkeypatch.setattr(cli, "build_documents", load_cli().build_documents)
    settings.resume_file_id = None

    result = runner.invoke(cli.app, ["list"])

    assert result.exit_code == 1
    assert "RESUME_FILE_ID" in result.output


@pytest.mark.integration
def test_update_dry_run(cli, settings):
    cli.fake_provider.responses.append(suggestion_payload([GOOD_PAIR]))

    result = runner.invoke(cli.app, ["update", "--jd", "Own data pipelines", "--dry-run"])

    assert result.exit_code == 0, result.output
    assert "[DRY RUN] 1 alignment(s) would be applied" in result.output
    assert not settings.version_log_path.exists()


@pytest.mark.integration
def test_update_records_revision(cli, settings):
    cli.fake_provider.responses.append(suggestion_payload([GOOD_PAIR]))

    result = runner.invoke(
        cli.app,
        ["update", "--jd", "Own data pipelines", "--company", "Acme", "--job-title", "Data Engineer"],
    )

    assert result.exit_code == 0, result.output
    assert "Revision ID: r1" in result.output
    [entry] = VersionLog(settings.version_log_path).read()
    assert (entry.company, entry.job_title) == ("Acme", "Data Engineer")


@pytest.mark.integration
def test_revert(cli, seeded_log):
    result = runner.invoke(cli.app, ["revert", "0"])

    assert result.exit_code == 0, result.output
    assert "New revision ID: r1" in result.output
    assert seeded_log.read()[-1].is_revert is True


@pytest.mark.integration
def test_batch_exit_status(cli, tmp_path):
    jd_file = tmp_path / "jd.txt"
    jd_file.write_text("Own data pipelines")
    cli.fake_provider.responses.append(suggestion_payload([GOOD_PAIR]))

    partial = runner.invoke(cli.app, ["batch", str(jd_file), str(tmp_path / "absent.txt"), "--no-auto-tag"])
    failed = runner.invoke(cli.app, ["batch", str(tmp_path / "absent.txt"), "--no-auto-tag"])

    assert partial.exit_code == 0, partial.output
    assert "1 succeeded, 1 failed" in partial.output
    assert failed.exit_code == 1


@pytest.mark.integration
def test_monitor_without_companies_fails(cli):
    result = runner.invoke(cli.app, ["monitor"])

    assert result.exit_code == 1
    assert "No companies configured" in result.output


@pytest.mark.integration
def test_revoked_credentials_fail_with_message(cli, monkeypatch, seeded_log):
    drive = MagicMock()
    drive.revisions.return_value.list.return_value.execute.side_effect = RefreshError(
        "invalid_grant: account disabled"
    )
    with patch("tailor.contexts.documents.google_docs.build", side_effect=[drive, MagicMock()]):
        documents = GoogleDocsService(None, credentials=MagicMock())
    monkeypatch.setattr(cli, "build_documents", lambda s: documents)

    result = runner.invoke(cli.app, ["list"])

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "invalid_grant: account disabled" in result.output
