"""Pytest configuration and shared fixtures."""

import pytest


@pytest.fixture
def sample_job_url() -> str:
    """Sample job URL for testing."""
    return "https://example.com/jobs/123"


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Keep tests independent of the developer's environment and .env file."""
    import os

    from rolecase.config.settings import reset_settings
    from rolecase.extractor.config import reset_extractor_config

    for var in list(os.environ):
        if var.startswith(("ROLECASE_", "EXTRACTOR_")):
            monkeypatch.delenv(var)
    monkeypatch.chdir(tmp_path)
    reset_settings()
    reset_extractor_config()
    yield
    reset_settings()
    reset_extractor_config()


@pytest.fixture
def settings(tmp_path):
    """Settings pointing at a temporary database, polling without delay."""
    from rolecase.config.settings import Settings

    return Settings(
        _env_file=None,
        db_path=tmp_path / "jobs.db",
        poll_interval=0,
        poll_max_attempts=150,
        keepalive_interval=0.01,
    )


@pytest.fixture
def scraped(sample_job_url):
    """A successful extraction."""
    from rolecase.extractor.models import ScrapedJobData

    return ScrapedJobData(
        title="Data Engineer",
        company="Acme Analytics",
        location="Leeds, UK",
        salary="£45000 - £55000 YEAR",
        description="Build and run the data platform. " * 5,
        displayed_description="Build and run the data platform.\nOn call rota.",
        date_posted="2024-05-01",
        date_closing=None,
        date_extracted="2024-05-03",
        url=sample_job_url,
        site_family="generic",
    )


@pytest.fixture
async def repository(tmp_path):
    """An initialized job repository on a temporary database."""
    from rolecase.store.repository import JobRepository

    repo = JobRepository(tmp_path / "jobs.db")
    await repo.initialize()
    yield repo
    await repo.close()
