"""Data models for the job page extractor."""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ScrapedJobData(BaseModel):
    """Immutable snapshot of the job data observed on one page.

    Produced once per extraction attempt. Every field is best-effort;
    only ``description`` is guaranteed to be long enough to be useful.

    Attributes:
        title: Job title.
        company: Hiring organisation.
        location: Job location.
        salary: Human-readable salary text, or None when the page has none.
        description: Plain-text job description sent for enrichment.
        displayed_description: Text as rendered on the page, when the DOM
            tier found one.
        date_posted: Posting date (YYYY-MM-DD).
        date_closing: Closing date (YYYY-MM-DD).
        date_extracted: Day the page was scraped (YYYY-MM-DD).
        url: Address of the page.
        site_family: Name of the site family used for the DOM tier.
    """

    model_config = ConfigDict(frozen=True)

    title: str = Field(default="", description="Job title")
    company: str = Field(default="", description="Hiring organisation")
    location: str = Field(default="", description="Job location")
    salary: str | None = Field(default=None, description="Salary text, if any")
    description: str = Field(..., description="Plain-text job description")
    displayed_description: str | None = Field(
        default=None, description="Description as displayed on the page"
    )
    date_posted: str | None = Field(default=None, description="Posting date")
    date_closing: str | None = Field(default=None, description="Closing date")
    date_extracted: str | None = Field(default=None, description="Scrape date")
    url: str = Field(..., description="Address of the scraped page")
    site_family: str = Field(default="generic", description="Site family used")

    @field_validator("salary")
    @classmethod
    def empty_salary_is_none(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            return None
        return v

    def to_dict(self) -> dict:
        """Serialize the snapshot to a dictionary."""
        return self.model_dump(mode="json")

    def save_json(self, path: Path | str) -> None:
        """Save the snapshot to a JSON file.

        Args:
            path: Path to the output JSON file.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)
