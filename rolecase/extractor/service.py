"""Job page extraction service.

Extraction runs in two tiers. The baseline reads the page's schema.org
JobPosting block (falling back to page meta tags); the DOM tier applies the
site family's selector rules. The two are merged, the description is
cleaned up and capped, and pages without a usable description are rejected.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from datetime import UTC, date, datetime
from typing import Any

from rolecase.errors import ExtractionFailure
from rolecase.extractor.config import ExtractorConfig, get_extractor_config
from rolecase.extractor.loader import PageLoader
from rolecase.extractor.models import ScrapedJobData
from rolecase.extractor.normalize import (
    flatten,
    normalize_date,
    normalize_description,
    normalize_salary,
)
from rolecase.extractor.page import Page
from rolecase.extractor.rules import MergePolicy, SiteFamily, detect_family

logger = logging.getLogger(__name__)

# Boilerplate that marks the end of the posting on aggregator pages
NOISE_PHRASES = (
    "Related jobs",
    "Similar jobs",
    "People also viewed",
    "You might also like",
)


def _utc_today() -> date:
    return datetime.now(UTC).date()


def _is_job_posting(item: Any) -> bool:
    if not isinstance(item, dict):
        return False
    item_type = item.get("@type")
    if isinstance(item_type, list):
        return "JobPosting" in item_type
    return item_type == "JobPosting"


def find_job_posting(blocks: list[Any]) -> dict | None:
    """First JobPosting among JSON-LD blocks.

    Looks at each block itself, the items of a top-level list, and one level
    of ``@graph`` nesting.
    """
    for block in blocks:
        candidates = block if isinstance(block, list) else [block]
        for candidate in candidates:
            if _is_job_posting(candidate):
                return candidate
            if isinstance(candidate, dict) and isinstance(candidate.get("@graph"), list):
                for item in candidate["@graph"]:
                    if _is_job_posting(item):
                        return item
    return None


def trim_noise(text: str, cutoff_ratio: float = 0.7) -> str:
    """Cut trailing "Related jobs"-style sections from a description.

    A phrase only counts when its last occurrence sits at or after
    ``cutoff_ratio`` of the text, so mentions early in a posting are kept.
    """
    for phrase in NOISE_PHRASES:
        matches = list(re.finditer(re.escape(phrase), text, re.IGNORECASE))
        if not matches:
            continue
        index = matches[-1].start()
        if index >= len(text) * cutoff_ratio:
            logger.debug(f"Trimming noise: {phrase!r} found at index {index}")
            text = text[:index].rstrip()
    return text


def cap_description(text: str, limit: int) -> str:
    """Truncate ``text`` to ``limit`` characters."""
    if len(text) > limit:
        return text[:limit]
    return text


class JobScraper:
    """Turn a parsed page into a :class:`ScrapedJobData` snapshot.

    Attributes:
        config: Extractor configuration settings.
    """

    def __init__(
        self,
        config: ExtractorConfig | None = None,
        today: Callable[[], date] = _utc_today,
    ) -> None:
        """Initialize the scraper.

        Args:
            config: Extractor configuration. If not provided, uses default.
            today: Clock used for ``date_extracted``.
        """
        self.config = config or get_extractor_config()
        self._today = today

    async def extract(self, url: str, loader: PageLoader) -> ScrapedJobData:
        """Load ``url`` through ``loader`` and scrape it.

        Raises:
            ExtractionFailure: If the page cannot be loaded or has no
                usable description.
        """
        page = await loader.load(url)
        return self.scrape(page)

    def scrape(self, page: Page) -> ScrapedJobData:
        """Extract job data from a page.

        Raises:
            ExtractionFailure: If no description of at least
                ``min_description_length`` characters is found.
        """
        logger.info(f"Scraping job page: {page.url}")
        data = self._baseline(page)

        family = detect_family(page.hostname)
        logger.debug(f"Using {family.name} strategy for {page.hostname}")
        dom = family.extract(page)

        description = self._merge_description(family, data["description"], dom["description"])
        for name in ("title", "company", "location"):
            if not data[name] and dom[name]:
                data[name] = dom[name]

        if family.trim_noise:
            description = trim_noise(description, self.config.noise_cutoff_ratio)
        description = cap_description(description, self.config.max_description_length)

        if len(description) < self.config.min_description_length:
            raise ExtractionFailure("Could not detect job description")

        displayed = None
        if dom["description"]:
            displayed = cap_description(
                dom["description"], self.config.max_description_length
            )

        return ScrapedJobData(
            title=data["title"],
            company=data["company"],
            location=data["location"],
            salary=data["salary"],
            description=description,
            displayed_description=displayed,
            date_posted=data["date_posted"],
            date_closing=data["date_closing"],
            date_extracted=self._today().isoformat(),
            url=page.url,
            site_family=family.name,
        )

    def _baseline(self, page: Page) -> dict[str, Any]:
        """Fields from structured data, with meta-tag fallbacks."""
        posting = find_job_posting(page.json_ld) or {}
        if not posting:
            logger.debug("No JobPosting structured data found")

        return {
            "title": flatten(posting.get("title")) or page.meta("og:title") or page.title,
            "company": flatten(posting.get("hiringOrganization"))
            or page.meta("og:site_name"),
            "location": flatten(posting.get("jobLocation")),
            "salary": normalize_salary(posting.get("baseSalary")),
            "description": normalize_description(posting.get("description")),
            "date_posted": normalize_date(posting.get("datePosted")),
            "date_closing": normalize_date(posting.get("validThrough")),
        }

    def _merge_description(
        self, family: SiteFamily, baseline: str, dom_text: str
    ) -> str:
        if not dom_text:
            return baseline
        if family.merge_policy is MergePolicy.THRESHOLD:
            if len(dom_text) > self.config.generic_dom_min_length:
                logger.debug("Preferring DOM description (better formatting)")
                return dom_text
            return baseline
        if len(dom_text) > len(baseline):
            return dom_text
        return baseline
