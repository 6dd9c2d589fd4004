"""Reconcile the parse service's answer with the locally scraped data."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from rolecase.extractor.models import ScrapedJobData
from rolecase.store.models import Feature, ParsedResult

logger = logging.getLogger(__name__)


def pick(remote: Any, local: Any) -> Any:
    """Prefer the remote value unless it is missing or blank."""
    if remote is not None and str(remote).strip():
        return remote
    return local


def _features(raw: Any) -> list[Feature]:
    if not isinstance(raw, list):
        return []
    features: list[Feature] = []
    for item in raw:
        try:
            features.append(Feature.model_validate(item))
        except ValidationError:
            logger.warning(f"Dropping malformed feature from parse result: {item!r}")
    return features


def _meta(remote: dict[str, Any]) -> dict[str, Any]:
    meta = remote.get("_meta", remote.get("meta"))
    return meta if isinstance(meta, dict) else {}


def _text(value: Any) -> str | None:
    return None if value is None else str(value)


def build_parsed_result(remote: dict[str, Any], scraped: ScrapedJobData) -> ParsedResult:
    """Compose the reviewable record from remote result and local scrape.

    Descriptions and the job URL always come from the scrape, since the
    service returns structure, not the page's formatting or address.
    """
    return ParsedResult(
        title=_text(pick(remote.get("title"), scraped.title)),
        company=_text(pick(remote.get("company"), scraped.company)),
        location=_text(pick(remote.get("location"), scraped.location)),
        salary_range=_text(pick(remote.get("salary_range"), scraped.salary)),
        date_posted=_text(pick(remote.get("date_posted"), scraped.date_posted)),
        date_closing=_text(pick(remote.get("date_closing"), scraped.date_closing)),
        date_extracted=_text(pick(remote.get("date_extracted"), scraped.date_extracted)),
        description=scraped.description,
        displayed_description=scraped.displayed_description,
        job_url=scraped.url,
        features=_features(remote.get("features")),
        meta=_meta(remote),
    )
