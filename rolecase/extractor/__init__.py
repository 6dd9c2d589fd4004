"""Job page extraction.

This module turns a job posting page into a normalized snapshot using
schema.org structured data and per-site DOM rules.

Public API:
    - JobScraper: Main service class for extraction
    - ScrapedJobData: Pydantic model for the extracted snapshot
    - Page: Parsed page surface
    - ExtractorConfig: Configuration settings for the extractor
    - get_extractor_config: Get the extractor configuration singleton
"""

from rolecase.extractor.config import ExtractorConfig, get_extractor_config
from rolecase.extractor.models import ScrapedJobData
from rolecase.extractor.page import Page
from rolecase.extractor.service import JobScraper

__all__ = [
    "JobScraper",
    "ScrapedJobData",
    "Page",
    "ExtractorConfig",
    "get_extractor_config",
]
