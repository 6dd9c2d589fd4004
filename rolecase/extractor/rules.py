"""DOM extraction rules and site families.

A site family is a named rule set: for every field, an ordered sequence of
rules tried until one yields text. Families differ only in their rules and
in how their DOM description is weighed against structured data; adding a
job board means adding a :class:`SiteFamily` to :data:`SITE_FAMILIES`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

from rolecase.extractor.page import Page

DOM_FIELDS = ("description", "title", "company", "location")


class ExtractionRule(ABC):
    """One way of reading a field from a page."""

    @abstractmethod
    def attempt(self, page: Page) -> str | None:
        """Return the field text, or None when the rule does not apply."""


@dataclass(frozen=True)
class SelectorRule(ExtractionRule):
    """Visible text of the first element matching a CSS selector."""

    selector: str
    scope: str | None = None

    def attempt(self, page: Page) -> str | None:
        return page.select_text(self.selector, self.scope).strip() or None


@dataclass(frozen=True)
class BodyTextRule(ExtractionRule):
    """Visible text of the whole page, the last resort for descriptions."""

    def attempt(self, page: Page) -> str | None:
        return page.body_text().strip() or None


def first_match(rules: Sequence[ExtractionRule], page: Page) -> str:
    """Text from the first rule that yields any, else ""."""
    for rule in rules:
        text = rule.attempt(page)
        if text:
            return text
    return ""


class MergePolicy(str, Enum):
    """How a family's DOM description competes with the structured one."""

    # Curated selectors: more characters means a more complete extraction
    LONGEST = "longest"
    # Generic pages: structured text often has no line breaks, so any
    # substantial DOM text wins
    THRESHOLD = "threshold"


@dataclass(frozen=True)
class SiteFamily:
    """A named set of extraction rules for a group of sites.

    Attributes:
        name: Family identifier, stored on the scraped data.
        host_markers: Substrings of a hostname that select this family.
        rules: Ordered rules per DOM field.
        merge_policy: How the DOM description is weighed.
        trim_noise: Whether "Related jobs"-style footers are trimmed.
    """

    name: str
    host_markers: tuple[str, ...]
    rules: dict[str, tuple[ExtractionRule, ...]] = field(default_factory=dict)
    merge_policy: MergePolicy = MergePolicy.LONGEST
    trim_noise: bool = False

    def matches(self, hostname: str) -> bool:
        return any(marker in hostname for marker in self.host_markers)

    def extract(self, page: Page) -> dict[str, str]:
        """Run every field's rules against the page."""
        return {name: first_match(self.rules.get(name, ()), page) for name in DOM_FIELDS}


def _selectors(*selectors: str, scope: str | None = None) -> tuple[SelectorRule, ...]:
    return tuple(SelectorRule(selector, scope) for selector in selectors)


_INDEED_PANE = "#jobsearch-ViewjobPaneWrapper"

INDEED = SiteFamily(
    name="indeed",
    host_markers=("indeed",),
    rules={
        "description": _selectors(
            "#jobDescriptionText", ".jobsearch-jobDescriptionText", scope=_INDEED_PANE
        ),
        "title": _selectors("h1", ".jobsearch-JobInfoHeader-title", scope=_INDEED_PANE),
        "company": _selectors("div[data-company-name]", scope=_INDEED_PANE),
        "location": _selectors(".companyLocation", scope=_INDEED_PANE),
    },
)

LINKEDIN = SiteFamily(
    name="linkedin",
    host_markers=("linkedin",),
    rules={
        "description": _selectors(
            ".description__text", ".jobs-description__content", "#job-details"
        ),
        "title": _selectors("h1.top-card-layout__title", "h1"),
        "company": _selectors("a.topcard__org-name-link"),
        "location": _selectors("span.topcard__flavor--bullet"),
    },
)

GREENHOUSE = SiteFamily(
    name="greenhouse",
    host_markers=("greenhouse.io",),
    rules={
        "description": _selectors(".job__description", "#content", "#app_body"),
        "title": _selectors(".job__title h1", "h1.app-title", "h1"),
        "company": _selectors(".company-name"),
        "location": _selectors(".job__location", ".location"),
    },
)

LEVER = SiteFamily(
    name="lever",
    host_markers=("lever.co",),
    rules={
        "description": _selectors(
            "[data-qa='job-description']", ".posting-page .content", ".section-wrapper"
        ),
        "title": _selectors(".posting-headline h2", "h2"),
        "location": _selectors(".posting-categories .location", ".location"),
    },
)

GENERIC = SiteFamily(
    name="generic",
    host_markers=(),
    rules={
        "description": (
            *_selectors("article", "main", ".job-description", ".description"),
            BodyTextRule(),
        ),
        "title": _selectors("h1"),
        "company": _selectors(".company", ".org"),
        "location": _selectors(".location"),
    },
    merge_policy=MergePolicy.THRESHOLD,
    trim_noise=True,
)

# Curated families, checked in order; GENERIC is the fallback
SITE_FAMILIES: tuple[SiteFamily, ...] = (INDEED, LINKEDIN, GREENHOUSE, LEVER)


def detect_family(hostname: str) -> SiteFamily:
    """Pick the site family for a hostname.

    Pure function of the host name: no page content is consulted.
    """
    host = hostname.lower()
    for family in SITE_FAMILIES:
        if family.matches(host):
            return family
    return GENERIC
