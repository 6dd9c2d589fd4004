"""Flattening and field normalisation for schema.org JobPosting data.

Structured job data on the web is nested in many inconsistent ways
(``hiringOrganization`` may be a string, an Organization object or a list
of them). Everything read from a JobPosting block goes through
:func:`flatten` first, so downstream code only ever sees plain text.
"""

from __future__ import annotations

import html
import re
from typing import Any

from bs4 import BeautifulSoup

# Keys that never carry human-readable text
SKIPPED_KEYS = frozenset({"url", "sameAs", "logo"})

CURRENCY_SYMBOLS = {"GBP": "£", "USD": "$", "EUR": "€"}
DEFAULT_CURRENCY = "GBP"

_TIME_SEPARATOR = re.compile(r"[T ]")


def _scalar_text(value: int | float | str) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def flatten(value: Any) -> str:
    """Collapse a nested JSON-LD value into plain text.

    - None and booleans become "".
    - Strings and numbers become their trimmed text.
    - Lists join their non-empty flattened items with ", ".
    - Objects join their flattened values with a space, skipping
      ``@``-prefixed keys and non-textual keys (url, sameAs, logo).
    """
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, (str, int, float)):
        return _scalar_text(value)
    if isinstance(value, (list, tuple)):
        parts = (flatten(item) for item in value)
        return ", ".join(part for part in parts if part)
    if isinstance(value, dict):
        parts = []
        for key, item in value.items():
            if str(key).startswith("@") or key in SKIPPED_KEYS:
                continue
            text = flatten(item)
            if text:
                parts.append(text)
        return " ".join(parts)
    return ""


def normalize_date(value: Any) -> str | None:
    """Return the date part of a timestamp ("2024-05-01T09:00" -> "2024-05-01")."""
    text = flatten(value)
    if not text:
        return None
    return _TIME_SEPARATOR.split(text, maxsplit=1)[0] or None


def _has_amount(value: Any) -> bool:
    if value is None or isinstance(value, (bool, dict, list)):
        return False
    return bool(value)


def normalize_salary(base_salary: Any) -> str | None:
    """Format a JobPosting ``baseSalary`` value.

    MonetaryAmount objects are rendered as "£1000 - £2000 YEAR" (range) or
    "£1000 YEAR" (minimum only); anything else falls back to its flattened
    text. A missing salary is None, never an empty string.
    """
    if not base_salary:
        return None
    if not isinstance(base_salary, dict):
        return flatten(base_salary) or None

    nested = base_salary.get("value")
    merged = {**base_salary, **(nested if isinstance(nested, dict) else {})}

    minimum = merged.get("minValue")
    if not _has_amount(minimum):
        minimum = merged.get("value")
    maximum = merged.get("maxValue")
    currency = merged.get("currency") or DEFAULT_CURRENCY
    unit = flatten(merged.get("unitText"))
    symbol = CURRENCY_SYMBOLS.get(currency, currency)

    if _has_amount(minimum) and _has_amount(maximum):
        return (
            f"{symbol}{_scalar_text(minimum)} - {symbol}{_scalar_text(maximum)} {unit}"
        )
    if _has_amount(minimum):
        return f"{symbol}{_scalar_text(minimum)} {unit}"
    return flatten(base_salary) or None


def html_to_text(markup: str) -> str:
    """Render an HTML fragment as its visible text."""
    soup = BeautifulSoup(markup, "html.parser")
    for element in soup(["script", "style"]):
        element.decompose()
    return soup.get_text("\n", strip=True)


def normalize_description(value: Any) -> str:
    """Flatten a description, rendering embedded markup to plain text."""
    text = flatten(value)
    if "&lt;" in text:
        text = html.unescape(text)
    if "<" in text:
        return html_to_text(text)
    return text
