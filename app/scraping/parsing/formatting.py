"""
Value rendering rules shared by the listing extractors.
"""

from __future__ import annotations

import math
import re
from typing import Any

_SLUG_SEPARATOR_RE = re.compile(r"[\s/]+")
_SLUG_INVALID_RE = re.compile(r"[^a-z0-9_]")


def js_truthy(value: Any) -> bool:
    """
    Truthiness as the site's own scripts see it: empty containers are truthy.
    """

    if value is None or value is False:
        return False
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value != 0 and not math.isnan(value)
    if isinstance(value, str):
        return value != ""
    return True


def js_string(value: Any) -> str:
    """
    Render a decoded JSON value the way `String(value)` would in a browser.
    """

    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, list):
        return ", ".join(js_string(item) for item in value)
    return str(value)


def to_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_money(value: Any) -> str | None:
    """
    `"$"` plus a thousands-grouped integer, or None for absent/non-numeric input.
    """

    number = to_number(value)
    if number is None:
        return None
    return f"${round_half_up(number):,}"


def format_estimate_range(center: Any, low_percent: Any, high_percent: Any) -> str | None:
    """
    Render `"$low - $high"` around `center` using the published percent offsets.
    """

    if not js_truthy(center):
        return None
    center_value = to_number(center)
    low_value = to_number(low_percent)
    high_value = to_number(high_percent)
    if center_value is None or low_value is None or high_value is None:
        return None

    low = round_half_up(center_value * (1 - low_value / 100))
    high = round_half_up(center_value * (1 + high_value / 100))
    return f"${low:,} - ${high:,}"


def slugify_label(label: str) -> str:
    """
    Lowercase, collapse whitespace/slash runs to `_`, drop anything else.
    """

    lowered = label.lower()
    collapsed = _SLUG_SEPARATOR_RE.sub("_", lowered)
    return _SLUG_INVALID_RE.sub("", collapsed)


def clean_text(value: str) -> str:
    return re.sub(r"\s+", " ", value).strip()
