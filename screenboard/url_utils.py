"""Shared URL utilities — slugs, file names, URL resolution and templates."""

from __future__ import annotations

import itertools
import re
from typing import Optional
from urllib.parse import urljoin, urlparse

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")

SLUG_MAX_LENGTH = 64
FILE_NAME_MAX_LENGTH = 80


def _collapse(value: str, max_length: int) -> str:
    slug = _NON_ALNUM_RE.sub("-", value.lower().strip()).strip("-")
    # Truncation can expose a hyphen at the cut point.
    return slug[:max_length].rstrip("-")


def slugify(value: str) -> str:
    """Derive a stable id from a human-readable name."""
    return _collapse(value, SLUG_MAX_LENGTH)


def file_safe_name(value: str) -> str:
    """Derive a screenshot file stem from a manifest entry id."""
    return _collapse(value, FILE_NAME_MAX_LENGTH)


def resolve_url(base_url: Optional[str], url: str) -> str:
    """Resolve a screen or step URL against the app's base URL.

    Absolute URLs are returned unchanged; without a base URL the input is
    returned as-is.
    """
    if not base_url:
        return url
    if urlparse(url).scheme:
        return url
    return urljoin(base_url, url)


def expand_template(template: str, params: Optional[dict[str, list[str]]] = None) -> list[str]:
    """Expand a URL template into the cartesian product of its parameters.

    Both ``:name`` and ``{name}`` placeholders are substituted. Combinations
    follow key declaration order, then the order of each key's values.
    """
    if not params:
        return [template]

    keys = list(params)
    urls = []
    for combo in itertools.product(*(params[key] for key in keys)):
        url = template
        for key, value in zip(keys, combo):
            url = re.sub(rf":{re.escape(key)}\b", lambda _m, v=value: v, url)
            url = url.replace("{" + key + "}", value)
        urls.append(url)
    return urls
