"""URL slug generation for post titles and heading anchors."""

from __future__ import annotations

import re
import unicodedata

_WHITESPACE = re.compile(r"\s+")
_NON_SLUG = re.compile(r"[^a-z0-9_-]+")
_HYPHENS = re.compile(r"[-_]{2,}|_")


def slugify(text: str) -> str:
    """Turn arbitrary text into a URL-safe slug.

    Accents are stripped, whitespace runs become single hyphens and
    anything outside ``[a-z0-9-]`` is dropped.  Underscores count as
    hyphens so the result is stable under repeated application.
    Never raises; empty input gives an empty slug.
    """
    decomposed = unicodedata.normalize("NFD", str(text))
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    slug = stripped.lower().strip()
    slug = _WHITESPACE.sub("-", slug)
    slug = _NON_SLUG.sub("", slug)
    return _HYPHENS.sub("-", slug)
