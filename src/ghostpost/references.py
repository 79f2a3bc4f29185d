"""Scanning of embedded image and note references in markdown.

Each scan runs once over the text it is given and yields references
carrying their span in that text.  Rewrites are applied by splicing
replacements into the original text by span, so duplicate or adjacent
references never interfere with one another.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal
from urllib.parse import unquote

# ![alt](path) or ![alt](<path with spaces> "title")
MARKDOWN_IMAGE_PATTERN = re.compile(
    r"!\[(?P<alt>[^\]]*)\]\(\s*(?P<target><[^>]+>|[^)\s]+)(?:\s+[\"'][^)]*[\"'])?\s*\)"
)

# ![[image.png]] or ![[image.png|300]]
EMBED_IMAGE_PATTERN = re.compile(r"!\[\[(?P<target>[^\]|]+)(?:\|[^\]]*)?\]\]")

# [[Note]], [[Note#Heading]], [[Note|text]], [[Note#Heading|text]] but not ![[...]]
WIKILINK_PATTERN = re.compile(
    r"(?<!!)\[\[(?P<target>[^\]#|]+)(?:#(?P<anchor>[^\]|]*))?(?:\|(?P<display>[^\]]*))?\]\]"
)

REMOTE_PREFIXES = ("http://", "https://", "data:", "//")


@dataclass(frozen=True)
class ImageReference:
    """A local image embedded in the document."""

    start: int
    end: int
    path: str
    alt: str
    syntax: Literal["markdown", "embed"]


@dataclass(frozen=True)
class LinkReference:
    """A wiki-style link to another note."""

    start: int
    end: int
    target: str
    anchor: str | None = None
    display: str | None = None


@dataclass(frozen=True)
class Replacement:
    start: int
    end: int
    text: str


def is_remote(target: str) -> bool:
    return target.lower().startswith(REMOTE_PREFIXES)


def find_images(text: str) -> list[ImageReference]:
    """Find local images in both markdown and embed syntax, in document order.

    Markdown images that already point at a remote URL are skipped.
    """
    found: list[ImageReference] = []
    for match in MARKDOWN_IMAGE_PATTERN.finditer(text):
        target = match.group("target").strip("<>").strip()
        if is_remote(target):
            continue
        found.append(
            ImageReference(
                start=match.start(),
                end=match.end(),
                path=unquote(target),
                alt=match.group("alt"),
                syntax="markdown",
            )
        )
    for match in EMBED_IMAGE_PATTERN.finditer(text):
        found.append(
            ImageReference(
                start=match.start(),
                end=match.end(),
                path=match.group("target").strip(),
                alt="",
                syntax="embed",
            )
        )
    return sorted(found, key=lambda ref: ref.start)


def find_links(text: str) -> list[LinkReference]:
    """Find wiki links to other notes, in document order."""
    links = []
    for match in WIKILINK_PATTERN.finditer(text):
        anchor = match.group("anchor")
        display = match.group("display")
        links.append(
            LinkReference(
                start=match.start(),
                end=match.end(),
                target=match.group("target").strip(),
                anchor=anchor.strip() if anchor and anchor.strip() else None,
                display=display if display else None,
            )
        )
    return links


def apply_replacements(text: str, replacements: list[Replacement]) -> str:
    """Splice non-overlapping replacements into ``text`` by span."""
    pieces: list[str] = []
    cursor = 0
    for rep in sorted(replacements, key=lambda r: r.start):
        if rep.start < cursor:
            raise ValueError(f"Overlapping replacement at offset {rep.start}")
        pieces.append(text[cursor : rep.start])
        pieces.append(rep.text)
        cursor = rep.end
    pieces.append(text[cursor:])
    return "".join(pieces)
