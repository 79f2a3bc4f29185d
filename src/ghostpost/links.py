"""Rewrite wiki links into links to the target notes' published posts."""

from __future__ import annotations

import logging

from ghostpost.errors import ResolutionError
from ghostpost.frontmatter import parse_field, split_document
from ghostpost.references import LinkReference, Replacement, apply_replacements, find_links
from ghostpost.slug import slugify
from ghostpost.vault import Vault

logger = logging.getLogger(__name__)


async def published_url_for(link: LinkReference, source_path: str, vault: Vault) -> str:
    """Look up the published URL of the note a link points at.

    Raises:
        ResolutionError: The note does not exist or has not been published.
    """
    target_path = await vault.resolve_link(link.target, source_path)
    if target_path is None:
        raise ResolutionError(f"Could not resolve link [[{link.target}]] from {source_path}")

    doc = split_document(await vault.read_text(target_path))
    url = parse_field(doc.frontmatter, "publishedUrl") if doc.has_frontmatter else None
    if not url:
        raise ResolutionError(f"Linked post '{link.target}' is not published yet")

    if link.anchor:
        url = f"{url}#{slugify(link.anchor)}"
    return url


async def resolve_links(body: str, source_path: str, vault: Vault) -> str:
    """Replace every ``[[Note#Heading|text]]`` with a markdown link.

    All links are found before any is resolved.  A single unresolvable
    link aborts the whole rewrite.
    """
    links = find_links(body)
    replacements: list[Replacement] = []
    for link in links:
        url = await published_url_for(link, source_path, vault)
        text = link.display or link.target
        logger.debug("Resolved [[%s]] -> %s", link.target, url)
        replacements.append(Replacement(link.start, link.end, f"[{text}]({url})"))
    return apply_replacements(body, replacements)
