"""Upload local images referenced by a document and point them at Ghost."""

from __future__ import annotations

import logging
from pathlib import PurePosixPath

from ghostpost.client import GhostAdminClient
from ghostpost.errors import ResolutionError
from ghostpost.references import Replacement, apply_replacements, find_images
from ghostpost.vault import Vault

logger = logging.getLogger(__name__)

MIME_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
}
DEFAULT_MIME_TYPE = "application/octet-stream"


def guess_mime_type(path: str) -> str:
    """MIME type for an image path, by extension."""
    ext = PurePosixPath(path).suffix.lstrip(".").lower()
    return MIME_TYPES.get(ext, DEFAULT_MIME_TYPE)


async def upload_images(
    body: str,
    source_path: str,
    vault: Vault,
    client: GhostAdminClient,
) -> str:
    """Upload every local image in ``body`` and rewrite it to the remote URL.

    Images are uploaded one at a time in order of appearance; the same
    file referenced twice is uploaded twice.

    Args:
        body: Markdown body of the document being published.
        source_path: Vault path of that document, used to resolve relative images.
        vault: Vault to read images from.
        client: Authenticated Ghost client.

    Returns:
        The body with each image rewritten as ``![alt](remote-url)``.

    Raises:
        ResolutionError: An image is not present in the vault.
        RemoteError: Ghost rejected an upload.
    """
    references = find_images(body)
    if not references:
        return body

    replacements: list[Replacement] = []
    for ref in references:
        image_path = await vault.resolve_link(ref.path, source_path)
        if image_path is None:
            raise ResolutionError(f"Image not found: {ref.path}")

        content = await vault.read_binary(image_path)
        url = await client.upload_image(
            content,
            filename=PurePosixPath(image_path).name,
            content_type=guess_mime_type(image_path),
            ref=image_path,
        )
        logger.info("Uploaded %s -> %s", image_path, url)
        replacements.append(Replacement(ref.start, ref.end, f"![{ref.alt}]({url})"))

    return apply_replacements(body, replacements)
