"""Publish a single vault document to Ghost.

The pipeline runs its stages strictly in the order listed by
``PublishStage`` (content extracted, authenticated, content transformed,
submitted, local state updated, relocated) and stops at the first failure.

Nothing is written locally until Ghost has accepted the post, and
remote side effects already made are never rolled back.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from enum import StrEnum
from pathlib import PurePosixPath
from typing import Any

import httpx
from pydantic import BaseModel

from ghostpost.client import DEFAULT_TIMEOUT, GhostAdminClient
from ghostpost.config import GhostPostConfig
from ghostpost.errors import (
    ConfigurationError,
    PublishReport,
    RemoteError,
    ResolutionError,
)
from ghostpost.frontmatter import Document, compose_document, parse_field, set_field, split_document
from ghostpost.images import upload_images
from ghostpost.links import resolve_links
from ghostpost.slug import slugify
from ghostpost.token import mint_admin_token
from ghostpost.vault import SecretStore, Vault

logger = logging.getLogger(__name__)


class PublishStage(StrEnum):
    """Pipeline states, in the order they are reached."""

    IDLE = "idle"
    CONTENT_EXTRACTED = "content_extracted"
    AUTHENTICATED = "authenticated"
    CONTENT_TRANSFORMED = "content_transformed"
    SUBMITTED = "submitted"
    LOCAL_STATE_UPDATED = "local_state_updated"
    RELOCATED = "relocated"
    FAILED = "failed"


STAGE_ORDER = [
    PublishStage.IDLE,
    PublishStage.CONTENT_EXTRACTED,
    PublishStage.AUTHENTICATED,
    PublishStage.CONTENT_TRANSFORMED,
    PublishStage.SUBMITTED,
    PublishStage.LOCAL_STATE_UPDATED,
    PublishStage.RELOCATED,
]


class ExtractedContent(BaseModel):
    """The active document and the publish fields read from its frontmatter."""

    path: str
    document: Document
    title: str
    tags: str | None = None
    excerpt: str | None = None
    post_id: str | None = None


class PublishOutcome(BaseModel):
    """Result of a successful publish."""

    post_id: str
    url: str = ""
    created: bool
    path: str


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_tags(raw: str | None) -> list[dict[str, str]]:
    """Turn ``"a, b,,a"`` into ``[{"name": "a"}, {"name": "b"}]``."""
    names: list[str] = []
    for part in (raw or "").split(","):
        name = part.strip()
        if name and name not in names:
            names.append(name)
    return [{"name": name} for name in names]


def build_lexical(markdown: str) -> str:
    """Wrap raw markdown in a Lexical document holding a single markdown card."""
    envelope = {
        "root": {
            "children": [{"type": "markdown", "version": 1, "markdown": markdown}],
            "direction": None,
            "format": "",
            "indent": 0,
            "type": "root",
            "version": 1,
        }
    }
    return json.dumps(envelope)


def build_post(
    title: str,
    markdown: str,
    *,
    tags: list[dict[str, str]] | None = None,
    excerpt: str | None = None,
    updated_at: str | None = None,
) -> dict[str, Any]:
    """Assemble the post object sent to the Admin API."""
    post: dict[str, Any] = {
        "title": title,
        "slug": slugify(title),
        "status": "published",
        "lexical": build_lexical(markdown),
    }
    if tags:
        post["tags"] = tags
    if excerpt:
        post["custom_excerpt"] = excerpt
    if updated_at:
        post["updated_at"] = updated_at
    return post


def _iso_timestamp(moment: datetime) -> str:
    utc = moment.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class Publisher:
    """Runs one publish of one document.

    Args:
        config: Blog and vault settings for this run.
        vault: Storage collaborator for reading and rewriting documents.
        secrets: Secret store holding the Admin API key.
        transport: Optional httpx transport, e.g. a mock in tests.
        clock: Returns the current time; used for timestamps and dates.
    """

    def __init__(
        self,
        config: GhostPostConfig,
        vault: Vault,
        secrets: SecretStore,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._config = config
        self._vault = vault
        self._secrets = secrets
        self._transport = transport
        self._clock = clock
        self.stage = PublishStage.IDLE
        self.completed: list[PublishStage] = []

    @property
    def next_stage(self) -> PublishStage:
        """The stage currently being attempted (or last reached, when done)."""
        if not self.completed:
            return STAGE_ORDER[1]
        index = STAGE_ORDER.index(self.completed[-1])
        return STAGE_ORDER[min(index + 1, len(STAGE_ORDER) - 1)]

    def _advance(self, stage: PublishStage) -> None:
        self.stage = stage
        self.completed.append(stage)
        logger.debug("Publish stage: %s", stage)

    async def publish(self, active_path: str | None) -> PublishOutcome:
        """Publish or update the document at ``active_path``.

        Raises:
            PublishError: Any stage failed; the stage is left as ``failed``.
        """
        try:
            return await self._run(active_path)
        except Exception:
            self.stage = PublishStage.FAILED
            raise

    async def _run(self, active_path: str | None) -> PublishOutcome:
        extracted = await self._extract(active_path)
        self._advance(PublishStage.CONTENT_EXTRACTED)

        token = await self._authenticate()
        self._advance(PublishStage.AUTHENTICATED)

        async with httpx.AsyncClient(transport=self._transport, timeout=DEFAULT_TIMEOUT) as http:
            client = GhostAdminClient(self._config.blog_url, token, http)

            body = await upload_images(extracted.document.body, extracted.path, self._vault, client)
            body = await resolve_links(body, extracted.path, self._vault)
            self._advance(PublishStage.CONTENT_TRANSFORMED)

            remote, created = await self._submit(client, extracted, body)
            self._advance(PublishStage.SUBMITTED)

        post_id = str(remote["id"])
        url = remote.get("url") or ""
        await self._update_local_state(extracted, post_id, url, created)
        self._advance(PublishStage.LOCAL_STATE_UPDATED)

        final_path = await self._relocate(extracted.path)
        self._advance(PublishStage.RELOCATED)

        return PublishOutcome(post_id=post_id, url=url, created=created, path=final_path)

    async def _extract(self, active_path: str | None) -> ExtractedContent:
        if not active_path:
            raise ResolutionError("No active document to publish")
        path = PurePosixPath(active_path)
        if path.suffix.lower() != ".md":
            raise ResolutionError(f"Can only publish Markdown files: {active_path}")

        try:
            content = await self._vault.read_text(active_path)
        except OSError as exc:
            raise ResolutionError(f"Cannot read {active_path}: {exc}") from exc

        document = split_document(content)
        block = document.frontmatter
        return ExtractedContent(
            path=active_path,
            document=document,
            title=parse_field(block, "title") or path.stem,
            tags=parse_field(block, "ghostTags") or None,
            excerpt=parse_field(block, "ghostExcerpt") or None,
            post_id=parse_field(block, "ghostPostId") or None,
        )

    async def _authenticate(self) -> str:
        if not self._config.blog_url:
            raise ConfigurationError("Blog URL is not set")
        key_name = self._config.ghost.api_key_name.strip()
        if not key_name:
            raise ConfigurationError("Ghost Admin API key secret name is not set")

        credential = await self._secrets.get_secret(key_name)
        if not credential:
            raise ConfigurationError(f"Secret '{key_name}' not found or is empty")

        token = mint_admin_token(credential)
        if token is None:
            raise ConfigurationError(
                f"Secret '{key_name}' is not a valid Admin API key (expected id:secret)"
            )
        return token

    async def _submit(
        self,
        client: GhostAdminClient,
        extracted: ExtractedContent,
        body: str,
    ) -> tuple[dict[str, Any], bool]:
        tags = parse_tags(extracted.tags)
        if extracted.post_id:
            await client.get_post(extracted.post_id)
            post = build_post(
                extracted.title,
                body,
                tags=tags,
                excerpt=extracted.excerpt,
                updated_at=_iso_timestamp(self._clock()),
            )
            remote = await client.update_post(extracted.post_id, post)
            created = False
        else:
            post = build_post(extracted.title, body, tags=tags, excerpt=extracted.excerpt)
            remote = await client.create_post(post)
            created = True

        if not remote.get("id"):
            raise RemoteError("Ghost response did not include a post id", status=200)
        logger.info(
            "%s post %s (%s)",
            "Created" if created else "Updated",
            remote["id"],
            remote.get("url", ""),
        )
        return remote, created

    async def _update_local_state(
        self,
        extracted: ExtractedContent,
        post_id: str,
        url: str,
        created: bool,
    ) -> None:
        document = extracted.document
        block = document.frontmatter
        if not document.has_frontmatter:
            block = set_field("", "title", extracted.title)
        block = set_field(block, "ghostPostId", post_id)
        block = set_field(block, "publishedUrl", url)
        if created:
            published = self._clock().astimezone().date().isoformat()
            block = set_field(block, "publishedDate", published)

        await self._vault.write_text(extracted.path, compose_document(block, document.body))

    async def _relocate(self, path: str) -> str:
        folder = self._config.published_path
        if not folder or path.startswith(f"{folder}/"):
            return path

        try:
            await self._vault.create_folder(folder)
        except FileExistsError:
            logger.debug("Folder %s already exists", folder)

        new_path = f"{folder}/{PurePosixPath(path).name}"
        await self._vault.move(path, new_path)
        logger.info("Moved %s -> %s", path, new_path)
        return new_path


async def publish_document(
    config: GhostPostConfig,
    vault: Vault,
    secrets: SecretStore,
    active_path: str | None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    clock: Callable[[], datetime] = utc_now,
) -> PublishReport:
    """Publish one document, catching and reporting any failure.

    This is the single place errors are handled: the full exception is
    logged and the returned report carries a truncated user message.
    """
    report = PublishReport(source=active_path or "")
    publisher = Publisher(config, vault, secrets, transport=transport, clock=clock)

    try:
        outcome = await publisher.publish(active_path)
    except Exception as exc:
        stage = publisher.next_stage
        logger.error("Publishing %s failed during %s", active_path, stage.value, exc_info=True)
        report.record_failure(stage.value, exc)
    else:
        report.post_id = outcome.post_id
        report.url = outcome.url
        report.created = outcome.created
        report.final_path = outcome.path
    finally:
        for stage in publisher.completed:
            report.mark_stage_complete(stage.value)
        report.finish()

    return report


async def check_site(
    config: GhostPostConfig,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, Any]:
    """Probe the blog's Admin API site endpoint (no credentials needed)."""
    if not config.blog_url:
        raise ConfigurationError("Blog URL is not set")
    async with httpx.AsyncClient(transport=transport, timeout=DEFAULT_TIMEOUT) as http:
        return await GhostAdminClient(config.blog_url, None, http).site()
