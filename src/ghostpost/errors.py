"""Error taxonomy and structured reporting for publish runs."""

from __future__ import annotations

import contextlib
from datetime import datetime

from pydantic import BaseModel, Field

USER_MESSAGE_LIMIT = 200


class PublishError(Exception):
    """Base class for every failure the publish pipeline raises itself."""

    kind = "unknown"


class ConfigurationError(PublishError):
    """Missing blog URL, secret name, or a malformed Admin API key."""

    kind = "configuration"


class ResolutionError(PublishError):
    """A document, link target, or image could not be found or used."""

    kind = "resolution"


class RemoteError(PublishError):
    """Non-2xx response from the Ghost Admin API."""

    kind = "remote"

    def __init__(self, message: str = "", *, status: int = 0, body: str = "") -> None:
        self.status = status
        self.body = body
        super().__init__(message)

    def __str__(self) -> str:
        text = super().__str__()
        if self.body:
            text = f"{text}: {self.body}"
        return text


class PostNotFoundError(RemoteError):
    """The post referenced by ``ghostPostId`` no longer exists remotely."""


def describe_error(exc: BaseException) -> str:
    """Best-effort one-line description of any exception."""
    text = ""
    with contextlib.suppress(Exception):
        text = str(exc)
    return text or exc.__class__.__name__


def truncate(text: str, limit: int = USER_MESSAGE_LIMIT) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3].rstrip() + "..."


class ErrorRecord(BaseModel):
    """The failure that ended a publish run."""

    stage: str
    error_type: str = "unknown"
    message: str = ""
    status: int | None = None
    timestamp: datetime = Field(default_factory=datetime.now)


class PublishReport(BaseModel):
    """Summary of a single publish run."""

    source: str = ""
    started_at: datetime = Field(default_factory=datetime.now)
    finished_at: datetime | None = None
    stages_completed: list[str] = Field(default_factory=list)
    error: ErrorRecord | None = None
    post_id: str = ""
    url: str = ""
    created: bool = False
    final_path: str = ""

    def mark_stage_complete(self, stage: str) -> None:
        """Record that a pipeline stage completed."""
        if stage not in self.stages_completed:
            self.stages_completed.append(stage)

    def record_failure(self, stage: str, exc: BaseException) -> None:
        """Record the exception that aborted the run."""
        self.error = ErrorRecord(
            stage=stage,
            error_type=getattr(exc, "kind", "unknown"),
            message=describe_error(exc),
            status=getattr(exc, "status", None),
        )

    def finish(self) -> None:
        self.finished_at = datetime.now()

    @property
    def success(self) -> bool:
        return self.error is None

    def user_message(self, limit: int = USER_MESSAGE_LIMIT) -> str:
        """Single truncated line suitable for showing to the user."""
        if self.error is None:
            verb = "Published" if self.created else "Updated"
            return truncate(f"{verb} {self.url or self.post_id}", limit)
        return truncate(f"Publish failed: {self.error.message}", limit)

    def summary_text(self) -> str:
        """Human-readable multi-line summary of the run."""
        duration = ""
        if self.finished_at and self.started_at:
            secs = (self.finished_at - self.started_at).total_seconds()
            duration = f" in {secs:.1f}s"

        status = "completed" if self.success else "failed"
        lines = [f"Publish {status}{duration}"]
        if self.source:
            lines.append(f"Document: {self.source}")
        if self.stages_completed:
            lines.append(f"Stages: {', '.join(self.stages_completed)}")
        if self.url:
            lines.append(f"URL: {self.url}")
        if self.final_path and self.final_path != self.source:
            lines.append(f"Moved to: {self.final_path}")
        if self.error is not None:
            lines.append(f"[FATAL] {self.error.stage} ({self.error.error_type}): {self.error.message}")
        return "\n".join(lines)
