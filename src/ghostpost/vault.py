"""Storage and secret collaborators used by the publish pipeline.

The pipeline only talks to the narrow async protocols defined here.
Paths are vault-relative POSIX strings such as ``writing/My Post.md``.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
import shutil
from pathlib import Path, PurePosixPath
from typing import Protocol

logger = logging.getLogger(__name__)


class Vault(Protocol):
    """File access and link lookup within a vault."""

    async def read_text(self, path: str) -> str: ...

    async def read_binary(self, path: str) -> bytes: ...

    async def write_text(self, path: str, content: str) -> None: ...

    async def move(self, path: str, new_path: str) -> None: ...

    async def create_folder(self, path: str) -> None: ...

    async def resolve_link(self, name: str, from_path: str) -> str | None: ...


class SecretStore(Protocol):
    """Named secret lookup."""

    async def get_secret(self, name: str) -> str | None: ...


def link_candidates(name: str, from_path: str) -> list[str]:
    """Vault paths a link ``name`` may refer to, most specific first.

    Each name is tried as written and then with ``.md`` appended, since
    note names may contain dots (``Python 3.12 notes``).  The source
    document's folder is tried before the vault root.
    """
    target = name.strip().lstrip("/")
    names = [target]
    if not target.lower().endswith(".md"):
        names.append(f"{target}.md")

    folder = PurePosixPath(from_path).parent
    candidates = []
    if str(folder) != ".":
        candidates.extend(str(folder / n) for n in names)
    candidates.extend(str(PurePosixPath(n)) for n in names)
    return candidates


class LocalVault:
    """A vault backed by a directory on the local filesystem.

    Blocking file operations run in a worker thread so the event loop is
    only suspended, never blocked.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).expanduser().resolve()

    def _abs(self, path: str) -> Path:
        return self.root / PurePosixPath(path)

    def relative(self, path: str | Path) -> str:
        """Express ``path`` (absolute or CWD-relative) relative to the vault root."""
        candidate = Path(path).expanduser()
        if not candidate.is_absolute():
            inside = self.root / candidate
            candidate = inside if inside.exists() else candidate.resolve()
        return candidate.resolve().relative_to(self.root).as_posix()

    async def read_text(self, path: str) -> str:
        return await asyncio.to_thread(self._abs(path).read_text, encoding="utf-8")

    async def read_binary(self, path: str) -> bytes:
        return await asyncio.to_thread(self._abs(path).read_bytes)

    async def write_text(self, path: str, content: str) -> None:
        await asyncio.to_thread(self._write_atomic, self._abs(path), content)

    async def move(self, path: str, new_path: str) -> None:
        await asyncio.to_thread(self._move, self._abs(path), self._abs(new_path))

    async def create_folder(self, path: str) -> None:
        await asyncio.to_thread(self._abs(path).mkdir, parents=True, exist_ok=True)

    async def resolve_link(self, name: str, from_path: str) -> str | None:
        return await asyncio.to_thread(self._resolve_link, name, from_path)

    def _resolve_link(self, name: str, from_path: str) -> str | None:
        candidates = link_candidates(name, from_path)
        for candidate in candidates:
            if self._abs(candidate).is_file():
                return candidate

        # Fall back to a vault-wide lookup by file name, shortest path first
        filenames = {PurePosixPath(c).name for c in candidates}
        matches = sorted(
            (p for p in self.root.rglob("*") if p.name in filenames and p.is_file()),
            key=lambda p: (len(p.relative_to(self.root).parts), p.as_posix()),
        )
        if not matches:
            logger.debug("No vault file for link %r from %s", name, from_path)
            return None
        return matches[0].relative_to(self.root).as_posix()

    @staticmethod
    def _move(source: Path, target: Path) -> None:
        if target.exists():
            raise FileExistsError(f"Refusing to overwrite {target}")
        shutil.move(source, target)

    @staticmethod
    def _write_atomic(target: Path, content: str) -> None:
        tmp = target.with_name(f".{target.name}.tmp")
        tmp.write_text(content, encoding="utf-8")
        try:
            os.replace(tmp, target)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise


def secret_env_var(name: str) -> str:
    """Environment variable holding secret ``name`` (``ghost-admin-api-key`` -> ``GHOST_ADMIN_API_KEY``)."""
    return re.sub(r"[^A-Za-z0-9]+", "_", name).strip("_").upper()


class EnvSecretStore:
    """Secrets read from environment variables."""

    def __init__(self, environ: dict[str, str] | None = None) -> None:
        self._environ = environ

    async def get_secret(self, name: str) -> str | None:
        environ = os.environ if self._environ is None else self._environ
        value = environ.get(secret_env_var(name), "")
        return value or None
