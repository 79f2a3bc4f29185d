"""Frontmatter splitting and line-level field editing.

The frontmatter block is treated as plain ``key: value`` lines rather
than parsed YAML so that rewriting a field leaves every other line,
comment and ordering exactly as the author wrote it.
"""

from __future__ import annotations

import re

from pydantic import BaseModel

DELIMITER = "---"

_QUOTES = re.compile(r"^['\"]|['\"]$")


class Document(BaseModel):
    """A markdown document split into its frontmatter block and body."""

    frontmatter: str = ""
    body: str = ""
    has_frontmatter: bool = False


def split_document(content: str) -> Document:
    """Split raw file content on the ``---`` delimiter.

    With at least two delimiters the text before the first one is
    dropped, the text between them is the frontmatter block and the
    remainder (later ``---`` kept intact) is the body.  Otherwise the
    whole content is body.
    """
    parts = content.split(DELIMITER, 2)
    if len(parts) < 3:
        return Document(body=content.strip())
    return Document(frontmatter=parts[1], body=parts[2].strip(), has_frontmatter=True)


def _field_pattern(name: str, rest: str) -> re.Pattern[str]:
    return re.compile(rf"^{re.escape(name)}:{rest}", re.MULTILINE)


def parse_field(block: str, name: str) -> str | None:
    """Return the value of the first ``name:`` line, or ``None`` if absent.

    Surrounding whitespace and a single pair of quote characters are
    stripped from the value.
    """
    match = _field_pattern(name, r"[ \t]*(.*)").search(block)
    if match is None:
        return None
    return _QUOTES.sub("", match.group(1).strip()).strip()


def set_field(block: str, name: str, value: str) -> str:
    """Set ``name`` to ``value``, replacing its line in place or appending it."""
    line = f"{name}: {value}"
    pattern = _field_pattern(name, r".*$")
    if pattern.search(block):
        return pattern.sub(lambda _: line, block, count=1)
    if block and not block.endswith("\n"):
        block += "\n"
    return f"{block}{line}\n"


def compose_document(block: str, body: str) -> str:
    """Join a frontmatter block and body back into file content."""
    inner = block.strip("\n")
    return f"{DELIMITER}\n{inner}\n{DELIMITER}\n{body}"
