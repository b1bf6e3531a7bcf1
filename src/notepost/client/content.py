"""Note content normalization.

This module provides:
- strip_html: Convert rendered HTML into plain text
- normalize_content: Pick the editable form of a remote note
- count_characters: Character count shown against MAX_NOTE_LENGTH

Remote drafts carry two forms of their body: the raw text the author typed
and the HTML the site rendered from it. Local drafts only ever store plain
text, so every remote body goes through normalize_content() before it is
compared with or written to the local store.
"""

from __future__ import annotations

from bs4 import BeautifulSoup

MAX_NOTE_LENGTH = 280

BLOCK_TAGS = ["p", "div", "li", "blockquote", "h1", "h2", "h3", "h4", "h5", "h6"]


def strip_html(html: str) -> str:
    """Strip markup from rendered HTML.

    Line breaks become newlines and block elements are separated by a
    blank line. Entities are unescaped by the parser.

    Args:
        html: Rendered HTML.

    Returns:
        Plain text, trimmed.
    """
    soup = BeautifulSoup(html, "html.parser")
    for br in soup.find_all("br"):
        br.replace_with("\n")
    for block in soup.find_all(BLOCK_TAGS):
        block.insert_after("\n\n")

    text = soup.get_text()
    lines = [line.strip() for line in text.splitlines()]
    # Collapse runs of blank lines left between blocks
    collapsed: list[str] = []
    for line in lines:
        if not line and collapsed and not collapsed[-1]:
            continue
        collapsed.append(line)
    return "\n".join(collapsed).strip()


def normalize_content(raw: str | None, rendered: str) -> str:
    """Return the plain-text body of a remote note.

    The raw form is preferred; the rendered form is only used when the
    site did not return raw content (e.g. a view context).
    """
    if raw is not None:
        return raw.strip()
    return strip_html(rendered)


def count_characters(content: str) -> int:
    """Count characters the way the composer counter does."""
    return len(content)
