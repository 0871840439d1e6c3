"""
Description cleanup for aggregated listings.

Turns raw HTML (or plain text) from feeds and APIs into readable plain text:
block elements become line breaks, list items become ``- `` bullets, entities
are unescaped, and whitespace is collapsed.  No markup survives.

If parsing fails for any reason, the original text is returned unchanged so a
single malformed description never costs the listing.
"""

import logging
import re
from typing import Optional

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

MAX_DESCRIPTION_CHARS = 20000

# Elements whose content is never shown to a reader
_DROP_TAGS = ["script", "style", "noscript", "iframe", "svg"]

_BLOCK_TAGS = [
    "p", "div", "section", "article", "blockquote", "pre", "table", "tr",
    "ul", "ol", "h1", "h2", "h3", "h4", "h5", "h6", "hr",
]

_SPACES_RE = re.compile(r"[ \t\r\f\v\u00a0]+")
_BLANK_LINES_RE = re.compile(r"\n{3,}")


def _html_to_text(raw: str) -> str:
    soup = BeautifulSoup(raw, "html.parser")

    for element in soup(_DROP_TAGS):
        element.decompose()

    for br in soup.find_all("br"):
        br.replace_with("\n")

    for li in soup.find_all("li"):
        li.insert_before("\n- ")

    for block in soup.find_all(_BLOCK_TAGS):
        block.insert_before("\n\n")
        block.insert_after("\n\n")

    text = soup.get_text()

    lines = [_SPACES_RE.sub(" ", line).strip() for line in text.split("\n")]
    text = "\n".join(lines)
    text = _BLANK_LINES_RE.sub("\n\n", text)
    return text.strip()


def normalize_description(raw: Optional[str]) -> str:
    """
    Convert a raw description to clean text.

    Args:
        raw: HTML or plain text; ``None`` is treated as empty

    Returns:
        Markup-free text capped at MAX_DESCRIPTION_CHARS, ``""`` for empty
        input, or the original text if conversion fails
    """
    if not raw:
        return ""
    if not isinstance(raw, str):
        raw = str(raw)

    try:
        return _html_to_text(raw)[:MAX_DESCRIPTION_CHARS]
    except Exception as e:
        logger.warning(f"HTML parsing failed, using raw content: {e}")
        return raw[:MAX_DESCRIPTION_CHARS]
