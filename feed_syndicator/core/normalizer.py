"""Content normalization for post text.

Turns raw post text into an HTML-safe title and body. Escaping happens
exactly once, before any splitting, so markup appended later (line breaks,
image fragments) is never escaped a second time.
"""

import re
from typing import NamedTuple, Optional

LINE_BREAK = "<br>\n"

# A line made only of five or more hyphens or em dashes, LF or CRLF terminated
LOCALE_DIVIDER = re.compile(r"^[-—]{5,}\r?$", re.MULTILINE)
BILINGUAL_NOTICE = "(請注意：中文內容設於下方)\n"

_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&apos;"),
)


class NormalizedContent(NamedTuple):
    title: str
    body: str


def escape_html(text: str) -> str:
    """Escape the five reserved HTML characters with named entities."""
    for char, entity in _ESCAPES:
        text = text.replace(char, entity)
    return text


def strip_secondary_locale(text: str) -> str:
    """Keep only the primary-language segment of a dual-language post."""
    primary = LOCALE_DIVIDER.split(text, maxsplit=1)[0]
    return primary.replace(BILINGUAL_NOTICE, "", 1)


def to_html_lines(text: str) -> str:
    return text.replace("\n", LINE_BREAK)


def normalize_content(text: Optional[str], *, split_locale: bool = False) -> NormalizedContent:
    """Normalize raw post text into a title and an HTML body.

    Args:
        text: Raw post text, possibly None
        split_locale: Drop everything from the first divider line onward

    Returns:
        NormalizedContent where the title is the first paragraph and the body
        is the whole text with explicit line breaks
    """
    content = escape_html(text or "").strip()

    if split_locale:
        content = strip_secondary_locale(content).strip()

    title = content.split("\n\n", 1)[0]
    return NormalizedContent(title=title, body=to_html_lines(content))
