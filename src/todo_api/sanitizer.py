from __future__ import annotations

import html
from typing import Optional

import nh3

# Elements whose text content is dropped along with the markup.
_DROP_CONTENT_TAGS = {"script", "style"}
_MAX_UNESCAPE_PASSES = 5


def _clean(text: str) -> str:
    return nh3.clean(text, tags=set(), clean_content_tags=_DROP_CONTENT_TAGS)


# PUBLIC_INTERFACE
def sanitize(text: Optional[str]) -> Optional[str]:
    """
    Remove every HTML tag from free text before it is persisted.

    Script and style bodies are removed entirely, other tags are unwrapped so
    their text survives. The result is HTML-escaped ("&" becomes "&amp;").
    None passes through unchanged.
    """
    if text is None:
        return None
    return _clean(text)


# PUBLIC_INTERFACE
def strip_markup(text: Optional[str]) -> Optional[str]:
    """
    Plain-text variant of sanitize() for short fields such as titles.

    Tags are removed as in sanitize(), then entities are unescaped so "R&D"
    stays "R&D". Cleaning repeats until the text is stable, so escaped markup
    like "&lt;script&gt;" cannot come back as a live tag.
    """
    if text is None:
        return None
    current = text
    for _ in range(_MAX_UNESCAPE_PASSES):
        unescaped = html.unescape(_clean(current))
        if unescaped == current:
            return current
        current = unescaped
    # Still changing (deeply nested escapes): keep the escaped, tag-free form.
    return _clean(current)
