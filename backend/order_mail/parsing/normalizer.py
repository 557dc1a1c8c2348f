"""
Order Email Text Normalizer

Flattens raw email bodies and snippets into a single searchable string.
Steps run in a fixed order because later patterns assume the earlier
noise is already gone:

1. Markup tags -> space
2. Inline CSS (declarations, colors, lengths, layout keywords) -> space
3. HTML entities decoded
4. Whitespace collapsed
"""

import re
from typing import Optional

from bs4 import BeautifulSoup

TAG_PATTERN = re.compile(r"<[^>]+>")

CSS_NOISE_PATTERNS = [
    # property: value; or property: value}
    re.compile(r"[a-z-]+:\s*[^;{}<&\n]+[;}]", re.IGNORECASE),
    re.compile(r"rgba?\([^)]+\)", re.IGNORECASE),
    re.compile(r"(?<!&)#[a-f0-9]{3,8}\b", re.IGNORECASE),
    re.compile(r"\d+(?:\.\d+)?(?:px|rem|em)\b|\d+(?:\.\d+)?%", re.IGNORECASE),
    re.compile(r"\b(?:nowrap|solid|dotted|dashed|block|inline|flex)\b", re.IGNORECASE),
]

WHITESPACE_PATTERN = re.compile(r"\s+")


def strip_tags(text: str) -> str:
    return TAG_PATTERN.sub(" ", text)


def strip_css_noise(text: str) -> str:
    for pattern in CSS_NOISE_PATTERNS:
        text = pattern.sub(" ", text)
    return text


def decode_entities(text: str) -> str:
    """Decode named and numeric HTML entities (&amp;, &#8369;, &nbsp;)."""
    if "&" not in text:
        return text
    return BeautifulSoup(text, "html.parser").get_text()


def clean_text(text: Optional[str]) -> str:
    """
    Normalize a raw body or snippet for pattern extraction.

    Lossy: favors extractability over fidelity.

    Args:
        text: Raw body/snippet (may be None or contain HTML)

    Returns:
        Single-line cleaned text
    """
    if not text:
        return ""

    text = strip_tags(text)
    text = strip_css_noise(text)
    text = decode_entities(text)
    return WHITESPACE_PATTERN.sub(" ", text).strip()


def combine_message_text(snippet: Optional[str], body: Optional[str]) -> str:
    """Cleaned snippet and body joined into the common extractor input."""
    return f"{clean_text(snippet)} {clean_text(body)}"
