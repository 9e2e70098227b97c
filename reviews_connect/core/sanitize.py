"""Input cleaning for values submitted to the host endpoints."""

import re
from typing import Any
from urllib.parse import urlparse

from bs4 import BeautifulSoup

_WHITESPACE = re.compile(r"\s+")
_ALLOWED_SCHEMES = {"http", "https"}


def sanitize_text_field(value: Any) -> str:
    """Strip markup and collapse whitespace to a single line of text."""
    if value is None:
        return ""
    text = str(value)
    if "<" in text:
        soup = BeautifulSoup(text, "html.parser")
        for tag in soup(["script", "style"]):
            tag.decompose()
        text = soup.get_text(" ")
    return _WHITESPACE.sub(" ", text).strip()


def sanitize_url(value: Any) -> str:
    """Return the URL when it is an absolute http(s) URL, otherwise an empty string."""
    if not value:
        return ""
    url = str(value).strip()
    if any(ch.isspace() for ch in url):
        return ""
    parsed = urlparse(url)
    if parsed.scheme.lower() not in _ALLOWED_SCHEMES or not parsed.netloc:
        return ""
    return url
