"""HTML → plain text for planning pages.

Used when a planning summary is requested from a URL instead of raw text.
"""

import re

from bs4 import BeautifulSoup

_WHITESPACE = re.compile(r"\s+")


def html_to_text(markup: str) -> str:
    """Strip script/style blocks and tags, collapse whitespace, trim.

    Never raises; empty input gives empty output.
    """
    if not markup:
        return ""

    soup = BeautifulSoup(markup, "html.parser")
    for tag in soup.find_all(["script", "style"]):
        tag.decompose()

    text = soup.get_text(separator=" ")
    return _WHITESPACE.sub(" ", text).strip()
