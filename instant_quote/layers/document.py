"""
Parsed product page shared by every resolver.
The soup is parsed once per extraction and never mutated.
"""
import re
from typing import Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Comment, Declaration, Doctype, ProcessingInstruction


WHITESPACE_RE = re.compile(r"\s+")

# Text under these tags is never visible page copy
INVISIBLE_PARENTS = {"script", "style", "noscript", "template", "svg", "head", "title"}


def normalize_whitespace(text: Optional[str]) -> Optional[str]:
    """Collapse runs of whitespace and trim; empty results become None."""
    if text is None:
        return None
    cleaned = WHITESPACE_RE.sub(" ", str(text)).strip()
    return cleaned or None


class ProductDocument:
    """A product page: its URL, its parsed tree and its visible text."""

    def __init__(self, html: str, url: str):
        self.url = url
        self.soup = BeautifulSoup(html, "lxml")
        self._text: Optional[str] = None

    @property
    def text(self) -> str:
        """Whitespace-normalized visible text of the page body."""
        if self._text is None:
            root = self.soup.body or self.soup
            parts = []
            for string in root.find_all(string=True):
                if isinstance(string, (Comment, Declaration, Doctype, ProcessingInstruction)):
                    continue
                if string.parent is not None and string.parent.name in INVISIBLE_PARENTS:
                    continue
                parts.append(str(string))
            self._text = normalize_whitespace(" ".join(parts)) or ""
        return self._text

    def meta(self, *keys: str) -> Optional[str]:
        """
        Content of the first matching <meta> tag.

        Each key is tried as property=, name= and itemprop=, in the order
        the keys are given.
        """
        for key in keys:
            for attr in ("property", "name", "itemprop"):
                tag = self.soup.find("meta", attrs={attr: key})
                if tag is not None:
                    content = normalize_whitespace(tag.get("content"))
                    if content:
                        return content
        return None

    def absolute(self, href: Optional[str]) -> Optional[str]:
        """Resolve a possibly relative or protocol-relative URL against the page."""
        href = normalize_whitespace(href)
        if not href:
            return None
        return urljoin(self.url, href)
