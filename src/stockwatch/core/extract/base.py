"""
Extraction base classes and data structures.

Defines the interface for all extraction strategies.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass

from lxml import etree
from lxml import html as lxml_html
from lxml.html import HtmlElement


@dataclass
class RawRow:
    """One candidate stocking row as found on a report page.

    All fields are raw strings; any of them may be empty. Parsing and
    validation happen in the normalizer.
    """

    water: str = ""
    county: str = ""
    species: str = ""
    quantity: str = ""
    length: str = ""
    date: str = ""


class Extractor(ABC):
    """Abstract base class for extraction strategies.

    Extractors are total: malformed or empty documents give an empty list.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Extractor identifier."""
        pass

    @abstractmethod
    def extract(self, html: str) -> list[RawRow]:
        """Extract raw rows from HTML content.

        Args:
            html: HTML content to parse

        Returns:
            Rows in document order
        """
        pass


_XML_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>", re.IGNORECASE)


def parse_document(html: str) -> HtmlElement | None:
    """Parse HTML into an element tree, or None if it cannot be parsed.

    A leading XML declaration (XHTML pages) is dropped; lxml refuses
    str input that carries an encoding declaration.
    """
    html = _XML_DECLARATION.sub("", html or "", count=1)
    if not html.strip():
        return None

    try:
        doc = lxml_html.fromstring(html)
    except (etree.ParserError, ValueError):
        return None

    for element in doc.xpath("//script | //style"):
        element.drop_tree()

    return doc


def collapse_whitespace(text: str) -> str:
    """Collapse whitespace runs to single spaces and trim."""
    return re.sub(r"\s+", " ", text).strip()
