"""
Free-text extractor for report pages without a usable table.

The page is rendered to line-oriented text, the report section is cut
out between a start and an end marker, and the remaining lines are
walked looking for (water, region, date) triples.
"""

from __future__ import annotations

import logging
import re

from lxml import etree

from .base import Extractor, RawRow, parse_document

logger = logging.getLogger(__name__)


# =============================================================================
# Text rendering
# =============================================================================

BLOCK_TAGS = frozenset(
    {"tr", "p", "div", "li", "h1", "h2", "h3", "h4", "h5", "h6", "section", "article"}
)

HEADER_LABELS = frozenset(
    {"body of water", "region", "report date", "link", "atlas", "atlas+"}
)

_DATE_SHAPE = re.compile(r"\b\d{1,2}/\d{1,2}/\d{4}\b")


def html_to_text(html: str) -> str:
    """Render HTML to plain text, one line per block element.

    Block element ends and <br> become line breaks, every other tag
    boundary becomes a space. Space runs are collapsed, line starts
    trimmed and blank lines removed.
    """
    doc = parse_document(html)
    if doc is None:
        return ""

    for element in doc.iter(etree.Element):
        tag = element.tag.lower() if isinstance(element.tag, str) else ""
        if tag == "br":
            element.tail = "\n" + (element.tail or "")
        elif tag in BLOCK_TAGS:
            element.text = " " + (element.text or "")
            element.tail = "\n" + (element.tail or "")
        else:
            element.text = " " + (element.text or "")
            element.tail = " " + (element.tail or "")

    text = doc.text_content()
    text = re.sub(r"[ \t\r]+", " ", text)
    text = re.sub(r"\n\s+", "\n", text)
    text = re.sub(r"\n{2,}", "\n", text)
    return text.strip()


def is_date_shaped(value: str) -> bool:
    """Check for an M/D/YYYY date anywhere in the value."""
    return bool(_DATE_SHAPE.search(value))


# =============================================================================
# Extractor
# =============================================================================


class FreeTextExtractor(Extractor):
    """Extract (water, region, date) triples from a text report section."""

    def __init__(
        self,
        species: str = "TROUT",
        start_marker: str = "trout stocking report",
        end_marker: str | None = "view stocking report archive",
    ):
        self.species = species
        self.start_marker = start_marker.lower()
        self.end_marker = end_marker.lower() if end_marker else None

        self._excluded = HEADER_LABELS | {self.start_marker}
        if self.end_marker:
            self._excluded = self._excluded | {self.end_marker}

    @property
    def name(self) -> str:
        return "free_text"

    def extract(self, html: str) -> list[RawRow]:
        section = self._find_section(html_to_text(html))
        if section is None:
            logger.debug("Start marker %r not found", self.start_marker)
            return []

        lines = [
            line
            for line in (raw.strip() for raw in section.split("\n"))
            if line and line.lower() not in HEADER_LABELS
        ]

        rows = self._walk_triples(lines)
        logger.debug("Free-text extraction: %d rows from %d lines", len(rows), len(lines))
        return rows

    def _find_section(self, text: str) -> str | None:
        """Cut the report section out of the rendered text."""
        start = text.lower().find(self.start_marker)
        if start < 0:
            return None

        tail = text[start:]
        if self.end_marker:
            end = tail.lower().find(self.end_marker)
            if end > 0:
                return tail[:end]
        return tail

    def _walk_triples(self, lines: list[str]) -> list[RawRow]:
        rows: list[RawRow] = []

        i = 0
        while i < len(lines) - 2:
            water, region, date = lines[i], lines[i + 1], lines[i + 2]

            if self._is_triple(water, region, date):
                rows.append(
                    RawRow(
                        water=water,
                        county=region.upper(),
                        species=self.species,
                        date=date,
                    )
                )
                i += 3
            else:
                i += 1

        return rows

    def _is_triple(self, water: str, region: str, date: str) -> bool:
        if any(value.lower() in self._excluded for value in (water, region, date)):
            return False
        return not is_date_shaped(water) and not is_date_shaped(region) and is_date_shaped(date)
