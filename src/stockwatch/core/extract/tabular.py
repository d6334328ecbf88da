"""
Tabular extractor for report pages laid out as HTML tables.

Each row with at least six cells is read positionally:
water, county, species, quantity, average length, date.
"""

from __future__ import annotations

import logging

from lxml.html import HtmlElement

from .base import Extractor, RawRow, collapse_whitespace, parse_document

logger = logging.getLogger(__name__)

MIN_CELLS = 6


class TabularExtractor(Extractor):
    """Extract rows from table markup by cell position."""

    @property
    def name(self) -> str:
        return "tabular"

    def extract(self, html: str) -> list[RawRow]:
        doc = parse_document(html)
        if doc is None:
            logger.debug("Empty or unparseable document")
            return []

        rows: list[RawRow] = []
        skipped = 0

        for tr in doc.iter("tr"):
            cells = tr.findall("td")
            if len(cells) < MIN_CELLS:
                skipped += 1
                continue

            values = [self._get_cell_text(cell) for cell in cells[:MIN_CELLS]]
            rows.append(RawRow(*values))

        logger.debug("Tabular extraction: %d rows, %d skipped", len(rows), skipped)
        return rows

    def _get_cell_text(self, cell: HtmlElement) -> str:
        """Cell text with tag boundaries as spaces, whitespace collapsed."""
        return collapse_whitespace(" ".join(cell.xpath(".//text()")))
