"""Extraction strategies for stocking report pages."""

from stockwatch.core.config.models import SourceConfig, SourceStrategy

from .base import Extractor, RawRow
from .free_text import FreeTextExtractor, html_to_text, is_date_shaped
from .tabular import MIN_CELLS, TabularExtractor


def get_extractor(source: SourceConfig) -> Extractor:
    """Build the extractor for a source's configured strategy."""
    if source.strategy == SourceStrategy.FREE_TEXT:
        return FreeTextExtractor(
            species=source.species,
            start_marker=source.start_marker,
            end_marker=source.end_marker,
        )
    return TabularExtractor()


__all__ = [
    "Extractor",
    "RawRow",
    "TabularExtractor",
    "FreeTextExtractor",
    "MIN_CELLS",
    "html_to_text",
    "is_date_shaped",
    "get_extractor",
]
