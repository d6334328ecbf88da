"""Tests for the free-text extractor."""

from __future__ import annotations

from stockwatch.core.extract import FreeTextExtractor, RawRow, html_to_text, is_date_shaped


def _page(*lines: str, footer: str = "View Stocking Report Archive") -> str:
    body = "".join(f"<div>{line}</div>" for line in lines)
    return (
        "<html><head><style>div { color: red; }</style></head><body>"
        "<nav><a href='/'>Home</a></nav>"
        "<h2>Trout Stocking Report</h2>"
        f"{body}"
        f"<p><a href='/archive'>{footer}</a></p>"
        "<div>Outside Lake</div><div>Nowhere</div><div>1/1/2026</div>"
        "</body></html>"
    )


class TestHtmlToText:
    def test_block_ends_and_breaks_become_lines(self):
        text = html_to_text("<div><p>Blue Lake</p><p>Wasatch<br>3/4/2026</p></div>")

        assert text.split("\n") == ["Blue Lake", "Wasatch", "3/4/2026"]

    def test_inline_tags_become_spaces(self):
        assert html_to_text("<p>Blue<span>Lake</span></p>") == "Blue Lake"

    def test_script_and_style_removed(self):
        text = html_to_text(
            "<html><head><style>p {}</style></head>"
            "<body><p>Keep</p><script>var drop = 1;</script></body></html>"
        )

        assert text == "Keep"

    def test_empty(self):
        assert html_to_text("") == ""


def test_is_date_shaped():
    assert is_date_shaped("3/4/2026")
    assert is_date_shaped("Reported 12/31/2025")
    assert not is_date_shaped("2026-03-04")
    assert not is_date_shaped("Blue Lake")


class TestFreeTextExtractor:
    def test_triples_with_repeated_headers(self):
        html = _page(
            "Body of Water", "Region", "Report Date",
            "Blue Lake", "Wasatch", "3/4/2026",
            "Body of Water",
            "Green Lake", "Summit", "3/5/2026",
        )

        rows = FreeTextExtractor().extract(html)

        assert rows == [
            RawRow(water="Blue Lake", county="WASATCH", species="TROUT", date="3/4/2026"),
            RawRow(water="Green Lake", county="SUMMIT", species="TROUT", date="3/5/2026"),
        ]

    def test_realigns_after_extraneous_line(self):
        html = _page(
            "Blue Lake", "Wasatch", "3/4/2026",
            "Updated weekly",
            "Green Lake", "Summit", "3/5/2026",
        )

        rows = FreeTextExtractor().extract(html)

        assert [(row.water, row.date) for row in rows] == [
            ("Blue Lake", "3/4/2026"),
            ("Green Lake", "3/5/2026"),
        ]

    def test_header_labels_case_insensitive(self):
        html = _page("BODY OF WATER", "region", "Atlas+", "Blue Lake", "Wasatch", "3/4/2026")

        rows = FreeTextExtractor().extract(html)

        assert [row.water for row in rows] == ["Blue Lake"]

    def test_rejects_date_in_first_two_positions(self):
        html = _page("3/1/2026", "Wasatch", "3/4/2026", "Blue Lake", "3/2/2026", "3/5/2026")

        assert FreeTextExtractor().extract(html) == []

    def test_section_ends_at_end_marker(self):
        html = _page("Blue Lake", "Wasatch", "3/4/2026")

        rows = FreeTextExtractor().extract(html)

        assert "Outside Lake" not in [row.water for row in rows]

    def test_without_end_marker_reads_to_end(self):
        html = _page("Blue Lake", "Wasatch", "3/4/2026", footer="More reports")

        rows = FreeTextExtractor().extract(html)

        assert [row.water for row in rows] == ["Blue Lake", "Outside Lake"]

    def test_missing_start_marker(self):
        html = "<div>Blue Lake</div><div>Wasatch</div><div>3/4/2026</div>"

        assert FreeTextExtractor().extract(html) == []

    def test_configured_species_and_markers(self):
        html = (
            "<h1>Warmwater Report</h1>"
            "<div>Pond 7</div><div>Northeast</div><div>6/1/2026</div>"
            "<div>End of report</div>"
        )
        extractor = FreeTextExtractor(
            species="BASS",
            start_marker="Warmwater Report",
            end_marker="End of report",
        )

        rows = extractor.extract(html)

        assert rows == [RawRow(water="Pond 7", county="NORTHEAST", species="BASS", date="6/1/2026")]

    def test_total_on_bad_input(self):
        assert FreeTextExtractor().extract("") == []
        assert FreeTextExtractor().extract("trout stocking report") == []

    def test_xhtml_with_encoding_declaration(self):
        html = '<?xml version="1.0" encoding="UTF-8"?>\n' + _page("Blue Lake", "Wasatch", "3/4/2026")

        rows = FreeTextExtractor().extract(html)

        assert [row.water for row in rows] == ["Blue Lake"]


def test_get_extractor_by_strategy():
    from stockwatch.core.config.models import SourceConfig, SourceStrategy
    from stockwatch.core.extract import TabularExtractor, get_extractor

    tabular = SourceConfig(name="ut", url="https://example.test/ut")
    free_text = SourceConfig(
        name="co",
        url="https://example.test/co",
        strategy=SourceStrategy.FREE_TEXT,
        species="bass",
        start_marker="Warmwater Report",
    )

    assert isinstance(get_extractor(tabular), TabularExtractor)

    extractor = get_extractor(free_text)
    assert isinstance(extractor, FreeTextExtractor)
    assert extractor.species == "BASS"
    assert extractor.start_marker == "warmwater report"


def test_header_between_triples_normalizes_both_dates():
    from stockwatch.core.normalize import normalize_rows

    lines = ["Blue Lake", "Wasatch", "3/4/2026", "Body of Water", "Green Lake", "Summit", "3/5/2026"]
    html = "<h2>Trout Stocking Report</h2>" + "".join(f"<p>{line}</p>" for line in lines)

    events = normalize_rows(FreeTextExtractor().extract(html))

    assert [(e.water_name, e.county, e.date_stocked) for e in events] == [
        ("Blue Lake", "WASATCH", "2026-03-04"),
        ("Green Lake", "SUMMIT", "2026-03-05"),
    ]
