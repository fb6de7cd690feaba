"""
PDF price report.

``build_pdf_layout`` decides the report's content and is deterministic for a
given generation time; ``render_pdf`` draws that layout with fpdf2.
"""

import io
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

import requests
from fpdf import FPDF

from auric_ledger.pricing.formatting import format_date, format_number_plain
from auric_ledger.pricing.stats import history_stats
from auric_ledger.pricing.units import active_price
from auric_ledger.store.models import ComparisonResult, Metal, PriceStats, Quote, UnitSelection
from .export import DownloadLink, DownloadSlot, export_filename, metal_report_label

logger = logging.getLogger(__name__)

Color = tuple[int, int, int]

PAGE_MARGIN = 40
TABLE_HEAD = ("Date", "Metal", "Unit", "Price (Rs.)")
COLUMN_WIDTHS = (130, 185, 80, 120)
COLUMN_ALIGN = ("L", "L", "C", "R")
ROW_HEIGHT = 22
FOOTER_OFFSET = 22


@dataclass(frozen=True)
class Palette:
    """Report colors for one theme."""

    background: Color
    text: Color
    muted: Color
    accent: Color
    table_head: Color
    table_alt_row: Color
    table_text: Color


LIGHT_PALETTE = Palette(
    background=(250, 247, 241),
    text=(24, 24, 30),
    muted=(90, 90, 96),
    accent=(197, 154, 60),
    table_head=(181, 134, 11),
    table_alt_row=(249, 247, 242),
    table_text=(40, 40, 40),
)

DARK_PALETTE = Palette(
    background=(26, 24, 32),
    text=(245, 241, 234),
    muted=(169, 173, 184),
    accent=(212, 169, 84),
    table_head=(42, 107, 95),
    table_alt_row=(31, 28, 38),
    table_text=(245, 241, 234),
)


@dataclass(frozen=True)
class PdfLayout:
    """Everything the report shows, independent of how it is drawn."""

    brand: str
    tagline: str
    title: str
    site_url: str
    metadata: tuple[str, ...]
    summary_title: str
    summary: tuple[str, str, str]
    comparison_line: Optional[str]
    table_head: tuple[str, ...]
    table_rows: tuple[tuple[str, ...], ...]
    footer: str
    palette: Palette
    fallback_mark: str = "AL"


def comparison_line(comparison: Optional[ComparisonResult]) -> Optional[str]:
    if comparison is None:
        return None
    if comparison.percentage_change is None:
        pct = "n/a"
    else:
        pct = f"{comparison.percentage_change:.2f}%"
    return f"Change vs yesterday: {format_number_plain(comparison.difference)} ({pct})"


def build_pdf_layout(
    history: list[Quote],
    metal: Metal,
    selection: UnitSelection,
    stats: PriceStats,
    comparison: Optional[ComparisonResult],
    last_updated: Optional[str],
    generated_at: datetime,
    dark_mode: bool = False,
    brand: str = "Auric Ledger",
    site_url: str = "https://auric-ledger.vercel.app/",
    summary_title: str = "7-Day Summary",
) -> PdfLayout:
    """
    Describe the report for a non-empty history.

    Args:
        history: Quotes ordered by date ascending
        metal: Metal being reported
        selection: Active unit and carat
        stats: compute_stats over the same history
        comparison: Today-vs-yesterday result, if available
        last_updated: Date of the latest quote
        generated_at: Generation timestamp printed in the metadata
        dark_mode: Use the dark palette
    """
    label = metal_report_label(metal, selection)
    start = format_date(history[0].date)
    end = format_date(history[-1].date)

    metadata = (
        f"Metal: {label}",
        f"Unit: {selection.unit}",
        f"Range: {start} to {end}",
        f"Last updated: {format_date(last_updated) if last_updated else '-'}",
        f"Generated: {generated_at.strftime('%d %b %Y, %H:%M')}",
    )

    rows = tuple(
        (
            format_date(quote.date),
            label,
            selection.unit,
            format_number_plain(active_price(quote, metal.symbol, selection) or 0),
        )
        for quote in history
    )

    return PdfLayout(
        brand=brand,
        tagline="Precision metal pricing for modern markets",
        title="Metal Price Report",
        site_url=site_url,
        metadata=metadata,
        summary_title=summary_title,
        summary=(
            f"Low: {format_number_plain(stats.min)}",
            f"High: {format_number_plain(stats.max)}",
            f"Average: {format_number_plain(stats.avg)}",
        ),
        comparison_line=comparison_line(comparison),
        table_head=TABLE_HEAD,
        table_rows=rows,
        footer=f"{brand} | {site_url}",
        palette=DARK_PALETTE if dark_mode else LIGHT_PALETTE,
    )


def fetch_logo(url: str, timeout: float = 10, session: Optional[requests.Session] = None) -> bytes:
    """
    Download the report logo (PNG or JPEG).

    Raises:
        requests.RequestException: If the download fails
    """
    response = (session or requests).get(url, timeout=timeout)
    response.raise_for_status()
    return response.content


class ReportPDF(FPDF):
    """A4 report with a themed page background and brand footer."""

    def __init__(self, layout: PdfLayout):
        super().__init__(orientation="P", unit="pt", format="A4")
        self.layout = layout
        self.set_auto_page_break(False)
        self.set_margins(PAGE_MARGIN, PAGE_MARGIN, PAGE_MARGIN)

    def header(self):
        self.set_fill_color(*self.layout.palette.background)
        self.rect(0, 0, self.w, self.h, "F")

    def footer(self):
        self.set_font("helvetica", "", 9)
        self.set_text_color(*self.layout.palette.muted)
        self.text(PAGE_MARGIN, self.h - FOOTER_OFFSET, self.layout.footer)
        self.text(self.w - 75, self.h - FOOTER_OFFSET, f"Page {self.page_no()} of {{nb}}")


def _draw_brand(pdf: ReportPDF, logo: Optional[bytes]) -> None:
    layout = pdf.layout
    palette = layout.palette

    drawn = False
    if logo:
        try:
            pdf.image(io.BytesIO(logo), x=32, y=22, w=36, h=36)
            drawn = True
        except Exception as e:
            logger.warning(f"Logo could not be drawn, using text mark: {e}")

    if not drawn:
        pdf.set_fill_color(*palette.accent)
        pdf.ellipse(34, 26, 28, 28, style="F")
        pdf.set_font("helvetica", "B", 10)
        pdf.set_text_color(255, 255, 255)
        pdf.text(42, 43, layout.fallback_mark)

    pdf.set_font("helvetica", "B", 20)
    pdf.set_text_color(*palette.text)
    pdf.text(75, 42, layout.brand)
    pdf.set_font("helvetica", "", 11)
    pdf.set_text_color(*palette.muted)
    pdf.text(75, 60, layout.tagline)


def _draw_table_head(pdf: ReportPDF, y: float) -> float:
    palette = pdf.layout.palette
    pdf.set_xy(PAGE_MARGIN, y)
    pdf.set_font("helvetica", "B", 10)
    pdf.set_fill_color(*palette.table_head)
    pdf.set_text_color(255, 255, 255)
    pdf.set_draw_color(*palette.muted)
    for text, width in zip(pdf.layout.table_head, COLUMN_WIDTHS):
        pdf.cell(width, ROW_HEIGHT, text, border=1, align="L", fill=True)
    return y + ROW_HEIGHT


def _draw_table(pdf: ReportPDF, start_y: float) -> None:
    palette = pdf.layout.palette
    bottom = pdf.h - PAGE_MARGIN - FOOTER_OFFSET
    y = _draw_table_head(pdf, start_y)

    for index, row in enumerate(pdf.layout.table_rows):
        if y + ROW_HEIGHT > bottom:
            pdf.add_page()
            y = _draw_table_head(pdf, PAGE_MARGIN)

        fill = palette.table_alt_row if index % 2 else palette.background
        pdf.set_xy(PAGE_MARGIN, y)
        pdf.set_font("helvetica", "", 10)
        pdf.set_fill_color(*fill)
        pdf.set_text_color(*palette.table_text)
        for text, width, align in zip(row, COLUMN_WIDTHS, COLUMN_ALIGN):
            pdf.cell(width, ROW_HEIGHT, text, border=1, align=align, fill=True)
        y += ROW_HEIGHT


def render_pdf(
    layout: PdfLayout,
    logo_loader: Optional[Callable[[], bytes]] = None,
) -> bytes:
    """
    Draw the report.

    Args:
        layout: Report content from build_pdf_layout
        logo_loader: Returns logo image bytes; any failure falls back to a text mark

    Returns:
        PDF document bytes
    """
    logo = None
    if logo_loader is not None:
        try:
            logo = logo_loader()
        except Exception as e:
            logger.warning(f"Logo unavailable, using text mark: {e}")

    palette = layout.palette
    pdf = ReportPDF(layout)
    pdf.add_page()

    _draw_brand(pdf, logo)

    pdf.set_font("helvetica", "B", 16)
    pdf.set_text_color(*palette.text)
    pdf.text(PAGE_MARGIN, 118, layout.title)
    pdf.set_font("helvetica", "", 11)
    pdf.set_text_color(*palette.muted)
    pdf.text(PAGE_MARGIN, 133, layout.site_url)

    pdf.set_font("helvetica", "", 12)
    pdf.set_text_color(*palette.text)
    y = 153
    for line in layout.metadata:
        pdf.text(PAGE_MARGIN, y, line)
        y += 20

    y += 8
    pdf.set_font("helvetica", "B", 12)
    pdf.text(PAGE_MARGIN, y, layout.summary_title)
    y += 20
    pdf.set_font("helvetica", "", 12)
    for x, text in zip((PAGE_MARGIN, 220, 400), layout.summary):
        pdf.text(x, y, text)

    if layout.comparison_line:
        y += 22
        pdf.text(PAGE_MARGIN, y, layout.comparison_line)

    _draw_table(pdf, y + 20)
    return bytes(pdf.output())


def export_pdf(
    history: list[Quote],
    metal: Metal,
    selection: UnitSelection,
    comparison: Optional[ComparisonResult],
    last_updated: Optional[str],
    slot: DownloadSlot,
    generated_at: Optional[datetime] = None,
    dark_mode: bool = False,
    logo_loader: Optional[Callable[[], bytes]] = None,
    brand: str = "Auric Ledger",
    site_url: str = "https://auric-ledger.vercel.app/",
) -> Optional[DownloadLink]:
    """Write the PDF report; does nothing when history is empty."""
    if not history:
        return None

    generated_at = generated_at or datetime.now()
    layout = build_pdf_layout(
        history,
        metal,
        selection,
        history_stats(history, metal.symbol, selection),
        comparison,
        last_updated,
        generated_at,
        dark_mode=dark_mode,
        brand=brand,
        site_url=site_url,
    )
    filename = export_filename(metal.symbol, selection.unit, "pdf", generated_at)
    return slot.store(filename, render_pdf(layout, logo_loader), "PDF")
