"""
CSV export and download file handling.
"""

import csv
import io
import logging
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Iterable, Optional, Union

from auric_ledger.pricing.formatting import format_date, format_money
from auric_ledger.pricing.units import active_price, carat_suffix
from auric_ledger.store.models import Metal, Quote, UnitSelection

logger = logging.getLogger(__name__)

CSV_HEADER = ("Date", "Metal", "Unit", "Price (INR)")


@dataclass(frozen=True)
class ExportRow:
    """One formatted history row."""

    date: str
    metal: str
    unit: str
    price: str

    def as_tuple(self) -> tuple[str, str, str, str]:
        return (self.date, self.metal, self.unit, self.price)


def metal_report_label(metal: Metal, selection: UnitSelection) -> str:
    """'Gold (22K)' for gold, plain label otherwise."""
    return f"{metal.label}{carat_suffix(metal.symbol, selection)}"


def build_export_rows(
    history: Iterable[Quote], metal: Metal, selection: UnitSelection
) -> list[ExportRow]:
    """Format each history point; missing prices are shown as zero."""
    label = metal_report_label(metal, selection)
    return [
        ExportRow(
            date=format_date(quote.date),
            metal=label,
            unit=selection.unit,
            price=format_money(active_price(quote, metal.symbol, selection) or 0),
        )
        for quote in history
    ]


def build_csv(rows: Iterable[ExportRow]) -> str:
    """Header plus rows, every field quoted, newline separated, no trailing newline."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for row in rows:
        writer.writerow(row.as_tuple())
    return buffer.getvalue()[: -len("\n")]


def export_filename(
    metal: str, unit: str, extension: str, today: Optional[Union[date, datetime]] = None
) -> str:
    """metal-prices-{metal}-{unit}-{YYYYMMDD}.{ext}"""
    today = today or date.today()
    return f"metal-prices-{metal}-{unit}-{today.strftime('%Y%m%d')}.{extension}"


@dataclass(frozen=True)
class DownloadLink:
    """Last exported file."""

    path: Path
    filename: str
    label: str


class DownloadSlot:
    """
    Holds the most recent export. Storing a new one deletes the previous file
    first, so repeated exports don't pile up transient files.
    """

    def __init__(self, output_dir: Union[str, Path]):
        self.output_dir = Path(output_dir)
        self.current: Optional[DownloadLink] = None

    def store(self, filename: str, content: bytes, label: str) -> DownloadLink:
        self.release()
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / filename
        path.write_bytes(content)
        self.current = DownloadLink(path=path, filename=filename, label=label)
        logger.info(f"Exported {label} to {path}")
        return self.current

    def release(self) -> None:
        if self.current is None:
            return
        try:
            self.current.path.unlink()
        except FileNotFoundError:
            pass
        self.current = None


def export_csv(
    history: list[Quote],
    metal: Metal,
    selection: UnitSelection,
    slot: DownloadSlot,
    today: Optional[date] = None,
) -> Optional[DownloadLink]:
    """Write the CSV export; does nothing when history is empty."""
    if not history:
        return None

    content = build_csv(build_export_rows(history, metal, selection))
    filename = export_filename(metal.symbol, selection.unit, "csv", today)
    return slot.store(filename, content.encode("utf-8"), "CSV")
