"""Statement file readers. Each returns rows as ordered header -> cell text mappings."""

import csv
import re
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

from fintrack.models import ParserInfo
from fintrack.registry import registry

Row = dict[str, str]


def parse_csv(file_path: Path) -> list[Row]:
    """Comma-separated text with the header on the first line. A UTF-8 BOM is tolerated."""
    rows: list[Row] = []
    with open(file_path, newline="", encoding="utf-8-sig") as f:
        reader = csv.DictReader(f)
        for record in reader:
            row = {k.strip(): (v if v is not None else "") for k, v in record.items() if k is not None}
            if any(str(v).strip() for v in row.values()):
                rows.append(row)
    return rows


def _cell_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float):
        # plain notation, str() would give "1e+20"
        return format(Decimal(repr(value)), "f")
    return str(value)


def parse_xlsx(file_path: Path) -> list[Row]:
    """First worksheet of a workbook; the first non-empty row is the header."""
    from openpyxl import load_workbook

    wb = load_workbook(file_path, read_only=True, data_only=True)
    try:
        ws = wb.worksheets[0]
        header: list[str] | None = None
        rows: list[Row] = []
        for values in ws.iter_rows(values_only=True):
            cells = [_cell_text(v) for v in values]
            if not any(c.strip() for c in cells):
                continue
            if header is None:
                header = [c.strip() for c in cells]
                continue
            row = {h: (cells[i] if i < len(cells) else "") for i, h in enumerate(header) if h}
            rows.append(row)
    finally:
        wb.close()
    return rows


# Date, then description, then a trailing amount such as -1,234.56 or $45.00
_PDF_LINE = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2}|\d{1,2}[./-]\d{1,2}[./-]\d{2,4})\s+"
    r"(?P<description>.+?)\s+"
    r"(?P<amount>-?\(?\$?[\d,]+\.\d{2}\)?)(?:\s+-?\$?[\d,]+\.\d{2})?$"
)


def parse_pdf(file_path: Path) -> list[Row]:
    """Text PDFs: every line shaped like 'date description amount [balance]' becomes a row."""
    from pypdf import PdfReader

    reader = PdfReader(str(file_path))
    text = "\n".join(page.extract_text() or "" for page in reader.pages)
    rows: list[Row] = []
    for line in text.splitlines():
        match = _PDF_LINE.match(line.strip())
        if not match:
            continue
        amount = match.group("amount")
        if amount.startswith("(") and amount.endswith(")"):
            # accounting style negative
            amount = "-" + amount.strip("()")
        rows.append({
            "Date": match.group("date"),
            "Description": match.group("description").strip(),
            "Amount": amount,
        })
    return rows


registry.register(ParserInfo(
    key="csv", name="Comma-separated values",
    file_extensions=[".csv", ".txt"], mime_types=["text/csv", "application/csv", "text/plain"],
    parse=parse_csv,
))
registry.register(ParserInfo(
    key="xlsx", name="Excel workbook",
    file_extensions=[".xlsx"],
    mime_types=["application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"],
    parse=parse_xlsx,
))
registry.register(ParserInfo(
    key="pdf", name="PDF statement (text)",
    file_extensions=[".pdf"], mime_types=["application/pdf"],
    parse=parse_pdf,
))
