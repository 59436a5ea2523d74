from datetime import date, datetime, timedelta

# Tried in order; month-first wins for ambiguous slash dates, as US bank exports use it.
DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%m/%d/%y",
    "%d/%m/%Y",
    "%d-%m-%Y",
    "%d.%m.%Y",
    "%d %b %Y",
    "%d %B %Y",
    "%d-%b-%Y",
    "%d-%b-%y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%b %d %Y",
    "%Y%m%d",
)

EXCEL_EPOCH = datetime(1899, 12, 30)  # accounts for the 1900 leap year bug
_EXCEL_SERIAL_RANGE = (20000, 80000)  # roughly 1954 to 2119


def excel_serial_to_date(serial: int | float) -> str:
    """Convert an Excel serial date number to ISO 8601."""
    return (EXCEL_EPOCH + timedelta(days=int(serial))).strftime("%Y-%m-%d")


def parse_date(raw: str | None) -> str | None:
    """Best-effort parse to YYYY-MM-DD. Returns None for anything unrecognized."""
    if raw is None:
        return None
    text = str(raw).strip()
    if not text or text.startswith("#"):
        # empty, or a spreadsheet error marker like ##### or #VALUE!
        return None

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).strftime("%Y-%m-%d")
        except ValueError:
            continue

    # ISO timestamps, "2024-01-05T10:30:00Z" or "2024-01-05 10:30"
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).strftime("%Y-%m-%d")
    except ValueError:
        pass
    head = text.replace("T", " ").split(" ")[0]
    if head != text:
        parsed = parse_date(head)
        if parsed:
            return parsed

    if text.isdigit() and _EXCEL_SERIAL_RANGE[0] <= int(text) <= _EXCEL_SERIAL_RANGE[1]:
        return excel_serial_to_date(int(text))
    return None


def normalize_date(raw: str) -> str:
    """YYYY-MM-DD when parseable, otherwise the original string untouched."""
    return parse_date(raw) or raw


def resolve_date(raw: str | None, today: date | None = None) -> str:
    """Always a valid ISO date: unparseable values fall back to ``today``."""
    parsed = parse_date(raw)
    if parsed:
        return parsed
    return (today or date.today()).isoformat()
