"""Header inference for bank statements with unknown column layouts.

Each slot owns an ordered list of keyword terms. The first header, in the
row's own key order, that matches any of a slot's terms fills that slot.
Slots are searched independently over the full header set, so one header
may fill more than one slot (``Debit Amount`` fills both debit and amount).
"""

import re
from collections.abc import Mapping

from fintrack.models import ColumnMap

# (slot, terms) in evaluation order
SLOT_RULES: list[tuple[str, tuple[str, ...]]] = [
    ("date", ("date", "time")),
    ("description", ("desc", "particulars", "remarks", "trans")),
    ("category", ("category", "group", "tag")),
    ("debit", ("debit", "dr", "withdrawal", "paid out", "spending", "spent")),
    ("credit", ("credit", "cr", "deposit", "paid in", "income", "earned")),
    ("amount", ("amount", "value", "total", "amt")),
]

# A header mentioning one of these belongs to some other column ("Category Date", "Balance Amount")
GUARD_WORDS = ("date", "category", "balance")

SHORT_TERM_LENGTH = 2


def normalize_header(header: str) -> str:
    return str(header).strip().lower()


def match_header(header: str, term: str) -> bool:
    """True if a (raw) header satisfies one keyword term."""
    name = normalize_header(header)
    if len(term) <= SHORT_TERM_LENGTH:
        return name == term or re.search(rf"(^|\s){re.escape(term)}(\s|$)", name) is not None
    if term not in name:
        return False
    return not any(guard in name for guard in GUARD_WORDS if guard not in term)


def find_header(headers: list[str], terms: tuple[str, ...]) -> str | None:
    for header in headers:
        if any(match_header(header, term) for term in terms):
            return header
    return None


def infer_columns(row: Mapping[str, str]) -> ColumnMap:
    """Pick a header for every slot from one parsed row."""
    headers = [h for h in row.keys() if h is not None]
    found = {slot: find_header(headers, terms) for slot, terms in SLOT_RULES}
    return ColumnMap(**found)


def cell(row: Mapping[str, str], header: str | None) -> str:
    """Trimmed text of the cell under ``header``, empty when the slot is unmapped."""
    if header is None:
        return ""
    value = row.get(header)
    return "" if value is None else str(value).strip()
