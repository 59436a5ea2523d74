import re
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation

from fintrack.columns import cell
from fintrack.models import ColumnMap

_NON_NUMERIC = re.compile(r"[^0-9.\-]")

ZERO = Decimal("0")


def parse_cell_amount(raw: str | None) -> Decimal:
    """Keep only digits, '.' and '-', then parse. Empty or unparseable cells are 0."""
    if raw is None:
        return ZERO
    cleaned = _NON_NUMERIC.sub("", str(raw))
    if not cleaned:
        return ZERO
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return ZERO
    return value if value.is_finite() else ZERO


def resolve_amount(debit: Decimal, credit: Decimal, amount: Decimal) -> tuple[Decimal, str]:
    """Pick the first non-zero source and derive (magnitude, type).

    A negative value in a debit column is a refund or reversal and counts as
    income. Negative credit or generic amounts are expenses.
    """
    if debit != 0:
        return abs(debit), "income" if debit < 0 else "expense"
    if credit != 0:
        return abs(credit), "expense" if credit < 0 else "income"
    if amount != 0:
        return abs(amount), "expense" if amount < 0 else "income"
    return ZERO, "expense"


def normalize_amount(columns: ColumnMap, row: Mapping[str, str]) -> tuple[Decimal, str]:
    """Signed-cell resolution for one statement row; a zero magnitude means 'not a transaction'.

    The magnitude keeps the precision of the cell. Rounding to cents happens
    when the transaction is stored.
    """
    debit = parse_cell_amount(cell(row, columns.debit))
    credit = parse_cell_amount(cell(row, columns.credit))
    amount = parse_cell_amount(cell(row, columns.amount))
    return resolve_amount(debit, credit, amount)
