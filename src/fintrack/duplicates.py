import sqlite3

from fintrack.dates import normalize_date
from fintrack.errors import ImportFailure
from fintrack.logging_setup import get_logger
from fintrack.models import StagedTransaction
from fintrack.store import find_duplicate

logger = get_logger("fintrack.duplicates")


def detect_duplicates(
    conn: sqlite3.Connection, user_id: int, staged: list[StagedTransaction]
) -> tuple[list[StagedTransaction], list[StagedTransaction]]:
    """Split staged rows into (unique, duplicates) against the user's stored transactions.

    A duplicate has the same date, the same amount to 2 decimals and the same
    description ignoring case. Currency and category are not compared. Unique
    rows come back with their date normalized to YYYY-MM-DD.
    """
    unique: list[StagedTransaction] = []
    duplicates: list[StagedTransaction] = []

    for txn in staged:
        normalized = normalize_date(txn.date)
        try:
            existing = find_duplicate(conn, user_id, normalized, txn.amount, txn.description)
        except sqlite3.Error as exc:
            raise ImportFailure(f"Could not check for duplicates: {exc}") from exc

        if existing is not None:
            duplicates.append(txn)
        else:
            txn.date = normalized
            unique.append(txn)

    logger.info("Duplicate check: %d unique, %d duplicates", len(unique), len(duplicates))
    return unique, duplicates
