import hashlib
import sqlite3
from collections.abc import Mapping
from datetime import date
from decimal import Decimal
from pathlib import Path

from fintrack.amounts import normalize_amount
from fintrack.categorizer import categorize_staged
from fintrack.columns import cell, infer_columns
from fintrack.dates import resolve_date
from fintrack.duplicates import detect_duplicates
from fintrack.errors import ImportFailure, NoTransactionsFound, ParseFailure, RowCommitFailure
from fintrack.logging_setup import get_logger
from fintrack.models import ConfirmResult, ImportPreview, StagedTransaction
from fintrack.registry import registry
from fintrack.store import create_transaction, get_user

import fintrack.parsers  # noqa: F401  registers the built-in parsers

logger = get_logger("fintrack.importer")

DEFAULT_DESCRIPTION = "Imported Transaction"


def compute_checksum(file_path: Path) -> str:
    return hashlib.sha256(file_path.read_bytes()).hexdigest()


def stage_row(
    row: Mapping[str, str], currency: str = "USD", today: date | None = None
) -> StagedTransaction | None:
    """Turn one parsed row into a staged transaction, or None for zero-amount rows."""
    columns = infer_columns(row)
    amount, txn_type = normalize_amount(columns, row)
    if amount == 0:
        return None
    hint = cell(row, columns.category)
    return StagedTransaction(
        date=resolve_date(cell(row, columns.date), today=today),
        description=cell(row, columns.description) or DEFAULT_DESCRIPTION,
        amount=amount,
        type=txn_type,
        currency=currency,
        category_hint=hint or None,
    )


def stage_rows(
    rows: list[Mapping[str, str]], currency: str = "USD", today: date | None = None
) -> list[StagedTransaction]:
    staged = []
    for row in rows:
        txn = stage_row(row, currency=currency, today=today)
        if txn is not None:
            staged.append(txn)
    return staged


def parse_file(file_path: Path, mime_hint: str | None = None) -> list[dict[str, str]]:
    """Run the matching parser. Any failure, or an empty result, is a ParseFailure."""
    parser = registry.get_for_file(file_path, mime_hint)
    if parser is None:
        raise ParseFailure(f"Unsupported file type: {file_path.suffix or mime_hint or 'unknown'}")
    try:
        rows = parser.parse(file_path)
    except Exception as exc:
        # plugin parsers can raise anything
        raise ParseFailure(f"Could not read {file_path.name}: {exc}") from exc
    if not rows:
        raise ParseFailure(f"No rows found in {file_path.name}")
    return rows


def _was_imported(conn: sqlite3.Connection, user_id: int, checksum: str) -> bool:
    row = conn.execute(
        "SELECT 1 FROM imports WHERE user_id = ? AND checksum = ?", (user_id, checksum)
    ).fetchone()
    return row is not None


def run_import(
    conn: sqlite3.Connection,
    user_id: int,
    file_path: Path,
    mime_hint: str | None = None,
    today: date | None = None,
    keywords: list[tuple[str, str]] | None = None,
) -> ImportPreview:
    """Parse, stage, categorize and duplicate-check a statement file. Nothing is persisted.

    ``keywords`` replaces the built-in merchant keyword table for this import.
    """
    file_path = Path(file_path)
    try:
        user = get_user(conn, user_id)
        if user is None:
            raise ImportFailure(f"Unknown user: {user_id}")
        checksum = compute_checksum(file_path)
        previously_imported = _was_imported(conn, user_id, checksum)
    except (OSError, sqlite3.Error) as exc:
        raise ImportFailure(f"Could not start import of {file_path.name}: {exc}") from exc

    rows = parse_file(file_path, mime_hint)
    staged = stage_rows(rows, currency=user.currency, today=today)
    if not staged:
        raise NoTransactionsFound(f"No transactions with a non-zero amount found in {file_path.name}")
    logger.info("Staged %d of %d rows from %s", len(staged), len(rows), file_path.name)

    try:
        categorize_staged(conn, user_id, staged, keywords)
    except sqlite3.Error as exc:
        raise ImportFailure(f"Could not load categories: {exc}") from exc

    unique, duplicates = detect_duplicates(conn, user_id, staged)
    return ImportPreview(
        unique=unique,
        duplicates=duplicates,
        filename=file_path.name,
        checksum=checksum,
        previously_imported=previously_imported,
    )


def _commit_row(conn: sqlite3.Connection, user_id: int, txn: StagedTransaction, import_id: int | None) -> int:
    try:
        return create_transaction(
            conn, user_id,
            date=txn.date,
            description=txn.description,
            amount=txn.amount,
            type=txn.type,
            currency=txn.currency,
            category_id=txn.category_id,
            import_id=import_id,
            commit=False,
        )
    except (sqlite3.Error, ValueError) as exc:
        raise RowCommitFailure(f"{txn.date} {txn.description!r} {txn.amount}: {exc}") from exc


def _rollback(conn: sqlite3.Connection) -> None:
    try:
        conn.rollback()
    except sqlite3.Error as exc:
        logger.warning("Rollback after failed import also failed: %s", exc)


def confirm_import(
    conn: sqlite3.Connection,
    user_id: int,
    rows: list[StagedTransaction],
    filename: str | None = None,
    checksum: str | None = None,
) -> ConfirmResult:
    """Persist the active rows. A row that fails is logged and skipped, the rest still go in.

    Raises ImportFailure, with nothing saved, when the batch record or the
    final commit cannot be written.
    """
    selected = [r for r in rows if r.active]
    import_id = None
    if filename and selected:
        dates = [r.date for r in selected]
        try:
            cursor = conn.execute(
                "INSERT INTO imports (user_id, filename, record_count, date_range_start, date_range_end, checksum) "
                "VALUES (?, ?, 0, ?, ?, ?)",
                (user_id, filename, min(dates), max(dates), checksum),
            )
        except sqlite3.Error as exc:
            _rollback(conn)
            raise ImportFailure(f"Could not record import of {filename}: {exc}") from exc
        import_id = cursor.lastrowid

    imported = 0
    failed = 0
    for txn in selected:
        try:
            _commit_row(conn, user_id, txn, import_id)
        except RowCommitFailure as exc:
            logger.warning("Skipped row during import: %s", exc)
            failed += 1
            continue
        imported += 1

    try:
        if import_id is not None:
            if imported:
                conn.execute("UPDATE imports SET record_count = ? WHERE id = ?", (imported, import_id))
            else:
                conn.execute("DELETE FROM imports WHERE id = ?", (import_id,))
                import_id = None
        conn.commit()
    except sqlite3.Error as exc:
        _rollback(conn)
        raise ImportFailure(f"Could not save imported transactions: {exc}") from exc

    logger.info("Imported %d transaction(s), %d failed", imported, failed)
    return ConfirmResult(imported_count=imported, failed_count=failed, import_id=import_id)


def total_amount(rows: list[StagedTransaction], txn_type: str) -> Decimal:
    return sum((r.amount for r in rows if r.active and r.type == txn_type), Decimal("0"))
