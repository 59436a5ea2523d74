import sqlite3
from collections.abc import Iterable

from fintrack.models import Category, StagedTransaction
from fintrack.store import find_categories_for_user

# Merchant/transaction keyword -> category name. First keyword found in the description wins.
KEYWORD_CATEGORIES: list[tuple[str, str]] = [
    ("amazon", "Shopping"),
    ("walmart", "Groceries"),
    ("target", "Shopping"),
    ("starbucks", "Food"),
    ("mcdonald", "Food"),
    ("netflix", "Entertainment"),
    ("spotify", "Entertainment"),
    ("uber", "Transport"),
    ("lyft", "Transport"),
    ("salary", "Salary"),
    ("payroll", "Salary"),
    ("depo", "Salary"),
    ("dividend", "Salary"),
    ("rent", "Housing"),
    ("apartment", "Housing"),
    ("mortgage", "Housing"),
    ("electric", "Utilities"),
    ("water", "Utilities"),
    ("internet", "Utilities"),
]


def _by_name(categories: Iterable[Category], name: str) -> Category | None:
    target = name.strip().lower()
    for cat in categories:
        if cat.name.lower() == target:
            return cat
    return None


def match_hint(txn: StagedTransaction, categories: list[Category]) -> Category | None:
    if not txn.category_hint or not txn.category_hint.strip():
        return None
    return _by_name(categories, txn.category_hint)


def match_description(txn: StagedTransaction, categories: list[Category]) -> Category | None:
    desc = txn.description.lower()
    for cat in categories:
        if cat.name and cat.name.lower() in desc:
            return cat
    return None


def keyword_table(extra: Iterable[tuple[str, str]] = ()) -> list[tuple[str, str]]:
    """The built-in keyword table followed by extra (keyword, category) pairs not already in it."""
    table = list(KEYWORD_CATEGORIES)
    known = {keyword for keyword, _ in table}
    for keyword, name in extra:
        keyword = keyword.lower()
        if keyword not in known:
            table.append((keyword, name))
            known.add(keyword)
    return table


def match_keyword(
    txn: StagedTransaction,
    categories: list[Category],
    keywords: list[tuple[str, str]] | None = None,
) -> Category | None:
    desc = txn.description.lower()
    for keyword, target in (KEYWORD_CATEGORIES if keywords is None else keywords):
        if keyword in desc:
            # only the first keyword counts, even if its category doesn't exist
            return _by_name(categories, target)
    return None


def classify(
    txn: StagedTransaction,
    categories: list[Category],
    keywords: list[tuple[str, str]] | None = None,
) -> Category | None:
    """Try the file's category hint, then category names in the description, then the keyword table."""
    return (
        match_hint(txn, categories)
        or match_description(txn, categories)
        or match_keyword(txn, categories, keywords)
    )


def categorize_staged(
    conn: sqlite3.Connection,
    user_id: int,
    staged: list[StagedTransaction],
    keywords: list[tuple[str, str]] | None = None,
) -> dict:
    """Assign category_id on each staged transaction in place. Returns counts."""
    categories = find_categories_for_user(conn, user_id)
    categorized = 0
    for txn in staged:
        found = classify(txn, categories, keywords)
        if found is not None:
            txn.category_id = found.id
            categorized += 1
    return {"categorized": categorized, "uncategorized": len(staged) - categorized}
